# File: timesheets/services.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from core.utils.authz import require_store_access
from core.utils.periods import weekdays_between
from stores.delegation import delegations_for, resolve_entry_stores, resolve_grid_store
from stores.models import Employee, Store
from .duplication import DuplicationVerdict, check_duplicate
from .grid import (
    TimesheetGrid,
    entry_totals,
    grid_total_hours,
    new_grid,
    reconstruct_grid,
    serialize_grid,
)
from .models import AbsenceType, Timesheet, public_holidays
from .rules import STATUS_UNSET, AbsenceTypeInfo
from .validation import GridValidation, validate_grid

logger = logging.getLogger("pontaj.timesheets")


class DuplicateTimesheetError(ValidationError):
    """Save refused because the store already has a timesheet for the period."""

    def __init__(self, verdict: DuplicationVerdict):
        self.verdict = verdict
        super().__init__(verdict.message, code=verdict.conflict_type)


@dataclass(frozen=True)
class SaveResult:
    timesheet: Timesheet
    created: bool
    validation: GridValidation
    duplicate: Optional[DuplicationVerdict] = None


@dataclass
class GridSummary:
    total_hours: float
    employee_count: int
    working_days: int
    per_employee: dict[str, float] = field(default_factory=dict)
    per_status: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "totalHours": self.total_hours,
            "employeeCount": self.employee_count,
            "workingDays": self.working_days,
            "perEmployee": self.per_employee,
            "perStatus": self.per_status,
        }


def absence_catalog() -> list[AbsenceTypeInfo]:
    """Active absence types as an immutable snapshot, by sort order."""
    return [t.as_info() for t in AbsenceType.objects.active()]


def load_grid(timesheet: Timesheet, absence_types: Optional[Sequence[AbsenceTypeInfo]] = None) -> TimesheetGrid:
    if absence_types is None:
        absence_types = absence_catalog()
    return reconstruct_grid(
        timesheet.daily_entries,
        timesheet.period_start,
        timesheet.period_end,
        absence_types,
        id=timesheet.pk,
        store_id=timesheet.store_id,
        zone_id=timesheet.zone_id,
        created_at=timesheet.created_at,
        updated_at=timesheet.updated_at,
    )


def new_grid_for_store(store: Store, start, end, employees: Optional[Iterable[Employee]] = None) -> TimesheetGrid:
    """Blank grid for a store; defaults to its active employees."""
    if employees is None:
        employees = store.employees.filter(is_active=True).order_by("full_name")
    return new_grid(
        start,
        end,
        [(e.pk, e.full_name, e.position) for e in employees],
        store_id=store.pk,
        zone_id=store.zone_id,
    )


def grid_summary(grid: TimesheetGrid, absence_types: Sequence[AbsenceTypeInfo] = ()) -> GridSummary:
    statuses: Counter = Counter()
    for entry in grid.entries:
        for day in entry.days.values():
            if day.status != STATUS_UNSET:
                statuses[day.status] += 1
    return GridSummary(
        total_hours=grid_total_hours(grid, absence_types),
        employee_count=len(grid.entries),
        working_days=weekdays_between(grid.start_date, grid.end_date, inclusive=True) or 0,
        per_employee=entry_totals(grid, absence_types),
        per_status=dict(statuses),
    )


def _employees_for(grid: TimesheetGrid) -> dict[str, Employee]:
    ids = [e.employee_id for e in grid.entries if str(e.employee_id).isdigit()]
    return {str(e.pk): e for e in Employee.objects.filter(pk__in=ids)}


def save_grid(
    grid: TimesheetGrid,
    *,
    user=None,
    force: bool = False,
    version: Optional[int] = None,
    absence_types: Optional[Sequence[AbsenceTypeInfo]] = None,
) -> SaveResult:
    """
    Validate and persist a grid.

    - blocking cell or setup errors raise ValidationError
    - the store is resolved delegation-aware when the grid has none
    - the store row is locked for the duplicate check and the write
    - with a `user`, store scope is enforced (PermissionDenied), also on
      the stored store of an existing timesheet, which cannot change store
    - a conflicting timesheet raises DuplicateTimesheetError unless `force`
    - `version` (from the client) makes a stale edit raise RecordModifiedError
    """
    if absence_types is None:
        absence_types = absence_catalog()

    employees = _employees_for(grid)
    delegations = delegations_for(employees.keys(), grid.start_date, grid.end_date)
    store_id = resolve_grid_store(grid, employees, delegations)
    if not store_id:
        raise ValidationError({"store": _("No store could be determined for this timesheet.")})
    grid.store_id = str(store_id)
    if not grid.store_id.isdigit() or (grid.id and not str(grid.id).isdigit()):
        raise ValidationError(_("Invalid store or timesheet id."))

    foreign = {
        emp_id: sid for emp_id, sid in resolve_entry_stores(grid, employees, delegations).items()
        if str(sid) != grid.store_id
    }
    if foreign:
        logger.info(f"Grid for store {grid.store_id} includes employees attributed elsewhere: {foreign}")

    holidays = public_holidays(grid.start_date, grid.end_date)
    result = validate_grid(grid, absence_types, holidays)
    if not result.can_save:
        messages = [s.message for s in result.setup_errors] + [
            f"{e.employee_name} {e.date}: {e.message}" for e in result.errors
        ]
        raise ValidationError(messages)

    with transaction.atomic():
        store = Store.objects.select_for_update().filter(pk=grid.store_id).first()
        if store is None:
            raise ValidationError({"store": _("Store %(id)s does not exist.") % {"id": grid.store_id}})
        if user is not None:
            require_store_access(user, store)

        if grid.id:
            ts = Timesheet.objects.select_for_update().select_related("store").filter(pk=grid.id).first()
            if ts is None:
                raise ValidationError({"id": _("Timesheet %(id)s does not exist.") % {"id": grid.id}})
            if user is not None:
                require_store_access(user, ts.store)
            # a timesheet never changes store
            if str(ts.store_id) != grid.store_id:
                logger.warning(
                    f"Refused save of timesheet {ts.pk} (store {ts.store_id}) under store {grid.store_id}"
                )
                raise ValidationError({"store": _("A timesheet cannot be moved to another store.")})
            if version is not None:
                ts.version = version
            created = False
        else:
            ts = Timesheet(created_by=user if getattr(user, "is_authenticated", False) else None)
            created = True

        verdict = check_duplicate(store.pk, grid.start_date, grid.end_date, exclude_id=grid.id or None)
        if verdict.has_duplicate and not force:
            logger.warning(
                f"Refused save for store {store.pk} {grid.start_date}..{grid.end_date}: "
                f"{verdict.conflict_type} with timesheet {verdict.existing.pk}"
            )
            raise DuplicateTimesheetError(verdict)

        ts.store = store
        ts.period_start = grid.start_date
        ts.period_end = grid.end_date
        ts.daily_entries = serialize_grid(grid, updated_at=timezone.now())
        ts.total_hours = Decimal(str(grid_total_hours(grid, absence_types)))
        ts.employee_count = len(grid.entries)
        if not ts.grid_title:
            ts.grid_title = f"{store.name} {grid.start_date:%Y-%m}"
        if getattr(user, "is_authenticated", False):
            ts._history_user = user
        ts.save()

    grid.id = str(ts.pk)
    grid.zone_id = str(ts.zone_id)
    grid.created_at, grid.updated_at = ts.created_at, ts.updated_at
    who = getattr(user, "username", None) or "system"
    logger.info(
        f"User '{who}' {'created' if created else 'updated'} timesheet {ts.pk} "
        f"(store {store.pk}, {grid.start_date}..{grid.end_date}, {ts.total_hours}h)"
        + (f" despite {verdict.conflict_type}" if verdict.has_duplicate else "")
    )
    return SaveResult(ts, created, result, verdict if verdict.has_duplicate else None)

