"""
Which store an employee's hours belong to for a period.

An active delegation whose window overlaps the period moves the employee to the
delegation's target store; otherwise the home store applies. When several
delegations qualify the one starting last wins.
"""
# File: stores/delegation.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from django.db import transaction
from django.utils import timezone

from core.utils.periods import DateLike, as_date
from .models import Delegation, Employee

if TYPE_CHECKING:
    from timesheets.grid import TimesheetGrid

logger = logging.getLogger("pontaj.stores")


def active_delegation(
    delegations: Iterable[Delegation],
    employee_id,
    start: DateLike,
    end: DateLike,
) -> Optional[Delegation]:
    s, e = as_date(start), as_date(end)
    hits = [
        d for d in delegations
        if str(d.employee_id) == str(employee_id)
        and d.status == Delegation.Status.ACTIVE
        and d.covers(s, e)
    ]
    if not hits:
        return None
    return max(hits, key=lambda d: (d.valid_from, d.pk or 0))


def effective_store_id(employee: Employee, start: DateLike, end: DateLike, delegations: Iterable[Delegation] = ()):
    d = active_delegation(delegations, employee.pk, start, end)
    return d.to_store_id if d else employee.store_id


def delegations_for(employee_ids: Iterable, start: DateLike, end: DateLike):
    """Active delegations overlapping [start, end] for the given employees."""
    return list(
        Delegation.objects.filter(
            employee_id__in=list(employee_ids),
            status=Delegation.Status.ACTIVE,
            valid_from__lte=as_date(end),
            valid_until__gte=as_date(start),
        )
    )


def resolve_entry_stores(
    grid: "TimesheetGrid",
    employees: Mapping[str, Employee],
    delegations: Iterable[Delegation] = (),
) -> dict[str, object]:
    """Employee id -> authoritative store id, for every grid entry with a known employee."""
    delegations = list(delegations)
    out = {}
    for entry in grid.entries:
        emp = employees.get(entry.employee_id)
        if emp is None:
            continue
        out[entry.employee_id] = effective_store_id(emp, grid.start_date, grid.end_date, delegations)
    return out


def resolve_grid_store(
    grid: "TimesheetGrid",
    employees: Mapping[str, Employee],
    delegations: Iterable[Delegation] = (),
):
    """The grid's own store if set, else the effective store of its first known employee."""
    if grid.store_id:
        return grid.store_id
    stores = resolve_entry_stores(grid, employees, delegations)
    for entry in grid.entries:
        if entry.employee_id in stores:
            return stores[entry.employee_id]
    return None


def expire_delegations(today: date | None = None, dry_run: bool = False) -> int:
    """Mark active auto-return delegations past their end date as expired."""
    today = today or timezone.localdate()
    qs = Delegation.objects.filter(
        status=Delegation.Status.ACTIVE, auto_return=True, valid_until__lt=today
    )
    if dry_run:
        return qs.count()

    count = 0
    with transaction.atomic():
        for d in qs.select_for_update():
            d.status = Delegation.Status.EXPIRED
            # save() so the change lands in history
            d.save(update_fields=["status", "updated_at"])
            count += 1
            logger.info(f"Delegation {d.pk} ({d.employee}) expired on {d.valid_until}")
    return count
