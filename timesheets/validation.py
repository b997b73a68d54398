"""
Cell, period and grid validation for timesheet grids.

Cell rules run in a fixed order and the first failing rule wins:

  0. delegation lock (only when the caller marks the cell restricted)
  1. interval format (malformed, out of range, too long, too short)
  2. full-day absence vs. worked time (error);
     partial-hours absence without any time (warning)
  3. partial-hours absence above a normal working day (warning)
  4. unknown status code (error; info while no catalog is loaded)
  5. weekend / public-holiday work (valid, info)

The "alege" placeholder never trips a status rule.
"""
# File: timesheets/validation.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Collection, Iterator, Optional, Sequence

from django.utils.translation import gettext as _
from django.utils.translation import gettext_lazy

from core.utils.periods import as_date, days_inclusive, is_weekend
from .intervals import (
    ERR_TOO_LONG,
    MIN_SHIFT_HOURS,
    interval_error,
    parse_interval,
)
from .rules import FULL_DAY_HOURS, STATUS_UNSET, active_types, find_absence_type

if TYPE_CHECKING:
    from .grid import DayCell, TimesheetGrid

MAX_PERIOD_DAYS = 31
MAX_PARTIAL_ABSENCE_HOURS = FULL_DAY_HOURS

ERROR = "error"
WARNING = "warning"
INFO = "info"


@dataclass(frozen=True)
class CellContext:
    time_interval: str = ""
    status: str = STATUS_UNSET
    hours: float = 0
    notes: str = ""
    is_weekend: bool = False
    is_holiday: bool = False
    absence_types: Sequence = ()
    is_delegation_restricted: bool = False

    @property
    def interval(self) -> str:
        return (self.time_interval or "").strip()

    @property
    def worked_hours(self) -> float:
        """Explicit hours, else hours derived from the interval."""
        if self.hours and self.hours > 0:
            return float(self.hours)
        parsed = parse_interval(self.interval)
        return parsed.hours if parsed else 0.0

    @property
    def has_working_hours(self) -> bool:
        return bool(self.interval) or (self.hours or 0) > 0


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    type: Optional[str] = None
    message: Optional[str] = None
    code: Optional[str] = None

    def as_dict(self) -> dict:
        return {"isValid": self.is_valid, "type": self.type, "message": self.message, "code": self.code}


VALID = ValidationResult(True)


@dataclass(frozen=True)
class CellIssue:
    employee_id: str
    employee_name: str
    date: str
    message: str
    code: str


@dataclass(frozen=True)
class SetupError:
    field: str
    message: str


@dataclass
class GridValidation:
    errors: list[CellIssue] = field(default_factory=list)
    warnings: list[CellIssue] = field(default_factory=list)
    setup_errors: list[SetupError] = field(default_factory=list)

    @property
    def can_save(self) -> bool:
        return not self.errors and not self.setup_errors

    def as_dict(self) -> dict:
        return {
            "canSave": self.can_save,
            "errors": [vars(e) for e in self.errors],
            "warnings": [vars(w) for w in self.warnings],
            "setupErrors": [vars(s) for s in self.setup_errors],
        }


@dataclass(frozen=True)
class SuggestedFix:
    action: str
    description: str


# ------------------------------
# cell rules
# ------------------------------

def _check_delegation(ctx: CellContext) -> ValidationResult:
    if ctx.is_delegation_restricted and ctx.has_working_hours:
        return ValidationResult(
            False, ERROR,
            _("Cannot add working hours after the employee was delegated to another store."),
            "delegation_restricted",
        )
    return VALID


def _check_interval(ctx: CellContext) -> ValidationResult:
    if not ctx.interval:
        return VALID
    err = interval_error(ctx.interval)
    if err == ERR_TOO_LONG:
        return ValidationResult(False, ERROR, _("A shift cannot exceed 16 hours."), "shift_too_long")
    if err:
        return ValidationResult(
            False, ERROR, _('Invalid time format. Use "10-18" or "9:30-17:30".'), "invalid_format"
        )
    parsed = parse_interval(ctx.interval)
    if parsed and parsed.hours < MIN_SHIFT_HOURS:
        return ValidationResult(False, ERROR, _("A shift must be at least 30 minutes."), "shift_too_short")
    return VALID


def _check_absence_conflict(ctx: CellContext) -> ValidationResult:
    t = find_absence_type(ctx.status, ctx.absence_types)
    if t is None:
        return VALID
    if not t.requires_hours and ctx.has_working_hours:
        return ValidationResult(
            False, ERROR,
            _("Cannot have working hours with %(name)s.") % {"name": t.name or t.code},
            "absence_conflict",
        )
    if t.requires_hours and not ctx.has_working_hours:
        return ValidationResult(
            False, WARNING,
            _("%(name)s requires working hours to be specified.") % {"name": t.name or t.code},
            "hours_required",
        )
    return VALID


def _check_partial_hours(ctx: CellContext) -> ValidationResult:
    t = find_absence_type(ctx.status, ctx.absence_types)
    if t is None or not t.requires_hours:
        return VALID
    if ctx.worked_hours > MAX_PARTIAL_ABSENCE_HOURS:
        return ValidationResult(
            False, WARNING,
            _("%(name)s cannot exceed %(max)s hours.") % {"name": t.name or t.code, "max": MAX_PARTIAL_ABSENCE_HOURS},
            "partial_hours_exceeded",
        )
    return VALID


def _check_status(ctx: CellContext) -> ValidationResult:
    if not ctx.status or ctx.status == STATUS_UNSET:
        return VALID
    catalog = active_types(ctx.absence_types)
    if not catalog:
        return ValidationResult(True, INFO, _("Absence types are not loaded yet."), "catalog_not_loaded")
    if find_absence_type(ctx.status, catalog) is None:
        return ValidationResult(
            False, ERROR,
            _("Unknown status %(code)s. Available: %(codes)s") % {
                "code": ctx.status,
                "codes": ", ".join(t.code for t in catalog),
            },
            "unknown_status",
        )
    return VALID


def _check_off_day_work(ctx: CellContext) -> ValidationResult:
    if ctx.worked_hours <= 0:
        return VALID
    if ctx.is_holiday:
        return ValidationResult(True, INFO, _("Work on a public holiday."), "holiday_work")
    if ctx.is_weekend:
        return ValidationResult(True, INFO, _("Weekend work."), "weekend_work")
    return VALID


CELL_RULES = (
    _check_delegation,
    _check_interval,
    _check_absence_conflict,
    _check_partial_hours,
    _check_status,
    _check_off_day_work,
)


def validate_cell(ctx: CellContext) -> ValidationResult:
    """First failing rule wins; otherwise the first informational note, if any."""
    note = None
    for rule in CELL_RULES:
        result = rule(ctx)
        if not result.is_valid:
            return result
        if note is None and result.message:
            note = result
    return note or VALID


def valid_options_for(ctx: CellContext) -> Iterator[str]:
    """
    Selectable status codes for a cell, "alege" first, then by sort order.

    Once the cell carries worked time only partial-hours absences can be
    picked. Recomputed on every call.
    """
    yield STATUS_UNSET
    working = ctx.has_working_hours
    for t in sorted(active_types(ctx.absence_types), key=lambda t: (t.sort_order, t.code)):
        if working and not t.requires_hours:
            continue
        yield t.code


def context_for(
    day: "DayCell",
    on: date,
    absence_types: Sequence = (),
    holidays: Collection[date] = (),
    **extra,
) -> CellContext:
    return CellContext(
        time_interval=day.time_interval,
        status=day.status,
        hours=day.hours,
        notes=day.notes,
        is_weekend=is_weekend(on),
        is_holiday=on in holidays,
        absence_types=absence_types,
        **extra,
    )


# ------------------------------
# period & grid
# ------------------------------

def validate_period(start, end) -> ValidationResult:
    try:
        s, e = as_date(start), as_date(end)
    except (TypeError, ValueError):
        return ValidationResult(False, ERROR, _("Invalid date format."), "invalid_period")
    if s > e:
        return ValidationResult(False, ERROR, _("End date must not be before start date."), "period_reversed")
    if days_inclusive(s, e) > MAX_PERIOD_DAYS:
        return ValidationResult(
            False, ERROR,
            _("A timesheet period cannot exceed %(days)s days.") % {"days": MAX_PERIOD_DAYS},
            "period_too_long",
        )
    return VALID


def validate_grid(
    grid: "TimesheetGrid",
    absence_types: Sequence = (),
    holidays: Collection[date] = (),
) -> GridValidation:
    """Setup checks first; cells are only checked when the setup is sound."""
    out = GridValidation()

    if not str(grid.store_id or "").strip():
        out.setup_errors.append(SetupError("store", _("A store must be selected before creating the timesheet.")))
    if not grid.entries:
        out.setup_errors.append(SetupError("employees", _("At least one employee must be selected.")))
    period = validate_period(grid.start_date, grid.end_date)
    if not period.is_valid:
        out.setup_errors.append(SetupError("period", period.message))
    if out.setup_errors:
        return out

    for entry in grid.entries:
        for key, day in entry.days.items():
            result = validate_cell(context_for(day, as_date(key), absence_types, holidays))
            if result.is_valid or not result.message:
                continue
            issue = CellIssue(entry.employee_id, entry.employee_name, key, result.message, result.code)
            if result.type == ERROR:
                out.errors.append(issue)
            elif result.type == WARNING:
                out.warnings.append(issue)
    return out


_FIXES = {
    "absence_conflict": ("clear_hours", gettext_lazy("Clear the working hours to keep the absence status.")),
    "hours_required": ("add_hours", gettext_lazy("Add working hours or switch to a full-day absence.")),
    "partial_hours_exceeded": ("reduce_hours", gettext_lazy("Reduce the hours or switch to a full-day absence.")),
    "invalid_format": ("fix_format", gettext_lazy('Use a format like "10-18" or "9:30-17:30".')),
    "shift_too_long": ("shorten_shift", gettext_lazy("Split the shift or shorten it to 16 hours or less.")),
    "shift_too_short": ("extend_shift", gettext_lazy("Enter a shift of at least 30 minutes.")),
    "unknown_status": ("reset_status", gettext_lazy("Pick a status from the list.")),
    "delegation_restricted": ("contact_admin", gettext_lazy("Ask an administrator to edit the timesheet after the delegation.")),
}


def suggested_fix(result: ValidationResult) -> Optional[SuggestedFix]:
    fix = _FIXES.get(result.code or "")
    if fix is None:
        return None
    action, description = fix
    return SuggestedFix(action, str(description))
