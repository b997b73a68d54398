"""
Canonical timesheet grid and its storage adapters.

`Timesheet.daily_entries` has been written in three shapes over time:

  legacy      {"_employees": {id: {name, position}}, "YYYY-MM-DD": {id: day}}
  employees   {id: {"name", "position", "days": {"YYYY-MM-DD": day}}}
  single      {"_metadata": {employeeId, employeeName, position}, "YYYY-MM-DD": day}

`reconstruct_grid` reads any of them into one `TimesheetGrid` with exactly one
cell per employee and calendar day. `serialize_grid` always writes the
"employees" shape.
"""
# File: timesheets/grid.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from numbers import Number
from typing import Any, Mapping, Optional, Sequence

from core.utils.periods import DateLike, as_date, iter_dates
from .intervals import parse_interval
from .rules import (
    STATUS_UNSET,
    find_absence_type,
    full_day_absence_cell,
    is_full_day_absence,
    round_hours,
    total_effective_hours,
)

logger = logging.getLogger("pontaj.timesheets")

DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DEFAULT_POSITION = "Staff"
UNKNOWN_EMPLOYEE = "Unknown Employee"

SHAPE_EMPTY = "empty"
SHAPE_LEGACY = "legacy"
SHAPE_EMPLOYEES = "employees"
SHAPE_SINGLE = "single"

LEGACY_KEY = "_employees"
SINGLE_KEY = "_metadata"
GRID_METADATA_KEY = "_grid_metadata"
STORAGE_VERSION = "2.0"


# ------------------------------
# types
# ------------------------------

@dataclass
class DayCell:
    time_interval: str = ""
    hours: float = 0
    status: str = STATUS_UNSET
    notes: str = ""

    @property
    def is_placeholder(self) -> bool:
        return (
            not (self.hours or 0) > 0
            and not (self.time_interval or "").strip()
            and (self.status or STATUS_UNSET) == STATUS_UNSET
            and not (self.notes or "").strip()
        )

    def to_dict(self) -> dict:
        return {
            "timeInterval": self.time_interval,
            "hours": self.hours,
            "status": self.status,
            "notes": self.notes,
        }

    @classmethod
    def from_stored(cls, payload: Any) -> "DayCell":
        """Day payload as found in storage; hours reconciled from any known encoding."""
        if not isinstance(payload, Mapping):
            return cls()
        raw_interval = payload.get("timeInterval") or ""
        raw_hours = payload.get("hours")
        if not raw_interval and isinstance(raw_hours, str):
            raw_interval = raw_hours
        return cls(
            time_interval=str(raw_interval).strip(),
            hours=stored_hours(payload),
            status=str(payload.get("status") or STATUS_UNSET),
            notes=str(payload.get("notes") or ""),
        )


@dataclass
class GridEntry:
    employee_id: str
    employee_name: str
    position: str = DEFAULT_POSITION
    days: dict[str, DayCell] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "position": self.position,
            "days": {k: d.to_dict() for k, d in self.days.items()},
        }


@dataclass
class TimesheetGrid:
    start_date: date
    end_date: date
    id: str = ""
    store_id: str = ""
    zone_id: str = ""
    entries: list[GridEntry] = field(default_factory=list)
    created_at: Optional[Any] = None
    updated_at: Optional[Any] = None

    @property
    def is_persisted(self) -> bool:
        return bool(self.id)

    def entry(self, employee_id: str) -> Optional[GridEntry]:
        return next((e for e in self.entries if e.employee_id == str(employee_id)), None)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "zoneId": self.zone_id,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "entries": [e.as_dict() for e in self.entries],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


# ------------------------------
# helpers
# ------------------------------

def date_keys(start: DateLike, end: DateLike) -> list[str]:
    return [d.isoformat() for d in iter_dates(start, end)]


def stored_hours(payload: Mapping) -> float:
    """
    Hours from a stored day payload, in order of preference:
    numeric `hours`, an "H-H" string in `hours`, `timeInterval`, else 0.
    """
    hours = payload.get("hours")
    if isinstance(hours, Number) and not isinstance(hours, bool):
        return float(hours)
    if isinstance(hours, str) and "-" in hours:
        parsed = parse_interval(hours)
        if parsed:
            return parsed.hours
    interval = payload.get("timeInterval")
    if isinstance(interval, str):
        parsed = parse_interval(interval)
        if parsed:
            return parsed.hours
    return 0.0


def _employee_name(meta: Mapping) -> str:
    return meta.get("name") or meta.get("full_name") or meta.get("employeeName") or UNKNOWN_EMPLOYEE


def detect_shape(raw: Any) -> str:
    if not isinstance(raw, Mapping) or not raw:
        return SHAPE_EMPTY
    if LEGACY_KEY in raw:
        return SHAPE_LEGACY
    if SINGLE_KEY in raw:
        return SHAPE_SINGLE
    return SHAPE_EMPLOYEES


# Each reader returns ([(id, name, position)], {id: {date_key: payload}})

def _read_legacy(raw: Mapping):
    people = raw.get(LEGACY_KEY)
    if not isinstance(people, Mapping):
        people = {}
    employees = []
    for emp_id, meta in people.items():
        meta = meta if isinstance(meta, Mapping) else {}
        employees.append((str(emp_id), _employee_name(meta), meta.get("position") or DEFAULT_POSITION))

    days: dict[str, dict[str, Any]] = {}
    for key, per_employee in raw.items():
        if key.startswith("_") or not DATE_KEY_RE.match(key) or not isinstance(per_employee, Mapping):
            continue
        for emp_id, payload in per_employee.items():
            days.setdefault(str(emp_id), {})[key] = payload
    return employees, days


def _read_employees(raw: Mapping):
    employees, days = [], {}
    for emp_id, data in raw.items():
        if str(emp_id).startswith("_") or not isinstance(data, Mapping):
            continue
        if "days" not in data and "name" not in data:
            continue
        emp_id = str(emp_id)
        employees.append((emp_id, _employee_name(data), data.get("position") or DEFAULT_POSITION))
        stored = data.get("days")
        days[emp_id] = dict(stored) if isinstance(stored, Mapping) else {}
    return employees, days


def _read_single(raw: Mapping):
    meta = raw.get(SINGLE_KEY)
    if not isinstance(meta, Mapping) or not meta.get("employeeId"):
        return [], {}
    emp_id = str(meta["employeeId"])
    stored = {k: v for k, v in raw.items() if DATE_KEY_RE.match(k)}
    return [(emp_id, _employee_name(meta), meta.get("position") or DEFAULT_POSITION)], {emp_id: stored}


_READERS = {
    SHAPE_LEGACY: _read_legacy,
    SHAPE_EMPLOYEES: _read_employees,
    SHAPE_SINGLE: _read_single,
}


def _normalize_cell(cell: DayCell, absence_types: Sequence, employee_id: str, key: str) -> DayCell:
    if cell.status == STATUS_UNSET or not absence_types:
        return cell
    if find_absence_type(cell.status, absence_types) is None:
        logger.warning(f"Unknown absence code '{cell.status}' for employee {employee_id} on {key}; reset to '{STATUS_UNSET}'")
        cell.status = STATUS_UNSET
        return cell
    if is_full_day_absence(cell.status, absence_types):
        return full_day_absence_cell(cell.status, cell.notes)
    return cell


# ------------------------------
# API
# ------------------------------

def reconstruct_grid(
    raw: Any,
    start: DateLike,
    end: DateLike,
    absence_types: Sequence = (),
    **record_fields,
) -> TimesheetGrid:
    """
    Canonical grid for [start, end] from any stored shape.

    Every employee found gets exactly one cell per date; missing days become
    "alege" placeholders. An empty or unreadable payload yields a grid with no
    entries. `record_fields` (id, store_id, zone_id, created_at, updated_at) are
    copied onto the grid.
    """
    start, end = as_date(start), as_date(end)
    if start > end:
        raise ValueError(f"Period start {start} is after end {end}")

    grid = TimesheetGrid(start_date=start, end_date=end, **record_fields)
    grid.id = str(grid.id or "")
    grid.store_id = str(grid.store_id or "")
    grid.zone_id = str(grid.zone_id or "")

    shape = detect_shape(raw)
    if shape == SHAPE_EMPTY:
        if raw not in (None, {}, ""):
            logger.warning(f"Unreadable daily_entries payload ({type(raw).__name__}) for timesheet '{grid.id}'")
        return grid

    employees, stored_days = _READERS[shape](raw)
    keys = date_keys(start, end)
    for emp_id, name, position in employees:
        stored = stored_days.get(emp_id, {})
        days = {}
        for key in keys:
            cell = DayCell.from_stored(stored.get(key)) if key in stored else DayCell()
            days[key] = _normalize_cell(cell, absence_types, emp_id, key)
        grid.entries.append(GridEntry(emp_id, name, position, days))
    return grid


def grid_from_payload(data: Mapping) -> TimesheetGrid:
    """
    Grid from a client payload in the `TimesheetGrid.as_dict()` layout.
    Cells are taken as sent (no catalog normalisation) so validation sees them.
    Raises ValueError for a missing or invalid period.
    """
    if not isinstance(data, Mapping):
        raise ValueError("Grid payload must be an object")
    try:
        start, end = as_date(data["startDate"]), as_date(data["endDate"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Missing or invalid period: {e}") from e

    raw = {}
    for item in data.get("entries") or ():
        if not isinstance(item, Mapping) or not item.get("employeeId"):
            continue
        raw[str(item["employeeId"])] = {
            "name": item.get("employeeName"),
            "position": item.get("position"),
            "days": item.get("days") if isinstance(item.get("days"), Mapping) else {},
        }
    return reconstruct_grid(
        raw, start, end,
        id=data.get("id") or "",
        store_id=data.get("storeId") or "",
        zone_id=data.get("zoneId") or "",
    )


def new_grid(
    start: DateLike,
    end: DateLike,
    employees: Sequence[tuple[str, str, str]] = (),
    **record_fields,
) -> TimesheetGrid:
    """Blank grid; `employees` are (id, name, position) triples."""
    grid = reconstruct_grid(None, start, end, **record_fields)
    keys = date_keys(grid.start_date, grid.end_date)
    for emp_id, name, position in employees:
        grid.entries.append(
            GridEntry(str(emp_id), name or UNKNOWN_EMPLOYEE, position or DEFAULT_POSITION, {k: DayCell() for k in keys})
        )
    return grid


def serialize_grid(grid: TimesheetGrid, updated_at: Optional[datetime] = None) -> dict:
    """Grid -> "employees" storage shape. Placeholder cells are not written."""
    out: dict[str, Any] = {
        GRID_METADATA_KEY: {
            "version": STORAGE_VERSION,
            "storeId": grid.store_id,
            "zoneId": grid.zone_id,
            "employeeCount": len(grid.entries),
            "updatedAt": updated_at.isoformat() if updated_at else None,
        }
    }
    for entry in grid.entries:
        out[entry.employee_id] = {
            "name": entry.employee_name,
            "position": entry.position,
            "days": {k: d.to_dict() for k, d in sorted(entry.days.items()) if not d.is_placeholder},
        }
    return out


def entry_totals(grid: TimesheetGrid, absence_types: Sequence = ()) -> dict[str, float]:
    return {e.employee_id: total_effective_hours(e.days, absence_types) for e in grid.entries}


def grid_total_hours(grid: TimesheetGrid, absence_types: Sequence = ()) -> float:
    return round_hours(sum(entry_totals(grid, absence_types).values()))
