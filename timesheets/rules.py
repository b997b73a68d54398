"""
Absence hours rules.

Full-day absences (vacation, medical leave, ...) always count as a fixed
working day, whatever hours were stored. Partial absences and plain work days
count their explicit hours.
"""
# File: timesheets/rules.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from .grid import DayCell

# Sentinel status: nothing selected yet ("alege" = "choose")
STATUS_UNSET = "alege"

# Hours credited for a full-day absence
FULL_DAY_HOURS = 8

SOURCE_EXPLICIT = "explicit"
SOURCE_ABSENCE_DEFAULT = "absence_default"

DEFAULT_COLOR_CLASS = "bg-gray-100 text-gray-700 border-gray-300"
UNSET_COLOR_CLASS = "bg-white text-blue-700 border-blue-300 border-dashed"


@dataclass(frozen=True)
class AbsenceTypeInfo:
    """Read-only snapshot of an AbsenceType row."""
    code: str
    name: str = ""
    requires_hours: bool = False
    color_class: str = ""
    sort_order: int = 0
    is_active: bool = True
    description: str = ""


@dataclass(frozen=True)
class EffectiveHours:
    hours: float
    source: str
    is_full_day_absence: bool


def round_hours(value) -> float:
    """Half-up rounding to 2 decimals (avoids float drift in sums)."""
    return float(Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def active_types(absence_types: Iterable) -> list:
    return [t for t in (absence_types or ()) if getattr(t, "is_active", True)]


def find_absence_type(status: Optional[str], absence_types: Iterable):
    """Active type whose code matches `status`, else None (sentinel included)."""
    if not status or status == STATUS_UNSET:
        return None
    for t in active_types(absence_types):
        if t.code == status:
            return t
    return None


def is_full_day_absence(status: Optional[str], absence_types: Iterable) -> bool:
    t = find_absence_type(status, absence_types)
    return bool(t) and not t.requires_hours


def is_partial_hours_absence(status: Optional[str], absence_types: Iterable) -> bool:
    t = find_absence_type(status, absence_types)
    return bool(t) and bool(t.requires_hours)


def effective_hours(day: Optional["DayCell"], absence_types: Sequence = ()) -> EffectiveHours:
    """Hours a single day contributes to totals."""
    if day is None:
        return EffectiveHours(0, SOURCE_EXPLICIT, False)

    if is_full_day_absence(day.status, absence_types):
        return EffectiveHours(FULL_DAY_HOURS, SOURCE_ABSENCE_DEFAULT, True)

    return EffectiveHours(day.hours or 0, SOURCE_EXPLICIT, False)


def total_effective_hours(days: Optional[Mapping[str, "DayCell"]], absence_types: Sequence = ()) -> float:
    if not days:
        return 0.0
    total = sum(effective_hours(d, absence_types).hours for d in days.values())
    return round_hours(total)


def full_day_absence_cell(status: str, notes: str = "") -> "DayCell":
    """Cell for a full-day absence: time fields cleared, hours come from the rule."""
    from .grid import DayCell
    return DayCell(time_interval="", hours=0, status=status, notes=notes)


def display_name(status: Optional[str], absence_types: Iterable) -> str:
    if not status or status == STATUS_UNSET:
        return "Alege"
    t = find_absence_type(status, absence_types)
    return t.name if t else status


def color_class(status: Optional[str], absence_types: Iterable) -> str:
    if not status or status == STATUS_UNSET:
        return UNSET_COLOR_CLASS
    t = find_absence_type(status, absence_types)
    return (t.color_class if t else "") or DEFAULT_COLOR_CLASS
