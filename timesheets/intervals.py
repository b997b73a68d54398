# File: timesheets/intervals.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

# "10-18", "9:30-17:30", "22-06" (overnight)
INTERVAL_RE = re.compile(r"^(\d{1,2}(?::\d{2})?)-(\d{1,2}(?::\d{2})?)$")

MAX_SHIFT_HOURS = 16
MIN_SHIFT_HOURS = 0.5
MINUTES_PER_DAY = 24 * 60

ERR_FORMAT = "format"
ERR_RANGE = "range"
ERR_TOO_LONG = "too_long"


@dataclass(frozen=True)
class ParsedInterval:
    start_time: str
    end_time: str
    hours: float


def _normalize(part: str) -> str:
    return part if ":" in part else f"{part}:00"


def _to_minutes(hhmm: str) -> Optional[int]:
    """Minutes since midnight, or None for an out-of-range hour/minute."""
    h, m = (int(x) for x in hhmm.split(":"))
    if not (0 <= h <= 23 and 0 <= m <= 59):
        return None
    return h * 60 + m


def _span_minutes(raw) -> tuple[Optional[tuple[str, str, int]], Optional[str]]:
    if not isinstance(raw, str) or not raw.strip():
        return None, None
    match = INTERVAL_RE.match(raw.strip())
    if not match:
        return None, ERR_FORMAT

    start, end = (_normalize(p) for p in match.groups())
    start_min, end_min = _to_minutes(start), _to_minutes(end)
    if start_min is None or end_min is None:
        return None, ERR_RANGE

    diff = end_min - start_min
    if diff <= 0:
        diff += MINUTES_PER_DAY
    if diff > MAX_SHIFT_HOURS * 60:
        return None, ERR_TOO_LONG
    return (start, end, diff), None


def parse_interval(raw) -> Optional[ParsedInterval]:
    """
    Parse a shift string into start/end and duration in hours.

    Returns None for empty input, a malformed string, an invalid hour/minute,
    or a shift longer than 16 hours. An end at or before the start is an
    overnight shift ("22-06" is 8 hours).
    """
    span, _ = _span_minutes(raw)
    if span is None:
        return None
    start, end, minutes = span
    hours = (Decimal(minutes) / Decimal(60)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return ParsedInterval(start_time=start, end_time=end, hours=float(hours))


def interval_error(raw) -> Optional[str]:
    """Why a non-empty string does not parse; None when it parses or is blank."""
    _, err = _span_minutes(raw)
    return err


def hours_to_hhmm(hours) -> str:
    """8.5 -> '8:30'."""
    total = int((Decimal(str(hours or 0)) * 60).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    sign = "-" if total < 0 else ""
    h, m = divmod(abs(total), 60)
    return f"{sign}{h}:{m:02d}"
