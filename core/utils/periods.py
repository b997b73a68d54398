# File: core/utils/periods.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional, Set, Union

# Default: Monday(0) .. Friday(4)
WEEKDAYS_MON_FRI: Set[int] = {0, 1, 2, 3, 4}

DateLike = Union[date, datetime, str]


def as_date(value: DateLike) -> date:
    """
    Coerce a date, datetime or ISO string ('2024-03-01' or '2024-03-01T00:00:00Z')
    to a plain date. Raises ValueError for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Not a date: {value!r}")


def iter_dates(start: DateLike, end: DateLike) -> Iterator[date]:
    """Every calendar day in [start, end]. Empty if start > end."""
    cur, last = as_date(start), as_date(end)
    while cur <= last:
        yield cur
        cur += timedelta(days=1)


def days_inclusive(start: DateLike, end: DateLike) -> int:
    return (as_date(end) - as_date(start)).days + 1


def is_weekend(d: DateLike) -> bool:
    return as_date(d).weekday() >= 5


def same_month(a: DateLike, b: DateLike) -> bool:
    a, b = as_date(a), as_date(b)
    return (a.year, a.month) == (b.year, b.month)


def month_bounds(d: DateLike) -> tuple[date, date]:
    """First and last day of d's calendar month."""
    d = as_date(d)
    first = d.replace(day=1)
    nxt = (first + timedelta(days=32)).replace(day=1)
    return first, nxt - timedelta(days=1)


def periods_overlap(start1: DateLike, end1: DateLike, start2: DateLike, end2: DateLike) -> bool:
    """Inclusive bounds on both sides."""
    return as_date(start1) <= as_date(end2) and as_date(start2) <= as_date(end1)


def weekdays_between(
    start: Optional[date],
    end: Optional[date],
    *,
    inclusive: bool = False,
    weekday_mask: Iterable[int] = WEEKDAYS_MON_FRI,
    clamp_negative: bool = True,
) -> Optional[int]:
    """
    Count days whose weekday() is in `weekday_mask` between two dates.

    Range semantics:
      - inclusive=False (default): counts in [start, end)  → end NOT included
      - inclusive=True:            counts in [start, end]  → end included

    Returns None if either date is None.

    Examples:
        >>> from datetime import date
        >>> weekdays_between(date(2024,3,4), date(2024,3,8))  # Mon..Thu
        4
        >>> weekdays_between(date(2024,3,4), date(2024,3,10), inclusive=True)  # Mon..Sun
        5
    """
    if start is None or end is None:
        return None

    if inclusive:
        end = end + timedelta(days=1)

    if start > end:
        if clamp_negative:
            return 0
        raise ValueError("start date is after end date")

    total_days = (end - start).days
    if total_days <= 0:
        return 0

    mask = set(int(d) for d in weekday_mask)
    if not mask.issubset({0, 1, 2, 3, 4, 5, 6}):
        raise ValueError("weekday_mask must contain integers 0..6")

    full_weeks, extra_days = divmod(total_days, 7)
    count = full_weeks * len(mask)

    start_wd = start.weekday()
    for i in range(extra_days):
        if ((start_wd + i) % 7) in mask:
            count += 1

    return count
