# File: timesheets/duplication.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from django.db.models import Q
from django.utils.translation import gettext as _

from core.utils.periods import DateLike, as_date, month_bounds, periods_overlap, same_month
from .models import Timesheet

logger = logging.getLogger("pontaj.timesheets")


class ConflictType:
    EXACT_PERIOD = "exact_period"
    SAME_MONTH = "same_month"
    OVERLAPPING_PERIOD = "overlapping_period"

    # strongest first
    PRECEDENCE = (EXACT_PERIOD, SAME_MONTH, OVERLAPPING_PERIOD)


@dataclass(frozen=True)
class DuplicationVerdict:
    has_duplicate: bool
    conflict_type: Optional[str] = None
    existing: Optional[Timesheet] = None
    message: Optional[str] = None
    can_edit: bool = False

    def as_dict(self) -> dict:
        existing = None
        if self.existing is not None:
            existing = {
                "id": str(self.existing.pk),
                "storeId": str(self.existing.store_id),
                "periodStart": self.existing.period_start.isoformat(),
                "periodEnd": self.existing.period_end.isoformat(),
                "totalHours": float(self.existing.total_hours or 0),
                "employeeCount": self.existing.employee_count,
            }
        return {
            "hasDuplicate": self.has_duplicate,
            "conflictType": self.conflict_type,
            "message": self.message,
            "canEdit": self.can_edit,
            "existing": existing,
        }


NO_DUPLICATE = DuplicationVerdict(False)


def classify_conflict(
    existing_start: DateLike,
    existing_end: DateLike,
    start: DateLike,
    end: DateLike,
) -> Optional[str]:
    """Conflict between a stored period and a requested one, or None."""
    es, ee, s, e = as_date(existing_start), as_date(existing_end), as_date(start), as_date(end)
    if es == s and ee == e:
        return ConflictType.EXACT_PERIOD
    if same_month(es, s):
        return ConflictType.SAME_MONTH
    if periods_overlap(es, ee, s, e):
        return ConflictType.OVERLAPPING_PERIOD
    return None


def conflict_message(conflict_type: str, store_name: Optional[str] = None) -> str:
    at = _(" at %(store)s") % {"store": store_name} if store_name else ""
    if conflict_type == ConflictType.EXACT_PERIOD:
        return _("A timesheet already exists for the same period%(at)s. Edit the existing timesheet instead of creating a new one.") % {"at": at}
    if conflict_type == ConflictType.SAME_MONTH:
        return _("A timesheet already exists for this month%(at)s. Only one timesheet per store and month is allowed. Edit the existing timesheet.") % {"at": at}
    if conflict_type == ConflictType.OVERLAPPING_PERIOD:
        return _("A timesheet with an overlapping period already exists%(at)s. Check the existing timesheets.") % {"at": at}
    return _("A similar timesheet already exists%(at)s.") % {"at": at}


def pick_conflict(candidates: Iterable[Timesheet], start: DateLike, end: DateLike) -> DuplicationVerdict:
    """Strongest conflict among `candidates`; earliest period wins a tie."""
    best, best_rank = None, len(ConflictType.PRECEDENCE)
    for ts in sorted(candidates, key=lambda t: (t.period_start, t.pk)):
        kind = classify_conflict(ts.period_start, ts.period_end, start, end)
        if kind is None:
            continue
        rank = ConflictType.PRECEDENCE.index(kind)
        if rank < best_rank:
            best, best_rank = (ts, kind), rank
    if best is None:
        return NO_DUPLICATE
    ts, kind = best
    return DuplicationVerdict(
        has_duplicate=True,
        conflict_type=kind,
        existing=ts,
        message=conflict_message(kind, ts.store.name),
        can_edit=True,
    )


def check_duplicate(store_id, start: DateLike, end: DateLike, exclude_id=None) -> DuplicationVerdict:
    """
    Pre-flight check for a store's timesheet period.

    Candidates are the store's timesheets that overlap [start, end] or start in
    the same calendar month as `start`. Advisory only: nothing here prevents a
    concurrent insert (see services.save_grid for the locked variant).
    """
    s, e = as_date(start), as_date(end)
    month_first, month_last = month_bounds(s)

    qs = (
        Timesheet.objects.select_related("store")
        .filter(store_id=store_id)
        .filter(
            Q(period_start__lte=e, period_end__gte=s)
            | Q(period_start__gte=month_first, period_start__lte=month_last)
        )
    )
    if exclude_id not in (None, ""):
        qs = qs.exclude(pk=exclude_id)

    verdict = pick_conflict(qs, s, e)
    if verdict.has_duplicate:
        logger.info(
            f"Duplicate check store={store_id} {s}..{e}: {verdict.conflict_type} with timesheet {verdict.existing.pk}"
        )
    return verdict
