# File: timesheets/tests/test_duplication.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from datetime import date

from django.core.exceptions import ValidationError
from django.test import TestCase

from timesheets.duplication import (
    ConflictType,
    check_duplicate,
    classify_conflict,
    conflict_message,
)
from timesheets.models import Timesheet
from .mixins import StoreFixtureMixin


class ClassifyConflictTest(TestCase):

    def test_exact(self):
        self.assertEqual(classify_conflict("2024-03-01", "2024-03-15", "2024-03-01", "2024-03-15"), ConflictType.EXACT_PERIOD)

    def test_same_month_without_overlap(self):
        self.assertEqual(classify_conflict("2024-03-01", "2024-03-15", "2024-03-20", "2024-03-31"), ConflictType.SAME_MONTH)

    def test_same_month_wins_over_overlap(self):
        self.assertEqual(classify_conflict("2024-03-01", "2024-03-15", "2024-03-10", "2024-03-20"), ConflictType.SAME_MONTH)

    def test_overlap_across_months(self):
        self.assertEqual(classify_conflict("2024-03-01", "2024-03-15", "2024-02-20", "2024-03-05"), ConflictType.OVERLAPPING_PERIOD)

    def test_no_conflict(self):
        self.assertIsNone(classify_conflict("2024-03-01", "2024-03-15", "2024-04-01", "2024-04-30"))
        # same month number, different year
        self.assertIsNone(classify_conflict("2023-03-01", "2023-03-15", "2024-03-01", "2024-03-15"))

    def test_messages_differ_per_type(self):
        messages = {conflict_message(kind) for kind in ConflictType.PRECEDENCE}
        self.assertEqual(len(messages), 3)
        self.assertIn("Magazin A", conflict_message(ConflictType.SAME_MONTH, "Magazin A"))


class CheckDuplicateTest(StoreFixtureMixin, TestCase):
    """A store with one timesheet for 1-15 March 2024."""

    def setUp(self):
        super().setUp()
        self.march = self.make_timesheet(self.store_a, date(2024, 3, 1), date(2024, 3, 15))

    def test_exact_period(self):
        verdict = check_duplicate(self.store_a.pk, date(2024, 3, 1), date(2024, 3, 15))
        self.assertTrue(verdict.has_duplicate)
        self.assertEqual(verdict.conflict_type, ConflictType.EXACT_PERIOD)
        self.assertEqual(verdict.existing, self.march)
        self.assertTrue(verdict.can_edit)

    def test_second_half_of_month_is_a_same_month_conflict(self):
        verdict = check_duplicate(self.store_a.pk, "2024-03-20", "2024-03-31")
        self.assertEqual(verdict.conflict_type, ConflictType.SAME_MONTH)
        self.assertIn("Magazin A", verdict.message)

    def test_overlap_from_previous_month(self):
        verdict = check_duplicate(self.store_a.pk, date(2024, 2, 20), date(2024, 3, 5))
        self.assertEqual(verdict.conflict_type, ConflictType.OVERLAPPING_PERIOD)

    def test_next_month_is_free(self):
        verdict = check_duplicate(self.store_a.pk, date(2024, 4, 1), date(2024, 4, 30))
        self.assertFalse(verdict.has_duplicate)
        self.assertIsNone(verdict.conflict_type)
        self.assertIsNone(verdict.existing)

    def test_other_store_is_free(self):
        self.assertFalse(check_duplicate(self.store_b.pk, date(2024, 3, 1), date(2024, 3, 15)).has_duplicate)

    def test_excluding_the_record_being_edited(self):
        verdict = check_duplicate(self.store_a.pk, date(2024, 3, 1), date(2024, 3, 15), exclude_id=self.march.pk)
        self.assertFalse(verdict.has_duplicate)

    def test_strongest_conflict_wins(self):
        self.make_timesheet(self.store_a, date(2024, 2, 25), date(2024, 2, 29))
        verdict = check_duplicate(self.store_a.pk, date(2024, 2, 26), date(2024, 3, 3))
        # February sheet is same month, March sheet only overlaps
        self.assertEqual(verdict.conflict_type, ConflictType.SAME_MONTH)
        self.assertEqual(verdict.existing.period_start, date(2024, 2, 25))

    def test_as_dict(self):
        data = check_duplicate(self.store_a.pk, date(2024, 3, 1), date(2024, 3, 15)).as_dict()
        self.assertEqual(data["conflictType"], "exact_period")
        self.assertEqual(data["existing"]["id"], str(self.march.pk))
        self.assertEqual(data["existing"]["periodEnd"], "2024-03-15")
        self.assertIsNone(check_duplicate(self.store_b.pk, "2024-03-01", "2024-03-15").as_dict()["existing"])


class TimesheetCleanTest(StoreFixtureMixin, TestCase):

    def test_duplicate_is_rejected_on_clean(self):
        self.make_timesheet(self.store_a, date(2024, 3, 1), date(2024, 3, 15))
        ts = Timesheet(store=self.store_a, period_start=date(2024, 3, 16), period_end=date(2024, 3, 31))
        with self.assertRaises(ValidationError) as cm:
            ts.full_clean()
        self.assertIn("period_start", cm.exception.message_dict)

    def test_period_too_long_is_rejected(self):
        ts = Timesheet(store=self.store_a, period_start=date(2024, 3, 1), period_end=date(2024, 4, 15))
        with self.assertRaises(ValidationError) as cm:
            ts.full_clean()
        self.assertIn("period_end", cm.exception.message_dict)

    def test_zone_follows_store(self):
        ts = self.make_timesheet(self.store_c, date(2024, 3, 1), date(2024, 3, 31))
        self.assertEqual(ts.zone, self.zone_south)
