# File: timesheets/tests/test_rules.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from django.test import TestCase

from timesheets.grid import DayCell
from timesheets.rules import (
    DEFAULT_COLOR_CLASS,
    FULL_DAY_HOURS,
    SOURCE_ABSENCE_DEFAULT,
    SOURCE_EXPLICIT,
    STATUS_UNSET,
    UNSET_COLOR_CLASS,
    AbsenceTypeInfo,
    color_class,
    display_name,
    effective_hours,
    find_absence_type,
    full_day_absence_cell,
    is_full_day_absence,
    is_partial_hours_absence,
    round_hours,
    total_effective_hours,
)

CATALOG = (
    AbsenceTypeInfo("CO", "Concediu de odihnă", requires_hours=False, color_class="bg-green", sort_order=10),
    AbsenceTypeInfo("CM", "Concediu medical", requires_hours=False, sort_order=20),
    AbsenceTypeInfo("dispensa", "Dispensă", requires_hours=True, sort_order=30),
    AbsenceTypeInfo("OLD", "Retired code", requires_hours=False, is_active=False),
)


# =========================
# Effective hours
# =========================

class EffectiveHoursTest(TestCase):
    """Hours a single day contributes to totals."""

    def test_full_day_absence_always_counts_a_full_day(self):
        """Stored hours are ignored for full-day absences, whatever they are."""
        for stored in (0, -5, 3.5, 100):
            with self.subTest(stored=stored):
                result = effective_hours(DayCell(status="CO", hours=stored), CATALOG)
                self.assertEqual(result.hours, FULL_DAY_HOURS)
                self.assertEqual(result.source, SOURCE_ABSENCE_DEFAULT)
                self.assertTrue(result.is_full_day_absence)

    def test_vacation_day_without_hours(self):
        """CO with no hours and no interval is 8h and flagged full-day."""
        result = effective_hours(DayCell(status="CO", hours=0, time_interval=""), CATALOG)
        self.assertEqual(result.hours, 8)
        self.assertTrue(result.is_full_day_absence)

    def test_partial_absence_uses_explicit_hours(self):
        result = effective_hours(DayCell(status="dispensa", hours=3, time_interval=""), CATALOG)
        self.assertEqual(result.hours, 3)
        self.assertEqual(result.source, SOURCE_EXPLICIT)
        self.assertFalse(result.is_full_day_absence)

    def test_plain_work_day(self):
        result = effective_hours(DayCell(hours=7.5, time_interval="9-16:30"), CATALOG)
        self.assertEqual(result.hours, 7.5)
        self.assertEqual(result.source, SOURCE_EXPLICIT)

    def test_missing_day_is_zero(self):
        result = effective_hours(None, CATALOG)
        self.assertEqual((result.hours, result.source, result.is_full_day_absence), (0, SOURCE_EXPLICIT, False))

    def test_unknown_code_falls_back_to_explicit_hours(self):
        result = effective_hours(DayCell(status="XYZ", hours=6), CATALOG)
        self.assertEqual(result.hours, 6)
        self.assertFalse(result.is_full_day_absence)

    def test_inactive_type_is_ignored(self):
        result = effective_hours(DayCell(status="OLD", hours=2), CATALOG)
        self.assertEqual(result.hours, 2)
        self.assertFalse(is_full_day_absence("OLD", CATALOG))

    def test_empty_catalog_never_yields_absence(self):
        result = effective_hours(DayCell(status="CO", hours=0), ())
        self.assertEqual(result.hours, 0)
        self.assertFalse(result.is_full_day_absence)


class TotalEffectiveHoursTest(TestCase):

    def test_sum_equals_rounded_sum_of_days(self):
        days = {
            "2024-03-01": DayCell(hours=3.25),
            "2024-03-02": DayCell(hours=2.5),
            "2024-03-03": DayCell(status="CO", hours=1),
            "2024-03-04": DayCell(status="dispensa", hours=4.125),
            "2024-03-05": DayCell(),
        }
        expected = round_hours(sum(effective_hours(d, CATALOG).hours for d in days.values()))
        self.assertEqual(total_effective_hours(days, CATALOG), expected)
        self.assertEqual(expected, 17.88)

    def test_empty_map_is_zero(self):
        self.assertEqual(total_effective_hours({}, CATALOG), 0.0)
        self.assertEqual(total_effective_hours(None, CATALOG), 0.0)

    def test_rounding_is_half_up(self):
        self.assertEqual(round_hours(2.675), 2.68)
        self.assertEqual(round_hours(0.125), 0.13)
        self.assertEqual(round_hours(None), 0.0)


# =========================
# Catalog lookups
# =========================

class CatalogLookupTest(TestCase):

    def test_find_absence_type(self):
        self.assertEqual(find_absence_type("CM", CATALOG).name, "Concediu medical")
        self.assertIsNone(find_absence_type(STATUS_UNSET, CATALOG))
        self.assertIsNone(find_absence_type("", CATALOG))
        self.assertIsNone(find_absence_type("OLD", CATALOG))

    def test_partial_and_full_day_flags(self):
        self.assertTrue(is_partial_hours_absence("dispensa", CATALOG))
        self.assertFalse(is_partial_hours_absence("CO", CATALOG))
        self.assertTrue(is_full_day_absence("CO", CATALOG))
        self.assertFalse(is_full_day_absence("dispensa", CATALOG))
        self.assertFalse(is_full_day_absence(STATUS_UNSET, CATALOG))

    def test_full_day_absence_cell_clears_time_fields(self):
        cell = full_day_absence_cell("CO", notes="approved")
        self.assertEqual((cell.time_interval, cell.hours, cell.status, cell.notes), ("", 0, "CO", "approved"))

    def test_display_name(self):
        self.assertEqual(display_name(STATUS_UNSET, CATALOG), "Alege")
        self.assertEqual(display_name("CO", CATALOG), "Concediu de odihnă")
        self.assertEqual(display_name("XYZ", CATALOG), "XYZ")

    def test_color_class(self):
        self.assertEqual(color_class(STATUS_UNSET, CATALOG), UNSET_COLOR_CLASS)
        self.assertEqual(color_class("CO", CATALOG), "bg-green")
        self.assertEqual(color_class("CM", CATALOG), DEFAULT_COLOR_CLASS)
        self.assertEqual(color_class("XYZ", CATALOG), DEFAULT_COLOR_CLASS)
