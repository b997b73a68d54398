# File: timesheets/tests/test_validation.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

import types
from datetime import date

from django.test import TestCase

from timesheets.grid import DayCell, new_grid
from timesheets.rules import STATUS_UNSET, AbsenceTypeInfo
from timesheets.validation import (
    ERROR,
    INFO,
    VALID,
    WARNING,
    CellContext,
    suggested_fix,
    valid_options_for,
    validate_cell,
    validate_grid,
    validate_period,
)

CATALOG = (
    AbsenceTypeInfo("CO", "Concediu de odihnă", requires_hours=False, sort_order=10),
    AbsenceTypeInfo("CM", "Concediu medical", requires_hours=False, sort_order=20),
    AbsenceTypeInfo("dispensa", "Dispensă", requires_hours=True, sort_order=30),
    AbsenceTypeInfo("OLD", "Retired", requires_hours=False, sort_order=1, is_active=False),
)


def ctx(**kwargs):
    kwargs.setdefault("absence_types", CATALOG)
    return CellContext(**kwargs)


# =========================
# Cell rules
# =========================

class AbsenceConflictTest(TestCase):

    def test_full_day_absence_with_interval_is_invalid(self):
        result = validate_cell(ctx(status="CO", time_interval="9-17"))
        self.assertFalse(result.is_valid)
        self.assertEqual((result.type, result.code), (ERROR, "absence_conflict"))

    def test_full_day_absence_without_interval_is_valid(self):
        self.assertTrue(validate_cell(ctx(status="CO", time_interval="")).is_valid)

    def test_full_day_absence_with_hours_is_invalid(self):
        result = validate_cell(ctx(status="CM", hours=4))
        self.assertEqual(result.code, "absence_conflict")

    def test_partial_absence_needs_hours(self):
        result = validate_cell(ctx(status="dispensa"))
        self.assertFalse(result.is_valid)
        self.assertEqual((result.type, result.code), (WARNING, "hours_required"))

    def test_partial_absence_with_hours_is_valid(self):
        self.assertEqual(validate_cell(ctx(status="dispensa", time_interval="9-12")), VALID)
        self.assertEqual(validate_cell(ctx(status="dispensa", hours=3)), VALID)

    def test_partial_absence_above_a_working_day(self):
        result = validate_cell(ctx(status="dispensa", time_interval="8-18"))
        self.assertEqual((result.type, result.code), (WARNING, "partial_hours_exceeded"))


class IntervalRuleTest(TestCase):

    def test_invalid_format(self):
        result = validate_cell(ctx(time_interval="9to5"))
        self.assertEqual((result.is_valid, result.code), (False, "invalid_format"))

    def test_out_of_range_hour_uses_format_message(self):
        self.assertEqual(validate_cell(ctx(time_interval="25-9")).code, "invalid_format")

    def test_too_long(self):
        self.assertEqual(validate_cell(ctx(time_interval="6-23")).code, "shift_too_long")

    def test_too_short(self):
        self.assertEqual(validate_cell(ctx(time_interval="9:00-9:15")).code, "shift_too_short")

    def test_interval_error_wins_over_absence_conflict(self):
        """Rules run in order; the first failure is reported."""
        self.assertEqual(validate_cell(ctx(status="CO", time_interval="bad")).code, "invalid_format")

    def test_plain_shift_is_valid(self):
        self.assertEqual(validate_cell(ctx(time_interval="10-18")), VALID)


class StatusRuleTest(TestCase):

    def test_unknown_status(self):
        result = validate_cell(ctx(status="XYZ"))
        self.assertEqual((result.is_valid, result.type, result.code), (False, ERROR, "unknown_status"))
        self.assertIn("CO", result.message)

    def test_inactive_code_is_unknown(self):
        self.assertEqual(validate_cell(ctx(status="OLD")).code, "unknown_status")

    def test_unloaded_catalog_is_informational(self):
        result = validate_cell(ctx(status="CO", absence_types=()))
        self.assertTrue(result.is_valid)
        self.assertEqual((result.type, result.code), (INFO, "catalog_not_loaded"))

    def test_placeholder_never_trips_status_rules(self):
        self.assertEqual(validate_cell(ctx(status=STATUS_UNSET)), VALID)
        self.assertEqual(validate_cell(ctx(status=STATUS_UNSET, absence_types=())), VALID)


class OffDayRuleTest(TestCase):

    def test_weekend_work_is_valid_with_note(self):
        result = validate_cell(ctx(time_interval="9-17", is_weekend=True))
        self.assertTrue(result.is_valid)
        self.assertEqual((result.type, result.code), (INFO, "weekend_work"))

    def test_holiday_note_wins_over_weekend(self):
        result = validate_cell(ctx(time_interval="9-17", is_weekend=True, is_holiday=True))
        self.assertEqual(result.code, "holiday_work")

    def test_idle_weekend_has_no_note(self):
        self.assertEqual(validate_cell(ctx(is_weekend=True)), VALID)


class DelegationRuleTest(TestCase):

    def test_hours_after_delegation_are_blocked(self):
        result = validate_cell(ctx(time_interval="9-17", is_delegation_restricted=True))
        self.assertEqual((result.is_valid, result.code), (False, "delegation_restricted"))

    def test_empty_restricted_cell_is_fine(self):
        self.assertEqual(validate_cell(ctx(is_delegation_restricted=True)), VALID)


# =========================
# Options & fixes
# =========================

class ValidOptionsTest(TestCase):

    def test_is_a_generator(self):
        self.assertIsInstance(valid_options_for(ctx()), types.GeneratorType)

    def test_all_active_types_without_hours(self):
        self.assertEqual(list(valid_options_for(ctx())), [STATUS_UNSET, "CO", "CM", "dispensa"])

    def test_only_partial_types_with_hours(self):
        self.assertEqual(list(valid_options_for(ctx(time_interval="9-13"))), [STATUS_UNSET, "dispensa"])
        self.assertEqual(list(valid_options_for(ctx(hours=2))), [STATUS_UNSET, "dispensa"])

    def test_sort_order_then_code(self):
        catalog = (
            AbsenceTypeInfo("ZZ", sort_order=5),
            AbsenceTypeInfo("BB", sort_order=9),
            AbsenceTypeInfo("AA", sort_order=9),
        )
        self.assertEqual(list(valid_options_for(ctx(absence_types=catalog))), [STATUS_UNSET, "ZZ", "AA", "BB"])

    def test_empty_catalog(self):
        self.assertEqual(list(valid_options_for(ctx(absence_types=()))), [STATUS_UNSET])


class SuggestedFixTest(TestCase):

    def test_fix_for_conflict(self):
        fix = suggested_fix(validate_cell(ctx(status="CO", time_interval="9-17")))
        self.assertEqual(fix.action, "clear_hours")
        self.assertTrue(fix.description)

    def test_no_fix_for_valid_cell(self):
        self.assertIsNone(suggested_fix(VALID))


# =========================
# Period & grid
# =========================

class PeriodValidationTest(TestCase):

    def test_single_day(self):
        self.assertTrue(validate_period(date(2024, 3, 1), date(2024, 3, 1)).is_valid)

    def test_thirty_one_days_is_the_limit(self):
        self.assertTrue(validate_period("2024-03-01", "2024-03-31").is_valid)
        self.assertEqual(validate_period("2024-03-01", "2024-04-01").code, "period_too_long")

    def test_reversed(self):
        self.assertEqual(validate_period("2024-03-10", "2024-03-01").code, "period_reversed")

    def test_unparseable(self):
        self.assertEqual(validate_period("garbage", "2024-03-01").code, "invalid_period")
        self.assertEqual(validate_period(None, "2024-03-01").code, "invalid_period")


class GridValidationTest(TestCase):

    def setUp(self):
        self.grid = new_grid(
            date(2024, 3, 1), date(2024, 3, 3),
            [("1", "Ana Pop", "Casier"), ("2", "Ion Ionescu", "Staff")],
            store_id="7",
        )

    def test_clean_grid_can_be_saved(self):
        report = validate_grid(self.grid, CATALOG)
        self.assertTrue(report.can_save)
        self.assertEqual((report.errors, report.warnings, report.setup_errors), ([], [], []))

    def test_errors_and_warnings_are_collected(self):
        self.grid.entry("1").days["2024-03-01"] = DayCell(time_interval="9-17", status="CO")
        self.grid.entry("2").days["2024-03-02"] = DayCell(status="dispensa")
        report = validate_grid(self.grid, CATALOG)

        self.assertFalse(report.can_save)
        self.assertEqual(len(report.errors), 1)
        self.assertEqual(report.errors[0].employee_name, "Ana Pop")
        self.assertEqual(report.errors[0].date, "2024-03-01")
        self.assertEqual(report.errors[0].code, "absence_conflict")
        self.assertEqual([w.code for w in report.warnings], ["hours_required"])

    def test_warnings_alone_do_not_block(self):
        self.grid.entry("2").days["2024-03-02"] = DayCell(status="dispensa")
        self.assertTrue(validate_grid(self.grid, CATALOG).can_save)

    def test_info_notes_are_not_reported(self):
        # 2024-03-02 is a Saturday
        self.grid.entry("1").days["2024-03-02"] = DayCell(time_interval="9-17", hours=8)
        report = validate_grid(self.grid, CATALOG, holidays={date(2024, 3, 1)})
        self.assertEqual((report.errors, report.warnings), ([], []))

    def test_setup_errors(self):
        grid = new_grid(date(2024, 3, 1), date(2024, 4, 5))
        report = validate_grid(grid, CATALOG)
        self.assertFalse(report.can_save)
        self.assertEqual({s.field for s in report.setup_errors}, {"store", "employees", "period"})

    def test_as_dict(self):
        data = validate_grid(self.grid, CATALOG).as_dict()
        self.assertEqual(set(data), {"canSave", "errors", "warnings", "setupErrors"})
        self.assertTrue(data["canSave"])
