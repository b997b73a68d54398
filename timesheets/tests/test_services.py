# File: timesheets/tests/test_services.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from datetime import date
from decimal import Decimal

from concurrency.exceptions import RecordModifiedError
from django.core.exceptions import PermissionDenied, ValidationError
from django.test import TestCase

from stores.models import Delegation
from timesheets.duplication import ConflictType
from timesheets.grid import DayCell, new_grid
from timesheets.models import Timesheet
from timesheets.services import (
    DuplicateTimesheetError,
    absence_catalog,
    grid_summary,
    load_grid,
    new_grid_for_store,
    save_grid,
)
from .mixins import CatalogFixtureMixin, StoreFixtureMixin


class ServiceTestMixin(CatalogFixtureMixin, StoreFixtureMixin):

    def march_grid(self, start=date(2024, 3, 1), end=date(2024, 3, 15), store=None):
        grid = new_grid_for_store(store or self.store_a, start, end, employees=[self.ana, self.ion])
        cells = [
            (self.ana, "2024-03-04", DayCell("9-17", 8.0)),
            (self.ana, "2024-03-05", DayCell(status="CO")),
            (self.ion, "2024-03-04", DayCell("10-13", 3.0, "dispensa")),
        ]
        for emp, key, cell in cells:
            days = grid.entry(str(emp.pk)).days
            if key in days:
                days[key] = cell
        return grid


# =========================
# Catalog & summary
# =========================

class CatalogTest(ServiceTestMixin, TestCase):

    def test_inactive_types_are_excluded(self):
        codes = [t.code for t in absence_catalog()]
        self.assertEqual(codes, ["CO", "CM", "dispensa"])

    def test_new_grid_for_store_uses_active_employees(self):
        self.ion.is_active = False
        self.ion.save()
        grid = new_grid_for_store(self.store_a, date(2024, 3, 1), date(2024, 3, 3))
        self.assertEqual([e.employee_name for e in grid.entries], ["Ana Pop"])
        self.assertEqual(grid.store_id, str(self.store_a.pk))
        self.assertEqual(len(grid.entries[0].days), 3)

    def test_summary(self):
        summary = grid_summary(self.march_grid(), absence_catalog())
        self.assertEqual(summary.total_hours, 19.0)
        self.assertEqual(summary.employee_count, 2)
        self.assertEqual(summary.working_days, 11)
        self.assertEqual(summary.per_status, {"CO": 1, "dispensa": 1})
        self.assertEqual(summary.per_employee[str(self.ana.pk)], 16.0)


# =========================
# Saving
# =========================

class SaveGridTest(ServiceTestMixin, TestCase):

    def test_create_stores_totals(self):
        result = save_grid(self.march_grid(), user=self.hr)
        ts = result.timesheet

        self.assertTrue(result.created)
        self.assertIsNone(result.duplicate)
        self.assertEqual(ts.store, self.store_a)
        self.assertEqual(ts.zone, self.zone_north)
        self.assertEqual(ts.total_hours, Decimal("19.00"))
        self.assertEqual(ts.employee_count, 2)
        self.assertEqual(ts.created_by, self.hr)
        self.assertEqual(ts.history.first().history_user, self.hr)
        self.assertIsNotNone(ts.daily_entries["_grid_metadata"]["updatedAt"])

    def test_saved_grid_loads_back(self):
        grid = self.march_grid()
        ts = save_grid(grid).timesheet
        loaded = load_grid(Timesheet.objects.get(pk=ts.pk))

        self.assertEqual(loaded.id, str(ts.pk))
        for entry in grid.entries:
            self.assertEqual(loaded.entry(entry.employee_id).days, entry.days)

    def test_update_keeps_one_row(self):
        grid = self.march_grid()
        save_grid(grid)
        grid.entry(str(self.ana.pk)).days["2024-03-06"] = DayCell("9-13", 4.0)
        result = save_grid(grid)

        self.assertFalse(result.created)
        self.assertEqual(Timesheet.objects.count(), 1)
        self.assertEqual(result.timesheet.total_hours, Decimal("23.00"))

    def test_blocking_errors_prevent_the_save(self):
        grid = self.march_grid()
        grid.entry(str(self.ana.pk)).days["2024-03-07"] = DayCell("9-17", 8.0, "CO")
        with self.assertRaises(ValidationError):
            save_grid(grid)
        self.assertFalse(Timesheet.objects.exists())

    def test_warnings_do_not_block(self):
        grid = self.march_grid()
        grid.entry(str(self.ana.pk)).days["2024-03-07"] = DayCell(status="dispensa")
        result = save_grid(grid)
        self.assertEqual([w.code for w in result.validation.warnings], ["hours_required"])

    def test_grid_without_store_or_employees(self):
        with self.assertRaises(ValidationError):
            save_grid(new_grid(date(2024, 3, 1), date(2024, 3, 2)))


class SaveGridDuplicateTest(ServiceTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.existing = self.make_timesheet(self.store_a, date(2024, 3, 1), date(2024, 3, 15))

    def test_second_sheet_in_month_is_refused(self):
        grid = self.march_grid(date(2024, 3, 16), date(2024, 3, 31))
        with self.assertRaises(DuplicateTimesheetError) as cm:
            save_grid(grid)
        self.assertEqual(cm.exception.verdict.conflict_type, ConflictType.SAME_MONTH)
        self.assertEqual(cm.exception.verdict.existing, self.existing)
        self.assertEqual(Timesheet.objects.count(), 1)

    def test_force_saves_anyway(self):
        grid = self.march_grid(date(2024, 3, 16), date(2024, 3, 31))
        result = save_grid(grid, force=True)
        self.assertTrue(result.created)
        self.assertEqual(result.duplicate.conflict_type, ConflictType.SAME_MONTH)
        self.assertEqual(Timesheet.objects.count(), 2)

    def test_editing_the_existing_sheet_is_not_a_duplicate(self):
        grid = load_grid(self.existing)
        grid.entries = self.march_grid().entries
        result = save_grid(grid)
        self.assertFalse(result.created)
        self.assertEqual(result.timesheet.pk, self.existing.pk)


class SaveGridScopeTest(ServiceTestMixin, TestCase):

    def test_store_resolved_from_delegation(self):
        Delegation.objects.create(
            employee=self.ana, to_store=self.store_b,
            valid_from=date(2024, 2, 20), valid_until=date(2024, 3, 10),
        )
        grid = new_grid(date(2024, 3, 1), date(2024, 3, 5), [(self.ana.pk, "Ana Pop", "Casier")])
        ts = save_grid(grid).timesheet
        self.assertEqual(ts.store, self.store_b)

    def test_home_store_without_delegation(self):
        grid = new_grid(date(2024, 3, 1), date(2024, 3, 5), [(self.ana.pk, "Ana Pop", "Casier")])
        self.assertEqual(save_grid(grid).timesheet.store, self.store_a)

    def test_store_manager_cannot_save_for_another_store(self):
        with self.assertRaises(PermissionDenied):
            save_grid(self.march_grid(), user=self.manager_b)
        self.assertFalse(Timesheet.objects.exists())

    def test_asm_can_save_in_zone(self):
        self.assertTrue(save_grid(self.march_grid(), user=self.asm).created)

    def test_asm_cannot_save_outside_zone(self):
        grid = self.march_grid(store=self.store_c)
        with self.assertRaises(PermissionDenied):
            save_grid(grid, user=self.asm)

    def test_manager_cannot_overwrite_another_stores_timesheet_by_id(self):
        ts_a = save_grid(self.march_grid(), user=self.hr).timesheet
        stored = ts_a.daily_entries

        grid = self.march_grid(store=self.store_b)
        grid.id = str(ts_a.pk)
        with self.assertRaises(PermissionDenied):
            save_grid(grid, user=self.manager_b)

        ts_a.refresh_from_db()
        self.assertEqual(ts_a.store, self.store_a)
        self.assertEqual(ts_a.daily_entries, stored)
        self.assertEqual(Timesheet.objects.count(), 1)

    def test_update_cannot_move_timesheet_to_another_store(self):
        ts_a = save_grid(self.march_grid(), user=self.hr).timesheet

        grid = self.march_grid(store=self.store_b)
        grid.id = str(ts_a.pk)
        with self.assertRaises(ValidationError) as ctx:
            save_grid(grid, user=self.hr)
        self.assertIn("store", ctx.exception.message_dict)

        ts_a.refresh_from_db()
        self.assertEqual(ts_a.store, self.store_a)

    def test_unknown_timesheet_id(self):
        grid = self.march_grid()
        grid.id = "99999"
        with self.assertRaises(ValidationError) as ctx:
            save_grid(grid, user=self.hr)
        self.assertIn("id", ctx.exception.message_dict)
        self.assertFalse(Timesheet.objects.exists())


class SaveGridConcurrencyTest(ServiceTestMixin, TestCase):

    def test_stale_version_is_rejected(self):
        grid = self.march_grid()
        first = save_grid(grid).timesheet
        stale = first.version

        second = save_grid(grid, version=stale).timesheet
        self.assertNotEqual(second.version, stale)

        with self.assertRaises(RecordModifiedError):
            save_grid(grid, version=stale)
