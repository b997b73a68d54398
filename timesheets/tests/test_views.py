# File: timesheets/tests/test_views.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

import json
from datetime import date
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse

from timesheets.grid import DayCell
from timesheets.models import Timesheet
from timesheets.services import new_grid_for_store, save_grid
from .mixins import CatalogFixtureMixin, StoreFixtureMixin


class ViewTestMixin(CatalogFixtureMixin, StoreFixtureMixin):

    def post_json(self, name, payload, raw=None):
        return self.client.post(
            reverse(name),
            data=raw if raw is not None else json.dumps(payload),
            content_type="application/json",
        )

    def grid_payload(self, start=date(2024, 3, 1), end=date(2024, 3, 15)):
        grid = new_grid_for_store(self.store_a, start, end)
        grid.entry(str(self.ana.pk)).days[start.isoformat()] = DayCell("9-17", 8.0)
        return grid.as_dict()


class LoginRequiredTest(ViewTestMixin, TestCase):

    def test_anonymous_is_redirected(self):
        for url in (
            reverse("timesheets:check_duplicate"),
            reverse("timesheets:validate_cell"),
            reverse("timesheets:save_grid"),
        ):
            with self.subTest(url=url):
                self.assertEqual(self.client.get(url).status_code, 302)


# =========================
# Grid detail
# =========================

class GridDetailViewTest(ViewTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.ts = save_grid(new_grid_for_store(self.store_a, date(2024, 3, 1), date(2024, 3, 3))).timesheet

    def test_returns_grid_summary_and_validation(self):
        self.client.force_login(self.hr)
        response = self.client.get(reverse("timesheets:grid_detail", args=[self.ts.pk]))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["version"], self.ts.version)
        self.assertEqual(len(data["grid"]["entries"]), 2)
        self.assertEqual(data["summary"]["employeeCount"], 2)
        self.assertTrue(data["validation"]["canSave"])

    def test_unknown_timesheet(self):
        self.client.force_login(self.hr)
        self.assertEqual(self.client.get(reverse("timesheets:grid_detail", args=[9999])).status_code, 404)

    def test_out_of_scope_store(self):
        self.client.force_login(self.manager_b)
        self.assertEqual(self.client.get(reverse("timesheets:grid_detail", args=[self.ts.pk])).status_code, 403)


# =========================
# Duplicate check
# =========================

class CheckDuplicateViewTest(ViewTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.make_timesheet(self.store_a, date(2024, 3, 1), date(2024, 3, 15))
        self.client.force_login(self.asm)

    def get(self, **params):
        return self.client.get(reverse("timesheets:check_duplicate"), params)

    def test_same_month(self):
        response = self.get(store=self.store_a.pk, start="2024-03-20", end="2024-03-31")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["hasDuplicate"])
        self.assertEqual(response.json()["conflictType"], "same_month")

    def test_free_period(self):
        response = self.get(store=self.store_a.pk, start="2024-04-01", end="2024-04-30")
        self.assertFalse(response.json()["hasDuplicate"])

    def test_bad_parameters(self):
        self.assertEqual(self.get(store="abc", start="2024-03-01", end="2024-03-02").status_code, 400)
        self.assertEqual(self.get(store=self.store_a.pk, start="2024-03-10", end="2024-03-01").status_code, 400)
        self.assertEqual(self.get(store=self.store_a.pk, start="x", end="2024-03-01").status_code, 400)

    def test_out_of_zone(self):
        response = self.get(store=self.store_c.pk, start="2024-03-01", end="2024-03-02")
        self.assertEqual(response.status_code, 403)


# =========================
# Cell validation
# =========================

class ValidateCellViewTest(ViewTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client.force_login(self.manager_b)

    def test_conflict_with_fix_and_options(self):
        response = self.post_json("timesheets:validate_cell", {"status": "CO", "timeInterval": "9-17"})
        data = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertFalse(data["isValid"])
        self.assertEqual(data["code"], "absence_conflict")
        self.assertEqual(data["suggestedFix"]["action"], "clear_hours")
        self.assertEqual(data["options"], ["alege", "dispensa"])

    def test_weekend_note_from_date(self):
        # 2024-03-02 is a Saturday
        data = self.post_json("timesheets:validate_cell", {"timeInterval": "9-17", "date": "2024-03-02"}).json()
        self.assertTrue(data["isValid"])
        self.assertEqual(data["code"], "weekend_work")

    def test_bad_input(self):
        self.assertEqual(self.post_json("timesheets:validate_cell", None, raw="{nope").status_code, 400)
        self.assertEqual(self.post_json("timesheets:validate_cell", {"hours": "many"}).status_code, 400)

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(reverse("timesheets:validate_cell")).status_code, 405)


# =========================
# Save
# =========================

class SaveGridViewTest(ViewTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client.force_login(self.hr)

    def test_create(self):
        response = self.post_json("timesheets:save_grid", {"grid": self.grid_payload()})
        data = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(data["created"])
        self.assertEqual(data["totalHours"], 8.0)
        self.assertTrue(Timesheet.objects.filter(pk=data["id"]).exists())

    def test_duplicate_is_a_conflict(self):
        self.make_timesheet(self.store_a, date(2024, 3, 1), date(2024, 3, 15))
        response = self.post_json("timesheets:save_grid", {"grid": self.grid_payload(date(2024, 3, 16), date(2024, 3, 31))})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["duplicate"]["conflictType"], "same_month")

    def test_force_overrides_duplicate(self):
        self.make_timesheet(self.store_a, date(2024, 3, 1), date(2024, 3, 15))
        payload = {"grid": self.grid_payload(date(2024, 3, 16), date(2024, 3, 31)), "force": True}
        self.assertEqual(self.post_json("timesheets:save_grid", payload).status_code, 200)

    def test_blocking_error(self):
        payload = self.grid_payload()
        payload["entries"][0]["days"]["2024-03-02"] = {"status": "CO", "timeInterval": "9-17"}
        response = self.post_json("timesheets:save_grid", {"grid": payload})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Timesheet.objects.exists())

    def test_out_of_scope(self):
        self.client.force_login(self.manager_b)
        self.assertEqual(self.post_json("timesheets:save_grid", {"grid": self.grid_payload()}).status_code, 403)

    def test_cannot_overwrite_out_of_scope_timesheet_by_id(self):
        ts_a = save_grid(new_grid_for_store(self.store_a, date(2024, 3, 1), date(2024, 3, 15))).timesheet
        payload = self.grid_payload()
        payload["id"] = str(ts_a.pk)
        payload["storeId"] = str(self.store_b.pk)

        self.client.force_login(self.manager_b)
        response = self.post_json("timesheets:save_grid", {"grid": payload})
        self.assertEqual(response.status_code, 403)
        ts_a.refresh_from_db()
        self.assertEqual(ts_a.store, self.store_a)
        self.assertEqual(ts_a.total_hours, Decimal("0.00"))

    def test_unknown_timesheet_id(self):
        payload = self.grid_payload()
        payload["id"] = "99999"
        response = self.post_json("timesheets:save_grid", {"grid": payload})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Timesheet.objects.exists())

    def test_invalid_json(self):
        self.assertEqual(self.post_json("timesheets:save_grid", None, raw="not json").status_code, 400)
        self.assertEqual(self.post_json("timesheets:save_grid", {"grid": {"entries": []}}).status_code, 400)
