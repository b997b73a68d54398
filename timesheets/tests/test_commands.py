# File: timesheets/tests/test_commands.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from io import StringIO

from django.contrib.auth.models import Group
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from timesheets.models import AbsenceType, HolidayCalendar


def run(*args, **kwargs) -> str:
    out = StringIO()
    call_command(*args, stdout=out, **kwargs)
    return out.getvalue()


class BootstrapAbsenceTypesTest(TestCase):

    def test_creates_catalog_and_calendar(self):
        run("bootstrap_absence_types")
        self.assertEqual(
            set(AbsenceType.objects.values_list("code", flat=True)),
            {"CO", "CM", "CFP", "LP", "dispensa", "invoire"},
        )
        self.assertTrue(AbsenceType.objects.get(code="dispensa").requires_hours)
        self.assertFalse(AbsenceType.objects.get(code="CO").requires_hours)
        self.assertIsNotNone(HolidayCalendar.get_active())

    def test_second_run_changes_nothing(self):
        run("bootstrap_absence_types")
        snapshot = list(AbsenceType.objects.order_by("code").values())
        out = run("bootstrap_absence_types")

        self.assertEqual(list(AbsenceType.objects.order_by("code").values()), snapshot)
        self.assertEqual(AbsenceType.objects.count(), 6)
        self.assertEqual(HolidayCalendar.objects.count(), 1)
        self.assertIn("7 unchanged", out)

    def test_changed_row_is_updated(self):
        run("bootstrap_absence_types")
        AbsenceType.objects.filter(code="CO").update(name="Vacation")
        out = run("bootstrap_absence_types")
        self.assertEqual(AbsenceType.objects.get(code="CO").name, "Concediu de odihnă")
        self.assertIn("1 updated", out)

    def test_dry_run_writes_nothing(self):
        out = run("bootstrap_absence_types", "--dry-run")
        self.assertFalse(AbsenceType.objects.exists())
        self.assertIn("[DRY]", out)

    def test_missing_file(self):
        with self.assertRaises(CommandError):
            run("bootstrap_absence_types", "--file", "/nonexistent/absence_types.yaml")


class BootstrapAclsTest(TestCase):

    def test_creates_role_groups_with_inherited_permissions(self):
        run("bootstrap_acls")
        manager = Group.objects.get(name="role:store_manager")
        asm = Group.objects.get(name="role:asm")
        hr = Group.objects.get(name="role:hr")

        manager_perms = set(manager.permissions.values_list("codename", flat=True))
        asm_perms = set(asm.permissions.values_list("codename", flat=True))
        self.assertIn("change_timesheet", manager_perms)
        self.assertNotIn("add_delegation", manager_perms)
        self.assertTrue(manager_perms <= asm_perms)
        self.assertIn("add_delegation", asm_perms)
        self.assertIn("delete_timesheet", set(hr.permissions.values_list("codename", flat=True)))

    def test_idempotent(self):
        run("bootstrap_acls")
        run("bootstrap_acls")
        self.assertEqual(Group.objects.filter(name__startswith="role:").count(), 3)

    def test_dry_run_writes_nothing(self):
        run("bootstrap_acls", "--dry-run")
        self.assertFalse(Group.objects.exists())
