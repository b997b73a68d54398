# File: stores/tests.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from datetime import date
from io import StringIO

from django.contrib.auth.models import Group, User
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.management import call_command
from django.test import TestCase, override_settings

from core.utils.authz import (
    ROLE_ASM,
    ROLE_HR,
    ROLE_STORE_MANAGER,
    can_access_store,
    can_delegate,
    refresh_acl_cache,
    require_store_access,
    scope_stores,
    user_role,
)
from stores.delegation import (
    active_delegation,
    delegations_for,
    effective_store_id,
    expire_delegations,
    resolve_grid_store,
)
from stores.models import Delegation, Employee, Profile, Store, Transfer, Zone
from timesheets.grid import new_grid


class StoresTestMixin:
    def setUp(self):
        self.north = Zone.objects.create(name="Nord")
        self.south = Zone.objects.create(name="Sud")
        self.store_a = Store.objects.create(zone=self.north, name="Magazin A", code="A01")
        self.store_b = Store.objects.create(zone=self.north, name="Magazin B", code="B01")
        self.store_c = Store.objects.create(zone=self.south, name="Magazin C", code="C01")
        self.ana = Employee.objects.create(full_name="Ana Pop", store=self.store_a)

    def delegate(self, to_store, start, end, **extra):
        return Delegation.objects.create(employee=self.ana, to_store=to_store, valid_from=start, valid_until=end, **extra)

    def user_with(self, username, group_name=None, **profile):
        user = User.objects.create_user(username, password="test")
        if group_name:
            group, _ = Group.objects.get_or_create(name=group_name)
            user.groups.add(group)
        if profile:
            Profile.objects.create(user=user, **profile)
        return user


# =========================
# Employees
# =========================

class EmployeeTest(StoresTestMixin, TestCase):

    def test_zone_follows_home_store(self):
        self.assertEqual(self.ana.zone, self.north)
        self.ana.store = self.store_c
        self.ana.save()
        self.assertEqual(self.ana.zone, self.south)

    def test_profile_store_must_be_in_zone(self):
        user = User.objects.create_user("x")
        with self.assertRaises(ValidationError):
            Profile(user=user, zone=self.south, store=self.store_a).full_clean()


# =========================
# Delegation resolution
# =========================

class DelegationResolutionTest(StoresTestMixin, TestCase):
    """Which store an employee's hours belong to."""

    def test_active_overlapping_delegation_moves_the_employee(self):
        d = self.delegate(self.store_b, date(2024, 3, 10), date(2024, 3, 20))
        self.assertEqual(effective_store_id(self.ana, date(2024, 3, 1), date(2024, 3, 31), [d]), self.store_b.pk)

    def test_home_store_otherwise(self):
        d = self.delegate(self.store_b, date(2024, 4, 1), date(2024, 4, 10))
        self.assertEqual(effective_store_id(self.ana, date(2024, 3, 1), date(2024, 3, 31), [d]), self.store_a.pk)
        self.assertEqual(effective_store_id(self.ana, date(2024, 3, 1), date(2024, 3, 31)), self.store_a.pk)

    def test_expired_or_revoked_delegations_are_ignored(self):
        for status in (Delegation.Status.EXPIRED, Delegation.Status.REVOKED, Delegation.Status.PENDING):
            with self.subTest(status=status):
                d = Delegation(employee=self.ana, to_store=self.store_b, status=status,
                               valid_from=date(2024, 3, 1), valid_until=date(2024, 3, 31))
                self.assertIsNone(active_delegation([d], self.ana.pk, date(2024, 3, 1), date(2024, 3, 31)))

    def test_latest_start_wins(self):
        early = self.delegate(self.store_b, date(2024, 3, 1), date(2024, 3, 10))
        late = self.delegate(self.store_c, date(2024, 3, 11), date(2024, 3, 20))
        found = active_delegation([late, early], self.ana.pk, date(2024, 3, 1), date(2024, 3, 31))
        self.assertEqual(found, late)

    def test_delegations_for_query(self):
        hit = self.delegate(self.store_b, date(2024, 3, 10), date(2024, 3, 20))
        self.delegate(self.store_c, date(2024, 5, 1), date(2024, 5, 5))
        self.assertEqual(delegations_for([self.ana.pk], date(2024, 3, 1), date(2024, 3, 31)), [hit])

    def test_grid_store(self):
        d = self.delegate(self.store_b, date(2024, 3, 1), date(2024, 3, 5))
        grid = new_grid(date(2024, 3, 1), date(2024, 3, 5), [(self.ana.pk, "Ana Pop", "Staff")])
        self.assertEqual(resolve_grid_store(grid, {str(self.ana.pk): self.ana}, [d]), self.store_b.pk)
        grid.store_id = str(self.store_c.pk)
        self.assertEqual(resolve_grid_store(grid, {str(self.ana.pk): self.ana}, [d]), str(self.store_c.pk))
        self.assertIsNone(resolve_grid_store(new_grid(date(2024, 3, 1), date(2024, 3, 5)), {}))


# =========================
# Delegation lifecycle
# =========================

class DelegationRulesTest(StoresTestMixin, TestCase):

    def test_from_store_and_zones_are_filled(self):
        d = self.delegate(self.store_c, date(2024, 3, 1), date(2024, 3, 10))
        self.assertEqual((d.from_store, d.from_zone, d.to_zone), (self.store_a, self.north, self.south))

    def test_cannot_delegate_to_home_store(self):
        d = Delegation(employee=self.ana, to_store=self.store_a, valid_from=date(2024, 3, 1), valid_until=date(2024, 3, 2))
        with self.assertRaises(ValidationError) as cm:
            d.clean()
        self.assertIn("to_store", cm.exception.message_dict)

    def test_ninety_day_limit(self):
        ok = Delegation(employee=self.ana, to_store=self.store_b, valid_from=date(2024, 1, 1), valid_until=date(2024, 3, 30))
        ok.clean()
        too_long = Delegation(employee=self.ana, to_store=self.store_b, valid_from=date(2024, 1, 1), valid_until=date(2024, 3, 31))
        with self.assertRaises(ValidationError):
            too_long.clean()

    def test_overlapping_active_delegation(self):
        self.delegate(self.store_b, date(2024, 3, 1), date(2024, 3, 10))
        d = Delegation(employee=self.ana, to_store=self.store_c, valid_from=date(2024, 3, 10), valid_until=date(2024, 3, 12))
        with self.assertRaises(ValidationError) as cm:
            d.clean()
        self.assertIn("employee", cm.exception.message_dict)

    def test_extend(self):
        d = self.delegate(self.store_b, date(2024, 3, 1), date(2024, 3, 10))
        d.extend(date(2024, 3, 17))
        d.refresh_from_db()
        self.assertEqual((d.valid_until, d.extension_count), (date(2024, 3, 17), 1))
        with self.assertRaises(ValidationError):
            d.extend(date(2024, 3, 15))
        with self.assertRaises(ValidationError):
            d.extend(date(2024, 6, 30))

    def test_extension_limit(self):
        d = self.delegate(self.store_b, date(2024, 3, 1), date(2024, 3, 10))
        for day in (11, 12, 13):
            d.extend(date(2024, 3, day))
        with self.assertRaises(ValidationError):
            d.extend(date(2024, 3, 14))

    def test_revoke(self):
        d = self.delegate(self.store_b, date(2024, 3, 1), date(2024, 3, 10))
        d.revoke()
        self.assertEqual(d.status, Delegation.Status.REVOKED)
        self.assertEqual(d.history.count(), 2)
        with self.assertRaises(ValidationError):
            d.revoke()
        with self.assertRaises(ValidationError):
            d.extend(date(2024, 3, 20))


class ExpireDelegationsTest(StoresTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.past = self.delegate(self.store_b, date(2024, 3, 1), date(2024, 3, 10))
        self.manual = self.delegate(self.store_c, date(2024, 3, 11), date(2024, 3, 12), auto_return=False)
        self.current = Delegation.objects.create(
            employee=Employee.objects.create(full_name="Ion", store=self.store_a),
            to_store=self.store_b, valid_from=date(2024, 3, 5), valid_until=date(2024, 3, 20),
        )

    def test_expires_only_past_auto_return(self):
        self.assertEqual(expire_delegations(today=date(2024, 3, 15)), 1)
        self.past.refresh_from_db()
        self.manual.refresh_from_db()
        self.current.refresh_from_db()
        self.assertEqual(self.past.status, Delegation.Status.EXPIRED)
        self.assertEqual(self.manual.status, Delegation.Status.ACTIVE)
        self.assertEqual(self.current.status, Delegation.Status.ACTIVE)

    def test_dry_run_counts_only(self):
        self.assertEqual(expire_delegations(today=date(2024, 3, 15), dry_run=True), 1)
        self.past.refresh_from_db()
        self.assertEqual(self.past.status, Delegation.Status.ACTIVE)

    def test_command(self):
        out = StringIO()
        call_command("expire_delegations", "--date", "2024-03-25", stdout=out)
        self.assertIn("2 delegation(s) expired", out.getvalue())
        self.assertFalse(Delegation.objects.filter(status=Delegation.Status.ACTIVE, auto_return=True).exists())


# =========================
# Transfers
# =========================

class TransferLifecycleTest(StoresTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.initiator = User.objects.create_user("asm")
        self.approver = User.objects.create_user("hr")
        self.transfer = Transfer.objects.create(
            employee=self.ana, to_store=self.store_c, transfer_date=date(2024, 4, 1), initiated_by=self.initiator,
        )

    def test_from_store_is_the_home_store(self):
        self.assertEqual(self.transfer.from_store, self.store_a)

    def test_cannot_approve_own_transfer(self):
        with self.assertRaises(ValidationError):
            self.transfer.approve(self.initiator)

    def test_complete_moves_employee(self):
        self.transfer.approve(self.approver)
        self.transfer.complete()
        self.ana.refresh_from_db()
        self.assertEqual((self.ana.store, self.ana.zone), (self.store_c, self.south))
        self.assertEqual(self.transfer.status, Transfer.Status.COMPLETED)
        self.assertIsNotNone(self.transfer.completed_at)

    def test_complete_requires_approval(self):
        with self.assertRaises(ValidationError):
            self.transfer.complete()

    def test_reject_and_cancel(self):
        self.transfer.reject(self.approver)
        self.assertEqual(self.transfer.status, Transfer.Status.REJECTED)
        with self.assertRaises(ValidationError):
            self.transfer.cancel()

    def test_one_open_transfer_per_employee(self):
        again = Transfer(employee=self.ana, to_store=self.store_b, transfer_date=date(2024, 5, 1))
        with self.assertRaises(ValidationError) as cm:
            again.clean()
        self.assertIn("employee", cm.exception.message_dict)


# =========================
# Roles & scope
# =========================

class AuthzScopeTest(StoresTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        refresh_acl_cache()
        self.hr = self.user_with("hr", "role:hr")
        self.asm = self.user_with("asm", "role:asm", zone=self.north)
        self.manager = self.user_with("manager", "role:store_manager", zone=self.north, store=self.store_b)
        self.rogue = self.user_with("rogue", "role:owner", zone=self.north)
        self.root = User.objects.create_superuser("root", password="test")

    def test_roles(self):
        self.assertEqual(user_role(self.hr), ROLE_HR)
        self.assertEqual(user_role(self.asm), ROLE_ASM)
        self.assertEqual(user_role(self.manager), ROLE_STORE_MANAGER)
        self.assertEqual(user_role(self.root), ROLE_HR)
        self.assertIsNone(user_role(self.rogue))

    def test_can_access_store(self):
        cases = [
            (self.hr, self.store_c, True),
            (self.asm, self.store_a, True),
            (self.asm, self.store_c, False),
            (self.manager, self.store_b, True),
            (self.manager, self.store_a, False),
            (self.rogue, self.store_a, False),
        ]
        for user, store, expected in cases:
            with self.subTest(user=user.username, store=store.code):
                self.assertEqual(can_access_store(user, store), expected)

    def test_scope_stores(self):
        qs = Store.objects.all()
        self.assertEqual(scope_stores(self.hr, qs).count(), 3)
        self.assertEqual(set(scope_stores(self.asm, qs)), {self.store_a, self.store_b})
        self.assertEqual(list(scope_stores(self.manager, qs)), [self.store_b])
        self.assertFalse(scope_stores(self.rogue, qs).exists())

    def test_can_delegate(self):
        self.assertTrue(can_delegate(self.hr))
        self.assertTrue(can_delegate(self.asm))
        self.assertFalse(can_delegate(self.manager))

    def test_require_store_access(self):
        with self.assertLogs("pontaj.auth", level="WARNING"):
            with self.assertRaises(PermissionDenied):
                require_store_access(self.manager, self.store_a)

    @override_settings(ACL_CONFIG_PATH="/nonexistent/access.yaml")
    def test_missing_acl_denies_everyone(self):
        refresh_acl_cache()
        try:
            with self.assertLogs("pontaj.auth", level="ERROR"):
                self.assertIsNone(user_role(self.hr))
            self.assertFalse(can_access_store(self.asm, self.store_a))
        finally:
            refresh_acl_cache()
