# File: stores/models.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations

from datetime import date, timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from simple_history.models import HistoricalRecords

DEFAULT_POSITION = "Staff"


# ------------------------------
# Zones & stores
# ------------------------------

class Zone(models.Model):
    name = models.CharField(_("Name"), max_length=120, unique=True)
    is_active = models.BooleanField(_("Active"), default=True)

    created_at = models.DateTimeField(_("Created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)

    class Meta:
        verbose_name = _("Zone")
        verbose_name_plural = _("Zones")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Store(models.Model):
    zone = models.ForeignKey(Zone, on_delete=models.PROTECT, related_name="stores", verbose_name=_("Zone"))
    name = models.CharField(_("Name"), max_length=160)
    code = models.CharField(_("Code"), max_length=20, unique=True, help_text=_("Short store code, e.g. B012."))
    is_active = models.BooleanField(_("Active"), default=True)

    created_at = models.DateTimeField(_("Created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)

    class Meta:
        verbose_name = _("Store")
        verbose_name_plural = _("Stores")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["zone", "is_active"], name="ix_store_zone_active"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


# ------------------------------
# Employees & profiles
# ------------------------------

class Employee(models.Model):
    """An employee with a home store. Delegations move them temporarily."""
    full_name = models.CharField(_("Full name"), max_length=200)
    position = models.CharField(_("Position"), max_length=120, default=DEFAULT_POSITION)
    employee_code = models.CharField(_("Employee code"), max_length=40, unique=True, null=True, blank=True)
    store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name="employees", verbose_name=_("Home store"))
    zone = models.ForeignKey(Zone, on_delete=models.PROTECT, related_name="employees", verbose_name=_("Zone"), editable=False)
    is_active = models.BooleanField(_("Active"), default=True)

    created_at = models.DateTimeField(_("Created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)

    history = HistoricalRecords()

    class Meta:
        verbose_name = _("Employee")
        verbose_name_plural = _("Employees")
        ordering = ["full_name"]
        indexes = [
            models.Index(fields=["store", "is_active"], name="ix_employee_store_active"),
        ]

    def __str__(self) -> str:
        return self.full_name

    def save(self, *args, **kwargs):
        # zone always follows the home store
        if self.store_id:
            self.zone_id = Store.objects.values_list("zone_id", flat=True).get(pk=self.store_id)
        super().save(*args, **kwargs)


class Profile(models.Model):
    """Scope of a back-office user. The role itself is a group (see core.utils.authz)."""
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="pontaj_profile", verbose_name=_("User")
    )
    zone = models.ForeignKey(Zone, on_delete=models.SET_NULL, null=True, blank=True, related_name="profiles", verbose_name=_("Zone"))
    store = models.ForeignKey(Store, on_delete=models.SET_NULL, null=True, blank=True, related_name="profiles", verbose_name=_("Store"))

    class Meta:
        verbose_name = _("Profile")
        verbose_name_plural = _("Profiles")

    def __str__(self) -> str:
        return str(self.user)

    def clean(self):
        errors = {}
        if self.store_id and self.zone_id and self.store.zone_id != self.zone_id:
            errors["store"] = _("Store must belong to the selected zone.")
        if errors:
            raise ValidationError(errors)


# ------------------------------
# Delegations
# ------------------------------

class Delegation(models.Model):
    """Temporary assignment of an employee to another store."""

    MAX_DAYS = 90
    MAX_EXTENSIONS = 3

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        ACTIVE = "active", _("Active")
        EXPIRED = "expired", _("Expired")
        REVOKED = "revoked", _("Revoked")

    employee = models.ForeignKey(Employee, on_delete=models.PROTECT, related_name="delegations", verbose_name=_("Employee"))
    from_store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name="delegations_out", verbose_name=_("From store"))
    to_store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name="delegations_in", verbose_name=_("To store"))
    from_zone = models.ForeignKey(Zone, on_delete=models.PROTECT, related_name="+", verbose_name=_("From zone"), editable=False)
    to_zone = models.ForeignKey(Zone, on_delete=models.PROTECT, related_name="+", verbose_name=_("To zone"), editable=False)
    delegated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="delegations_created", verbose_name=_("Delegated by"),
    )
    valid_from = models.DateField(_("Valid from"))
    valid_until = models.DateField(_("Valid until"))
    status = models.CharField(_("Status"), max_length=10, choices=Status.choices, default=Status.ACTIVE)
    auto_return = models.BooleanField(_("Return automatically"), default=True, help_text=_("Expire automatically after the end date."))
    extension_count = models.PositiveSmallIntegerField(_("Extensions"), default=0, editable=False)
    notes = models.TextField(_("Notes"), blank=True)

    created_at = models.DateTimeField(_("Created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)

    history = HistoricalRecords()

    class Meta:
        verbose_name = _("Delegation")
        verbose_name_plural = _("Delegations")
        ordering = ["-valid_from", "-id"]
        constraints = [
            models.CheckConstraint(condition=models.Q(valid_until__gte=models.F("valid_from")), name="ck_delegation_window"),
        ]
        indexes = [
            models.Index(fields=["employee", "status"], name="ix_delegation_emp_status"),
            models.Index(fields=["status", "valid_until"], name="ix_delegation_status_until"),
        ]

    def __str__(self) -> str:
        return f"{self.employee} → {self.to_store} ({self.valid_from} – {self.valid_until})"

    @property
    def duration_days(self) -> int:
        return (self.valid_until - self.valid_from).days + 1

    def covers(self, start: date, end: date) -> bool:
        return self.valid_from <= end and start <= self.valid_until

    def clean(self):
        super().clean()
        errors = {}
        if self.employee_id and not self.from_store_id:
            self.from_store_id = self.employee.store_id
        if self.from_store_id and self.to_store_id and self.from_store_id == self.to_store_id:
            errors["to_store"] = _("Cannot delegate an employee to their current store.")
        if self.valid_from and self.valid_until:
            if self.valid_until < self.valid_from:
                errors["valid_until"] = _("End date must be on/after start date.")
            elif self.duration_days > self.MAX_DAYS:
                errors["valid_until"] = _("A delegation cannot exceed %(days)s days.") % {"days": self.MAX_DAYS}
        if self.status == self.Status.ACTIVE and self.employee_id and self.valid_from and self.valid_until:
            overlapping = Delegation.objects.filter(
                employee_id=self.employee_id,
                status=self.Status.ACTIVE,
                valid_from__lte=self.valid_until,
                valid_until__gte=self.valid_from,
            ).exclude(pk=self.pk).exists()
            if overlapping:
                errors["employee"] = _("Employee already has an active delegation in this period.")
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        if self.employee_id and not self.from_store_id:
            self.from_store_id = self.employee.store_id
        if self.from_store_id:
            self.from_zone_id = Store.objects.values_list("zone_id", flat=True).get(pk=self.from_store_id)
        if self.to_store_id:
            self.to_zone_id = Store.objects.values_list("zone_id", flat=True).get(pk=self.to_store_id)
        super().save(*args, **kwargs)

    # ---- lifecycle ----
    def extend(self, new_until: date) -> None:
        if self.status != self.Status.ACTIVE:
            raise ValidationError(_("Only active delegations can be extended."))
        if self.extension_count >= self.MAX_EXTENSIONS:
            raise ValidationError(_("Maximum number of extensions reached."))
        if new_until <= self.valid_until:
            raise ValidationError(_("The new end date must be after the current one."))
        if (new_until - self.valid_from).days + 1 > self.MAX_DAYS:
            raise ValidationError(_("A delegation cannot exceed %(days)s days.") % {"days": self.MAX_DAYS})
        self.valid_until = new_until
        self.extension_count += 1
        self.save(update_fields=["valid_until", "extension_count", "updated_at"])

    def revoke(self) -> None:
        if self.status not in (self.Status.ACTIVE, self.Status.PENDING):
            raise ValidationError(_("Only active or pending delegations can be revoked."))
        self.status = self.Status.REVOKED
        self.save(update_fields=["status", "updated_at"])

    def is_expiring_soon(self, days: int = 7, today: date | None = None) -> bool:
        today = today or timezone.localdate()
        return self.status == self.Status.ACTIVE and today <= self.valid_until <= today + timedelta(days=days)


# ------------------------------
# Transfers
# ------------------------------

class Transfer(models.Model):
    """Permanent home-store change, effective once completed."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    employee = models.ForeignKey(Employee, on_delete=models.PROTECT, related_name="transfers", verbose_name=_("Employee"))
    from_store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name="transfers_out", verbose_name=_("From store"))
    to_store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name="transfers_in", verbose_name=_("To store"))
    transfer_date = models.DateField(_("Transfer date"))
    status = models.CharField(_("Status"), max_length=10, choices=Status.choices, default=Status.PENDING)
    initiated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="transfers_initiated", verbose_name=_("Initiated by"),
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="transfers_approved", verbose_name=_("Approved by"),
    )
    approved_at = models.DateTimeField(_("Approved at"), null=True, blank=True)
    completed_at = models.DateTimeField(_("Completed at"), null=True, blank=True)
    notes = models.TextField(_("Notes"), blank=True)

    created_at = models.DateTimeField(_("Created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)

    history = HistoricalRecords()

    class Meta:
        verbose_name = _("Transfer")
        verbose_name_plural = _("Transfers")
        ordering = ["-transfer_date", "-id"]
        indexes = [
            models.Index(fields=["employee", "status"], name="ix_transfer_emp_status"),
        ]

    def __str__(self) -> str:
        return f"{self.employee}: {self.from_store} → {self.to_store}"

    def clean(self):
        super().clean()
        errors = {}
        if self.employee_id and not self.from_store_id:
            self.from_store_id = self.employee.store_id
        if self.from_store_id and self.to_store_id and self.from_store_id == self.to_store_id:
            errors["to_store"] = _("Employee already belongs to this store.")
        if self._state.adding and self.employee_id:
            pending = Transfer.objects.filter(
                employee_id=self.employee_id, status__in=[self.Status.PENDING, self.Status.APPROVED]
            ).exists()
            if pending:
                errors["employee"] = _("Employee already has an open transfer.")
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        if self.employee_id and not self.from_store_id:
            self.from_store_id = self.employee.store_id
        super().save(*args, **kwargs)

    # ---- lifecycle ----
    def _require(self, *allowed):
        if self.status not in allowed:
            raise ValidationError(
                _("Transfer is %(status)s and cannot be changed this way.") % {"status": self.get_status_display()}
            )

    def approve(self, user) -> None:
        self._require(self.Status.PENDING)
        if user is not None and user.pk == self.initiated_by_id:
            raise ValidationError(_("You cannot approve a transfer you initiated."))
        self.status = self.Status.APPROVED
        self.approved_by = user
        self.approved_at = timezone.now()
        self.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])

    def reject(self, user) -> None:
        self._require(self.Status.PENDING)
        self.status = self.Status.REJECTED
        self.approved_by = user
        self.save(update_fields=["status", "approved_by", "updated_at"])

    def cancel(self) -> None:
        self._require(self.Status.PENDING, self.Status.APPROVED)
        self.status = self.Status.CANCELLED
        self.save(update_fields=["status", "updated_at"])

    def complete(self) -> None:
        """Move the employee to the new home store."""
        self._require(self.Status.APPROVED)
        with transaction.atomic():
            emp = Employee.objects.select_for_update().get(pk=self.employee_id)
            emp.store_id = self.to_store_id
            emp.save()
            self.status = self.Status.COMPLETED
            self.completed_at = timezone.now()
            self.save(update_fields=["status", "completed_at", "updated_at"])
