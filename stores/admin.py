# File: stores/admin.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

import logging
from datetime import timedelta

from django.contrib import admin, messages
from django.core.exceptions import PermissionDenied
from django.utils.translation import gettext_lazy as _
from django_object_actions import DjangoObjectActions
from import_export import fields, resources
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget
from simple_history.admin import SimpleHistoryAdmin

from core.admin_mixins import (
    HistoryGuardMixin,
    ImportExportGuardMixin,
    StoreScopedAdminMixin,
    log_deletions,
    safe_admin_action,
)
from core.utils.authz import can_delegate, is_hr
from .delegation import expire_delegations
from .models import Delegation, Employee, Profile, Store, Transfer, Zone

logger = logging.getLogger("pontaj.stores")


# =========================
# Import–Export resources
# =========================

class StoreResource(resources.ModelResource):
    zone = fields.Field(attribute="zone", column_name="zone", widget=ForeignKeyWidget(Zone, field="name"))

    class Meta:
        model = Store
        import_id_fields = ("code",)
        fields = ("code", "name", "zone", "is_active")
        export_order = fields


class EmployeeResource(resources.ModelResource):
    store = fields.Field(attribute="store", column_name="store_code", widget=ForeignKeyWidget(Store, field="code"))

    class Meta:
        model = Employee
        import_id_fields = ("employee_code",)
        fields = ("employee_code", "full_name", "position", "store", "is_active")
        export_order = fields
        skip_unchanged = True
        report_skipped = True


# =========================
# Zones, stores, profiles
# =========================

@admin.register(Zone)
class ZoneAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "store_count")
    list_filter = ("is_active",)
    search_fields = ("name",)

    @admin.display(description=_("Stores"))
    def store_count(self, obj):
        return obj.stores.count()


@log_deletions
@admin.register(Store)
class StoreAdmin(StoreScopedAdminMixin, ImportExportGuardMixin, ImportExportModelAdmin):
    resource_classes = [StoreResource]
    store_scope_field = ""
    list_display = ("name", "code", "zone", "is_active")
    list_filter = ("zone", "is_active")
    search_fields = ("name", "code")


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "zone", "store")
    list_filter = ("zone",)
    search_fields = ("user__username", "user__email")
    autocomplete_fields = ("user",)


# =========================
# Employees
# =========================

@log_deletions
@admin.register(Employee)
class EmployeeAdmin(
    StoreScopedAdminMixin,
    SimpleHistoryAdmin,
    ImportExportGuardMixin,
    ImportExportModelAdmin,
    HistoryGuardMixin,
):
    resource_classes = [EmployeeResource]
    list_display = ("full_name", "employee_code", "position", "store", "zone", "is_active")
    list_filter = ("is_active", "zone", "store")
    search_fields = ("full_name", "employee_code")
    readonly_fields = ("zone", "created_at", "updated_at")
    fieldsets = (
        (_("Identity"), {"fields": ("full_name", "employee_code", "position", "is_active")}),
        (_("Assignment"), {"fields": ("store", "zone")}),
        (_("Record"), {"fields": ("created_at", "updated_at")}),
    )


# =========================
# Delegations & transfers
# =========================

@log_deletions
@admin.register(Delegation)
class DelegationAdmin(StoreScopedAdminMixin, SimpleHistoryAdmin, DjangoObjectActions, HistoryGuardMixin):
    store_scope_field = "to_store"
    list_display = ("employee", "from_store", "to_store", "valid_from", "valid_until", "status", "extension_count")
    list_filter = ("status", "auto_return", "to_zone")
    search_fields = ("employee__full_name", "from_store__name", "to_store__name")
    date_hierarchy = "valid_from"
    autocomplete_fields = ("employee",)
    readonly_fields = ("from_zone", "to_zone", "extension_count", "delegated_by", "created_at", "updated_at")
    change_actions = ("revoke_delegation", "extend_one_week")
    changelist_actions = ("run_expiry",)

    def has_add_permission(self, request):
        return super().has_add_permission(request) and can_delegate(request.user)

    def save_model(self, request, obj, form, change):
        if not change:
            obj.delegated_by = request.user
        super().save_model(request, obj, form, change)
        logger.info(f"User '{request.user.username}' saved delegation {obj.pk}: {obj}")

    @safe_admin_action
    def revoke_delegation(self, request, obj):
        if not can_delegate(request.user):
            raise PermissionDenied(_("You don't have permission to revoke delegations."))
        obj.revoke()
        logger.info(f"User '{request.user.username}' revoked delegation {obj.pk}")
        self.message_user(request, _("Delegation revoked."), level=messages.SUCCESS)
    revoke_delegation.label = _("Revoke")
    revoke_delegation.attrs = {"class": "btn btn-block btn-danger", "style": "margin-bottom: 1rem;"}

    @safe_admin_action
    def extend_one_week(self, request, obj):
        if not can_delegate(request.user):
            raise PermissionDenied(_("You don't have permission to extend delegations."))
        obj.extend(obj.valid_until + timedelta(days=7))
        self.message_user(
            request,
            _("Extended until %(date)s (%(n)s/%(max)s).") % {
                "date": obj.valid_until, "n": obj.extension_count, "max": Delegation.MAX_EXTENSIONS,
            },
            level=messages.SUCCESS,
        )
    extend_one_week.label = _("Extend by 7 days")
    extend_one_week.attrs = {"class": "btn btn-block btn-info", "style": "margin-bottom: 1rem;"}

    def run_expiry(self, request, queryset):
        count = expire_delegations()
        self.message_user(request, _("%(n)s delegation(s) expired.") % {"n": count}, level=messages.INFO)
    run_expiry.label = _("Expire overdue delegations")


@log_deletions
@admin.register(Transfer)
class TransferAdmin(StoreScopedAdminMixin, SimpleHistoryAdmin, DjangoObjectActions, HistoryGuardMixin):
    store_scope_field = "to_store"
    list_display = ("employee", "from_store", "to_store", "transfer_date", "status", "initiated_by", "approved_by")
    list_filter = ("status",)
    search_fields = ("employee__full_name",)
    autocomplete_fields = ("employee",)
    readonly_fields = ("status", "initiated_by", "approved_by", "approved_at", "completed_at", "created_at", "updated_at")
    change_actions = ("approve_transfer", "reject_transfer", "complete_transfer", "cancel_transfer")

    def save_model(self, request, obj, form, change):
        if not change:
            obj.initiated_by = request.user
        super().save_model(request, obj, form, change)

    def get_change_actions(self, request, object_id, form_url):
        actions = list(super().get_change_actions(request, object_id, form_url))
        obj = self.get_object(request, object_id)
        if obj is None:
            return actions
        allowed = {
            Transfer.Status.PENDING: {"approve_transfer", "reject_transfer", "cancel_transfer"},
            Transfer.Status.APPROVED: {"complete_transfer", "cancel_transfer"},
        }.get(obj.status, set())
        return [a for a in actions if a in allowed]

    def _require_hr(self, request):
        if not is_hr(request.user):
            raise PermissionDenied(_("Only HR can process transfers."))

    @safe_admin_action
    def approve_transfer(self, request, obj):
        self._require_hr(request)
        obj.approve(request.user)
        logger.info(f"User '{request.user.username}' approved transfer {obj.pk}")
        self.message_user(request, _("Transfer approved."), level=messages.SUCCESS)
    approve_transfer.label = _("Approve")

    @safe_admin_action
    def reject_transfer(self, request, obj):
        self._require_hr(request)
        obj.reject(request.user)
        logger.info(f"User '{request.user.username}' rejected transfer {obj.pk}")
        self.message_user(request, _("Transfer rejected."), level=messages.WARNING)
    reject_transfer.label = _("Reject")

    @safe_admin_action
    def complete_transfer(self, request, obj):
        self._require_hr(request)
        obj.complete()
        logger.info(f"User '{request.user.username}' completed transfer {obj.pk}: {obj.employee} now at {obj.to_store}")
        self.message_user(request, _("Transfer completed. Home store updated."), level=messages.SUCCESS)
    complete_transfer.label = _("Complete")

    @safe_admin_action
    def cancel_transfer(self, request, obj):
        obj.cancel()
        self.message_user(request, _("Transfer cancelled."), level=messages.INFO)
    cancel_transfer.label = _("Cancel")
