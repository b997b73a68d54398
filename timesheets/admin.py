# File: timesheets/admin.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

import logging
from decimal import Decimal

from concurrency.admin import ConcurrentModelAdmin
from django.contrib import admin, messages
from django.utils.html import format_html, format_html_join
from django.utils.translation import gettext_lazy as _
from django_object_actions import DjangoObjectActions
from import_export import resources
from import_export.admin import ImportExportModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from core.admin_mixins import (
    HistoryGuardMixin,
    ImportExportGuardMixin,
    StoreScopedAdminMixin,
    log_deletions,
    safe_admin_action,
)
from core.utils.authz import require_store_access
from .models import AbsenceType, HolidayCalendar, Timesheet, public_holidays
from .services import absence_catalog, grid_summary, load_grid
from .validation import validate_grid

logger = logging.getLogger("pontaj.timesheets")


# =========================
# Import–Export resources
# =========================

class AbsenceTypeResource(resources.ModelResource):
    class Meta:
        model = AbsenceType
        import_id_fields = ("code",)
        fields = ("code", "name", "description", "requires_hours", "color_class", "sort_order", "is_active")
        export_order = fields
        skip_unchanged = True


class HolidayCalendarResource(resources.ModelResource):
    class Meta:
        model = HolidayCalendar
        import_id_fields = ("name",)
        fields = ("name", "is_active", "rules_text")
        export_order = fields


class TimesheetResource(resources.ModelResource):
    class Meta:
        model = Timesheet
        fields = ("id", "store__code", "period_start", "period_end", "employee_count", "total_hours", "version")
        export_order = fields


# =========================
# Catalog admins
# =========================

@log_deletions
@admin.register(AbsenceType)
class AbsenceTypeAdmin(SimpleHistoryAdmin, ImportExportModelAdmin, ImportExportGuardMixin, HistoryGuardMixin):
    resource_classes = [AbsenceTypeResource]
    list_display = ("code", "name", "kind_label", "sort_order", "is_active")
    list_filter = ("is_active", "requires_hours")
    search_fields = ("code", "name")
    readonly_fields = ("created_at", "updated_at")
    fieldsets = (
        (_("Basics"), {"fields": ("code", "name", "description", "is_active")}),
        (_("Behaviour"), {"fields": ("requires_hours", "color_class", "sort_order")}),
        (_("System"), {"fields": ("created_at", "updated_at")}),
    )

    @admin.display(description=_("Kind"))
    def kind_label(self, obj):
        return _("Partial (hours)") if obj.requires_hours else _("Full day")


@log_deletions
@admin.register(HolidayCalendar)
class HolidayCalendarAdmin(SimpleHistoryAdmin, ImportExportModelAdmin, ImportExportGuardMixin, HistoryGuardMixin):
    resource_classes = [HolidayCalendarResource]
    list_display = ("name", "is_active", "updated_at")
    list_filter = ("is_active",)
    search_fields = ("name",)
    readonly_fields = ("created_at", "updated_at", "current_year_preview")
    fieldsets = (
        (_("Basics"), {"fields": ("name", "is_active")}),
        (_("Rules"), {"fields": ("rules_text", "current_year_preview")}),
        (_("System"), {"fields": ("created_at", "updated_at")}),
    )

    @admin.display(description=_("This year"))
    def current_year_preview(self, obj):
        from django.utils import timezone

        if not obj or not obj.pk:
            return "—"
        labeled = obj.holidays_for_year_labeled(timezone.localdate().year)
        if not labeled:
            return "—"
        return format_html(
            "<ul>{}</ul>",
            format_html_join("", "<li>{} · {}</li>", ((d.strftime("%d.%m.%Y"), label) for d, label in sorted(labeled.items()))),
        )


# =========================
# Timesheet admin
# =========================

@log_deletions
@admin.register(Timesheet)
class TimesheetAdmin(
    StoreScopedAdminMixin,
    SimpleHistoryAdmin,
    DjangoObjectActions,
    ImportExportModelAdmin,
    ConcurrentModelAdmin,
    ImportExportGuardMixin,
    HistoryGuardMixin,
):
    resource_classes = [TimesheetResource]
    list_display = ("__str__", "store", "zone", "period_start", "period_end", "employee_count", "total_hours", "updated_at")
    list_filter = ("zone", "store")
    search_fields = ("store__name", "store__code", "grid_title")
    date_hierarchy = "period_start"
    readonly_fields = (
        "zone", "daily_entries", "total_hours", "employee_count",
        "created_by", "created_at", "updated_at", "summary_preview", "validation_preview",
    )
    fieldsets = (
        (_("Scope"), {"fields": ("store", "zone", "period_start", "period_end", "grid_title")}),
        (_("Totals"), {"fields": ("summary_preview", "validation_preview", "total_hours", "employee_count")}),
        (_("Stored grid"), {"classes": ("collapse",), "fields": ("daily_entries",)}),
        (_("Notes"), {"fields": ("notes",)}),
        (_("System"), {"fields": ("version", "created_by", "created_at", "updated_at")}),
    )
    change_actions = ("recalculate_totals",)

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    @admin.display(description=_("Summary"))
    def summary_preview(self, obj):
        if not obj or not obj.pk:
            return _("— save first to see the summary —")
        catalog = absence_catalog()
        summary = grid_summary(load_grid(obj, catalog), catalog)
        rows = format_html_join(
            "",
            "<tr><td>{}</td><td style='text-align:right'>{}</td></tr>",
            ((entry_id, f"{hours:.2f}") for entry_id, hours in summary.per_employee.items()),
        )
        return format_html(
            "<div><strong>{}</strong> {} · <strong>{}</strong> {} · <strong>{}</strong> {}</div>"
            "<table><tbody>{}</tbody></table>",
            f"{summary.total_hours:.2f}", _("hours"),
            summary.employee_count, _("employees"),
            summary.working_days, _("working days"),
            rows,
        )

    @admin.display(description=_("Validation"))
    def validation_preview(self, obj):
        if not obj or not obj.pk:
            return "—"
        catalog = absence_catalog()
        grid = load_grid(obj, catalog)
        report = validate_grid(grid, catalog, public_holidays(obj.period_start, obj.period_end))
        if not report.errors and not report.warnings:
            return format_html("<span style='color:green'>{}</span>", _("No issues"))
        return format_html(
            "<ul>{}</ul>",
            format_html_join(
                "",
                "<li>{} · {} · {}</li>",
                ((issue.employee_name, issue.date, issue.message) for issue in [*report.errors, *report.warnings]),
            ),
        )

    @safe_admin_action
    def recalculate_totals(self, request, obj):
        require_store_access(request.user, obj.store)
        catalog = absence_catalog()
        summary = grid_summary(load_grid(obj, catalog), catalog)
        obj.total_hours = Decimal(str(summary.total_hours))
        obj.employee_count = summary.employee_count
        obj._history_user = request.user
        obj.save()
        logger.info(f"User '{request.user.username}' recalculated totals for timesheet {obj.pk}: {summary.total_hours}h")
        self.message_user(request, _("Totals recalculated."), level=messages.SUCCESS)
    recalculate_totals.label = _("Recalculate totals")
    recalculate_totals.attrs = {"class": "btn btn-block btn-info", "style": "margin-bottom: 1rem;"}
