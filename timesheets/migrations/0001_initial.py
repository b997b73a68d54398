# timesheets/migrations/0001_initial.py
from decimal import Decimal

import concurrency.fields
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import simple_history.models


HISTORY_TYPE_CHOICES = [("+", "Created"), ("~", "Changed"), ("-", "Deleted")]

CODE_VALIDATOR = django.core.validators.RegexValidator("^[A-Za-z0-9_]+$", "Letters, digits and underscores only.")
RULES_HELP = (
    "One per line. Examples:\n"
    "  01-01 | New Year | Anul Nou\n"
    "  PASCHA+1 | Easter Monday | A doua zi de Paște\n"
    "  2025-01-06 | Epiphany | Boboteaza\n"
)


def history_fields():
    return [
        ("history_id", models.AutoField(primary_key=True, serialize=False)),
        ("history_date", models.DateTimeField(db_index=True)),
        ("history_change_reason", models.CharField(max_length=100, null=True)),
        ("history_type", models.CharField(choices=HISTORY_TYPE_CHOICES, max_length=1)),
        (
            "history_user",
            models.ForeignKey(
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]


def history_options(verbose_name, plural):
    return {
        "verbose_name": verbose_name,
        "verbose_name_plural": plural,
        "ordering": ("-history_date", "-history_id"),
        "get_latest_by": ("history_date", "history_id"),
    }


def history_fk(to, verbose_name, **extra):
    return models.ForeignKey(
        blank=True,
        null=True,
        db_constraint=False,
        on_delete=django.db.models.deletion.DO_NOTHING,
        related_name="+",
        to=to,
        verbose_name=verbose_name,
        **extra,
    )


def absence_type_fields():
    return [
        ("code", models.CharField(
            help_text="Short code stored in timesheets, e.g. CO, CM, dispensa.",
            max_length=20,
            validators=[CODE_VALIDATOR],
            verbose_name="Code",
        )),
        ("name", models.CharField(max_length=120, verbose_name="Name")),
        ("description", models.TextField(blank=True, verbose_name="Description")),
        ("requires_hours", models.BooleanField(
            default=False,
            help_text="Partial absence: the worked hours must be entered. Otherwise the day counts as a full day.",
            verbose_name="Requires hours",
        )),
        ("color_class", models.CharField(blank=True, max_length=120, verbose_name="Color class")),
        ("sort_order", models.PositiveSmallIntegerField(default=0, verbose_name="Sort order")),
        ("is_active", models.BooleanField(default=True, verbose_name="Active")),
    ]


def timesheet_fields():
    return [
        ("period_start", models.DateField(verbose_name="Period start")),
        ("period_end", models.DateField(verbose_name="Period end")),
        ("daily_entries", models.JSONField(blank=True, default=dict, verbose_name="Daily entries")),
        ("total_hours", models.DecimalField(
            decimal_places=2,
            default=Decimal("0.00"),
            max_digits=8,
            validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
            verbose_name="Total hours",
        )),
        ("employee_count", models.PositiveIntegerField(default=0, verbose_name="Employees")),
        ("grid_title", models.CharField(blank=True, max_length=200, verbose_name="Title")),
        ("notes", models.TextField(blank=True, verbose_name="Notes")),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("stores", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # Live tables
        migrations.CreateModel(
            name="AbsenceType",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *absence_type_fields(),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
            ],
            options={
                "verbose_name": "Absence type",
                "verbose_name_plural": "Absence types",
                "ordering": ["sort_order", "code"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(is_active=True),
                        fields=("code",),
                        name="uq_absencetype_active_code",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="HolidayCalendar",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, unique=True, verbose_name="Name")),
                ("is_active", models.BooleanField(default=False, help_text="Use this calendar by default.", verbose_name="Active")),
                ("rules_text", models.TextField(blank=True, help_text=RULES_HELP, verbose_name="Rules")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
            ],
            options={
                "verbose_name": "Holiday calendar",
                "verbose_name_plural": "Holiday calendars",
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(is_active=True),
                        fields=("is_active",),
                        name="uq_holidaycalendar_single_active",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Timesheet",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *timesheet_fields(),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("version", concurrency.fields.AutoIncVersionField(default=0, help_text="record revision number")),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="timesheets",
                        to="stores.store",
                        verbose_name="Store",
                    ),
                ),
                (
                    "zone",
                    models.ForeignKey(
                        editable=False,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="timesheets",
                        to="stores.zone",
                        verbose_name="Zone",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="timesheets_created",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Created by",
                    ),
                ),
            ],
            options={
                "verbose_name": "Timesheet",
                "verbose_name_plural": "Timesheets",
                "ordering": ["-period_start", "store__name"],
                "indexes": [models.Index(fields=["store", "period_start"], name="ix_timesheet_store_start")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(period_end__gte=models.F("period_start")), name="ck_timesheet_period"),
                ],
            },
        ),

        # History tables for simple_history
        migrations.CreateModel(
            name="HistoricalAbsenceType",
            fields=[
                ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")),
                *absence_type_fields(),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="Updated at")),
                *history_fields(),
            ],
            options=history_options("historical Absence type", "historical Absence types"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="HistoricalHolidayCalendar",
            fields=[
                ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")),
                ("name", models.CharField(db_index=True, max_length=120, verbose_name="Name")),
                ("is_active", models.BooleanField(default=False, help_text="Use this calendar by default.", verbose_name="Active")),
                ("rules_text", models.TextField(blank=True, help_text=RULES_HELP, verbose_name="Rules")),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="Updated at")),
                *history_fields(),
            ],
            options=history_options("historical Holiday calendar", "historical Holiday calendars"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="HistoricalTimesheet",
            fields=[
                ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")),
                *timesheet_fields(),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="Updated at")),
                ("version", concurrency.fields.AutoIncVersionField(default=0, help_text="record revision number")),
                *history_fields(),
                ("store", history_fk("stores.store", "Store")),
                ("zone", history_fk("stores.zone", "Zone", editable=False)),
                ("created_by", history_fk(settings.AUTH_USER_MODEL, "Created by")),
            ],
            options=history_options("historical Timesheet", "historical Timesheets"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
