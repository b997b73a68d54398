# stores/migrations/0001_initial.py
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import simple_history.models


HISTORY_TYPE_CHOICES = [("+", "Created"), ("~", "Changed"), ("-", "Deleted")]


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


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # Live tables
        migrations.CreateModel(
            name="Zone",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, unique=True, verbose_name="Name")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
            ],
            options={
                "verbose_name": "Zone",
                "verbose_name_plural": "Zones",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Store",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=160, verbose_name="Name")),
                ("code", models.CharField(help_text="Short store code, e.g. B012.", max_length=20, unique=True, verbose_name="Code")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                (
                    "zone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stores",
                        to="stores.zone",
                        verbose_name="Zone",
                    ),
                ),
            ],
            options={
                "verbose_name": "Store",
                "verbose_name_plural": "Stores",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["zone", "is_active"], name="ix_store_zone_active")],
            },
        ),
        migrations.CreateModel(
            name="Employee",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("full_name", models.CharField(max_length=200, verbose_name="Full name")),
                ("position", models.CharField(default="Staff", max_length=120, verbose_name="Position")),
                ("employee_code", models.CharField(blank=True, max_length=40, null=True, unique=True, verbose_name="Employee code")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="employees",
                        to="stores.store",
                        verbose_name="Home store",
                    ),
                ),
                (
                    "zone",
                    models.ForeignKey(
                        editable=False,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="employees",
                        to="stores.zone",
                        verbose_name="Zone",
                    ),
                ),
            ],
            options={
                "verbose_name": "Employee",
                "verbose_name_plural": "Employees",
                "ordering": ["full_name"],
                "indexes": [models.Index(fields=["store", "is_active"], name="ix_employee_store_active")],
            },
        ),
        migrations.CreateModel(
            name="Profile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pontaj_profile",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="User",
                    ),
                ),
                (
                    "zone",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="profiles",
                        to="stores.zone",
                        verbose_name="Zone",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="profiles",
                        to="stores.store",
                        verbose_name="Store",
                    ),
                ),
            ],
            options={
                "verbose_name": "Profile",
                "verbose_name_plural": "Profiles",
            },
        ),
        migrations.CreateModel(
            name="Delegation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("valid_from", models.DateField(verbose_name="Valid from")),
                ("valid_until", models.DateField(verbose_name="Valid until")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("active", "Active"), ("expired", "Expired"), ("revoked", "Revoked")],
                        default="active",
                        max_length=10,
                        verbose_name="Status",
                    ),
                ),
                ("auto_return", models.BooleanField(default=True, help_text="Expire automatically after the end date.", verbose_name="Return automatically")),
                ("extension_count", models.PositiveSmallIntegerField(default=0, editable=False, verbose_name="Extensions")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                (
                    "employee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delegations",
                        to="stores.employee",
                        verbose_name="Employee",
                    ),
                ),
                (
                    "from_store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delegations_out",
                        to="stores.store",
                        verbose_name="From store",
                    ),
                ),
                (
                    "to_store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delegations_in",
                        to="stores.store",
                        verbose_name="To store",
                    ),
                ),
                (
                    "from_zone",
                    models.ForeignKey(
                        editable=False,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="stores.zone",
                        verbose_name="From zone",
                    ),
                ),
                (
                    "to_zone",
                    models.ForeignKey(
                        editable=False,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="stores.zone",
                        verbose_name="To zone",
                    ),
                ),
                (
                    "delegated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="delegations_created",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Delegated by",
                    ),
                ),
            ],
            options={
                "verbose_name": "Delegation",
                "verbose_name_plural": "Delegations",
                "ordering": ["-valid_from", "-id"],
                "indexes": [
                    models.Index(fields=["employee", "status"], name="ix_delegation_emp_status"),
                    models.Index(fields=["status", "valid_until"], name="ix_delegation_status_until"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(valid_until__gte=models.F("valid_from")), name="ck_delegation_window"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Transfer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("transfer_date", models.DateField(verbose_name="Transfer date")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=10,
                        verbose_name="Status",
                    ),
                ),
                ("approved_at", models.DateTimeField(blank=True, null=True, verbose_name="Approved at")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="Completed at")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                (
                    "employee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfers",
                        to="stores.employee",
                        verbose_name="Employee",
                    ),
                ),
                (
                    "from_store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfers_out",
                        to="stores.store",
                        verbose_name="From store",
                    ),
                ),
                (
                    "to_store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfers_in",
                        to="stores.store",
                        verbose_name="To store",
                    ),
                ),
                (
                    "initiated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transfers_initiated",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Initiated by",
                    ),
                ),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transfers_approved",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Approved by",
                    ),
                ),
            ],
            options={
                "verbose_name": "Transfer",
                "verbose_name_plural": "Transfers",
                "ordering": ["-transfer_date", "-id"],
                "indexes": [models.Index(fields=["employee", "status"], name="ix_transfer_emp_status")],
            },
        ),

        # History tables for simple_history
        migrations.CreateModel(
            name="HistoricalEmployee",
            fields=[
                ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")),
                ("full_name", models.CharField(max_length=200, verbose_name="Full name")),
                ("position", models.CharField(default="Staff", max_length=120, verbose_name="Position")),
                ("employee_code", models.CharField(blank=True, db_index=True, max_length=40, null=True, verbose_name="Employee code")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="Updated at")),
                *history_fields(),
                ("store", history_fk("stores.store", "Home store")),
                ("zone", history_fk("stores.zone", "Zone", editable=False)),
            ],
            options=history_options("historical Employee", "historical Employees"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="HistoricalDelegation",
            fields=[
                ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")),
                ("valid_from", models.DateField(verbose_name="Valid from")),
                ("valid_until", models.DateField(verbose_name="Valid until")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("active", "Active"), ("expired", "Expired"), ("revoked", "Revoked")],
                        default="active",
                        max_length=10,
                        verbose_name="Status",
                    ),
                ),
                ("auto_return", models.BooleanField(default=True, help_text="Expire automatically after the end date.", verbose_name="Return automatically")),
                ("extension_count", models.PositiveSmallIntegerField(default=0, editable=False, verbose_name="Extensions")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="Updated at")),
                *history_fields(),
                ("employee", history_fk("stores.employee", "Employee")),
                ("from_store", history_fk("stores.store", "From store")),
                ("to_store", history_fk("stores.store", "To store")),
                ("from_zone", history_fk("stores.zone", "From zone", editable=False)),
                ("to_zone", history_fk("stores.zone", "To zone", editable=False)),
                ("delegated_by", history_fk(settings.AUTH_USER_MODEL, "Delegated by")),
            ],
            options=history_options("historical Delegation", "historical Delegations"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="HistoricalTransfer",
            fields=[
                ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")),
                ("transfer_date", models.DateField(verbose_name="Transfer date")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=10,
                        verbose_name="Status",
                    ),
                ),
                ("approved_at", models.DateTimeField(blank=True, null=True, verbose_name="Approved at")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="Completed at")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="Updated at")),
                *history_fields(),
                ("employee", history_fk("stores.employee", "Employee")),
                ("from_store", history_fk("stores.store", "From store")),
                ("to_store", history_fk("stores.store", "To store")),
                ("initiated_by", history_fk(settings.AUTH_USER_MODEL, "Initiated by")),
                ("approved_by", history_fk(settings.AUTH_USER_MODEL, "Approved by")),
            ],
            options=history_options("historical Transfer", "historical Transfers"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
