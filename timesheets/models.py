# File: timesheets/models.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.utils.translation import get_language
from django.utils.translation import gettext_lazy as _

from concurrency.fields import AutoIncVersionField
from simple_history.models import HistoricalRecords

from core.utils.periods import iter_dates
from stores.models import Store, Zone
from .rules import STATUS_UNSET, AbsenceTypeInfo


# ------------------------------
# helpers
# ------------------------------

# Western (Gregorian) Easter, anonymous Gregorian algorithm
def easter_date(year: int) -> date:
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


# Orthodox Easter (Meeus Julian algorithm, shifted to the Gregorian calendar; valid 1900-2099)
def orthodox_easter_date(year: int) -> date:
    a = year % 4
    b = year % 7
    c = year % 19
    d = (19 * c + 15) % 30
    e = (2 * a + 4 * b - d + 34) % 7
    month = (d + e + 114) // 31
    day = ((d + e + 114) % 31) + 1
    return date(year, month, day) + timedelta(days=13)


# ------------------------------
# Absence catalog
# ------------------------------

class AbsenceTypeQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True).order_by("sort_order", "code")


class AbsenceType(models.Model):
    """
    A non-working status selectable in the grid.

    requires_hours=False: full-day absence, always counted as a full working day.
    requires_hours=True:  partial absence, the worked hours are entered explicitly.
    """
    code = models.CharField(
        _("Code"),
        max_length=20,
        validators=[RegexValidator(r"^[A-Za-z0-9_]+$", _("Letters, digits and underscores only."))],
        help_text=_("Short code stored in timesheets, e.g. CO, CM, dispensa."),
    )
    name = models.CharField(_("Name"), max_length=120)
    description = models.TextField(_("Description"), blank=True)
    requires_hours = models.BooleanField(
        _("Requires hours"),
        default=False,
        help_text=_("Partial absence: the worked hours must be entered. Otherwise the day counts as a full day."),
    )
    color_class = models.CharField(_("Color class"), max_length=120, blank=True)
    sort_order = models.PositiveSmallIntegerField(_("Sort order"), default=0)
    is_active = models.BooleanField(_("Active"), default=True)

    created_at = models.DateTimeField(_("Created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)

    history = HistoricalRecords()

    objects = AbsenceTypeQuerySet.as_manager()

    class Meta:
        verbose_name = _("Absence type")
        verbose_name_plural = _("Absence types")
        ordering = ["sort_order", "code"]
        constraints = [
            models.UniqueConstraint(
                fields=["code"],
                condition=models.Q(is_active=True),
                name="uq_absencetype_active_code",
            )
        ]

    def __str__(self) -> str:
        return f"{self.code} – {self.name}"

    def clean(self):
        super().clean()
        errors = {}
        if (self.code or "").strip().lower() == STATUS_UNSET:
            errors["code"] = _("'%(code)s' is reserved for unset cells.") % {"code": STATUS_UNSET}
        elif self.is_active and self.code:
            clash = AbsenceType.objects.filter(code=self.code, is_active=True).exclude(pk=self.pk).exists()
            if clash:
                errors["code"] = _("Another active absence type already uses this code.")
        if errors:
            raise ValidationError(errors)

    def as_info(self) -> AbsenceTypeInfo:
        return AbsenceTypeInfo(
            code=self.code,
            name=self.name,
            requires_hours=self.requires_hours,
            color_class=self.color_class,
            sort_order=self.sort_order,
            is_active=self.is_active,
            description=self.description,
        )


# ------------------------------
# Holiday calendar
# ------------------------------

class HolidayCalendar(models.Model):
    """
    Rules per line:
      - MM-DD | EN | RO          → fixed every year (e.g. 12-01 | National Day | Ziua Națională)
      - PASCHA±N | EN | RO       → Orthodox Easter ± N days (e.g. PASCHA+1 | Easter Monday | A doua zi de Paște)
      - EASTER±N | EN | RO       → Western Easter ± N days
      - YYYY-MM-DD | EN | RO     → one-off

    With a single label it is used for both languages.
    """
    name = models.CharField(_("Name"), max_length=120, unique=True)
    is_active = models.BooleanField(_("Active"), default=False, help_text=_("Use this calendar by default."))
    rules_text = models.TextField(
        _("Rules"),
        blank=True,
        help_text=_(
            "One per line. Examples:\n"
            "  01-01 | New Year | Anul Nou\n"
            "  PASCHA+1 | Easter Monday | A doua zi de Paște\n"
            "  2025-01-06 | Epiphany | Boboteaza\n"
        ),
    )

    created_at = models.DateTimeField(_("Created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)

    history = HistoricalRecords()

    class Meta:
        verbose_name = _("Holiday calendar")
        verbose_name_plural = _("Holiday calendars")
        constraints = [
            models.UniqueConstraint(
                fields=["is_active"],
                condition=models.Q(is_active=True),
                name="uq_holidaycalendar_single_active",
            )
        ]

    def clean(self):
        errors = {}
        if self.is_active:
            if HolidayCalendar.objects.filter(is_active=True).exclude(pk=self.pk).exists():
                errors["is_active"] = _(
                    "Another holiday calendar is already active. Deactivate it first or uncheck this field."
                )
        if errors:
            raise ValidationError(errors)

    def __str__(self) -> str:
        return self.name

    @dataclass(frozen=True)
    class _Rule:
        kind: str                 # 'FIXED' | 'EASTER' | 'PASCHA' | 'ONEOFF'
        month: int | None
        day: int | None
        offset: int
        date: date | None
        label_en: str
        label_ro: str

    def _parse_rules(self) -> list["HolidayCalendar._Rule"]:
        rules: list[HolidayCalendar._Rule] = []
        for raw in (self.rules_text or "").splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            parts = [p.strip() for p in line.split("|")]
            key = parts[0]
            if not key:
                continue
            label_en = parts[1] if len(parts) >= 2 else ""
            label_ro = parts[2] if len(parts) >= 3 else label_en

            m_one = re.fullmatch(r"(\d{4})-(\d{2})-(\d{2})", key)
            if m_one:
                try:
                    dt = date(*map(int, m_one.groups()))
                except ValueError:
                    continue
                rules.append(self._Rule("ONEOFF", None, None, 0, dt, label_en, label_ro))
                continue

            m_fix = re.fullmatch(r"(\d{2})-(\d{2})", key)
            if m_fix:
                m, d = map(int, m_fix.groups())
                if 1 <= m <= 12 and 1 <= d <= 31:
                    rules.append(self._Rule("FIXED", m, d, 0, None, label_en, label_ro))
                continue

            m_e = re.fullmatch(r"(EASTER|PASCHA)([+-]\d+)?", key, flags=re.IGNORECASE)
            if m_e:
                rules.append(self._Rule(m_e.group(1).upper(), None, None, int(m_e.group(2) or "0"), None, label_en, label_ro))
            # malformed lines are ignored
        return rules

    def _rule_date(self, rule: "HolidayCalendar._Rule", year: int) -> date | None:
        if rule.kind == "FIXED":
            try:
                return date(year, rule.month, rule.day)  # type: ignore[arg-type]
            except ValueError:
                return None
        if rule.kind == "EASTER":
            return easter_date(year) + timedelta(days=rule.offset)
        if rule.kind == "PASCHA":
            return orthodox_easter_date(year) + timedelta(days=rule.offset)
        return rule.date if rule.date and rule.date.year == year else None

    def holidays_for_year(self, year: int) -> set[date]:
        return {dt for r in self._parse_rules() if (dt := self._rule_date(r, year)) is not None}

    def holidays_for_year_labeled(self, year: int, lang: str | None = None) -> dict[date, str]:
        code = (lang or get_language() or "en").lower()
        out: dict[date, str] = {}
        for r in self._parse_rules():
            dt = self._rule_date(r, year)
            if dt is None:
                continue
            out[dt] = (r.label_ro or r.label_en) if code.startswith("ro") else (r.label_en or r.label_ro)
        return out

    def holidays_between(self, start: date, end: date) -> set[date]:
        days: set[date] = set()
        for year in range(start.year, end.year + 1):
            days |= self.holidays_for_year(year)
        return {d for d in days if start <= d <= end}

    @classmethod
    def get_active(cls) -> "HolidayCalendar | None":
        return cls.objects.filter(is_active=True).first()


def public_holidays(start: date, end: date) -> set[date]:
    cal = HolidayCalendar.get_active()
    return cal.holidays_between(start, end) if cal else set()


# ------------------------------
# Timesheet
# ------------------------------

class Timesheet(models.Model):
    """One store's grid for one pay period; the grid itself lives in `daily_entries`."""
    store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name="timesheets", verbose_name=_("Store"))
    zone = models.ForeignKey(Zone, on_delete=models.PROTECT, related_name="timesheets", verbose_name=_("Zone"), editable=False)
    period_start = models.DateField(_("Period start"))
    period_end = models.DateField(_("Period end"))

    daily_entries = models.JSONField(_("Daily entries"), default=dict, blank=True)
    total_hours = models.DecimalField(
        _("Total hours"), max_digits=8, decimal_places=2, default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    employee_count = models.PositiveIntegerField(_("Employees"), default=0)
    grid_title = models.CharField(_("Title"), max_length=200, blank=True)
    notes = models.TextField(_("Notes"), blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="timesheets_created", verbose_name=_("Created by"),
    )
    created_at = models.DateTimeField(_("Created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)

    version = AutoIncVersionField()
    history = HistoricalRecords()

    class Meta:
        verbose_name = _("Timesheet")
        verbose_name_plural = _("Timesheets")
        ordering = ["-period_start", "store__name"]
        constraints = [
            models.CheckConstraint(condition=models.Q(period_end__gte=models.F("period_start")), name="ck_timesheet_period"),
        ]
        indexes = [
            models.Index(fields=["store", "period_start"], name="ix_timesheet_store_start"),
        ]

    def __str__(self) -> str:
        return self.grid_title or f"{self.store} · {self.period_start:%Y-%m-%d} – {self.period_end:%Y-%m-%d}"

    @property
    def period_days(self) -> list[date]:
        return list(iter_dates(self.period_start, self.period_end))

    def clean(self):
        from .duplication import check_duplicate
        from .validation import validate_period

        super().clean()
        errors = {}
        if self.period_start and self.period_end:
            result = validate_period(self.period_start, self.period_end)
            if not result.is_valid:
                errors["period_end"] = result.message
            elif self.store_id:
                verdict = check_duplicate(self.store_id, self.period_start, self.period_end, exclude_id=self.pk)
                if verdict.has_duplicate:
                    errors["period_start"] = verdict.message
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        if self.store_id:
            self.zone_id = Store.objects.values_list("zone_id", flat=True).get(pk=self.store_id)
        super().save(*args, **kwargs)
