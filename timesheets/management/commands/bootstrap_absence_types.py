"""Bootstrap the absence catalog and holiday calendars from YAML (idempotent)."""
# File: timesheets/management/commands/bootstrap_absence_types.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from pathlib import Path

import yaml
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from timesheets.models import AbsenceType, HolidayCalendar

FIXTURE_NAME = "absence_types.yaml"

ABSENCE_FIELDS = ("name", "description", "requires_hours", "color_class", "sort_order", "is_active")
ABSENCE_DEFAULTS = {
    "description": "",
    "requires_hours": False,
    "color_class": "",
    "sort_order": 0,
    "is_active": True,
}


def get_fixture_path(filename: str) -> Path:
    """BOOTSTRAP_DATA_DIR wins when it holds the file, else the app's fixtures/."""
    data_dir = getattr(settings, "BOOTSTRAP_DATA_DIR", None)
    if data_dir and (Path(data_dir) / filename).exists():
        return Path(data_dir) / filename
    return Path(__file__).parent.parent.parent / "fixtures" / filename


class Command(BaseCommand):
    help = "Create/refresh absence types and holiday calendars from YAML (idempotent)"

    def add_arguments(self, parser):
        parser.add_argument("--file", "-f", default=None, help="Path to YAML file (default: auto-resolved from fixtures)")
        parser.add_argument("--dry-run", action="store_true")

    def handle(self, *args, **opts):
        file_path = Path(opts["file"]) if opts["file"] else get_fixture_path(FIXTURE_NAME)
        self.dry = opts["dry_run"]

        if not file_path.exists():
            raise CommandError(f"YAML file not found: {file_path}")
        try:
            data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise CommandError(f"Invalid YAML in {file_path}: {e}")

        types_cfg = data.get("absence_types") or []
        calendars_cfg = data.get("holiday_calendars") or []
        if not types_cfg and not calendars_cfg:
            self.stdout.write(self.style.WARNING("Nothing defined."))
            return

        self.counts = {"created": 0, "updated": 0, "unchanged": 0}
        with transaction.atomic():
            for item in types_cfg:
                self._sync_absence_type(item)
            for item in calendars_cfg:
                self._sync_calendar(item)

        summary = ", ".join(f"{n} {k}" for k, n in self.counts.items() if n)
        if self.dry:
            self.stdout.write(self.style.WARNING(f"\nDry run. {summary}. No changes applied."))
        else:
            self.stdout.write(self.style.SUCCESS(f"\nBootstrap complete! {summary}."))

    def _apply(self, label: str, obj, values: dict, creating: bool):
        changed = {k: v for k, v in values.items() if getattr(obj, k) != v}
        if not creating and not changed:
            self.counts["unchanged"] += 1
            return
        key = "created" if creating else "updated"
        self.counts[key] += 1
        if self.dry:
            self.stdout.write(self.style.NOTICE(f"[DRY] {key[:-1].capitalize()}: {label}"))
            return
        for k, v in changed.items():
            setattr(obj, k, v)
        try:
            obj.full_clean()
        except ValidationError as e:
            raise CommandError(f"Invalid {label}: {'; '.join(e.messages)}")
        obj.save()
        self.stdout.write(self.style.SUCCESS(f"{key.capitalize()}: {label}"))

    def _sync_absence_type(self, item: dict):
        code = (item or {}).get("code")
        if not code:
            raise CommandError(f"Missing 'code' in: {item}")
        values = {f: item.get(f, ABSENCE_DEFAULTS.get(f)) for f in ABSENCE_FIELDS}
        if not values["name"]:
            raise CommandError(f"Missing 'name' for absence type {code}")
        values["description"] = values["description"] or ""
        values["color_class"] = values["color_class"] or ""

        existing = AbsenceType.objects.filter(code=code).order_by("-is_active", "pk").first()
        obj = existing or AbsenceType(code=code)
        self._apply(f"absence type {code}", obj, values, creating=existing is None)

    def _sync_calendar(self, item: dict):
        name = (item or {}).get("name")
        if not name:
            raise CommandError(f"Missing 'name' in: {item}")
        values = {"is_active": bool(item.get("is_active", False)), "rules_text": item.get("rules", "") or ""}
        existing = HolidayCalendar.objects.filter(name=name).first()
        obj = existing or HolidayCalendar(name=name)
        self._apply(f"holiday calendar {name}", obj, values, creating=existing is None)
