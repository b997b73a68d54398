"""Expire auto-return delegations whose end date has passed. Run daily (cron)."""
# File: stores/management/commands/expire_delegations.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from stores.delegation import expire_delegations


class Command(BaseCommand):
    help = "Mark active auto-return delegations past their end date as expired"

    def add_arguments(self, parser):
        parser.add_argument("--date", default=None, help="Reference date YYYY-MM-DD (default: today)")
        parser.add_argument("--dry-run", action="store_true")

    def handle(self, *args, **opts):
        today = None
        if opts["date"]:
            try:
                today = date.fromisoformat(opts["date"])
            except ValueError:
                raise CommandError(f"Invalid --date: {opts['date']}")

        count = expire_delegations(today=today, dry_run=opts["dry_run"])
        if opts["dry_run"]:
            self.stdout.write(self.style.WARNING(f"Dry run. {count} delegation(s) would expire."))
        else:
            self.stdout.write(self.style.SUCCESS(f"{count} delegation(s) expired."))
