"""
Sync Django groups & model permissions from the ACL YAML (idempotent).

Usage:
  python manage.py bootstrap_acls --dry-run
  python manage.py bootstrap_acls
  python manage.py bootstrap_acls --file /custom/access.yaml
"""
# File: core/management/commands/bootstrap_acls.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from pathlib import Path
from typing import Dict, List, Set

import yaml
from django.apps import apps
from django.contrib.auth.models import Group, Permission
from django.contrib.contenttypes.models import ContentType
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from core.utils.authz import acl_path, refresh_acl_cache

PERM_KINDS = {"view", "add", "change", "delete"}


def get_model(label: str):
    """'timesheets.Timesheet' -> model class"""
    try:
        return apps.get_model(label)
    except (LookupError, ValueError):
        raise CommandError(f"Unknown model label '{label}'. Use 'app_label.ModelName'.")


def perms_for_model(model, kinds: List[str]) -> List[Permission]:
    ct = ContentType.objects.get_for_model(model)
    out: List[Permission] = []
    for k in kinds:
        if k not in PERM_KINDS:
            raise CommandError(f"Unknown perm kind '{k}' for model {model._meta.label}.")
        codename = f"{k}_{model._meta.model_name}"
        try:
            out.append(Permission.objects.get(codename=codename, content_type=ct))
        except Permission.DoesNotExist:
            raise CommandError(f"Permission {ct.app_label}.{codename} does not exist. Did you run migrations?")
    return out


class Command(BaseCommand):
    help = "Create/refresh Django groups & permissions from the ACL YAML (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--file", "-f", default=None, help="Path to YAML file (default: settings.ACL_CONFIG_PATH)")
        parser.add_argument("--dry-run", action="store_true", help="Show planned changes without applying them.")

    def handle(self, *args, **opts):
        file_path = Path(opts["file"]) if opts["file"] else acl_path()
        dry = opts["dry_run"]

        if not file_path.exists():
            raise CommandError(f"ACL file not found: {file_path}")

        try:
            data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise CommandError(f"Invalid YAML in {file_path}: {e}")
        groups_cfg: Dict = data.get("groups") or {}
        if not groups_cfg:
            self.stdout.write(self.style.WARNING("No groups defined. Nothing to do."))
            return

        resolved: Dict[str, Set[Permission]] = {}

        def resolve_group(name: str, stack=None) -> Set[Permission]:
            stack = stack or []
            if name in resolved:
                return resolved[name]
            if name in stack:
                raise CommandError(f"Circular inheritance: {' > '.join(stack + [name])}")
            cfg = groups_cfg.get(name)
            if cfg is None:
                raise CommandError(f"Group '{name}' referenced but not defined.")
            cfg = cfg or {}

            perms: Set[Permission] = set()
            for parent in cfg.get("inherits") or []:
                perms |= resolve_group(parent, stack + [name])
            for model_label, kinds in (cfg.get("models") or {}).items():
                perms |= set(perms_for_model(get_model(model_label), kinds))
            resolved[name] = perms
            return perms

        for gname in groups_cfg:
            resolve_group(gname)

        with transaction.atomic():
            for gname, perms in resolved.items():
                group = Group.objects.filter(name=gname).first()
                current = set(group.permissions.all()) if group else set()
                add, remove = perms - current, current - perms

                if dry:
                    if group is None:
                        self.stdout.write(self.style.NOTICE(f"[DRY] Create group: {gname}"))
                    if add:
                        self.stdout.write(self.style.NOTICE(f"[DRY] Grant -> {gname}: {', '.join(sorted(p.codename for p in add))}"))
                    if remove:
                        self.stdout.write(self.style.NOTICE(f"[DRY] Revoke -> {gname}: {', '.join(sorted(p.codename for p in remove))}"))
                    continue

                group = group or Group.objects.create(name=gname)
                group.permissions.set(list(perms))
                self.stdout.write(self.style.SUCCESS(f"Synced group: {gname} ({len(perms)} perms)"))

        if dry:
            self.stdout.write(self.style.WARNING("Dry run complete. No changes applied."))
        else:
            refresh_acl_cache()
            self.stdout.write(self.style.SUCCESS(f"Bootstrap complete! {len(groups_cfg)} groups synced."))
