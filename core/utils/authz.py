# File: core/utils/authz.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19
"""
Role and store-scope checks.

Roles are Django groups named "role:<code>" that must also be declared in
config/access.yaml. Undeclared groups, a missing or broken ACL file, or an
anonymous user all deny (fail-closed).

Scope:
  HR             every store
  ASM            stores of the profile's zone
  STORE_MANAGER  the profile's own store
"""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Set

import yaml
from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.utils.translation import gettext as _

logger = logging.getLogger("pontaj.auth")

ROLE_HR = "HR"
ROLE_ASM = "ASM"
ROLE_STORE_MANAGER = "STORE_MANAGER"

# Highest privilege first
ROLE_ORDER = (ROLE_HR, ROLE_ASM, ROLE_STORE_MANAGER)


def acl_path() -> Path:
    return Path(getattr(settings, "ACL_CONFIG_PATH", Path(settings.BASE_DIR) / "config" / "access.yaml"))


@lru_cache(maxsize=1)
def _load_acl() -> Dict[str, Set[str]]:
    """
    Parse the ACL once. Structure returned: {"groups": {<declared group names>}}.
    An unreadable file yields no groups.
    """
    path = acl_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"ACL file {path} could not be loaded, denying all roles: {e}")
        return {"groups": set()}
    return {"groups": set((data.get("groups") or {}).keys())}


def _group_in_acl(name: str) -> bool:
    groups = _load_acl()["groups"]
    return bool(groups) and name in groups


def role_group(role: str) -> str:
    return f"role:{role.lower()}"


def is_in_group(user, group_name: str) -> bool:
    """User is in the Django group *and* the group is declared in the ACL."""
    if not (user and user.is_authenticated):
        return False
    if not _group_in_acl(group_name):
        return False
    return user.groups.filter(name=group_name).exists()


def has_role(user, role: str) -> bool:
    return is_in_group(user, role_group(role))


def user_role(user) -> Optional[str]:
    """Strongest role held by `user`; superusers count as HR."""
    if user and user.is_authenticated and user.is_superuser:
        return ROLE_HR
    for role in ROLE_ORDER:
        if has_role(user, role):
            return role
    return None


def is_hr(user) -> bool:
    return user_role(user) == ROLE_HR


def can_delegate(user) -> bool:
    return user_role(user) in (ROLE_HR, ROLE_ASM)


def _profile(user):
    return getattr(user, "pontaj_profile", None) if user and user.is_authenticated else None


def can_access_store(user, store) -> bool:
    role = user_role(user)
    if role == ROLE_HR:
        return True
    profile = _profile(user)
    if profile is None or store is None:
        return False
    if role == ROLE_ASM:
        return profile.zone_id is not None and store.zone_id == profile.zone_id
    if role == ROLE_STORE_MANAGER:
        return profile.store_id is not None and store.pk == profile.store_id
    return False


def scope_stores(user, queryset):
    """Restrict a Store queryset to what `user` may see."""
    role = user_role(user)
    if role == ROLE_HR:
        return queryset
    profile = _profile(user)
    if profile is None:
        return queryset.none()
    if role == ROLE_ASM and profile.zone_id:
        return queryset.filter(zone_id=profile.zone_id)
    if role == ROLE_STORE_MANAGER and profile.store_id:
        return queryset.filter(pk=profile.store_id)
    return queryset.none()


def require_store_access(user, store) -> None:
    if not can_access_store(user, store):
        logger.warning(f"User '{getattr(user, 'username', '?')}' denied access to store {getattr(store, 'pk', None)}")
        raise PermissionDenied(_("You do not have access to this store."))


def refresh_acl_cache() -> None:
    """Call after changing access.yaml at runtime."""
    _load_acl.cache_clear()
