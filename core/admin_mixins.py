# File: core/admin_mixins.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

import logging
from functools import wraps

from django.contrib import messages
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import HttpResponseRedirect
from django.urls import reverse

from core.utils.authz import is_in_group, scope_stores, user_role

admin_logger = logging.getLogger("pontaj.admin")

FEATURE_IMPORT_GROUP = "feature:import"
FEATURE_EXPORT_GROUP = "feature:export"
FEATURE_HISTORY_GROUP = "feature:history"


def _allowed(request, group_name: str) -> bool:
    u = request.user
    if not u.is_authenticated:
        return False
    if u.is_superuser:
        return True
    return bool(group_name) and is_in_group(u, group_name)


class ImportExportGuardMixin:
    """
    Hide Import/Export unless the user is in the feature group.
    For ImportExportModelAdmin subclasses. Superusers always allowed.
    """

    import_feature_group = FEATURE_IMPORT_GROUP
    export_feature_group = FEATURE_EXPORT_GROUP

    def has_import_permission(self, request, *args, **kwargs):
        if not getattr(super(), "has_import_permission", lambda *_a, **_k: True)(request, *args, **kwargs):
            return False
        return _allowed(request, self.import_feature_group)

    def has_export_permission(self, request, *args, **kwargs):
        if not getattr(super(), "has_export_permission", lambda *_a, **_k: True)(request, *args, **kwargs):
            return False
        return _allowed(request, self.export_feature_group)


class HistoryGuardMixin:
    """History button only for the feature:history group (superusers always)."""

    history_feature_group = FEATURE_HISTORY_GROUP

    def has_view_history_permission(self, request, obj=None):
        if not super().has_view_history_permission(request, obj):
            return False
        return _allowed(request, self.history_feature_group)


class StoreScopedAdminMixin:
    """
    Limit a changelist to the stores the user may see.
    `store_scope_field` is the lookup path to the Store ("" for Store itself).
    """

    store_scope_field = "store"

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        if user_role(request.user) is None:
            return qs.none()
        from stores.models import Store

        stores = scope_stores(request.user, Store.objects.all())
        if not self.store_scope_field:
            return qs.filter(pk__in=stores.values("pk"))
        return qs.filter(**{f"{self.store_scope_field}__in": stores})


def _change_url(admin_obj, obj):
    opts = admin_obj.model._meta
    return reverse(f"admin:{opts.app_label}_{opts.model_name}_change", args=[obj.pk])


def safe_admin_action(func):
    """
    Uniform error handling for django-object-actions change actions.

    PermissionDenied and ValidationError become an error message; anything
    else is logged with traceback and reported generically. Returning None
    redirects back to the change page.
    """
    @wraps(func)
    def wrapper(self, request, obj):
        try:
            result = func(self, request, obj)
        except PermissionDenied as e:
            self.message_user(request, str(e), level=messages.ERROR)
        except ValidationError as e:
            self.message_user(request, "; ".join(e.messages), level=messages.ERROR)
        except Exception as e:
            self.message_user(request, f"An error occurred: {e}", level=messages.ERROR)
            admin_logger.exception(
                f"Error in {self.__class__.__name__}.{func.__name__} for object {obj.pk}: {e}"
            )
        else:
            if result is not None:
                return result
        return HttpResponseRedirect(_change_url(self, obj))
    return wrapper


def log_deletions(admin_class):
    """Class decorator: log single and bulk deletes."""

    original_delete_model = admin_class.delete_model
    original_delete_queryset = admin_class.delete_queryset

    @wraps(original_delete_model)
    def delete_model_with_logging(self, request, obj):
        admin_logger.warning(
            f"User '{request.user.username}' deleted {obj._meta.verbose_name} #{obj.pk}: {str(obj)[:100]}"
        )
        return original_delete_model(self, request, obj)

    @wraps(original_delete_queryset)
    def delete_queryset_with_logging(self, request, queryset):
        admin_logger.warning(
            f"User '{request.user.username}' bulk deleted {queryset.count()} {queryset.model._meta.verbose_name_plural}"
        )
        return original_delete_queryset(self, request, queryset)

    admin_class.delete_model = delete_model_with_logging
    admin_class.delete_queryset = delete_queryset_with_logging
    return admin_class
