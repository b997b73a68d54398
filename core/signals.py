# File: core/signals.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

import logging

from django.contrib.auth.signals import user_logged_in, user_logged_out, user_login_failed
from django.dispatch import receiver

auth_logger = logging.getLogger("pontaj.auth")


def client_ip(request) -> str:
    if request is None:
        return "unknown"
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "unknown")


@receiver(user_logged_in)
def log_user_login(sender, request, user, **kwargs):
    auth_logger.info(f"User '{user.username}' logged in from {client_ip(request)}")


@receiver(user_logged_out)
def log_user_logout(sender, request, user, **kwargs):
    # user is None when the session had already expired
    name = getattr(user, "username", "anonymous")
    auth_logger.info(f"User '{name}' logged out")


@receiver(user_login_failed)
def log_user_login_failed(sender, credentials, request=None, **kwargs):
    username = credentials.get("username", "unknown")
    auth_logger.warning(f"Failed login attempt for '{username}' from {client_ip(request)}")
