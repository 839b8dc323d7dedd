"""
Process-wide Firebase app handle.

The handle is created on first use, not at import time, so a missing
credential surfaces as a request error instead of a crash at startup.
"""

from __future__ import annotations

import logging
import threading

import firebase_admin
from firebase_admin import credentials

from transactions_backend.config import Settings, get_settings
from transactions_backend.errors import CredentialsError

logger = logging.getLogger(__name__)

_app: firebase_admin.App | None = None
_app_lock = threading.Lock()


def get_firebase_app(settings: Settings | None = None) -> firebase_admin.App:
    """Return the shared Firebase app, initializing it at most once."""
    global _app
    if _app is not None:
        return _app

    with _app_lock:
        if _app is not None:
            return _app
        _app = _initialize(settings or get_settings())
    return _app


def _initialize(settings: Settings) -> firebase_admin.App:
    try:
        existing = firebase_admin.get_app()
    except ValueError:
        existing = None
    if existing is not None:
        logger.info("Reusing already-initialized Firebase app %s", existing.name)
        return existing

    info = settings.service_account_info()
    shape = (
        "base64 service account"
        if settings.firebase_service_account_base64
        else "discrete service account fields"
    )
    try:
        cert = credentials.Certificate(info)
    except (ValueError, KeyError) as exc:
        raise CredentialsError(f"Invalid Firebase service account: {exc}") from exc

    app = firebase_admin.initialize_app(cert)
    logger.info(
        "Initialized Firebase app for project %s using %s",
        info.get("project_id"),
        shape,
    )
    return app


def reset_firebase_app() -> None:
    """Forget the cached handle. Tests only; the SDK app itself is left alone."""
    global _app
    with _app_lock:
        _app = None
