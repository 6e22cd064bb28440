"""Credential handling for API abilities."""

from __future__ import annotations

import base64
import logging

from playbill.config import ApiConfig, PlaybillConfigError
from playbill.models import AUTH_TYPES

logger = logging.getLogger("playbill.credentials")


def authorization_header(config: ApiConfig) -> str | None:
    """Build the ``Authorization`` header value for the configured auth type.

    Returns None for ``none`` auth, or when the credentials the chosen type
    needs are missing (a warning is logged so the gap is visible).
    """
    auth = config.auth_type
    if auth not in AUTH_TYPES:
        raise PlaybillConfigError(
            f"Unknown auth_type: {config.auth_type!r}\n\n"
            f"To fix: use one of {', '.join(AUTH_TYPES)}"
        )

    if auth == "bearer":
        if not (config.bearer_token or "").strip():
            logger.warning("auth_type=bearer but no bearer_token configured; sending no Authorization header")
            return None
        return f"Bearer {config.bearer_token}"

    if auth == "basic":
        if not (config.basic_user or "").strip() or not (config.basic_password or "").strip():
            logger.warning("auth_type=basic but basic_user/basic_password missing; sending no Authorization header")
            return None
        token = base64.b64encode(f"{config.basic_user}:{config.basic_password}".encode("utf-8")).decode("ascii")
        return f"Basic {token}"

    return None


def mask_key(key: str | None) -> str:
    """Mask a secret for display. Shows first 7 and last 3 chars."""
    if not key:
        return "-"
    if len(key) <= 10:
        return "***"
    return f"{key[:7]}...{key[-3:]}"
