"""
Bearer credential extraction.

Auth cookies are checked first, then the Authorization header. Cookie values
may be a raw token, a JSON object with an "access_token" field, or that JSON
base64 encoded behind a "base64-" prefix.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Mapping, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

BASE64_PREFIX = "base64-"

LEGACY_COOKIE_NAMES = (
    "sb-access-token",
    "supabase.auth.token",
    "supabase-auth-token",
)


def auth_cookie_names(project_ref: Optional[str] = None) -> tuple:
    ref = project_ref if project_ref is not None else settings.AUTH_COOKIE_PROJECT_REF
    if ref:
        return (f"sb-{ref}-auth-token",) + LEGACY_COOKIE_NAMES
    return LEGACY_COOKIE_NAMES


def _decode_base64(value: str) -> Optional[str]:
    data = value[len(BASE64_PREFIX):]
    try:
        # cookies are frequently stored without padding
        return base64.b64decode(data + "=" * (-len(data) % 4)).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


def token_from_cookie_value(value: Optional[str]) -> Optional[str]:
    """Pull the access token out of an auth cookie value."""
    if not value:
        return None

    if value.startswith(BASE64_PREFIX):
        decoded = _decode_base64(value)
        if decoded is None:
            logger.debug("Ignoring auth cookie with undecodable base64 payload")
            return None
        value = decoded

    try:
        data = json.loads(value)
    except ValueError:
        return value.strip() or None

    if isinstance(data, dict):
        token = data.get("access_token")
        return token if isinstance(token, str) and token else None
    if isinstance(data, list) and data and isinstance(data[0], str):
        # older client libraries stored [access_token, refresh_token, ...]
        return data[0] or None
    if isinstance(data, str):
        return data or None
    return None


def token_from_authorization(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def extract_access_token(
    cookies: Mapping[str, str],
    headers: Mapping[str, str],
    project_ref: Optional[str] = None,
) -> Optional[str]:
    """
    Find the request's bearer credential.

    Args:
        cookies: Request cookies
        headers: Request headers (case-insensitive mapping or lowercase keys)
        project_ref: Auth project reference used in the cookie name

    Returns:
        The access token, or None when the request carries none
    """
    for name in auth_cookie_names(project_ref):
        token = token_from_cookie_value(cookies.get(name))
        if token:
            return token

    return token_from_authorization(headers.get("authorization"))
