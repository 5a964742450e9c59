"""Helpers for safe debug logging.

Requests carry login credentials, session cookies, uploaded image bytes
and the shop owner's contact details.  Secrets are replaced outright;
contact fields are masked so a trace still shows which record it was.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

# Keys are compared lower-cased with "_" and "-" removed.
_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "accesstoken",
        "refreshtoken",
        "authorization",
        "cookie",
        "setcookie",
        "file",
    }
)

_EMAIL_KEYS: frozenset[str] = frozenset({"email"})
_PHONE_KEYS: frozenset[str] = frozenset({"phone", "cellnumber"})
_PERSONAL_KEYS: frozenset[str] = frozenset({"fullname", "contactperson", "address"})

_MAX_DEPTH = 20


def _normalize_key(key: Any) -> str:
    return str(key).lower().replace("_", "").replace("-", "")


def mask_email(value: str) -> str:
    """``owner@example.com`` -> ``o***@example.com``."""
    local, sep, domain = value.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


def mask_phone(value: str) -> str:
    """Keep the last four digits only."""
    digits = [c for c in value if c.isdigit()]
    if len(digits) <= 4:
        return "***"
    return "***" + "".join(digits[-4:])


def _redact_field(key: str, value: Any) -> Any:
    if key in _SECRET_KEYS:
        return "<redacted>"
    if not isinstance(value, str) or not value:
        return value
    if key in _EMAIL_KEYS:
        return mask_email(value)
    if key in _PHONE_KEYS:
        return mask_phone(value)
    if key in _PERSONAL_KEYS:
        return f"<{len(value)} chars>"
    return value


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for raw_key, item in value.items():
            field_value = _redact_field(_normalize_key(raw_key), item)
            if field_value is item:
                field_value = redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            redacted[str(raw_key)] = field_value
        return redacted

    if isinstance(value, Sequence):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]

    return repr(value)


def describe_upload(field: str, data: bytes, *, filename: str, content_type: str) -> dict[str, Any]:
    """Loggable stand-in for a multipart file part."""
    return {"field": field, "filename": filename, "content_type": content_type, "size": len(data)}
