"""Helpers for safe debug logging.

Sensor payloads arrive from arbitrary remote producers and chat requests
carry API keys. This module redacts sensitive fields and truncates long
values before they are emitted in DEBUG logs.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "apikey",
        "api_key",
        "authorization",
        "cookie",
    }
)


def _redact_json_text(text: str, *, max_string: int, depth: int) -> Any:
    # Raw JSON payloads are redacted as structures, not echoed as text.
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(decoded, (dict, list)):
        return redact_for_log(decoded, max_string=max_string, _depth=depth + 1)
    return text


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if value.lstrip().startswith(("{", "[")):
            structured = _redact_json_text(value, max_string=max_string, depth=_depth)
            if not isinstance(structured, str):
                return structured
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray)):
        if len(value) > max_string:
            return f"<bytes:{len(value)}b>"
        return _redact_json_text(bytes(value).decode("utf-8", errors="replace"), max_string=max_string, depth=_depth)

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
