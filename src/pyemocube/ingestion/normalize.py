"""Normalization helpers.

Centralizes defensive parsing of loosely-typed payload values.
"""

from __future__ import annotations

from typing import Any


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    text = str(value)
    return text if text else None


def clamp_unit(value: float) -> float:
    """Clamp *value* to the closed interval [0, 1]."""
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def client_id_from_topic(topic: str, base_topic: str) -> str | None:
    """Return the trailing topic level after *base_topic*, if any.

    ``client_id_from_topic("bci/emotions/u1", "bci/emotions")`` → ``"u1"``.
    """
    base = base_topic.rstrip("/")
    if not topic.startswith(base + "/"):
        return None
    suffix = topic[len(base) + 1 :].strip("/")
    if not suffix or "/" in suffix:
        return None
    return suffix
