"""Base model for sensor payloads.

Every payload model inherits from :class:`EmoBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase wire keys (``clientId``) map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that strips sentinel values
  (``""``, ``"--"``, NaN) so a required field reports as missing instead
  of being coerced.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Sentinel strings publishers use for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan"})


class EmoBaseModel(BaseModel):
    """Base for sensor payload models.

    Handles:
    * camelCase → snake_case via ``alias_generator=to_camel``
    * sentinel values (``""``, ``"--"``, NaN) → dropped
    * stashes the original payload dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original payload dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_sentinel_values(cls, values: Any) -> Any:
        """Strip sentinel values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = EmoBaseModel._clean_dict(values)
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
