"""Raw sensor metrics and the payload envelope that carries them."""

from __future__ import annotations

from typing import Any

from pydantic import Field, FiniteFloat, field_validator, model_validator

from pyemocube.ingestion.normalize import safe_str
from pyemocube.models._base import EmoBaseModel

METRIC_FIELDS: tuple[str, ...] = ("focus", "calm", "stress")


class RawMetrics(EmoBaseModel):
    """Per-reading metric tuple.

    Parameters
    ----------
    focus : float
        Cognitive engagement, conventionally 0-1.
    calm : float
        Relaxation, conventionally 0-1.
    stress : float
        Stress arousal, conventionally 0-1.

    Values outside 0-1 are accepted; scores are clamped during derivation.
    Non-finite values are rejected.
    """

    focus: FiniteFloat
    calm: FiniteFloat
    stress: FiniteFloat


class SensorReading(EmoBaseModel):
    """A decoded sensor payload.

    The wire shape is ``{"clientId": ..., "metrics": {...}}``. Flat records
    with the metric fields at the top level are accepted as well.
    """

    client_id: str | None = Field(default=None)
    metrics: RawMetrics

    @model_validator(mode="before")
    @classmethod
    def _nest_flat_metrics(cls, values: Any) -> Any:
        if not isinstance(values, dict) or "metrics" in values:
            return values
        if not any(name in values for name in METRIC_FIELDS):
            return values
        working = dict(values)
        working["metrics"] = {name: values[name] for name in METRIC_FIELDS if name in values}
        return working

    @field_validator("client_id", mode="before")
    @classmethod
    def _normalize_client_id(cls, value: Any) -> str | None:
        text = safe_str(value)
        if text is None:
            return None
        text = text.strip()
        return text or None
