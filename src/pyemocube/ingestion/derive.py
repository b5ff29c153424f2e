"""Derivation engine.

Pure functions that turn a raw payload into a :class:`SensorReading` and a
reading's metrics into a single dominant :class:`DerivedLabel`.

Nothing here holds state, so every function is safe to call from any
thread. Only the results are handed to the hub's execution thread.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from pyemocube._redact import redact_for_log
from pyemocube.exceptions import PayloadParseError
from pyemocube.ingestion.normalize import clamp_unit
from pyemocube.models.label import DerivedLabel
from pyemocube.models.metrics import RawMetrics, SensorReading

_logger = logging.getLogger(__name__)

# (bias, focus, calm, stress) per label. Policy, not architecture: any table
# keyed by the scored labels works.
LABEL_WEIGHTS: dict[DerivedLabel, tuple[float, float, float, float]] = {
    DerivedLabel.HAPPY: (0.0, 0.5, 0.5, -0.5),
    DerivedLabel.SAD: (1.0, -0.5, -0.5, 0.0),
    DerivedLabel.UPSET: (0.5, 0.0, -0.5, 0.5),
    DerivedLabel.STRESS: (0.2, 0.0, -0.2, 0.8),
    DerivedLabel.FEAR: (0.4, -0.4, 0.0, 0.6),
}


def decode_payload(payload: bytes | bytearray | str | Mapping[str, Any]) -> SensorReading:
    """Decode a payload into a :class:`SensorReading`.

    Raises
    ------
    PayloadParseError
        On invalid UTF-8/JSON, non-object JSON, or missing/non-numeric metrics.
    """
    data: Any
    if isinstance(payload, Mapping):
        data = dict(payload)
    else:
        try:
            text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
            data = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PayloadParseError(f"Payload is not valid JSON: {exc}") from exc
        except TypeError as exc:
            raise PayloadParseError(f"Unsupported payload type: {type(payload).__name__}") from exc

    if not isinstance(data, dict):
        raise PayloadParseError(f"Payload decoded to {type(data).__name__}, expected an object")

    try:
        return SensorReading.model_validate(data)
    except ValidationError as exc:
        raise PayloadParseError(f"Payload failed validation: {exc.error_count()} error(s)") from exc


def parse_payload(payload: Any) -> SensorReading | None:
    """Parse a payload without raising.

    Returns ``None`` for anything :func:`decode_payload` rejects.
    """
    try:
        return decode_payload(payload)
    except PayloadParseError:
        _logger.debug("Dropping malformed payload %s", redact_for_log(payload), exc_info=True)
        return None
    except Exception:
        # Anything unexpected from a remote producer is still a parse failure.
        _logger.debug("Unexpected failure parsing payload %s", redact_for_log(payload), exc_info=True)
        return None


def compute_scores(metrics: RawMetrics) -> dict[DerivedLabel, float]:
    """Score every label as a clamped linear combination of the metrics."""
    scores: dict[DerivedLabel, float] = {}
    for label in DerivedLabel.scored():
        bias, w_focus, w_calm, w_stress = LABEL_WEIGHTS[label]
        value = bias + w_focus * metrics.focus + w_calm * metrics.calm + w_stress * metrics.stress
        scores[label] = clamp_unit(value)
    return scores


def dominant_label(scores: Mapping[DerivedLabel, float]) -> DerivedLabel:
    """Return the highest-scoring label.

    Ties go to the label declared first in :class:`DerivedLabel`.
    """
    best = DerivedLabel.NONE
    best_score = float("-inf")
    for label in DerivedLabel.scored():
        score = scores.get(label)
        if score is None:
            continue
        # Strict comparison keeps the earlier label on an exact tie.
        if score > best_score:
            best = label
            best_score = score
    return best


def derive(metrics: RawMetrics | None) -> DerivedLabel:
    """Map metrics to their dominant label; ``None`` maps to ``DerivedLabel.NONE``."""
    if metrics is None:
        return DerivedLabel.NONE
    return dominant_label(compute_scores(metrics))
