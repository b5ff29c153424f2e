"""Data models for sensor payloads and derived state."""

from pyemocube.models._base import EmoBaseModel
from pyemocube.models.label import DerivedLabel
from pyemocube.models.metrics import METRIC_FIELDS, RawMetrics, SensorReading

__all__ = [
    "METRIC_FIELDS",
    "DerivedLabel",
    "EmoBaseModel",
    "RawMetrics",
    "SensorReading",
]
