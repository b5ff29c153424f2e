"""pyemocube - shared-state coordination hub for multi-client BCI emotion signals."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyemocube")
except PackageNotFoundError:
    __version__ = "0+local"
from pyemocube.config import HubConfig
from pyemocube.exceptions import (
    ChatTransportError,
    DispatchThreadError,
    EmoCubeError,
    HubConfigError,
    PayloadParseError,
)
from pyemocube.hub import CoordinationHub, SlotSnapshot, run_ticks
from pyemocube.ingestion.derive import compute_scores, decode_payload, derive, dominant_label, parse_payload
from pyemocube.models import DerivedLabel, RawMetrics, SensorReading
from pyemocube.state.bus import NotificationBus, Subscription
from pyemocube.state.dispatch import DispatchQueue
from pyemocube.state.events import EventKind, ObserverFault, SlotEvent, StateChangedEvent
from pyemocube.state.registry import CAPACITY_EXCEEDED, SlotRegistry
from pyemocube.state.store import LabelStore

__all__ = [
    "__version__",
    "CAPACITY_EXCEEDED",
    "ChatTransportError",
    "CoordinationHub",
    "DerivedLabel",
    "DispatchQueue",
    "DispatchThreadError",
    "EmoCubeError",
    "EventKind",
    "HubConfig",
    "HubConfigError",
    "LabelStore",
    "NotificationBus",
    "ObserverFault",
    "PayloadParseError",
    "RawMetrics",
    "SensorReading",
    "SlotEvent",
    "SlotRegistry",
    "SlotSnapshot",
    "StateChangedEvent",
    "Subscription",
    "compute_scores",
    "decode_payload",
    "derive",
    "dominant_label",
    "parse_payload",
    "run_ticks",
]
