"""Hub configuration for pyemocube."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyemocube._constants import (
    CHAT_BASE_URL,
    CHAT_MODEL,
    DEFAULT_CAPACITY,
    DEFAULT_LEAVE_TOPIC,
    DEFAULT_METRICS_TOPIC,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_PORT,
    DEFAULT_TICK_INTERVAL,
)
from pyemocube.exceptions import HubConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class HubConfig:
    """Coordination hub configuration.

    Parameters
    ----------
    capacity : int
        Maximum number of concurrently occupied client slots. Fixed for
        the lifetime of the hub.
    local_client_id : str or None
        Identifier of the local client. Its first resolution fires the
        one-shot ``local_client_resolved`` event.
    tick_interval : float
        Seconds between two ``drain()`` passes of the tick driver.
    mqtt_enabled : bool
        Start the MQTT transport in ``scripts/hub_monitor.py``.
    mqtt_host : str
        MQTT broker hostname.
    mqtt_port : int
        MQTT broker port.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    metrics_topic : str
        Topic carrying sensor metrics. ``<metrics_topic>/<clientId>`` is
        accepted as well.
    leave_topic : str
        Topic on which clients announce they are leaving.
    chat_api_key : str or None
        Bearer token for the chat-completions endpoint.
    chat_base_url : str
        OpenAI-compatible chat-completions URL.
    chat_model : str
        Model name sent with each chat request.
    """

    capacity: int = DEFAULT_CAPACITY
    local_client_id: str | None = None
    tick_interval: float = DEFAULT_TICK_INTERVAL
    mqtt_enabled: bool = True
    mqtt_host: str = DEFAULT_MQTT_HOST
    mqtt_port: int = DEFAULT_MQTT_PORT
    mqtt_keepalive: int = 60
    metrics_topic: str = DEFAULT_METRICS_TOPIC
    leave_topic: str = DEFAULT_LEAVE_TOPIC
    chat_api_key: str | None = dataclasses.field(default=None, repr=False)
    chat_base_url: str = CHAT_BASE_URL
    chat_model: str = CHAT_MODEL

    def __post_init__(self) -> None:
        if self.local_client_id is not None:
            object.__setattr__(self, "local_client_id", self.local_client_id.strip() or None)
        if self.capacity < 1:
            raise HubConfigError(f"capacity must be at least 1, got {self.capacity}")
        if self.tick_interval < 0:
            raise HubConfigError(f"tick_interval must not be negative, got {self.tick_interval}")

    @classmethod
    def from_env(cls, **overrides: Any) -> HubConfig:
        """Create configuration from environment variables.

        Reads optional ``EMOCUBE_*`` variables. Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "EMOCUBE_LOCAL_CLIENT_ID": "local_client_id",
            "EMOCUBE_MQTT_HOST": "mqtt_host",
            "EMOCUBE_METRICS_TOPIC": "metrics_topic",
            "EMOCUBE_LEAVE_TOPIC": "leave_topic",
            "EMOCUBE_CHAT_API_KEY": "chat_api_key",
            "EMOCUBE_CHAT_BASE_URL": "chat_base_url",
            "EMOCUBE_CHAT_MODEL": "chat_model",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # Numeric values need conversion
        _ENV_NUMERIC_MAP = {
            "EMOCUBE_CAPACITY": ("capacity", int),
            "EMOCUBE_TICK_INTERVAL": ("tick_interval", float),
            "EMOCUBE_MQTT_PORT": ("mqtt_port", int),
            "EMOCUBE_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
        }
        for env_key, (field_name, convert) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise HubConfigError(f"{env_key} is not a valid {convert.__name__}: {val!r}") from exc

        if "mqtt_enabled" not in overrides:
            config_kwargs["mqtt_enabled"] = _env_bool(env.get("EMOCUBE_MQTT_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
