"""MQTT transport collaborator.

A threaded paho-mqtt runtime whose callbacks only ever hand work to the
hub's dispatch queue. The network thread never touches slot or label state.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pyemocube._redact import redact_for_log
from pyemocube.config import HubConfig
from pyemocube.hub import CoordinationHub
from pyemocube.ingestion.normalize import client_id_from_topic, safe_str


@dataclass(frozen=True)
class MqttSettings:
    """Broker/topic data required to connect."""

    broker_host: str
    broker_port: int
    metrics_topic: str
    leave_topic: str
    client_id: str
    keepalive: int = 60

    @classmethod
    def from_config(cls, config: HubConfig, *, client_id: str | None = None) -> MqttSettings:
        return cls(
            broker_host=config.mqtt_host,
            broker_port=config.mqtt_port,
            metrics_topic=config.metrics_topic.rstrip("/"),
            leave_topic=config.leave_topic.rstrip("/"),
            client_id=client_id or f"emocube-{uuid.uuid4()}",
            keepalive=config.mqtt_keepalive,
        )


def _topic_matches(topic: str, base: str) -> bool:
    return topic == base or topic.startswith(base + "/")


def leave_client_id(topic: str, payload: bytes, leave_topic: str) -> str | None:
    """Extract the leaving client's identifier from a leave message.

    The identifier is the topic suffix (``bci/leave/<id>``), or else the
    payload: either ``{"clientId": "<id>"}`` or the bare id as text.
    """
    from_topic = client_id_from_topic(topic, leave_topic)
    if from_topic:
        return from_topic

    text = (safe_str(payload) or "").strip()
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(parsed, dict):
        value = parsed.get("clientId", parsed.get("client_id"))
        return (safe_str(value) or "").strip() or None
    if isinstance(parsed, str):
        return parsed.strip() or None
    return None


class HubMqttRuntime:
    """Threaded paho-mqtt runtime that feeds a :class:`CoordinationHub`."""

    def __init__(
        self,
        *,
        hub: CoordinationHub,
        settings: MqttSettings,
        logger: logging.Logger | None = None,
    ) -> None:
        self._hub = hub
        self._settings = settings
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def handle_message(self, topic: str, payload: bytes) -> None:
        """Route one inbound message to the hub (network thread)."""
        settings = self._settings
        try:
            if _topic_matches(topic, settings.leave_topic):
                identifier = leave_client_id(topic, payload, settings.leave_topic)
                if identifier is None:
                    self._logger.debug("Leave message without client id topic=%s", topic)
                    return
                self._logger.debug("MQTT leave topic=%s client=%s", topic, identifier)
                self._hub.leave(identifier)
                return

            if _topic_matches(topic, settings.metrics_topic):
                identifier = client_id_from_topic(topic, settings.metrics_topic)
                if identifier is not None:
                    accepted = self._hub.deliver(identifier, payload)
                else:
                    accepted = self._hub.ingest(payload)
                if not accepted:
                    self._logger.debug(
                        "MQTT payload dropped topic=%s payload=%s",
                        topic,
                        redact_for_log(payload),
                    )
                return

            self._logger.debug("Ignoring message on unexpected topic=%s", topic)
        except Exception:
            self._logger.debug("MQTT message handling failure topic=%s", topic, exc_info=True)

    def start(self) -> None:
        """Connect and subscribe to the metrics and leave topics."""
        self.stop()
        settings = self._settings
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s client_id=%s",
            settings.broker_host,
            settings.broker_port,
            settings.client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=settings.client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)

        topics = [
            (settings.metrics_topic, 0),
            (f"{settings.metrics_topic}/+", 0),
            (settings.leave_topic, 0),
            (f"{settings.leave_topic}/+", 0),
        ]

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected reason=%s; subscribing %s", reason_code, topics)
            c.subscribe(topics)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self.handle_message(msg.topic, msg.payload)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(settings.broker_host, settings.broker_port, keepalive=settings.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect the current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
