from __future__ import annotations

import pytest

from pyemocube.config import HubConfig
from pyemocube.exceptions import HubConfigError


def test_defaults() -> None:
    config = HubConfig()

    assert config.capacity == 4
    assert config.local_client_id is None
    assert config.metrics_topic == "bci/emotions"
    assert config.mqtt_port == 1883


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EMOCUBE_CAPACITY", "6")
    monkeypatch.setenv("EMOCUBE_LOCAL_CLIENT_ID", "u1")
    monkeypatch.setenv("EMOCUBE_MQTT_ENABLED", "off")
    monkeypatch.setenv("EMOCUBE_TICK_INTERVAL", "0.05")
    monkeypatch.setenv("EMOCUBE_CHAT_API_KEY", "key")

    config = HubConfig.from_env()

    assert config.capacity == 6
    assert config.local_client_id == "u1"
    assert config.mqtt_enabled is False
    assert config.tick_interval == 0.05
    assert config.chat_api_key == "key"
    assert "'key'" not in repr(config)


def test_explicit_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EMOCUBE_CAPACITY", "6")
    monkeypatch.setenv("EMOCUBE_MQTT_HOST", "env-host")

    config = HubConfig.from_env(capacity=2, mqtt_host="explicit-host")

    assert config.capacity == 2
    assert config.mqtt_host == "explicit-host"


def test_invalid_numeric_env_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EMOCUBE_CAPACITY", "four")

    with pytest.raises(HubConfigError):
        HubConfig.from_env()


def test_capacity_must_be_positive() -> None:
    with pytest.raises(HubConfigError):
        HubConfig(capacity=0)


@pytest.mark.parametrize(("raw", "expected"), [("  u1 \n", "u1"), ("", None), ("   ", None)])
def test_local_client_id_is_normalized(monkeypatch: pytest.MonkeyPatch, raw: str, expected: str | None) -> None:
    monkeypatch.setenv("EMOCUBE_LOCAL_CLIENT_ID", raw)

    assert HubConfig.from_env().local_client_id == expected
    assert HubConfig(local_client_id=raw).local_client_id == expected
