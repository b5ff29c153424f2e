from __future__ import annotations

from pyemocube._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "clientId": "u1",
        "apiKey": "sk-123",
        "headers": {"Authorization": "Bearer sk-123"},
        "metrics": {"focus": 0.5},
    }

    redacted = redact_for_log(payload)
    assert redacted["clientId"] == "u1"
    assert redacted["apiKey"] == "<redacted>"
    assert redacted["headers"]["Authorization"] == "<redacted>"
    assert redacted["metrics"] == {"focus": 0.5}


def test_redact_for_log_truncates_long_values() -> None:
    redacted = redact_for_log({"value": "x" * 600}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]

    assert redact_for_log(b"y" * 600) == "<bytes:600b>"
    assert redact_for_log(b"plain text") == "plain text"


def test_redact_for_log_parses_json_bytes() -> None:
    raw = b'{"clientId": "u1", "apiKey": "sk-123", "metrics": {"focus": 0.5}}'

    assert redact_for_log(raw) == {"clientId": "u1", "apiKey": "<redacted>", "metrics": {"focus": 0.5}}
    assert redact_for_log(b'[{"authorization": "Bearer x"}]') == [{"authorization": "<redacted>"}]
    assert redact_for_log(b'"just a string"') == '"just a string"'
    assert redact_for_log('{"token": "abc"}') == {"token": "<redacted>"}
    assert redact_for_log("{not json") == "{not json"
