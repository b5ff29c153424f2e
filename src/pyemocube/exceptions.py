"""Custom exception hierarchy for pyemocube."""

from __future__ import annotations


class EmoCubeError(Exception):
    """Base exception for all pyemocube errors."""


class HubConfigError(EmoCubeError):
    """Invalid or missing configuration."""


class PayloadParseError(EmoCubeError):
    """Sensor payload is malformed, truncated, or non-numeric.

    Raised by :func:`pyemocube.ingestion.derive.decode_payload`. The
    ingestion boundary (:func:`~pyemocube.ingestion.derive.parse_payload`,
    :meth:`pyemocube.hub.CoordinationHub.deliver`) catches it, so it never
    reaches a transport thread.
    """


class DispatchThreadError(EmoCubeError):
    """``drain()`` was called from a thread other than the execution thread."""


class ChatTransportError(EmoCubeError):
    """HTTP-level failure talking to the chat-completions endpoint."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message)
