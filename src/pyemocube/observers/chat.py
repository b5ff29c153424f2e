"""Chat-completion observer.

Asks an OpenAI-compatible chat endpoint for a short supportive message
whenever the local client's label changes. Requests run as asyncio tasks so
the hub callback returns immediately.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pyemocube._redact import redact_for_log
from pyemocube.config import HubConfig
from pyemocube.exceptions import ChatTransportError, HubConfigError
from pyemocube.hub import CoordinationHub
from pyemocube.models.label import DerivedLabel
from pyemocube.state.bus import Subscription
from pyemocube.state.events import SlotEvent, StateChangedEvent

_logger = logging.getLogger(__name__)

_NO_REPLY = "(No reply)"


def build_prompt(label: DerivedLabel) -> str:
    return (
        f'The system detected that the user is feeling "{label.value}". '
        "Respond with a short, supportive message (1-2 sentences)."
    )


def extract_reply(body: Any) -> str:
    """Pull the assistant message out of a chat-completions response."""
    if not isinstance(body, dict):
        return _NO_REPLY
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return _NO_REPLY
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content.strip():
        return _NO_REPLY
    return content.strip()


class ChatObserver:
    """Reply to label changes of the local client's slot.

    The observed slot is learned from ``local_client_resolved`` and dropped
    when that slot is removed; while unknown, label changes are ignored. Replies (or an error string) are passed to
    ``on_reply(label, reply)`` on the event loop.
    """

    def __init__(
        self,
        hub: CoordinationHub,
        *,
        http_session: aiohttp.ClientSession,
        on_reply: Callable[[DerivedLabel, str], None],
        config: HubConfig | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config or hub.config
        if not self._config.chat_api_key:
            raise HubConfigError("chat_api_key is required for ChatObserver")
        self._hub = hub
        self._http = http_session
        self._on_reply = on_reply
        self._loop = loop or asyncio.get_running_loop()
        self._slot: int | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._subscriptions: list[Subscription] = [
            hub.on_local_client_resolved(self._on_local_resolved),
            hub.on_slot_added(self._on_slot_added),
            hub.on_slot_removed(self._on_slot_removed),
            hub.on_state_changed(self._on_state_changed),
        ]

    @property
    def observed_slot(self) -> int | None:
        return self._slot

    def _on_local_resolved(self, event: SlotEvent) -> None:
        self._slot = event.slot

    def _on_slot_added(self, event: SlotEvent) -> None:
        # The resolved event fires once; later rejoins are picked up here.
        registry = self._hub.registry
        if registry.local_resolved and registry.occupant(event.slot) == registry.local_client_id:
            self._slot = event.slot

    def _on_slot_removed(self, event: SlotEvent) -> None:
        if event.slot == self._slot:
            self._slot = None

    def _on_state_changed(self, event: StateChangedEvent) -> None:
        if self._slot is None or event.slot != self._slot:
            return
        if event.label == DerivedLabel.NONE:
            return
        task = self._loop.create_task(self._respond(event.label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _respond(self, label: DerivedLabel) -> None:
        try:
            reply = await self.complete(build_prompt(label))
        except ChatTransportError as exc:
            reply = f"[Error contacting model: {exc}]"
        try:
            self._on_reply(label, reply)
        except Exception:
            _logger.exception("Chat reply callback failed")

    async def complete(self, prompt: str) -> str:
        """Send *prompt* to the chat endpoint and return the reply text."""
        url = self._config.chat_base_url
        body = {
            "model": self._config.chat_model,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "authorization": f"Bearer {self._config.chat_api_key}",
            "content-type": "application/json",
        }
        _logger.debug("POST %s body=%s", url, redact_for_log(body))

        try:
            async with self._http.post(url, data=json.dumps(body), headers=headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise ChatTransportError(
                        f"HTTP {resp.status} from chat endpoint: {text[:200]}",
                        status_code=resp.status,
                    )
        except ChatTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise ChatTransportError(f"Chat request failed: {exc}") from exc

        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ChatTransportError(f"Invalid JSON from chat endpoint: {text[:200]}") from exc
        return extract_reply(decoded)

    async def wait_idle(self) -> None:
        """Wait for in-flight requests to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        for task in list(self._tasks):
            task.cancel()
