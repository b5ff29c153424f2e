"""Logging observer."""

from __future__ import annotations

import logging

from pyemocube.hub import CoordinationHub
from pyemocube.state.bus import Subscription
from pyemocube.state.events import EventKind, HubEvent, StateChangedEvent


class ConsoleObserver:
    """Log every hub event at INFO level."""

    def __init__(self, hub: CoordinationHub, *, logger: logging.Logger | None = None) -> None:
        self._hub = hub
        self._logger = logger or logging.getLogger(__name__)
        self._subscriptions: list[Subscription] = [hub.bus.subscribe(kind, self._on_event) for kind in EventKind]

    def _on_event(self, event: HubEvent) -> None:
        if isinstance(event, StateChangedEvent):
            self._logger.info("[slot %d] label -> %s", event.slot, event.label)
            return
        if event.kind == EventKind.SLOT_ADDED:
            self._logger.info("[slot %d] joined (%s)", event.slot, self._hub.registry.occupant(event.slot))
        elif event.kind == EventKind.SLOT_REMOVED:
            self._logger.info("[slot %d] left", event.slot)
        else:
            self._logger.info("[slot %d] local client resolved", event.slot)

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
