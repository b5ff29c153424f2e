"""Shared-state coordination hub.

The hub ties the dispatch queue, slot registry, label store and notification
bus together. It is constructed explicitly and handed to every collaborator
(transport, observers, tick driver); there is no process-wide instance.

Usage::

    hub = CoordinationHub(HubConfig(capacity=4, local_client_id="u1"))
    hub.on_state_changed(lambda event: print(event.slot, event.label))
    hub.deliver("u1", b'{"metrics": {"focus": 0.9, "calm": 0.8, "stress": 0.1}}')
    hub.drain()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict

from pyemocube.config import HubConfig
from pyemocube.ingestion.derive import derive, parse_payload
from pyemocube.models.label import DerivedLabel
from pyemocube.models.metrics import RawMetrics
from pyemocube.state.bus import FaultHandler, NotificationBus, Subscription
from pyemocube.state.dispatch import DispatchQueue, PendingWork, WorkItem
from pyemocube.state.events import EventKind, SlotEvent, StateChangedEvent
from pyemocube.state.registry import CAPACITY_EXCEEDED, SlotRegistry
from pyemocube.state.store import LabelStore

_logger = logging.getLogger(__name__)


class SlotSnapshot(BaseModel):
    """Read-only view of one occupied slot."""

    model_config = ConfigDict(frozen=True)

    slot: int
    client_id: str
    label: DerivedLabel


class CoordinationHub:
    """Single owner of slot and label state.

    Producer threads call :meth:`deliver`, :meth:`ingest`, :meth:`leave` or
    :meth:`enqueue`. Everything else, including subscriptions, belongs to the
    execution thread that calls :meth:`drain`.
    """

    def __init__(
        self,
        config: HubConfig | None = None,
        *,
        fault_handler: FaultHandler | None = None,
        on_work_error: Callable[[PendingWork, BaseException], None] | None = None,
    ) -> None:
        self._config = config or HubConfig()
        self._bus = NotificationBus(fault_handler=fault_handler)
        self._store = LabelStore(self._bus)
        self._registry = SlotRegistry(
            self._config.capacity,
            bus=self._bus,
            store=self._store,
            local_client_id=self._config.local_client_id,
        )
        self._queue = DispatchQueue(on_error=on_work_error)

    @property
    def config(self) -> HubConfig:
        return self._config

    @property
    def registry(self) -> SlotRegistry:
        return self._registry

    @property
    def store(self) -> LabelStore:
        return self._store

    @property
    def bus(self) -> NotificationBus:
        return self._bus

    @property
    def queue(self) -> DispatchQueue:
        return self._queue

    def set_local_client_id(self, identifier: str) -> None:
        """Configure the local client; allowed until it has been resolved."""
        self._registry.local_client_id = identifier.strip() or None

    # ------------------------------------------------------------------
    # Producer side (any thread)
    # ------------------------------------------------------------------

    def enqueue(self, work: WorkItem) -> None:
        self._queue.enqueue(work)

    def deliver(self, identifier: str, payload: Any) -> bool:
        """Parse *payload* and queue its update for *identifier*.

        Returns ``False`` (nothing queued) when the payload does not parse.
        """
        client_id = identifier.strip()
        if not client_id:
            _logger.debug("Dropping payload without client identifier")
            return False
        reading = parse_payload(payload)
        if reading is None:
            return False
        self._queue.enqueue(lambda: self._apply_reading(client_id, reading.metrics))
        return True

    def ingest(self, payload: Any) -> bool:
        """Like :meth:`deliver`, with the identifier taken from the payload."""
        reading = parse_payload(payload)
        if reading is None:
            return False
        if reading.client_id is None:
            _logger.debug("Dropping payload without clientId")
            return False
        client_id = reading.client_id
        self._queue.enqueue(lambda: self._apply_reading(client_id, reading.metrics))
        return True

    def leave(self, identifier: str) -> None:
        """Queue removal of *identifier*."""
        client_id = identifier.strip()
        self._queue.enqueue(lambda: self._registry.remove(client_id))

    # ------------------------------------------------------------------
    # Execution thread
    # ------------------------------------------------------------------

    def drain(self) -> int:
        return self._queue.drain()

    def _apply_reading(self, client_id: str, metrics: RawMetrics) -> None:
        slot = self._registry.resolve_or_add(client_id)
        if slot is CAPACITY_EXCEEDED:
            _logger.warning(
                "Hub is full (%d slots); dropping update from %s",
                self._registry.capacity,
                client_id,
            )
            return
        self._store.apply(slot, derive(metrics))

    def label_of(self, identifier: str) -> DerivedLabel | None:
        slot = self._registry.slot_of(identifier)
        if slot is None:
            return None
        return self._store.get(slot)

    def snapshot(self) -> list[SlotSnapshot]:
        return [
            SlotSnapshot(slot=slot, client_id=client_id, label=self._store.get(slot) or DerivedLabel.NONE)
            for slot, client_id in self._registry.occupied()
        ]

    # ------------------------------------------------------------------
    # Subscriptions (execution thread)
    # ------------------------------------------------------------------

    def on_slot_added(self, callback: Callable[[SlotEvent], None]) -> Subscription:
        return self._bus.subscribe(EventKind.SLOT_ADDED, callback)  # type: ignore[arg-type]

    def on_slot_removed(self, callback: Callable[[SlotEvent], None]) -> Subscription:
        return self._bus.subscribe(EventKind.SLOT_REMOVED, callback)  # type: ignore[arg-type]

    def on_state_changed(self, callback: Callable[[StateChangedEvent], None]) -> Subscription:
        return self._bus.subscribe(EventKind.STATE_CHANGED, callback)  # type: ignore[arg-type]

    def on_local_client_resolved(self, callback: Callable[[SlotEvent], None]) -> Subscription:
        return self._bus.subscribe(EventKind.LOCAL_CLIENT_RESOLVED, callback)  # type: ignore[arg-type]

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._bus.unsubscribe(subscription)


async def run_ticks(
    hub: CoordinationHub,
    *,
    stop_event: asyncio.Event,
    interval: float | None = None,
) -> None:
    """Drive ``hub.drain()`` once per tick on the running event loop's thread.

    Runs until *stop_event* is set, then drains one last time so work queued
    before shutdown still executes.
    """
    tick = hub.config.tick_interval if interval is None else interval
    hub.queue.bind_to_current_thread()
    _logger.debug("Tick driver started interval=%.4fs", tick)
    try:
        while not stop_event.is_set():
            hub.drain()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=tick)
            except TimeoutError:
                pass
    finally:
        hub.drain()
        _logger.debug("Tick driver stopped")
