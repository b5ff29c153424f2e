from __future__ import annotations

import asyncio
import json
import threading
from typing import Any

import pytest

from pyemocube.config import HubConfig
from pyemocube.hub import CoordinationHub, SlotSnapshot, run_ticks
from pyemocube.models.label import DerivedLabel
from pyemocube.state.events import EventKind, HubEvent, ObserverFault, SlotEvent, StateChangedEvent

HAPPY = {"focus": 0.9, "calm": 0.8, "stress": 0.1}
STRESSED = {"focus": 0.9, "calm": 0.6, "stress": 1.0}


def _payload(metrics: dict[str, float], client_id: str | None = None) -> bytes:
    body: dict[str, Any] = {"metrics": metrics}
    if client_id is not None:
        body["clientId"] = client_id
    return json.dumps(body).encode()


class _Recorder:
    def __init__(self, hub: CoordinationHub) -> None:
        self.events: list[HubEvent] = []
        hub.on_slot_added(self.events.append)
        hub.on_slot_removed(self.events.append)
        hub.on_state_changed(self.events.append)
        hub.on_local_client_resolved(self.events.append)

    def take(self) -> list[HubEvent]:
        events = list(self.events)
        self.events.clear()
        return events


def test_end_to_end_scenario() -> None:
    hub = CoordinationHub(HubConfig(capacity=4, local_client_id="u1"))
    recorder = _Recorder(hub)

    assert hub.deliver("u1", _payload(HAPPY)) is True
    assert recorder.events == []
    hub.drain()
    assert recorder.take() == [
        SlotEvent(kind=EventKind.SLOT_ADDED, slot=0),
        SlotEvent(kind=EventKind.LOCAL_CLIENT_RESOLVED, slot=0),
        StateChangedEvent(slot=0, label=DerivedLabel.HAPPY),
    ]

    hub.deliver("u1", _payload(HAPPY))
    hub.drain()
    assert recorder.take() == []

    hub.deliver("u2", _payload(STRESSED))
    hub.drain()
    assert recorder.take() == [
        SlotEvent(kind=EventKind.SLOT_ADDED, slot=1),
        StateChangedEvent(slot=1, label=DerivedLabel.STRESS),
    ]

    hub.leave("u1")
    hub.drain()
    assert recorder.take() == [SlotEvent(kind=EventKind.SLOT_REMOVED, slot=0)]
    assert hub.label_of("u1") is None

    hub.deliver("u1", _payload(HAPPY))
    hub.drain()
    assert recorder.take() == [
        SlotEvent(kind=EventKind.SLOT_ADDED, slot=0),
        StateChangedEvent(slot=0, label=DerivedLabel.HAPPY),
    ]
    assert hub.snapshot() == [
        SlotSnapshot(slot=0, client_id="u1", label=DerivedLabel.HAPPY),
        SlotSnapshot(slot=1, client_id="u2", label=DerivedLabel.STRESS),
    ]


def test_malformed_payload_is_dropped_before_queueing() -> None:
    hub = CoordinationHub(HubConfig(capacity=2))
    recorder = _Recorder(hub)

    assert hub.deliver("u1", b'{"metrics": {"focus": "x"}}') is False
    assert hub.deliver("  ", _payload(HAPPY)) is False
    assert len(hub.queue) == 0
    hub.drain()

    assert recorder.events == []
    assert hub.registry.occupied() == []


def test_malformed_payload_does_not_disturb_other_slots() -> None:
    hub = CoordinationHub(HubConfig(capacity=2))
    hub.deliver("u1", _payload(HAPPY))
    hub.drain()

    hub.deliver("u1", b"garbage")
    hub.deliver("u2", _payload(STRESSED))
    hub.drain()

    assert hub.label_of("u1") == DerivedLabel.HAPPY
    assert hub.label_of("u2") == DerivedLabel.STRESS


def test_capacity_exceeded_skips_apply() -> None:
    hub = CoordinationHub(HubConfig(capacity=1))
    recorder = _Recorder(hub)
    hub.deliver("u1", _payload(HAPPY))
    hub.deliver("u2", _payload(STRESSED))

    hub.drain()

    assert recorder.take() == [
        SlotEvent(kind=EventKind.SLOT_ADDED, slot=0),
        StateChangedEvent(slot=0, label=DerivedLabel.HAPPY),
    ]
    assert hub.label_of("u2") is None


def test_ingest_takes_identifier_from_payload() -> None:
    hub = CoordinationHub(HubConfig(capacity=2))

    assert hub.ingest(_payload(HAPPY, client_id="alice")) is True
    assert hub.ingest(_payload(HAPPY)) is False
    hub.drain()

    assert hub.registry.occupied() == [(0, "alice")]


def test_leave_unknown_client_is_noop() -> None:
    hub = CoordinationHub(HubConfig(capacity=2))
    recorder = _Recorder(hub)

    hub.leave("nobody")
    hub.drain()

    assert recorder.events == []


def test_local_client_set_after_construction() -> None:
    hub = CoordinationHub(HubConfig(capacity=2))
    resolved: list[int] = []
    hub.on_local_client_resolved(lambda event: resolved.append(event.slot))
    hub.set_local_client_id("me")

    hub.deliver("other", _payload(HAPPY))
    hub.deliver("me", _payload(HAPPY))
    hub.deliver("me", _payload(STRESSED))
    hub.drain()

    assert resolved == [1]


def test_observer_fault_does_not_abort_drain() -> None:
    faults: list[ObserverFault] = []
    hub = CoordinationHub(HubConfig(capacity=2), fault_handler=faults.append)
    labels: list[DerivedLabel] = []

    def broken(_event: StateChangedEvent) -> None:
        raise RuntimeError("renderer crashed")

    hub.on_state_changed(broken)
    hub.on_state_changed(lambda event: labels.append(event.label))

    hub.deliver("u1", _payload(HAPPY))
    hub.deliver("u2", _payload(STRESSED))
    hub.drain()

    assert labels == [DerivedLabel.HAPPY, DerivedLabel.STRESS]
    assert len(faults) == 2


def test_unsubscribe_stops_notifications() -> None:
    hub = CoordinationHub(HubConfig(capacity=2))
    added: list[int] = []
    subscription = hub.on_slot_added(lambda event: added.append(event.slot))

    hub.deliver("u1", _payload(HAPPY))
    hub.drain()
    assert hub.unsubscribe(subscription) is True
    hub.deliver("u2", _payload(HAPPY))
    hub.drain()

    assert added == [0]


def test_producer_threads_only_enqueue() -> None:
    hub = CoordinationHub(HubConfig(capacity=4))
    hub.queue.bind_to_current_thread()
    main_thread = threading.get_ident()
    callback_threads: set[int] = set()
    hub.on_slot_added(lambda _event: callback_threads.add(threading.get_ident()))
    hub.on_state_changed(lambda _event: callback_threads.add(threading.get_ident()))

    def produce(client: str) -> None:
        for _ in range(50):
            hub.deliver(client, _payload(HAPPY))

    threads = [threading.Thread(target=produce, args=(f"c{n}",)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert hub.registry.occupied() == []
    assert hub.drain() == 200
    assert callback_threads == {main_thread}
    assert len(hub.registry) == 4
    assert {label for label in hub.store.snapshot().values()} == {DerivedLabel.HAPPY}


@pytest.mark.asyncio
async def test_run_ticks_drains_until_stopped() -> None:
    hub = CoordinationHub(HubConfig(capacity=2, tick_interval=0.001))
    changes: list[StateChangedEvent] = []
    hub.on_state_changed(changes.append)
    stop_event = asyncio.Event()

    driver = asyncio.create_task(run_ticks(hub, stop_event=stop_event))
    thread = threading.Thread(target=hub.deliver, args=("u1", _payload(HAPPY)))
    thread.start()
    thread.join()

    for _ in range(200):
        if changes:
            break
        await asyncio.sleep(0.005)

    hub.deliver("u2", _payload(STRESSED))
    stop_event.set()
    await asyncio.wait_for(driver, timeout=1.0)

    assert [event.slot for event in changes] == [0, 1]
    assert len(hub.queue) == 0
