"""Multi-subscriber notification fan-out."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from pyemocube.state.events import EventKind, HubEvent, ObserverFault

_logger = logging.getLogger(__name__)

EventCallback = Callable[[HubEvent], None]
FaultHandler = Callable[[ObserverFault], None]


@dataclass(frozen=True, eq=False)
class Subscription:
    """Stable handle returned by :meth:`NotificationBus.subscribe`."""

    kind: EventKind
    callback: EventCallback
    token: int
    _bus: NotificationBus | None = field(default=None, repr=False, compare=False)

    def cancel(self) -> None:
        if self._bus is not None:
            self._bus.unsubscribe(self)


class NotificationBus:
    """Per-kind callback registry with isolated, ordered dispatch.

    Subscribers are invoked synchronously in registration order. A failing
    callback is logged and reported to ``fault_handler``; it never prevents
    the remaining callbacks from running and never propagates to the emitter.

    Not thread-safe: subscribe, unsubscribe and emit run on the execution
    thread.
    """

    def __init__(self, *, fault_handler: FaultHandler | None = None) -> None:
        self._fault_handler = fault_handler
        self._subscribers: dict[EventKind, list[Subscription]] = {kind: [] for kind in EventKind}
        self._tokens = itertools.count(1)

    def subscribe(self, kind: EventKind, callback: EventCallback) -> Subscription:
        subscription = Subscription(kind=EventKind(kind), callback=callback, token=next(self._tokens), _bus=self)
        self._subscribers[subscription.kind].append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription | EventKind, callback: EventCallback | None = None) -> bool:
        """Remove a subscription.

        Accepts either a :class:`Subscription` token or a ``(kind, callback)``
        pair; in the latter form the earliest matching registration is
        removed. Returns ``False`` when nothing matched.
        """
        if isinstance(subscription, Subscription):
            entries = self._subscribers.get(subscription.kind, [])
            for index, entry in enumerate(entries):
                if entry.token == subscription.token:
                    del entries[index]
                    return True
            return False

        entries = self._subscribers.get(EventKind(subscription), [])
        for index, entry in enumerate(entries):
            if entry.callback == callback:
                del entries[index]
                return True
        return False

    def subscriber_count(self, kind: EventKind) -> int:
        return len(self._subscribers.get(kind, []))

    def emit(self, event: HubEvent) -> None:
        # Snapshot: changes made by a callback apply from the next emission.
        for subscription in tuple(self._subscribers.get(event.kind, [])):
            try:
                subscription.callback(event)
            except Exception as exc:
                _logger.exception("Observer %r failed handling %s", subscription.callback, event.kind)
                self._report_fault(ObserverFault(event=event, callback=subscription.callback, error=exc))

    def _report_fault(self, fault: ObserverFault) -> None:
        if self._fault_handler is None:
            return
        try:
            self._fault_handler(fault)
        except Exception:
            _logger.exception("Observer fault handler failed")
