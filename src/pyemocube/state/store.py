"""Per-slot derived label store with change-gated notification.

This is the only component allowed to mutate a slot's label.
"""

from __future__ import annotations

import logging

from pyemocube.models.label import DerivedLabel
from pyemocube.state.bus import NotificationBus
from pyemocube.state.events import StateChangedEvent

_logger = logging.getLogger(__name__)


class LabelStore:
    """Last-known dominant label for each assigned slot.

    A slot has no entry until :meth:`create` (called on slot assignment) and
    loses it again on :meth:`reset` (slot removal). Execution thread only.
    """

    def __init__(self, bus: NotificationBus) -> None:
        self._bus = bus
        self._labels: dict[int, DerivedLabel] = {}

    def create(self, slot: int) -> None:
        self._labels[slot] = DerivedLabel.NONE

    def reset(self, slot: int) -> None:
        self._labels.pop(slot, None)

    def get(self, slot: int) -> DerivedLabel | None:
        return self._labels.get(slot)

    def snapshot(self) -> dict[int, DerivedLabel]:
        return dict(self._labels)

    def apply(self, slot: int, label: DerivedLabel) -> bool:
        """Store *label* for *slot* and notify when it differs from the current one.

        Returns ``True`` when a ``state_changed`` event was emitted.
        """
        current = self._labels.get(slot)
        if current is None:
            _logger.debug("Ignoring label %s for unassigned slot %d", label, slot)
            return False
        if current == label:
            return False

        _logger.debug("Slot %d label changed: %s -> %s", slot, current, label)
        self._labels[slot] = label
        self._bus.emit(StateChangedEvent(slot=slot, label=label))
        return True
