"""Fixed-capacity client slot registry."""

from __future__ import annotations

import enum
import logging
from typing import Final, Literal

from pyemocube.exceptions import HubConfigError
from pyemocube.state.bus import NotificationBus
from pyemocube.state.events import EventKind, SlotEvent
from pyemocube.state.store import LabelStore

_logger = logging.getLogger(__name__)


class _Sentinel(enum.Enum):
    CAPACITY_EXCEEDED = "capacity_exceeded"


CAPACITY_EXCEEDED: Final = _Sentinel.CAPACITY_EXCEEDED
"""Returned by :meth:`SlotRegistry.resolve_or_add` when every slot is taken."""

SlotResult = int | Literal[_Sentinel.CAPACITY_EXCEEDED]


class SlotRegistry:
    """Maps client identifiers to slots in ``[0, capacity)``.

    * one identifier per slot, never more than ``capacity`` occupants
    * a new identifier takes the lowest free slot, so a slot is only reused
      after an explicit :meth:`remove`
    * ``local_client_resolved`` fires at most once per registry lifetime

    Execution thread only; there is no internal locking.
    """

    def __init__(
        self,
        capacity: int,
        *,
        bus: NotificationBus,
        store: LabelStore,
        local_client_id: str | None = None,
    ) -> None:
        if capacity < 1:
            raise HubConfigError(f"capacity must be at least 1, got {capacity}")
        self._slots: list[str | None] = [None] * capacity
        self._bus = bus
        self._store = store
        self._local_client_id = local_client_id
        self._local_resolved = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return sum(1 for occupant in self._slots if occupant is not None)

    @property
    def local_client_id(self) -> str | None:
        return self._local_client_id

    @local_client_id.setter
    def local_client_id(self, value: str | None) -> None:
        if self._local_resolved and value != self._local_client_id:
            raise HubConfigError("local client id cannot change after it has been resolved")
        self._local_client_id = value

    @property
    def local_resolved(self) -> bool:
        return self._local_resolved

    def slot_of(self, identifier: str) -> int | None:
        for index, occupant in enumerate(self._slots):
            if occupant == identifier:
                return index
        return None

    def occupant(self, slot: int) -> str | None:
        if 0 <= slot < len(self._slots):
            return self._slots[slot]
        return None

    def occupied(self) -> list[tuple[int, str]]:
        return [(index, occupant) for index, occupant in enumerate(self._slots) if occupant is not None]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def resolve_or_add(self, identifier: str) -> SlotResult:
        """Return the slot for *identifier*, assigning a free one if needed."""
        existing = self.slot_of(identifier)
        if existing is not None:
            if identifier == self._local_client_id:
                self._mark_local_resolved(existing)
            return existing

        free = self._lowest_free_slot()
        if free is None:
            _logger.debug("No free slot for client %s (capacity %d)", identifier, self.capacity)
            return CAPACITY_EXCEEDED

        self._slots[free] = identifier
        self._store.create(free)
        _logger.debug("Client %s assigned to slot %d", identifier, free)
        self._bus.emit(SlotEvent(kind=EventKind.SLOT_ADDED, slot=free))

        if identifier == self._local_client_id:
            self._mark_local_resolved(free)
        return free

    def remove(self, identifier: str) -> int | None:
        """Free the slot held by *identifier*; unknown identifiers are ignored."""
        slot = self.slot_of(identifier)
        if slot is None:
            return None

        self._slots[slot] = None
        self._store.reset(slot)
        _logger.debug("Client %s removed from slot %d", identifier, slot)
        self._bus.emit(SlotEvent(kind=EventKind.SLOT_REMOVED, slot=slot))
        return slot

    def _lowest_free_slot(self) -> int | None:
        for index, occupant in enumerate(self._slots):
            if occupant is None:
                return index
        return None

    def _mark_local_resolved(self, slot: int) -> None:
        if self._local_resolved:
            return
        self._local_resolved = True
        _logger.debug("Local client resolved to slot %d", slot)
        self._bus.emit(SlotEvent(kind=EventKind.LOCAL_CLIENT_RESOLVED, slot=slot))
