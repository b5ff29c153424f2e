"""Notification events.

Observers receive these immutable snapshots; they never hold references
into the registry or the label store.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from pyemocube.models.label import DerivedLabel


class EventKind(StrEnum):
    SLOT_ADDED = "slot_added"
    SLOT_REMOVED = "slot_removed"
    STATE_CHANGED = "state_changed"
    LOCAL_CLIENT_RESOLVED = "local_client_resolved"


class SlotEvent(BaseModel):
    """Slot lifecycle event (added, removed, local client resolved)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EventKind.SLOT_ADDED, EventKind.SLOT_REMOVED, EventKind.LOCAL_CLIENT_RESOLVED]
    slot: int = Field(..., ge=0)


class StateChangedEvent(BaseModel):
    """The dominant label of a slot changed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EventKind.STATE_CHANGED] = EventKind.STATE_CHANGED
    slot: int = Field(..., ge=0)
    label: DerivedLabel


HubEvent = SlotEvent | StateChangedEvent


@dataclass(frozen=True)
class ObserverFault:
    """A subscriber callback raised while handling *event*."""

    event: HubEvent
    callback: Any
    error: BaseException
