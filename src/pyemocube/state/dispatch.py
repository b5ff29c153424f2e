"""Cross-thread work funnel.

Producer threads (MQTT network loop, worker threads) enqueue zero-argument
callables; a single execution thread drains and runs them once per tick.
Everything downstream of :meth:`DispatchQueue.drain` is therefore
single-threaded and needs no locking.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from pyemocube.exceptions import DispatchThreadError

_logger = logging.getLogger(__name__)

WorkItem = Callable[[], object]


@dataclass(frozen=True, slots=True)
class PendingWork:
    """A deferred action plus its enqueue order."""

    sequence: int
    work: WorkItem


class DispatchQueue:
    """Unbounded thread-safe FIFO drained on one designated thread.

    Parameters
    ----------
    on_error
        Optional hook invoked with ``(item, exception)`` when a work item
        raises. The failure is always logged; the drain continues.
    """

    def __init__(self, *, on_error: Callable[[PendingWork, BaseException], None] | None = None) -> None:
        self._lock = threading.Lock()
        self._items: deque[PendingWork] = deque()
        self._sequence = itertools.count()
        self._owner: int | None = None
        self._on_error = on_error

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def owner_thread_id(self) -> int | None:
        return self._owner

    def bind_to_current_thread(self) -> None:
        """Make the calling thread the execution thread."""
        self._owner = threading.get_ident()

    def enqueue(self, work: WorkItem) -> None:
        """Append *work*; safe from any thread, returns immediately."""
        if not callable(work):
            raise TypeError(f"work item must be callable, got {type(work).__name__}")
        with self._lock:
            self._items.append(PendingWork(sequence=next(self._sequence), work=work))

    def drain(self) -> int:
        """Run every item queued so far, in order, on the calling thread.

        The first call binds the execution thread when none was bound
        explicitly. Items enqueued while draining run on the next call.
        If a work item raises a non-``Exception`` (``KeyboardInterrupt``),
        the items after it stay queued ahead of newer ones.
        Returns the number of items executed.
        """
        current = threading.get_ident()
        if self._owner is None:
            self._owner = current
        elif self._owner != current:
            raise DispatchThreadError("drain() must run on the execution thread")

        with self._lock:
            batch = self._items
            self._items = deque()

        executed = 0
        try:
            while batch:
                item = batch.popleft()
                executed += 1
                try:
                    item.work()
                except Exception as exc:
                    _logger.exception("Work item #%d failed", item.sequence)
                    if self._on_error is not None:
                        try:
                            self._on_error(item, exc)
                        except Exception:
                            _logger.exception("Dispatch error hook failed")
        finally:
            if batch:
                # Interrupted by a BaseException; unrun items go back to the head.
                with self._lock:
                    batch.extend(self._items)
                    self._items = batch
        return executed
