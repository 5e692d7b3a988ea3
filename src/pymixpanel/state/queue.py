"""Pending event queue and its flush algorithm."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from pymixpanel.config import DrainOrder
from pymixpanel.models.event import Event
from pymixpanel.state.readiness import ReadinessGate

_logger = logging.getLogger(__name__)


class EventQueue:
    """Buffers events until the gate is ready, then drains them.

    *dispatch* is called once per drained event and must not block: it
    issues the network call and returns. ``flush`` never awaits delivery,
    retries or looks at the outcome.
    """

    def __init__(
        self,
        gate: ReadinessGate,
        dispatch: Callable[[Event], None],
        *,
        drain_order: DrainOrder = DrainOrder.TAIL_FIRST,
    ) -> None:
        self._gate = gate
        self._dispatch = dispatch
        self._drain_order = drain_order
        self._events: deque[Event] = deque()

    def __len__(self) -> int:
        return len(self._events)

    @property
    def drain_order(self) -> DrainOrder:
        return self._drain_order

    @property
    def pending(self) -> list[Event]:
        """Events not yet dispatched, oldest first."""
        return list(self._events)

    def enqueue(self, event: Event) -> None:
        """Append *event* and flush."""
        self._events.append(event)
        self.flush()

    def flush(self) -> int:
        """Dispatch every queued event if ready; return how many were dispatched."""
        if not self._gate.ready:
            return 0

        dispatched = 0
        while self._events:
            if self._drain_order is DrainOrder.HEAD_FIRST:
                event = self._events.popleft()
            else:
                event = self._events.pop()
            try:
                self._dispatch(event)
            except Exception:
                _logger.debug("Dispatching event %r failed", event.name, exc_info=True)
                continue
            event.sent = True
            dispatched += 1

        if dispatched:
            _logger.debug("Flushed %d events (%s)", dispatched, self._drain_order)
        return dispatched
