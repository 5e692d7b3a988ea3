"""Startup lifecycle and readiness gate.

The client moves through four states exactly once each::

    UNINITIALIZED -> AWAITING_METADATA -> AWAITING_PERSISTED_PROPS -> READY

Every stage has its own transition method so each can be driven on its
own. A transition called from the wrong state, or a second time, is
ignored and reported by returning ``False``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

_logger = logging.getLogger(__name__)


class LifecycleState(StrEnum):
    UNINITIALIZED = "uninitialized"
    AWAITING_METADATA = "awaiting_metadata"
    AWAITING_PERSISTED_PROPS = "awaiting_persisted_props"
    READY = "ready"


class ReadinessGate:
    """Tracks startup progress and notifies listeners once ready."""

    def __init__(self) -> None:
        self._state = LifecycleState.UNINITIALIZED
        self._listeners: list[Callable[[], None]] = []

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is LifecycleState.READY

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Call *callback* on the transition to ready, or now if already ready."""
        if self.ready:
            self._notify(callback)
            return
        self._listeners.append(callback)

    def _advance(self, expected: LifecycleState, target: LifecycleState) -> bool:
        if self._state is not expected:
            _logger.debug(
                "Ignoring transition to %s from %s (expected %s)",
                target,
                self._state,
                expected,
            )
            return False
        _logger.debug("Lifecycle %s -> %s", self._state, target)
        self._state = target
        return True

    def begin(self) -> bool:
        """Startup has been scheduled; metadata resolution is pending."""
        return self._advance(LifecycleState.UNINITIALIZED, LifecycleState.AWAITING_METADATA)

    def metadata_resolved(self) -> bool:
        """Metadata settled (resolved or failed); the persisted read is pending."""
        return self._advance(LifecycleState.AWAITING_METADATA, LifecycleState.AWAITING_PERSISTED_PROPS)

    def mark_ready(self) -> bool:
        """Persisted properties settled. Flips ``ready`` and runs listeners."""
        if not self._advance(LifecycleState.AWAITING_PERSISTED_PROPS, LifecycleState.READY):
            return False
        listeners, self._listeners = self._listeners, []
        for callback in listeners:
            self._notify(callback)
        return True

    @staticmethod
    def _notify(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            _logger.debug("Ready listener failed", exc_info=True)
