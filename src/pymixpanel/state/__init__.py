"""Client state: readiness, super properties and the event queue."""

from pymixpanel.state.queue import EventQueue
from pymixpanel.state.readiness import LifecycleState, ReadinessGate
from pymixpanel.state.super_props import SuperPropertyStore

__all__ = [
    "EventQueue",
    "LifecycleState",
    "ReadinessGate",
    "SuperPropertyStore",
]
