"""Core systems for Outlaw Crossing."""

from outlaw.core.state import StateMachine, State, StateContext, TransitionReason
from outlaw.core.events import EventBus, Event, EventType

__all__ = [
    "StateMachine",
    "State",
    "StateContext",
    "TransitionReason",
    "EventBus",
    "Event",
    "EventType",
]
