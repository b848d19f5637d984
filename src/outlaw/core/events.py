"""
Event bus for Outlaw Crossing.

The window publishes input and TICK events, the simulation publishes
gameplay outcomes and sound triggers, and the audio engine listens for
SOUND_PLAY. emit() runs plain handlers immediately; queued events are
drained once per frame by the async window loop, which is the only place
coroutine handlers run.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, List
from enum import Enum
import asyncio
import logging
import time

logger = logging.getLogger(__name__)


class EventType(Enum):
    # Input, from the host
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    START = "start"
    RESTART = "restart"

    # Outcomes, from the simulation
    STATE_CHANGED = "state_changed"
    LEVEL_STARTED = "level_started"
    LIFE_LOST = "life_lost"
    GAME_OVER = "game_over"
    PICKUP_COLLECTED = "pickup_collected"
    GOAL_REACHED = "goal_reached"
    LEVEL_COMPLETE = "level_complete"
    DIFFICULTY_CHANGED = "difficulty_changed"
    SCORE_UPDATED = "score_updated"
    VICTORY = "victory"

    # Audio
    SOUND_PLAY = "sound_play"

    # Host loop
    TICK = "tick"
    SHUTDOWN = "shutdown"


@dataclass
class Event:
    """
    One published event.

    Attributes:
        type: What happened
        data: Payload, e.g. {"lives": 2} for LIFE_LOST
        source: Publisher name ("keyboard", "simulation", ...)
        timestamp: time.monotonic() at creation
    """
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    source: str = "system"
    timestamp: float = field(default_factory=time.monotonic)


Handler = Callable[[Event], None] | Callable[[Event], Awaitable[None]]


class EventBus:
    """Pub/sub hub with a bounded history of everything published."""

    def __init__(self, history_limit: int = 100) -> None:
        self._handlers: Dict[EventType, List[Handler]] = {}
        self._wildcard: List[Handler] = []
        self._pending: Deque[Event] = deque()
        self._history: Deque[Event] = deque(maxlen=history_limit)

    def subscribe(self, event_type: EventType, handler: Handler) -> Callable[[], None]:
        """Listen for one event type. Returns a function that undoes it."""
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type.name}")

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        """Listen for every event type."""
        self._wildcard.append(handler)

        def unsubscribe() -> None:
            if handler in self._wildcard:
                self._wildcard.remove(handler)

        return unsubscribe

    def _listeners(self, event: Event) -> List[Handler]:
        return self._handlers.get(event.type, []) + self._wildcard

    def emit(self, event: Event) -> None:
        """Deliver an event now. Coroutine handlers only see queued events."""
        self._history.append(event)
        for handler in self._listeners(event):
            if asyncio.iscoroutinefunction(handler):
                continue
            self._call(handler, event)

    def queue_event(self, event: Event) -> None:
        """Hold an event until the next process_queue()."""
        self._pending.append(event)

    async def process_queue(self) -> None:
        """Deliver every queued event to plain and coroutine handlers."""
        while self._pending:
            event = self._pending.popleft()
            self._history.append(event)
            coroutines = []
            for handler in self._listeners(event):
                if asyncio.iscoroutinefunction(handler):
                    coroutines.append(handler(event))
                else:
                    self._call(handler, event)
            if coroutines:
                results = await asyncio.gather(*coroutines, return_exceptions=True)
                for result in results:
                    if isinstance(result, Exception):
                        logger.error(f"Async handler for {event.type.name} failed: {result}")

    @staticmethod
    def _call(handler: Handler, event: Event) -> None:
        try:
            handler(event)
        except Exception as e:
            logger.error(f"Handler for {event.type.name} failed: {e}")

    def get_history(self, event_type: EventType | None = None, limit: int = 10) -> List[Event]:
        """Most recent events, oldest first, optionally of one type."""
        events = [e for e in self._history if event_type is None or e.type == event_type]
        return events[-limit:]

    def clear_history(self) -> None:
        self._history.clear()


def sound_event(sound: str, source: str = "simulation") -> Event:
    """SOUND_PLAY trigger for the audio engine."""
    return Event(EventType.SOUND_PLAY, data={"sound": sound}, source=source)


def tick_event(delta: float, frame: int) -> Event:
    """Per-frame TICK; delta is in seconds."""
    return Event(EventType.TICK, data={"delta": delta, "frame": frame}, source="window")
