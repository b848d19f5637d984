"""
State machine for the crossing simulation.

States:
    NOT_STARTED: Simulation set up, no level running yet
    RUNNING: Ticking, accepting input, resolving collisions
    TRANSITION: Short pause after a life is lost or a level completes
    ENDED: Game over or victory; only a new start_level leaves it
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Callable
import logging

logger = logging.getLogger(__name__)


class State(Enum):
    """Simulation states."""
    NOT_STARTED = auto()
    RUNNING = auto()
    TRANSITION = auto()
    ENDED = auto()


class TransitionReason(Enum):
    """Why the simulation is paused or ended."""
    LIFE_LOST = "life_lost"
    LEVEL_COMPLETE = "level_complete"
    GAME_OVER = "game_over"
    VICTORY = "victory"


@dataclass
class StateContext:
    """Context data carried alongside the current state."""
    reason: TransitionReason | None = None
    entered_at_ms: float = 0.0
    pause_ms: float = 0.0

    def pause_elapsed(self, now_ms: float) -> bool:
        """Check whether the transition pause is over."""
        return now_ms - self.entered_at_ms >= self.pause_ms


StateListener = Callable[[State, State, StateContext], None]


class StateMachine:
    """
    Guards the simulation's state changes and tells listeners about them.

    RUNNING can be entered from every state because start_level always
    begins a fresh run. ENDED is left only that way.
    """

    ALLOWED: dict[State, frozenset[State]] = {
        State.NOT_STARTED: frozenset({State.RUNNING}),
        State.RUNNING: frozenset({State.RUNNING, State.TRANSITION, State.ENDED}),
        State.TRANSITION: frozenset({State.RUNNING, State.ENDED}),
        State.ENDED: frozenset({State.RUNNING}),
    }

    def __init__(self, initial_state: State = State.NOT_STARTED) -> None:
        self._state = initial_state
        self._context = StateContext()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> State:
        return self._state

    @property
    def context(self) -> StateContext:
        """Reason and pause timing for the current state."""
        return self._context

    def can_transition(self, to_state: State) -> bool:
        return to_state in self.ALLOWED[self._state]

    def transition(
        self,
        to_state: State,
        reason: TransitionReason | None = None,
        entered_at_ms: float = 0.0,
        pause_ms: float = 0.0,
    ) -> bool:
        """
        Move to another state with a fresh context.

        Returns:
            False (and nothing changes) if the move is not allowed
        """
        if not self.can_transition(to_state):
            logger.warning(f"Refused transition {self._state.name} -> {to_state.name}")
            return False

        old_state = self._state
        self._state = to_state
        self._context = StateContext(reason=reason, entered_at_ms=entered_at_ms, pause_ms=pause_ms)
        logger.debug(f"{old_state.name} -> {to_state.name} ({reason.value if reason else 'no reason'})")

        for listener in list(self._listeners):
            try:
                listener(old_state, to_state, self._context)
            except Exception as e:
                logger.error(f"State listener failed: {e}")
        return True

    def add_listener(self, callback: StateListener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: StateListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def reset(self) -> None:
        """Back to NOT_STARTED without notifying listeners."""
        self._state = State.NOT_STARTED
        self._context = StateContext()
