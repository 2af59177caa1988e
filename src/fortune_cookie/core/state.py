"""
Screen-level state machine for the fortune cookie session.

States:
    IDLE: No active cycle (after startup or "open another")
    AWAITING_REVEAL: An unbroken cookie is shown and its cycle is not yet revealed
    SHOWING_FORTUNE: The cycle is revealed and its fortune is displayed
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any
import logging

logger = logging.getLogger(__name__)


class State(Enum):
    """Session states."""
    IDLE = auto()
    AWAITING_REVEAL = auto()
    SHOWING_FORTUNE = auto()


@dataclass
class StateContext:
    """Context data carried alongside the session state."""
    fortune: str | None = None
    cycle_number: int = 0


class StateMachine:
    """
    Manages session state and transitions.

    Rejects transitions not listed in VALID_TRANSITIONS.
    """

    VALID_TRANSITIONS: list[tuple[State, State]] = [
        (State.IDLE, State.AWAITING_REVEAL),
        (State.AWAITING_REVEAL, State.SHOWING_FORTUNE),
        (State.AWAITING_REVEAL, State.IDLE),  # Teardown mid-cycle
        (State.SHOWING_FORTUNE, State.IDLE),  # Open another, or teardown
    ]

    def __init__(self, initial_state: State = State.IDLE) -> None:
        self._state = initial_state
        self._context = StateContext()
        self._valid_transitions = set(self.VALID_TRANSITIONS)
        logger.debug(f"StateMachine initialized with state: {initial_state.name}")

    @property
    def state(self) -> State:
        """Get current state."""
        return self._state

    @property
    def context(self) -> StateContext:
        """Get current context."""
        return self._context

    def can_transition(self, to_state: State) -> bool:
        """Check if transition to given state is valid."""
        return (self._state, to_state) in self._valid_transitions

    def transition(self, to_state: State, **context_updates: Any) -> bool:
        """
        Attempt to transition to a new state.

        Args:
            to_state: Target state
            **context_updates: Updates to apply to context

        Returns:
            True if transition successful, False otherwise
        """
        if not self.can_transition(to_state):
            logger.warning(
                f"Invalid transition: {self._state.name} -> {to_state.name}"
            )
            return False

        old_state = self._state
        self._state = to_state

        for key, value in context_updates.items():
            if hasattr(self._context, key):
                setattr(self._context, key, value)

        logger.info(f"State transition: {old_state.name} -> {to_state.name}")
        return True
