"""
Share flow state machine.

Tracks where a create or reveal is, so any front end can drive it without
keeping its own ad hoc flags.

  create: IDLE -> ENCRYPTING -> CREATED
  reveal: IDLE -> CONFIRMING -> REVEALING -> REVEALED
  any state -> ERROR, and ERROR / CREATED / REVEALED -> IDLE
"""

from enum import Enum

from snappwd.errors import InvalidTransition


class ShareState(Enum):
    IDLE = "idle"
    ENCRYPTING = "encrypting"
    CREATED = "created"
    CONFIRMING = "confirming"
    REVEALING = "revealing"
    REVEALED = "revealed"
    ERROR = "error"


TRANSITIONS = {
    ShareState.IDLE: {ShareState.ENCRYPTING, ShareState.CONFIRMING},
    ShareState.ENCRYPTING: {ShareState.CREATED},
    ShareState.CREATED: {ShareState.IDLE},
    ShareState.CONFIRMING: {ShareState.REVEALING, ShareState.IDLE},
    ShareState.REVEALING: {ShareState.REVEALED},
    ShareState.REVEALED: {ShareState.IDLE},
    ShareState.ERROR: {ShareState.IDLE},
}


class ShareFlow:
    """Current state of one share or reveal, plus the last error message."""

    def __init__(self):
        self.state = ShareState.IDLE
        self.error = None

    def can_advance(self, state: ShareState) -> bool:
        return state in TRANSITIONS[self.state]

    def advance(self, state: ShareState) -> ShareState:
        """
        Move to a new state.

        Raises:
            InvalidTransition: If the move is not allowed from the current state.
        """
        if not self.can_advance(state):
            raise InvalidTransition(
                f"Cannot move from {self.state.value} to {state.value}"
            )
        self.state = state
        return state

    def fail(self, message: str) -> ShareState:
        """Record an error. Allowed from every state."""
        self.state = ShareState.ERROR
        self.error = message
        return self.state

    def reset(self) -> ShareState:
        self.state = ShareState.IDLE
        self.error = None
        return self.state
