"""Session lifecycle state machine."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from errors import InvalidTransition
from models import SessionState, TransitionEvent

logger = logging.getLogger(__name__)

TransitionListener = Callable[[TransitionEvent], None]

TRANSITIONS = frozenset(
    {
        (SessionState.IDLE, SessionState.RECORDING),
        (SessionState.RECORDING, SessionState.PROCESSING),
        (SessionState.PROCESSING, SessionState.POST_PROCESSING),
        (SessionState.PROCESSING, SessionState.IDLE),
        (SessionState.POST_PROCESSING, SessionState.IDLE),
    }
)


def is_valid_transition(from_state: SessionState, to_state: SessionState) -> bool:
    return (from_state, to_state) in TRANSITIONS


class SessionStateMachine:
    """Holds the current session state and enforces the transition table.

    Every successful transition is returned to the caller as a
    ``TransitionEvent`` and, if a listener is attached, delivered to it after
    the new state is visible. Transitioning to the current state is a no-op.
    """

    def __init__(
        self,
        listener: Optional[TransitionListener] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._listener = listener
        self._log = log or logger
        self._lock = threading.Lock()
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def transition_to(self, target: SessionState) -> Optional[TransitionEvent]:
        with self._lock:
            current = self._state
            if current == target:
                return None
            if not is_valid_transition(current, target):
                raise InvalidTransition(current, target)
            self._state = target
            event = TransitionEvent(previous_state=current, new_state=target)

        self._log.info("State transition %s -> %s", current.value, target.value)
        if self._listener:
            self._listener(event)
        return event
