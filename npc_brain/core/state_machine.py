from collections import deque
from enum import Enum, auto
import logging
from typing import Deque, Dict, FrozenSet, List

logger = logging.getLogger(__name__)

# Defines the lifecycle of the Command Scheduler using the State Pattern.
# One enum replaces the loose "fetching / cooldown / at podium" flags so impossible combinations cannot exist.

class SchedulerState(Enum):
    IDLE = auto()          # Nothing queued, free to fetch (or fetching)
    COOLDOWN = auto()      # Waiting out the fetch cooldown
    EXECUTING = auto()     # Feeding scripted directives to the Character
    INTERACTIVE = auto()   # At the designated location, relaying chat

_ALLOWED: Dict[SchedulerState, FrozenSet[SchedulerState]] = {
    SchedulerState.IDLE: frozenset({SchedulerState.COOLDOWN, SchedulerState.EXECUTING}),
    SchedulerState.COOLDOWN: frozenset({SchedulerState.IDLE, SchedulerState.EXECUTING}),
    SchedulerState.EXECUTING: frozenset({
        SchedulerState.IDLE, SchedulerState.COOLDOWN, SchedulerState.INTERACTIVE,
    }),
    SchedulerState.INTERACTIVE: frozenset({SchedulerState.IDLE}),
}

class StateMachine:
    """
    Manages the lifecycle of the Command Scheduler.
    Enforces valid transitions so the scripted and interactive loops never overlap.
    """

    def __init__(self, history_size: int = 100):
        self._current_state = SchedulerState.IDLE
        self._history: Deque[Dict[str, str]] = deque(maxlen=history_size)

    @property
    def current(self) -> SchedulerState:
        return self._current_state

    @property
    def history(self) -> List[Dict[str, str]]:
        return list(self._history)

    def can_transition(self, new_state: SchedulerState) -> bool:
        return new_state == self._current_state or new_state in _ALLOWED[self._current_state]

    def transition_to(self, new_state: SchedulerState, reason: str = "") -> bool:
        """
        Transitions the scheduler to a new state if valid.

        Args:
            new_state: The target state.
            reason: Optional log message explaining the transition.

        Returns:
            True if the machine is in `new_state` afterwards.
        """
        if new_state == self._current_state:
            return True

        if new_state not in _ALLOWED[self._current_state]:
            logger.warning(f"⛔ Refusing transition {self._current_state.name} -> {new_state.name} | {reason}")
            return False

        logger.info(f"🔄 State Transition: {self._current_state.name} -> {new_state.name} | {reason}")

        self._history.append({
            "from": self._current_state.name,
            "to": new_state.name,
            "reason": reason
        })

        self._current_state = new_state
        return True

    def reset(self):
        """Back to IDLE, used when a session is restarted."""
        self._current_state = SchedulerState.IDLE
        self._history.clear()
