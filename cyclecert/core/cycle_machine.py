"""Scheduler state machine.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- Every failure passes through BACKOFF before FETCHING again
- Every transition is logged and kept in a bounded history
"""

from __future__ import annotations

import logging
from collections import deque

from cyclecert.models.cycle import VALID_TRANSITIONS, CycleState, CycleTransition

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class CycleMachine:
    """Tracks the scheduler's current state.

    Parameters
    ----------
    initial:
        Starting state.  The loop always starts by fetching.
    history_limit:
        Number of recent transitions kept for inspection.
    """

    def __init__(
        self,
        initial: CycleState = CycleState.FETCHING,
        history_limit: int = 64,
    ) -> None:
        self._state = initial
        self._history: deque[CycleTransition] = deque(maxlen=history_limit)

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def history(self) -> list[CycleTransition]:
        """Recent transitions, oldest first."""
        return list(self._history)

    def transition(self, target: CycleState, *, reason: str = "") -> CycleTransition:
        """Move to *target*, recording the transition.

        Raises ``InvalidTransitionError`` if the table does not allow it.
        """
        allowed = VALID_TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition from {self._state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        record = CycleTransition(
            from_state=self._state, to_state=target, reason=reason
        )
        self._history.append(record)
        logger.debug(
            "%s -> %s%s",
            self._state.value,
            target.value,
            f" ({reason})" if reason else "",
        )
        self._state = target
        return record

    def can_transition(self, target: CycleState) -> bool:
        return target in VALID_TRANSITIONS.get(self._state, set())

    def get_available_transitions(self) -> set[CycleState]:
        """Return the set of valid target states from the current state."""
        return set(VALID_TRANSITIONS.get(self._state, set()))
