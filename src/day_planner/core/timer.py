"""Single active task timer."""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class TimerState:
    task_id: str | None = None
    started_at: float | None = None

    @property
    def running(self) -> bool:
        return self.task_id is not None


class TimerCoordinator:
    """Owns the one timer that may run at a time.

    Starting a timer while another runs replaces it; the last start wins.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._state = TimerState()

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def active_task_id(self) -> str | None:
        return self._state.task_id

    def start(self, task_id: str) -> TimerState:
        if not task_id:
            raise ValueError("task_id is required")
        self._state = TimerState(task_id=task_id, started_at=self._clock())
        return self._state

    def stop(self) -> TimerState:
        """Clear the timer, returning the state it had."""
        previous = self._state
        self._state = TimerState()
        return previous

    def is_active(self, task_id: str) -> bool:
        return self._state.task_id is not None and self._state.task_id == task_id

    def elapsed_seconds(self) -> int:
        if self._state.started_at is None:
            return 0
        return max(0, math.floor(self._clock() - self._state.started_at))

    def to_dict(self) -> dict:
        return {
            "task_id": self._state.task_id,
            "started_at": self._state.started_at,
            "elapsed_seconds": self.elapsed_seconds(),
        }
