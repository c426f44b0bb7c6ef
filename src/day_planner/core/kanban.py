"""Kanban board state: drag/drop, optimistic relabeling and the task cache.

A card moves Idle -> Dragging -> Dropped -> Settling -> Idle. Dropping on a
column rewrites the task's category label locally first and then asks Todoist
to store the new label set; when Todoist refuses, the local task is put back
the way it was. Dropping on another card only reorders the in-memory list.
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from day_planner.core.categories import Category, group_by_category, relabel
from day_planner.integrations.todoist import TodoistAPIError, TodoistTask

logger = logging.getLogger(__name__)

TASK_CACHE_TTL = 5 * 60


class LabelGateway(Protocol):
    def update_task(self, task_id: str, **fields) -> TodoistTask: ...


class CardState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    SETTLING = "settling"


@dataclass(frozen=True)
class ColumnTarget:
    category: Category


@dataclass(frozen=True)
class TaskTarget:
    task_id: str


@dataclass
class MoveResult:
    """Outcome of a drop. `undo` re-applies the inverse transition."""

    ok: bool
    task_id: str
    applied: bool = False
    error: TodoistAPIError | None = None
    undo: Callable[[], None] = field(default=lambda: None, repr=False)


class KanbanBoard:
    """Ordered local copy of the tasks shown on the board."""

    def __init__(self, tasks: Iterable[TodoistTask] = ()):
        self.tasks: list[TodoistTask] = list(tasks)
        self.states: dict[str, CardState] = {}

    def get(self, task_id: str) -> TodoistTask | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def index_of(self, task_id: str) -> int:
        for i, t in enumerate(self.tasks):
            if t.id == task_id:
                return i
        return -1

    def state_of(self, task_id: str) -> CardState:
        return self.states.get(task_id, CardState.IDLE)

    def replace(self, task: TodoistTask):
        i = self.index_of(task.id)
        if i != -1:
            self.tasks[i] = task

    def columns(self, project_id: str | None = None) -> dict[Category, list[TodoistTask]]:
        tasks = [t for t in self.tasks if project_id is None or t.project_id == project_id]
        return group_by_category(tasks)

    def rows(self, project_ids: Iterable[str]) -> list[tuple[str, dict[Category, list[TodoistTask]]]]:
        """One row per project, three columns per row."""
        return [(pid, self.columns(pid)) for pid in project_ids]

    # ── Drag and drop ──

    def begin_drag(self, task_id: str):
        if self.get(task_id) is None:
            raise ValueError(f"Task not on board: {task_id}")
        self.states[task_id] = CardState.DRAGGING

    def drop(self, task_id: str, target, gateway: LabelGateway | None = None) -> MoveResult:
        """Finish a drag over `target` (a ColumnTarget, a TaskTarget or None)."""
        if self.get(task_id) is None:
            raise ValueError(f"Task not on board: {task_id}")
        if target is None:
            self.states[task_id] = CardState.IDLE
            return MoveResult(ok=True, task_id=task_id)

        self.states[task_id] = CardState.DROPPED
        try:
            if isinstance(target, ColumnTarget):
                if gateway is None:
                    raise ValueError("Moving between columns needs a gateway")
                return self._move_to_column(task_id, target.category, gateway)
            if isinstance(target, TaskTarget):
                return self._reorder(task_id, target.task_id)
            raise TypeError(f"Unsupported drop target: {target!r}")
        finally:
            self.states[task_id] = CardState.IDLE

    def move_to_column(self, task_id: str, category: Category, gateway: LabelGateway) -> MoveResult:
        self.begin_drag(task_id)
        return self.drop(task_id, ColumnTarget(category), gateway)

    def reorder(self, active_id: str, over_id: str) -> MoveResult:
        self.begin_drag(active_id)
        return self.drop(active_id, TaskTarget(over_id))

    def _move_to_column(self, task_id: str, category: Category, gateway: LabelGateway) -> MoveResult:
        before = self.get(task_id)
        labels = relabel(before.labels, category)
        tentative = before.with_labels(labels)

        # Optimistic local change first, then the remote effect.
        self.replace(tentative)
        self.states[task_id] = CardState.SETTLING
        try:
            gateway.update_task(task_id, labels=labels)
        except Exception as e:
            logger.warning("Relabeling %s failed, reverting: %s", task_id, e)
            self.replace(before)
            if not isinstance(e, TodoistAPIError):
                raise
            return MoveResult(
                ok=False,
                task_id=task_id,
                error=e,
                undo=lambda: self.replace(tentative),
            )
        logger.info("Moved %s to %s", task_id, category.value)
        return MoveResult(
            ok=True,
            task_id=task_id,
            applied=True,
            undo=lambda: self.replace(before),
        )

    def _reorder(self, active_id: str, over_id: str) -> MoveResult:
        old_index = self.index_of(active_id)
        new_index = self.index_of(over_id)
        if active_id == over_id or old_index == -1 or new_index == -1:
            return MoveResult(ok=True, task_id=active_id)

        self.tasks.insert(new_index, self.tasks.pop(old_index))
        return MoveResult(
            ok=True,
            task_id=active_id,
            applied=True,
            undo=lambda: self.tasks.insert(old_index, self.tasks.pop(new_index)),
        )


class TaskCache:
    """Task lists keyed by (project_id, filter), fresh for `ttl` seconds."""

    def __init__(self, ttl: float = TASK_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[tuple, tuple[float, list[TodoistTask]]] = {}

    def get(self, project_id: str | None = None, filter: str | None = None) -> list[TodoistTask] | None:
        entry = self._entries.get((project_id, filter))
        if entry is None:
            return None
        fetched_at, tasks = entry
        if self._clock() - fetched_at > self.ttl:
            del self._entries[(project_id, filter)]
            return None
        return tasks

    def put(self, tasks: list[TodoistTask], project_id: str | None = None, filter: str | None = None):
        self._entries[(project_id, filter)] = (self._clock(), list(tasks))

    def fetch(self, gateway, project_id: str | None = None, filter: str | None = None) -> list[TodoistTask]:
        """Return cached tasks, asking the gateway only when stale."""
        tasks = self.get(project_id, filter)
        if tasks is None:
            tasks = gateway.get_tasks(project_id=project_id, filter=filter)
            self.put(tasks, project_id, filter)
        return tasks

    def invalidate(self):
        self._entries.clear()
