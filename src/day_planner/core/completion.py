"""Completing a task: log the time spent and close it in Todoist."""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date as date_type

from day_planner.core.categories import categorize
from day_planner.core.kanban import TaskCache
from day_planner.core.time_entries import check_time_entry, record_time_entry
from day_planner.core.timer import TimerCoordinator
from day_planner.db.models import TimeEntry
from day_planner.integrations.todoist import TodoistTask

logger = logging.getLogger(__name__)

QUICK_PICK_MINUTES = (15, 30, 60)
DEFAULT_MINUTES = 15


@dataclass
class CompletionResult:
    task_id: str
    entry: TimeEntry
    timer_stopped: bool


def suggested_minutes(elapsed_seconds: int) -> int:
    """Pre-fill for the duration field: the timer rounded to the minute."""
    return round(elapsed_seconds / 60) or DEFAULT_MINUTES


def resolve_duration(choice: int | str | None, elapsed_seconds: int = 0) -> int:
    """Turn a quick pick, a free-form value or nothing into minutes."""
    if choice is None or choice == "":
        return suggested_minutes(elapsed_seconds)
    try:
        minutes = int(choice)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid duration: {choice!r}") from None
    if minutes <= 0:
        raise ValueError("Duration must be at least one minute")
    return minutes


def complete_task(
    db: sqlite3.Connection,
    gateway,
    timer: TimerCoordinator,
    task: TodoistTask,
    duration_minutes: int,
    notes: str | None = None,
    date: str | None = None,
    project_name: str | None = None,
    cache: TaskCache | None = None,
) -> CompletionResult:
    """Close the task remotely, then record the time entry.

    The entry is validated first and written only after Todoist accepted the
    close, so no write lock is held during the network call. If the write
    fails the task is reopened.
    """
    fields = dict(
        date=date or date_type.today().isoformat(),
        todoist_task_id=task.id,
        task_name=task.content,
        duration_minutes=duration_minutes,
        category=categorize(task.labels).value,
    )
    check_time_entry(**fields)

    gateway.close_task(task.id)
    try:
        entry = record_time_entry(
            db,
            todoist_project_id=task.project_id,
            project_name=project_name or task.project_id,
            notes=notes,
            **fields,
        )
    except Exception:
        logger.warning("Recording time for %s failed, reopening task", task.id)
        gateway.reopen_task(task.id)
        raise

    timer_stopped = False
    if timer.is_active(task.id):
        timer.stop()
        timer_stopped = True

    if cache is not None:
        cache.invalidate()

    logger.info("Completed %s (%d min)", task.id, duration_minutes)
    return CompletionResult(task_id=task.id, entry=entry, timer_stopped=timer_stopped)
