"""Shared fixtures: a temp database and an in-memory stand-in for Todoist."""

import tempfile
from pathlib import Path

import pytest

from day_planner.db.engine import init_db
from day_planner.integrations.todoist import (
    TodoistAPIError,
    TodoistLabel,
    TodoistProject,
    TodoistTask,
)


class FakeTodoist:
    """Records calls and answers like the Todoist client would."""

    def __init__(self):
        self.projects = [
            TodoistProject(id="p1", name="Client Work", color="red"),
            TodoistProject(id="p2", name="Side Project", color="grape"),
        ]
        self.tasks = {
            "t1": TodoistTask(id="t1", project_id="p1", content="Write proposal", labels=["@strategy", "urgent"]),
            "t2": TodoistTask(id="t2", project_id="p1", content="Reply to emails", labels=[]),
            "t3": TodoistTask(id="t3", project_id="p2", content="Fix login bug", labels=["@putting-off"], priority=4),
        }
        self.labels = [TodoistLabel(id="l1", name="urgent")]
        self.calls: list[tuple] = []
        self.fail_updates = False
        self.fail_close = False
        self.closed: dict[str, TodoistTask] = {}

    def get_projects(self):
        self.calls.append(("get_projects",))
        return list(self.projects)

    def get_tasks(self, project_id=None, filter=None, **kwargs):
        self.calls.append(("get_tasks", project_id, filter))
        return [t for t in self.tasks.values() if project_id is None or t.project_id == project_id]

    def get_task(self, task_id):
        self.calls.append(("get_task", task_id))
        if task_id not in self.tasks:
            raise TodoistAPIError(404, "Task not found")
        return self.tasks[task_id]

    def get_labels(self):
        self.calls.append(("get_labels",))
        return list(self.labels)

    def create_task(self, content, **fields):
        self.calls.append(("create_task", content, fields))
        task_id = f"t{len(self.tasks) + 1}"
        task = TodoistTask(
            id=task_id,
            project_id=fields.get("project_id") or "p1",
            content=content,
            labels=fields.get("labels") or [],
        )
        self.tasks[task_id] = task
        return task

    def update_task(self, task_id, **fields):
        self.calls.append(("update_task", task_id, fields))
        if self.fail_updates:
            raise TodoistAPIError(500, "upstream exploded")
        task = self.tasks[task_id]
        if "labels" in fields:
            task = task.with_labels(fields["labels"])
        if "content" in fields:
            task.content = fields["content"]
        self.tasks[task_id] = task
        return task

    def close_task(self, task_id):
        self.calls.append(("close_task", task_id))
        if self.fail_close:
            raise TodoistAPIError(503, "Service Unavailable")
        if task_id in self.tasks:
            self.closed[task_id] = self.tasks.pop(task_id)

    def reopen_task(self, task_id):
        self.calls.append(("reopen_task", task_id))
        if task_id in self.closed:
            self.tasks[task_id] = self.closed.pop(task_id)


@pytest.fixture
def fake_todoist():
    return FakeTodoist()


@pytest.fixture
def db():
    """Create a temporary SQLite database for testing."""
    with tempfile.TemporaryDirectory() as tmp:
        conn = init_db(Path(tmp) / "test.db")
        yield conn
        conn.close()
