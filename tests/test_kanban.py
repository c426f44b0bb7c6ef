"""Tests for kanban drag/drop reconciliation and the task cache."""

import pytest

from day_planner.core.categories import Category
from day_planner.core.kanban import (
    CardState,
    ColumnTarget,
    KanbanBoard,
    TaskCache,
    TaskTarget,
)
from day_planner.integrations.todoist import TodoistAPIError, TodoistTask


@pytest.fixture
def board(fake_todoist):
    return KanbanBoard(fake_todoist.tasks.values())


class TestMoveToColumn:
    def test_rewrites_labels(self, board, fake_todoist):
        result = board.move_to_column("t1", Category.PUTTING_OFF, fake_todoist)
        assert result.ok
        assert result.applied
        assert board.get("t1").labels == ["urgent", "@putting-off"]
        assert ("update_task", "t1", {"labels": ["urgent", "@putting-off"]}) in fake_todoist.calls

    def test_sends_full_label_set(self, board, fake_todoist):
        board.move_to_column("t2", Category.STRATEGY, fake_todoist)
        assert fake_todoist.calls[-1] == ("update_task", "t2", {"labels": ["@strategy"]})

    def test_rollback_on_failure(self, board, fake_todoist):
        fake_todoist.fail_updates = True
        result = board.move_to_column("t1", Category.TIMELY, fake_todoist)
        assert not result.ok
        assert isinstance(result.error, TodoistAPIError)
        assert result.error.status == 500
        assert board.get("t1").labels == ["@strategy", "urgent"]

    def test_optimistic_state_visible_during_call(self, board):
        seen = {}

        class Watcher:
            def update_task(self, task_id, **fields):
                seen["labels"] = board.get(task_id).labels
                seen["state"] = board.state_of(task_id)
                raise TodoistAPIError(400, "nope")

        board.move_to_column("t1", Category.TIMELY, Watcher())
        assert seen["labels"] == ["urgent", "@timely"]
        assert seen["state"] == CardState.SETTLING
        assert board.get("t1").labels == ["@strategy", "urgent"]

    def test_unexpected_error_still_reverts(self, board):
        class Broken:
            def update_task(self, task_id, **fields):
                raise ConnectionResetError("socket closed")

        with pytest.raises(ConnectionResetError):
            board.move_to_column("t1", Category.TIMELY, Broken())
        assert board.get("t1").labels == ["@strategy", "urgent"]
        assert board.state_of("t1") == CardState.IDLE

    def test_card_returns_to_idle(self, board, fake_todoist):
        board.move_to_column("t1", Category.TIMELY, fake_todoist)
        assert board.state_of("t1") == CardState.IDLE

    def test_undo_restores_previous_labels(self, board, fake_todoist):
        result = board.move_to_column("t1", Category.TIMELY, fake_todoist)
        result.undo()
        assert board.get("t1").labels == ["@strategy", "urgent"]

    def test_no_retry(self, board, fake_todoist):
        fake_todoist.fail_updates = True
        board.move_to_column("t1", Category.TIMELY, fake_todoist)
        updates = [c for c in fake_todoist.calls if c[0] == "update_task"]
        assert len(updates) == 1

    def test_column_drop_needs_gateway(self, board):
        board.begin_drag("t1")
        with pytest.raises(ValueError, match="gateway"):
            board.drop("t1", ColumnTarget(Category.TIMELY))


class TestDrop:
    def test_begin_drag_sets_state(self, board):
        board.begin_drag("t2")
        assert board.state_of("t2") == CardState.DRAGGING

    def test_drop_on_nothing_is_noop(self, board, fake_todoist):
        order = [t.id for t in board.tasks]
        board.begin_drag("t1")
        result = board.drop("t1", None, fake_todoist)
        assert result.ok and not result.applied
        assert [t.id for t in board.tasks] == order
        assert board.state_of("t1") == CardState.IDLE
        assert fake_todoist.calls == []

    def test_unknown_task(self, board):
        with pytest.raises(ValueError, match="not on board"):
            board.begin_drag("missing")


class TestReorder:
    def test_array_move(self, board):
        board.reorder("t1", "t3")
        assert [t.id for t in board.tasks] == ["t2", "t3", "t1"]

    def test_move_up(self, board):
        board.reorder("t3", "t1")
        assert [t.id for t in board.tasks] == ["t3", "t1", "t2"]

    def test_onto_itself_is_noop(self, board):
        result = board.reorder("t2", "t2")
        assert not result.applied
        assert [t.id for t in board.tasks] == ["t1", "t2", "t3"]

    def test_unknown_target_is_noop(self, board):
        board.begin_drag("t1")
        result = board.drop("t1", TaskTarget("nope"))
        assert not result.applied
        assert [t.id for t in board.tasks] == ["t1", "t2", "t3"]

    def test_no_remote_call(self, board, fake_todoist):
        board.begin_drag("t1")
        board.drop("t1", TaskTarget("t2"), fake_todoist)
        assert fake_todoist.calls == []

    def test_undo(self, board):
        result = board.reorder("t1", "t3")
        result.undo()
        assert [t.id for t in board.tasks] == ["t1", "t2", "t3"]


class TestLayout:
    def test_rows_per_project(self, board):
        rows = dict(board.rows(["p1", "p2"]))
        assert [t.id for t in rows["p1"][Category.STRATEGY]] == ["t1"]
        assert [t.id for t in rows["p1"][Category.TIMELY]] == ["t2"]
        assert [t.id for t in rows["p2"][Category.PUTTING_OFF]] == ["t3"]

    def test_column_follows_relabel(self, board, fake_todoist):
        board.move_to_column("t2", Category.PUTTING_OFF, fake_todoist)
        columns = board.columns("p1")
        assert [t.id for t in columns[Category.PUTTING_OFF]] == ["t2"]


class TestTaskCache:
    def test_fetches_once_while_fresh(self, fake_todoist):
        now = [0.0]
        cache = TaskCache(ttl=300, clock=lambda: now[0])
        cache.fetch(fake_todoist, project_id="p1")
        now[0] = 299
        cache.fetch(fake_todoist, project_id="p1")
        assert fake_todoist.calls.count(("get_tasks", "p1", None)) == 1

    def test_refetches_when_stale(self, fake_todoist):
        now = [0.0]
        cache = TaskCache(ttl=300, clock=lambda: now[0])
        cache.fetch(fake_todoist)
        now[0] = 301
        cache.fetch(fake_todoist)
        assert fake_todoist.calls.count(("get_tasks", None, None)) == 2

    def test_keys_by_project_and_filter(self, fake_todoist):
        cache = TaskCache()
        cache.fetch(fake_todoist, project_id="p1")
        cache.fetch(fake_todoist, project_id="p2")
        cache.fetch(fake_todoist, project_id="p1", filter="today")
        assert len([c for c in fake_todoist.calls if c[0] == "get_tasks"]) == 3

    def test_invalidate(self, fake_todoist):
        cache = TaskCache()
        cache.put([TodoistTask(id="x", project_id="p", content="c")])
        cache.invalidate()
        assert cache.get() is None
