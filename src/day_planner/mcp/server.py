"""MCP server exposing day planning tools."""

from __future__ import annotations

import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date as date_type

from mcp.server.fastmcp import Context, FastMCP

from day_planner.config import Config, get_config
from day_planner.core import allocations as allocations_mod
from day_planner.core import completion as completion_mod
from day_planner.core import time_entries as entries_mod
from day_planner.core.categories import Category
from day_planner.core.kanban import KanbanBoard, TaskCache
from day_planner.core.timer import TimerCoordinator
from day_planner.db.engine import init_db
from day_planner.integrations import todoist as todoist_mod


@dataclass
class AppContext:
    db: sqlite3.Connection
    config: Config
    timer: TimerCoordinator = field(default_factory=TimerCoordinator)
    cache: TaskCache = field(default_factory=TaskCache)


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Open the DB on startup, close on shutdown."""
    config = get_config()
    db = init_db(config.db_path)
    try:
        yield AppContext(db=db, config=config)
    finally:
        db.close()


mcp = FastMCP("day-planner", lifespan=app_lifespan)


def _ctx(ctx: Context) -> AppContext:
    return ctx.request_context.lifespan_context


def _gateway(app: AppContext) -> todoist_mod.TodoistClient:
    return todoist_mod.get_client(app.config.require_todoist_token(), timeout=app.config.todoist_timeout)


def _today() -> str:
    return date_type.today().isoformat()


# ── Allocation Tools ──────────────────────────────────────────────────────────


@mcp.tool()
def get_allocation(ctx: Context, date: str | None = None) -> dict:
    """Get the project allocation for a day (default today)."""
    app = _ctx(ctx)
    allocation = allocations_mod.get_allocation(app.db, date or _today())
    if not allocation:
        return {"data": None}
    return {"data": allocations_mod.allocation_to_dict(allocation)}


@mcp.tool()
def save_allocation(
    ctx: Context,
    percentages: dict[str, float],
    total_work_hours: float | None = None,
    date: str | None = None,
) -> dict:
    """Save a day's split. `percentages` maps project IDs to percent and must total 100 over 1-6 projects."""
    app = _ctx(ctx)
    hours = total_work_hours or app.config.default_work_hours
    items = allocations_mod.compute_allocations(list(percentages), percentages, hours)
    try:
        allocation = allocations_mod.save_allocation(app.db, date or _today(), hours, items)
    except ValueError as e:
        return {"error": str(e)}
    return allocations_mod.allocation_to_dict(allocation)


# ── Board Tools ───────────────────────────────────────────────────────────────


@mcp.tool()
def kanban_board(ctx: Context, project_id: str | None = None) -> dict:
    """Get open tasks grouped by project and category column."""
    app = _ctx(ctx)
    try:
        tasks = app.cache.fetch(_gateway(app), project_id=project_id)
    except todoist_mod.TodoistAPIError as e:
        return {"error": str(e)}
    board = KanbanBoard(tasks)
    project_ids = [project_id] if project_id else list(dict.fromkeys(t.project_id for t in tasks))
    return {
        pid: {
            category.value: [{"id": t.id, "content": t.content, "priority": t.priority} for t in column]
            for category, column in columns.items()
        }
        for pid, columns in board.rows(project_ids)
    }


@mcp.tool()
def move_task(ctx: Context, task_id: str, category: str) -> dict:
    """Move a task to the putting-off, strategy or timely column by rewriting its labels."""
    app = _ctx(ctx)
    gateway = _gateway(app)
    try:
        target = Category.parse(category)
        task = gateway.get_task(task_id)
    except (ValueError, todoist_mod.TodoistAPIError) as e:
        return {"error": str(e)}
    board = KanbanBoard([task])
    result = board.move_to_column(task_id, target, gateway)
    if not result.ok:
        return {"error": f"Failed to update task labels: {result.error}"}
    app.cache.invalidate()
    return {"task_id": task_id, "category": target.value, "labels": board.get(task_id).labels}


# ── Timer Tools ───────────────────────────────────────────────────────────────


@mcp.tool()
def start_timer(ctx: Context, task_id: str) -> dict:
    """Start timing a task. Any running timer is replaced."""
    timer = _ctx(ctx).timer
    timer.start(task_id)
    return timer.to_dict()


@mcp.tool()
def stop_timer(ctx: Context) -> dict:
    """Stop the running timer."""
    timer = _ctx(ctx).timer
    timer.stop()
    return timer.to_dict()


@mcp.tool()
def timer_status(ctx: Context) -> dict:
    """Which task is being timed and for how long."""
    return _ctx(ctx).timer.to_dict()


@mcp.tool()
def complete_task(
    ctx: Context,
    task_id: str,
    duration_minutes: int | None = None,
    notes: str | None = None,
) -> dict:
    """Log time spent on a task and close it in Todoist. Duration defaults to the running timer."""
    app = _ctx(ctx)
    gateway = _gateway(app)
    elapsed = app.timer.elapsed_seconds() if app.timer.is_active(task_id) else 0
    try:
        duration = completion_mod.resolve_duration(duration_minutes, elapsed)
        task = gateway.get_task(task_id)
        result = completion_mod.complete_task(
            app.db, gateway, app.timer, task, duration, notes=notes, cache=app.cache
        )
    except (ValueError, todoist_mod.TodoistAPIError) as e:
        return {"error": str(e)}
    return {
        "task_id": task_id,
        "timer_stopped": result.timer_stopped,
        "entry": entries_mod.entry_to_dict(result.entry),
    }


@mcp.tool()
def planned_vs_actual(ctx: Context, date: str | None = None) -> dict:
    """Compare a day's planned hours per project with the time logged."""
    app = _ctx(ctx)
    return entries_mod.planned_vs_actual(app.db, date or _today())
