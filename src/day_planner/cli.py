"""CLI entry point for the day planner."""

import json
import logging
import sys
from datetime import date as date_type

import click

from day_planner.config import ConfigError, get_config
from day_planner.core import allocations as allocations_mod
from day_planner.core import colors as colors_mod
from day_planner.core import completion as completion_mod
from day_planner.core import time_entries as entries_mod
from day_planner.core.categories import Category
from day_planner.core.kanban import KanbanBoard
from day_planner.core.timer import TimerCoordinator
from day_planner.db.engine import get_db
from day_planner.integrations import todoist as todoist_mod


def _get_db():
    config = get_config()
    return get_db(config.db_path)


def _get_gateway():
    config = get_config()
    try:
        return todoist_mod.get_client(config.require_todoist_token(), timeout=config.todoist_timeout)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _today() -> str:
    return date_type.today().isoformat()


@click.group()
def main():
    """dp - Day Planner CLI"""
    pass


@main.command("serve")
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", default=8787, type=int, help="Port to listen on")
def serve(host, port):
    """Run the web dashboard and API."""
    from day_planner.web.app import run_server

    config = get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    click.echo(f"Starting dashboard at http://{host}:{port}")
    run_server(host=host, port=port)


@main.group("mcp")
def mcp_group():
    """MCP server commands."""
    pass


@mcp_group.command("serve")
def mcp_serve():
    """Start the MCP server (stdio transport)."""
    from day_planner.mcp.server import mcp
    from day_planner.mcp import prompts  # noqa: F401 - registers prompts

    mcp.run(transport="stdio")


# ── Plan Commands ─────────────────────────────────────────────────────────────


@main.group("plan")
def plan_group():
    """Plan how the workday is split across projects."""
    pass


@plan_group.command("show")
@click.option("--date", "day", default=None, help="Day to show (YYYY-MM-DD, default today)")
@click.option("--json-output", "--json", is_flag=True, help="Output as JSON")
def plan_show(day, json_output):
    """Show the allocation for a day."""
    day = day or _today()
    with _get_db() as db:
        try:
            allocation = allocations_mod.get_allocation(db, day)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    if json_output:
        data = allocations_mod.allocation_to_dict(allocation) if allocation else None
        click.echo(json.dumps(data, indent=2))
        return

    if not allocation:
        click.echo(f"No allocation for {day}.")
        return

    click.echo(f"Allocation for {allocation.date} ({allocation.total_work_hours:g}h)")
    for a in allocation.project_allocations:
        click.echo(f"  {a.project_name} ({a.project_id}): {a.percentage:g}% = {a.hours:g}h")


@plan_group.command("save")
@click.argument("splits", nargs=-1, required=True)
@click.option("--date", "day", default=None, help="Day to plan (YYYY-MM-DD, default today)")
@click.option("--hours", type=float, default=None, help="Total work hours")
def plan_save(splits, day, hours):
    """Save an allocation given as PROJECT_ID=PERCENT pairs."""
    config = get_config()
    draft = allocations_mod.AllocationDraft(total_hours=hours or config.default_work_hours)
    try:
        for split in splits:
            project_id, sep, pct = split.partition("=")
            if not sep or not project_id:
                raise ValueError(f"Expected PROJECT_ID=PERCENT, got {split!r}")
            if project_id in draft.selected:
                raise ValueError(f"Project listed twice: {project_id}")
            if not draft.toggle(project_id):
                raise ValueError(f"At most {allocations_mod.MAX_PROJECTS} projects per day")
            draft.set_percentage(project_id, float(pct))
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not draft.is_valid():
        click.echo(f"Error: percentages must total 100 (got {draft.total:g})", err=True)
        sys.exit(1)

    names = {}
    if config.todoist_api_token:
        try:
            names = {p.id: p.name for p in _get_gateway().get_projects()}
        except todoist_mod.TodoistAPIError as e:
            click.echo(f"Warning: could not fetch project names: {e}", err=True)

    with _get_db() as db:
        try:
            allocation = allocations_mod.save_allocation(
                db, day or _today(), draft.total_hours, draft.allocations(project_names=names)
            )
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        click.echo(f"Saved allocation for {allocation.date}")
        for a in allocation.project_allocations:
            click.echo(f"  {a.project_name} ({a.project_id}): {a.percentage:g}% = {a.hours:g}h")


# ── Board Commands ────────────────────────────────────────────────────────────


@main.group("board")
def board_group():
    """Kanban board of Todoist tasks."""
    pass


@board_group.command("show")
@click.option("--project", default=None, help="Only show this project ID")
def board_show(project):
    """Show tasks per project, split into category columns."""
    gateway = _get_gateway()
    try:
        projects = {p.id: p.name for p in gateway.get_projects()}
        tasks = gateway.get_tasks(project_id=project)
    except todoist_mod.TodoistAPIError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    board = KanbanBoard(tasks)
    if project:
        project_ids = [project]
    else:
        with _get_db() as db:
            allocation = allocations_mod.get_allocation(db, _today())
        if allocation:
            project_ids = [a.project_id for a in allocation.project_allocations]
        else:
            project_ids = list(dict.fromkeys(t.project_id for t in tasks))

    if not project_ids:
        click.echo("No tasks found.")
        return

    for project_id, columns in board.rows(project_ids):
        click.echo(f"{projects.get(project_id, project_id)}")
        for category, column in columns.items():
            click.echo(f"  [{category.value}] ({len(column)})")
            for t in column:
                click.echo(f"    P{t.priority} {t.id}: {t.content}")


@board_group.command("move")
@click.argument("task_id")
@click.argument("category")
def board_move(task_id, category):
    """Move a task to another column (putting-off, strategy, timely)."""
    try:
        target = Category.parse(category)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    gateway = _get_gateway()
    try:
        task = gateway.get_task(task_id)
    except todoist_mod.TodoistAPIError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    board = KanbanBoard([task])
    result = board.move_to_column(task_id, target, gateway)
    if not result.ok:
        click.echo(f"Failed to update task labels: {result.error}", err=True)
        sys.exit(1)
    click.echo(f"Moved {task_id} to {target.value}")
    click.echo(f"  Labels: {', '.join(board.get(task_id).labels)}")


# ── Completion and time entries ───────────────────────────────────────────────


@main.command("complete")
@click.argument("task_id")
@click.option("--minutes", "-m", default=None, help="Time spent (15, 30, 60 or any number)")
@click.option("--notes", "-n", default=None, help="Optional notes")
@click.option("--date", "day", default=None, help="Day to log against (default today)")
def complete(task_id, minutes, notes, day):
    """Log time for a task and close it in Todoist."""
    gateway = _get_gateway()
    try:
        duration = completion_mod.resolve_duration(minutes)
        task = gateway.get_task(task_id)
        with _get_db() as db:
            result = completion_mod.complete_task(
                db, gateway, TimerCoordinator(), task, duration, notes=notes, date=day
            )
    except (ValueError, todoist_mod.TodoistAPIError) as e:
        click.echo(f"Failed to complete task: {e}", err=True)
        sys.exit(1)
    click.echo(f"Completed {task.content} ({result.entry.duration_minutes} min, {result.entry.category})")


@main.group("entries")
def entries_group():
    """Logged time entries."""
    pass


@entries_group.command("list")
@click.option("--date", "day", default=None, help="Only this day (YYYY-MM-DD)")
@click.option("--json-output", "--json", is_flag=True, help="Output as JSON")
def entries_list(day, json_output):
    """List time entries."""
    with _get_db() as db:
        try:
            entries = entries_mod.list_time_entries(db, day)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    if json_output:
        click.echo(json.dumps([entries_mod.entry_to_dict(e) for e in entries], indent=2))
        return

    if not entries:
        click.echo("No time entries.")
        return
    for e in entries:
        note = f" - {e.notes}" if e.notes else ""
        click.echo(f"  {e.date} {e.duration_minutes:>4} min [{e.category}] {e.task_name}{note}")


@main.command("report")
@click.option("--date", "day", default=None, help="Day to report on (default today)")
def report(day):
    """Compare planned hours with logged hours."""
    with _get_db() as db:
        try:
            data = entries_mod.planned_vs_actual(db, day or _today())
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    click.echo(f"Report for {data['date']}: {data['logged_hours']:g}h logged")
    for row in data["planned_vs_actual"]:
        click.echo(
            f"  {row['project_name']}: planned {row['planned_hours']:g}h, "
            f"actual {row['actual_hours']:g}h"
        )
    if data["unplanned_tasks"]:
        click.echo("  Unplanned:")
        for t in data["unplanned_tasks"]:
            click.echo(f"    {t['task_name']} ({t['duration_minutes']} min)")


# ── Color Commands ────────────────────────────────────────────────────────────


@main.group("colors")
def colors_group():
    """Override the hex value shown for Todoist project colors."""
    pass


@colors_group.command("list")
def colors_list():
    """List every Todoist color with its effective hex value."""
    with _get_db() as db:
        overrides = colors_mod.list_overrides(db)
    for color in colors_mod.TODOIST_COLORS:
        mark = " (override)" if color in overrides else ""
        click.echo(f"  {color}: {colors_mod.resolve_color(color, overrides)}{mark}")


@colors_group.command("set")
@click.argument("color")
@click.argument("hex_value")
def colors_set(color, hex_value):
    """Override one color, e.g. `dp colors set red #ff0000`."""
    with _get_db() as db:
        try:
            override = colors_mod.set_override(db, color, hex_value)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
    click.echo(f"{override.color} -> {override.hex_value}")


@colors_group.command("clear")
@click.argument("color")
def colors_clear(color):
    """Drop an override and fall back to the Todoist palette."""
    with _get_db() as db:
        removed = colors_mod.clear_override(db, color)
    click.echo(f"Cleared {color}" if removed else f"No override for {color}")


if __name__ == "__main__":
    main()
