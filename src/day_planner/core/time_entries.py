"""Append-only time entries and planned-vs-actual reporting."""

import sqlite3
from collections import defaultdict
from datetime import datetime

from day_planner.core.allocations import DEFAULT_USER, get_allocation, validate_date
from day_planner.core.categories import Category
from day_planner.db.models import TimeEntry

REQUIRED_FIELDS = ("date", "todoist_task_id", "task_name", "duration_minutes")


def check_time_entry(
    date: str,
    todoist_task_id: str,
    task_name: str,
    duration_minutes: int,
    category: str | None = None,
) -> tuple[str, str | None]:
    """Validate an entry before anything is written. Returns (date, category) normalized."""
    date = validate_date(date)
    if not todoist_task_id or not task_name:
        raise ValueError("todoist_task_id and task_name are required")
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise ValueError("duration_minutes must be a positive integer")
    if category is not None:
        category = Category.parse(category).value
    return date, category


def record_time_entry(
    db: sqlite3.Connection,
    date: str,
    todoist_task_id: str,
    task_name: str,
    duration_minutes: int,
    todoist_project_id: str | None = None,
    project_name: str | None = None,
    category: str | None = None,
    notes: str | None = None,
    user_id: str = DEFAULT_USER,
) -> TimeEntry:
    """Insert and commit a time entry."""
    date, category = check_time_entry(date, todoist_task_id, task_name, duration_minutes, category)

    cur = db.execute(
        """INSERT INTO time_entries
               (user_id, date, todoist_task_id, todoist_project_id, project_name,
                task_name, duration_minutes, category, notes)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (user_id, date, todoist_task_id, todoist_project_id, project_name,
         task_name, duration_minutes, category, notes or None),
    )
    entry_id = cur.lastrowid
    db.commit()
    row = db.execute("SELECT * FROM time_entries WHERE id = ?", (entry_id,)).fetchone()
    return _row_to_entry(row)


def list_time_entries(
    db: sqlite3.Connection,
    date: str | None = None,
    user_id: str = DEFAULT_USER,
) -> list[TimeEntry]:
    query = "SELECT * FROM time_entries WHERE user_id = ?"
    params: list = [user_id]
    if date:
        query += " AND date = ?"
        params.append(validate_date(date))
    query += " ORDER BY created_at, id"
    return [_row_to_entry(r) for r in db.execute(query, params).fetchall()]


def planned_vs_actual(
    db: sqlite3.Connection,
    date: str,
    user_id: str = DEFAULT_USER,
) -> dict:
    """Compare the day's allocation with the time actually logged."""
    allocation = get_allocation(db, date, user_id)
    entries = list_time_entries(db, date, user_id)

    actual_minutes: dict[str, int] = defaultdict(int)
    names: dict[str, str] = {}
    for e in entries:
        key = e.todoist_project_id or ""
        actual_minutes[key] += e.duration_minutes
        if e.project_name:
            names.setdefault(key, e.project_name)

    rows = []
    planned_ids = set()
    if allocation:
        for a in allocation.project_allocations:
            planned_ids.add(a.project_id)
            rows.append({
                "project_id": a.project_id,
                "project_name": a.project_name,
                "planned_hours": a.hours,
                "actual_hours": round(actual_minutes.get(a.project_id, 0) / 60, 2),
            })

    unplanned = [
        {
            "task_name": e.task_name,
            "project_id": e.todoist_project_id,
            "duration_minutes": e.duration_minutes,
        }
        for e in entries
        if (e.todoist_project_id or "") not in planned_ids
    ]

    return {
        "date": validate_date(date),
        "total_work_hours": allocation.total_work_hours if allocation else None,
        "planned_vs_actual": rows,
        "unplanned_tasks": unplanned,
        "logged_hours": round(sum(actual_minutes.values()) / 60, 2),
    }


def entry_to_dict(e: TimeEntry) -> dict:
    return {
        "id": e.id,
        "user_id": e.user_id,
        "date": e.date,
        "todoist_task_id": e.todoist_task_id,
        "todoist_project_id": e.todoist_project_id,
        "project_name": e.project_name,
        "task_name": e.task_name,
        "duration_minutes": e.duration_minutes,
        "category": e.category,
        "notes": e.notes,
        "created_at": e.created_at.isoformat() if e.created_at else None,
    }


def _row_to_entry(row: sqlite3.Row) -> TimeEntry:
    return TimeEntry(
        id=row["id"],
        user_id=row["user_id"],
        date=row["date"],
        todoist_task_id=row["todoist_task_id"],
        todoist_project_id=row["todoist_project_id"],
        project_name=row["project_name"],
        task_name=row["task_name"],
        duration_minutes=row["duration_minutes"],
        category=row["category"],
        notes=row["notes"],
        created_at=_parse_dt(row["created_at"]),
    )


def _parse_dt(val: str | None) -> datetime | None:
    if val is None:
        return None
    return datetime.fromisoformat(val)
