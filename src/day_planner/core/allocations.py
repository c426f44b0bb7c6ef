"""Daily allocation of work hours across projects."""

import json
import sqlite3
from collections.abc import Iterable, Mapping
from datetime import date as date_type
from datetime import datetime

from day_planner.db.models import DailyAllocation, ProjectAllocation

MAX_PROJECTS = 6
DEFAULT_USER = "demo-user"


def hours_for(percentage: float, total_hours: float) -> float:
    return round(percentage / 100 * total_hours, 2)


def total_percentage(percentages: Mapping[str, float]) -> float:
    return sum(percentages.values())


def is_valid(percentages: Mapping[str, float], selected_project_ids: Iterable[str]) -> bool:
    """A split is saveable when it sums to 100 over 1 to 6 selected projects."""
    count = len(list(selected_project_ids))
    if not 1 <= count <= MAX_PROJECTS:
        return False
    return round(total_percentage(percentages), 6) == 100


def compute_allocations(
    selected_project_ids: Iterable[str],
    percentages: Mapping[str, float],
    total_hours: float,
    project_names: Mapping[str, str] | None = None,
) -> list[ProjectAllocation]:
    """Per-project hour breakdown, in selection order."""
    names = project_names or {}
    result = []
    for project_id in selected_project_ids:
        percentage = percentages.get(project_id, 0)
        result.append(ProjectAllocation(
            project_id=project_id,
            percentage=percentage,
            hours=hours_for(percentage, total_hours),
            project_name=names.get(project_id, "Unknown"),
        ))
    return result


class AllocationDraft:
    """Planning-page state: which projects are selected and their percentages."""

    def __init__(self, total_hours: float = 8.0):
        self.total_hours = total_hours
        self.selected: list[str] = []
        self.percentages: dict[str, float] = {}

    def toggle(self, project_id: str) -> bool:
        """Select or deselect a project. Returns whether it is now selected.

        Deselecting drops the project's percentage too. Selecting a seventh
        project is ignored.
        """
        if project_id in self.selected:
            self.selected.remove(project_id)
            self.percentages.pop(project_id, None)
            return False
        if len(self.selected) >= MAX_PROJECTS:
            return False
        self.selected.append(project_id)
        self.percentages[project_id] = 0
        return True

    def set_percentage(self, project_id: str, percentage: float):
        if project_id not in self.selected:
            raise ValueError(f"Project not selected: {project_id}")
        if not 0 <= percentage <= 100:
            raise ValueError("Percentage must be between 0 and 100")
        self.percentages[project_id] = percentage

    @property
    def total(self) -> float:
        return total_percentage(self.percentages)

    def is_valid(self) -> bool:
        return is_valid(self.percentages, self.selected)

    def allocations(
        self,
        total_hours: float | None = None,
        project_names: Mapping[str, str] | None = None,
    ) -> list[ProjectAllocation]:
        hours = self.total_hours if total_hours is None else total_hours
        return compute_allocations(self.selected, self.percentages, hours, project_names)


# ── Persistence ───────────────────────────────────────────────────────────────


def _coerce(item) -> ProjectAllocation:
    if isinstance(item, ProjectAllocation):
        return item
    if not isinstance(item, Mapping) or "project_id" not in item:
        raise ValueError("Each project allocation needs a project_id")
    percentage = item.get("percentage", 0)
    if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
        raise ValueError(f"Invalid percentage for project {item['project_id']}")
    return ProjectAllocation(
        project_id=str(item["project_id"]),
        percentage=percentage,
        project_name=item.get("project_name") or "Unknown",
    )


def validate_date(value: str) -> str:
    try:
        return date_type.fromisoformat(value).isoformat()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None


def save_allocation(
    db: sqlite3.Connection,
    date: str,
    total_work_hours: float,
    project_allocations: Iterable,
    user_id: str = DEFAULT_USER,
) -> DailyAllocation:
    """Insert or replace the allocation for (user, date).

    Hours are recomputed from the percentages; invalid splits raise ValueError.
    """
    date = validate_date(date)
    if isinstance(total_work_hours, bool) or not isinstance(total_work_hours, (int, float)):
        raise ValueError("total_work_hours must be a number")
    if total_work_hours <= 0 or total_work_hours > 24:
        raise ValueError("total_work_hours must be between 0 and 24")

    items = [_coerce(i) for i in project_allocations]
    ids = [i.project_id for i in items]
    if len(set(ids)) != len(ids):
        raise ValueError("Duplicate project in allocation")
    percentages = {i.project_id: i.percentage for i in items}
    if not is_valid(percentages, ids):
        raise ValueError(
            f"Allocation must cover 1-{MAX_PROJECTS} projects and total 100% "
            f"(got {len(ids)} projects, {total_percentage(percentages)}%)"
        )
    for item in items:
        item.hours = hours_for(item.percentage, total_work_hours)

    payload = json.dumps([_allocation_dict(i) for i in items])
    db.execute(
        """INSERT INTO daily_allocations (user_id, date, total_work_hours, project_allocations)
           VALUES (?, ?, ?, ?)
           ON CONFLICT(user_id, date) DO UPDATE SET
               total_work_hours = excluded.total_work_hours,
               project_allocations = excluded.project_allocations,
               updated_at = datetime('now')""",
        (user_id, date, total_work_hours, payload),
    )
    db.commit()
    return get_allocation(db, date, user_id)


def get_allocation(
    db: sqlite3.Connection,
    date: str,
    user_id: str = DEFAULT_USER,
) -> DailyAllocation | None:
    """Fetch the allocation for a day, or None when nothing was planned."""
    row = db.execute(
        "SELECT * FROM daily_allocations WHERE user_id = ? AND date = ?",
        (user_id, validate_date(date)),
    ).fetchone()
    if not row:
        return None
    return _row_to_allocation(row)


def list_allocations(db: sqlite3.Connection, user_id: str = DEFAULT_USER, limit: int = 30) -> list[DailyAllocation]:
    rows = db.execute(
        "SELECT * FROM daily_allocations WHERE user_id = ? ORDER BY date DESC LIMIT ?",
        (user_id, limit),
    ).fetchall()
    return [_row_to_allocation(r) for r in rows]


def _allocation_dict(a: ProjectAllocation) -> dict:
    return {
        "project_id": a.project_id,
        "project_name": a.project_name,
        "percentage": a.percentage,
        "hours": a.hours,
    }


def allocation_to_dict(a: DailyAllocation) -> dict:
    return {
        "id": a.id,
        "user_id": a.user_id,
        "date": a.date,
        "total_work_hours": a.total_work_hours,
        "project_allocations": [_allocation_dict(p) for p in a.project_allocations],
        "created_at": a.created_at.isoformat() if a.created_at else None,
        "updated_at": a.updated_at.isoformat() if a.updated_at else None,
    }


def _row_to_allocation(row: sqlite3.Row) -> DailyAllocation:
    return DailyAllocation(
        id=row["id"],
        user_id=row["user_id"],
        date=row["date"],
        total_work_hours=row["total_work_hours"],
        project_allocations=[
            ProjectAllocation(**p) for p in json.loads(row["project_allocations"])
        ],
        created_at=_parse_dt(row["created_at"]),
        updated_at=_parse_dt(row["updated_at"]),
    )


def _parse_dt(val: str | None) -> datetime | None:
    if val is None:
        return None
    return datetime.fromisoformat(val)
