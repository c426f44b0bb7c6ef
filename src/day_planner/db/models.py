"""Data models for locally persisted planner records."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ProjectAllocation:
    project_id: str
    percentage: float = 0
    hours: float = 0.0
    project_name: str = "Unknown"


@dataclass
class DailyAllocation:
    date: str
    total_work_hours: float
    project_allocations: list[ProjectAllocation] = field(default_factory=list)
    id: int | None = None
    user_id: str = "demo-user"
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class TimeEntry:
    date: str
    todoist_task_id: str
    task_name: str
    duration_minutes: int
    id: int | None = None
    user_id: str = "demo-user"
    todoist_project_id: str | None = None
    project_name: str | None = None
    category: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


@dataclass
class ColorOverride:
    color: str
    hex_value: str
    updated_at: datetime | None = None
