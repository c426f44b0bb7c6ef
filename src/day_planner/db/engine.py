"""SQLite database connection management and schema initialization."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path

SCHEMA = """
CREATE TABLE IF NOT EXISTS daily_allocations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    date TEXT NOT NULL,
    total_work_hours REAL NOT NULL,
    project_allocations TEXT NOT NULL DEFAULT '[]',
    created_at TEXT DEFAULT (datetime('now')),
    updated_at TEXT DEFAULT (datetime('now')),
    UNIQUE(user_id, date)
);

CREATE TABLE IF NOT EXISTS time_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    date TEXT NOT NULL,
    todoist_task_id TEXT NOT NULL,
    todoist_project_id TEXT,
    project_name TEXT,
    task_name TEXT NOT NULL,
    duration_minutes INTEGER NOT NULL CHECK (duration_minutes > 0),
    category TEXT CHECK (category IN ('putting-off', 'strategy', 'timely')),
    notes TEXT,
    created_at TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_time_entries_user_date ON time_entries(user_id, date);

CREATE TABLE IF NOT EXISTS color_overrides (
    color TEXT PRIMARY KEY,
    hex_value TEXT NOT NULL,
    updated_at TEXT DEFAULT (datetime('now'))
);
"""

# time_entries is append-only
GUARD_SCHEMA = """
CREATE TRIGGER IF NOT EXISTS time_entries_no_update BEFORE UPDATE ON time_entries BEGIN
    SELECT RAISE(ABORT, 'time entries are append-only');
END;

CREATE TRIGGER IF NOT EXISTS time_entries_no_delete BEFORE DELETE ON time_entries BEGIN
    SELECT RAISE(ABORT, 'time entries are append-only');
END;
"""


def init_db(db_path: Path) -> sqlite3.Connection:
    """Initialize the database, creating tables if needed."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.executescript(SCHEMA)
    conn.executescript(GUARD_SCHEMA)
    conn.commit()
    return conn


@contextmanager
def get_db(db_path: Path):
    """Context manager for database connections."""
    conn = init_db(db_path)
    try:
        yield conn
    finally:
        conn.close()
