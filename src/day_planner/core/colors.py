"""Todoist color tokens and local hex overrides."""

import re
import sqlite3
from datetime import datetime

from day_planner.db.models import ColorOverride

DEFAULT_HEX = "#3b82f6"

TODOIST_COLORS = {
    "berry_red": "#b8256f",
    "red": "#db4035",
    "orange": "#ff9933",
    "yellow": "#fad000",
    "olive_green": "#afb83b",
    "lime_green": "#7ecc49",
    "green": "#299438",
    "mint_green": "#6accbc",
    "teal": "#158fad",
    "sky_blue": "#14aaf5",
    "light_blue": "#96c3eb",
    "blue": "#4073ff",
    "grape": "#884dff",
    "violet": "#af38eb",
    "lavender": "#eb96eb",
    "magenta": "#e05194",
    "salmon": "#ff8d85",
    "charcoal": "#808080",
    "grey": "#b8b8b8",
    "taupe": "#ccac93",
}

_HEX_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def resolve_color(color: str | None, overrides: dict[str, str] | None = None) -> str:
    """Hex value for a Todoist color token; overrides win over the palette."""
    if not color:
        return DEFAULT_HEX
    if overrides and color in overrides:
        return overrides[color]
    return TODOIST_COLORS.get(color, DEFAULT_HEX)


def set_override(db: sqlite3.Connection, color: str, hex_value: str) -> ColorOverride:
    if color not in TODOIST_COLORS:
        raise ValueError(f"Unknown Todoist color: {color}")
    if not _HEX_RE.match(hex_value):
        raise ValueError(f"Invalid hex color: {hex_value}")
    db.execute(
        """INSERT INTO color_overrides (color, hex_value) VALUES (?, ?)
           ON CONFLICT(color) DO UPDATE SET hex_value = excluded.hex_value,
               updated_at = datetime('now')""",
        (color, hex_value.lower()),
    )
    db.commit()
    row = db.execute("SELECT * FROM color_overrides WHERE color = ?", (color,)).fetchone()
    return _row_to_override(row)


def clear_override(db: sqlite3.Connection, color: str) -> bool:
    cur = db.execute("DELETE FROM color_overrides WHERE color = ?", (color,))
    db.commit()
    return cur.rowcount > 0


def list_overrides(db: sqlite3.Connection) -> dict[str, str]:
    rows = db.execute("SELECT color, hex_value FROM color_overrides ORDER BY color").fetchall()
    return {r["color"]: r["hex_value"] for r in rows}


def _row_to_override(row: sqlite3.Row) -> ColorOverride:
    return ColorOverride(
        color=row["color"],
        hex_value=row["hex_value"],
        updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
    )
