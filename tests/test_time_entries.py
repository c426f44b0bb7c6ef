"""Tests for time entries, the planned-vs-actual report and color overrides."""

import pytest

from day_planner.core import colors
from day_planner.core.allocations import save_allocation
from day_planner.core.time_entries import (
    entry_to_dict,
    list_time_entries,
    planned_vs_actual,
    record_time_entry,
)


class TestRecord:
    def test_round_trip(self, db):
        entry = record_time_entry(db, "2026-03-02", "t1", "Write", 30, todoist_project_id="p1",
                                  category="@strategy")
        assert entry.id is not None
        assert entry.category == "strategy"
        assert entry_to_dict(entry)["created_at"] is not None

    @pytest.mark.parametrize("minutes", [0, -1, 1.5, True])
    def test_bad_duration(self, db, minutes):
        with pytest.raises(ValueError):
            record_time_entry(db, "2026-03-02", "t1", "Write", minutes)

    def test_missing_task(self, db):
        with pytest.raises(ValueError, match="required"):
            record_time_entry(db, "2026-03-02", "", "Write", 10)

    def test_unknown_category(self, db):
        with pytest.raises(ValueError, match="Unknown category"):
            record_time_entry(db, "2026-03-02", "t1", "Write", 10, category="later")

    def test_list_filters_by_date(self, db):
        record_time_entry(db, "2026-03-02", "t1", "A", 10)
        record_time_entry(db, "2026-03-03", "t2", "B", 20)
        assert [e.task_name for e in list_time_entries(db, "2026-03-03")] == ["B"]
        assert len(list_time_entries(db)) == 2


class TestPlannedVsActual:
    def test_compares_per_project(self, db):
        save_allocation(db, "2026-03-02", 8, [
            {"project_id": "p1", "project_name": "One", "percentage": 60},
            {"project_id": "p2", "project_name": "Two", "percentage": 40},
        ])
        record_time_entry(db, "2026-03-02", "t1", "A", 90, todoist_project_id="p1")
        record_time_entry(db, "2026-03-02", "t2", "B", 30, todoist_project_id="p1")
        record_time_entry(db, "2026-03-02", "t9", "Stray", 15, todoist_project_id="p9")

        report = planned_vs_actual(db, "2026-03-02")
        rows = {r["project_id"]: r for r in report["planned_vs_actual"]}
        assert rows["p1"]["planned_hours"] == 4.8
        assert rows["p1"]["actual_hours"] == 2.0
        assert rows["p2"]["actual_hours"] == 0
        assert [u["task_name"] for u in report["unplanned_tasks"]] == ["Stray"]
        assert report["logged_hours"] == 2.25
        assert report["total_work_hours"] == 8

    def test_no_allocation(self, db):
        record_time_entry(db, "2026-03-02", "t1", "A", 60, todoist_project_id="p1")
        report = planned_vs_actual(db, "2026-03-02")
        assert report["total_work_hours"] is None
        assert report["planned_vs_actual"] == []
        assert len(report["unplanned_tasks"]) == 1


class TestColors:
    def test_palette(self):
        assert colors.resolve_color("red") == "#db4035"

    def test_unknown_and_missing(self):
        assert colors.resolve_color("plaid") == colors.DEFAULT_HEX
        assert colors.resolve_color(None) == colors.DEFAULT_HEX

    def test_override_wins(self, db):
        colors.set_override(db, "red", "#ABCDEF")
        overrides = colors.list_overrides(db)
        assert overrides == {"red": "#abcdef"}
        assert colors.resolve_color("red", overrides) == "#abcdef"

    def test_override_replaced(self, db):
        colors.set_override(db, "red", "#000000")
        colors.set_override(db, "red", "#111111")
        assert colors.list_overrides(db) == {"red": "#111111"}

    def test_clear(self, db):
        colors.set_override(db, "red", "#000000")
        assert colors.clear_override(db, "red")
        assert not colors.clear_override(db, "red")

    def test_rejects_bad_values(self, db):
        with pytest.raises(ValueError, match="Unknown Todoist color"):
            colors.set_override(db, "plaid", "#000000")
        with pytest.raises(ValueError, match="Invalid hex"):
            colors.set_override(db, "red", "red")
