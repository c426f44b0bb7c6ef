"""Tests for the CLI."""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from day_planner.cli import main
from day_planner.core import allocations as allocations_mod
from day_planner.core.time_entries import list_time_entries
from day_planner.db.engine import get_db


@pytest.fixture
def cli_env(fake_todoist):
    """Temp database and the fake Todoist gateway in place of the real client."""
    with tempfile.TemporaryDirectory() as tmp:
        db_path = Path(tmp) / "test.db"
        env = {"DP_DB_PATH": str(db_path)}
        old_env = {}
        for k, v in env.items():
            old_env[k] = os.environ.get(k)
            os.environ[k] = v
        old_token = os.environ.pop("TODOIST_API_TOKEN", None)

        with patch("day_planner.cli._get_gateway", return_value=fake_todoist):
            yield CliRunner(), fake_todoist, db_path

        for k, v in old_env.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v
        if old_token is not None:
            os.environ["TODOIST_API_TOKEN"] = old_token


class TestPlanCommands:
    def test_save_and_show(self, cli_env):
        runner, _, _ = cli_env
        result = runner.invoke(main, ["plan", "save", "p1=60", "p2=40", "--date", "2026-03-02", "--hours", "8"])
        assert result.exit_code == 0, result.output
        assert "Saved allocation for 2026-03-02" in result.output
        assert "60% = 4.8h" in result.output

        result = runner.invoke(main, ["plan", "show", "--date", "2026-03-02", "--json"])
        data = json.loads(result.output)
        assert [a["hours"] for a in data["project_allocations"]] == [4.8, 3.2]

    def test_save_rejects_bad_total(self, cli_env):
        runner, _, db_path = cli_env
        result = runner.invoke(main, ["plan", "save", "p1=60", "p2=30", "--date", "2026-03-02"])
        assert result.exit_code == 1
        assert "must total 100" in result.output
        with get_db(db_path) as db:
            assert allocations_mod.get_allocation(db, "2026-03-02") is None

    def test_save_rejects_seven_projects(self, cli_env):
        runner, _, _ = cli_env
        splits = [f"p{i}=10" for i in range(7)]
        result = runner.invoke(main, ["plan", "save", *splits])
        assert result.exit_code == 1
        assert "At most 6 projects" in result.output

    def test_save_rejects_malformed_split(self, cli_env):
        runner, _, _ = cli_env
        result = runner.invoke(main, ["plan", "save", "p1"])
        assert result.exit_code == 1
        assert "PROJECT_ID=PERCENT" in result.output

    def test_show_missing_day(self, cli_env):
        runner, _, _ = cli_env
        result = runner.invoke(main, ["plan", "show", "--date", "2026-03-02"])
        assert result.exit_code == 0
        assert "No allocation for 2026-03-02" in result.output


class TestBoardCommands:
    def test_show_columns(self, cli_env):
        runner, _, _ = cli_env
        result = runner.invoke(main, ["board", "show", "--project", "p1"])
        assert result.exit_code == 0, result.output
        assert "Client Work" in result.output
        assert "[strategy] (1)" in result.output
        assert "[timely] (1)" in result.output
        assert "[putting-off] (0)" in result.output

    def test_move(self, cli_env):
        runner, fake, _ = cli_env
        result = runner.invoke(main, ["board", "move", "t1", "putting-off"])
        assert result.exit_code == 0, result.output
        assert "Moved t1 to putting-off" in result.output
        assert fake.tasks["t1"].labels == ["urgent", "@putting-off"]

    def test_move_unknown_category(self, cli_env):
        runner, fake, _ = cli_env
        result = runner.invoke(main, ["board", "move", "t1", "someday"])
        assert result.exit_code == 1
        assert fake.calls == []

    def test_move_failure(self, cli_env):
        runner, fake, _ = cli_env
        fake.fail_updates = True
        result = runner.invoke(main, ["board", "move", "t1", "timely"])
        assert result.exit_code == 1
        assert "Failed to update task labels" in result.output


class TestCompleteCommand:
    def test_complete(self, cli_env):
        runner, fake, db_path = cli_env
        result = runner.invoke(main, ["complete", "t1", "-m", "30", "-n", "done", "--date", "2026-03-02"])
        assert result.exit_code == 0, result.output
        assert "Completed Write proposal (30 min, strategy)" in result.output
        assert ("close_task", "t1") in fake.calls
        with get_db(db_path) as db:
            assert len(list_time_entries(db, "2026-03-02")) == 1

    def test_complete_failure(self, cli_env):
        runner, fake, db_path = cli_env
        fake.fail_close = True
        result = runner.invoke(main, ["complete", "t1", "-m", "15", "--date", "2026-03-02"])
        assert result.exit_code == 1
        with get_db(db_path) as db:
            assert list_time_entries(db, "2026-03-02") == []

    def test_entries_and_report(self, cli_env):
        runner, _, _ = cli_env
        runner.invoke(main, ["plan", "save", "p1=100", "--date", "2026-03-02", "--hours", "4"])
        runner.invoke(main, ["complete", "t2", "-m", "60", "--date", "2026-03-02"])

        result = runner.invoke(main, ["entries", "list", "--date", "2026-03-02"])
        assert "Reply to emails" in result.output

        result = runner.invoke(main, ["report", "--date", "2026-03-02"])
        assert result.exit_code == 0, result.output
        assert "planned 4h, actual 1h" in result.output


class TestColorCommands:
    def test_set_list_clear(self, cli_env):
        runner, _, _ = cli_env
        result = runner.invoke(main, ["colors", "set", "red", "#FF0000"])
        assert result.exit_code == 0
        assert "red -> #ff0000" in result.output

        result = runner.invoke(main, ["colors", "list"])
        assert "red: #ff0000 (override)" in result.output

        result = runner.invoke(main, ["colors", "clear", "red"])
        assert "Cleared red" in result.output

    def test_set_rejects_bad_hex(self, cli_env):
        runner, _, _ = cli_env
        result = runner.invoke(main, ["colors", "set", "red", "blue"])
        assert result.exit_code == 1


class TestMissingToken:
    def test_board_exits(self):
        with tempfile.TemporaryDirectory() as tmp:
            env = {"DP_DB_PATH": str(Path(tmp) / "test.db"), "TODOIST_API_TOKEN": ""}
            result = CliRunner().invoke(main, ["board", "show"], env=env)
        assert result.exit_code == 1
        assert "TODOIST_API_TOKEN" in result.output
