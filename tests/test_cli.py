"""Tests for the command-line interface."""

import sys
from datetime import datetime, timedelta, timezone

import pytest

from liftforge import cli


def run_cli(monkeypatch, db_path, *argv):
    monkeypatch.setattr(sys, "argv", ["liftforge", "--db", str(db_path), *argv])
    cli.main()


class TestCli:
    def test_init_db(self, monkeypatch, capsys, tmp_path):
        run_cli(monkeypatch, tmp_path / "cli.db", "init-db")

        out = capsys.readouterr().out
        assert "Achievements seeded" in out
        assert (tmp_path / "cli.db").exists()

    def test_process_workout(self, monkeypatch, capsys, temp_db, make_workout, bench):
        workout, _ = make_workout(
            "u1",
            datetime.now(timezone.utc) - timedelta(hours=1),
            sets=[(bench.id, 100, 5)],
        )

        run_cli(monkeypatch, temp_db.db_path, "process-workout", "--user", "u1", "--workout", workout.id)

        out = capsys.readouterr().out
        assert "+60" in out
        assert "FIRST_WORKOUT" in out

    def test_level(self, monkeypatch, capsys, temp_db):
        run_cli(monkeypatch, temp_db.db_path, "level", "--user", "u1")

        assert "Level" in capsys.readouterr().out

    def test_error_exits_non_zero(self, monkeypatch, capsys, temp_db):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, temp_db.db_path, "detect-prs", "--workout", "missing")

        assert exc_info.value.code == 1
        assert "WORKOUT_NOT_FOUND" in capsys.readouterr().out

    def test_no_command_prints_help(self, monkeypatch, capsys, tmp_path):
        run_cli(monkeypatch, tmp_path / "cli.db")

        assert "usage" in capsys.readouterr().out.lower()
