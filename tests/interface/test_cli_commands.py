"""Tests for CLI commands: normalize, review, session, weak-words, assess, goal and config."""

import json
import re
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from lexis.interface.cli import app

runner = CliRunner()

DECK = """
deck: Spanish Basics
cards:
  - id: es-001
    front: perro
  - id: es-002
    front: gato
  - id: es-003
    front: pájaro
  - id: es-004
    front: caballo
  - id: es-005
    front: vaca
"""


@pytest.fixture
def workspace(tmp_path, mock_home, monkeypatch):
    decks = tmp_path / "decks"
    decks.mkdir()
    (decks / "spanish.yaml").write_text(DECK, encoding="utf-8")
    monkeypatch.setenv("LEXIS_DB_PATH", str(tmp_path / "lexis.db"))
    monkeypatch.setenv("LEXIS_DECKS_DIR", str(decks))
    return tmp_path


def _create_goal(*extra):
    result = runner.invoke(
        app,
        ["goal", "create", "u1", "--words", "40", "--days", "10", "--deck", "spanish", *extra],
    )
    assert result.exit_code == 0, result.output
    match = re.search(r"(goal_\w+)", result.output)
    assert match
    return match.group(1)


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "adaptive spaced-repetition scheduler" in result.stdout
    assert "review" in result.stdout
    assert "goal" in result.stdout


# --- Normalize ---


def test_normalize_flashcard():
    result = runner.invoke(
        app, ["normalize", "flashcard", "-o", "is_correct=true", "-o", "time_seconds=5"]
    )
    assert result.exit_code == 0
    assert result.stdout.strip() == "4"


def test_normalize_unknown_kind():
    result = runner.invoke(app, ["normalize", "crossword", "-o", "is_correct=true"])
    assert result.exit_code == 1
    assert "Unknown activity kind" in result.output


def test_normalize_malformed_field():
    result = runner.invoke(app, ["normalize", "quiz", "-o", "is_correct"])
    assert result.exit_code == 2


# --- Review ---


def test_review_records_state(workspace):
    result = runner.invoke(app, ["review", "u1", "es-001", "5", "--today", "2025-03-10"])
    assert result.exit_code == 0, result.output
    assert "level 1" in result.stdout
    assert "next review 2025-03-11" in result.stdout

    again = runner.invoke(app, ["review", "u1", "es-001", "5", "--today", "2025-03-11"])
    assert "interval 6d" in again.stdout


def test_review_rejects_bad_quality(workspace):
    result = runner.invoke(app, ["review", "u1", "es-001", "9"])
    assert result.exit_code == 1
    assert "Quality must be" in result.output


def test_review_unknown_goal(workspace):
    result = runner.invoke(app, ["review", "u1", "es-001", "4", "--goal", "goal_missing"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_review_invalid_backend_is_reported(workspace):
    result = runner.invoke(app, ["review", "u1", "es-001", "4", "--backend", "postgres"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
    assert isinstance(result.exception, SystemExit)


def test_invalid_backend_from_environment_is_reported(workspace, monkeypatch):
    monkeypatch.setenv("LEXIS_BACKEND", "postgres")
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


# --- Goals and sessions ---


def test_goal_lifecycle(workspace):
    goal_id = _create_goal("--name", "Trip")

    session = runner.invoke(app, ["session", "u1", goal_id, "--today", "2025-03-10", "--json"])
    assert session.exit_code == 0, session.output
    rows = json.loads(session.stdout)
    assert [r["card_id"] for r in rows] == ["es-001", "es-002", "es-003"]
    assert {r["reason"] for r in rows} == {"new"}

    target = runner.invoke(app, ["goal", "target", goal_id])
    assert json.loads(target.stdout)["new_cards"] == 3

    recorded = runner.invoke(app, ["goal", "record", goal_id, "--cards", "40"])
    assert recorded.exit_code == 0
    assert "Goal complete!" in recorded.stdout

    shown = runner.invoke(app, ["goal", "show", goal_id, "--json"])
    data = json.loads(shown.stdout)
    assert data["goal"]["goal_name"] == "Trip"
    assert data["goal"]["is_active"] is False
    assert data["progress"]["is_goal_complete"] is True


def test_goal_show_text(workspace):
    goal_id = _create_goal()
    runner.invoke(app, ["goal", "advance", goal_id])

    result = runner.invoke(app, ["goal", "show", goal_id])
    assert result.exit_code == 0
    assert "Day 2/10, 9 remaining" in result.stdout


def test_goal_create_rejects_invalid(workspace):
    result = runner.invoke(app, ["goal", "create", "u1", "--words", "0", "--days", "10"])
    assert result.exit_code == 1


def test_goal_plan():
    result = runner.invoke(app, ["goal", "plan", "--words", "100", "--days", "10"])
    assert result.exit_code == 0
    plan = json.loads(result.stdout)
    assert plan["sessions_per_day"] == 1
    assert plan["difficulty"] == "Easy"


def test_goal_windows():
    result = runner.invoke(app, ["goal", "windows", "08:00", "18:00"])
    assert result.exit_code == 0
    assert "00:00 - 12:59" in result.stdout
    assert "13:00 - 23:59" in result.stdout


def test_goal_windows_bad_time():
    result = runner.invoke(app, ["goal", "windows", "8am"])
    assert result.exit_code == 2


# --- Weak words and assessments ---


def test_weak_words(workspace):
    for _ in range(2):
        runner.invoke(app, ["review", "u1", "es-002", "0"])
    runner.invoke(app, ["review", "u1", "es-001", "5"])

    result = runner.invoke(app, ["weak-words", "u1", "--json"])
    assert result.exit_code == 0, result.output
    entries = json.loads(result.stdout)
    assert [e["word"] for e in entries] == ["gato"]
    assert entries[0]["times_wrong"] == 2


def test_weak_words_empty(workspace):
    result = runner.invoke(app, ["weak-words", "u1"])
    assert result.exit_code == 0
    assert "No weak words." in result.stdout


def test_assess(workspace):
    runner.invoke(app, ["review", "u1", "es-001", "1"])
    result = runner.invoke(app, ["assess", "u1", "--wrong", "es-001", "--right", "es-002"])
    assert result.exit_code == 0
    assert "Reset: 1  Boosted: 0  Skipped: 1" in result.stdout


# --- Config ---


@patch("lexis.interface.cli.resolve_config")
def test_config_show_command(mock_resolve_config):
    """Test config show command displays JSON."""
    mock_config = MagicMock()
    mock_config.model_dump.return_value = {
        "db_path": Path("/tmp/lexis.db"),
        "backend": "sqlite",
        "verbose": 1,
    }
    mock_config.verbose = 1
    mock_resolve_config.return_value = mock_config

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    output_data = json.loads(result.stdout)
    assert output_data["db_path"] == str(Path("/tmp/lexis.db"))
    assert output_data["backend"] == "sqlite"


def test_logs_prints_log_dir(workspace, monkeypatch):
    monkeypatch.setenv("LEXIS_LOG_DIR", str(workspace / "logs"))
    result = runner.invoke(app, ["logs"])
    assert result.exit_code == 0, result.output
    assert (workspace / "logs").is_dir()
