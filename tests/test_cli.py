"""
Tests for the command line interface.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from timetabler.cli.app import app

runner = CliRunner()

CONFIG_YAML = """
calendar:
  start_time: "08:00"
  end_time: "12:00"
  work_days: [Monday, Tuesday]
export:
  filename_prefix: plan
entries:
  - id: chem
    subject: Chemistry
    location: Lab
    lecturer: Curie
    day: Monday
    start_time: "09:00"
    end_time: "11:00"
  - id: bio
    subject: Biology
    location: Lab
    lecturer: Darwin
    day: Monday
    start_time: "10:00"
    end_time: "11:00"
"""


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


def test_show(config_file):
    """The grid lists the working days."""
    result = runner.invoke(app, ["show", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Monday" in result.output
    assert "Tuesday" in result.output


def test_slots(config_file):
    """Slots are listed with their ranges."""
    result = runner.invoke(app, ["slots", "-c", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "11:00-12:00" in result.output


def test_check_reports_overlap(config_file):
    """Overlapping seed entries are reported."""
    result = runner.invoke(app, ["check", "-c", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Overlap" in result.output


def test_check_reports_hidden_entries(tmp_path):
    """Entries the grid cannot show are listed with the reason."""
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML + """
  - subject: Art
    day: Tuesday
    start_time: "09:30"
    end_time: "10:30"
  - subject: Music
    day: Tuesday
    start_time: "13:00"
    end_time: "14:00"
""", encoding="utf-8")

    result = runner.invoke(app, ["check", "-c", str(path)])

    assert result.exit_code == 0, result.output
    assert "starts inside Chemistry" in result.output
    assert "off the hourly grid" in result.output
    assert "outside working hours" in result.output
    assert "Partly" not in result.output


def test_check_fail_on_conflict(config_file):
    """--fail-on-conflict turns overlaps into a failing exit code."""
    result = runner.invoke(app, ["check", "-c", str(config_file), "--fail-on-conflict"])

    assert result.exit_code == 1


def test_export_xlsx(config_file, tmp_path):
    """Export writes the requested document."""
    target = tmp_path / "out.xlsx"

    result = runner.invoke(app, ["export", "-c", str(config_file), "--format", "xlsx", "--output", str(target)])

    assert result.exit_code == 0, result.output
    assert target.exists()


def test_export_into_directory(config_file, tmp_path):
    """Exporting into a directory uses the configured file name prefix."""
    result = runner.invoke(app, ["export", "-c", str(config_file), "-o", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert list(tmp_path.glob("plan-*.pdf"))


def test_missing_config(tmp_path):
    """An explicit but missing config file is an error."""
    result = runner.invoke(app, ["show", "-c", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_invalid_calendar(tmp_path):
    """Settings that fail domain validation are reported."""
    path = tmp_path / "config.yaml"
    path.write_text('calendar:\n  start_time: "08:30"\n', encoding="utf-8")

    result = runner.invoke(app, ["show", "-c", str(path)])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_session_add_list_quit(config_file):
    """An interactive session can add an entry and list it."""
    answers = "\n".join([
        "add",
        "2",          # Tuesday
        "Physics",
        "Hall",
        "Newton",
        "08:00",
        "",           # default end time 09:00
        "list",
        "quit",
    ]) + "\n"

    result = runner.invoke(app, ["session", "-c", str(config_file)], input=answers)

    assert result.exit_code == 0, result.output
    assert "Created Physics (Tuesday 08:00-09:00)" in result.output
    assert "3 entries in this session" in result.output


def test_session_overlap_declined(config_file):
    """Declining the overlap confirmation discards the entry."""
    answers = "\n".join([
        "add",
        "Monday",
        "Physics",
        "Hall",
        "Newton",
        "09:00",
        "10:00",
        "n",
        "quit",
    ]) + "\n"

    result = runner.invoke(app, ["session", "-c", str(config_file)], input=answers)

    assert result.exit_code == 0, result.output
    assert "already an entry scheduled" in result.output
    assert "2 entries in this session" in result.output


def test_session_delete(config_file):
    """Entries can be deleted by number."""
    answers = "\n".join(["delete", "1", "y", "quit"]) + "\n"

    result = runner.invoke(app, ["session", "-c", str(config_file)], input=answers)

    assert result.exit_code == 0, result.output
    assert "1 entries in this session" in result.output


def test_session_invalid_time_keeps_running(config_file):
    """Validation errors are shown and the session continues."""
    answers = "\n".join([
        "add", "1", "Physics", "", "", "09:15", "10:00",
        "quit",
    ]) + "\n"

    result = runner.invoke(app, ["session", "-c", str(config_file)], input=answers)

    assert result.exit_code == 0, result.output
    assert "Error" in result.output
    assert "2 entries in this session" in result.output


def test_version():
    """The version command prints the package version."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "timetabler" in result.output


def test_session_confirmed_overlap_exports(config_file, tmp_path, monkeypatch):
    """A confirmed overlap can still be exported to a spreadsheet."""
    monkeypatch.chdir(tmp_path)
    answers = "\n".join([
        "add", "Monday", "Physics", "Hall", "Newton", "10:00", "12:00",
        "y",
        "export", "xlsx",
        "quit",
    ]) + "\n"

    result = runner.invoke(app, ["session", "-c", str(config_file)], input=answers)

    assert result.exit_code == 0, result.output
    assert "Exported timetable to" in result.output
    assert list(tmp_path.glob("plan-*.xlsx"))
    assert "3 entries in this session" in result.output
