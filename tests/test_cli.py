"""
Tests for the command-line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from areaslots.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    data = {
        "owners": {
            "owner-anna": {
                "locations": [
                    {"id": "l1", "name": "Studio North", "area": "Downtown"},
                    {"id": "l2", "name": "Clinic South", "area": "Downtown"},
                ],
                "areas": [{"id": "Downtown", "name": "Downtown", "travel_buffer_minutes": 30}],
                "availability_rules": [
                    {"id": "mon", "day_of_week": 1, "start_time": "09:00", "end_time": "17:00"}
                ],
                "booked_slots": [
                    {
                        "id": "b1",
                        "location_id": "l2",
                        "date": "2024-11-25",
                        "start_time": "12:00",
                        "end_time": "13:00",
                        "customer_name": "Jane Doe",
                        "customer_email": "jane@example.com",
                    }
                ],
            }
        }
    }
    (tmp_path / "data.json").write_text(json.dumps(data), encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text(
        "store:\n"
        "  data_file: data.json\n"
        "owners:\n"
        "  - handle: anna\n"
        "    owner_id: owner-anna\n",
        encoding="utf-8",
    )
    return path


def test_slots_by_location_name(config_file):
    result = runner.invoke(app, ["slots", "anna", "studio north", "--date", "2024-11-25", "-c", str(config_file)])

    assert result.exit_code == 0
    assert "5 slot(s)" in result.output
    assert "13:30 – 14:30" in result.output


def test_slots_for_unknown_owner_shows_nothing(config_file):
    result = runner.invoke(app, ["slots", "bob", "l1", "--date", "2024-11-25", "-c", str(config_file)])

    assert result.exit_code == 0
    assert "No available slots" in result.output


def test_days(config_file):
    result = runner.invoke(app, ["days", "anna", "--month", "11", "--year", "2024", "-c", str(config_file)])

    assert result.exit_code == 0
    assert "2024-11-25" in result.output
    assert "2024-11-26" not in result.output


def test_book_then_slot_disappears(config_file):
    result = runner.invoke(
        app,
        [
            "book", "anna", "l1", "09:00",
            "--date", "2024-11-25",
            "--name", "John Smith",
            "--email", "john@example.com",
            "-c", str(config_file),
        ],
    )
    assert result.exit_code == 0
    assert "confirmed" in result.output

    result = runner.invoke(app, ["slots", "anna", "l1", "--date", "2024-11-25", "-c", str(config_file)])
    assert "4 slot(s)" in result.output


def test_book_taken_slot_fails(config_file):
    result = runner.invoke(
        app,
        [
            "book", "anna", "l1", "13:00",
            "--date", "2024-11-25",
            "--name", "John Smith",
            "--email", "john@example.com",
            "-c", str(config_file),
        ],
    )

    assert result.exit_code == 1
    assert "not available" in result.output


def test_add_rule_and_list(config_file):
    result = runner.invoke(app, ["add-rule", "anna", "tue", "10:00", "12:00", "-c", str(config_file)])
    assert result.exit_code == 0

    result = runner.invoke(app, ["rules", "anna", "-c", str(config_file)])
    assert "Tuesday" in result.output


def test_add_rule_rejects_backwards_window(config_file):
    result = runner.invoke(app, ["add-rule", "anna", "1", "12:00", "10:00", "-c", str(config_file)])

    assert result.exit_code == 1


def test_missing_config(tmp_path):
    result = runner.invoke(app, ["days", "anna", "-c", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output
