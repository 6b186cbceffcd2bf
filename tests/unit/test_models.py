from __future__ import annotations

import logging
from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from attendance_sync.models import ATTENDANCE_COLUMNS, AttendanceRow
from attendance_sync.models.attendance_row import ID_COLUMN, NAME_COLUMN
from attendance_sync.models.config_models import DEFAULT_REFERENCE_TABLES
from attendance_sync.services.alerts import Alert, LogAlerter


def _row(**overrides) -> AttendanceRow:
    values = dict(
        person_id="",
        full_name="Jane Doe",
        event_name="Picnic",
        event_id="EV-1",
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="555-0100",
        source_label="Form Responses 1",
        role="Member",
        event_date="2024-05-01",
        timestamp=datetime(2024, 5, 1, 9, 30),
    )
    values.update(overrides)
    return AttendanceRow(**values)


def test_to_cells_follows_column_layout() -> None:
    """Test the attendance column layout."""
    cells = _row().to_cells()
    assert len(cells) == len(ATTENDANCE_COLUMNS) == 14
    assert dict(zip(ATTENDANCE_COLUMNS, cells))["Form Sheet"] == "Form Responses 1"
    assert cells[ID_COLUMN - 1] == ""
    assert cells[NAME_COLUMN - 1] == "Jane Doe"
    assert cells[-1] == datetime(2024, 5, 1, 9, 30)


def test_attendance_row_is_frozen() -> None:
    """Test that AttendanceRow is immutable."""
    with pytest.raises(FrozenInstanceError):
        _row().person_id = "00001"  # type: ignore[misc]


def test_default_reference_table_priority() -> None:
    """Test the default reference table order."""
    assert [t.name for t in DEFAULT_REFERENCE_TABLES] == [
        "directory",
        "new member form",
        "Sunday Service Attend",
        "event attendance",
    ]
    assert [t.required for t in DEFAULT_REFERENCE_TABLES] == [True, False, False, False]


def test_log_alerter_records_and_logs(caplog) -> None:
    """Test that LogAlerter logs and keeps alerts."""
    alerter = LogAlerter()
    with caplog.at_level(logging.ERROR, logger="attendance_sync.services.alerts"):
        alerter.alert("Sync Error", "Failed to open source spreadsheet x.")
    assert alerter.alerts == [Alert("Sync Error", "Failed to open source spreadsheet x.")]
    assert "ALERT Sync Error: Failed to open source spreadsheet x." in caplog.text
