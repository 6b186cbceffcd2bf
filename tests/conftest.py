# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest
from fakes import ATTENDANCE_HEADER, DIRECTORY_HEADER, FORM_HEADER, FakeStore

from attendance_sync.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("DIRECTORY_SPREADSHEET_ID", raising=False)
        monkeypatch.delenv("TARGET_ATTENDANCE_SPREADSHEET_ID", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """backend: workbook
workbook_directory: ./data
central_spreadsheet_id: central
directory_spreadsheet_id: directory
target_attendance_spreadsheet_id: tracker
attendance_sheet_name: event attendance
timezone: UTC
state_file: ./state/sync_state.json
sources:
  - spreadsheet_id: central
    sheet_name: Form Responses 1
  - spreadsheet_id: outreach
    sheet_name: Another Form Responses
    columns:
      timestamp: 0
      last_name: 1
      first_name: 2
      event_name: 4
      event_id: 5
      role: 6
      email: 7
      phone: 8
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sync.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_workbook(directory: Path, spreadsheet_id: str, sheets: dict[str, list[list[Any]]]) -> Path:
    """Create ``<directory>/<spreadsheet_id>.xlsx`` with one sheet per entry (no pandas header)."""
    path = directory / f"{spreadsheet_id}.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def workbook_factory():
    return make_workbook


@pytest.fixture()
def fake_store() -> FakeStore:
    """Directory, central and tracker spreadsheets; attendance sheets hold only a header."""
    store = FakeStore()
    store.add("directory", {
        "Directory": [DIRECTORY_HEADER, ["DIR-00010", "Jane Doe"], ["00012", "Sam Poe"]],
        "New Member Form": [DIRECTORY_HEADER, ["20", "Lee Moe"]],
        "Sunday Service Attend": [DIRECTORY_HEADER],
        "Event Attendance": [DIRECTORY_HEADER, ["00030", "Kim Koe"]],
    })
    store.add("central", {
        "Event Attendance": [ATTENDANCE_HEADER],
        "Form Responses 1": [FORM_HEADER],
    })
    store.add("tracker", {"event attendance": [ATTENDANCE_HEADER]})
    return store
