from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the attendance sync tool.

These are produced by ``attendance_sync.config.loader.load_config`` and passed
explicitly to the orchestration functions; nothing reads configuration from
process-wide state after loading.
"""

__all__ = [
    "DEFAULT_REFERENCE_TABLES",
    "ReferenceTableConfig",
    "SourceColumns",
    "SourceTableConfig",
    "SyncSettings",
]


@dataclass(frozen=True)
class SourceColumns:
    """0-indexed column positions of a form-responses sheet.

    Defaults match the primary event attendance form:
    Timestamp, Event Name, Event ID, Last Name, First Name, Role, Email, Phone.
    """
    timestamp: int = 0
    event_name: int = 1
    event_id: int = 2
    last_name: int = 3
    first_name: int = 4
    role: int = 5
    email: int = 6
    phone: int = 7


@dataclass(frozen=True)
class SourceTableConfig:
    """A form-responses sheet ingested by the periodic sync."""
    spreadsheet_id: str
    sheet_name: str
    columns: SourceColumns = field(default_factory=SourceColumns)


@dataclass(frozen=True)
class ReferenceTableConfig:
    """A sheet in the directory spreadsheet consulted for existing identifiers.

    Order in ``SyncSettings.reference_tables`` is lookup priority.
    """
    name: str
    id_column: int = 0
    name_column: int = 1
    required: bool = False  # missing required table aborts ID assignment


DEFAULT_REFERENCE_TABLES: tuple[ReferenceTableConfig, ...] = (
    ReferenceTableConfig("directory", required=True),
    ReferenceTableConfig("new member form"),
    ReferenceTableConfig("Sunday Service Attend"),
    ReferenceTableConfig("event attendance"),
)


@dataclass(frozen=True)
class SyncSettings:
    """Root configuration object for a sync/submit run."""
    central_spreadsheet_id: str  # spreadsheet holding the staging sheet
    directory_spreadsheet_id: str | None = None  # required for ID assignment
    target_attendance_spreadsheet_id: str | None = None  # required for copying
    attendance_sheet_name: str = "event attendance"
    backend: str = "workbook"  # workbook | gsheets
    workbook_directory: str = "./data"
    credentials_file: str | None = None
    timezone: str = "UTC"
    state_file: str = "./state/sync_state.json"
    reference_tables: tuple[ReferenceTableConfig, ...] = DEFAULT_REFERENCE_TABLES
    submission_columns: SourceColumns = field(default_factory=SourceColumns)
    sources: tuple[SourceTableConfig, ...] = ()
