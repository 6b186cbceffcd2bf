"""Domain models for the attendance sync tool.

This package contains the configuration, row and result models shared by
the services, the spreadsheet adapters and the CLI.
"""

from .attendance_row import ATTENDANCE_COLUMNS, AttendanceRow
from .config_models import (
    ReferenceTableConfig,
    SourceColumns,
    SourceTableConfig,
    SyncSettings,
)
from .error_record import ErrorRecord
from .sync_result import SourceStat, SourceStatus, SubmissionResult, SyncResult

__all__ = [
    # Configuration models
    "ReferenceTableConfig",
    "SourceColumns",
    "SourceTableConfig",
    "SyncSettings",
    # Row models
    "ATTENDANCE_COLUMNS",
    "AttendanceRow",
    "ErrorRecord",
    # Result models
    "SourceStat",
    "SourceStatus",
    "SubmissionResult",
    "SyncResult",
]
