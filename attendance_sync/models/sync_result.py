from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

"""Result models for submit and sync runs.

Aggregated counters feed the SUMMARY line and the CLI exit code.
"""

__all__ = [
    "SourceStat",
    "SourceStatus",
    "SubmissionResult",
    "SyncResult",
]


class SourceStatus(Enum):
    """Outcome for one configured source sheet.

    - SYNCED: new rows appended to staging
    - UP_TO_DATE: nothing past the high-water mark
    - SKIPPED: sheet not found, skipped with a warning
    - FAILED: spreadsheet could not be opened or read
    """
    SYNCED = "synced"
    UP_TO_DATE = "up_to_date"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class SourceStat:
    """Per-source sync statistics."""
    spreadsheet_id: str
    sheet_name: str
    status: SourceStatus
    appended_rows: int = 0
    failed_rows: int = 0
    high_water_mark: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class SyncResult:
    """Aggregated result of a periodic sync run."""
    start_time: datetime
    end_time: datetime
    source_stats: list[SourceStat] = field(default_factory=list)
    appended_rows: int = 0  # rows appended to the staging sheet
    assigned_rows: int = 0  # rows whose ID cell changed
    minted_ids: int = 0
    copied_rows: int = 0  # rows appended to the destination sheet
    assignment_error: str | None = None
    copy_error: str | None = None

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def failed_sources(self) -> int:
        return sum(1 for s in self.source_stats if s.status is SourceStatus.FAILED)

    @property
    def skipped_sources(self) -> int:
        return sum(1 for s in self.source_stats if s.status is SourceStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return (
            self.failed_sources == 0
            and self.assignment_error is None
            and self.copy_error is None
        )


@dataclass(frozen=True)
class SubmissionResult:
    """Result of processing one form submission."""
    staging_row: int  # 1-indexed row appended to the staging sheet
    person_id: str
    minted_ids: int = 0
    copied: bool = False
    assignment_error: str | None = None
    copy_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.copied and self.assignment_error is None
