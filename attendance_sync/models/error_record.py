from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """One failed operation, as written to ``logs/errors-*.log``.

    ``row`` is the 1-based sheet row, or -1 when the failure concerns a whole
    sheet or spreadsheet rather than a single row. ``error_type`` is an
    UPPER_SNAKE_CASE tag such as ``APPEND_ERROR`` or ``SOURCE_ACCESS_ERROR``.
    """
    timestamp: str  # UTC, "...Z"
    spreadsheet: str  # spreadsheet id
    sheet: str
    row: int
    error_type: str
    message: str

    @classmethod
    def create(cls, spreadsheet: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        stamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
        return cls(stamp, spreadsheet, sheet, row, error_type, message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
