from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

"""Spreadsheet access boundary.

The services only talk to these protocols; ``workbook.py`` (local .xlsx files)
and ``gsheets.py`` (Google Sheets) implement them. Row and column numbers are
1-indexed here, as in the spreadsheet UI.
"""

__all__ = [
    "SheetWriteError",
    "SheetsError",
    "Spreadsheet",
    "SpreadsheetAccessError",
    "SpreadsheetStore",
    "Worksheet",
    "find_sheet",
    "is_blank",
    "true_last_row",
]

logger = logging.getLogger(__name__)


class SheetsError(Exception):
    """Base exception for spreadsheet adapter failures."""


class SpreadsheetAccessError(SheetsError):
    """Raised when a spreadsheet cannot be opened by id."""


class SheetWriteError(SheetsError):
    """Raised when appending or updating cells fails."""


class Worksheet(Protocol):
    @property
    def title(self) -> str: ...

    def get_values(self) -> list[list[Any]]:
        """All rows of the data range, header included."""
        ...

    def get_rows(self, start_row: int, count: int) -> list[list[Any]]: ...

    def last_row(self) -> int:
        """1-indexed number of the last row holding data (0 when empty)."""
        ...

    def append_rows(self, rows: Sequence[Sequence[Any]]) -> None: ...

    def update_column(self, start_row: int, column: int, values: Sequence[Any]) -> None: ...


class Spreadsheet(Protocol):
    @property
    def id(self) -> str: ...

    def worksheets(self) -> list[Worksheet]: ...


class SpreadsheetStore(Protocol):
    def open(self, spreadsheet_id: str) -> Spreadsheet:
        """Open a spreadsheet; raises SpreadsheetAccessError on failure."""
        ...


def find_sheet(spreadsheet: Spreadsheet | None, name: str) -> Worksheet | None:
    """Return the worksheet whose title matches ``name`` case-insensitively."""
    if spreadsheet is None:
        logger.error("Spreadsheet object is None while looking up sheet %r.", name)
        return None
    wanted = name.lower()
    for sheet in spreadsheet.worksheets():
        if sheet.title.lower() == wanted:
            return sheet
    return None


def is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def true_last_row(
    values: Sequence[Sequence[Any]],
    key_columns: Iterable[int],
    header_rows: int = 1,
) -> int:
    """Last 1-indexed row with content in any of ``key_columns``.

    Trailing rows that are blank in every key column (formatting leftovers,
    half-deleted responses) are ignored. Returns ``header_rows`` when no row
    has content.

    Args:
        values: Sheet rows, header included
        key_columns: 1-indexed columns to inspect
        header_rows: Value returned when no row qualifies
    """
    columns = list(key_columns)
    for r in range(len(values) - 1, -1, -1):
        row = values[r]
        for col in columns:
            if col - 1 < len(row) and not is_blank(row[col - 1]):
                return r + 1
    return header_rows
