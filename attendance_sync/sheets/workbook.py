from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import openpyxl
import pandas as pd

from .base import SheetWriteError, SpreadsheetAccessError, is_blank

"""Local workbook backend.

Each spreadsheet id maps to ``<directory>/<id>.xlsx``. Reads go through pandas
(raw, header-less, ``dtype=object`` so identifiers such as ``"00042"`` keep
their text); writes go through openpyxl and save the workbook immediately.
Blank cells read back as ``""``.
"""

__all__ = [
    "WorkbookSpreadsheet",
    "WorkbookStore",
    "WorkbookWorksheet",
]

logger = logging.getLogger(__name__)

WORKBOOK_SUFFIX = ".xlsx"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value == "":
        return None
    return value


class WorkbookWorksheet:
    """One sheet of a local workbook."""

    def __init__(self, path: Path, title: str) -> None:
        self._path = path
        self._title = title

    def __repr__(self) -> str:  # pragma: no cover
        return f"WorkbookWorksheet({self._path.name!r}, {self._title!r})"

    @property
    def title(self) -> str:
        return self._title

    def get_values(self) -> list[list[Any]]:
        df = pd.read_excel(self._path, sheet_name=self._title, header=None, dtype=object)
        if df.empty:
            return []
        df = df.astype(object).where(pd.notna(df), "")
        rows: list[list[Any]] = df.values.tolist()
        # drop trailing rows that are blank everywhere
        while rows and all(is_blank(v) for v in rows[-1]):
            rows.pop()
        return rows

    def get_rows(self, start_row: int, count: int) -> list[list[Any]]:
        if start_row < 1 or count <= 0:
            return []
        values = self.get_values()
        return values[start_row - 1 : start_row - 1 + count]

    def last_row(self) -> int:
        return len(self.get_values())

    def _write(self, action: str, apply: Any) -> None:
        try:
            wb = openpyxl.load_workbook(self._path)
            ws = wb[self._title]
            apply(ws)
            wb.save(self._path)
        except (OSError, KeyError, ValueError, TypeError) as e:
            raise SheetWriteError(f"{action} failed on '{self._title}' in {self._path.name}: {e}") from e

    def append_rows(self, rows: Sequence[Sequence[Any]]) -> None:
        if not rows:
            return
        start = self.last_row() + 1

        def apply(ws: Any) -> None:
            for offset, row in enumerate(rows):
                for col, value in enumerate(row, start=1):
                    ws.cell(row=start + offset, column=col, value=_blank_to_none(value))

        self._write("append", apply)
        logger.debug("Appended %d rows to '%s' at row %d.", len(rows), self._title, start)

    def update_column(self, start_row: int, column: int, values: Sequence[Any]) -> None:
        if not values:
            return

        def apply(ws: Any) -> None:
            for offset, value in enumerate(values):
                ws.cell(row=start_row + offset, column=column, value=_blank_to_none(value))

        self._write("update", apply)


class WorkbookSpreadsheet:
    """A local ``.xlsx`` file addressed by spreadsheet id."""

    def __init__(self, spreadsheet_id: str, path: Path) -> None:
        self._id = spreadsheet_id
        self._path = path

    @property
    def id(self) -> str:
        return self._id

    @property
    def path(self) -> Path:
        return self._path

    def worksheets(self) -> list[WorkbookWorksheet]:
        with pd.ExcelFile(self._path) as xls:
            names = [str(name) for name in xls.sheet_names]
        return [WorkbookWorksheet(self._path, name) for name in names]


class WorkbookStore:
    """Opens ``<directory>/<spreadsheet_id>.xlsx`` workbooks."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, spreadsheet_id: str) -> Path:
        return self.directory / f"{spreadsheet_id}{WORKBOOK_SUFFIX}"

    def open(self, spreadsheet_id: str) -> WorkbookSpreadsheet:
        path = self.path_for(spreadsheet_id)
        if not path.is_file():
            raise SpreadsheetAccessError(f"workbook not found: {path}")
        try:
            # validates the file is a readable workbook
            with pd.ExcelFile(path):
                pass
        except Exception as e:
            raise SpreadsheetAccessError(f"cannot open workbook {path}: {e}") from e
        return WorkbookSpreadsheet(spreadsheet_id, path)
