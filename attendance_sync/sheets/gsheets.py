from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Any

import gspread
import gspread.exceptions
from google.oauth2 import service_account
from gspread.utils import rowcol_to_a1

from .base import SheetWriteError, SpreadsheetAccessError, is_blank

"""Google Sheets backend (gspread + service account credentials)."""

__all__ = [
    "GoogleSheetsSpreadsheet",
    "GoogleSheetsStore",
    "GoogleSheetsWorksheet",
    "build_client",
]

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_client(credentials_file: Path) -> gspread.Client:
    """Authorize a gspread client from a service account JSON file."""
    if not credentials_file.is_file():
        raise SpreadsheetAccessError(f"service account file not found: {credentials_file}")
    try:
        credentials = service_account.Credentials.from_service_account_file(
            str(credentials_file), scopes=SCOPES
        )
    except ValueError as e:
        raise SpreadsheetAccessError(f"invalid service account file {credentials_file}: {e}") from e
    return gspread.authorize(credentials)


def _to_sheet_value(value: Any) -> Any:
    # the Sheets API only takes JSON scalars
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    if isinstance(value, date):
        return value.isoformat()
    if value is None:
        return ""
    return value


class GoogleSheetsWorksheet:
    def __init__(self, worksheet: gspread.Worksheet) -> None:
        self._ws = worksheet

    @property
    def title(self) -> str:
        return self._ws.title

    def get_values(self) -> list[list[Any]]:
        rows = self._ws.get_all_values()
        while rows and all(is_blank(v) for v in rows[-1]):
            rows.pop()
        return rows

    def get_rows(self, start_row: int, count: int) -> list[list[Any]]:
        if start_row < 1 or count <= 0:
            return []
        return self.get_values()[start_row - 1 : start_row - 1 + count]

    def last_row(self) -> int:
        return len(self.get_values())

    def append_rows(self, rows: Sequence[Sequence[Any]]) -> None:
        if not rows:
            return
        payload = [[_to_sheet_value(v) for v in row] for row in rows]
        try:
            self._ws.append_rows(payload, value_input_option="RAW")
        except gspread.exceptions.APIError as e:
            raise SheetWriteError(f"append failed on '{self.title}': {e}") from e

    def update_column(self, start_row: int, column: int, values: Sequence[Any]) -> None:
        if not values:
            return
        first = rowcol_to_a1(start_row, column)
        last = rowcol_to_a1(start_row + len(values) - 1, column)
        # RAW keeps "00042" as text instead of the number 42
        try:
            self._ws.update(
                range_name=f"{first}:{last}",
                values=[[_to_sheet_value(v)] for v in values],
                value_input_option="RAW",
            )
        except gspread.exceptions.APIError as e:
            raise SheetWriteError(f"update {first}:{last} failed on '{self.title}': {e}") from e


class GoogleSheetsSpreadsheet:
    def __init__(self, spreadsheet: gspread.Spreadsheet) -> None:
        self._ss = spreadsheet

    @property
    def id(self) -> str:
        return self._ss.id

    def worksheets(self) -> list[GoogleSheetsWorksheet]:
        return [GoogleSheetsWorksheet(ws) for ws in self._ss.worksheets()]


class GoogleSheetsStore:
    """Opens Google spreadsheets by key through an authorized gspread client."""

    def __init__(self, client: gspread.Client) -> None:
        self.client = client

    def open(self, spreadsheet_id: str) -> GoogleSheetsSpreadsheet:
        try:
            spreadsheet = self.client.open_by_key(spreadsheet_id)
        except gspread.exceptions.SpreadsheetNotFound as e:
            raise SpreadsheetAccessError(f"spreadsheet not found or not shared: {spreadsheet_id}") from e
        except gspread.exceptions.APIError as e:
            raise SpreadsheetAccessError(f"cannot open spreadsheet {spreadsheet_id}: {e}") from e
        return GoogleSheetsSpreadsheet(spreadsheet)
