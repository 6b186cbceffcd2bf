"""Spreadsheet adapters (local workbooks and Google Sheets)."""

from __future__ import annotations

from pathlib import Path

from ..config.loader import ConfigError
from ..models.config_models import SyncSettings
from .base import (
    SheetsError,
    SheetWriteError,
    Spreadsheet,
    SpreadsheetAccessError,
    SpreadsheetStore,
    Worksheet,
    find_sheet,
    true_last_row,
)

__all__ = [
    "SheetWriteError",
    "SheetsError",
    "Spreadsheet",
    "SpreadsheetAccessError",
    "SpreadsheetStore",
    "Worksheet",
    "find_sheet",
    "open_store",
    "true_last_row",
]


def open_store(settings: SyncSettings) -> SpreadsheetStore:
    """Build the spreadsheet store selected by ``settings.backend``."""
    if settings.backend == "workbook":
        from .workbook import WorkbookStore

        directory = Path(settings.workbook_directory)
        if not directory.is_dir():
            raise ConfigError(f"workbook directory not found: {directory}")
        return WorkbookStore(directory)
    if settings.backend == "gsheets":
        from .gsheets import GoogleSheetsStore, build_client

        if not settings.credentials_file:
            raise ConfigError("credentials_file is required for the gsheets backend")
        return GoogleSheetsStore(build_client(Path(settings.credentials_file)))
    raise ConfigError(f"unknown backend: {settings.backend}")
