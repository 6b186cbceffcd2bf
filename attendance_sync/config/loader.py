from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_REFERENCE_TABLES,
    ReferenceTableConfig,
    SourceColumns,
    SourceTableConfig,
    SyncSettings,
)

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/sync.yml``)
- Validate against ``config_schema.json`` (unknown keys rejected)
- Apply defaults (timezone=UTC, backend=workbook, ...)
- Let ``DIRECTORY_SPREADSHEET_ID`` / ``TARGET_ATTENDANCE_SPREADSHEET_ID``
  environment variables override the file
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "require_directory_id",
    "require_target_id",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/sync.yml")

ENV_DIRECTORY_ID = "DIRECTORY_SPREADSHEET_ID"
ENV_TARGET_ID = "TARGET_ATTENDANCE_SPREADSHEET_ID"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or the data fails
            validation (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _columns(raw: Mapping[str, int] | None) -> SourceColumns:
    return SourceColumns(**raw) if raw else SourceColumns()


def _non_blank(value: str | None) -> str | None:
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> SyncSettings:
    """Load and validate the YAML config at ``path``.

    Args:
        path: YAML file
        environ: Environment used for id overrides (defaults to ``os.environ``)

    Returns:
        SyncSettings
    """
    if environ is None:
        environ = os.environ
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    tz = data.get("timezone", "UTC")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {tz}") from e

    if "reference_tables" in data:
        reference_tables = tuple(
            ReferenceTableConfig(
                name=t["name"],
                id_column=t.get("id_column", 0),
                name_column=t.get("name_column", 1),
                required=t.get("required", False),
            )
            for t in data["reference_tables"]
        )
    else:
        reference_tables = DEFAULT_REFERENCE_TABLES

    sources = tuple(
        SourceTableConfig(
            spreadsheet_id=s["spreadsheet_id"],
            sheet_name=s["sheet_name"],
            columns=_columns(s.get("columns")),
        )
        for s in data.get("sources", [])
    )

    # environment wins over the file (same precedence as .env for credentials)
    directory_id = _non_blank(environ.get(ENV_DIRECTORY_ID)) or _non_blank(
        data.get("directory_spreadsheet_id")
    )
    target_id = _non_blank(environ.get(ENV_TARGET_ID)) or _non_blank(
        data.get("target_attendance_spreadsheet_id")
    )

    return SyncSettings(
        central_spreadsheet_id=data["central_spreadsheet_id"],
        directory_spreadsheet_id=directory_id,
        target_attendance_spreadsheet_id=target_id,
        attendance_sheet_name=data.get("attendance_sheet_name", "event attendance"),
        backend=data.get("backend", "workbook"),
        workbook_directory=data.get("workbook_directory", "./data"),
        credentials_file=data.get("credentials_file"),
        timezone=tz,
        state_file=data.get("state_file", "./state/sync_state.json"),
        reference_tables=reference_tables,
        submission_columns=_columns(data.get("submission_columns")),
        sources=sources,
    )


def require_directory_id(settings: SyncSettings) -> str:
    if not settings.directory_spreadsheet_id:
        raise ConfigError(f"{ENV_DIRECTORY_ID} is not set. Cannot assign IDs.")
    return settings.directory_spreadsheet_id


def require_target_id(settings: SyncSettings) -> str:
    if not settings.target_attendance_spreadsheet_id:
        raise ConfigError(f"{ENV_TARGET_ID} is not set. Cannot copy attendance rows.")
    return settings.target_attendance_spreadsheet_id
