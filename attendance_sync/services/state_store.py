from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Protocol

"""Persisted high-water marks for the periodic sync.

One integer per (spreadsheet id, sheet name): the number of rows, header
included, already ingested from that source. Stored as strings to keep the
store a plain key-value mapping.
"""

__all__ = [
    "JsonFileStateStore",
    "MemoryStateStore",
    "StateStore",
    "StateStoreError",
    "sync_state_key",
]

_WHITESPACE = re.compile(r"\s")


class StateStoreError(Exception):
    """Raised when the state file cannot be read or written."""


class StateStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


def sync_state_key(spreadsheet_id: str, sheet_name: str) -> str:
    """Key under which a source's last synced row is stored."""
    return f"lastSyncedRow_{spreadsheet_id}_{_WHITESPACE.sub('_', sheet_name)}"


class MemoryStateStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFileStateStore:
    """Key-value store backed by a single JSON object file.

    The file is re-read on every ``get`` and rewritten on every ``set`` so a
    crash mid-run keeps the marks of sources already synced.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StateStoreError(f"cannot read state file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StateStoreError(f"state file {self.path} must hold a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise StateStoreError(f"cannot write state file {self.path}: {e}") from e
