from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Per-run error log.

Failures are collected while a run is in progress and written at the end as
JSON Lines, one ``ErrorRecord`` per line, to
``<logs_dir>/errors-YYYYMMDD-HHMMSS.log`` (UTC). A run without failures leaves
no file behind.
"""

__all__ = [
    "ErrorLogBuffer",
    "ErrorRecord",
]

logger = logging.getLogger(__name__)

DEFAULT_LOGS_DIR = Path("./logs")


class ErrorLogBuffer:
    """Collects ErrorRecords for one run; ``flush()`` appends them to disk."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = logs_dir if logs_dir is not None else DEFAULT_LOGS_DIR
        self._pending: list[ErrorRecord] = []
        self._target: Path | None = None

    @property
    def file_path(self) -> Path:
        """Log file of this run; named on first access and then fixed."""
        if self._target is None:
            self._target = self.logs_dir / f"errors-{datetime.now(UTC):%Y%m%d-%H%M%S}.log"
        return self._target

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Write pending records; returns the file path, or None when nothing was pending."""
        if not self._pending:
            return None
        path = self.file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = "".join(f"{record.to_json_line()}\n" for record in self._pending)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(payload)
        logger.info("Wrote %d error record(s) to %s", len(self._pending), path)
        self._pending.clear()
        return path
