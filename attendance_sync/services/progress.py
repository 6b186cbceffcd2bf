from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm

"""Source-sheet progress bar for the periodic sync.

The bar is only drawn on an interactive terminal; under cron or CI tqdm is
created disabled and every call below is a no-op.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """One bar step per configured source sheet."""

    def __init__(self, total_sources: int, *, description: str = "Syncing sources") -> None:
        self.description = description
        self.finished = 0
        self.bar = tqdm(
            total=total_sources,
            desc=description,
            unit="sheet",
            disable=not is_tty_enabled(),
            leave=False,
            ncols=80,
            ascii=True,
        )

    @property
    def enabled(self) -> bool:
        return not self.bar.disable

    def start_source(self, sheet_name: str) -> None:
        self.bar.set_description_str(f"{self.description} [{sheet_name}]")

    def finish_source(self, **postfix: Any) -> None:
        self.finished += 1
        if postfix:
            self.bar.set_postfix(refresh=False, **postfix)
        self.bar.update(1)

    def close(self) -> None:
        self.bar.set_description_str(self.description)
        self.bar.close()

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
