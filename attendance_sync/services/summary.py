from __future__ import annotations

from ..models.sync_result import SubmissionResult, SyncResult

"""SUMMARY line rendering.

Format for a periodic sync::

    SUMMARY sources={ok}/{total} failed={failed} skipped={skipped} appended={n}
    assigned={n} minted={n} copied={n} elapsed_sec={elapsed}

Format for a single submission::

    SUMMARY submission row={row} person_id={id} minted={n} copied={yes|no}
"""

__all__ = [
    "format_seconds",
    "render_submission_line",
    "render_summary_line",
]


def format_seconds(seconds: float) -> str:
    """Render elapsed seconds without scientific notation or trailing zeros."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    return f"{seconds:.6f}".rstrip("0").rstrip(".")


def render_summary_line(result: SyncResult) -> str:
    """Render the SUMMARY line for a sync run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> render_summary_line(SyncResult(start_time=start, end_time=end))
        'SUMMARY sources=0/0 failed=0 skipped=0 appended=0 assigned=0 minted=0 copied=0 elapsed_sec=2'
    """
    total = len(result.source_stats)
    ok = total - result.failed_sources - result.skipped_sources
    return (
        f"SUMMARY sources={ok}/{total} "
        f"failed={result.failed_sources} "
        f"skipped={result.skipped_sources} "
        f"appended={result.appended_rows} "
        f"assigned={result.assigned_rows} "
        f"minted={result.minted_ids} "
        f"copied={result.copied_rows} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )


def render_submission_line(result: SubmissionResult) -> str:
    return (
        f"SUMMARY submission row={result.staging_row} "
        f"person_id={result.person_id or '-'} "
        f"minted={result.minted_ids} "
        f"copied={'yes' if result.copied else 'no'}"
    )
