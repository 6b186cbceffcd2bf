from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import astuple, dataclass, field
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from ..config.loader import ConfigError, require_directory_id, require_target_id
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.attendance_row import ID_COLUMN, NAME_COLUMN, AttendanceRow
from ..models.config_models import SourceColumns, SourceTableConfig, SyncSettings
from ..models.sync_result import SourceStat, SourceStatus, SubmissionResult, SyncResult
from ..sheets.base import (
    SheetsError,
    SpreadsheetAccessError,
    SpreadsheetStore,
    Worksheet,
    find_sheet,
    true_last_row,
)
from .alerts import Alerter, LogAlerter
from .id_assignment import AssignmentResult, assign_ids
from .id_extractor import cell_text
from .lookup_maps import ReferenceData, build_named_lookup, find_highest_id
from .progress import ProgressTracker
from .state_store import StateStore, StateStoreError, sync_state_key

"""Service orchestration for attendance ingestion.

Two entry points, one per trigger:

- ``process_form_submission``: a single form response is appended to the
  central staging sheet, gets its person ID, and is copied to the target
  attendance spreadsheet.
- ``sync_all_sources``: every configured form-responses sheet is read past its
  high-water mark; new rows are appended to staging, assigned IDs in one batch
  and copied to the target in one batch.

Both share ``assign_event_attendance_ids``, which reads the reference tables,
runs the assignment engine over a row range of the staging sheet and writes
the ID column back.
"""

__all__ = [
    "FormSubmission",
    "ProcessingError",
    "SheetNotFoundError",
    "assign_event_attendance_ids",
    "build_attendance_row",
    "process_form_submission",
    "sync_all_sources",
]

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "Unknown"
EVENT_DATE_FORMAT = "%Y-%m-%d"

# serializes read-seed / mint / write so two callers cannot mint the same ID
_ASSIGNMENT_LOCK = threading.Lock()


class ProcessingError(Exception):
    """Base exception for processing errors."""
    pass


class SheetNotFoundError(ProcessingError):
    """A required sheet is missing (case-insensitive lookup failed)."""
    pass


@dataclass(frozen=True)
class FormSubmission:
    """A form-submit event: the submitted values in form order and the name of
    the responses sheet the form writes to."""
    values: list[Any] = field(default_factory=list)
    sheet_name: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.values) and bool(self.sheet_name.strip())


@dataclass(frozen=True)
class _AttendanceSheets:
    central: Worksheet
    target: Worksheet


def _value(values: Sequence[Any], index: int, default: Any = "") -> Any:
    if index < 0 or index >= len(values):
        return default
    v = values[index]
    if v is None or (isinstance(v, str) and v == ""):
        return default
    return v


def build_attendance_row(
    values: Sequence[Any],
    columns: SourceColumns,
    source_label: str,
    now: datetime,
) -> AttendanceRow:
    """Map one form response onto the 14 column attendance layout.

    ``now`` is the processing time in the spreadsheet's timezone; it provides
    both the Event Date and the Timestamp. The Person ID is left blank for
    ``assign_event_attendance_ids`` to fill.
    """
    first_name = _value(values, columns.first_name)
    last_name = _value(values, columns.last_name)
    full_name = f"{cell_text(first_name).strip()} {cell_text(last_name).strip()}"
    return AttendanceRow(
        person_id="",
        full_name=full_name,
        event_name=_value(values, columns.event_name),
        event_id=_value(values, columns.event_id),
        first_name=first_name,
        last_name=last_name,
        email=_value(values, columns.email),
        phone=_value(values, columns.phone),
        source_label=source_label,
        role=_value(values, columns.role, DEFAULT_ROLE),
        event_date=now.strftime(EVENT_DATE_FORMAT),
        # sheets store wall-clock time without an offset
        timestamp=now.replace(tzinfo=None),
    )


def _now(settings: SyncSettings) -> datetime:
    return datetime.now(ZoneInfo(settings.timezone))


def _require_ids(settings: SyncSettings, alerter: Alerter) -> None:
    try:
        require_target_id(settings)
        require_directory_id(settings)
    except ConfigError as e:
        logger.error("config: %s", e)
        alerter.alert("Configuration Error", str(e))
        raise


def _open_attendance_sheets(
    settings: SyncSettings, store: SpreadsheetStore, alerter: Alerter
) -> _AttendanceSheets:
    """Resolve the central staging sheet and the target attendance sheet."""
    sheet_name = settings.attendance_sheet_name
    target_id = require_target_id(settings)

    try:
        central_ss = store.open(settings.central_spreadsheet_id)
    except SpreadsheetAccessError as e:
        logger.error("Error opening central spreadsheet %s: %s", settings.central_spreadsheet_id, e)
        alerter.alert("Central Sheet Access Error", f"Failed to open central spreadsheet: {e}")
        raise
    central = find_sheet(central_ss, sheet_name)
    if central is None:
        message = f"'{sheet_name}' sheet not found in the central spreadsheet."
        logger.error(message)
        alerter.alert("Error", message)
        raise SheetNotFoundError(message)

    try:
        target_ss = store.open(target_id)
        logger.info("Successfully opened target attendance spreadsheet with ID: %s", target_id)
    except SpreadsheetAccessError as e:
        logger.error("Error opening target attendance spreadsheet by ID %s: %s", target_id, e)
        alerter.alert(
            "Target Sheet Access Error",
            f"Failed to open target attendance spreadsheet. Check ID and permissions: {e}",
        )
        raise
    target = find_sheet(target_ss, sheet_name)
    if target is None:
        message = f"'{sheet_name}' sheet not found (case-insensitively) in the target attendance spreadsheet."
        logger.error(message)
        alerter.alert("Error", message)
        raise SheetNotFoundError(message)

    return _AttendanceSheets(central=central, target=target)


def _load_reference_data(
    settings: SyncSettings, store: SpreadsheetStore
) -> list[ReferenceData]:
    directory_id = require_directory_id(settings)
    directory = store.open(directory_id)
    logger.info("Successfully opened directory spreadsheet with ID: %s", directory_id)

    references: list[ReferenceData] = []
    for table in settings.reference_tables:
        sheet = find_sheet(directory, table.name)
        if sheet is None:
            if table.required:
                raise SheetNotFoundError(
                    f"'{table.name}' sheet not found in the directory spreadsheet. Cannot assign IDs."
                )
            logger.warning(
                "Sheet %r not found (case-insensitively) in the directory spreadsheet. Proceeding without it.",
                table.name,
            )
            continue
        rows = sheet.get_values()
        logger.debug("Read %d rows from %r.", len(rows), sheet.title)
        references.append(ReferenceData(table.name, rows, table.id_column, table.name_column))
    return references


def assign_event_attendance_ids(
    sheet: Worksheet,
    start_row: int,
    end_row: int,
    settings: SyncSettings,
    store: SpreadsheetStore,
) -> AssignmentResult | None:
    """Assign person IDs to rows ``start_row..end_row`` (1-indexed, inclusive).

    Reads every reference table from the directory spreadsheet, seeds the
    highest ID from them and from ``sheet`` itself, runs the assignment engine
    and writes the whole ID column of the range back in one call.

    Returns:
        AssignmentResult, or None when the range holds no rows

    Raises:
        ConfigError: directory spreadsheet id not configured
        SpreadsheetAccessError: directory spreadsheet cannot be opened
        SheetNotFoundError: a required reference table is missing
        SheetWriteError: writing the IDs back failed
    """
    logger.info(
        "Event Attendance ID assignment started for rows %d to %d on sheet %r.",
        start_row, end_row, sheet.title,
    )
    if end_row < start_row or start_row < 1:
        logger.warning(
            "Invalid row range specified: start_row=%d, end_row=%d. Skipping ID assignment.",
            start_row, end_row,
        )
        return None

    with _ASSIGNMENT_LOCK:
        references = _load_reference_data(settings, store)
        working_rows = sheet.get_values()
        id_index, name_index = ID_COLUMN - 1, NAME_COLUMN - 1

        highest = find_highest_id(
            [*references, ReferenceData(sheet.title, working_rows, id_index, name_index)]
        )
        logger.info("Highest ID across all sheets before processing: %d", highest)
        lookups = [build_named_lookup(ref) for ref in references]

        range_end = min(end_row, len(working_rows))
        if range_end < start_row:
            logger.info(
                "No rows to process in the specified range (%d-%d) within actual data range (up to %d).",
                start_row, end_row, len(working_rows),
            )
            return None

        batch = [
            (
                row[id_index] if len(row) > id_index else "",
                row[name_index] if len(row) > name_index else "",
            )
            for row in working_rows[start_row - 1 : range_end]
        ]
        result = assign_ids(batch, lookups, highest, first_row=start_row)
        sheet.update_column(start_row, ID_COLUMN, result.values)

    logger.info(
        "Updated IDs for %d rows from row %d (%d changed, %d minted).",
        len(result.values), start_row, result.changed_count, result.minted,
    )
    return result


def process_form_submission(
    submission: FormSubmission,
    settings: SyncSettings,
    store: SpreadsheetStore,
    alerter: Alerter | None = None,
    error_log: ErrorLogBuffer | None = None,
    now: datetime | None = None,
) -> SubmissionResult:
    """Handle one form submission end to end.

    Step 1 (append to staging) and everything before it are fatal on failure.
    Step 2 (ID assignment) and step 3 (copy to target) are reported and the
    remaining step still runs.
    """
    alerter = alerter or LogAlerter()
    own_log = error_log is None
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    logger.info("Form submission received from sheet %r.", submission.sheet_name)

    if not submission.complete:
        message = "Form submission event data is incomplete. Processing skipped."
        logger.error(message)
        alerter.alert("Error", message)
        raise ProcessingError(message)

    _require_ids(settings, alerter)
    sheets = _open_attendance_sheets(settings, store, alerter)
    central = sheets.central

    row = build_attendance_row(
        submission.values,
        settings.submission_columns,
        submission.sheet_name,
        now or _now(settings),
    )
    try:
        central.append_rows([row.to_cells()])
        central_row = central.last_row()
        logger.info("Step 1 complete: submission added to central sheet at row %d.", central_row)
    except SheetsError as e:
        logger.error("Error appending submission to central sheet: %s", e)
        alerter.alert("Error", f"Error in initial form data processing to central sheet: {e}")
        error_log.append(ErrorRecord.create(
            settings.central_spreadsheet_id, central.title, -1, "APPEND_ERROR", str(e)
        ))
        if own_log:
            error_log.flush()
        raise ProcessingError(f"append to central sheet failed: {e}") from e

    minted = 0
    assignment_error: str | None = None
    try:
        result = assign_event_attendance_ids(central, central_row, central_row, settings, store)
        minted = result.minted if result else 0
    except Exception as e:
        logger.error("Error assigning Event Attendance ID on central sheet: %s", e, exc_info=True)
        alerter.alert("Error", f"Error assigning Event Attendance ID on central sheet: {e}")
        error_log.append(ErrorRecord.create(
            settings.central_spreadsheet_id, central.title, central_row, "ASSIGNMENT_ERROR", str(e)
        ))
        assignment_error = str(e)

    copied = False
    copy_error: str | None = None
    person_id = ""
    try:
        processed = central.get_rows(central_row, 1)
        if not processed:
            raise SheetsError(f"row {central_row} not readable on central sheet")
        person_id = cell_text(processed[0][ID_COLUMN - 1]).strip() if processed[0] else ""
        sheets.target.append_rows(processed)
        copied = True
        logger.info("Step 3 complete: processed row copied to target sheet.")
    except Exception as e:
        logger.error("Error copying processed row to target sheet: %s", e, exc_info=True)
        alerter.alert("Error", f"Error copying data to target attendance tracker: {e}")
        error_log.append(ErrorRecord.create(
            settings.target_attendance_spreadsheet_id or "", sheets.target.title, -1, "COPY_ERROR", str(e)
        ))
        copy_error = str(e)

    if own_log:
        error_log.flush()
    return SubmissionResult(
        staging_row=central_row,
        person_id=person_id,
        minted_ids=minted,
        copied=copied,
        assignment_error=assignment_error,
        copy_error=copy_error,
    )


def _sync_source(
    source: SourceTableConfig,
    central: Worksheet,
    store: SpreadsheetStore,
    state_store: StateStore,
    alerter: Alerter,
    error_log: ErrorLogBuffer,
    now: datetime,
    appended_rows: list[int],
) -> SourceStat:
    """Append rows of one source past its high-water mark to the central sheet."""
    def failed(message: str, error_type: str, sheet: str) -> SourceStat:
        error_log.append(ErrorRecord.create(source.spreadsheet_id, sheet, -1, error_type, message))
        return SourceStat(source.spreadsheet_id, source.sheet_name, SourceStatus.FAILED, error=message)

    try:
        spreadsheet = store.open(source.spreadsheet_id)
    except SpreadsheetAccessError as e:
        logger.error("Error opening source spreadsheet ID %s: %s. Skipping this source.", source.spreadsheet_id, e)
        alerter.alert(
            "Sync Error",
            f"Failed to open source spreadsheet {source.spreadsheet_id}. Check ID and permissions.",
        )
        return failed(str(e), "SOURCE_ACCESS_ERROR", source.sheet_name)

    sheet = find_sheet(spreadsheet, source.sheet_name)
    if sheet is None:
        logger.warning(
            "Source sheet %r not found (case-insensitively) in spreadsheet ID %s. Skipping.",
            source.sheet_name, source.spreadsheet_id,
        )
        return SourceStat(
            source.spreadsheet_id, source.sheet_name, SourceStatus.SKIPPED,
            error="sheet not found",
        )

    try:
        values = sheet.get_values()
    except Exception as e:
        logger.error("Error reading %r (ID: %s): %s", sheet.title, source.spreadsheet_id, e)
        return failed(str(e), "SOURCE_READ_ERROR", sheet.title)

    key_columns = [c + 1 for c in astuple(source.columns)]
    last_row = true_last_row(values, key_columns, header_rows=1)
    key = sync_state_key(source.spreadsheet_id, sheet.title)
    try:
        raw_mark = state_store.get(key)
        last_synced = int(raw_mark) if raw_mark else 1
    except ValueError:
        logger.warning("High-water mark %r for %s is not a number; starting after the header.", raw_mark, key)
        last_synced = 1
    except StateStoreError as e:
        logger.error("Cannot read high-water mark for %s: %s", key, e)
        return failed(str(e), "STATE_READ_ERROR", sheet.title)

    if last_row <= last_synced:
        logger.info(
            "No new entries in %s (ID: %s). Last row: %d, Last synced: %d.",
            sheet.title, source.spreadsheet_id, last_row, last_synced,
        )
        return SourceStat(
            source.spreadsheet_id, sheet.title, SourceStatus.UP_TO_DATE, high_water_mark=last_synced
        )

    logger.info(
        "Syncing new entries from %s (ID: %s) from row %d to %d.",
        sheet.title, source.spreadsheet_id, last_synced + 1, last_row,
    )
    appended = 0
    failed_rows = 0
    for offset, raw in enumerate(values[last_synced:last_row]):
        row = build_attendance_row(raw, source.columns, sheet.title, now)
        try:
            central.append_rows([row.to_cells()])
            appended_rows.append(central.last_row())
            appended += 1
        except SheetsError as e:
            failed_rows += 1
            logger.error("Error appending row from %s to central sheet: %s", sheet.title, e)
            error_log.append(ErrorRecord.create(
                source.spreadsheet_id, sheet.title, last_synced + 1 + offset, "APPEND_ERROR", str(e)
            ))

    try:
        state_store.set(key, str(last_row))
    except StateStoreError as e:
        logger.error("Cannot persist high-water mark for %s: %s", key, e)
        alerter.alert("Sync Error", f"Failed to save sync position for {sheet.title}: {e}")
        error_log.append(ErrorRecord.create(source.spreadsheet_id, sheet.title, -1, "STATE_WRITE_ERROR", str(e)))
        return SourceStat(
            source.spreadsheet_id, sheet.title, SourceStatus.FAILED,
            appended_rows=appended, failed_rows=failed_rows, error=str(e),
        )

    logger.info("Successfully synced %d new entries from %s to central sheet.", appended, sheet.title)
    return SourceStat(
        source.spreadsheet_id, sheet.title, SourceStatus.SYNCED,
        appended_rows=appended, failed_rows=failed_rows, high_water_mark=last_row,
    )


def sync_all_sources(
    settings: SyncSettings,
    store: SpreadsheetStore,
    state_store: StateStore,
    alerter: Alerter | None = None,
    error_log: ErrorLogBuffer | None = None,
    now: datetime | None = None,
) -> SyncResult:
    """Periodic sync of every configured form-responses sheet.

    Raises:
        ConfigError / SpreadsheetAccessError / SheetNotFoundError when the
        central or target sheet cannot be resolved; per-source failures are
        reported in the result instead.
    """
    start_time = datetime.now(UTC)
    alerter = alerter or LogAlerter()
    own_log = error_log is None
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    logger.info("Sync process started for %d sources.", len(settings.sources))

    _require_ids(settings, alerter)
    sheets = _open_attendance_sheets(settings, store, alerter)
    central = sheets.central
    now = now or _now(settings)

    stats: list[SourceStat] = []
    appended_rows: list[int] = []
    with ProgressTracker(len(settings.sources)) as progress:
        for source in settings.sources:
            progress.start_source(source.sheet_name)
            stat = _sync_source(
                source, central, store, state_store, alerter, error_log, now, appended_rows
            )
            stats.append(stat)
            progress.finish_source(appended=len(appended_rows))

    logger.info("Total new entries synced to central sheet: %d", len(appended_rows))

    assigned = 0
    minted = 0
    copied = 0
    assignment_error: str | None = None
    copy_error: str | None = None
    if appended_rows:
        min_row, max_row = min(appended_rows), max(appended_rows)
        try:
            result = assign_event_attendance_ids(central, min_row, max_row, settings, store)
            if result is not None:
                assigned, minted = result.changed_count, result.minted
        except Exception as e:
            logger.error("Error during batch ID assignment in central sheet: %s", e, exc_info=True)
            alerter.alert("Error", f"Error during batch ID assignment in central sheet: {e}")
            error_log.append(ErrorRecord.create(
                settings.central_spreadsheet_id, central.title, -1, "ASSIGNMENT_ERROR", str(e)
            ))
            assignment_error = str(e)

        logger.info("Copying processed data from central sheet (rows %d-%d) to target sheet.", min_row, max_row)
        try:
            processed = central.get_rows(min_row, len(appended_rows))
            sheets.target.append_rows(processed)
            copied = len(processed)
            logger.info("Successfully copied %d rows to target sheet.", copied)
        except Exception as e:
            logger.error("Error copying processed data from central to target sheet: %s", e, exc_info=True)
            alerter.alert("Error", f"Error copying processed data to target attendance tracker: {e}")
            error_log.append(ErrorRecord.create(
                settings.target_attendance_spreadsheet_id or "", sheets.target.title, -1, "COPY_ERROR", str(e)
            ))
            copy_error = str(e)
    else:
        logger.info("No new entries to assign IDs to or copy.")

    if own_log:
        error_log.flush()
    return SyncResult(
        start_time=start_time,
        end_time=datetime.now(UTC),
        source_stats=stats,
        appended_rows=len(appended_rows),
        assigned_rows=assigned,
        minted_ids=minted,
        copied_rows=copied,
        assignment_error=assignment_error,
        copy_error=copy_error,
    )
