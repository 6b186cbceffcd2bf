from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from attendance_sync.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from attendance_sync.logging.init import log_summary, setup_logging
from attendance_sync.models.attendance_row import ATTENDANCE_COLUMNS
from attendance_sync.models.config_models import SyncSettings
from attendance_sync.sheets import SheetsError, SpreadsheetStore, find_sheet, open_store
from attendance_sync.services.alerts import LogAlerter
from attendance_sync.services.orchestrator import (
    FormSubmission,
    ProcessingError,
    assign_event_attendance_ids,
    process_form_submission,
    sync_all_sources,
)
from attendance_sync.services.state_store import JsonFileStateStore, StateStoreError
from attendance_sync.services.summary import render_submission_line, render_summary_line

"""CLI entrypoint.

Subcommands map to the two triggers plus maintenance helpers:

- ``submit``  one form submission (form-submit trigger)
- ``sync``    ingest every configured source past its high-water mark (timer)
- ``assign``  re-run ID assignment over a staging row range
- ``inspect`` print header and first rows of every configured sheet
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env via python-dotenv; its values win over the YAML file."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="attendance-sync",
        description="Sync event attendance rows and assign person IDs",
    )
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    submit = sub.add_parser("submit", help="Process one form submission")
    submit.add_argument("--event", type=Path, help="JSON file with 'values' and 'sheet_name'")
    submit.add_argument("--sheet", help="Form responses sheet name (with positional values)")
    submit.add_argument("values", nargs="*", help="Submitted values in form order")

    sub.add_parser("sync", help="Sync all configured form response sheets")

    assign = sub.add_parser("assign", help="Assign IDs to a staging sheet row range")
    assign.add_argument("--start", type=int, required=True, help="First row (1-indexed)")
    assign.add_argument("--end", type=int, required=True, help="Last row (1-indexed)")

    sub.add_parser("inspect", help="Print headers and sample rows of configured sheets")
    return p.parse_args(argv)


def _read_submission(args: argparse.Namespace) -> FormSubmission:
    if args.event is not None:
        try:
            data = json.loads(args.event.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ProcessingError(f"cannot read event file {args.event}: {e}") from e
        if not isinstance(data, dict):
            raise ProcessingError(f"event file {args.event} must hold a JSON object")
        return FormSubmission(values=list(data.get("values") or []), sheet_name=str(data.get("sheet_name") or ""))
    return FormSubmission(values=list(args.values), sheet_name=args.sheet or "")


def _inspect(settings: SyncSettings, store: SpreadsheetStore) -> int:
    targets: list[tuple[str | None, str]] = [
        (settings.central_spreadsheet_id, settings.attendance_sheet_name),
        (settings.target_attendance_spreadsheet_id, settings.attendance_sheet_name),
    ]
    targets += [(settings.directory_spreadsheet_id, t.name) for t in settings.reference_tables]
    targets += [(s.spreadsheet_id, s.sheet_name) for s in settings.sources]

    for spreadsheet_id, sheet_name in targets:
        if not spreadsheet_id:
            print(f"SHEET: {sheet_name} (spreadsheet id not configured)")
            continue
        try:
            sheet = find_sheet(store.open(spreadsheet_id), sheet_name)
            if sheet is None:
                print(f"SHEET: {spreadsheet_id}/{sheet_name} not found")
                continue
            values = sheet.get_values()
        except SheetsError as e:
            print(f"SHEET: {spreadsheet_id}/{sheet_name} error={e}")
            continue
        header = values[0] if values else []
        print(f"SHEET: {spreadsheet_id}/{sheet.title} rows={max(len(values) - 1, 0)} cols={header}")
        for row in values[1 : 1 + INSPECT_SAMPLE_ROWS]:
            print("    ", [v.isoformat() if hasattr(v, "isoformat") else v for v in row])
    print(f"attendance layout: {list(ATTENDANCE_COLUMNS)}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # None only: an explicit [] must not pick up pytest's own arguments
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        settings = load_config(args.config)
        store = open_store(settings)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except SheetsError as e:
        logger.error(f"backend: {e}")
        return EXIT_FATAL

    alerter = LogAlerter()
    try:
        if args.command == "submit":
            result = process_form_submission(_read_submission(args), settings, store, alerter)
            log_summary(render_submission_line(result)[len("SUMMARY "):])
            return EXIT_SUCCESS_ALL if result.ok else EXIT_PARTIAL_FAILURE

        if args.command == "sync":
            state_store = JsonFileStateStore(Path(settings.state_file))
            sync_result = sync_all_sources(settings, store, state_store, alerter)
            log_summary(render_summary_line(sync_result)[len("SUMMARY "):])
            return EXIT_SUCCESS_ALL if sync_result.ok else EXIT_PARTIAL_FAILURE

        if args.command == "assign":
            sheet = find_sheet(store.open(settings.central_spreadsheet_id), settings.attendance_sheet_name)
            if sheet is None:
                logger.error(f"'{settings.attendance_sheet_name}' sheet not found in the central spreadsheet")
                return EXIT_FATAL
            assigned = assign_event_attendance_ids(sheet, args.start, args.end, settings, store)
            if assigned is not None:
                logger.info(f"assigned rows={len(assigned.values)} changed={assigned.changed_count} minted={assigned.minted}")
            return EXIT_SUCCESS_ALL

        return _inspect(settings, store)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except (ProcessingError, SheetsError, StateStoreError) as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
