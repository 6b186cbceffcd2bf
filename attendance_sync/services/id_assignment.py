from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .id_extractor import cell_text, extract_number_from_id, format_id, is_plain_number
from .lookup_maps import NamedLookup, normalize_name

"""Identifier assignment engine.

Resolves each attendance row's full name to a person identifier. Resolution
order per row (first hit wins):

1. blank name: the existing cell is passed through untouched
2. identifier decided for the same name earlier in this batch
3. reference lookups in priority order (numeric part, zero padded)
4. existing cell value when it is a plain digit string (kept verbatim)
5. a newly minted identifier ``highest + 1``

Every decided identifier is cached under the normalized name so repeated names
within one batch share an identifier. The engine is pure: callers read the
tables and write the returned values back.
"""

__all__ = [
    "AssignmentResult",
    "IdAssignment",
    "IdSource",
    "assign_ids",
]

logger = logging.getLogger(__name__)


class IdSource(Enum):
    """Where an assigned identifier came from."""
    BLANK_NAME = "blank_name"
    RUN_CACHE = "run_cache"
    REFERENCE = "reference"
    EXISTING_CELL = "existing_cell"
    MINTED = "minted"


@dataclass(frozen=True)
class IdAssignment:
    """Outcome for a single row."""
    row_offset: int  # 0-based position in the batch
    name: str  # normalized name ("" when blank)
    original: str  # existing cell text, trimmed
    assigned: str  # value to write back
    source: IdSource
    source_table: str | None = None  # reference table name when source is REFERENCE

    @property
    def changed(self) -> bool:
        return self.assigned != self.original


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome for a whole batch."""
    assignments: list[IdAssignment] = field(default_factory=list)
    highest: int = 0  # HighestSeen after the batch
    minted: int = 0

    @property
    def values(self) -> list[str]:
        """Write-back values in batch order."""
        return [a.assigned for a in self.assignments]

    @property
    def changed_count(self) -> int:
        return sum(1 for a in self.assignments if a.changed)


def _lookup_reference(
    name: str, lookups: Sequence[NamedLookup], row_label: int
) -> tuple[str, str] | None:
    for lookup in lookups:
        raw = lookup.get(name)
        if raw is None:
            continue
        number = extract_number_from_id(raw)
        if number is None:
            logger.info(
                "Row %d: for name %r in map %r, ID %r was unparsable.",
                row_label, name, lookup.name, raw,
            )
            continue
        determined = format_id(number)
        logger.debug(
            "Row %d: for name %r in map %r, original ID %r, processed to %r.",
            row_label, name, lookup.name, raw, determined,
        )
        return determined, lookup.name
    return None


def assign_ids(
    rows: Sequence[tuple[Any, Any]],
    lookups: Sequence[NamedLookup],
    highest_seen: int,
    *,
    first_row: int = 1,
) -> AssignmentResult:
    """Assign identifiers to a batch of rows.

    Args:
        rows: ``(existing_id_cell, name_cell)`` per row, in sheet order
        lookups: Reference maps in priority order
        highest_seen: Highest identifier ordinal known before the batch
        first_row: Sheet row number of ``rows[0]``, used in log messages only

    Returns:
        AssignmentResult with one IdAssignment per input row and the updated
        highest ordinal.
    """
    run_cache: dict[str, str] = {}
    highest = highest_seen
    minted = 0
    assignments: list[IdAssignment] = []

    for offset, (existing_cell, name_cell) in enumerate(rows):
        row_label = first_row + offset
        existing = cell_text(existing_cell).strip()
        name = normalize_name(name_cell)

        if not name:
            logger.debug("Row %d: name is blank, keeping cell value %r.", row_label, existing)
            assignments.append(
                IdAssignment(offset, "", existing, existing, IdSource.BLANK_NAME)
            )
            continue

        source_table: str | None = None
        if name in run_cache:
            assigned = run_cache[name]
            source = IdSource.RUN_CACHE
        else:
            found = _lookup_reference(name, lookups, row_label)
            if found is not None:
                assigned, source_table = found
                source = IdSource.REFERENCE
            elif existing and is_plain_number(existing):
                assigned = existing
                source = IdSource.EXISTING_CELL
            else:
                if existing:
                    logger.warning(
                        "Row %d: existing cell ID %r for %r is not a plain number; generating a new ID.",
                        row_label, existing, name,
                    )
                highest += 1
                minted += 1
                assigned = format_id(highest)
                source = IdSource.MINTED
            run_cache[name] = assigned

        record = IdAssignment(offset, name, existing, assigned, source, source_table)
        if record.changed:
            logger.info(
                "Row %d: %r -> %r (source: %s%s, old cell %r).",
                row_label, name, assigned, source.value,
                f" {source_table!r}" if source_table else "", existing,
            )
        else:
            logger.debug("Row %d: %r already holds %r.", row_label, name, assigned)
        assignments.append(record)

    return AssignmentResult(assignments=assignments, highest=highest, minted=minted)
