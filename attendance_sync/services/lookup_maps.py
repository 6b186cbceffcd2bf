from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .id_extractor import cell_text, extract_number_from_id

"""Name -> identifier lookup maps and highest-identifier scanning.

Reference tables are plain ``list[list[Any]]`` grids as returned by a
worksheet's ``get_values()``. Row 0 is always the header and is skipped.
"""

__all__ = [
    "NamedLookup",
    "ReferenceData",
    "build_lookup_map",
    "build_named_lookup",
    "find_highest_id",
    "normalize_name",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceData:
    """Rows of one table together with the column layout used for matching."""
    name: str
    rows: Sequence[Sequence[Any]]
    id_column: int = 0  # 0-indexed
    name_column: int = 1  # 0-indexed


@dataclass(frozen=True)
class NamedLookup:
    """Lookup map labelled with the table it was built from."""
    name: str
    mapping: dict[str, str] = field(default_factory=dict)

    def get(self, normalized_name: str) -> str | None:
        return self.mapping.get(normalized_name)

    def __contains__(self, normalized_name: object) -> bool:
        return normalized_name in self.mapping

    def __len__(self) -> int:
        return len(self.mapping)


def normalize_name(value: Any) -> str:
    """Join key for identifier matching: trimmed and upper-cased."""
    return cell_text(value).strip().upper()


def _cell(row: Sequence[Any], index: int) -> Any:
    if index < 0 or index >= len(row):
        return None
    return row[index]


def build_lookup_map(
    rows: Sequence[Sequence[Any]],
    id_column: int,
    name_column: int,
) -> dict[str, str]:
    """Build ``normalized name -> raw identifier`` from a reference table.

    Parameters
    ----------
    rows: Table rows, header first
    id_column: 0-indexed identifier column
    name_column: 0-indexed full name column

    Returns
    -------
    dict[str, str]: later rows overwrite earlier rows with the same name
    """
    mapping: dict[str, str] = {}
    for row in rows[1:]:
        raw_id = cell_text(_cell(row, id_column)).strip()
        name = normalize_name(_cell(row, name_column))
        if not raw_id or not name:
            continue
        mapping[name] = raw_id
    return mapping


def build_named_lookup(reference: ReferenceData) -> NamedLookup:
    lookup = NamedLookup(
        reference.name,
        build_lookup_map(reference.rows, reference.id_column, reference.name_column),
    )
    logger.info("Built %s map with %d entries.", reference.name, len(lookup))
    return lookup


def find_highest_id(
    tables: Iterable[ReferenceData | tuple[Sequence[Sequence[Any]], int]],
) -> int:
    """Return the highest numeric identifier across all tables.

    Accepts either ``ReferenceData`` or ``(rows, id_column)`` pairs. Cells that
    do not parse contribute nothing; with no parseable cell anywhere the
    result is 0.
    """
    highest = 0
    for table in tables:
        if isinstance(table, ReferenceData):
            label, rows, id_column = table.name, table.rows, table.id_column
        else:
            rows, id_column = table
            label = "<table>"
        highest_in_table = 0
        for row in rows[1:]:
            number = extract_number_from_id(_cell(row, id_column))
            if number is not None:
                highest_in_table = max(highest_in_table, number)
        highest = max(highest, highest_in_table)
        logger.debug("Highest num in %r: %d. Overall highest: %d", label, highest_in_table, highest)
    return highest
