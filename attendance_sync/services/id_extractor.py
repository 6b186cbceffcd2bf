from __future__ import annotations

import re
from typing import Any

"""Identifier parsing helpers.

Person identifiers show up in many shapes across the reference sheets:
plain numbers (``42``), zero padded strings (``"00042"``) or decorated codes
(``"DIR-00042"``, ``"DIR - 42"``, ``"DIR00042"``). Everything here recovers the
ordinal part so identifiers from different sheets can be compared.
"""

__all__ = [
    "ID_WIDTH",
    "cell_text",
    "extract_number_from_id",
    "format_id",
    "is_plain_number",
]

ID_WIDTH = 5

_DASH_SUFFIX = re.compile(r"-\s*([0-9]+)\Z")
_TRAILING_DIGITS = re.compile(r"([0-9]+)\Z")
_ALL_DIGITS = re.compile(r"[0-9]+")


def cell_text(value: Any) -> str:
    """Return the text of a cell value.

    ``None`` becomes ``""`` and integral floats lose their fractional part, so a
    numeric cell read back as ``7.0`` reads the same as ``"7"``.
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if value != value:  # NaN
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def is_plain_number(text: str) -> bool:
    """True when ``text`` consists of ASCII digits only."""
    return _ALL_DIGITS.fullmatch(text) is not None


def extract_number_from_id(value: Any) -> int | None:
    """Extract the numeric suffix from an identifier.

    Args:
        value: Identifier as string or number; may be ``None`` or blank.

    Returns:
        The trailing ordinal as ``int``, or ``None`` when nothing parses.
    """
    text = cell_text(value)
    if text.strip() == "":
        return None

    match = _DASH_SUFFIX.search(text)
    if match:
        return int(match.group(1))

    match = _TRAILING_DIGITS.search(text)
    if match:
        return int(match.group(1))

    if is_plain_number(text):
        return int(text)

    return None


def format_id(number: int) -> str:
    """Zero-pad an identifier ordinal to ``ID_WIDTH`` digits."""
    return str(number).zfill(ID_WIDTH)
