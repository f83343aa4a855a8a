"""Coordinate helpers: ``"AA12"`` <-> zero-based ``(row, col)``.

Columns use the bijective base-26 alphabet (A=0 ... Z=25, AA=26, ...), rows
are written 1-based.  Input is case-insensitive, output is always uppercase.
"""

from __future__ import annotations

import re
import string

_COORD_RE = re.compile(r"^([A-Za-z]+)([0-9]+)$")


class InvalidCoordinate(ValueError):
    """Raised when a string is not a valid ``A1``-style coordinate."""

    def __init__(self, coordinate: object, reason: str) -> None:
        super().__init__(f"Invalid coordinate {coordinate!r}: {reason}")
        self.coordinate = coordinate
        self.reason = reason


def column_letter(index: int) -> str:
    """0 -> ``"A"``, 25 -> ``"Z"``, 26 -> ``"AA"``."""
    if index < 0:
        raise ValueError(f"Column index must be >= 0, got {index}")
    letters = ""
    while index >= 0:
        letters = string.ascii_uppercase[index % 26] + letters
        index = index // 26 - 1
    return letters


def column_index(letters: str) -> int:
    """``"A"`` -> 0, ``"AA"`` -> 26.  Case-insensitive."""
    if not letters or not letters.isalpha() or not letters.isascii():
        raise InvalidCoordinate(letters, "column part must be letters A-Z")
    result = 0
    for ch in letters.upper():
        result = result * 26 + (ord(ch) - ord("A") + 1)
    return result - 1


def rowcol_to_a1(row: int, col: int) -> str:
    """Encode zero-based ``(row, col)`` as a canonical coordinate."""
    if row < 0:
        raise ValueError(f"Row index must be >= 0, got {row}")
    return f"{column_letter(col)}{row + 1}"


def a1_to_rowcol(coordinate: str) -> tuple[int, int]:
    """Decode a coordinate like ``"b3"`` into zero-based ``(2, 1)``.

    Raises :class:`InvalidCoordinate` for anything that is not a letter
    prefix followed by a positive row number.
    """
    if not isinstance(coordinate, str) or len(coordinate.strip()) < 2:
        raise InvalidCoordinate(coordinate, "too short")
    text = coordinate.strip()
    m = _COORD_RE.match(text)
    if not m:
        split = len(text) - len(text.lstrip(string.ascii_letters))
        letters, rest = text[:split], text[split:]
        if not letters:
            raise InvalidCoordinate(coordinate, "missing column letters")
        if not rest:
            raise InvalidCoordinate(coordinate, "missing row number")
        raise InvalidCoordinate(coordinate, "row part must be digits")
    letters, digits = m.groups()
    row = int(digits)
    if row < 1:
        raise InvalidCoordinate(coordinate, "row number must be >= 1")
    return row - 1, column_index(letters)


def normalize(coordinate: str) -> str:
    """Canonical uppercase spelling of *coordinate* (``"a01"`` -> ``"A1"``)."""
    row, col = a1_to_rowcol(coordinate)
    return rowcol_to_a1(row, col)


def is_valid_coordinate(coordinate: str) -> bool:
    try:
        a1_to_rowcol(coordinate)
    except InvalidCoordinate:
        return False
    return True
