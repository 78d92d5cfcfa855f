"""A1-style coordinate helpers shared by references and the parser."""

from __future__ import annotations

import re

# Largest addressable sheet ("XFD1048576"), 1-based.
MAX_COLUMN = 16384
MAX_ROW = 1048576

_A1_RE = re.compile(r"^([A-Z]+)([1-9]\d*)$")


def letters_to_column(letters: str) -> int:
    """Convert column letters to a 1-based column index ("A" -> 1, "AA" -> 27)."""
    if not letters or not letters.isalpha() or not letters.isascii():
        raise ValueError(f"Invalid column letters: {letters!r}")
    col = 0
    for ch in letters.upper():
        col = col * 26 + (ord(ch) - ord("A") + 1)
    return col


def column_to_letters(col: int) -> str:
    """Convert a 1-based column index to letters (1 -> "A", 27 -> "AA")."""
    if col < 1:
        raise ValueError(f"Invalid column index: {col}")
    letters = ""
    while col > 0:
        col, rem = divmod(col - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def a1_to_rowcol(a1: str) -> tuple[int, int]:
    """Parse "B3" into a 1-based ``(row, col)`` tuple.

    Raises ValueError on malformed text or coordinates past the sheet limits.
    """
    text = a1.strip()
    m = _A1_RE.match(text.upper()) if text.isascii() else None
    if not m:
        raise ValueError(f"Invalid cell coordinates: {a1!r}")
    col = letters_to_column(m.group(1))
    row = int(m.group(2))
    if col > MAX_COLUMN or row > MAX_ROW:
        raise ValueError(f"Cell coordinates out of range: {a1!r}")
    return row, col


def rowcol_to_a1(row: int, col: int) -> str:
    """Render a 1-based ``(row, col)`` pair as "B3"."""
    if row < 1:
        raise ValueError(f"Invalid row index: {row}")
    return f"{column_to_letters(col)}{row}"
