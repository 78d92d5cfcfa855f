"""CellReference: immutable, ordered cell coordinate."""

from __future__ import annotations

from dataclasses import dataclass

from tinyexcel._exceptions import InvalidCoordinatesError
from tinyexcel._utils import MAX_COLUMN, MAX_ROW, a1_to_rowcol, rowcol_to_a1


@dataclass(frozen=True, order=True)
class CellReference:
    """A cell position with 0-based ``column`` and ``row``.

    Ordering follows the ``(column, row)`` tuple, so sorting a set of
    references gives a deterministic traversal order. Canonical text form
    is "A1"-style: ``str(CellReference(0, 0)) == "A1"``.
    """

    column: int
    row: int

    def __post_init__(self) -> None:
        if not (0 <= self.column < MAX_COLUMN and 0 <= self.row < MAX_ROW):
            raise InvalidCoordinatesError(f"({self.column}, {self.row})")

    @classmethod
    def parse(cls, text: str) -> CellReference:
        """Parse coordinate text such as "B3" (case-insensitive).

        Raises InvalidCoordinatesError for anything that is not a valid cell.
        """
        try:
            row, col = a1_to_rowcol(text)
        except ValueError:
            raise InvalidCoordinatesError(text) from None
        return cls(col - 1, row - 1)

    @classmethod
    def of(cls, column: int, row: int) -> CellReference:
        """Build a reference from 0-based indices, validating bounds."""
        return cls(column, row)

    def render(self) -> str:
        return rowcol_to_a1(self.row + 1, self.column + 1)

    def __str__(self) -> str:
        return self.render()


def to_reference(ref: CellReference | str) -> CellReference:
    """Accept either a CellReference or its coordinate text."""
    if isinstance(ref, CellReference):
        return ref
    if isinstance(ref, str):
        return CellReference.parse(ref)
    raise TypeError(f"Expected CellReference or str, got {type(ref).__name__}")
