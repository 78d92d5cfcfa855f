"""Error values that propagate through formula evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tinyexcel._reference import CellReference


class ErrorKind(Enum):
    """Why a cell ended up errored."""

    # parse time
    EMPTY_CELL = "empty-cell"
    INVALID_NUMBER = "invalid-number"
    INVALID_EXPRESSION = "invalid-expression"
    # evaluation time
    DIVISION_BY_ZERO = "division-by-zero"
    OVERFLOW = "overflow"
    CYCLE = "cycle"
    REFERENCE = "reference"

    @property
    def is_parse_error(self) -> bool:
        return self in _PARSE_KINDS


_PARSE_KINDS = frozenset({
    ErrorKind.EMPTY_CELL,
    ErrorKind.INVALID_NUMBER,
    ErrorKind.INVALID_EXPRESSION,
})


@dataclass(frozen=True)
class CalcError:
    """An error value carried in place of a number.

    ``origin`` is the cell where the error first appeared, filled in for
    errors that reach other cells through references.
    """

    kind: ErrorKind
    message: str
    origin: CellReference | None = None

    def __str__(self) -> str:
        return self.message


EMPTY_CELL = CalcError(ErrorKind.EMPTY_CELL, "Empty cell")
INVALID_NUMBER = CalcError(ErrorKind.INVALID_NUMBER, "Invalid number")
INVALID_EXPRESSION = CalcError(ErrorKind.INVALID_EXPRESSION, "Invalid expression")
DIVISION_BY_ZERO = CalcError(ErrorKind.DIVISION_BY_ZERO, "Division by zero")
OVERFLOW = CalcError(ErrorKind.OVERFLOW, "Numeric overflow")


def cycle_error(path: tuple[CellReference, ...], loop: bool = True) -> CalcError:
    """Error for every cell on a dependency cycle.

    With *loop* each cell of *path* reads the next and the last reads the
    first, so the message spells the loop out. Otherwise *path* is a set of
    mutually dependent cells that no single loop covers, listed as found.
    """
    if loop:
        chain = " -> ".join(str(ref) for ref in (*path, path[0]))
        message = f"Circular reference: {chain}"
    else:
        message = "Circular reference among " + ", ".join(str(ref) for ref in path)
    return CalcError(ErrorKind.CYCLE, message, origin=path[0])


def reference_error(ref: CellReference, cause: CalcError) -> CalcError:
    """Error seen by cells that read an errored cell at *ref*."""
    if cause.kind is ErrorKind.REFERENCE:
        return cause
    return CalcError(
        ErrorKind.REFERENCE,
        f"Error in referenced cell {ref}: {cause.message}",
        origin=ref,
    )


def is_error(val: Any) -> bool:
    """Return True if *val* is a CalcError instance."""
    return isinstance(val, CalcError)


def first_error(*values: Any) -> CalcError | None:
    """Return the first CalcError found in *values*, or None."""
    for v in values:
        if isinstance(v, CalcError):
            return v
    return None
