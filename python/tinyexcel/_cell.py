"""Cell: parsed cell text plus its evaluation state."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from tinyexcel._exceptions import DirtyCellError
from tinyexcel.calc._errors import CalcError
from tinyexcel.calc._parser import parse_cell_text

if TYPE_CHECKING:
    from tinyexcel._reference import CellReference
    from tinyexcel.calc._expression import Expression
    from tinyexcel.calc._parser import FormulaParser, ParseResult
    from tinyexcel.calc._protocol import Resolver


class CellStatus(Enum):
    DIRTY = "dirty"
    EVALUATING = "evaluating"
    EVALUATED = "evaluated"
    ERRORED = "errored"

    @property
    def is_done(self) -> bool:
        return self is CellStatus.EVALUATED or self is CellStatus.ERRORED


class Cell:
    """A single cell: original text, parsed expression, cached result.

    The value is only meaningful once the owning table has evaluated the
    cell; reading it earlier raises DirtyCellError. Errored cells hold 0.
    """

    __slots__ = ("_text", "_parsed", "_value", "_status", "_error", "_parser")

    def __init__(self, text: str, parser: FormulaParser | None = None) -> None:
        self._parser = parser
        self._value: float = 0.0
        self._error: CalcError | None = None
        self.set_text(text)

    @classmethod
    def from_text(cls, text: str, parser: FormulaParser | None = None) -> Cell:
        return cls(text, parser)

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def expression(self) -> Expression:
        return self._parsed.expression

    @property
    def dependencies(self) -> frozenset[CellReference]:
        return self._parsed.dependencies

    @property
    def status(self) -> CellStatus:
        return self._status

    @property
    def error(self) -> CalcError | None:
        """The parse or evaluation error of an errored cell."""
        if self._status is CellStatus.ERRORED:
            return self._error
        return None

    @property
    def error_message(self) -> str | None:
        err = self.error
        return err.message if err is not None else None

    @property
    def parse_error(self) -> CalcError | None:
        """Known before evaluation: set when the text failed to parse."""
        return None if self._parsed.ok else self._parsed.error

    @property
    def is_evaluated(self) -> bool:
        return self._status.is_done

    @property
    def is_error(self) -> bool:
        return self._status is CellStatus.ERRORED

    @property
    def value(self) -> float:
        """Cached value; 0 for errored cells. Raises DirtyCellError if not evaluated."""
        if not self._status.is_done:
            raise DirtyCellError(
                f"Cell {self._text!r} is {self._status.value}; evaluate it before reading its value"
            )
        return self._value

    def get_value(self) -> float:
        return self.value

    # ------------------------------------------------------------------
    # Mutation (driven by the owning table)
    # ------------------------------------------------------------------

    def set_text(self, text: str) -> None:
        """Re-parse *text*, replacing expression and dependencies; marks the cell dirty."""
        self._text = text
        parsed: ParseResult
        if self._parser is None:
            parsed = parse_cell_text(text)
        else:
            parsed = self._parser.parse(text)
        self._parsed = parsed
        self.mark_dirty()

    def mark_dirty(self) -> None:
        self._status = CellStatus.DIRTY
        self._value = 0.0
        self._error = None

    def mark_evaluating(self) -> None:
        self._status = CellStatus.EVALUATING

    def evaluate(self, resolver: Resolver) -> None:
        """Compute the value, assuming every dependency is already done."""
        parse_error = self.parse_error
        if parse_error is not None:
            self.set_error(parse_error)
            return
        result = self._parsed.expression.evaluate(resolver)
        if isinstance(result, CalcError):
            self.set_error(result)
            return
        self._value = result
        self._error = None
        self._status = CellStatus.EVALUATED

    def set_error(self, error: CalcError) -> None:
        self._value = 0.0
        self._error = error
        self._status = CellStatus.ERRORED

    def __repr__(self) -> str:
        if self._status is CellStatus.EVALUATED:
            return f"<Cell {self._text!r} = {self._value!r}>"
        if self._status is CellStatus.ERRORED:
            return f"<Cell {self._text!r} error={self._error.message!r}>"
        parse_error = self.parse_error
        if parse_error is not None:
            return f"<Cell {self._text!r} [{self._status.value}] parse_error={parse_error.message!r}>"
        return f"<Cell {self._text!r} [{self._status.value}]>"
