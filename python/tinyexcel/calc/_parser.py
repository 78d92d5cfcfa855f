"""Cell text parser: bare numbers and ``=`` formulas into expression trees.

Formulas are parsed by splitting on every lowest-precedence operator at
parenthesis depth 0 and folding the pieces from the left, which yields
conventional precedence (``*``/``/`` over ``+``/``-``) and left-to-right
associativity. Numbers must be finite. Parsing never raises on
bad input; it returns a :class:`ParseFailure` carrying the error value.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Union

from tinyexcel._exceptions import InvalidCoordinatesError
from tinyexcel._reference import CellReference
from tinyexcel.calc._errors import (
    EMPTY_CELL,
    INVALID_EXPRESSION,
    INVALID_NUMBER,
    CalcError,
)
from tinyexcel.calc._expression import BinaryOp, Expression, Literal, Reference, UnaryOp

logger = logging.getLogger(__name__)

FORMULA_PREFIX = "="

_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_REF_RE = re.compile(r"[A-Za-z]+\d+")

# ---------------------------------------------------------------------------
# Parse results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Parsed:
    """Successful parse: the expression and the distinct cells it reads."""

    expression: Expression
    dependencies: frozenset[CellReference]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ParseFailure:
    """Failed parse. Stands in as the literal 0 with no dependencies."""

    error: CalcError

    @property
    def ok(self) -> bool:
        return False

    @property
    def expression(self) -> Expression:
        return Literal(0.0)

    @property
    def dependencies(self) -> frozenset[CellReference]:
        return frozenset()


ParseResult = Union[Parsed, ParseFailure]

# ---------------------------------------------------------------------------
# Splitting helpers
# ---------------------------------------------------------------------------


def _find_matching_paren(expr: str, start: int) -> int:
    """Index of the ``')'`` matching the ``'('`` at *expr[start]*, or -1."""
    depth = 1
    for i in range(start + 1, len(expr)):
        ch = expr[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _split_top_level(expr: str) -> tuple[list[str], list[str]] | None:
    """Split *expr* on every lowest-precedence binary operator at paren depth 0.

    Precedence (lowest to highest)::

        1. additive       (+, -)
        2. multiplicative (*, /)

    One left-to-right scan per level. Returns ``(operands, operators)`` with
    one more operand than operator, or ``None`` when no binary operator sits
    at the top level. Operands are left unchecked, so ``"1+"`` yields an
    empty right operand.
    """
    for ops in ("+-", "*/"):
        operands: list[str] = []
        operators: list[str] = []
        depth = 0
        start = 0
        for i, ch in enumerate(expr):
            if ch == "(":
                depth += 1
                continue
            if ch == ")":
                depth -= 1
                continue
            if depth != 0 or ch not in ops:
                continue

            # Binary only when an operand precedes it; otherwise it is unary
            j = i - 1
            while j >= 0 and expr[j] == " ":
                j -= 1
            if j < 0 or expr[j] in "(+-*/":
                continue
            # Skip +/- that are part of scientific notation (e.g. 2.5e-1)
            if ch in "+-" and expr[j] in "eE" and j >= 1 and expr[j - 1] in "0123456789.":
                continue

            operands.append(expr[start:i])
            operators.append(ch)
            start = i + 1

        if operators:
            operands.append(expr[start:])
            return operands, operators

    return None


def _literal(text: str) -> Literal | None:
    """A finite numeric literal, or None."""
    if not _NUMBER_RE.fullmatch(text):
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return Literal(value)


def _build(expr: str) -> Expression | None:
    """Build an expression tree, or None if *expr* is malformed.

    Dispatch order (first match wins):

    1. Binary operators at top level, folded left to right
    2. Parenthesized sub-expression ``(...)``
    3. Unary minus / plus
    4. Numeric literal
    5. Cell reference

    Only parentheses and unary operators recurse; operator chains are folded
    in a loop.
    """
    expr = expr.strip()
    if not expr:
        return None

    split = _split_top_level(expr)
    if split:
        operands, operators = split
        result = _build(operands[0])
        if result is None:
            return None
        for op, text in zip(operators, operands[1:]):
            right = _build(text)
            if right is None:
                return None
            result = BinaryOp(op, result, right)
        return result

    if expr.startswith("("):
        close = _find_matching_paren(expr, 0)
        if close != len(expr) - 1:
            return None
        return _build(expr[1:close])

    if expr[0] in "+-":
        operand = _build(expr[1:])
        if operand is None:
            return None
        return UnaryOp(expr[0], operand)

    literal = _literal(expr)
    if literal is not None:
        return literal

    if _REF_RE.fullmatch(expr):
        try:
            return Reference(CellReference.parse(expr))
        except InvalidCoordinatesError:
            return None

    return None


def _distinct_references(expression: Expression) -> list[CellReference]:
    refs: list[CellReference] = []
    seen: set[CellReference] = set()
    for ref in expression.references():
        if ref not in seen:
            refs.append(ref)
            seen.add(ref)
    return refs


# ---------------------------------------------------------------------------
# FormulaParser
# ---------------------------------------------------------------------------


class FormulaParser:
    """Turns raw cell text into a :data:`ParseResult`.

    Text starting with ``formula_prefix`` is an arithmetic formula; anything
    else must be a bare number.
    """

    def __init__(self, formula_prefix: str = FORMULA_PREFIX) -> None:
        if not formula_prefix:
            raise ValueError("formula_prefix must not be empty")
        self.formula_prefix = formula_prefix

    def parse(self, text: str) -> ParseResult:
        if len(text) < 1:
            return ParseFailure(EMPTY_CELL)

        if not text.startswith(self.formula_prefix):
            return self._parse_number(text)

        body = text[len(self.formula_prefix) :]
        try:
            expression = _build(body)
        except RecursionError:
            logger.debug("Formula nested too deeply: %.40r", text)
            expression = None
        if expression is None:
            logger.debug("Invalid expression %r", text)
            return ParseFailure(INVALID_EXPRESSION)
        return Parsed(expression, frozenset(expression.references()))

    def parse_refs(self, text: str) -> list[CellReference]:
        """Distinct references of *text* in order of appearance ([] if invalid)."""
        result = self.parse(text)
        if not result.ok:
            return []
        return _distinct_references(result.expression)

    @staticmethod
    def _parse_number(text: str) -> ParseResult:
        stripped = text.strip()
        literal = _literal(stripped)
        if literal is None:
            logger.debug("Invalid number %r", text)
            return ParseFailure(INVALID_NUMBER)
        return Parsed(literal, frozenset())


_default_parser = FormulaParser()


def parse_cell_text(text: str) -> ParseResult:
    """Parse cell text with the default ``=`` formula prefix."""
    return _default_parser.parse(text)


def parse_references(text: str) -> list[CellReference]:
    """Extract the distinct cell references of a formula, in order."""
    return _default_parser.parse_refs(text)
