"""Tests for tinyexcel.calc expression evaluation and error values."""

from __future__ import annotations

import pytest

from tinyexcel import CellReference
from tinyexcel.calc._errors import (
    DIVISION_BY_ZERO,
    OVERFLOW,
    CalcError,
    ErrorKind,
    cycle_error,
    first_error,
    is_error,
    reference_error,
)
from tinyexcel.calc._expression import BinaryOp, Literal, Reference, UnaryOp

A1 = CellReference.parse("A1")
B1 = CellReference.parse("B1")
BOOM = CalcError(ErrorKind.DIVISION_BY_ZERO, "boom")


def _values(**cells: float | CalcError):
    """Resolver over a dict keyed by coordinate text; absent cells read 0."""
    lookup = {CellReference.parse(k): v for k, v in cells.items()}
    return lambda ref: lookup.get(ref, 0.0)


class TestEvaluate:
    def test_literal(self) -> None:
        assert Literal(3.5).evaluate(_values()) == 3.5

    def test_reference(self) -> None:
        assert Reference(A1).evaluate(_values(A1=4.0)) == 4.0

    def test_absent_reference_via_resolver(self) -> None:
        assert BinaryOp("+", Reference(A1), Literal(1.0)).evaluate(_values()) == 1.0

    @pytest.mark.parametrize(
        ("op", "expected"), [("+", 13.0), ("-", 7.0), ("*", 30.0), ("/", 10 / 3)],
    )
    def test_binary_operators(self, op: str, expected: float) -> None:
        expr = BinaryOp(op, Reference(A1), Reference(B1))
        assert expr.evaluate(_values(A1=10.0, B1=3.0)) == pytest.approx(expected)

    def test_unary(self) -> None:
        assert UnaryOp("-", Literal(2.0)).evaluate(_values()) == -2.0
        assert UnaryOp("+", Literal(2.0)).evaluate(_values()) == 2.0

    def test_division_by_zero_is_error_value(self) -> None:
        expr = BinaryOp("/", Literal(1.0), BinaryOp("-", Reference(A1), Reference(A1)))
        result = expr.evaluate(_values(A1=5.0))
        assert result == DIVISION_BY_ZERO
        assert result.message == "Division by zero"

    def test_reference_error_propagates(self) -> None:
        expr = UnaryOp("-", BinaryOp("*", Reference(A1), Literal(2.0)))
        assert expr.evaluate(_values(A1=BOOM)) is BOOM

    def test_left_error_wins(self) -> None:
        other = CalcError(ErrorKind.CYCLE, "loop")
        expr = BinaryOp("+", Reference(A1), Reference(B1))
        assert expr.evaluate(_values(A1=BOOM, B1=other)) is BOOM
        assert expr.evaluate(_values(A1=1.0, B1=other)) is other

    def test_left_evaluated_before_right(self) -> None:
        seen: list[CellReference] = []

        def resolver(ref: CellReference) -> float:
            seen.append(ref)
            return 1.0

        BinaryOp("-", Reference(B1), Reference(A1)).evaluate(resolver)
        assert seen == [B1, A1]

    def test_evaluation_leaves_tree_unchanged(self) -> None:
        expr = BinaryOp("+", Reference(A1), Literal(1.0))
        before = expr
        expr.evaluate(_values(A1=2.0))
        assert expr == before
        assert list(expr.references()) == [A1]

    def test_overflow_is_error_value(self) -> None:
        big = Literal(1e308)
        assert BinaryOp("*", big, Literal(10.0)).evaluate(_values()) == OVERFLOW
        assert BinaryOp("+", big, big).evaluate(_values()) is OVERFLOW
        assert BinaryOp("/", big, Literal(1e-10)).evaluate(_values()) is OVERFLOW
        assert OVERFLOW.message == "Numeric overflow"
        assert not ErrorKind.OVERFLOW.is_parse_error

    def test_large_finite_result_kept(self) -> None:
        expr = BinaryOp("*", Literal(1e154), Literal(1e154))
        assert expr.evaluate(_values()) == pytest.approx(1e308)

    def test_long_left_spine(self) -> None:
        n = 5000
        expr = Reference(A1)
        for _ in range(n - 1):
            expr = BinaryOp("+", expr, Reference(A1))
        assert expr.evaluate(_values(A1=2.0)) == 2.0 * n
        assert list(expr.references()) == [A1] * n
        assert str(expr).endswith("+A1)+A1)")

    def test_long_chain_first_error_wins(self) -> None:
        other = CalcError(ErrorKind.CYCLE, "loop")
        expr = Reference(B1)
        for _ in range(2000):
            expr = BinaryOp("*", expr, Reference(A1))
        assert expr.evaluate(_values(A1=other, B1=BOOM)) is BOOM

    def test_unknown_operator_rejected(self) -> None:
        with pytest.raises(ValueError):
            BinaryOp("^", Literal(1.0), Literal(2.0))
        with pytest.raises(ValueError):
            UnaryOp("*", Literal(1.0))


class TestErrorValues:
    def test_parse_kinds(self) -> None:
        assert ErrorKind.EMPTY_CELL.is_parse_error
        assert ErrorKind.INVALID_EXPRESSION.is_parse_error
        assert not ErrorKind.CYCLE.is_parse_error
        assert not ErrorKind.DIVISION_BY_ZERO.is_parse_error

    def test_cycle_message(self) -> None:
        err = cycle_error((A1, B1))
        assert err.kind is ErrorKind.CYCLE
        assert err.message == "Circular reference: A1 -> B1 -> A1"
        assert err.origin == A1

    def test_cycle_message_without_single_loop(self) -> None:
        err = cycle_error((A1, B1), loop=False)
        assert err.message == "Circular reference among A1, B1"
        assert err.origin == A1

    def test_reference_error_wraps_once(self) -> None:
        first = reference_error(A1, DIVISION_BY_ZERO)
        assert first.kind is ErrorKind.REFERENCE
        assert first.message == "Error in referenced cell A1: Division by zero"
        assert reference_error(B1, first) is first

    def test_first_error(self) -> None:
        assert first_error(1.0, BOOM, DIVISION_BY_ZERO) is BOOM
        assert first_error(1.0, 2.0) is None
        assert is_error(BOOM)
        assert not is_error(0.0)

    def test_str(self) -> None:
        assert str(DIVISION_BY_ZERO) == "Division by zero"
