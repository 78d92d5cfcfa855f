"""Immutable expression tree for parsed cell contents.

Leaves are numeric literals or cell references; interior nodes are unary and
binary arithmetic operators. Nodes never point at cells, only at
CellReferences, which the evaluating table resolves on demand.

Long operator chains such as ``1+1+...+1`` parse into deep left spines, so
evaluation, reference listing and rendering walk the tree with an explicit
stack rather than recursing once per node.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from tinyexcel.calc._errors import DIVISION_BY_ZERO, OVERFLOW, CalcError, first_error

if TYPE_CHECKING:
    from tinyexcel._reference import CellReference
    from tinyexcel.calc._protocol import Resolver

BINARY_OPERATORS = ("+", "-", "*", "/")
UNARY_OPERATORS = ("+", "-")


def _format_number(value: float) -> str:
    if math.isfinite(value) and value == int(value) and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _apply_binary(op: str, left: float, right: float) -> float | CalcError:
    if op == "+":
        result = left + right
    elif op == "-":
        result = left - right
    elif op == "*":
        result = left * right
    elif op == "/":
        if right == 0:
            return DIVISION_BY_ZERO
        result = left / right
    else:
        raise ValueError(f"Unknown binary operator: {op!r}")
    if not math.isfinite(result):
        return OVERFLOW
    return result


def _fold(
    root: Expression,
    leaf: Callable[[Literal | Reference], Any],
    unary: Callable[[str, Any], Any],
    binary: Callable[[str, Any, Any], Any],
) -> Any:
    """Post-order reduction of *root*, children left to right, without recursion."""
    results: list[Any] = []
    stack: list[tuple[Expression, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if isinstance(node, (Literal, Reference)):
            results.append(leaf(node))
        elif not expanded:
            stack.append((node, True))
            if isinstance(node, BinaryOp):
                stack.append((node.right, False))
                stack.append((node.left, False))
            else:
                stack.append((node.operand, False))
        elif isinstance(node, BinaryOp):
            right = results.pop()
            left = results.pop()
            results.append(binary(node.op, left, right))
        else:
            results.append(unary(node.op, results.pop()))
    return results[0]


def _evaluate(root: Expression, resolver: Resolver) -> float | CalcError:
    def leaf(node: Literal | Reference) -> float | CalcError:
        if isinstance(node, Literal):
            return node.value
        return resolver(node.ref)

    def unary(op: str, val: float | CalcError) -> float | CalcError:
        if isinstance(val, CalcError):
            return val
        return -val if op == "-" else val

    def binary(op: str, left: float | CalcError, right: float | CalcError) -> float | CalcError:
        err = first_error(left, right)
        if err is not None:
            return err
        return _apply_binary(op, left, right)

    return _fold(root, leaf, unary, binary)


def _render(root: Expression) -> str:
    return _fold(
        root,
        lambda node: str(node),
        lambda op, operand: f"{op}{operand}",
        lambda op, left, right: f"({left}{op}{right})",
    )


def _walk_references(root: Expression) -> Iterator[CellReference]:
    stack: list[Expression] = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Reference):
            yield node.ref
        elif isinstance(node, BinaryOp):
            stack.append(node.right)
            stack.append(node.left)
        elif isinstance(node, UnaryOp):
            stack.append(node.operand)


@dataclass(frozen=True)
class Literal:
    value: float

    def evaluate(self, resolver: Resolver) -> float | CalcError:
        return self.value

    def references(self) -> Iterator[CellReference]:
        return iter(())

    def __str__(self) -> str:
        return _format_number(self.value)


@dataclass(frozen=True)
class Reference:
    ref: CellReference

    def evaluate(self, resolver: Resolver) -> float | CalcError:
        return resolver(self.ref)

    def references(self) -> Iterator[CellReference]:
        yield self.ref

    def __str__(self) -> str:
        return str(self.ref)


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: Expression

    def __post_init__(self) -> None:
        if self.op not in UNARY_OPERATORS:
            raise ValueError(f"Unknown unary operator: {self.op!r}")

    def evaluate(self, resolver: Resolver) -> float | CalcError:
        return _evaluate(self, resolver)

    def references(self) -> Iterator[CellReference]:
        return _walk_references(self)

    def __str__(self) -> str:
        return _render(self)


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Expression
    right: Expression

    def __post_init__(self) -> None:
        if self.op not in BINARY_OPERATORS:
            raise ValueError(f"Unknown binary operator: {self.op!r}")

    def evaluate(self, resolver: Resolver) -> float | CalcError:
        """Evaluate left then right; the first error encountered wins.

        A non-finite result is the ``OVERFLOW`` error value.
        """
        return _evaluate(self, resolver)

    def references(self) -> Iterator[CellReference]:
        return _walk_references(self)

    def __str__(self) -> str:
        return _render(self)


Expression = Union[Literal, Reference, UnaryOp, BinaryOp]
