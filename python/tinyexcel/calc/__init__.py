"""tinyexcel.calc - Formula parsing and evaluation primitives."""

from tinyexcel.calc._errors import CalcError, ErrorKind, first_error, is_error
from tinyexcel.calc._expression import BinaryOp, Expression, Literal, Reference, UnaryOp
from tinyexcel.calc._graph import DependencyGraph
from tinyexcel.calc._parser import (
    FORMULA_PREFIX,
    FormulaParser,
    ParseFailure,
    Parsed,
    ParseResult,
    parse_cell_text,
    parse_references,
)
from tinyexcel.calc._protocol import EvaluationReport, Resolver

__all__ = [
    "BinaryOp",
    "CalcError",
    "DependencyGraph",
    "ErrorKind",
    "EvaluationReport",
    "Expression",
    "FORMULA_PREFIX",
    "FormulaParser",
    "Literal",
    "ParseFailure",
    "ParseResult",
    "Parsed",
    "Reference",
    "Resolver",
    "UnaryOp",
    "first_error",
    "is_error",
    "parse_cell_text",
    "parse_references",
]
