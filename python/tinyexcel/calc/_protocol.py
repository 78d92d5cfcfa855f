"""Resolver protocol and evaluation result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tinyexcel._reference import CellReference
    from tinyexcel.calc._errors import CalcError


@runtime_checkable
class Resolver(Protocol):
    """Maps a cell reference to its current value or error during evaluation."""

    def __call__(self, ref: CellReference) -> float | CalcError:
        ...


@dataclass(frozen=True)
class EvaluationReport:
    """Outcome of one evaluation pass over a table or a single cell's subgraph."""

    evaluated: tuple[CellReference, ...] = ()  # cells computed in this pass, in order
    errored: tuple[CellReference, ...] = ()  # subset of evaluated that ended ERRORED
    cycles: tuple[tuple[CellReference, ...], ...] = ()  # each detected cycle path

    @property
    def ok(self) -> bool:
        """True when no dependency cycle was found."""
        return not self.cycles

    @property
    def cycle_cells(self) -> frozenset[CellReference]:
        return frozenset(ref for path in self.cycles for ref in path)
