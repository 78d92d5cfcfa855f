"""Table: owns the cells and drives dependency-ordered evaluation.

Evaluation is a depth-first walk over the dependency edges with three states
per cell: dirty (unvisited), evaluating (on the walk stack) and done
(evaluated or errored). The walk tracks strongly connected components
(Tarjan), so every cell that can reach itself through its references is
marked errored as part of a cycle, however many loops run through it. The walk
keeps an explicit stack so long reference chains cannot exhaust the Python
call stack. Independent cells are visited in ascending CellReference order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tinyexcel._cell import Cell, CellStatus
from tinyexcel._exceptions import DirtyCellError, InvalidCoordinatesError
from tinyexcel._reference import CellReference, to_reference
from tinyexcel.calc._errors import CalcError, cycle_error, reference_error
from tinyexcel.calc._graph import DependencyGraph
from tinyexcel.calc._protocol import EvaluationReport

if TYPE_CHECKING:
    from tinyexcel.calc._parser import FormulaParser

logger = logging.getLogger(__name__)


@dataclass
class _Pass:
    """Mutable bookkeeping for one evaluation pass."""

    evaluated: list[CellReference] = field(default_factory=list)
    errored: list[CellReference] = field(default_factory=list)
    cycles: list[tuple[CellReference, ...]] = field(default_factory=list)

    def record(self, ref: CellReference, cell: Cell) -> None:
        self.evaluated.append(ref)
        if cell.is_error:
            self.errored.append(ref)

    def report(self) -> EvaluationReport:
        return EvaluationReport(
            evaluated=tuple(self.evaluated),
            errored=tuple(self.errored),
            cycles=tuple(self.cycles),
        )


class Table:
    """A sheet of cells addressed by CellReference.

    Usage::

        table = Table()
        table.set_cell("A1", "3.5")
        table.set_cell("B1", "=A1*2")
        table.evaluate()
        table.get_cell("B1").value  # 7.0

    Absent cells read as 0. Editing a cell marks it and every cell that
    transitively reads from it dirty; nothing is recomputed until
    ``evaluate()`` or ``evaluate_cell()`` is called.
    """

    __slots__ = ("_cells", "_graph", "_parser")

    def __init__(self, parser: FormulaParser | None = None) -> None:
        self._cells: dict[CellReference, Cell] = {}
        self._graph = DependencyGraph()
        self._parser = parser

    @classmethod
    def from_mapping(
        cls,
        cells: Mapping[CellReference | str, str],
        parser: FormulaParser | None = None,
    ) -> Table:
        """Build a table by setting each cell's text in turn."""
        table = cls(parser)
        table.load(cells)
        return table

    def load(self, cells: Mapping[CellReference | str, str]) -> None:
        for ref, text in cells.items():
            self.set_cell(ref, text)

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def set_cell(self, ref: CellReference | str, text: str) -> Cell:
        """Create or replace the cell at *ref* from its text.

        Raises InvalidCoordinatesError if *ref* is malformed coordinate text.
        """
        ref = to_reference(ref)
        cell = self._cells.get(ref)
        if cell is None:
            cell = Cell(text, self._parser)
            self._cells[ref] = cell
        else:
            cell.set_text(text)
        self._graph.set_dependencies(ref, cell.dependencies)
        self._invalidate(ref)
        return cell

    def get_cell(self, ref: CellReference | str) -> Cell | None:
        """The cell at *ref*, or None for an empty cell."""
        return self._cells.get(to_reference(ref))

    def remove_cell(self, ref: CellReference | str) -> None:
        """Empty the cell at *ref*; cells reading it will see 0."""
        ref = to_reference(ref)
        if ref not in self._cells:
            return
        self._invalidate(ref)
        self._graph.remove(ref)
        del self._cells[ref]

    def value(self, ref: CellReference | str) -> float:
        """Evaluate *ref* on demand and return its value (0 for empty cells)."""
        ref = to_reference(ref)
        cell = self._cells.get(ref)
        if cell is None:
            return 0.0
        self.evaluate_cell(ref)
        return cell.value

    def dependents(self, ref: CellReference | str) -> frozenset[CellReference]:
        """Cells that read *ref* directly."""
        return frozenset(self._graph.dependents.get(to_reference(ref), ()))

    def cells(self) -> Iterator[tuple[CellReference, Cell]]:
        for ref in sorted(self._cells):
            yield ref, self._cells[ref]

    def __contains__(self, ref: object) -> bool:
        if isinstance(ref, str):
            try:
                ref = CellReference.parse(ref)
            except InvalidCoordinatesError:
                return False
        return ref in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[CellReference]:
        return iter(sorted(self._cells))

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Mark every cell dirty, keeping text and parsed expressions."""
        for cell in self._cells.values():
            cell.mark_dirty()

    def clear(self) -> None:
        """Remove every cell."""
        self._cells.clear()
        self._graph.clear()

    def _invalidate(self, ref: CellReference) -> None:
        for affected in self._graph.affected_cells({ref}):
            cell = self._cells.get(affected)
            if cell is not None:
                cell.mark_dirty()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self) -> EvaluationReport:
        """Evaluate every dirty cell; cycles are reported, not raised."""
        run = _Pass()
        for ref in sorted(self._cells):
            self._evaluate_from(ref, run)
        report = run.report()
        logger.debug(
            "Evaluated %d cells (%d errored, %d cycles)",
            len(report.evaluated), len(report.errored), len(report.cycles),
        )
        return report

    def evaluate_cell(self, ref: CellReference | str) -> EvaluationReport:
        """Evaluate only *ref* and the cells it transitively reads.

        Raises InvalidCoordinatesError if *ref* is malformed coordinate text.
        """
        run = _Pass()
        self._evaluate_from(to_reference(ref), run)
        return run.report()

    def _resolve(self, ref: CellReference) -> float | CalcError:
        """Resolver handed to expressions: value or error of a done cell."""
        cell = self._cells.get(ref)
        if cell is None:
            return 0.0
        if cell.status is CellStatus.EVALUATED:
            return cell.value
        if cell.status is CellStatus.ERRORED:
            return reference_error(ref, cell.error)
        raise DirtyCellError(f"Cell {ref} was read before it was evaluated")

    def _evaluate_from(self, root: CellReference, run: _Pass) -> None:
        """Evaluate the dirty cells reachable from *root*, dependencies first.

        Iterative Tarjan walk: each cell gets a discovery index and a
        low-link, the lowest index it can reach among cells still on
        ``component``. A cell whose low-link equals its own index closes a
        strongly connected component; every dependency outside that
        component is already done.
        """
        cell = self._cells.get(root)
        if cell is None or cell.status.is_done:
            return

        index: dict[CellReference, int] = {root: 0}
        low: dict[CellReference, int] = {root: 0}
        component: list[CellReference] = [root]
        cell.mark_evaluating()
        stack: list[tuple[CellReference, Iterator[CellReference]]] = [
            (root, iter(sorted(cell.dependencies))),
        ]
        try:
            while stack:
                ref, pending = stack[-1]
                for dep in pending:
                    dep_cell = self._cells.get(dep)
                    if dep_cell is None or dep_cell.status.is_done:
                        continue
                    if dep_cell.status is CellStatus.EVALUATING:
                        # Still on the component stack: part of a cycle.
                        low[ref] = min(low[ref], index[dep])
                        continue
                    index[dep] = low[dep] = len(index)
                    component.append(dep)
                    dep_cell.mark_evaluating()
                    stack.append((dep, iter(sorted(dep_cell.dependencies))))
                    break
                else:
                    stack.pop()
                    if stack:
                        parent = stack[-1][0]
                        low[parent] = min(low[parent], low[ref])
                    if low[ref] == index[ref]:
                        self._settle(ref, component, run)
        finally:
            # Only non-empty if an exception escaped mid-walk.
            for ref in component:
                if self._cells[ref].status is CellStatus.EVALUATING:
                    self._cells[ref].mark_dirty()

    def _settle(self, head: CellReference, component: list[CellReference], run: _Pass) -> None:
        """Pop the component rooted at *head*: evaluate it, or error it as a cycle."""
        members: list[CellReference] = []
        while True:
            ref = component.pop()
            members.append(ref)
            if ref == head:
                break
        members.reverse()

        cell = self._cells[head]
        if len(members) == 1 and head not in cell.dependencies:
            cell.evaluate(self._resolve)
            run.record(head, cell)
            return

        path = tuple(members)
        loop = all(
            nxt in self._cells[ref].dependencies
            for ref, nxt in zip(path, path[1:] + path[:1])
        )
        error = cycle_error(path, loop)
        logger.warning("%s", error.message)
        for ref in path:
            cell = self._cells[ref]
            cell.set_error(error)
            run.record(ref, cell)
        run.cycles.append(path)

    def __repr__(self) -> str:
        return f"<Table cells={len(self._cells)}>"
