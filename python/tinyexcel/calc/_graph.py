"""Dependency graph for cells, used to invalidate dependents on edits."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tinyexcel._reference import CellReference


class DependencyGraph:
    """Tracks forward and reverse dependency edges between cells.

    Edges are keyed by CellReference; a target need not exist as a cell.
    """

    __slots__ = ("dependencies", "dependents")

    def __init__(self) -> None:
        # cell -> set of cells it reads from
        self.dependencies: dict[CellReference, frozenset[CellReference]] = {}
        # cell -> set of cells that read from it (reverse edges)
        self.dependents: dict[CellReference, set[CellReference]] = {}

    def set_dependencies(self, ref: CellReference, refs: Iterable[CellReference]) -> None:
        """Register (or replace) the cells that *ref* reads from."""
        self.remove(ref)
        deps = frozenset(refs)
        self.dependencies[ref] = deps
        for dep in deps:
            if dep not in self.dependents:
                self.dependents[dep] = set()
            self.dependents[dep].add(ref)

    def remove(self, ref: CellReference) -> None:
        """Drop the forward edges of *ref*; edges pointing at it are kept."""
        for dep in self.dependencies.pop(ref, frozenset()):
            readers = self.dependents.get(dep)
            if readers is None:
                continue
            readers.discard(ref)
            if not readers:
                del self.dependents[dep]

    def affected_cells(self, changed_cells: Iterable[CellReference]) -> set[CellReference]:
        """Changed cells plus everything that transitively reads from them (BFS)."""
        visited: set[CellReference] = set(changed_cells)
        queue: deque[CellReference] = deque(visited)

        while queue:
            cell = queue.popleft()
            for dep in self.dependents.get(cell, ()):
                if dep not in visited:
                    visited.add(dep)
                    queue.append(dep)

        return visited

    def clear(self) -> None:
        self.dependencies.clear()
        self.dependents.clear()
