"""Dependency edges between cells: who reads whom."""

from __future__ import annotations

from gridcalc.calc._nodes import Node
from gridcalc.calc._parser import all_references


class DependencyGraph:
    """Tracks, for every cell, the set of formula cells that read it.

    Edges are keyed by canonical coordinate strings; cells themselves never
    hold references to each other.
    """

    __slots__ = ("dependents",)

    def __init__(self) -> None:
        # cell -> set of cells whose formula reads it
        self.dependents: dict[str, set[str]] = {}

    def clear_dependent(self, cell_ref: str) -> None:
        """Drop *cell_ref* from every dependent set (full scan)."""
        empty: list[str] = []
        for ref, deps in self.dependents.items():
            deps.discard(cell_ref)
            if not deps:
                empty.append(ref)
        for ref in empty:
            del self.dependents[ref]

    def add_formula(self, cell_ref: str, tree: Node) -> list[str]:
        """Register *cell_ref* as a dependent of every cell its tree reads.

        Returns the distinct referenced coordinates.
        """
        refs = all_references(tree)
        for ref in refs:
            if ref not in self.dependents:
                self.dependents[ref] = set()
            self.dependents[ref].add(cell_ref)
        return refs

    def dependents_of(self, cell_ref: str) -> set[str]:
        """Direct dependents of *cell_ref* (a copy)."""
        return set(self.dependents.get(cell_ref, ()))

    def precedents_of(self, cell_ref: str) -> set[str]:
        """Cells that *cell_ref* reads directly."""
        return {ref for ref, deps in self.dependents.items() if cell_ref in deps}
