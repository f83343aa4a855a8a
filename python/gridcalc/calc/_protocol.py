"""CalcEngine protocol and result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gridcalc.calc._content import Content


@dataclass(frozen=True)
class CellDelta:
    """A single cell's displayed value change from one edit."""

    cell_ref: str  # canonical "A1"
    old_value: str
    new_value: str
    formula: str | None = None  # source of the formula that produced new_value


@dataclass(frozen=True)
class RecalcResult:
    """What one ``set_content`` call changed."""

    cell_ref: str  # the edited cell
    deltas: tuple[CellDelta, ...]  # cells whose displayed value changed
    evaluated_cells: int = 0  # formula evaluations performed, edited cell included
    max_chain_depth: int = 0  # longest dependent chain walked below the edited cell

    @property
    def changed(self) -> dict[str, str]:
        """cell_ref -> new displayed value, for every changed cell."""
        return {d.cell_ref: d.new_value for d in self.deltas}


@runtime_checkable
class CalcEngine(Protocol):
    """Protocol for engines that keep a grid's formulas up to date."""

    def set_content(self, coordinate: str, content: Content) -> RecalcResult:
        """Store content, update dependency edges, recompute dependents."""
        ...

    def evaluate_cell(self, coordinate: str) -> float:
        """Evaluate one cell on demand, raising EvalError on failure."""
        ...

    def calculate(self) -> dict[str, str]:
        """Re-evaluate every formula cell.

        Returns a dict of cell_ref -> displayed value for all formula cells.
        """
        ...
