"""Worksheet - the growable cell grid behind ``ws['A1']`` access."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from gridcalc._cell import Cell, display_text
from gridcalc._utils import a1_to_rowcol, rowcol_to_a1

if TYPE_CHECKING:
    from gridcalc.calc._content import Content


class Worksheet:
    """Row-major grid of cells that grows to cover every touched coordinate.

    Touching ``(row, col)`` makes sure rows ``0..row`` each hold at least
    ``col + 1`` cells.  Rows below the touched one are left as they are, so
    rows can be ragged; iteration pads them with empty cells.

    Setting content here only stores it.  Dependency tracking and
    recalculation live in :class:`gridcalc.calc.WorkbookEvaluator`; go
    through :meth:`Workbook.set` to get both.
    """

    __slots__ = ("_title", "_rows")

    def __init__(self, title: str = "Sheet") -> None:
        self._title = title
        self._rows: list[list[Cell]] = []

    @property
    def title(self) -> str:
        return self._title

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def get(self, coordinate: str) -> Cell:
        """Return the cell at *coordinate*, creating it (and the cells that
        lead up to it) on first access."""
        row, col = a1_to_rowcol(coordinate)
        return self._get_or_create_cell(row, col)

    def __getitem__(self, key: str) -> Cell:
        """``ws['A1']`` -> Cell."""
        return self.get(key)

    def __contains__(self, coordinate: str) -> bool:
        """True if the cell already exists; never grows the grid."""
        row, col = a1_to_rowcol(coordinate)
        return row < len(self._rows) and col < len(self._rows[row])

    def cell(self, row: int, column: int) -> Cell:
        """Get or create a cell by zero-based (row, column)."""
        return self._get_or_create_cell(row, column)

    def _get_or_create_cell(self, row: int, col: int) -> Cell:
        if row < 0 or col < 0:
            raise ValueError(f"Row and column must be >= 0, got ({row}, {col})")
        self._ensure_capacity(row, col)
        return self._rows[row][col]

    def _ensure_capacity(self, row: int, col: int) -> None:
        while len(self._rows) <= row:
            self._rows.append([])
        for r in range(row + 1):
            cells = self._rows[r]
            while len(cells) <= col:
                cells.append(Cell(rowcol_to_a1(r, len(cells))))

    def set_content(self, coordinate: str, content: Content) -> None:
        """Replace the stored content of one cell.  No recalculation."""
        self.get(coordinate).content = content

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def rows(self) -> list[list[Cell]]:
        """Row-major view of the materialized cells (rows may be ragged)."""
        return [list(r) for r in self._rows]

    @property
    def max_row(self) -> int:
        """Number of rows in the grid."""
        return len(self._rows)

    @property
    def max_column(self) -> int:
        """Width of the widest row."""
        return max((len(r) for r in self._rows), default=0)

    def iter_rows(self, values_only: bool = False) -> Iterator[tuple[Cell | str | None, ...]]:
        """Iterate the full bounding rectangle, one tuple per row.

        Short rows are padded: with ``None`` when *values_only* is set,
        otherwise with empty cells (which materializes them).
        """
        width = self.max_column
        for r in range(self.max_row):
            if values_only:
                cells = self._rows[r]
                yield tuple(
                    display_text(cells[c]) if c < len(cells) else None
                    for c in range(width)
                )
            else:
                yield tuple(self._get_or_create_cell(r, c) for c in range(width))

    def iter_formula_cells(self) -> Iterator[Cell]:
        for row in self._rows:
            for cell in row:
                if cell.is_formula:
                    yield cell

    def __repr__(self) -> str:
        return f"<Worksheet [{self._title}] {self.max_row}x{self.max_column}>"
