"""Workbook - the engine handle every operation goes through.

A workbook owns one :class:`Worksheet` (the cell grid) and one
:class:`WorkbookEvaluator` (dependency edges and recalculation).  Writes
must go through :meth:`Workbook.set` / :meth:`Workbook.set_content` so the
two stay in step.
"""

from __future__ import annotations

import os

from gridcalc import _io
from gridcalc._cell import Cell
from gridcalc._display import render_table
from gridcalc._worksheet import Worksheet
from gridcalc.calc._content import Content, parse_content
from gridcalc.calc._evaluator import WorkbookEvaluator
from gridcalc.calc._protocol import RecalcResult
from gridcalc.config import Settings, get_settings


class Workbook:
    """In-memory spreadsheet with live formula recalculation."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._sheet = Worksheet("Sheet")
        self._evaluator = WorkbookEvaluator(self._sheet, self._settings)

    @classmethod
    def _from_file(cls, path: str, settings: Settings | None = None) -> Workbook:
        wb = cls(settings)
        _io.load(wb, path)
        return wb

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def active(self) -> Worksheet:
        return self._sheet

    @property
    def evaluator(self) -> WorkbookEvaluator:
        return self._evaluator

    def __getitem__(self, coordinate: str) -> Cell:
        """``wb['A1']`` -> Cell."""
        return self._sheet.get(coordinate)

    def __setitem__(self, coordinate: str, text: str) -> None:
        """``wb['A1'] = '=B1*2'`` - shorthand for :meth:`set`."""
        self.set(coordinate, text)

    def value(self, coordinate: str) -> str:
        """Displayed value of a cell."""
        return self._sheet.get(coordinate).value

    def source(self, coordinate: str) -> str:
        """What the user would re-type to get this cell back (``=A1*2.0``)."""
        return self._sheet.get(coordinate).content.source()

    def evaluate(self, coordinate: str) -> float:
        return self._evaluator.evaluate_cell(coordinate)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(self, coordinate: str, text: str) -> RecalcResult:
        """Parse *text* (``=`` formula, number, or literal text) into a cell."""
        content = parse_content(str(text), self._settings.compile_error_text)
        return self._evaluator.set_content(coordinate, content)

    def set_content(self, coordinate: str, content: Content) -> RecalcResult:
        return self._evaluator.set_content(coordinate, content)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_table(self) -> str:
        return render_table(self._sheet, self._settings.column_width)

    def save(self, filename: str | os.PathLike[str]) -> None:
        """Write every row to *filename* in the ``;``-delimited format."""
        _io.save(self, filename)

    def __repr__(self) -> str:
        return f"<Workbook {self._sheet.max_row}x{self._sheet.max_column}>"
