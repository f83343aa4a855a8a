"""gridcalc - in-memory spreadsheet engine with live formula recalculation.

Usage::

    from gridcalc import Workbook, load_workbook

    wb = Workbook()
    wb["A1"] = "5"
    wb["B1"] = "=A1*2"
    wb["A1"] = "7"
    print(wb.value("B1"))      # 14.0

    wb.save("sheet.s2v")
    wb = load_workbook("sheet.s2v")
"""

from __future__ import annotations

import os

from gridcalc._cell import Cell, display_text
from gridcalc._io import from_persisted_text, to_persisted_text
from gridcalc._utils import InvalidCoordinate, a1_to_rowcol, rowcol_to_a1
from gridcalc._workbook import Workbook
from gridcalc._worksheet import Worksheet
from gridcalc.config import Settings

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Cell",
    "InvalidCoordinate",
    "Settings",
    "Workbook",
    "Worksheet",
    "a1_to_rowcol",
    "display_text",
    "from_persisted_text",
    "load_workbook",
    "rowcol_to_a1",
    "to_persisted_text",
]


def load_workbook(filename: str | os.PathLike[str], settings: Settings | None = None) -> Workbook:
    """Open a sheet saved with :meth:`Workbook.save`.

    Cells are replayed in row order, so formulas that read cells further down
    the file are recalculated as soon as those cells arrive.
    """
    return Workbook._from_file(str(filename), settings)  # noqa: SLF001
