"""Plain-text table rendering of a worksheet."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gridcalc._utils import column_letter

if TYPE_CHECKING:
    from gridcalc._worksheet import Worksheet


def render_table(sheet: Worksheet, column_width: int = 10) -> str:
    """Column letters across the top, row numbers down the side.

    Values wider than *column_width* are cut; short rows are padded blank.
    """
    width = sheet.max_column
    label_width = max(3, len(str(sheet.max_row)) + 1)

    def fit(text: str) -> str:
        return text[:column_width].ljust(column_width)

    lines = [" " * label_width + "".join(fit(column_letter(c)) for c in range(width))]
    for r, values in enumerate(sheet.iter_rows(values_only=True), start=1):
        cells = "".join(fit(v if v is not None else "") for v in values)
        lines.append(str(r).ljust(label_width) + cells)
    return "\n".join(line.rstrip() for line in lines)
