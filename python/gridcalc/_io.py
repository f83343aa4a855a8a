"""Row-per-line text format for saving and loading sheets.

Each grid row is one line; cells are joined by ``;``.  A literal ``;`` in a
cell is written as ``\\;`` and a literal backslash as ``\\\\``.  Formulas use ``;`` between function arguments,
so formula text swaps its ``;`` for ``,`` before escaping and gets them back
after unescaping.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from gridcalc._utils import rowcol_to_a1
from gridcalc.calc._content import COMPILE_ERROR_TEXT, Content, Formula, parse_content

if TYPE_CHECKING:
    from gridcalc._workbook import Workbook
    from gridcalc._worksheet import Worksheet

logger = logging.getLogger(__name__)

CELL_DELIMITER = ";"
_ESCAPE = "\\"
_UNESCAPE_RE = re.compile(r"\\([\\;])")


def to_persisted_text(content: Content) -> str:
    """Text to write for one cell."""
    text = content.source()
    if isinstance(content, Formula):
        text = text.replace(CELL_DELIMITER, ",")
    return text.replace(_ESCAPE, _ESCAPE * 2).replace(CELL_DELIMITER, _ESCAPE + CELL_DELIMITER)


def from_persisted_text(text: str, compile_error_text: str = COMPILE_ERROR_TEXT) -> Content:
    """Content for one cell as read back from a file."""
    text = _UNESCAPE_RE.sub(r"\1", text)
    if text.startswith("="):
        text = text.replace(",", CELL_DELIMITER)
    return parse_content(text, compile_error_text)


def dump_rows(sheet: Worksheet) -> list[str]:
    """One line per grid row, without line terminators."""
    return [
        CELL_DELIMITER.join(to_persisted_text(cell.content) for cell in row)
        for row in sheet.rows()
    ]


def split_row(line: str) -> list[str]:
    """Split one saved line on unescaped ``;``; escapes are left in place."""
    cells: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == _ESCAPE and line[i + 1 : i + 2] in (_ESCAPE, CELL_DELIMITER):
            current.append(line[i : i + 2])
            i += 2
            continue
        if ch == CELL_DELIMITER:
            cells.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    cells.append("".join(current))
    return cells


def load_rows(workbook: Workbook, lines: Iterable[str]) -> None:
    """Feed saved lines into *workbook* cell by cell, recalculating as it goes."""
    compile_error_text = workbook.settings.compile_error_text
    for row, line in enumerate(lines):
        line = line.rstrip("\r\n")
        for col, text in enumerate(split_row(line)):
            content = from_persisted_text(text, compile_error_text)
            workbook.set_content(rowcol_to_a1(row, col), content)


def save(workbook: Workbook, filename: str | os.PathLike[str]) -> None:
    lines = dump_rows(workbook.active)
    with open(filename, "w", encoding="utf-8", newline="\n") as f:
        for line in lines:
            f.write(line + "\n")
    logger.debug("Saved %d rows to %s", len(lines), filename)


def load(workbook: Workbook, filename: str | os.PathLike[str]) -> None:
    with open(filename, encoding="utf-8") as f:
        load_rows(workbook, f)
    logger.debug("Loaded %s into %r", filename, workbook)
