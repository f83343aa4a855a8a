"""Cell: one addressable slot in a worksheet."""

from __future__ import annotations

from gridcalc.calc._content import EMPTY, Content, Formula


class Cell:
    """One addressable cell.  Owns exactly one Content at a time."""

    __slots__ = ("_coordinate", "_content")

    def __init__(self, coordinate: str, content: Content = EMPTY) -> None:
        self._coordinate = coordinate
        self._content: Content = content

    @property
    def coordinate(self) -> str:
        return self._coordinate

    @property
    def content(self) -> Content:
        return self._content

    @content.setter
    def content(self, content: Content) -> None:
        self._content = content

    @property
    def value(self) -> str:
        """Displayed text, same as :func:`display_text`."""
        return display_text(self)

    @property
    def is_formula(self) -> bool:
        return isinstance(self._content, Formula)

    def __repr__(self) -> str:
        return f"<Cell {self._coordinate}={self._content.source()!r}>"


def display_text(cell: Cell) -> str:
    """What a table should show for *cell*.

    Numbers show their decimal text, formulas their cached result or current
    error, text its literal value and empty cells ``""``.
    """
    return cell.content.display()
