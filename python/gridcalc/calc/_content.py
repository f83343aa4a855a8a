"""Cell content variants: Empty, Text, Number, Formula."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Union

from gridcalc.calc._nodes import Node, render
from gridcalc.calc._parser import compile_formula

logger = logging.getLogger(__name__)

COMPILE_ERROR_TEXT = "#ERROR"

# Plain decimal with optional sign and exponent; no "_", "nan" or "inf".
_NUMBER_TEXT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


@dataclass(frozen=True)
class Empty:
    def display(self) -> str:
        return ""

    def source(self) -> str:
        return ""


@dataclass(frozen=True)
class Text:
    text: str

    def display(self) -> str:
        return self.text

    def source(self) -> str:
        return self.text


@dataclass(frozen=True)
class Number:
    value: float

    def display(self) -> str:
        return format_number(self.value)

    def source(self) -> str:
        return format_number(self.value)


@dataclass(eq=False)
class Formula:
    """A compiled formula plus what it showed after its last evaluation.

    ``error`` holds the message of the last failed evaluation and takes
    precedence over ``last_value`` for display.  The tree is kept either way
    so a later upstream edit can clear the error.
    """

    tree: Node
    last_value: str = ""
    error: str | None = field(default=None)

    def display(self) -> str:
        if self.error is not None:
            return self.error
        return self.last_value

    def source(self) -> str:
        return "=" + render(self.tree)


Content = Union[Empty, Text, Number, Formula]

EMPTY = Empty()


def format_number(value: float) -> str:
    """Default decimal text of a number (``42.0``, ``0.5``)."""
    return str(float(value))


def parse_content(text: str, compile_error_text: str = COMPILE_ERROR_TEXT) -> Content:
    """Turn user input into a Content.

    ``=...`` compiles a formula (a visible error Text if it does not compile),
    a finite plain decimal (sign, fraction and exponent allowed) becomes a
    Number, ``""`` is Empty, anything else is literal Text.
    """
    if text == "":
        return EMPTY
    if text.startswith("="):
        tree = compile_formula(text[1:])
        if tree is None:
            logger.debug("Formula %r did not compile; storing %r", text, compile_error_text)
            return Text(compile_error_text)
        return Formula(tree)
    if _NUMBER_TEXT_RE.fullmatch(text.strip()):
        value = float(text)
        if math.isfinite(value):
            return Number(value)
    return Text(text)

