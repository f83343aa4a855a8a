"""Expression tree node types.

The set of node types is closed: :func:`render` here and
:func:`gridcalc.calc._evaluator.evaluate` both dispatch over exactly these
four classes.  Ranges never appear in a tree; the parser expands them into
individual :class:`CellReference` leaves.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass
from decimal import Decimal
from typing import Union


class ChainKind(enum.Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


class AggregateKind(enum.Enum):
    MIN = "MIN"
    MAX = "MAX"
    MEAN = "PROMEDIO"


@dataclass(frozen=True)
class Value:
    """A numeric literal."""

    number: float


@dataclass(frozen=True)
class CellReference:
    """A single cell read; ``coordinate`` is canonical uppercase."""

    coordinate: str


@dataclass(frozen=True)
class BinaryChain:
    """Arithmetic over ordered children.

    ADD/MULTIPLY fold every child; SUBTRACT/DIVIDE are left folds starting
    from the first child.
    """

    kind: ChainKind
    children: tuple[Node, ...]


@dataclass(frozen=True)
class Aggregate:
    """MIN / MAX / PROMEDIO over ordered children."""

    kind: AggregateKind
    children: tuple[Node, ...]


Node = Union[Value, CellReference, BinaryChain, Aggregate]


def iter_nodes(node: Node) -> Iterator[Node]:
    """Pre-order walk over *node* and all of its descendants."""
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        if isinstance(current, (BinaryChain, Aggregate)):
            stack.extend(reversed(current.children))


def format_literal(number: float) -> str:
    """Positional decimal text of a literal (``2e-05`` -> ``0.00002``).

    Always carries a fractional part so the text tokenizes as a number.
    """
    text = format(Decimal(repr(float(number))), "f")
    if "." not in text and text.lstrip("-").isdigit():
        text += ".0"
    return text


def render(node: Node) -> str:
    """Canonical text of *node*: ``(A1 + 2.0)``, ``MIN(A1, A2)``.

    Walks with an explicit stack, so tree depth is not bounded by the
    interpreter's recursion limit.
    """
    parts: list[str] = []
    stack: list[tuple[Node, bool]] = [(node, False)]
    while stack:
        current, children_done = stack.pop()
        if isinstance(current, Value):
            parts.append(format_literal(current.number))
        elif isinstance(current, CellReference):
            parts.append(current.coordinate)
        elif isinstance(current, (BinaryChain, Aggregate)):
            if not children_done:
                stack.append((current, True))
                stack.extend((c, False) for c in reversed(current.children))
                continue
            split = len(parts) - len(current.children)
            args = parts[split:]
            del parts[split:]
            if isinstance(current, BinaryChain):
                parts.append("(" + f" {current.kind.value} ".join(args) + ")")
            else:
                parts.append(f"{current.kind.value}(" + ", ".join(args) + ")")
        else:
            raise TypeError(f"Unknown node type: {type(current).__name__}")
    return parts[0]
