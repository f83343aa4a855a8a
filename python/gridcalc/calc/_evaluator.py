"""Expression evaluation and the dependency-tracking recalculation engine.

:func:`evaluate` walks a compiled tree against a worksheet.  Reentrancy is
controlled by an explicit *guard*: the set of coordinates currently being
evaluated within one top-level call.  Reaching a coordinate already in the
guard raises :class:`CircularReference` instead of recursing forever.

:class:`WorkbookEvaluator` owns the dependency edges.  Every content change
goes through :meth:`WorkbookEvaluator.set_content`, which re-derives the
edited cell's edges, evaluates it, and walks its dependents depth-first so
their cached results stay current.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import TYPE_CHECKING

from gridcalc._utils import InvalidCoordinate, normalize
from gridcalc.calc._content import Formula, Number, format_number
from gridcalc.calc._errors import (
    CircularReference,
    DivisionByZero,
    EvaluationDepthExceeded,
    FormulaError,
    InsufficientOperands,
    NonNumericReference,
    UndefinedCellReference,
)
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._nodes import (
    Aggregate,
    AggregateKind,
    BinaryChain,
    CellReference,
    ChainKind,
    Node,
    Value,
)
from gridcalc.calc._protocol import CellDelta, RecalcResult

if TYPE_CHECKING:
    from gridcalc._worksheet import Worksheet
    from gridcalc.calc._content import Content
    from gridcalc.config import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tree evaluation
# ---------------------------------------------------------------------------


def evaluate(node: Node, sheet: Worksheet, guard: set[str]) -> float:
    """Evaluate *node* against *sheet*.

    *guard* holds the coordinates mid-evaluation in this top-level call and
    is left exactly as it was passed in, whatever the outcome.
    """
    if isinstance(node, Value):
        return node.number
    if isinstance(node, CellReference):
        return _evaluate_reference(node.coordinate, sheet, guard)
    if isinstance(node, BinaryChain):
        return _evaluate_chain(node, sheet, guard)
    if isinstance(node, Aggregate):
        return _evaluate_aggregate(node, sheet, guard)
    raise TypeError(f"Unknown node type: {type(node).__name__}")


def _evaluate_reference(coordinate: str, sheet: Worksheet, guard: set[str]) -> float:
    try:
        cell = sheet.get(coordinate)
    except InvalidCoordinate:
        raise UndefinedCellReference(coordinate) from None

    content = cell.content
    if isinstance(content, Number):
        return content.value
    if isinstance(content, Formula):
        if coordinate in guard:
            raise CircularReference(coordinate)
        guard.add(coordinate)
        try:
            return evaluate(content.tree, sheet, guard)
        finally:
            guard.discard(coordinate)
    raise NonNumericReference(coordinate)


def _evaluate_chain(node: BinaryChain, sheet: Worksheet, guard: set[str]) -> float:
    if node.kind is ChainKind.ADD:
        result = 0.0
        for child in node.children:
            result += evaluate(child, sheet, guard)
        return result
    if node.kind is ChainKind.MULTIPLY:
        result = 1.0
        for child in node.children:
            result *= evaluate(child, sheet, guard)
        return result

    # SUBTRACT / DIVIDE: left fold from the first child
    if not node.children:
        raise InsufficientOperands(f"operator {node.kind.value!r}")
    result = evaluate(node.children[0], sheet, guard)
    for child in node.children[1:]:
        v = evaluate(child, sheet, guard)
        if node.kind is ChainKind.SUBTRACT:
            result -= v
        else:
            if v == 0:
                raise DivisionByZero()
            result /= v
    return result


def _evaluate_aggregate(node: Aggregate, sheet: Worksheet, guard: set[str]) -> float:
    if not node.children:
        raise InsufficientOperands(f"function {node.kind.value}")
    if node.kind is AggregateKind.MIN:
        result = math.inf
        for child in node.children:
            result = min(result, evaluate(child, sheet, guard))
        return result
    if node.kind is AggregateKind.MAX:
        result = -math.inf
        for child in node.children:
            result = max(result, evaluate(child, sheet, guard))
        return result
    total = 0.0
    for child in node.children:
        total += evaluate(child, sheet, guard)
    return total / len(node.children)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class WorkbookEvaluator:
    """Keeps formula results in a worksheet consistent with their inputs.

    Usage::

        evaluator = WorkbookEvaluator(sheet)
        evaluator.set_content("A1", Number(5.0))
        evaluator.set_content("B1", Formula(parse_formula("A1*2")))
        evaluator.set_content("A1", Number(7.0))   # B1 now shows 14.0
    """

    def __init__(self, sheet: Worksheet, settings: Settings | None = None) -> None:
        if settings is None:
            from gridcalc.config import get_settings

            settings = get_settings()
        self._sheet = sheet
        self._graph = DependencyGraph()
        self._max_depth = settings.max_propagation_depth
        # One set_content call is one transaction: edges, store, cascade.
        self._lock = threading.RLock()

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def dependents_of(self, coordinate: str) -> set[str]:
        return self._graph.dependents_of(normalize(coordinate))

    def precedents_of(self, coordinate: str) -> set[str]:
        return self._graph.precedents_of(normalize(coordinate))

    # ------------------------------------------------------------------
    # Content changes
    # ------------------------------------------------------------------

    def set_content(self, coordinate: str, content: Content) -> RecalcResult:
        """Store *content* at *coordinate* and bring every dependent up to date."""
        cell_ref = normalize(coordinate)
        with self._lock:
            run = _Run()
            cell = self._sheet.get(cell_ref)
            run.before(cell_ref, cell.content.display())

            self._graph.clear_dependent(cell_ref)
            if isinstance(content, Formula):
                self._graph.add_formula(cell_ref, content.tree)

            self._sheet.set_content(cell_ref, content)

            if isinstance(content, Formula):
                self._refresh(cell_ref, content, run)
            run.after(cell_ref, content.display(), content)

            self._propagate(cell_ref, (cell_ref,), run)
            return run.result(cell_ref)

    def _refresh(self, cell_ref: str, formula: Formula, run: _Run) -> None:
        """Re-evaluate one formula cell and cache what it should display."""
        run.evaluated += 1
        try:
            value = self._evaluate_formula(cell_ref, formula)
        except CircularReference as e:
            logger.debug("Circular reference at %s", cell_ref)
            formula.error = str(e)
        except FormulaError as e:
            logger.debug("Cannot evaluate %s: %s", cell_ref, e)
            formula.error = str(e)
        else:
            formula.last_value = format_number(value)
            formula.error = None

    def _propagate(self, cell_ref: str, path: tuple[str, ...], run: _Run) -> None:
        """Depth-first re-evaluation of everything that reads *cell_ref*.

        *path* is the chain of cells walked to get here.  A dependent already
        on the path is part of a cycle and was just refreshed, so the walk
        stops there; its own evaluation reports the circular reference.
        """
        depth = len(path)
        for dep_ref in sorted(self._graph.dependents_of(cell_ref)):
            if dep_ref in path:
                continue
            content = self._sheet.get(dep_ref).content
            if not isinstance(content, Formula):
                continue
            run.before(dep_ref, content.display())
            if depth > self._max_depth:
                logger.warning(
                    "Dependency chain below %s deeper than %d; stopping at %s",
                    path[0], self._max_depth, dep_ref,
                )
                content.error = str(EvaluationDepthExceeded(dep_ref))
                run.after(dep_ref, content.display(), content)
                continue
            self._refresh(dep_ref, content, run)
            run.after(dep_ref, content.display(), content)
            run.depth = max(run.depth, depth)
            self._propagate(dep_ref, path + (dep_ref,), run)

    # ------------------------------------------------------------------
    # On-demand evaluation
    # ------------------------------------------------------------------

    def evaluate_cell(self, coordinate: str) -> float:
        """Evaluate one cell now.

        Numbers return their value, formulas are evaluated with a fresh
        guard seeded with the cell itself.  Raises :class:`EvalError`.
        """
        cell_ref = normalize(coordinate)
        with self._lock:
            content = self._sheet.get(cell_ref).content
            if isinstance(content, Number):
                return content.value
            if isinstance(content, Formula):
                return self._evaluate_formula(cell_ref, content)
        raise NonNumericReference(cell_ref)

    def calculate(self) -> dict[str, str]:
        """Re-evaluate every formula cell and rebuild all dependency edges.

        Returns cell_ref -> displayed value for the formula cells.
        """
        with self._lock:
            self._graph = DependencyGraph()
            cells = list(self._sheet.iter_formula_cells())
            for cell in cells:
                self._graph.add_formula(cell.coordinate, cell.content.tree)
            run = _Run()
            results: dict[str, str] = {}
            for cell in cells:
                self._refresh(cell.coordinate, cell.content, run)
                results[cell.coordinate] = cell.content.display()
            return results

    def _evaluate_formula(self, cell_ref: str, formula: Formula) -> float:
        try:
            return evaluate(formula.tree, self._sheet, {cell_ref})
        except RecursionError:
            logger.warning("Formula nesting too deep at %s", cell_ref)
            raise EvaluationDepthExceeded(cell_ref) from None


class _Run:
    """Bookkeeping for one set_content transaction."""

    __slots__ = ("_old", "_new", "_formulas", "evaluated", "depth")

    def __init__(self) -> None:
        self._old: dict[str, str] = {}
        self._new: dict[str, str] = {}
        self._formulas: dict[str, str | None] = {}
        self.evaluated = 0
        self.depth = 0

    def before(self, cell_ref: str, display: str) -> None:
        self._old.setdefault(cell_ref, display)

    def after(self, cell_ref: str, display: str, content: Content) -> None:
        self._new[cell_ref] = display
        self._formulas[cell_ref] = content.source() if isinstance(content, Formula) else None

    def result(self, cell_ref: str) -> RecalcResult:
        deltas = tuple(
            CellDelta(
                cell_ref=ref,
                old_value=self._old[ref],
                new_value=new,
                formula=self._formulas[ref],
            )
            for ref, new in self._new.items()
            if self._old[ref] != new
        )
        return RecalcResult(
            cell_ref=cell_ref,
            deltas=deltas,
            evaluated_cells=self.evaluated,
            max_chain_depth=self.depth,
        )
