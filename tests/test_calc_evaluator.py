"""Tests for gridcalc.calc tree evaluation and the recalculation engine."""

from __future__ import annotations

import sys

import pytest
from gridcalc import Settings, Workbook, Worksheet
from gridcalc.calc import (
    CIRCULAR_REFERENCE_TEXT,
    Aggregate,
    AggregateKind,
    BinaryChain,
    CalcEngine,
    CellReference,
    ChainKind,
    CircularReference,
    DivisionByZero,
    Formula,
    InsufficientOperands,
    NonNumericReference,
    Number,
    Text,
    UndefinedCellReference,
    Value,
    WorkbookEvaluator,
    evaluate,
    parse_formula,
)


def _eval(formula: str, sheet: Worksheet | None = None) -> float:
    return evaluate(parse_formula(formula), sheet or Worksheet(), set())


# ---------------------------------------------------------------------------
# evaluate()
# ---------------------------------------------------------------------------


class TestArithmetic:
    def test_precedence(self) -> None:
        assert _eval("2+3*4") == 14.0
        assert _eval("(2+3)*4") == 20.0

    def test_left_associative(self) -> None:
        assert _eval("20-5-5") == 10.0
        assert _eval("100/10/2") == 5.0

    def test_decimal(self) -> None:
        assert _eval("1.5*2") == 3.0

    def test_division_by_zero(self) -> None:
        with pytest.raises(DivisionByZero, match="Division by zero"):
            _eval("5/0")

    def test_zero_numerator(self) -> None:
        assert _eval("0/5") == 0.0


class TestFunctions:
    @pytest.fixture()
    def sheet(self) -> Worksheet:
        ws = Worksheet()
        for coord, value in (("A1", 10.0), ("A2", 20.0), ("A3", 30.0)):
            ws.set_content(coord, Number(value))
        return ws

    def test_suma(self, sheet: Worksheet) -> None:
        assert _eval("SUMA(A1:A3)", sheet) == 60.0

    def test_min_max(self, sheet: Worksheet) -> None:
        assert _eval("MIN(A1:A3)", sheet) == 10.0
        assert _eval("MAX(A1:A3)", sheet) == 30.0

    def test_promedio(self, sheet: Worksheet) -> None:
        assert _eval("PROMEDIO(A1:A3)", sheet) == 20.0

    def test_mixed_arguments(self, sheet: Worksheet) -> None:
        assert _eval("MAX(A1;45;A3)", sheet) == 45.0

    def test_function_result_in_expression(self, sheet: Worksheet) -> None:
        assert _eval("PROMEDIO(A1:A3)*2", sheet) == 40.0

    def test_empty_aggregate(self) -> None:
        with pytest.raises(InsufficientOperands):
            evaluate(Aggregate(AggregateKind.MEAN, ()), Worksheet(), set())

    def test_empty_chains(self) -> None:
        ws = Worksheet()
        assert evaluate(BinaryChain(ChainKind.ADD, ()), ws, set()) == 0.0
        assert evaluate(BinaryChain(ChainKind.MULTIPLY, ()), ws, set()) == 1.0
        with pytest.raises(InsufficientOperands):
            evaluate(BinaryChain(ChainKind.DIVIDE, ()), ws, set())

    def test_single_child_subtract(self) -> None:
        tree = BinaryChain(ChainKind.SUBTRACT, (Value(5.0),))
        assert evaluate(tree, Worksheet(), set()) == 5.0


class TestReferences:
    def test_number_cell(self) -> None:
        ws = Worksheet()
        ws.set_content("A1", Number(10.0))
        assert _eval("A1+5", ws) == 15.0

    def test_formula_cell_evaluated_through(self) -> None:
        ws = Worksheet()
        ws.set_content("A1", Formula(parse_formula("2*3")))
        assert _eval("A1+1", ws) == 7.0

    def test_text_cell(self) -> None:
        ws = Worksheet()
        ws.set_content("A1", Text("hello"))
        with pytest.raises(NonNumericReference, match="A1"):
            _eval("A1+1", ws)

    def test_empty_cell(self) -> None:
        with pytest.raises(NonNumericReference, match="B7"):
            _eval("B7*2")

    def test_invalid_coordinate(self) -> None:
        with pytest.raises(UndefinedCellReference):
            evaluate(CellReference("A0"), Worksheet(), set())

    def test_self_reference(self) -> None:
        ws = Worksheet()
        ws.set_content("A1", Formula(parse_formula("A1")))
        with pytest.raises(CircularReference) as exc_info:
            evaluate(CellReference("A1"), ws, set())
        assert str(exc_info.value) == CIRCULAR_REFERENCE_TEXT

    def test_guard_restored_on_success(self) -> None:
        ws = Worksheet()
        ws.set_content("A1", Formula(parse_formula("2*3")))
        guard = {"Z9"}
        evaluate(parse_formula("A1+A1"), ws, guard)
        assert guard == {"Z9"}

    def test_guard_restored_on_failure(self) -> None:
        ws = Worksheet()
        ws.set_content("A1", Formula(parse_formula("B1+1")))
        ws.set_content("B1", Text("x"))
        guard = {"Z9"}
        with pytest.raises(NonNumericReference):
            evaluate(parse_formula("A1"), ws, guard)
        assert guard == {"Z9"}

    def test_same_cell_twice_is_not_circular(self) -> None:
        ws = Worksheet()
        ws.set_content("A1", Formula(parse_formula("1+1")))
        assert _eval("A1*A1", ws) == 4.0

    def test_unknown_node(self) -> None:
        with pytest.raises(TypeError):
            evaluate("A1", Worksheet(), set())  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# WorkbookEvaluator
# ---------------------------------------------------------------------------


class TestEngine:
    def test_is_calc_engine(self) -> None:
        assert isinstance(WorkbookEvaluator(Worksheet(), Settings()), CalcEngine)

    def test_propagation(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "5")
        wb.set("B1", "=A1*2")
        assert wb.value("B1") == "10.0"
        result = wb.set("A1", "7")
        assert wb.value("B1") == "14.0"
        assert result.changed == {"A1": "7.0", "B1": "14.0"}

    def test_delta_carries_formula_source(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "5")
        wb.set("B1", "=A1*2")
        result = wb.set("A1", "7")
        by_ref = {d.cell_ref: d for d in result.deltas}
        assert by_ref["A1"].formula is None
        assert by_ref["A1"].old_value == "5.0"
        assert by_ref["B1"].formula == "=(A1 * 2.0)"
        assert by_ref["B1"].old_value == "10.0"

    def test_unchanged_values_not_reported(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "5")
        wb.set("B1", "=A1*0")
        result = wb.set("A1", "6")
        assert result.changed == {"A1": "6.0"}
        assert result.evaluated_cells == 1

    def test_chain_depth(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "1")
        wb.set("B1", "=A1")
        wb.set("C1", "=B1")
        wb.set("D1", "=C1")
        result = wb.set("A1", "2")
        assert result.max_chain_depth == 3
        assert result.evaluated_cells == 3
        assert wb.value("D1") == "2.0"

    def test_diamond(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "1")
        wb.set("B1", "=A1+1")
        wb.set("C1", "=A1*2")
        wb.set("D1", "=B1+C1")
        assert wb.value("D1") == "4.0"
        wb.set("A1", "5")
        assert wb.value("D1") == "16.0"

    def test_edges_replaced_on_overwrite(self) -> None:
        wb = Workbook(Settings())
        wb.set("B1", "=A1+1")
        wb.set("B1", "=C1+1")
        assert wb.evaluator.dependents_of("A1") == set()
        assert wb.evaluator.dependents_of("c1") == {"B1"}
        assert wb.evaluator.precedents_of("B1") == {"C1"}

    def test_edges_dropped_when_formula_replaced_by_number(self) -> None:
        wb = Workbook(Settings())
        wb.set("B1", "=A1+1")
        wb.set("B1", "3")
        assert wb.evaluator.dependents_of("A1") == set()

    def test_evaluate_cell(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "4")
        wb.set("B1", "=A1/2")
        assert wb.evaluate("A1") == 4.0
        assert wb.evaluate("b1") == 2.0

    def test_evaluate_text_cell(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "hello")
        with pytest.raises(NonNumericReference):
            wb.evaluate("A1")

    def test_calculate(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "7")
        wb.set("B1", "=A1*2")
        wb.set("C1", "text")
        assert wb.evaluator.calculate() == {"B1": "14.0"}
        assert wb.evaluator.dependents_of("A1") == {"B1"}


class TestErrorsInCells:
    def test_self_cycle(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "=A1")
        assert wb.value("A1") == CIRCULAR_REFERENCE_TEXT
        with pytest.raises(CircularReference):
            wb.evaluate("A1")

    def test_indirect_cycle(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "=B1")
        wb.set("B1", "=C1")
        wb.set("C1", "=A1")
        for ref in ("A1", "B1", "C1"):
            assert wb.value(ref) == CIRCULAR_REFERENCE_TEXT
            with pytest.raises(CircularReference):
                wb.evaluate(ref)

    def test_breaking_a_cycle_recovers(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "=B1")
        wb.set("B1", "=C1")
        wb.set("C1", "=A1")
        wb.set("C1", "3")
        assert wb.value("A1") == "3.0"
        assert wb.value("B1") == "3.0"

    def test_division_by_zero_recovers(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "0")
        wb.set("B1", "=10/A1")
        assert wb.value("B1") == "Division by zero"
        assert wb.source("B1") == "=(10.0 / A1)"
        wb.set("A1", "2")
        assert wb.value("B1") == "5.0"

    def test_text_reference(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "hello")
        wb.set("B1", "=A1+1")
        assert wb.value("B1") == "Non-numeric value in A1"

    def test_compile_failure(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "=2+")
        assert wb.value("A1") == "#ERROR"
        assert isinstance(wb["A1"].content, Text)

    def test_custom_compile_error_text(self) -> None:
        wb = Workbook(Settings(compile_error_text="#BAD"))
        wb.set("A1", "=SUM(A2)")
        assert wb.value("A1") == "#BAD"

    def test_propagation_depth_limit(self) -> None:
        wb = Workbook(Settings(max_propagation_depth=1))
        wb.set("A1", "1")
        wb.set("B1", "=A1")
        wb.set("C1", "=B1")
        assert wb.value("C1") == "1.0"
        wb.set("A1", "2")
        assert wb.value("B1") == "2.0"
        assert wb.value("C1") == "Evaluation too deep at C1"

    def test_deep_reference_chain(self) -> None:
        wb = Workbook(Settings())
        last = sys.getrecursionlimit()
        wb.set("A1", "1")
        for row in range(2, last + 1):
            wb.set(f"A{row}", f"=A{row - 1}+1")
        assert wb.value(f"A{last}") == f"Evaluation too deep at A{last}"
        assert wb.value("A3") == "3.0"

    def test_deeply_nested_formula(self) -> None:
        wb = Workbook(Settings())
        terms = 3 * sys.getrecursionlimit()
        result = wb.set("A1", "=" + "+".join(["1"] * terms))
        assert wb.value("A1") == "Evaluation too deep at A1"
        assert result.changed == {"A1": "Evaluation too deep at A1"}
        source = wb.source("A1")
        assert source.startswith("=((")
        assert source.count("1.0") == terms

    def test_deeply_nested_formula_propagates(self) -> None:
        wb = Workbook(Settings())
        wb.set("A1", "1")
        wb.set("B1", "=" + "+".join(["A1"] * (3 * sys.getrecursionlimit())))
        result = wb.set("A1", "2")
        assert result.changed == {"A1": "2.0"}
        assert wb.value("B1") == "Evaluation too deep at B1"
