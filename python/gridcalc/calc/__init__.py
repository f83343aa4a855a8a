"""gridcalc.calc - formula compiler, evaluator and dependency engine."""

from gridcalc.calc._content import (
    EMPTY,
    Content,
    Empty,
    Formula,
    Number,
    Text,
    format_number,
    parse_content,
)
from gridcalc.calc._errors import (
    CIRCULAR_REFERENCE_TEXT,
    CircularReference,
    CompileError,
    DivisionByZero,
    EmptyFormula,
    EvalError,
    EvaluationDepthExceeded,
    FormulaError,
    InsufficientOperands,
    InvalidToken,
    MismatchedParentheses,
    NonNumericReference,
    TooManyOperands,
    UndefinedCellReference,
)
from gridcalc.calc._evaluator import WorkbookEvaluator, evaluate
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._nodes import (
    Aggregate,
    AggregateKind,
    BinaryChain,
    CellReference,
    ChainKind,
    Node,
    Value,
    render,
)
from gridcalc.calc._parser import (
    all_references,
    compile_formula,
    expand_range,
    parse_formula,
    tokenize,
)
from gridcalc.calc._protocol import CalcEngine, CellDelta, RecalcResult

__all__ = [
    "Aggregate",
    "AggregateKind",
    "BinaryChain",
    "CIRCULAR_REFERENCE_TEXT",
    "CalcEngine",
    "CellDelta",
    "CellReference",
    "ChainKind",
    "CircularReference",
    "CompileError",
    "Content",
    "DependencyGraph",
    "DivisionByZero",
    "EMPTY",
    "Empty",
    "EmptyFormula",
    "EvalError",
    "EvaluationDepthExceeded",
    "Formula",
    "FormulaError",
    "InsufficientOperands",
    "InvalidToken",
    "MismatchedParentheses",
    "Node",
    "NonNumericReference",
    "Number",
    "RecalcResult",
    "Text",
    "TooManyOperands",
    "UndefinedCellReference",
    "Value",
    "WorkbookEvaluator",
    "all_references",
    "compile_formula",
    "evaluate",
    "expand_range",
    "format_number",
    "parse_content",
    "parse_formula",
    "render",
    "tokenize",
]
