"""Exception hierarchy for formula compilation and evaluation.

Two families share a common base:

* :class:`CompileError` - the formula text could not be turned into a tree.
* :class:`EvalError` - a compiled tree could not produce a number.

Neither is fatal.  The engine catches them per cell and shows the error
message in place of a value.
"""

from __future__ import annotations

CIRCULAR_REFERENCE_TEXT = "#ERROR_CIRCULAR_REFERENCE"


class FormulaError(Exception):
    """Base class for every formula failure."""


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


class CompileError(FormulaError):
    """Formula text is malformed."""


class EmptyFormula(CompileError):
    def __init__(self) -> None:
        super().__init__("Formula cannot be empty")


class InvalidToken(CompileError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Invalid token: {text}")
        self.text = text


class MismatchedParentheses(CompileError):
    def __init__(self) -> None:
        super().__init__("Mismatched parentheses")


class InsufficientOperands(CompileError):
    def __init__(self, what: str = "operator") -> None:
        super().__init__(f"Insufficient operands for {what}")
        self.what = what


class TooManyOperands(CompileError):
    def __init__(self, count: int) -> None:
        super().__init__(f"Too many operands: {count} values left over")
        self.count = count


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


class EvalError(FormulaError):
    """A formula failed to produce a number."""


class DivisionByZero(EvalError):
    def __init__(self) -> None:
        super().__init__("Division by zero")


class NonNumericReference(EvalError):
    def __init__(self, coordinate: str) -> None:
        super().__init__(f"Non-numeric value in {coordinate}")
        self.coordinate = coordinate


class UndefinedCellReference(EvalError):
    def __init__(self, coordinate: str) -> None:
        super().__init__(f"Referenced cell does not exist: {coordinate}")
        self.coordinate = coordinate


class CircularReference(EvalError):
    def __init__(self, coordinate: str) -> None:
        super().__init__(CIRCULAR_REFERENCE_TEXT)
        self.coordinate = coordinate


class EvaluationDepthExceeded(EvalError):
    def __init__(self, coordinate: str) -> None:
        super().__init__(f"Evaluation too deep at {coordinate}")
        self.coordinate = coordinate
