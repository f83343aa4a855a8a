"""Formula compiler: tokenize -> shunting-yard postfix -> expression tree."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass

from gridcalc._utils import InvalidCoordinate, a1_to_rowcol, normalize, rowcol_to_a1
from gridcalc.calc._errors import (
    CompileError,
    EmptyFormula,
    InsufficientOperands,
    InvalidToken,
    MismatchedParentheses,
    TooManyOperands,
)
from gridcalc.calc._nodes import (
    Aggregate,
    AggregateKind,
    BinaryChain,
    CellReference,
    ChainKind,
    Node,
    Value,
    iter_nodes,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Token classification
# ---------------------------------------------------------------------------

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_CELL_REF_RE = re.compile(r"^[A-Za-z]+\d+$")
_RANGE_REF_RE = re.compile(r"^[A-Za-z]+\d+:[A-Za-z]+\d+$")

_OPERATOR_CHARS = "+-*/"
ARGUMENT_SEPARATOR = ";"

# function name -> node kind it compiles to
FUNCTIONS: dict[str, AggregateKind | ChainKind] = {
    "SUMA": ChainKind.ADD,
    "MIN": AggregateKind.MIN,
    "MAX": AggregateKind.MAX,
    "PROMEDIO": AggregateKind.MEAN,
}

_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2}
_OPERATOR_KINDS = {
    "+": ChainKind.ADD,
    "-": ChainKind.SUBTRACT,
    "*": ChainKind.MULTIPLY,
    "/": ChainKind.DIVIDE,
}


class TokenType(enum.Enum):
    NUMBER = "number"
    CELL_REFERENCE = "cell_reference"
    FUNCTION = "function"
    OPERATOR = "operator"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    ARGUMENT_SEPARATOR = ";"


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str


def _classify(text: str) -> Token:
    if _NUMBER_RE.match(text):
        return Token(TokenType.NUMBER, text)
    if _CELL_REF_RE.match(text) or _RANGE_REF_RE.match(text):
        try:
            canonical = ":".join(normalize(part) for part in text.split(":"))
        except InvalidCoordinate:
            raise InvalidToken(text) from None
        return Token(TokenType.CELL_REFERENCE, canonical)
    if text.upper() in FUNCTIONS:
        return Token(TokenType.FUNCTION, text.upper())
    raise InvalidToken(text)


def tokenize(formula: str) -> list[Token]:
    """Split formula text into classified tokens.

    Operators, parentheses and ``;`` always end the current run; whitespace
    separates runs and is otherwise ignored.
    """
    tokens: list[Token] = []
    current = ""
    for ch in formula:
        if ch.isspace() or ch in _OPERATOR_CHARS or ch in "();":
            if current:
                tokens.append(_classify(current))
                current = ""
            if ch in _OPERATOR_CHARS:
                tokens.append(Token(TokenType.OPERATOR, ch))
            elif ch == "(":
                tokens.append(Token(TokenType.LEFT_PAREN, ch))
            elif ch == ")":
                tokens.append(Token(TokenType.RIGHT_PAREN, ch))
            elif ch == ARGUMENT_SEPARATOR:
                tokens.append(Token(TokenType.ARGUMENT_SEPARATOR, ch))
            continue
        current += ch
    if current:
        tokens.append(_classify(current))
    return tokens


# ---------------------------------------------------------------------------
# Shunting-yard
# ---------------------------------------------------------------------------


def to_postfix(tokens: list[Token]) -> list[Token]:
    """Reorder infix tokens into postfix (RPN).

    Functions wait on the operator stack until their closing parenthesis.
    Argument separators are dropped: function arity comes from the tree
    builder, not from counting separators.
    """
    output: list[Token] = []
    stack: list[Token] = []

    for token in tokens:
        if token.type in (TokenType.NUMBER, TokenType.CELL_REFERENCE):
            output.append(token)
        elif token.type in (TokenType.FUNCTION, TokenType.LEFT_PAREN):
            stack.append(token)
        elif token.type is TokenType.RIGHT_PAREN:
            while stack and stack[-1].type is not TokenType.LEFT_PAREN:
                output.append(stack.pop())
            if not stack:
                raise MismatchedParentheses()
            stack.pop()
            if stack and stack[-1].type is TokenType.FUNCTION:
                output.append(stack.pop())
        elif token.type is TokenType.OPERATOR:
            prec = _PRECEDENCE[token.text]
            while (
                stack
                and stack[-1].type is TokenType.OPERATOR
                and _PRECEDENCE[stack[-1].text] >= prec
            ):
                output.append(stack.pop())
            stack.append(token)
        # ARGUMENT_SEPARATOR: nothing to emit

    while stack:
        token = stack.pop()
        if token.type is TokenType.LEFT_PAREN:
            raise MismatchedParentheses()
        output.append(token)

    return output


# ---------------------------------------------------------------------------
# Tree construction
# ---------------------------------------------------------------------------


def expand_range(range_ref: str) -> list[str]:
    """Expand ``"A1:B2"`` column by column: ``["A1", "A2", "B1", "B2"]``.

    Reversed bounds (``"B2:A1"``) are normalized to the same rectangle.
    """
    parts = range_ref.split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid range: {range_ref!r}")

    start_row, start_col = a1_to_rowcol(parts[0])
    end_row, end_col = a1_to_rowcol(parts[1])

    r_min, r_max = min(start_row, end_row), max(start_row, end_row)
    c_min, c_max = min(start_col, end_col), max(start_col, end_col)

    return [
        rowcol_to_a1(r, c)
        for c in range(c_min, c_max + 1)
        for r in range(r_min, r_max + 1)
    ]


def build_tree(postfix: list[Token]) -> Node:
    """Fold postfix tokens into a single expression tree."""
    stack: list[Node] = []

    for token in postfix:
        if token.type is TokenType.NUMBER:
            stack.append(Value(float(token.text)))
        elif token.type is TokenType.CELL_REFERENCE:
            if ":" in token.text:
                stack.extend(CellReference(ref) for ref in expand_range(token.text))
            else:
                stack.append(CellReference(token.text))
        elif token.type is TokenType.OPERATOR:
            if len(stack) < 2:
                raise InsufficientOperands(f"operator {token.text!r}")
            right = stack.pop()
            left = stack.pop()
            stack.append(BinaryChain(_OPERATOR_KINDS[token.text], (left, right)))
        elif token.type is TokenType.FUNCTION:
            # A function swallows everything still on the stack.
            children = tuple(stack)
            stack.clear()
            if not children:
                raise InsufficientOperands(f"function {token.text}")
            kind = FUNCTIONS[token.text]
            if isinstance(kind, ChainKind):
                stack.append(BinaryChain(kind, children))
            else:
                stack.append(Aggregate(kind, children))
        else:
            raise MismatchedParentheses()

    if not stack:
        raise InsufficientOperands("formula")
    if len(stack) > 1:
        raise TooManyOperands(len(stack))
    return stack[0]


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def parse_formula(formula: str) -> Node:
    """Compile formula text (no leading ``=``) or raise a CompileError."""
    if formula is None or not formula.strip():
        raise EmptyFormula()
    tokens = tokenize(formula)
    if not tokens:
        raise EmptyFormula()
    return build_tree(to_postfix(tokens))


def compile_formula(formula: str | None) -> Node | None:
    """Compile formula text, returning ``None`` instead of raising.

    A leading ``=`` is tolerated.  Callers substitute a visible error when
    nothing comes back.
    """
    if formula is None:
        return None
    body = formula.strip()
    if body.startswith("="):
        body = body[1:]
    try:
        return parse_formula(body)
    except CompileError as e:
        logger.debug("Cannot compile formula %r: %s", formula, e)
        return None


def all_references(node: Node) -> list[str]:
    """Distinct coordinates read by *node*, in first-seen order."""
    refs: list[str] = []
    seen: set[str] = set()
    for n in iter_nodes(node):
        if isinstance(n, CellReference) and n.coordinate not in seen:
            refs.append(n.coordinate)
            seen.add(n.coordinate)
    return refs
