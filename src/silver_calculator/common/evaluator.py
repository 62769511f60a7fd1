"""Evaluate infix arithmetic expressions with an operator stack and an operand stack."""
from collections.abc import Callable as ABCCallable
import math
import operator
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from silver_calculator.common.diagnostics import Diagnostic, DiagnosticKind
from silver_calculator.common.logger import logger
from silver_calculator.common.precedence import should_reduce
from silver_calculator.common.settings import EvaluatorSettings
from silver_calculator.common.tokens import END_TOKEN, InvalidTokenError, Token, TokenKind, Tokenizer


# Type alias for operator functions (taking two floats, returning a float)
OperatorFn: ABCCallable[[float, float], float] = Callable[[float, float], float]

BINARY_OPERATIONS: dict[TokenKind, OperatorFn] = {
    TokenKind.EXPONENT: math.pow,
    TokenKind.MULTIPLY: operator.mul,
    TokenKind.DIVIDE: operator.truediv,
    TokenKind.ADD: operator.add,
    TokenKind.SUBTRACT: operator.sub,
}


def signed_infinity(base: float, exponent: float) -> float:
    """
    Infinity with the sign `base ^ exponent` would have.

    Only an odd integer exponent keeps the sign of a negative base (or of -0.0).

    :param float base: Left operand of ^
    :param float exponent: Right operand of ^

    :return: math.inf or -math.inf
    :rtype: float
    """
    odd = exponent.is_integer() and int(exponent) % 2 == 1
    return math.copysign(math.inf, base) if odd else math.inf


class ExpressionTooLongError(ValueError):
    """Raised when an expression has more words than the configured bound."""


class EvaluationResult(BaseModel):
    """Value of an expression together with everything reported while computing it."""

    model_config = ConfigDict(frozen=True)

    expression: str = Field(..., description="Evaluated expression")
    value: float = Field(..., description="Numeric result")
    diagnostics: List[Diagnostic] = Field(default_factory=list, description="Anomalies in the order met")

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    @property
    def kinds(self) -> List[DiagnosticKind]:
        return [diagnostic.kind for diagnostic in self.diagnostics]


class ExpressionEvaluator:
    """
    Evaluate an infix expression in a single left-to-right pass.

    Algorithm (operator-precedence parsing fused with evaluation):
        1. Split the expression on whitespace and type each word
        2. Push numbers on the operand stack
        3. Before pushing an operator, apply every stacked operator whose stack
           weight is at least the incoming operator's input weight
        4. A closing parenthesis applies operators down to its opening parenthesis
        5. A final END token drains the operator stack

    The operator stack starts with an END sentinel whose stack weight is lower
    than any input weight, so reductions always stop there.

    Errors never abort the evaluation: each anomaly is recorded as a Diagnostic
    and a substitute value keeps the computation going. Division by zero yields
    the left operand unchanged, a convention kept for compatibility.

    Examples:
        - "2 + 3 * 4" -> 14.0
        - "2 ^ 3 ^ 2" -> 512.0 (exponentiation is right-associative)
        - "5 / 0" -> 5.0 with a division_by_zero diagnostic
    """

    def __init__(self, expression: str, settings: Optional[EvaluatorSettings] = None):
        self.expression = expression
        self.settings = settings or EvaluatorSettings()
        self._words: List[str] = Tokenizer.split(expression)

        if self.settings.max_tokens is not None and len(self._words) > self.settings.max_tokens:
            raise ExpressionTooLongError(
                f"Expression has {len(self._words)} tokens, limit is {self.settings.max_tokens}"
            )

        self._operators: List[TokenKind] = []
        self._operands: List[float] = []
        self._diagnostics: List[Diagnostic] = []
        self._position: int = 0

    def evaluate(self) -> EvaluationResult:
        """
        Evaluate the expression.

        :return: Value and diagnostics
        :rtype: EvaluationResult
        :raises InvalidTokenError: In strict mode, if a word cannot be tokenized
        """
        self._operators = [TokenKind.END]
        self._operands = []
        self._diagnostics = []

        for position, word in enumerate(self._words):
            self._position = position
            self._process(self._to_token(word))

        # Dummy END token pops the remaining operators and leaves the result
        self._position = len(self._words)
        self._process(END_TOKEN)

        value = self._extract_result()
        return EvaluationResult(
            expression=self.expression, value=value, diagnostics=list(self._diagnostics)
        )

    def _report(self, kind: DiagnosticKind, message: str) -> None:
        logger.warning(f"🧮⚠️ {message} (token {self._position}): {self.expression!r}")
        self._diagnostics.append(Diagnostic(kind=kind, message=message, position=self._position))

    def _to_token(self, word: str) -> Token:
        try:
            return Tokenizer.to_token(word)
        except InvalidTokenError as exc:
            if self.settings.strict_tokens:
                raise
            # Legacy recovery: the word is replaced by END, which drains the stacks here
            self._report(DiagnosticKind.MALFORMED_TOKEN, str(exc))
            return END_TOKEN

    def _process(self, token: Token) -> None:
        """Apply one token to the stacks; missing opening parentheses are detected here."""
        kind = token.kind

        if kind is TokenKind.VALUE:
            self._operands.append(token.value)

        elif kind is TokenKind.CLOSE_PAREN:
            top = self._operators[-1]
            while top not in (TokenKind.OPEN_PAREN, TokenKind.END):
                self._apply(top)
                top = self._operators[-1]
            if top is TokenKind.OPEN_PAREN:
                self._operators.pop()
            else:
                self._report(DiagnosticKind.MISSING_OPEN_PAREN, "Missing open parenthesis")

        else:
            top = self._operators[-1]
            while should_reduce(kind, top):
                self._apply(top)
                top = self._operators[-1]
            if kind is not TokenKind.END:
                self._operators.append(kind)

    def _apply(self, kind: TokenKind) -> None:
        """Pop the operator on top of the stack and replace its operands with the result."""
        if kind is TokenKind.OPEN_PAREN:
            # Only reachable while draining: the opener was never closed
            self._report(DiagnosticKind.UNBALANCED_PAREN, "Unbalanced parentheses")
            self._operators.pop()
            return

        rhs = self._pop_operand()
        lhs = self._pop_operand()
        self._operands.append(self._compute(kind, lhs, rhs))
        self._operators.pop()

    def _compute(self, kind: TokenKind, lhs: float, rhs: float) -> float:
        if kind is TokenKind.DIVIDE and rhs == 0:
            self._report(DiagnosticKind.DIVISION_BY_ZERO, "Division by zero")
            return lhs
        try:
            return BINARY_OPERATIONS[kind](lhs, rhs)
        except OverflowError:
            self._report(DiagnosticKind.INVALID_POWER, f"Exponentiation overflow {lhs} ^ {rhs}")
            return signed_infinity(lhs, rhs)
        except ValueError as exc:
            if lhs == 0 and rhs < 0:
                self._report(DiagnosticKind.INVALID_POWER, f"Zero raised to a negative power {lhs} ^ {rhs}")
                return signed_infinity(lhs, rhs)
            self._report(DiagnosticKind.INVALID_POWER, f"Invalid exponentiation {lhs} ^ {rhs}: {exc}")
            return math.nan

    def _pop_operand(self) -> float:
        if not self._operands:
            self._report(DiagnosticKind.MISSING_OPERAND, "Missing operand")
            return 0.0
        return self._operands.pop()

    def _extract_result(self) -> float:
        if not self._operands:
            self._report(DiagnosticKind.EMPTY_RESULT, "Missing operand")
            return 0.0

        result = self._operands.pop()
        if self._operands:
            self._report(DiagnosticKind.MISSING_OPERATORS, "Missing operators")
        return result


def evaluate(expression: str, settings: Optional[EvaluatorSettings] = None) -> EvaluationResult:
    """
    Evaluate an expression with a fresh evaluator.

    :param str expression: Space-separated infix expression, e.g. "3 + 4 * ( 2 - 1 )"
    :param EvaluatorSettings settings: Optional evaluator settings

    :return: Value and diagnostics
    :rtype: EvaluationResult
    """
    return ExpressionEvaluator(expression, settings).evaluate()
