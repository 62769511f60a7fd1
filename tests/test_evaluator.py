"""Test class ExpressionEvaluator."""
import math

import pytest

from silver_calculator.common.diagnostics import DiagnosticKind
from silver_calculator.common.evaluator import (
    EvaluationResult,
    ExpressionEvaluator,
    ExpressionTooLongError,
    evaluate,
)
from silver_calculator.common.settings import EvaluatorSettings
from silver_calculator.common.tokens import InvalidTokenError


@pytest.mark.parametrize("expr,expected", [
    ("3 + 4", 7.0),
    ("10 - 2", 8.0),
    ("3 * 5", 15.0),
    ("8 / 2", 4.0),
    ("2 ^ 10", 1024.0),
    ("( 2 + 3 ) * 4", 20.0),
    ("3 + 4 * ( 2 - 1 )", 7.0),
    ("7 + 3 * 2 - 4 / 2", 11.0),
    ("2 * ( 3 + ( 4 - 1 ) ) ^ 2", 72.0),
    ("-3 * -2", 6.0),
    ("2 ^ -1", 0.5),
])
def test_evaluate_valid(expr, expected):
    """Well-formed expressions evaluate to the arithmetic value without diagnostics."""
    result = ExpressionEvaluator(expr).evaluate()
    assert result.value == expected
    assert result.ok
    assert result.diagnostics == []


def test_floating_point_precision():
    """Values are ordinary floats."""
    assert evaluate("0.1 + 0.2").value == pytest.approx(0.3)


@pytest.mark.parametrize("expr,expected", [
    ("2 + 3 * 4", 14.0),
    ("2 * 3 + 4", 10.0),
    ("2 + 3 ^ 2", 11.0),
    ("2 * 3 ^ 2", 18.0),
])
def test_precedence_without_parentheses(expr, expected):
    """Exponent binds tighter than * and /, which bind tighter than + and -."""
    assert evaluate(expr).value == expected


def test_exponent_right_associative():
    """2 ^ 3 ^ 2 is 2 ^ (3 ^ 2), not (2 ^ 3) ^ 2."""
    assert evaluate("2 ^ 3 ^ 2").value == 512.0


@pytest.mark.parametrize("expr,expected", [
    ("8 / 4 / 2", 1.0),
    ("10 - 4 - 3", 3.0),
    ("2 * 6 / 3", 4.0),
    ("1 - 2 + 3", 2.0),
])
def test_left_associative(expr, expected):
    """Equal-precedence operators are applied left to right."""
    assert evaluate(expr).value == expected


def test_single_literal():
    """A bare number evaluates to itself."""
    result = evaluate("42")
    assert result.value == 42.0
    assert result.diagnostics == []


@pytest.mark.parametrize("expr", ["", "   "])
def test_empty_expression(expr):
    """An empty expression gives 0.0 and an empty_result diagnostic."""
    result = evaluate(expr)
    assert result.value == 0.0
    assert result.kinds == [DiagnosticKind.EMPTY_RESULT]


@pytest.mark.parametrize("expr,expected", [
    ("5 / 0", 5.0),
    ("0 / 0", 0.0),
    ("5 / ( 2 - 2 )", 5.0),
    ("1 + 6 / 0 * 2", 13.0),
])
def test_division_by_zero_returns_left_operand(expr, expected):
    """Division by zero is not fatal: the left operand is kept unchanged."""
    result = evaluate(expr)
    assert result.value == expected
    assert result.kinds == [DiagnosticKind.DIVISION_BY_ZERO]
    assert not math.isinf(result.value)


def test_missing_closing_parenthesis():
    """An unclosed parenthesis is discarded while draining."""
    result = evaluate("( 1 + 2")
    assert result.value == 3.0
    assert result.kinds == [DiagnosticKind.UNBALANCED_PAREN]
    assert result.diagnostics[0].position == 4


def test_missing_opening_parenthesis():
    """A closing parenthesis without opener stops at the sentinel."""
    result = evaluate("1 + 2 )")
    assert result.value == 3.0
    assert result.kinds == [DiagnosticKind.MISSING_OPEN_PAREN]
    assert result.diagnostics[0].position == 3


def test_leading_closing_parenthesis():
    """Processing continues after a missing opening parenthesis."""
    result = evaluate(") 5")
    assert result.value == 5.0
    assert result.kinds == [DiagnosticKind.MISSING_OPEN_PAREN]


def test_nested_unclosed_parentheses():
    """Each unclosed opener is reported."""
    result = evaluate("( ( 2")
    assert result.value == 2.0
    assert result.kinds == [DiagnosticKind.UNBALANCED_PAREN, DiagnosticKind.UNBALANCED_PAREN]


def test_empty_parentheses():
    """A matched pair with nothing inside leaves no result."""
    result = evaluate("( )")
    assert result.value == 0.0
    assert result.kinds == [DiagnosticKind.EMPTY_RESULT]


def test_missing_operand_is_zero():
    """A missing operand is replaced by 0.0."""
    result = evaluate("3 +")
    assert result.value == 3.0
    assert result.kinds == [DiagnosticKind.MISSING_OPERAND]


def test_lone_operator():
    """Both operands of a lone operator are missing."""
    result = evaluate("*")
    assert result.value == 0.0
    assert result.kinds == [DiagnosticKind.MISSING_OPERAND, DiagnosticKind.MISSING_OPERAND]


def test_missing_operators_keeps_top_value():
    """Extra operands are reported but the last value is still returned."""
    result = evaluate("3 4")
    assert result.value == 4.0
    assert result.kinds == [DiagnosticKind.MISSING_OPERATORS]


def test_malformed_token_drains_stack():
    """A malformed word is reported and acts as END at its position."""
    result = evaluate("4 * 2 abc")
    assert result.value == 8.0
    assert result.kinds == [DiagnosticKind.MALFORMED_TOKEN]
    assert result.diagnostics[0].position == 3
    assert "abc" in result.diagnostics[0].message


def test_malformed_token_then_continue():
    """Evaluation goes on with the words after a malformed one."""
    # "1 +" is reduced at "x" (missing lhs of +), then "* 2" applies to the result
    result = evaluate("1 + x * 2")
    assert result.value == 2.0
    assert result.kinds == [DiagnosticKind.MALFORMED_TOKEN, DiagnosticKind.MISSING_OPERAND]


def test_concatenated_expression_is_malformed():
    """Operators must be separated by spaces."""
    result = evaluate("3+4")
    assert result.value == 0.0
    assert result.kinds == [DiagnosticKind.MALFORMED_TOKEN, DiagnosticKind.EMPTY_RESULT]


def test_strict_tokens_raise():
    """In strict mode a malformed word aborts the evaluation."""
    settings = EvaluatorSettings(strict_tokens=True)
    with pytest.raises(InvalidTokenError):
        ExpressionEvaluator("4 * 2 abc", settings).evaluate()


def test_strict_tokens_accept_valid_expression():
    """Strict mode does not change valid expressions."""
    settings = EvaluatorSettings(strict_tokens=True)
    assert evaluate("( 1 + 2", settings).kinds == [DiagnosticKind.UNBALANCED_PAREN]


def test_max_tokens():
    """Expressions longer than the bound are rejected before evaluation."""
    settings = EvaluatorSettings(max_tokens=3)
    assert evaluate("1 + 2", settings).value == 3.0
    with pytest.raises(ExpressionTooLongError):
        ExpressionEvaluator("1 + 2 + 3", settings)


@pytest.mark.parametrize("expr", ["-8 ^ 0.5", "-1 ^ 0.25"])
def test_power_domain_error(expr):
    """A negative base with a fractional exponent has no real value: NaN and a diagnostic."""
    result = evaluate(expr)
    assert math.isnan(result.value)
    assert result.kinds == [DiagnosticKind.INVALID_POWER]


@pytest.mark.parametrize("expr,expected", [
    ("10 ^ 400", math.inf),
    ("1e308 ^ 2", math.inf),
    ("-10 ^ 401", -math.inf),
    ("-10 ^ 400", math.inf),
    ("0.1 ^ -400", math.inf),
    ("0 ^ -1", math.inf),
    ("-0 ^ -1", -math.inf),
    ("-0 ^ -2", math.inf),
])
def test_power_overflow_is_signed_infinity(expr, expected):
    """Overflow and zero raised to a negative power give a signed infinity, not NaN."""
    result = evaluate(expr)
    assert result.value == expected
    assert result.kinds == [DiagnosticKind.INVALID_POWER]


def test_power_and_product_overflow_agree():
    """Overflowing through ^ or through * lands on the same value."""
    assert evaluate("1e308 ^ 2").value == evaluate("1e308 * 1e308").value == math.inf


@pytest.mark.parametrize("expr", ["1_000 + 1", "inf + 1", "1 + \u0661"])
def test_python_only_literals_are_malformed(expr):
    """Literals only Python's float() understands are reported as malformed."""
    assert DiagnosticKind.MALFORMED_TOKEN in evaluate(expr).kinds


@pytest.mark.parametrize("expr", ["( 1 + 2", "5 / 0", "2 ^ 3 ^ 2", "1 + x * 2", ""])
def test_idempotent(expr):
    """Fresh evaluators on the same input give identical results and diagnostics."""
    first = ExpressionEvaluator(expr).evaluate()
    second = ExpressionEvaluator(expr).evaluate()
    assert first == second


def test_same_instance_reevaluates_from_scratch():
    """Calling evaluate() twice on one instance resets the stacks."""
    evaluator = ExpressionEvaluator("3 4 +")
    assert evaluator.evaluate() == evaluator.evaluate()


def test_result_model():
    """EvaluationResult exposes the expression and is immutable."""
    result = evaluate("1 + 1")
    assert isinstance(result, EvaluationResult)
    assert result.expression == "1 + 1"
    with pytest.raises(ValueError):
        result.value = 3.0
