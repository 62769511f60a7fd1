"""Structured, non-fatal diagnostics reported during an evaluation."""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DiagnosticKind(str, Enum):
    """
    Category of a diagnostic.

    Values:
        - malformed_token: a word is neither an operator nor a number; it acts as END
        - missing_open_paren: a closing parenthesis has no opener
        - unbalanced_paren: an opener was still on the stack at the end
        - missing_operand: an operator lacked an operand, 0.0 was used
        - division_by_zero: the left operand was kept as the quotient
        - invalid_power: ^ overflowed (signed infinity) or had no real value (NaN)
        - missing_operators: operands were left over, the last one is the result
        - empty_result: nothing to return, the result is 0.0
    """

    MALFORMED_TOKEN = "malformed_token"
    MISSING_OPEN_PAREN = "missing_open_paren"
    UNBALANCED_PAREN = "unbalanced_paren"
    MISSING_OPERAND = "missing_operand"
    DIVISION_BY_ZERO = "division_by_zero"
    INVALID_POWER = "invalid_power"
    MISSING_OPERATORS = "missing_operators"
    EMPTY_RESULT = "empty_result"


class Diagnostic(BaseModel):
    """One anomaly met while evaluating; evaluation always carries on."""

    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind = Field(..., description="Category of the anomaly")
    message: str = Field(..., description="Human-readable description")
    position: int = Field(..., ge=0, description="Index of the word being processed when it was reported")

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
