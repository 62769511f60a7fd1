"""Pydantic models for batch evaluation requests and results."""
from typing import List, Optional

from pydantic import BaseModel, Field

from silver_calculator.common.diagnostics import Diagnostic
from silver_calculator.common.evaluator import EvaluationResult


class OperationRequest(BaseModel):
    """One expression read from a batch source."""

    expression: str = Field(..., description="Space-separated arithmetic expression")
    line_number: int = Field(default=1, ge=1, description="Line of the expression in its source")
    source: str = Field(default="", description="File, or archive member, the expression was read from")


class OperationResult(BaseModel):
    """
    Outcome of one batch expression.

    Either `result` is set, with the diagnostics reported on the way, or the
    expression was rejected before evaluation and `error` says why.
    """

    expression: str = Field(..., description="Original arithmetic expression")
    line_number: int = Field(default=1, ge=1, description="Line of the expression in its source")
    source: str = Field(default="", description="File, or archive member, the expression was read from")
    result: Optional[float] = Field(default=None, description="Evaluated numeric result of the expression")
    diagnostics: List[Diagnostic] = Field(default_factory=list, description="Anomalies reported while evaluating")
    error: Optional[str] = Field(default=None, description="Reason the expression was rejected")

    @classmethod
    def from_evaluation(cls, request: OperationRequest, evaluation: EvaluationResult) -> "OperationResult":
        return cls(
            expression=request.expression,
            line_number=request.line_number,
            source=request.source,
            result=evaluation.value,
            diagnostics=evaluation.diagnostics,
        )

    @classmethod
    def from_error(cls, request: OperationRequest, exc: Exception) -> "OperationResult":
        return cls(
            expression=request.expression,
            line_number=request.line_number,
            source=request.source,
            error=str(exc),
        )

    @property
    def failed(self) -> bool:
        return self.error is not None

    def format_lines(self) -> List[str]:
        """
        Render the result for the batch report.

        The first line holds the location, the expression and its value (or the
        error); each diagnostic follows on its own indented line.

        :return: Report lines for this expression
        :rtype: List[str]
        """
        location = f"{self.source}:{self.line_number}" if self.source else str(self.line_number)
        if self.failed:
            return [f"{location}: {self.expression} -> ERROR: {self.error}"]

        lines = [f"{location}: {self.expression} = {self.result}"]
        lines.extend(
            f"    ! {diagnostic.kind.value} at token {diagnostic.position}: {diagnostic.message}"
            for diagnostic in self.diagnostics
        )
        return lines
