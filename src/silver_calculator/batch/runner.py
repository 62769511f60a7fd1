"""Evaluate batches of expressions, in worker processes when more than one is allowed."""
from collections import Counter
from functools import partial
from multiprocessing import Pool, cpu_count
from pathlib import Path
from typing import Iterator, List, Sequence

from pydantic import BaseModel, ConfigDict, Field

from silver_calculator.common.diagnostics import DiagnosticKind
from silver_calculator.common.evaluator import ExpressionEvaluator
from silver_calculator.common.logger import logger
from silver_calculator.common.operations import OperationRequest, OperationResult
from silver_calculator.common.settings import EvaluatorSettings


def evaluate_request(request: OperationRequest, settings: EvaluatorSettings) -> OperationResult:
    """
    Evaluate one request.

    Diagnostics never fail a request; only an expression rejected by the
    settings (strict tokens, token bound) produces an error result.

    :param OperationRequest request: Expression and its location
    :param EvaluatorSettings settings: Evaluator options

    :return: Value and diagnostics, or the rejection reason
    :rtype: OperationResult
    """
    try:
        evaluation = ExpressionEvaluator(request.expression, settings).evaluate()
    except ValueError as exc:
        logger.error(f"👷❌ Rejected line {request.line_number} of {request.source or 'input'}: {exc}")
        return OperationResult.from_error(request, exc)
    return OperationResult.from_evaluation(request, evaluation)


class BatchReport(BaseModel):
    """Results of a batch, in input order, with summary counts."""

    results: List[OperationResult] = Field(default_factory=list)

    @property
    def errors(self) -> int:
        return sum(1 for result in self.results if result.failed)

    @property
    def with_diagnostics(self) -> int:
        return sum(1 for result in self.results if result.diagnostics)

    def diagnostic_counts(self) -> Counter:
        """
        Count diagnostics of each kind over the whole batch.

        :return: Counter keyed by DiagnosticKind
        :rtype: Counter
        """
        return Counter(diagnostic.kind for result in self.results for diagnostic in result.diagnostics)

    def summary(self) -> str:
        """
        One-line summary, e.g. "3 expressions, 1 with diagnostics (division_by_zero: 1), 0 rejected".

        :rtype: str
        """
        counts = self.diagnostic_counts()
        text = f"{len(self.results)} expressions, {self.with_diagnostics} with diagnostics"
        if counts:
            # Listed in DiagnosticKind order
            text += " (" + ", ".join(
                f"{kind.value}: {counts[kind]}" for kind in DiagnosticKind if counts[kind]
            ) + ")"
        return f"{text}, {self.errors} rejected"

    def render(self) -> str:
        lines = [line for result in self.results for line in result.format_lines()]
        lines.append("")
        lines.append(f"# {self.summary()}")
        return "\n".join(lines) + "\n"

    def write(self, output_file: Path) -> None:
        output_file.write_text(self.render(), encoding="utf-8")
        logger.info(f"📄✅ Report written to {output_file}")


class BatchRunner(BaseModel):
    """
    Evaluate many expressions with the same settings.

    Each evaluation owns its stacks, so expressions are independent and can be
    spread over a pool of worker processes. Results always come back in input
    order. With a single worker everything runs in the calling process.
    """

    model_config = ConfigDict(frozen=True)

    settings: EvaluatorSettings = Field(default_factory=EvaluatorSettings, description="Evaluator options")
    workers: int = Field(default_factory=cpu_count, ge=1, description="Maximum number of worker processes")

    def iter_results(self, requests: Sequence[OperationRequest]) -> Iterator[OperationResult]:
        """
        Evaluate requests lazily, yielding each result as soon as it is ready in order.

        :param Sequence[OperationRequest] requests: Expressions to evaluate

        :return: Iterator of results in input order
        :rtype: Iterator[OperationResult]
        """
        evaluate = partial(evaluate_request, settings=self.settings)
        processes = min(self.workers, len(requests))

        if processes <= 1:
            yield from map(evaluate, requests)
            return

        with Pool(processes=processes) as pool:
            yield from pool.imap(evaluate, requests)

    def run(self, requests: Sequence[OperationRequest]) -> BatchReport:
        """
        Evaluate every request and collect the report.

        :param Sequence[OperationRequest] requests: Expressions to evaluate

        :return: Report over all requests
        :rtype: BatchReport
        """
        logger.info(f"🏁 Evaluating {len(requests)} expressions with up to {self.workers} workers")
        report = BatchReport(results=list(self.iter_results(requests)))
        logger.info(f"✅ {report.summary()}")
        return report
