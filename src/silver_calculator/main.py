"""
Command-line entrypoint.

Two modes:
- `--expression`: evaluate the argument directly and print the value and its diagnostics
- otherwise the argument is a file of expressions (or an archive of such files);
  every line is evaluated, in a pool of worker processes, and a report with the
  diagnostics of each line is written next to it
"""

import argparse
from multiprocessing import cpu_count
from pathlib import Path
import sys
from typing import Optional

from pydantic import BaseModel, Field, FilePath, ValidationError

from silver_calculator.batch.runner import BatchReport, BatchRunner
from silver_calculator.batch.sources import ExpressionSource
from silver_calculator.common.evaluator import ExpressionEvaluator
from silver_calculator.common.settings import EvaluatorSettings


class CliArgs(BaseModel):
    """
    Pydantic model used to validate file-mode CLI arguments.

    Attributes
    ----------
    file_path : FilePath
        Path to the file containing arithmetic expressions.
    settings : EvaluatorSettings
        Evaluator options given on the command line.
    workers : int
        Maximum number of worker processes.
    """

    file_path: FilePath
    settings: EvaluatorSettings = Field(default_factory=EvaluatorSettings)
    workers: int = Field(default_factory=cpu_count, ge=1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="silver-calculator",
        description="Evaluate space-separated arithmetic expressions",
    )
    parser.add_argument(
        "target",
        help="Path to a file of expressions, or an expression with --expression",
    )
    parser.add_argument(
        "-e",
        "--expression",
        action="store_true",
        help="Evaluate TARGET as an expression instead of reading a file",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject expressions containing malformed tokens",
    )
    parser.add_argument(
        "--max-tokens",
        type=int,
        default=None,
        help="Reject expressions with more tokens than this",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Maximum number of worker processes in file mode (default: CPU count)",
    )
    return parser


def parse_settings(parser: argparse.ArgumentParser, args: argparse.Namespace) -> EvaluatorSettings:
    """
    Validate the evaluator options given on the command line.

    :return: Validated evaluator settings
    :rtype: EvaluatorSettings
    """
    try:
        return EvaluatorSettings(strict_tokens=args.strict, max_tokens=args.max_tokens)
    except ValidationError as exc:
        parser.error(str(exc))


def build_output_path(input_path: Path) -> Path:
    """
    Construct the report path based on the input file.

    - Preserves the input folder
    - Replaces dots in extensions with underscores
    - Appends '_results.txt' at the end

    Examples
    --------
    input: resources/operations_short.7z
    output: resources/operations_short_7z_results.txt

    :param input_path: Path to the input file
    :return: Path to the output file
    """
    suffix_safe = "".join(input_path.suffixes).replace(".", "_")
    return input_path.with_name(f"{input_path.name.split('.')[0]}{suffix_safe}_results.txt")


def evaluate_expression(expression: str, settings: EvaluatorSettings) -> int:
    """
    Print the value of an expression followed by its diagnostics.

    :return: Exit status, 1 if the expression was rejected
    :rtype: int
    """
    try:
        result = ExpressionEvaluator(expression, settings).evaluate()
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(result.value)
    for diagnostic in result.diagnostics:
        print(f"  {diagnostic}", file=sys.stderr)
    return 0


def evaluate_file(cli_args: CliArgs) -> BatchReport:
    """
    Evaluate every expression of a file or archive and write the report next to it.

    :param CliArgs cli_args: Validated file-mode arguments

    :return: The written report
    :rtype: BatchReport
    """
    requests = ExpressionSource(path=cli_args.file_path).requests()
    report = BatchRunner(settings=cli_args.settings, workers=cli_args.workers).run(requests)
    report.write(build_output_path(Path(cli_args.file_path)))
    return report


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = parse_settings(parser, args)

    if args.expression:
        return evaluate_expression(args.target, settings)

    options = {"workers": args.workers} if args.workers is not None else {}
    try:
        cli_args = CliArgs(file_path=args.target, settings=settings, **options)
    except ValidationError as exc:
        parser.error(str(exc))

    try:
        report = evaluate_file(cli_args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(build_output_path(Path(cli_args.file_path)))
    print(report.summary())
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())
