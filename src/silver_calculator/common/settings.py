"""Evaluator configuration."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EvaluatorSettings(BaseModel):
    """
    Options controlling how an expression is evaluated.

    The defaults reproduce the calculator's historic behaviour: malformed words
    are reported and replaced, and expressions are unbounded.
    """

    model_config = ConfigDict(frozen=True)

    strict_tokens: bool = Field(
        default=False,
        description="Raise on a malformed word instead of reporting it and draining the stack",
    )
    max_tokens: Optional[int] = Field(
        default=None, ge=1, description="Reject expressions with more words than this"
    )
