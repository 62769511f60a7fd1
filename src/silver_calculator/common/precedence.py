"""Operator precedence table driving the two-stack evaluator."""
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict

from silver_calculator.common.tokens import TokenKind


class PrecedenceEntry(BaseModel):
    """
    Weights of one token kind.

    An incoming token reduces the stack while its input weight is lower than or
    equal to the stack weight of the operator on top. Left-associative operators
    get a stack weight one above their input weight, right-associative ones one
    below.
    """

    model_config = ConfigDict(frozen=True)

    input_weight: int
    stack_weight: int


PRECEDENCE: Mapping[TokenKind, PrecedenceEntry] = MappingProxyType({
    TokenKind.END: PrecedenceEntry(input_weight=0, stack_weight=-1),
    TokenKind.VALUE: PrecedenceEntry(input_weight=0, stack_weight=0),
    # Always pushed, never reduced by anything but END or a closing parenthesis
    TokenKind.OPEN_PAREN: PrecedenceEntry(input_weight=100, stack_weight=0),
    TokenKind.CLOSE_PAREN: PrecedenceEntry(input_weight=0, stack_weight=99),
    TokenKind.EXPONENT: PrecedenceEntry(input_weight=6, stack_weight=5),
    TokenKind.MULTIPLY: PrecedenceEntry(input_weight=3, stack_weight=4),
    TokenKind.DIVIDE: PrecedenceEntry(input_weight=3, stack_weight=4),
    TokenKind.ADD: PrecedenceEntry(input_weight=1, stack_weight=2),
    TokenKind.SUBTRACT: PrecedenceEntry(input_weight=1, stack_weight=2),
})


def should_reduce(incoming: TokenKind, top: TokenKind) -> bool:
    """Return True if the operator on top of the stack must be applied before `incoming` is pushed."""
    return PRECEDENCE[incoming].input_weight <= PRECEDENCE[top].stack_weight
