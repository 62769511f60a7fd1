"""Turn whitespace-delimited words into typed tokens."""
from enum import Enum
import re
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class TokenKind(Enum):
    """Kinds of token; END doubles as the bottom-of-stack marker."""

    END = "end"
    VALUE = "value"
    OPEN_PAREN = "("
    CLOSE_PAREN = ")"
    EXPONENT = "^"
    MULTIPLY = "*"
    DIVIDE = "/"
    ADD = "+"
    SUBTRACT = "-"


# Words that map directly onto an operator or parenthesis kind
SYMBOLS: dict[str, TokenKind] = {
    kind.value: kind
    for kind in TokenKind
    if kind not in (TokenKind.END, TokenKind.VALUE)
}


# Decimal literals as the calculator accepts them: ASCII digits only, no
# digit separators, "NaN" and "Infinity" spelled out in full
NUMBER_PATTERN: re.Pattern = re.compile(
    r"[+-]?(?:NaN|Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
)


def is_number(word: str) -> bool:
    """
    Check whether a word is a numeric literal.

    Stricter than float(): "1_000", "inf" and non-ASCII digits are rejected.

    :param str word: Candidate literal

    :return: True if the word is a decimal literal
    :rtype: bool
    """
    return NUMBER_PATTERN.fullmatch(word) is not None


class InvalidTokenError(ValueError):
    """Raised when a word is neither an operator nor a number."""

    def __init__(self, word: str):
        super().__init__(f"Error occurred when parsing supposed VALUE token: {word}")
        self.word = word


class Token(BaseModel):
    """A single token; only VALUE tokens carry a meaningful payload."""

    model_config = ConfigDict(frozen=True)

    kind: TokenKind = Field(..., description="Token kind")
    value: float = Field(default=0.0, description="Numeric payload of a VALUE token")


END_TOKEN: Token = Token(kind=TokenKind.END)


class Tokenizer:
    """
    Split an expression into words and type each word.

    Words must be separated by whitespace: "3 + 4" is three tokens,
    "3+4" is one malformed word.
    """

    @staticmethod
    def split(expression: str) -> List[str]:
        """
        Split an expression on runs of whitespace.

        :param str expression: Infix expression

        :return: List of words, empty for a blank expression
        :rtype: List[str]
        """
        return expression.split()

    @staticmethod
    def to_token(word: str) -> Token:
        """
        Produce the token for one word.

        :param str word: A single whitespace-free word

        :return: Operator, parenthesis or VALUE token
        :rtype: Token
        :raises InvalidTokenError: If the word is not an operator and not a float literal
        """
        kind = SYMBOLS.get(word)
        if kind is not None:
            return Token(kind=kind)
        if not is_number(word):
            raise InvalidTokenError(word)
        return Token(kind=TokenKind.VALUE, value=float(word))
