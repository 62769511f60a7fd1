"""Keypad and display state of a calculator, building expressions for the evaluator."""
import math

from pydantic import BaseModel, Field

from silver_calculator.common.evaluator import EvaluationResult, ExpressionEvaluator
from silver_calculator.common.logger import logger
from silver_calculator.common.settings import EvaluatorSettings
from silver_calculator.common.tokens import is_number


OPERATOR_KEYS: tuple[str, ...] = ("+", "-", "*", "/", "^")

# Separates a shown result from the expression typed after it
RESULT_MARKER: str = "~"


class EntryError(ValueError):
    """A key press that would make the expression invalid; the message is meant for the user."""


def format_value(value: float) -> str:
    """
    Write a value the way the tokenizer reads it back.

    :param float value: Number to display

    :return: "NaN", "Infinity", "-Infinity" or the usual float text
    :rtype: str
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return str(value)


def last_symbol(display: str) -> str:
    """
    Return the last symbol written on the display, ignoring the trailing space.

    :param str display: Display text

    :return: The symbol before the trailing space, or "" for an empty display
    :rtype: str
    """
    return display[-2:-1] if display else ""


class CalculatorSession(BaseModel):
    """
    Headless calculator.

    Two text fields mirror the two screens of a pocket calculator:
        - entry: the number being typed
        - display: the expression built so far, every symbol followed by a space

    Each key press either updates the fields or raises an EntryError, so that
    the display always holds a space-separated expression the evaluator can
    read. After equals() the display shows "<value>  ~  " and the next
    operator continues from that value.
    """

    entry: str = Field(default="", description="Number being typed")
    display: str = Field(default="", description="Expression built so far")
    settings: EvaluatorSettings = Field(default_factory=EvaluatorSettings, description="Evaluator options")

    def press_digit(self, digit: str) -> None:
        """
        Append a digit to the entry.

        :param str digit: One of "0" to "9"

        :raises ValueError: If the key is not a single ASCII digit
        """
        if digit not in "0123456789" or len(digit) != 1:
            raise ValueError(f"Not a digit key: {digit!r}")
        self.entry += digit

    def press_decimal(self) -> None:
        """Append a decimal point, unless the entry already has one."""
        if "." not in self.entry:
            self.entry += "."

    def press_operator(self, symbol: str) -> None:
        """
        Append the current entry and an operator to the display.

        :param str symbol: One of + - * / ^

        :raises EntryError: If the operator cannot be placed here
        """
        if symbol not in OPERATOR_KEYS:
            raise ValueError(f"Not an operator key: {symbol!r}")
        self._build(symbol)

    def _build(self, symbol: str) -> None:
        last = last_symbol(self.display)

        if not self.entry and not self.display:
            raise EntryError("Must input a value before applying an operator.")

        if not self.entry and last == " ":
            # Apply the operator to the previous result
            previous = self.display[: self.display.index(RESULT_MARKER) - 2]
            self.display = f"{previous} {symbol} "

        elif last == ")":
            if self.entry:
                raise EntryError("Must apply operator after closing parenthesis before entering a value.")
            self.display += f" {symbol} "

        elif not self.entry and last != "(":
            # Replace the operator entered last
            self.display = self.display[:-2] + symbol + " "

        elif not is_number(self.entry):
            raise EntryError("Invalid entry!")

        else:
            self.display += f"{self.entry} {symbol} "
            self.entry = ""

    def open_paren(self) -> None:
        """
        Open a parenthesis on the display.

        :raises EntryError: After a typed value or a closing parenthesis
        """
        if self.entry:
            raise EntryError("Can't place opening parenthesis after a value!")
        if last_symbol(self.display) == ")":
            raise EntryError("Can't place opening parenthesis after a closing parenthesis!")
        self.display += "( "

    def close_paren(self) -> None:
        """
        Close a parenthesis, after the typed value if there is one.

        :raises EntryError: At the start of an expression or right after an operator
        """
        # With an entry, a closing parenthesis is placed like any operator
        if self.entry:
            self._build(")")
        elif not self.display:
            raise EntryError("Can't place closing parenthesis at the start of an expression!")
        elif last_symbol(self.display) != ")":
            raise EntryError("Can't place closing parenthesis after an operator!")
        else:
            self.display += ") "

    def negate(self) -> None:
        """
        Toggle the sign of the entry.

        :raises EntryError: If there is no entry
        """
        if not self.entry:
            raise EntryError("No value to negate!")

        if self.entry == "-":
            self.entry = ""
        elif "-" in self.entry:
            self.entry = self.entry[1:]
        else:
            self.entry = "-" + self.entry

    def square_root(self) -> None:
        """
        Replace the entry with its square root.

        :raises EntryError: If the entry is empty, negative or not a number
        """
        if not self.entry:
            raise EntryError("No value to square root!")
        if "-" in self.entry:
            raise EntryError("Can't square root a negative value!")
        if not is_number(self.entry):
            raise EntryError("Invalid value to square root!")

        self.entry = format_value(math.sqrt(float(self.entry)))
        logger.info("Square rooted value.")

    def delete(self) -> None:
        """
        Remove the last character of the entry.

        :raises EntryError: If there is no entry
        """
        if not self.entry:
            raise EntryError("No value to delete!")
        self.entry = self.entry[:-1]

    def clear_entry(self) -> None:
        """Empty the entry, keeping the display."""
        self.entry = ""

    def clear_all(self) -> None:
        """Empty both the entry and the display."""
        self.entry = ""
        self.display = ""

    def equals(self) -> EvaluationResult:
        """
        Evaluate the expression on the display followed by the current entry.

        Anything before the last result marker is a previous result and is ignored.

        :return: Value and diagnostics of the evaluation
        :rtype: EvaluationResult
        :raises EntryError: If the expression is not complete
        """
        last = last_symbol(self.display)

        if last != ")" and not is_number(self.entry):
            raise EntryError("Invalid entry!")
        if last == ")" and self.entry:
            raise EntryError("Must apply an operator before entering a value!")

        expression = self.display.split(RESULT_MARKER)[-1] + self.entry
        result = ExpressionEvaluator(expression, self.settings).evaluate()

        self.display = f"{format_value(result.value)}  {RESULT_MARKER}  "
        self.entry = ""
        return result
