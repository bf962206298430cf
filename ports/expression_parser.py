"""
Port: ExpressionParser
Odpowiedzialność: zamiana tekstu w notacji kości na AST Expression.
"""
from typing import Protocol, runtime_checkable

from contracts import Expression


@runtime_checkable
class ExpressionParser(Protocol):
    def parse(self, text: str) -> Expression:
        """
        Parses dice notation (e.g. "4d6kh3 + 2") into an Expression tree.

        Does not consume randomness and knows nothing about pool limits:
        "0d6" and "1d0" parse fine and are rejected by the Evaluator.

        Raises LexError for characters outside the notation alphabet.
        Raises ParseError for grammar violations (trailing tokens,
        unmatched parentheses, modifiers after non-dice terms).
        """
        ...
