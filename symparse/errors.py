"""Errors raised while tokenizing, parsing and simplifying expressions.

Every error derives from :class:`ExpressionError`, which is a ``ValueError``
so callers that already catch ``ValueError`` keep working unchanged.
"""

from typing import Optional


class ExpressionError(ValueError):
    """Base class for every failure raised by SymParse."""

    def __init__(self, message: str, token: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.token = token


class MalformedExpression(ExpressionError):
    """Unbalanced brackets, empty input or a token in the wrong place."""


class ReservedNameViolation(ExpressionError):
    """A name collides with a built-in function or constant."""


class InvalidIdentifier(ExpressionError):
    """A variable, constant or function name fails the naming rule."""


class DivisionByZero(ExpressionError):
    """Division by (or a negative power of) a zero-multiplier operand."""


class UnsupportedOperator(ExpressionError):
    """An operator reached the reducer without a combinator behind it."""
