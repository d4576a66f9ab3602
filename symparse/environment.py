"""Evaluation scope, constants and the user function table.

Numeric evaluation is a scoped context value: :func:`numeric_mode` switches it
on for the duration of a ``with`` block and always restores the previous state,
including when the block raises.
"""

import math
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Callable, Optional

from symparse.errors import ReservedNameViolation
from symparse.symbol import validate_name

_NUMERIC = ContextVar("symparse_numeric", default=False)

# Functions with dedicated handlers. "parens" only carries brackets.
BUILTIN_FUNCTION_NAMES = (
    "parens", "cos", "sin", "tan", "sec", "csc", "cot",
    "acos", "asin", "atan", "exp", "log", "abs", "sqrt", "sum",
)
# Functions without a math-module counterpart, evaluated as reciprocals.
SPECIAL_FUNCTION_NAMES = ("sec", "csc", "cot")

DEFAULT_CONSTANTS = {
    "PI": math.pi,
    "E": math.e,
}

RESERVED_NAMES = frozenset(BUILTIN_FUNCTION_NAMES) | frozenset(SPECIAL_FUNCTION_NAMES) \
    | frozenset(DEFAULT_CONSTANTS)


def is_numeric() -> bool:
    """True while inside a :func:`numeric_mode` block."""
    return _NUMERIC.get()


@contextmanager
def numeric_mode(enabled: bool = True):
    token = _NUMERIC.set(enabled)
    try:
        yield
    finally:
        _NUMERIC.reset(token)


def check_reserved(name: str) -> None:
    if name in RESERVED_NAMES:
        raise ReservedNameViolation(f"{name} is reserved", token=name)


# ── Function descriptors ────────────────────────────────────────────────

@dataclass(frozen=True)
class NativeFunction:
    """A built-in whose semantics live in a Python handler."""
    name: str
    handler: Callable
    arity: int = 1


@dataclass(frozen=True)
class CompositeFunction:
    """A user function: *body* is re-parsed with *params* bound to the arguments."""
    name: str
    body: str
    params: tuple

    @property
    def arity(self) -> int:
        return len(self.params)


class Environment:
    """Constants and user-defined functions visible to one parser."""

    def __init__(self):
        self.constants = dict(DEFAULT_CONSTANTS)
        self.functions = {}

    def set_constant(self, name: str, value) -> None:
        validate_name(name, "constant")
        check_reserved(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Constant {name} must be a number, got {value!r}")
        self.constants[name] = float(value)

    def remove_constant(self, name: str) -> None:
        check_reserved(name)
        self.constants.pop(name, None)

    def set_function(self, name: str, params, body: str) -> CompositeFunction:
        validate_name(name, "function")
        check_reserved(name)
        params = tuple(validate_name(p, "parameter") for p in params)
        descriptor = CompositeFunction(name, str(body), params)
        self.functions[name] = descriptor
        return descriptor

    def user_function(self, name: str) -> Optional[CompositeFunction]:
        return self.functions.get(name)

    def is_function(self, name) -> bool:
        return isinstance(name, str) and (name in BUILTIN_FUNCTION_NAMES or name in self.functions)

    def constant(self, name: str) -> Optional[float]:
        return self.constants.get(name)


DEFAULT_ENVIRONMENT = Environment()
