"""
SymParse — Workspace: a numbered list of parsed equations plus the
registration API for constants and user functions.

Equation numbers are 1-based, like the history entries they replace.
"""

import logging
from typing import Optional

from symparse.environment import (
    BUILTIN_FUNCTION_NAMES, RESERVED_NAMES, Environment, numeric_mode,
)
from symparse.parser import evaluate, parse
from symparse.render import build_function, free_variables, render_latex, render_text
from symparse.symbol import Symbol, validate_name

logger = logging.getLogger(__name__)


class Expression:
    """A parsed, simplified expression bound to the environment it came from."""

    def __init__(self, symbol: Symbol, environment: Optional[Environment] = None):
        self.symbol = symbol
        self.environment = environment

    def text(self, mode: str = "text") -> str:
        return render_text(self.symbol, mode)

    def latex(self) -> str:
        return render_latex(self.symbol)

    def evaluate(self, substitutions: Optional[dict] = None) -> "Expression":
        return Expression(evaluate(self.symbol, substitutions, self.environment),
                          self.environment)

    def is_number(self) -> bool:
        return self.symbol.is_number()

    def variables(self) -> list:
        return free_variables(self.symbol)

    def build_function(self, params=None, name: str = "f"):
        return build_function(self.symbol, params, name)

    def __str__(self):
        return self.text()

    def __repr__(self):
        return f"Expression({self.text()!r})"

    def __eq__(self, other):
        if isinstance(other, Expression):
            return self.symbol == other.symbol
        return NotImplemented

    __hash__ = None


class Workspace:
    def __init__(self, environment: Optional[Environment] = None):
        self.environment = environment or Environment()
        self._equations: list = []

    # ── Equations ───────────────────────────────────────────────────────

    def add(self, expression, substitutions: Optional[dict] = None,
            location: Optional[int] = None, numeric: bool = False) -> Expression:
        """Parse *expression* and store it, at the end or at equation *location*."""
        with numeric_mode(numeric):
            symbol = parse(expression, substitutions, self.environment)
        result = Expression(symbol, self.environment)
        if location is None:
            self._equations.append(result)
        else:
            self._store(location, result)
        logger.debug("stored equation %d: %s", self._number_of(result), result)
        return result

    __call__ = add

    def get(self, number: Optional[int] = None, fmt: Optional[str] = None):
        """Equation *number* (default: the last one), as text/latex if *fmt* says so."""
        equation = self._equations[self._index(number)]
        if equation is None:
            raise ValueError(f"Equation {number} was cleared")
        if fmt == "text":
            return equation.text()
        if fmt == "latex":
            return equation.latex()
        return equation

    def set(self, number: int, expression) -> Expression:
        if isinstance(expression, Expression):
            value = expression
        elif isinstance(expression, Symbol):
            value = Expression(expression.copy(), self.environment)
        else:
            value = Expression(parse(expression, environment=self.environment), self.environment)
        self._equations[self._index(number)] = value
        return value

    def clear(self, number=None, keep_slot: bool = False) -> None:
        """Remove equation *number* (default: the last one); ``"all"`` empties the list."""
        if number == "all":
            self._equations.clear()
            return
        index = self._index(number)
        if keep_slot:
            self._equations[index] = None
        else:
            del self._equations[index]

    def equations(self, as_dict: bool = False, as_latex: bool = False):
        rendered = {
            n: (eq.latex() if as_latex else eq.text())
            for n, eq in enumerate(self._equations, start=1)
            if eq is not None
        }
        return rendered if as_dict else list(rendered.values())

    def __len__(self):
        return len(self._equations)

    def build_function(self, number: Optional[int] = None, params=None, name: str = "f"):
        return self.get(number).build_function(params, name)

    def evaluate(self, substitutions: Optional[dict] = None) -> Expression:
        """Numeric value of the last equation."""
        return self.get().evaluate(substitutions)

    # ── Registration ────────────────────────────────────────────────────

    def set_constant(self, name: str, value) -> None:
        self.environment.set_constant(name, value)

    def remove_constant(self, name: str) -> None:
        self.environment.remove_constant(name)

    def set_function(self, name: str, params, body: str) -> None:
        self.environment.set_function(name, params, body)

    @staticmethod
    def reserved(as_list: bool = False):
        names = sorted(RESERVED_NAMES)
        return names if as_list else ", ".join(names)

    @staticmethod
    def supported() -> list:
        return [name for name in BUILTIN_FUNCTION_NAMES if name != "parens"]

    @staticmethod
    def validate_name(name: str) -> str:
        return validate_name(name)

    # ── Helpers ─────────────────────────────────────────────────────────

    def _index(self, number: Optional[int]) -> int:
        if not self._equations:
            raise ValueError("No equations stored")
        if number is None:
            return len(self._equations) - 1
        if isinstance(number, bool) or not isinstance(number, int) \
                or not 1 <= number <= len(self._equations):
            raise ValueError(f"Invalid equation number: {number!r}")
        return number - 1

    def _store(self, location: int, equation: Expression) -> None:
        if location == len(self._equations) + 1:
            self._equations.append(equation)
        else:
            self._equations[self._index(location)] = equation

    def _number_of(self, equation: Expression) -> int:
        for n, stored in enumerate(self._equations, start=1):
            if stored is equation:
                return n
        return 0
