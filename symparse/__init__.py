"""
SymParse — parse infix math expressions into a simplified symbolic form and
render them back as text, LaTeX or a NumPy function.
"""

from symparse.environment import Environment, numeric_mode
from symparse.errors import (
    DivisionByZero, ExpressionError, InvalidIdentifier, MalformedExpression,
    ReservedNameViolation, UnsupportedOperator,
)
from symparse.parser import evaluate, parse
from symparse.render import build_function, free_variables, render_latex, render_text
from symparse.symbol import Group, Symbol
from symparse.workspace import Expression, Workspace

__version__ = "0.4.9"
