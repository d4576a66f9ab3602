"""
SymParse — SymPy bridge.

Converts a Symbol into a SymPy expression through its canonical text, so the
result can be handed to SymPy's solvers, simplifier or lambdify.
"""

import sympy
from sympy.parsing.sympy_parser import convert_xor, parse_expr, standard_transformations

from symparse.render import free_variables, render_text
from symparse.symbol import IMAGINARY_UNIT, Symbol

TRANSFORMATIONS = standard_transformations + (convert_xor,)

# Canonical names that differ from SymPy's.
_SYMPY_NAMES = {
    IMAGINARY_UNIT: sympy.I,
    "PI": sympy.pi,
    "E": sympy.E,
    "abs": sympy.Abs,
    "sum": lambda body, index, lower, upper: sympy.Sum(body, (index, lower, upper)),
}


def to_sympy(symbol: Symbol) -> sympy.Expr:
    """Return *symbol* as a SymPy expression."""
    text = render_text(symbol)
    local = {name: sympy.Symbol(name) for name in free_variables(symbol)}
    local.update(_SYMPY_NAMES)
    try:
        return parse_expr(text, local_dict=local, transformations=TRANSFORMATIONS)
    except (SyntaxError, TypeError, ValueError) as e:
        raise ValueError(f"Could not convert expression: '{text}'. Error: {e}") from e
