"""Renderer – Symbol → canonical text, LaTeX, or a NumPy-callable function.

Canonical text is what the parser reads back: re-parsing it yields the same
Symbol. Children of sums and products are sorted by their rendered text so
the output does not depend on insertion order; terms carrying the imaginary
unit go last.
"""

import sympy

from symparse.environment import DEFAULT_CONSTANTS
from symparse.errors import MalformedExpression
from symparse.fraction import to_fraction
from symparse.symbol import (
    IMAGINARY_UNIT, Group, Symbol, format_number, free_variables as _free_variables,
    has_unit_power, validate_name,
)

TEXT = "text"
FUNCTION = "function"

_NUMPY_NAMES = {
    "cos": "np.cos",
    "sin": "np.sin",
    "tan": "np.tan",
    "acos": "np.arccos",
    "asin": "np.arcsin",
    "atan": "np.arctan",
    "exp": "np.exp",
    "log": "np.log",
    "abs": "np.abs",
}
_RECIPROCALS = {"sec": "cos", "csc": "sin", "cot": "tan"}
_NUMPY_VARIABLES = {IMAGINARY_UNIT: "1j", "PI": "np.pi", "E": "np.e"}

GREEK_LETTERS = (
    "alpha", "beta", "gamma", "delta", "zeta", "eta", "theta", "iota", "kappa",
    "mu", "nu", "xi", "rho", "sigma", "tau", "chi", "psi", "omega", "pi",
)
_LATEX_FUNCTIONS = {"acos": r"\arccos", "asin": r"\arcsin", "atan": r"\arctan"}


# ── Canonical text ──────────────────────────────────────────────────────

def render_text(symbol: Symbol, mode: str = TEXT) -> str:
    """Render *symbol* as canonical text, or as a NumPy expression in ``"function"`` mode."""
    if mode not in (TEXT, FUNCTION):
        raise ValueError(f"Unknown render mode: {mode!r}")
    return _text(symbol, mode == FUNCTION)


def _text(s: Symbol, fn: bool) -> str:
    if s.group is Group.NUMBER:
        return format_number(s.multiplier)
    body = _power_text(s, _base_text(s, fn), fn)
    m = s.multiplier
    if s.is_sum() and m != 1 and has_unit_power(s):
        body = f"({body})"
    if m == 1:
        return body
    if m == -1:
        return f"-{body}"
    return f"{format_number(m)}*{body}"


def _base_text(s: Symbol, fn: bool) -> str:
    group = s.base_group()
    if group is Group.NUMBER:
        return s.value
    if group is Group.VARIABLE:
        return _NUMPY_VARIABLES.get(s.value, s.value) if fn else s.value
    if group is Group.FUNCTION:
        return _function_text(s, fn)
    if group is Group.COMPOSITE_PRODUCT:
        return "*".join(_sorted_texts(s.children.values(), fn, _factor_text))
    joined = "+".join(_sorted_texts(s.children.values(), fn, _text))
    return joined.replace("+-", "-")


def _function_text(s: Symbol, fn: bool) -> str:
    args = ",".join(_text(arg, fn) for arg in s.args)
    name = s.value
    if not fn:
        return f"{name}({args})"
    if name in _RECIPROCALS:
        return f"(1/{_NUMPY_NAMES[_RECIPROCALS[name]]}({args}))"
    if name == "parens":
        return f"({args})"
    if name not in _NUMPY_NAMES:
        raise MalformedExpression(f"{name} has no NumPy equivalent", token=name)
    return f"{_NUMPY_NAMES[name]}({args})"


def _factor_text(s: Symbol, fn: bool) -> str:
    text = _text(s, fn)
    if s.is_sum() and has_unit_power(s):
        return f"({text})"
    return text


def _power_text(s: Symbol, body: str, fn: bool) -> str:
    p = s.power
    if not isinstance(p, Symbol) and p == 1:
        return body
    if _needs_brackets(s, body):
        body = f"({body})"
    op = "**" if fn else "^"
    if isinstance(p, Symbol):
        return f"{body}{op}({_text(p, fn)})"
    exponent = format_number(p)
    if p > 0 and float(p).is_integer():
        return f"{body}{op}{exponent}"
    return f"{body}{op}({exponent})"


def _needs_brackets(s: Symbol, body: str) -> bool:
    group = s.base_group()
    if group in (Group.POLYNOMIAL_SUM, Group.COMPOSITE_SUM, Group.COMPOSITE_PRODUCT):
        return True
    return group is Group.NUMBER and body.startswith("-")


def _sorted_texts(children, fn: bool, render) -> list:
    rendered = [(_carries_imaginary(c), render(c, fn)) for c in children]
    rendered.sort(key=lambda pair: (pair[0], pair[1].lstrip("-")))
    return [text for _, text in rendered]


def _carries_imaginary(s: Symbol) -> bool:
    if s.is_imaginary:
        return True
    return s.group is Group.COMPOSITE_PRODUCT and any(c.is_imaginary for c in s.children.values())


# ── LaTeX ───────────────────────────────────────────────────────────────

def render_latex(symbol: Symbol) -> str:
    """Render *symbol* as LaTeX; coefficients and exponents become reduced fractions."""
    return _latex(symbol)


def _latex(s: Symbol) -> str:
    num, den = to_fraction(s.multiplier)
    sign = "-" if num < 0 else ""
    num = abs(num)
    if s.group is Group.NUMBER:
        return sign + _fraction(str(num), str(den))

    if s.group is Group.COMPOSITE_PRODUCT:
        factors = list(s.children.values())
    else:
        factors = [s]
    upper, lower = [], []
    for factor in sorted(factors, key=lambda f: (_carries_imaginary(f), _text(f, False))):
        p = factor.power
        if not isinstance(p, Symbol) and p < 0:
            lower.append((factor, -p))
        else:
            upper.append((factor, p))

    # a sum needs brackets only when something else shares its side of the bar
    top = [str(num)] if num != 1 or not upper else []
    crowded = len(upper) + len(top) > 1 or (bool(sign) and not lower)
    top += [_latex_factor(f, p, crowded) for f, p in upper]
    bottom = [str(den)] if den != 1 else []
    crowded = len(lower) + len(bottom) > 1
    bottom += [_latex_factor(f, p, crowded) for f, p in lower]

    if not bottom:
        return sign + " \\cdot ".join(top)
    return sign + _fraction(" \\cdot ".join(top), " \\cdot ".join(bottom))


def _latex_factor(s: Symbol, p, in_product: bool) -> str:
    base = _latex_base(s)
    group = s.base_group()
    is_sum = group in (Group.POLYNOMIAL_SUM, Group.COMPOSITE_SUM)
    if isinstance(p, Symbol):
        if is_sum or group is Group.COMPOSITE_PRODUCT or base.startswith("-"):
            base = f"\\left({base}\\right)"
        return f"{base}^{{{_latex(p)}}}"
    if p == 1:
        return f"\\left({base}\\right)" if is_sum and in_product else base
    if p == 0.5:
        return f"\\sqrt{{{base}}}"
    if is_sum:
        base = f"\\left({base}\\right)"
    pn, pd = to_fraction(p)
    return f"{base}^{{{_fraction(str(pn), str(pd))}}}"


def _latex_base(s: Symbol) -> str:
    group = s.base_group()
    if group is Group.NUMBER:
        return s.value
    if group is Group.VARIABLE:
        return _latex_name(s.value)
    if group is Group.FUNCTION:
        return _latex_function(s)
    if group is Group.COMPOSITE_PRODUCT:
        return " \\cdot ".join(_latex(c) for c in s.children.values())
    terms = sorted(s.children.values(),
                   key=lambda c: (_carries_imaginary(c), _text(c, False).lstrip("-")))
    return "+".join(_latex(c) for c in terms).replace("+-", "-")


def _latex_name(name: str) -> str:
    if name in GREEK_LETTERS:
        return f"\\{name}"
    if name == "PI":
        return "\\pi"
    return name


def _latex_function(s: Symbol) -> str:
    name = s.value
    args = [_latex(arg) for arg in s.args]
    if name == "abs":
        return f"\\left|{args[0]}\\right|"
    if name == "parens":
        return f"\\left({args[0]}\\right)"
    if name == "exp":
        return f"e^{{{args[0]}}}"
    if name == "sum":
        body, index, lower, upper = args
        return f"\\sum_{{{index}={lower}}}^{{{upper}}} {body}"
    command = _LATEX_FUNCTIONS.get(name, f"\\{name}")
    return f"{command}\\left({', '.join(args)}\\right)"


def _fraction(num: str, den: str) -> str:
    if den == "1":
        return num
    return f"\\frac{{{num}}}{{{den}}}"


# ── Host-callable builder ───────────────────────────────────────────────

def free_variables(symbol: Symbol) -> list:
    """Alphabetical free variables, without the imaginary unit and the built-in constants."""
    return _free_variables(symbol, exclude=DEFAULT_CONSTANTS)


def build_function(symbol: Symbol, params=None, name: str = "f"):
    """Compile *symbol* into a NumPy function of *params* with ``sympy.lambdify``.

    *params* defaults to the free variables in alphabetical order. The NumPy
    rendering is available as ``.source`` on the returned function.
    """
    from symparse.interop import to_sympy

    validate_name(name, "function")
    variables = free_variables(symbol)
    if params is None:
        params = variables
    else:
        params = [validate_name(p, "parameter") for p in params]
        missing = [v for v in variables if v not in params]
        if missing:
            raise MalformedExpression(
                f"Missing parameter(s) for: {', '.join(missing)}", token=missing[0])

    body = render_text(symbol, FUNCTION)
    compiled = sympy.lambdify([sympy.Symbol(p) for p in params], to_sympy(symbol),
                              modules="numpy")
    compiled.__name__ = name
    compiled.source = f"def {name}({', '.join(params)}):\n    return {body}\n"
    return compiled
