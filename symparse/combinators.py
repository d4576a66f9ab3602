"""Algebraic combinators: add, multiply, divide and power over Symbols.

Simplification happens here. The public combinators copy their operands, so
the Symbols a caller hands in are never touched. The private ``_add``,
``_mul`` and ``_pow`` take ownership of their arguments: they may rebuild one
operand in place and return it, and the other operand must not be used again.
"""

import math

from symparse.environment import is_numeric
from symparse.errors import DivisionByZero, MalformedExpression
from symparse.fraction import to_fraction
from symparse.settings import get_setting
from symparse.symbol import (
    SUM_GROUPS, Group, Symbol, as_symbol, clean_number, format_number, function,
    imaginary_unit, number, term_key,
)


def add(a: Symbol, b: Symbol) -> Symbol:
    return _add(a.copy(), b.copy())


def subtract(a: Symbol, b: Symbol) -> Symbol:
    return _add(a.copy(), b.copy().negate())


def multiply(a: Symbol, b: Symbol) -> Symbol:
    return _mul(a.copy(), b.copy())


def divide(a: Symbol, b: Symbol) -> Symbol:
    """``a / b``, computed as ``a * b^-1``."""
    if b.multiplier == 0:
        raise DivisionByZero("Division by zero")
    return _mul(a.copy(), _pow(b.copy(), number(-1)))


def power(base: Symbol, exponent: Symbol) -> Symbol:
    return _pow(base.copy(), exponent.copy())


# ── Child insertion ─────────────────────────────────────────────────────

def insert_term(children: dict, term: Symbol, owner_group=None, multiply: bool = False) -> None:
    """Insert *term* into *children*, merging with an entry under the same key.

    In add mode colliding entries are added and dropped when they cancel; in
    multiply mode (products) they are multiplied, which merges exponents.
    """
    term = _collapse_zero_power(term)
    if term.multiplier == 0 and not multiply:
        return
    key = term_key(owner_group, term)
    existing = children.pop(key, None)
    if existing is None:
        children[key] = term
        return
    merged = _mul(existing, term) if multiply else _add(existing, term)
    if merged.multiplier == 0 and not multiply:
        return
    insert_term(children, merged, owner_group, multiply)


def rekey(terms, group) -> dict:
    return {term_key(group, t): t for t in terms}


# ── Addition ────────────────────────────────────────────────────────────

def _add(a: Symbol, b: Symbol) -> Symbol:
    if b.multiplier == 0:
        return a if a.multiplier != 0 else number(0)
    if a.multiplier == 0:
        return b
    if b.is_expandable_sum() and not a.is_expandable_sum():
        a, b = b, a

    if a.is_expandable_sum():
        _push_multiplier(a)
        a.children = rekey(a.children.values(), Group.COMPOSITE_SUM)
        if b.is_expandable_sum():
            for child in b.children.values():
                child.multiplier *= b.multiplier
                insert_term(a.children, child, Group.COMPOSITE_SUM)
        else:
            insert_term(a.children, b, Group.COMPOSITE_SUM)
        return _normalize_sum(a)

    if a.full_key() == b.full_key():
        a.multiplier = _sum_of(a.multiplier, b.multiplier)
        return a if a.multiplier != 0 else number(0)

    wrapper = Symbol(Group.COMPOSITE_SUM, children={})
    insert_term(wrapper.children, a, Group.COMPOSITE_SUM)
    insert_term(wrapper.children, b, Group.COMPOSITE_SUM)
    return _normalize_sum(wrapper)


def _sum_of(x: float, y: float) -> float:
    total = x + y
    if abs(total) < 1e-14 * max(abs(x), abs(y)):
        return 0.0
    return clean_number(total)


def _push_multiplier(total: Symbol) -> None:
    if total.multiplier != 1:
        for child in total.children.values():
            child.multiplier *= total.multiplier
        total.multiplier = 1.0


def sum_group(terms) -> Group:
    """Polynomial sum when every non-constant term is a power of one variable."""
    names = set()
    for term in terms:
        if term.group is Group.NUMBER:
            continue
        if term.group is not Group.VARIABLE or term.is_imaginary:
            return Group.COMPOSITE_SUM
        names.add(term.value)
    return Group.POLYNOMIAL_SUM if len(names) == 1 else Group.COMPOSITE_SUM


def _normalize_sum(total: Symbol) -> Symbol:
    terms = [t for t in total.children.values() if t.multiplier != 0]
    if not terms:
        return number(0)
    if len(terms) == 1:
        only = terms[0]
        only.multiplier *= total.multiplier
        return only
    total.group = sum_group(terms)
    total.children = rekey(terms, total.group)
    return total


# ── Multiplication ──────────────────────────────────────────────────────

def _mul(a: Symbol, b: Symbol) -> Symbol:
    if a.multiplier == 0 or b.multiplier == 0:
        return number(0)
    a = _collapse_zero_power(a)
    b = _collapse_zero_power(b)
    # lower group on the right
    if b.group > a.group:
        a, b = b, a
    if b.group is Group.NUMBER:
        a.multiplier = clean_number(a.multiplier * b.multiplier)
        return a

    m = a.multiplier * b.multiplier
    a.multiplier = b.multiplier = 1.0

    if a.is_expandable_sum() and b.is_expandable_sum():
        return _scale(_distribute(a, b), m)

    if a.group is not Group.COMPOSITE_PRODUCT and a.shape_key() == b.shape_key():
        merged = _finish_power(a, _power_add(a.power, b.power))
        return _scale(_expand_if_due(merged), m)

    if a.is_expandable_sum() or b.is_expandable_sum():
        total, other = (a, b) if a.is_expandable_sum() else (b, a)
        return _scale(_distribute(total, other), m)

    if b.group is Group.COMPOSITE_PRODUCT and a.group is not Group.COMPOSITE_PRODUCT:
        a, b = b, a
    if a.group is Group.COMPOSITE_PRODUCT:
        factors = list(b.children.values()) if b.group is Group.COMPOSITE_PRODUCT else [b]
        for factor in factors:
            insert_term(a.children, factor, Group.COMPOSITE_PRODUCT, multiply=True)
        a.multiplier = m
        return _normalize_product(a)

    product = Symbol(Group.COMPOSITE_PRODUCT, multiplier=m, children={})
    insert_term(product.children, a, Group.COMPOSITE_PRODUCT, multiply=True)
    insert_term(product.children, b, Group.COMPOSITE_PRODUCT, multiply=True)
    return _normalize_product(product)


def _distribute(total: Symbol, other: Symbol) -> Symbol:
    result = number(0)
    for child in total.children.values():
        result = _add(result, _mul(child, other.copy()))
    return result


def _scale(symbol: Symbol, m: float) -> Symbol:
    if m == 1:
        return symbol
    return _mul(symbol, number(m))


def _normalize_product(product: Symbol) -> Symbol:
    for key in list(product.children):
        factor = product.children[key]
        if factor.group is Group.NUMBER:
            product.multiplier *= factor.multiplier
            del product.children[key]
        elif factor.multiplier != 1:
            product.multiplier *= factor.multiplier
            factor.multiplier = 1.0
    product.multiplier = clean_number(product.multiplier)
    if product.multiplier == 0:
        return number(0)

    expandable = next((k for k, f in product.children.items() if f.is_expandable_sum()), None)
    if expandable is not None:
        factor = product.children.pop(expandable)
        return _mul(_normalize_product(product), factor)

    if not product.children:
        return number(product.multiplier)
    if len(product.children) == 1:
        (only,) = product.children.values()
        only.multiplier = product.multiplier
        return only
    return product


def _collapse_zero_power(symbol: Symbol) -> Symbol:
    if symbol.group is not Group.NUMBER and not symbol.has_symbolic_power() and symbol.power == 0:
        return number(symbol.multiplier)
    return symbol


# ── Exponents ───────────────────────────────────────────────────────────

def _power_add(p1, p2):
    if isinstance(p1, Symbol) or isinstance(p2, Symbol):
        return _add(as_symbol(p1), as_symbol(p2))
    return clean_number(p1 + p2)


def _power_mul(p1, p2):
    if isinstance(p1, Symbol) or isinstance(p2, Symbol):
        return _mul(as_symbol(p1), as_symbol(p2))
    return clean_number(p1 * p2)


def _finish_power(symbol: Symbol, p) -> Symbol:
    """Give *symbol* the exponent *p*, promoting to or demoting from EXPONENTIAL."""
    if isinstance(p, Symbol) and p.group is Group.NUMBER:
        p = p.multiplier
    if isinstance(p, Symbol):
        p = _canonical_exponent(p)
        if symbol.group is Group.NUMBER:
            return Symbol(Group.EXPONENTIAL, format_number(symbol.multiplier), power=p,
                          origin=Group.NUMBER)
        if symbol.group is not Group.EXPONENTIAL:
            symbol.origin = symbol.group
            symbol.group = Group.EXPONENTIAL
        symbol.power = p
        return symbol

    p = clean_number(p)
    if p == 0:
        return number(symbol.multiplier)
    if symbol.group is Group.EXPONENTIAL:
        return _demote(symbol, p)
    symbol.power = p
    return _reduce_imaginary(symbol)


def _canonical_exponent(p: Symbol) -> Symbol:
    """Spread a coefficient over a summed exponent: x^(3*(1-y)) is stored as x^(3-3*y)."""
    if p.is_expandable_sum() and p.multiplier != 1:
        _push_multiplier(p)
        return _normalize_sum(p)
    return p


def _demote(symbol: Symbol, p: float) -> Symbol:
    """Return an exponential whose exponent became the number *p* to its origin group."""
    m = symbol.multiplier
    if symbol.origin is Group.NUMBER:
        return _scale(_pow_numbers(float(symbol.value), p), m)
    symbol.group = symbol.origin
    symbol.origin = None
    symbol.power = 1.0
    symbol.multiplier = 1.0
    if p != 1:
        symbol = _pow_numeric(symbol, p)
    return _scale(symbol, m)


def _expand_if_due(symbol: Symbol) -> Symbol:
    if (symbol.group in SUM_GROUPS and not symbol.has_symbolic_power()
            and symbol.power != 1 and _expandable_power(symbol.power)):
        p = symbol.power
        symbol.power = 1.0
        return _pow_numeric(symbol, p)
    return symbol


def _expandable_power(p: float) -> bool:
    return _is_integer(p) and 1 < p <= get_setting("expand_power_limit")


def _reduce_imaginary(symbol: Symbol) -> Symbol:
    """Fold integer powers of the imaginary unit: i^2 = -1, i^3 = -i, i^4 = 1."""
    if not (symbol.is_imaginary and symbol.group is Group.VARIABLE and _is_integer(symbol.power)):
        return symbol
    m = symbol.multiplier
    turn = int(round(symbol.power)) % 4
    if turn == 0:
        return number(m)
    if turn == 2:
        return number(-m)
    symbol.power = 1.0
    if turn == 3:
        symbol.multiplier = -m
    return symbol


def _pow(base: Symbol, exponent: Symbol) -> Symbol:
    if exponent.group is Group.NUMBER:
        p = exponent.multiplier
        if p == 1:
            return base
        if p == 0:
            return number(1)
        return _pow_numeric(base, p)
    return _pow_symbolic(base, exponent)


def _pow_numeric(base: Symbol, p: float) -> Symbol:
    if base.multiplier == 0:
        if p < 0:
            raise DivisionByZero("Division by zero: zero raised to a negative power")
        return number(0)
    if base.group is Group.NUMBER:
        return _pow_numbers(base.multiplier, p)

    m = base.multiplier
    base.multiplier = 1.0
    if base.is_expandable_sum() and _expandable_power(p):
        result = base.copy()
        for _ in range(int(round(p)) - 1):
            result = _mul(result, base.copy())
        return _mul(result, _pow_numbers(m, p))

    if base.group is Group.COMPOSITE_PRODUCT:
        result = number(1)
        for factor in base.children.values():
            result = _mul(result, _pow_numeric(factor, p))
        return _mul(result, _pow_numbers(m, p))

    old = base.power
    new = _power_mul(old, p)
    # an even root of an even power keeps the base non-negative: sqrt(x^2) = abs(x)
    needs_abs = (not isinstance(old, Symbol) and _radical_is_even(p)
                 and _is_even(old) and not isinstance(new, Symbol) and _is_odd(new))
    result = _finish_power(base, new)
    if needs_abs and result.group is not Group.NUMBER:
        result = absolute(result)
    return _mul(result, _pow_numbers(m, p))


def _pow_symbolic(base: Symbol, exponent: Symbol) -> Symbol:
    if base.multiplier == 0:
        return number(0)
    if base.group is Group.NUMBER:
        if base.multiplier == 1:
            return number(1)
        return Symbol(Group.EXPONENTIAL, format_number(base.multiplier),
                      power=_canonical_exponent(exponent), origin=Group.NUMBER)
    m = base.multiplier
    if m != 1:
        base.multiplier = 1.0
        return _mul(_pow_symbolic(number(m), exponent.copy()), _pow_symbolic(base, exponent))
    return _finish_power(base, _power_mul(base.power, exponent))


def _pow_numbers(value: float, p: float) -> Symbol:
    """Raise a plain number to a numeric power.

    A negative base under a fractional exponent yields an imaginary factor
    when the radical is even and a real, sign-corrected root when it is odd.
    Under numeric evaluation the principal complex value is returned instead.
    """
    if value == 0:
        if p < 0:
            raise DivisionByZero("Division by zero: zero raised to a negative power")
        return number(0 if p > 0 else 1)
    if value > 0 or _is_integer(p):
        return number(_raise(value, p))

    magnitude = _raise(abs(value), p)
    if is_numeric():
        angle = math.pi * p
        real = _chop(magnitude * math.cos(angle), magnitude)
        imag = _chop(magnitude * math.sin(angle), magnitude)
        return _add(number(real), _mul(number(imag), imaginary_unit()))
    num, den = to_fraction(abs(p))
    if den % 2 == 0:
        return _mul(number(magnitude), imaginary_unit())
    return number(-magnitude if num % 2 else magnitude)


def _raise(value: float, p: float) -> float:
    try:
        return value ** p
    except OverflowError as e:
        raise MalformedExpression(
            f"{format_number(value)}^{format_number(p)} is outside the number range") from e


def absolute(symbol: Symbol) -> Symbol:
    """Wrap *symbol* in ``abs``, moving a non-negative multiplier outside."""
    m = abs(symbol.multiplier)
    symbol.multiplier = 1.0
    wrapped = function("abs", [symbol])
    wrapped.multiplier = m
    return wrapped


def _chop(x: float, scale: float) -> float:
    return 0.0 if abs(x) < 1e-14 * max(1.0, scale) else x


def _is_integer(x) -> bool:
    return not isinstance(x, Symbol) and abs(x - round(x)) < 1e-12


def _is_even(x) -> bool:
    return _is_integer(x) and int(round(x)) % 2 == 0


def _is_odd(x) -> bool:
    return _is_integer(x) and int(round(x)) % 2 == 1


def _radical_is_even(p: float) -> bool:
    num, den = to_fraction(abs(p))
    if den == 1:
        return num % 2 == 0
    return den % 2 == 0
