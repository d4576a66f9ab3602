"""The Symbol model: one tagged term type shared by every stage.

A Symbol is classified by its :class:`Group`. The payload that is meaningful
depends on the group:

* ``NUMBER`` – only ``multiplier`` (the value). Power is always 1.
* ``VARIABLE`` – ``value`` is the name, ``power`` a float.
* ``FUNCTION`` – ``value`` is the function name, ``args`` the arguments.
* ``POLYNOMIAL_SUM`` – sum of powers of one variable; ``children`` keyed by power.
* ``COMPOSITE_PRODUCT`` – product; ``children`` keyed by base shape.
* ``COMPOSITE_SUM`` – any other sum; ``children`` keyed by shape and power.
* ``EXPONENTIAL`` – any of the above raised to a Symbol. ``origin`` records
  the group the base had before promotion, and the base payload is kept.

Deduplication uses structural keys (``shape_key``/``full_key``/``signature``)
built from tuples and frozensets, never from rendered text.
"""

import math
import re
from enum import IntEnum
from typing import Optional, Union

from symparse.errors import InvalidIdentifier, MalformedExpression
from symparse.settings import get_setting

_NAME_RULE = re.compile(r"^[a-z][a-z0-9_]*$", re.IGNORECASE)

IMAGINARY_UNIT = "i"
NUMBER_VALUE = "#"


class Group(IntEnum):
    NUMBER = 1
    VARIABLE = 2
    FUNCTION = 3
    POLYNOMIAL_SUM = 4
    COMPOSITE_PRODUCT = 5
    COMPOSITE_SUM = 6
    EXPONENTIAL = 7


SUM_GROUPS = (Group.POLYNOMIAL_SUM, Group.COMPOSITE_SUM)


def validate_name(name: str, kind: str = "variable") -> str:
    """Enforce the naming rule: a letter followed by letters, digits or ``_``."""
    if not isinstance(name, str) or not _NAME_RULE.match(name):
        raise InvalidIdentifier(f"{name!r} is not a valid {kind} name", token=str(name))
    return name


def clean_number(x: float) -> float:
    """Collapse ``-0.0`` and float noise around integers."""
    x = float(x)
    if not math.isfinite(x):
        raise MalformedExpression(f"{x} is outside the number range")
    nearest = round(x)
    if nearest != 0 and abs(x - nearest) < 1e-12 * abs(nearest):
        return float(nearest)
    if abs(x) < 1e-300:
        return 0.0
    return x


def number_key(x: float) -> float:
    return round(x, 12) + 0.0


class Symbol:
    __slots__ = ("group", "value", "multiplier", "power", "children", "args",
                 "is_imaginary", "origin")

    def __init__(self, group: Group, value: str = NUMBER_VALUE, multiplier: float = 1.0,
                 power: Union[float, "Symbol"] = 1.0, children: Optional[dict] = None,
                 args: tuple = (), is_imaginary: bool = False,
                 origin: Optional[Group] = None):
        self.group = group
        self.value = value
        self.multiplier = float(multiplier)
        self.power = power if isinstance(power, Symbol) else float(power)
        self.children = children
        self.args = tuple(args)
        self.is_imaginary = is_imaginary
        self.origin = origin

    # ── Queries ──────────────────────────────────────────────────────────

    def base_group(self) -> Group:
        """The group that describes the base payload (origin for exponentials)."""
        return self.origin if self.group is Group.EXPONENTIAL else self.group

    def is_number(self) -> bool:
        return self.group is Group.NUMBER

    def is_sum(self) -> bool:
        return self.base_group() in SUM_GROUPS

    def is_expandable_sum(self) -> bool:
        """A sum whose children can be distributed over (numeric power exactly 1)."""
        return self.group in SUM_GROUPS and has_unit_power(self)

    def has_symbolic_power(self) -> bool:
        return isinstance(self.power, Symbol)

    # ── Structural keys ──────────────────────────────────────────────────

    def shape_key(self) -> tuple:
        """Identity of the base, ignoring multiplier and power."""
        group = self.base_group()
        if group is Group.NUMBER:
            return ("num", self.value)
        if group is Group.VARIABLE:
            return ("var", self.value)
        if group is Group.FUNCTION:
            return ("fn", self.value, tuple(arg.signature() for arg in self.args))
        if group is Group.COMPOSITE_PRODUCT:
            return ("prod", frozenset(c.signature() for c in self.children.values()))
        return ("sum", frozenset(c.signature() for c in self.children.values()))

    def full_key(self) -> tuple:
        return self.shape_key(), power_key(self.power)

    def signature(self) -> tuple:
        return self.full_key(), number_key(self.multiplier)

    def __eq__(self, other):
        if not isinstance(other, Symbol):
            return NotImplemented
        return self.signature() == other.signature()

    def __hash__(self):
        return hash(self.signature())

    # ── In-place helpers ─────────────────────────────────────────────────

    def negate(self) -> "Symbol":
        self.multiplier = -self.multiplier
        return self

    def copy(self) -> "Symbol":
        children = None
        if self.children is not None:
            children = {k: c.copy() for k, c in self.children.items()}
        power = self.power.copy() if isinstance(self.power, Symbol) else self.power
        return Symbol(self.group, self.value, self.multiplier, power, children,
                      tuple(a.copy() for a in self.args), self.is_imaginary, self.origin)

    def __repr__(self):
        from symparse.render import render_text
        return f"Symbol({self.group.name}, {render_text(self)!r})"


def power_key(power) -> object:
    if isinstance(power, Symbol):
        return ("sym", power.signature())
    return number_key(power)


def has_unit_power(symbol: Symbol) -> bool:
    return not isinstance(symbol.power, Symbol) and symbol.power == 1


def term_key(owner_group: Optional[Group], term: Symbol) -> object:
    """Key under which *term* is stored inside an owner of *owner_group*.

    Polynomial sums key by power (a constant term sits at power 0), products
    key by base shape so equal bases collide and merge exponents, everything
    else keys by shape and power.
    """
    if owner_group is Group.POLYNOMIAL_SUM:
        return 0.0 if term.group is Group.NUMBER else power_key(term.power)
    if owner_group is Group.COMPOSITE_PRODUCT:
        return term.shape_key()
    return term.full_key()


# ── Factories ────────────────────────────────────────────────────────────

def number(value: float) -> Symbol:
    return Symbol(Group.NUMBER, NUMBER_VALUE, clean_number(value))


def variable(name: str) -> Symbol:
    validate_name(name)
    return Symbol(Group.VARIABLE, name, is_imaginary=name == IMAGINARY_UNIT)


def imaginary_unit() -> Symbol:
    return variable(IMAGINARY_UNIT)


def function(name: str, args) -> Symbol:
    return Symbol(Group.FUNCTION, name, args=tuple(args))


def as_symbol(power) -> Symbol:
    """Wrap a numeric power in a Number; copy a symbolic one."""
    if isinstance(power, Symbol):
        return power.copy()
    return number(power)


def free_variables(symbol: Symbol, exclude=()) -> list:
    """Sorted free variable names of *symbol* (the imaginary unit excluded)."""
    found = set()
    _collect(symbol, found)
    found.discard(IMAGINARY_UNIT)
    return sorted(found.difference(exclude))


def _collect(symbol: Symbol, found: set) -> None:
    group = symbol.base_group()
    if group is Group.VARIABLE:
        found.add(symbol.value)
    for arg in symbol.args:
        _collect(arg, found)
    if symbol.children:
        for child in symbol.children.values():
            _collect(child, found)
    if isinstance(symbol.power, Symbol):
        _collect(symbol.power, found)


def format_number(x: float) -> str:
    """Canonical text for a float: integers without a decimal point."""
    x = float(x)
    if x.is_integer() and abs(x) < 1e15:
        return str(int(x))
    return f"{x:.{get_setting('number_precision')}g}"
