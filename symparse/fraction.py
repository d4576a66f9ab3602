"""Decimal → fraction approximation used by the LaTeX renderer."""

import math
from decimal import Decimal

from symparse.settings import get_settings


def to_fraction(value: float) -> tuple[int, int]:
    """Approximate *value* as a ``(numerator, denominator)`` pair.

    The sign is carried by the numerator. Values whose magnitude falls outside
    ``[1e-6, 1e20]`` are decomposed from their exponential notation; all other
    values go through a continued-fraction expansion.
    """
    if value == 0:
        return 0, 1
    sign = -1 if value < 0 else 1
    magnitude = abs(value)
    if magnitude < 1e-6 or magnitude > 1e20:
        num, den = _quick_conversion(magnitude)
    else:
        num, den = _full_conversion(magnitude)
    return sign * num, den


def _quick_conversion(magnitude: float) -> tuple[int, int]:
    """Exact fraction of the shortest decimal representation of *magnitude*."""
    _, digits, exponent = Decimal(repr(magnitude)).as_tuple()
    num = int("".join(str(d) for d in digits))
    if exponent >= 0:
        return num * 10 ** exponent, 1
    den = 10 ** -exponent
    common = math.gcd(num, den)
    return num // common, den // common


def _full_conversion(magnitude: float) -> tuple[int, int]:
    """Continued-fraction approximation, stopping once the error is below
    ``fraction_epsilon`` or the step limits are reached."""
    settings = get_settings()
    epsilon = settings["fraction_epsilon"]
    max_steps = settings["fraction_max_steps"]
    hard_cap = settings["fraction_hard_cap"]

    n1, d1, n2, d2 = 0, 1, 1, 0
    q = magnitude
    steps = 0
    while True:
        steps += 1
        a = int(q)
        num = n1 + a * n2
        den = d1 + a * d2
        remainder = q - a
        if remainder < epsilon or steps > hard_cap:
            break
        if abs(num / den - magnitude) < epsilon or steps > max_steps:
            break
        q = 1 / remainder
        n1, d1, n2, d2 = n2, d2, num, den
    return num, den
