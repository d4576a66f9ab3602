"""Function application: built-in handlers and user-defined functions.

Built-ins evaluate to a number only under numeric evaluation and only when
their argument is a plain number; otherwise they produce a function node.
User functions are re-parsed from their body with the parameters bound.
"""

import logging
import math

from symparse.combinators import absolute, add, multiply, power
from symparse.environment import CompositeFunction, Environment, NativeFunction, is_numeric
from symparse.errors import MalformedExpression
from symparse.settings import get_setting
from symparse.symbol import (
    Group, Symbol, as_symbol, function, has_unit_power, imaginary_unit, number,
)

logger = logging.getLogger(__name__)

_MATH = {
    "cos": math.cos,
    "sin": math.sin,
    "tan": math.tan,
    "sec": lambda x: 1 / math.cos(x),
    "csc": lambda x: 1 / math.sin(x),
    "cot": lambda x: 1 / math.tan(x),
    "acos": math.acos,
    "asin": math.asin,
    "atan": math.atan,
    "exp": math.exp,
    "log": math.log,
}


def _evaluate(name: str, arg: Symbol) -> Symbol:
    if arg.group is Group.NUMBER and is_numeric():
        try:
            value = _MATH[name](arg.multiplier)
        except (ValueError, ZeroDivisionError, OverflowError):
            # outside the real domain: leave it symbolic
            logger.debug("%s(%s) has no real value; kept symbolic", name, arg.multiplier)
        else:
            return number(value)
    return function(name, [arg])


def _transcendental(name: str):
    def handler(env, arg):
        return _evaluate(name, arg)
    handler.__name__ = f"_{name}"
    return handler


def _parens(env, arg):
    return arg


def _sqrt(env, arg):
    return power(arg, number(0.5))


def _log(env, arg):
    if arg.multiplier == 1 and arg.base_group() is Group.VARIABLE and arg.value == "e":
        return as_symbol(arg.power)
    if (arg.group is Group.FUNCTION and arg.value == "exp" and arg.multiplier == 1
            and has_unit_power(arg)):
        return arg.args[0]
    if arg.group is Group.NUMBER and is_numeric() and arg.multiplier < 0:
        real = _evaluate("log", number(-arg.multiplier))
        return add(real, multiply(number(math.pi), imaginary_unit()))
    return _evaluate("log", arg)


def _abs(env, arg):
    if arg.group is Group.NUMBER:
        return number(abs(arg.multiplier))
    p = arg.power
    if not isinstance(p, Symbol):
        if 0 < abs(p) < 1:
            p = 1 / p
        if abs(p - round(p)) < 1e-12 and int(round(p)) % 2 == 0:
            # an even power is never negative
            arg.multiplier = abs(arg.multiplier)
            return arg
    return absolute(arg)


def _sum(env, body, index, lower, upper):
    """Finite sum of *body* for *index* running from *lower* to *upper*."""
    from symparse.parser import parse

    if index.group is not Group.VARIABLE or index.multiplier != 1 or not has_unit_power(index):
        raise MalformedExpression("The summation index must be a plain variable")
    if _is_integral(lower) and _is_integral(upper):
        first, last = int(lower.multiplier), int(upper.multiplier)
        if last - first + 1 > get_setting("sum_expand_limit"):
            logger.debug("sum over %d terms left unexpanded", last - first + 1)
            return function("sum", [body, index, lower, upper])
        total = number(0)
        for k in range(first, last + 1):
            total = add(total, parse(body, {index.value: k}, env))
        return total
    return function("sum", [body, index, lower, upper])


def _is_integral(symbol: Symbol) -> bool:
    return symbol.group is Group.NUMBER and float(symbol.multiplier).is_integer()


BUILTINS = {
    "parens": NativeFunction("parens", _parens),
    "sqrt": NativeFunction("sqrt", _sqrt),
    "log": NativeFunction("log", _log),
    "abs": NativeFunction("abs", _abs),
    "sum": NativeFunction("sum", _sum, arity=4),
}
for _name in ("cos", "sin", "tan", "sec", "csc", "cot", "acos", "asin", "atan", "exp"):
    BUILTINS[_name] = NativeFunction(_name, _transcendental(_name))


def lookup(name: str, environment: Environment):
    descriptor = BUILTINS.get(name) or environment.user_function(name)
    if descriptor is None:
        raise MalformedExpression(f"{name} is not a known function", token=name)
    return descriptor


def apply_function(name: str, args: list, environment: Environment) -> Symbol:
    """Resolve ``name(args...)`` into a Symbol."""
    descriptor = lookup(name, environment)
    if len(args) != descriptor.arity:
        raise MalformedExpression(
            f"{name} expects {descriptor.arity} argument(s), got {len(args)}", token=name)
    if isinstance(descriptor, CompositeFunction):
        return _call_composite(descriptor, args, environment)
    return descriptor.handler(environment, *args)


def _call_composite(descriptor: CompositeFunction, args: list, environment: Environment) -> Symbol:
    from symparse.parser import parse

    logger.debug("expanding %s%s", descriptor.name, descriptor.params)
    return parse(descriptor.body, dict(zip(descriptor.params, args)), environment)
