"""Precedence-driven reducer: token list → term mapping → Symbol.

Additive terms are folded straight into a term mapping, where like terms
merge on insertion; products and powers are reduced through the combinators
before being folded in. Subtraction is negation followed by addition.
"""

import logging
import math
import re
from typing import Optional

from symparse.combinators import divide, multiply, power
from symparse.environment import (
    DEFAULT_ENVIRONMENT, Environment, check_reserved, is_numeric, numeric_mode,
)
from symparse.errors import MalformedExpression, ReservedNameViolation
from symparse.functions import apply_function
from symparse.packing import pack, unpack, zero_terms
from symparse.render import render_text
from symparse.symbol import Symbol, number, validate_name, variable
from symparse.tokenizer import OPERATORS, tokenize

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"^(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

_PRODUCT_OPERATORS = {
    "*": multiply,
    "/": divide,
}


def parse(expression, substitutions: Optional[dict] = None,
          environment: Optional[Environment] = None) -> Symbol:
    """Parse and simplify *expression* into a single Symbol.

    *expression* may also be a Symbol, which is re-parsed from its canonical
    text (this is how evaluation re-runs an already simplified expression).
    """
    env = environment or DEFAULT_ENVIRONMENT
    subs = check_substitutions(substitutions)
    if isinstance(expression, Symbol):
        expression = render_text(expression)
    tokens = tokenize(expression)
    if not tokens:
        raise MalformedExpression("Expression is empty")
    result = pack(parse_tokens(tokens, subs, env))
    logger.debug("parsed %r (numeric=%s)", expression, is_numeric())
    return result


def evaluate(expression, substitutions: Optional[dict] = None,
             environment: Optional[Environment] = None) -> Symbol:
    """Parse *expression* with numeric evaluation switched on."""
    with numeric_mode():
        return parse(expression, substitutions, environment)


def check_substitutions(substitutions: Optional[dict]) -> dict:
    if not substitutions:
        return {}
    for name in substitutions:
        validate_name(name)
        check_reserved(name)
    return dict(substitutions)


def parse_tokens(tokens: list, substitutions: dict, environment: Environment) -> dict:
    """Reduce *tokens* into a term mapping (canonical key → Symbol)."""
    terms = _Reducer(tokens, substitutions, environment).terms()
    # 1-1 cancels to nothing; keep an explicit zero
    if not terms:
        terms = zero_terms()
    return terms


def split_arguments(tokens: list) -> list:
    """Split a group's tokens on top-level commas."""
    parts = [[]]
    for token in tokens:
        if token == ",":
            parts.append([])
        else:
            parts[-1].append(token)
    return parts


class _Reducer:
    """Recursive descent over one token level.

    Precedence (lowest first): comma, ``+ -``, ``* /``, ``^``. Powers are right
    associative, everything else left associative.
    """

    def __init__(self, tokens: list, substitutions: dict, environment: Environment):
        self.tokens = tokens
        self.pos = 0
        self.subs = substitutions
        self.env = environment

    def peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self):
        token = self.peek()
        self.pos += 1
        return token

    # ── Precedence levels ────────────────────────────────────────────────

    def terms(self) -> dict:
        parsed = {}
        while True:
            negative = False
            while self.peek() in ("+", "-"):
                if self.advance() == "-":
                    negative = not negative
            term = self.product()
            if negative:
                term.negate()
            unpack(term, parsed)

            token = self.peek()
            if token is None:
                return parsed
            if token == ",":
                raise MalformedExpression("Unexpected ',' outside of a function call", token=",")
            if token not in ("+", "-"):
                raise MalformedExpression(f"Unexpected token: {token}", token=str(token))

    def product(self) -> Symbol:
        result = self.factor()
        while True:
            token = self.peek()
            if isinstance(token, list):
                # 2(x+1)
                result = multiply(result, self.factor())
            elif token in ("*", "/"):
                self.advance()
                result = _PRODUCT_OPERATORS[token](result, self.factor())
            else:
                return result

    def factor(self) -> Symbol:
        token = self.peek()
        if token in ("+", "-"):
            self.advance()
            operand = self.factor()
            return operand.negate() if token == "-" else operand
        base = self.primary()
        if self.peek() == "^":
            self.advance()
            return power(base, self.factor())
        return base

    def primary(self) -> Symbol:
        token = self.advance()
        if token is None:
            raise MalformedExpression("Unexpected end of expression")
        if isinstance(token, list):
            parts = split_arguments(token)
            if len(parts) > 1:
                raise MalformedExpression("Unexpected ',' outside of a function call", token=",")
            return self.subexpression(token)
        if token in OPERATORS:
            raise MalformedExpression(f"Unexpected operator: {token}", token=token)
        if self.env.is_function(token):
            if not isinstance(self.peek(), list):
                raise ReservedNameViolation(f"{token} is a function and needs arguments", token=token)
            args = [self.subexpression(part) for part in split_arguments(self.advance())]
            return apply_function(token, args, self.env)
        return self.leaf(token)

    def subexpression(self, tokens: list) -> Symbol:
        if not tokens:
            raise MalformedExpression("Empty brackets", token="()")
        return pack(parse_tokens(tokens, self.subs, self.env))

    def leaf(self, token: str) -> Symbol:
        if _NUMBER.match(token):
            value = float(token)
            if math.isinf(value):
                raise MalformedExpression(f"{token} is outside the number range", token=token)
            return number(value)
        if token in self.subs:
            return _substitute(self.subs[token], self.env)
        if is_numeric():
            value = self.env.constant(token)
            if value is not None:
                return number(value)
        return variable(token)


def _substitute(value, environment: Environment) -> Symbol:
    if isinstance(value, Symbol):
        return value.copy()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return number(value)
    return parse(str(value), environment=environment)
