"""Lexer: expression string → nested token list.

Numbers and names are kept as strings, operators are single characters, and
every parenthesized group becomes a nested list, e.g.
``"2*(x+1)"`` → ``["2", "*", ["x", "+", "1"]]``.
"""

import re

from symparse.errors import MalformedExpression, UnsupportedOperator

OPERATORS = {
    ",": 0,
    "+": 1,
    "-": 1,
    "*": 2,
    "/": 2,
    "^": 3,
}

# Scientific notation: the exponent sign must not be split off as an operator.
_SCIENTIFIC = re.compile(r"(?<![\w.])(\d+\.?\d*|\.\d+)[eE]([+-])(\d+)")
# Operator characters from other notations that have no meaning here.
_UNSUPPORTED = frozenset("%!&|=<>@$~?;:")
_SIGN_MARKERS = {"-": "\x01", "+": "\x02"}
_RESTORE = str.maketrans({"\x01": "-", "\x02": "+"})


def _protect_exponent(m: re.Match) -> str:
    return f"{m.group(1)}e{_SIGN_MARKERS[m.group(2)]}{m.group(3)}"


def normalize(expression: str) -> str:
    """Protect exponent signs, drop whitespace and make ``)(`` an explicit product."""
    text = _SCIENTIFIC.sub(_protect_exponent, str(expression))
    text = "".join(text.split())
    return text.replace(")(", ")*(")


def tokenize(expression: str) -> list:
    text = normalize(expression)
    root = []
    stack = root
    parents = []
    buffer = []

    def flush():
        if buffer:
            stack.append("".join(buffer).translate(_RESTORE))
            buffer.clear()

    for char in text:
        if char in OPERATORS:
            flush()
            stack.append(char)
        elif char == "(":
            flush()
            group = []
            stack.append(group)
            parents.append(stack)
            stack = group
        elif char == ")":
            flush()
            if not parents:
                raise MalformedExpression(f"Missing '(' in: {expression}", token=")")
            stack = parents.pop()
        elif char in _UNSUPPORTED:
            raise UnsupportedOperator(f"{char} is not a supported operator", token=char)
        else:
            buffer.append(char)
    flush()

    if parents:
        raise MalformedExpression(f"Missing ')' in: {expression}", token="(")
    return root
