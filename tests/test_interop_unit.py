import pytest
import sympy
from sympy import Abs, I, Sum, expand, pi, simplify, symbols

from symparse.interop import to_sympy
from symparse.parser import parse
from symparse.render import build_function

x, y, k, n = symbols("x y k n")


def test_polynomial_matches_sympy_expansion() -> None:
    converted = to_sympy(parse("(x+1)^3"))
    assert expand(converted - (x + 1) ** 3) == 0


def test_special_names() -> None:
    assert to_sympy(parse("abs(x)+i+PI")) == Abs(x) + I + pi
    assert to_sympy(parse("E^x")) == sympy.exp(x)


def test_sum_node() -> None:
    converted = to_sympy(parse("sum(k,k,1,n)"))
    assert isinstance(converted, Sum)
    assert simplify(converted.doit() - n * (n + 1) / 2) == 0


@pytest.mark.parametrize(
    "expression",
    [
        "(x+1)^3",
        "(x-2)*(x+2)",
        "sin(x)^2/x",
        "2^x*x^2",
        "sqrt(x^2+1)-log(x)",
        "sec(x)+cot(x)",
        "(x+y)^2/(x-y)",
    ],
)
def test_numeric_agreement_with_sympy(expression: str) -> None:
    ours = build_function(parse(expression), params=["x", "y"])
    oracle = sympy.sympify(expression.replace("^", "**"), locals={"x": x, "y": y})
    for xv, yv in [(0.7, 0.3), (1.9, -0.4)]:
        expected = complex(oracle.subs({x: xv, y: yv}).evalf())
        assert complex(ours(xv, yv)) == pytest.approx(expected, rel=1e-9)


def test_unconvertible_text() -> None:
    with pytest.raises(ValueError, match="Could not convert"):
        to_sympy(parse("lambda+1"))
