import pytest

from symparse.combinators import add, divide, multiply, power, subtract
from symparse.environment import numeric_mode
from symparse.errors import DivisionByZero
from symparse.parser import parse
from symparse.render import render_text
from symparse.symbol import Group, number, variable


def _text(expression: str) -> str:
    return render_text(parse(expression))


class TestPublicCombinators:
    def test_add_merges_like_terms(self) -> None:
        assert render_text(add(variable("x"), variable("x"))) == "2*x"

    def test_subtract_cancels(self) -> None:
        result = subtract(variable("x"), variable("x"))
        assert result.group is Group.NUMBER
        assert result.multiplier == 0

    def test_multiply_merges_exponents(self) -> None:
        assert render_text(multiply(variable("x"), variable("x"))) == "x^2"

    def test_divide_by_itself(self) -> None:
        assert render_text(divide(variable("x"), variable("x"))) == "1"

    def test_operands_are_left_untouched(self) -> None:
        x = variable("x")
        total = parse("x+1")
        multiply(x, x)
        power(total, number(2))
        add(total, x)
        assert x.power == 1.0 and x.multiplier == 1.0
        assert render_text(total) == "1+x"

    def test_divide_by_zero(self) -> None:
        with pytest.raises(DivisionByZero):
            divide(variable("x"), number(0))

    def test_numbers(self) -> None:
        assert render_text(power(number(2), number(3))) == "8"
        assert render_text(divide(number(2), number(4))) == "0.5"


@pytest.mark.parametrize(
    "expression,expected",
    [
        ("2*x+3*x", "5*x"),
        ("x+x", "2*x"),
        ("x-x", "0"),
        ("0*x", "0"),
        ("2*x*3", "6*x"),
        ("x^0", "1"),
        ("(2*x)^2", "4*x^2"),
        ("(x*y)^2", "x^2*y^2"),
        ("x^y*x^z", "x^(y+z)"),
        ("x^y/x^y", "1"),
        ("(x+1)(x-1)", "-1+x^2"),
        ("2(x+1)", "2+2*x"),
        ("(x+1)^2-(x^2+2*x+1)", "0"),
        ("(x+1)/(x+1)", "1"),
    ],
)
def test_simplification(expression: str, expected: str) -> None:
    assert _text(expression) == expected


def test_exponent_merge_matches_direct_power() -> None:
    assert _text("x^2*x^3") == _text("x^5") == "x^5"


def test_square_of_sum_expands_to_polynomial() -> None:
    result = parse("(x+1)^2")
    assert result.group is Group.POLYNOMIAL_SUM
    assert sorted(result.children) == [0.0, 1.0, 2.0]
    assert render_text(result) == "1+2*x+x^2"


def test_large_powers_of_sums_stay_folded() -> None:
    assert _text("(x+y)^11") == "(x+y)^11"
    assert _text("3*(x+y)^11") == "3*(x+y)^11"


class TestImaginaryUnit:
    @pytest.mark.parametrize(
        "expression,expected",
        [("i^2", "-1"), ("i^3", "-i"), ("i^4", "1"), ("i^5", "i"), ("i*i", "-1")],
    )
    def test_integer_powers_cycle(self, expression: str, expected: str) -> None:
        assert _text(expression) == expected

    def test_even_root_of_negative_number(self) -> None:
        assert _text("(-4)^(1/2)") == "2*i"


class TestRadicals:
    def test_odd_root_of_negative_number_is_real(self) -> None:
        assert _text("(-8)^(1/3)") == "-2"

    def test_odd_root_in_numeric_mode_is_principal_complex(self) -> None:
        with numeric_mode():
            result = parse("(-8)^(1/3)")
        assert result.group is Group.COMPOSITE_SUM
        assert render_text(result) == "1+1.73205080756888*i"

    def test_square_root_of_square_is_absolute_value(self) -> None:
        assert _text("sqrt(x^2)") == "abs(x)"
        assert _text("sqrt(x)^2") == "x"

    def test_zero_to_negative_power(self) -> None:
        with pytest.raises(DivisionByZero):
            parse("0^-1")
