import numpy as np
import pytest

from symparse.errors import InvalidIdentifier, MalformedExpression
from symparse.parser import parse
from symparse.render import build_function, free_variables, render_latex, render_text


def _fn(expression: str) -> str:
    return render_text(parse(expression), "function")


def _latex(expression: str) -> str:
    return render_latex(parse(expression))


class TestText:
    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("x^(1/2)", "x^(0.5)"),
            ("x^-1", "x^(-1)"),
            ("x^2", "x^2"),
            ("2^x", "2^(x)"),
            ("(-2)^x", "(-2)^(x)"),
            ("-(x+y)^3*0+x-y", "x-y"),
            ("2*i+1", "1+2*i"),
            ("i*x+y", "y+x*i"),
        ],
    )
    def test_affixes(self, expression: str, expected: str) -> None:
        assert render_text(parse(expression)) == expected

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError, match="Unknown render mode"):
            render_text(parse("x"), "html")


class TestFunctionMode:
    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("x^2+1", "1+x**2"),
            ("sin(x)^2+sec(x)", "(1/np.cos(x))+np.sin(x)**2"),
            ("2*i", "2*1j"),
            ("PI*x", "np.pi*x"),
            ("E^x", "np.e**(x)"),
            ("asin(x)+abs(y)", "np.abs(y)+np.arcsin(x)"),
            ("x^(-1)", "x**(-1)"),
        ],
    )
    def test_numpy_syntax(self, expression: str, expected: str) -> None:
        assert _fn(expression) == expected

    def test_sum_node_has_no_numpy_form(self) -> None:
        with pytest.raises(MalformedExpression):
            _fn("sum(k,k,1,n)")


class TestLatex:
    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("x/2", r"\frac{x}{2}"),
            ("1/x", r"\frac{1}{x}"),
            ("-3/4", r"-\frac{3}{4}"),
            ("5", "5"),
            ("sqrt(x)", r"\sqrt{x}"),
            ("alpha^2", r"\alpha^{2}"),
            ("abs(x)", r"\left|x\right|"),
            ("x^(1/3)", r"x^{\frac{1}{3}}"),
            ("asin(x)", r"\arcsin\left(x\right)"),
            ("cos(x)", r"\cos\left(x\right)"),
            ("2*(x+y)^11", r"2 \cdot \left(x+y\right)^{11}"),
            ("x*y^-2", r"\frac{x}{y^{2}}"),
            ("2^x", "2^{x}"),
            ("PI*r", r"\pi \cdot r"),
            ("x/(y+1)", r"\frac{x}{1+y}"),
            ("-1/(y+1)", r"-\frac{1}{1+y}"),
            ("x/(y+1)/(z+1)", r"\frac{x}{\left(1+y\right) \cdot \left(1+z\right)}"),
        ],
    )
    def test_latex(self, expression: str, expected: str) -> None:
        assert _latex(expression) == expected


class TestBuildFunction:
    def test_parameters_default_to_sorted_free_variables(self) -> None:
        f = build_function(parse("x^2+y"))
        assert f.source == "def f(x, y):\n    return x**2+y\n"
        assert f(2, 3) == 7

    def test_vectorised_over_numpy_arrays(self) -> None:
        f = build_function(parse("x^2"))
        np.testing.assert_allclose(f(np.array([1.0, 2.0, 3.0])), [1.0, 4.0, 9.0])

    def test_explicit_parameter_order_and_name(self) -> None:
        g = build_function(parse("x-y"), params=["y", "x"], name="g")
        assert g.__name__ == "g"
        assert g(1, 5) == 4

    def test_missing_parameter(self) -> None:
        with pytest.raises(MalformedExpression, match="y"):
            build_function(parse("x*y"), params=["x"])

    def test_invalid_names(self) -> None:
        with pytest.raises(InvalidIdentifier):
            build_function(parse("x"), name="2f")
        with pytest.raises(InvalidIdentifier):
            build_function(parse("x"), params=["x-1"])

    def test_transcendental_and_complex(self) -> None:
        f = build_function(parse("sin(x)+cos(x)^2+abs(x)"))
        assert f(-1.0) == pytest.approx(np.sin(-1.0) + np.cos(-1.0) ** 2 + 1.0)
        h = build_function(parse("i*x+PI"))
        assert h(2.0) == pytest.approx(np.pi + 2j)

    def test_free_variables_skip_constants(self) -> None:
        assert free_variables(parse("PI*x+E*y+i")) == ["x", "y"]

    def test_reciprocal_trig_and_unused_parameter(self) -> None:
        f = build_function(parse("sec(x)+cot(x)"), params=["x", "t"])
        assert f(0.5, 9.0) == pytest.approx(1 / np.cos(0.5) + 1 / np.tan(0.5))

    def test_constant_expression(self) -> None:
        f = build_function(parse("2*PI"))
        assert f.source == "def f():\n    return 2*np.pi\n"
        assert f() == pytest.approx(2 * np.pi)
