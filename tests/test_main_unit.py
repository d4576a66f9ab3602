import pytest

import main


@pytest.mark.parametrize(
    "argv,expected",
    [
        (["2*x+3*x"], "5*x"),
        (["sin(0)", "--numeric"], "0"),
        (["x/2", "--latex"], r"\frac{x}{2}"),
        (["x^2", "--function"], "def f(x):\n    return x**2"),
        (["x+y", "--sub", "x=2"], "2+y"),
        (["x+y", "--sub", "x=a^2", "--sub", "y=3"], "3+a^2"),
    ],
)
def test_main_prints_result(capsys, argv: list, expected: str) -> None:
    assert main.main(argv) == 0
    assert capsys.readouterr().out == expected + "\n"


def test_main_reports_errors(capsys) -> None:
    assert main.main(["(x"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "error:" in captured.err


def test_bad_substitution_is_a_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as info:
        main.main(["x", "--sub", "novalue"])
    assert info.value.code == 2


def test_latex_and_function_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        main.main(["x", "--latex", "--function"])
