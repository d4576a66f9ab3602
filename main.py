"""
SymParse — Entry point.

Parse one expression from the command line and print its canonical text,
its LaTeX form or the source of the generated NumPy function.
"""

import argparse
import logging
import sys

from symparse.errors import ExpressionError
from symparse.parser import evaluate, parse
from symparse.render import build_function, render_latex, render_text
from symparse.settings import get_setting


def _substitution(text: str) -> tuple:
    name, sep, value = text.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    value = value.strip()
    try:
        return name.strip(), float(value)
    except ValueError:
        return name.strip(), value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="symparse", description=__doc__.strip().splitlines()[0])
    parser.add_argument("expression", help="infix expression, e.g. \"2*x+3*x\"")
    parser.add_argument("--numeric", action="store_true",
                        help="evaluate functions and constants numerically")
    output = parser.add_mutually_exclusive_group()
    output.add_argument("--latex", action="store_true", help="print LaTeX")
    output.add_argument("--function", action="store_true",
                        help="print the source of the generated NumPy function")
    parser.add_argument("--sub", action="append", type=_substitution, default=[],
                        metavar="NAME=VALUE", help="substitute a value for a variable")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=get_setting("log_level"),
                        format="%(levelname)s %(name)s: %(message)s")
    run = evaluate if args.numeric else parse
    try:
        symbol = run(args.expression, dict(args.sub))
        if args.latex:
            out = render_latex(symbol)
        elif args.function:
            out = build_function(symbol).source.rstrip()
        else:
            out = render_text(symbol)
    except ExpressionError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
