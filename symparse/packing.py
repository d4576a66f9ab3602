"""Conversion between a flat term mapping and a single Symbol."""

from symparse.combinators import insert_term, rekey, sum_group
from symparse.symbol import Group, Symbol, number


def pack(terms: dict) -> Symbol:
    """Fold a term mapping into one Symbol.

    An empty mapping is zero and a single entry is returned as-is (a composite
    entry stays wrapped, it is not unpacked again). Anything larger becomes a
    polynomial or composite sum.
    """
    if not terms:
        return number(0)
    if len(terms) == 1:
        return next(iter(terms.values()))
    entries = list(terms.values())
    group = sum_group(entries)
    return Symbol(group, children=rekey(entries, group))


def unpack(symbol: Symbol, terms: dict) -> None:
    """Insert *symbol* into *terms*, expanding a sum of exponent 1 into its terms."""
    if symbol.is_expandable_sum():
        for child in symbol.children.values():
            child.multiplier *= symbol.multiplier
            insert_term(terms, child)
    else:
        insert_term(terms, symbol)


def zero_terms() -> dict:
    zero = number(0)
    return {zero.full_key(): zero}
