"""Cartesian product combinators."""

from __future__ import annotations

from collections.abc import Mapping
from itertools import product
from typing import Callable

from .values import Seq, Table, as_sequence


def cross(*seqs, exclude: Callable[..., bool] | None = None) -> Seq:
    """Every tuple taking one element from each input, last input varying fastest.

    Duplicate input values yield separate tuples. An empty input, or no inputs
    at all, gives an empty product. ``exclude(*combo)`` returning true drops
    that combination.
    """
    if not seqs:
        return Seq()
    views = [as_sequence(item, where=f"input {idx + 1}") for idx, item in enumerate(seqs)]
    combos = product(*(view.values for view in views))
    if exclude is not None:
        combos = (combo for combo in combos if not exclude(*combo))
    return Seq(combos)


def cross_to_table(named: Mapping | None = None, /, *, exclude: Callable[..., bool] | None = None, **columns) -> Table:
    """Cartesian product of named inputs projected into a ``Table``.

    Inputs come from a mapping, keyword arguments, or both; each name becomes a
    column, rows follow ``cross`` order.
    """
    inputs: dict[str, object] = {}
    if named is not None:
        if not isinstance(named, Mapping):
            raise TypeError("cross_to_table() requires named inputs (a mapping or keyword arguments)")
        inputs.update(named)
    for name, values in columns.items():
        if name in inputs:
            raise TypeError(f"column {name!r} given twice")
        inputs[name] = values
    for name in inputs:
        if not isinstance(name, str) or not name:
            raise TypeError(f"column names must be non-empty strings, got {name!r}")
    names = tuple(inputs)
    rows = cross(*(inputs[name] for name in names), exclude=exclude)
    return Table(columns=names, rows=tuple(rows))
