"""Selective replace combinators that keep the input's element kind."""

from __future__ import annotations

from typing import Callable

from .errors import IndexOutOfRange
from .values import SequenceView, as_sequence, coerce_element, rebuild_like, resolve_position


def _modify_where(seq, view: SequenceView, selected, fn: Callable):
    out = list(view.values)
    labels = view.labels()
    for idx in selected:
        label = labels[idx]
        out[idx] = coerce_element(fn(out[idx]), view.kind, where=f"result at {label!r}")
    return rebuild_like(seq, view, out, view.kind)


def modify(seq, fn: Callable):
    """Like ``map`` but every result must fit the input's element kind."""
    view = as_sequence(seq)
    return _modify_where(seq, view, range(len(view)), fn)


def modify_if(seq, pred: Callable, fn: Callable):
    view = as_sequence(seq)
    selected = [idx for idx, item in enumerate(view.values) if pred(item)]
    return _modify_where(seq, view, selected, fn)


def modify_at(seq, positions, fn: Callable):
    """Apply ``fn`` at 1-based ``positions`` (or keys for keyed input)."""
    view = as_sequence(seq)
    if isinstance(positions, (str, int)):
        positions = (positions,)
    selected: list[int] = []
    for position in positions:
        if view.keyed and isinstance(position, str):
            if position not in view.keys:
                raise IndexOutOfRange(f"key {position!r} not found")
            offset = view.keys.index(position)
        else:
            offset = resolve_position(position, len(view))
        if offset not in selected:
            selected.append(offset)
    return _modify_where(seq, view, selected, fn)
