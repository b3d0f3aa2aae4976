"""Element-wise transformation combinators."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Callable

from .errors import LengthMismatch
from .values import ElementKind, Seq, SequenceView, as_sequence, coerce_element


def _apply_typed(view: SequenceView, fn: Callable, kind: ElementKind, args, kwargs):
    out = []
    for label, item in zip(view.labels(), view.values):
        result = fn(item, *args, **kwargs)
        out.append(coerce_element(result, kind, where=f"result at {label!r}"))
    return view.rebuild(out, kind)


def map(seq, fn: Callable, *args, **kwargs):
    """Apply ``fn`` to each element in index order.

    Extra arguments are forwarded after the element. Keyed containers map to a
    ``Record`` with the same keys, everything else to a generic ``Seq``.
    """
    return _apply_typed(as_sequence(seq), fn, ElementKind.ANY, args, kwargs)


def map_bool(seq, fn: Callable, *args, **kwargs):
    return _apply_typed(as_sequence(seq), fn, ElementKind.BOOL, args, kwargs)


def map_int(seq, fn: Callable, *args, **kwargs):
    return _apply_typed(as_sequence(seq), fn, ElementKind.INT, args, kwargs)


def map_float(seq, fn: Callable, *args, **kwargs):
    return _apply_typed(as_sequence(seq), fn, ElementKind.FLOAT, args, kwargs)


def map_string(seq, fn: Callable, *args, **kwargs):
    return _apply_typed(as_sequence(seq), fn, ElementKind.STRING, args, kwargs)


def imap(seq, fn: Callable, *args, **kwargs):
    """Call ``fn(element, index)`` with a 1-based index (or the key for keyed input)."""
    view = as_sequence(seq)
    out = [fn(item, label, *args, **kwargs) for label, item in zip(view.labels(), view.values)]
    return view.rebuild(out)


def _check_lengths(views: list[SequenceView], names) -> int:
    lengths = {len(view) for view in views}
    if len(lengths) > 1:
        detail = ", ".join(f"{name}={len(view)}" for name, view in zip(names, views))
        raise LengthMismatch(f"inputs must have equal lengths, got {detail}")
    return lengths.pop() if lengths else 0


def map2(a, b, fn: Callable, *args, **kwargs):
    """Call ``fn(a_i, b_i)`` pairwise over two equal-length inputs."""
    left = as_sequence(a, where="first input")
    right = as_sequence(b, where="second input")
    _check_lengths([left, right], ("first", "second"))
    out = [fn(x, y, *args, **kwargs) for x, y in zip(left.values, right.values)]
    return left.rebuild(out)


def pmap(seqs, fn: Callable, *args, **kwargs):
    """Call ``fn`` with the i-th element of every input.

    ``seqs`` is a tuple/list of sequences (positional arguments) or a keyed
    container of sequences (keyword arguments named after the keys).
    """
    if isinstance(seqs, Mapping):
        names = tuple(seqs.keys())
        views = [as_sequence(seqs[name], where=f"input {name!r}") for name in names]
        length = _check_lengths(views, names)
        out = []
        for idx in range(length):
            row = {name: view.values[idx] for name, view in zip(names, views)}
            out.append(fn(*args, **row, **kwargs))
        return Seq(out)

    views = [as_sequence(item, where=f"input {idx + 1}") for idx, item in enumerate(seqs)]
    length = _check_lengths(views, range(1, len(views) + 1))
    out = [fn(*(view.values[idx] for view in views), *args, **kwargs) for idx in range(length)]
    return Seq(out)
