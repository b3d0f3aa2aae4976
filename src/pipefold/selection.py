"""Predicate filtering, quantifiers and search."""

from __future__ import annotations

import math
import numbers
from collections.abc import Mapping
from typing import Callable

from .errors import PathNotFound, TypeMismatch
from .values import MISSING, SequenceView, Table, as_sequence, is_sequence, resolve_position

_EQUALITY_MODES = ("exact", "numeric")
_DIRECTIONS = ("forward", "backward")


def _select(seq, pred: Callable, wanted: bool):
    view = as_sequence(seq)
    picked = [(label, item) for label, item in zip(view.labels(), view.values) if bool(pred(item)) is wanted]
    values = [item for _, item in picked]
    if view.keyed:
        return view.rebuild(values, keys=tuple(label for label, _ in picked))
    return view.rebuild(values, view.kind)


def keep(seq, pred: Callable):
    """Elements satisfying ``pred``, in their original order."""
    return _select(seq, pred, True)


def discard(seq, pred: Callable):
    """Elements failing ``pred``, in their original order."""
    return _select(seq, pred, False)


def every(seq, pred: Callable) -> bool:
    for item in as_sequence(seq).values:
        if not pred(item):
            return False
    return True


def some(seq, pred: Callable) -> bool:
    for item in as_sequence(seq).values:
        if pred(item):
            return True
    return False


def none(seq, pred: Callable) -> bool:
    return not some(seq, pred)


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _exact_equal(left: object, right: object) -> bool:
    return type(left) is type(right) and left == right


def _numeric_equal(left: object, right: object, tolerance: float) -> bool:
    if _is_number(left) and _is_number(right):
        if tolerance:
            return math.isclose(left, right, rel_tol=0.0, abs_tol=tolerance)
        return left == right
    return left == right


def has_element(seq, value, *, equality: str = "exact", tolerance: float = 0.0) -> bool:
    """Membership test with an explicit equality policy.

    ``"exact"`` requires the same type and value, so ``1``, ``1.0`` and
    ``True`` are all distinct. ``"numeric"`` compares real numbers by value
    (within an absolute ``tolerance``); other values use ``==``.
    """
    if equality not in _EQUALITY_MODES:
        raise ValueError(f"equality must be one of {_EQUALITY_MODES}, got {equality!r}")
    if tolerance < 0:
        raise ValueError("tolerance must be non-negative")
    values = as_sequence(seq).values
    if equality == "exact":
        return any(_exact_equal(item, value) for item in values)
    return any(_numeric_equal(item, value, tolerance) for item in values)


def _scan_order(view: SequenceView, direction: str):
    if direction not in _DIRECTIONS:
        raise ValueError(f"direction must be one of {_DIRECTIONS}, got {direction!r}")
    positions = range(len(view.values))
    return reversed(positions) if direction == "backward" else positions


def detect(seq, pred: Callable, *, direction: str = "forward", default=None):
    """First element satisfying ``pred``, or ``default`` when none does."""
    view = as_sequence(seq)
    for idx in _scan_order(view, direction):
        if pred(view.values[idx]):
            return view.values[idx]
    return default


def detect_index(seq, pred: Callable, *, direction: str = "forward") -> int:
    """1-based position of the first match, 0 when none matches."""
    view = as_sequence(seq)
    for idx in _scan_order(view, direction):
        if pred(view.values[idx]):
            return idx + 1
    return 0


def _pluck_step(current, step, *, where: str):
    if isinstance(current, Table):
        if not isinstance(step, str):
            raise PathNotFound(f"{where}: tables are indexed by column name")
        return current.column(step)
    if isinstance(current, Mapping):
        if not isinstance(step, str):
            raise PathNotFound(f"{where}: keyed container indexed by {type(step).__name__}")
        if step not in current:
            raise PathNotFound(f"{where}: key {step!r} not found")
        return current[step]
    if is_sequence(current):
        view = as_sequence(current)
        try:
            offset = resolve_position(step, len(view), where=where)
        except (IndexError, TypeMismatch) as err:
            raise PathNotFound(str(err)) from err
        return view.values[offset]
    raise PathNotFound(f"{where}: cannot index into {type(current).__name__}")


def pluck(container, *path, default=MISSING):
    """Drill into nested containers one path step at a time.

    String steps index keyed containers, integer steps are 1-based sequence
    positions. A missing step raises ``PathNotFound`` unless ``default`` is
    given.
    """
    current = container
    for depth, step in enumerate(path, start=1):
        try:
            current = _pluck_step(current, step, where=f"path step {depth} ({step!r})")
        except PathNotFound:
            if default is not MISSING:
                return default
            raise
    return current
