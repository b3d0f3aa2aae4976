"""Short-circuiting folds: ``reduce`` and ``accumulate``.

The combining function returns either a plain value (keep running), a
``Continue`` or a ``Stop``. ``done(value)`` is shorthand for ``Stop(value)``;
``done()`` stops with the current accumulator unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, TypeVar

from .errors import EmptyInputNoInit
from .values import MISSING, Seq, as_sequence, infer_kind

logger = logging.getLogger(__name__)

A = TypeVar("A")

_DIRECTIONS = ("forward", "backward")


@dataclass(frozen=True)
class Continue(Generic[A]):
    value: A


@dataclass(frozen=True)
class Stop(Generic[A]):
    value: object = MISSING

    @property
    def carries_value(self) -> bool:
        return self.value is not MISSING


def done(value=MISSING) -> Stop:
    return Stop(value)


def _fold_steps(seq, combine: Callable, direction: str, init) -> Iterator[object]:
    """Yield every accumulator state the fold passes through."""
    if direction not in _DIRECTIONS:
        raise ValueError(f"direction must be one of {_DIRECTIONS}, got {direction!r}")
    values = as_sequence(seq).values
    if direction == "backward":
        values = values[::-1]

    if init is MISSING:
        if not values:
            raise EmptyInputNoInit("cannot reduce an empty input without init")
        acc, rest = values[0], values[1:]
    else:
        acc, rest = init, values
    yield acc

    for step, item in enumerate(rest, start=1):
        if direction == "backward":
            result = combine(item, acc)
        else:
            result = combine(acc, item)

        if isinstance(result, Stop):
            logger.debug("fold stopped after %d of %d step(s)", step, len(rest))
            if result.carries_value:
                yield result.value
            return
        acc = result.value if isinstance(result, Continue) else result
        yield acc


def reduce(seq, combine: Callable, *, direction: str = "forward", init=MISSING):
    """Fold ``seq`` with ``combine``.

    Forward computes ``combine(combine(a1, a2), a3)``; backward computes
    ``combine(a1, combine(a2, a3))`` and places ``init`` at the right end.
    """
    acc = MISSING
    for acc in _fold_steps(seq, combine, direction, init):
        pass
    return acc


def accumulate(seq, combine: Callable, *, direction: str = "forward", init=MISSING) -> Seq:
    """Every accumulator value a ``reduce`` would pass through.

    The output stops where the fold stops. Backward results are listed in input
    position order, so the final accumulator comes first.
    """
    states = list(_fold_steps(seq, combine, direction, init))
    if direction == "backward":
        states.reverse()
    return Seq(states, infer_kind(states))
