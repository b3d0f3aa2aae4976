"""Runtime pipe rewriting: placeholders, call templates and the ``Pipe`` wrapper.

A stage is either a plain callable, a :class:`Template` built by :func:`call`,
or an :class:`Opaque` block built by :func:`opaque`. Binding a value ``v`` to a
template ``f(a1, ..., aN)`` follows one rule:

* no top-level argument is the bare placeholder -> ``f(v, a1, ..., aN)``;
* otherwise every top-level placeholder is replaced by ``v`` and ``v`` is not
  prepended.

Placeholders inside sub-expressions (``_ - 2``, a nested ``call(...)``) are
resolved with ``v`` but never count for that decision, so
``pipe(5, call(choose, _ - 2))`` is ``choose(5, 3)``. An opaque block resolves
placeholders at every depth and never prepends.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass, field
from functools import reduce as _fold
from typing import Any, Callable, ClassVar

logger = logging.getLogger(__name__)


class _Symbolic:
    """Operator overloads shared by the placeholder and deferred expressions."""

    def _defer(self, op: Callable, *operands) -> "Deferred":
        return Deferred(op, operands)

    def __add__(self, other):
        return self._defer(operator.add, self, other)

    def __radd__(self, other):
        return self._defer(operator.add, other, self)

    def __sub__(self, other):
        return self._defer(operator.sub, self, other)

    def __rsub__(self, other):
        return self._defer(operator.sub, other, self)

    def __mul__(self, other):
        return self._defer(operator.mul, self, other)

    def __rmul__(self, other):
        return self._defer(operator.mul, other, self)

    def __truediv__(self, other):
        return self._defer(operator.truediv, self, other)

    def __rtruediv__(self, other):
        return self._defer(operator.truediv, other, self)

    def __floordiv__(self, other):
        return self._defer(operator.floordiv, self, other)

    def __rfloordiv__(self, other):
        return self._defer(operator.floordiv, other, self)

    def __mod__(self, other):
        return self._defer(operator.mod, self, other)

    def __rmod__(self, other):
        return self._defer(operator.mod, other, self)

    def __pow__(self, other):
        return self._defer(operator.pow, self, other)

    def __rpow__(self, other):
        return self._defer(operator.pow, other, self)

    # __eq__ and __ne__ stay identity-based so placeholders remain hashable.
    def __lt__(self, other):
        return self._defer(operator.lt, self, other)

    def __le__(self, other):
        return self._defer(operator.le, self, other)

    def __gt__(self, other):
        return self._defer(operator.gt, self, other)

    def __ge__(self, other):
        return self._defer(operator.ge, self, other)

    def __neg__(self):
        return self._defer(operator.neg, self)

    def __getitem__(self, key):
        return self._defer(operator.getitem, self, key)


class PlaceholderType(_Symbolic):
    _instance: ClassVar["PlaceholderType | None"] = None

    def __new__(cls) -> "PlaceholderType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "_"

    def __reduce__(self):
        return (PlaceholderType, ())


PLACEHOLDER = PlaceholderType()
_ = PLACEHOLDER


@dataclass(frozen=True, eq=False)
class Deferred(_Symbolic):
    """Unevaluated operator application over placeholders."""

    op: Callable
    operands: tuple

    def __repr__(self) -> str:
        name = getattr(self.op, "__name__", repr(self.op))
        return f"{name}({', '.join(repr(item) for item in self.operands)})"


@dataclass(frozen=True, eq=False)
class Template:
    """Call template ``func(*args, **kwargs)`` awaiting a piped value."""

    func: Callable
    args: tuple = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    @property
    def has_top_level_placeholder(self) -> bool:
        if any(arg is PLACEHOLDER for arg in self.args):
            return True
        return any(value is PLACEHOLDER for value in self.kwargs.values())

    def bind(self, value):
        """Apply the first-argument/placeholder rule and call ``func``."""
        args = tuple(resolve(arg, value) for arg in self.args)
        kwargs = {name: resolve(arg, value) for name, arg in self.kwargs.items()}
        if not self.has_top_level_placeholder:
            args = (value,) + args
        logger.debug("pipe stage %s bound with %d positional argument(s)", _name_of(self.func), len(args))
        return self.func(*args, **kwargs)

    __call__ = bind

    def __repr__(self) -> str:
        parts = [repr(arg) for arg in self.args]
        parts.extend(f"{name}={arg!r}" for name, arg in self.kwargs.items())
        return f"{_name_of(self.func)}({', '.join(parts)})"


@dataclass(frozen=True, eq=False)
class Opaque:
    """Block whose placeholders are all substituted, with no first-argument fallback."""

    body: Any

    def bind(self, value):
        if isinstance(self.body, (Template, Deferred, PlaceholderType)) or not callable(self.body):
            return resolve(self.body, value)
        return self.body(value)

    __call__ = bind


def _name_of(func: object) -> str:
    return getattr(func, "__name__", None) or type(func).__name__


def contains_placeholder(expr: object) -> bool:
    if expr is PLACEHOLDER:
        return True
    if isinstance(expr, Deferred):
        return any(contains_placeholder(item) for item in expr.operands)
    if isinstance(expr, Template):
        return any(contains_placeholder(item) for item in expr.args) or any(
            contains_placeholder(item) for item in expr.kwargs.values()
        )
    if isinstance(expr, (list, tuple)):
        return any(contains_placeholder(item) for item in expr)
    return False


def resolve(expr: object, value):
    """Substitute ``value`` for every placeholder reachable inside ``expr``.

    Nested templates are evaluated with substitution only; they never receive
    the value as an implicit first argument.
    """
    if expr is PLACEHOLDER:
        return value
    if isinstance(expr, Deferred):
        return expr.op(*(resolve(item, value) for item in expr.operands))
    if isinstance(expr, Template):
        args = tuple(resolve(item, value) for item in expr.args)
        kwargs = {name: resolve(item, value) for name, item in expr.kwargs.items()}
        return expr.func(*args, **kwargs)
    if isinstance(expr, (list, tuple)) and contains_placeholder(expr):
        return type(expr)(resolve(item, value) for item in expr)
    return expr


def call(func: Callable, *args, **kwargs) -> Template:
    return Template(func, args, kwargs)


def opaque(body) -> Opaque:
    return Opaque(body)


def first_arg(func: Callable, *args, **kwargs) -> Callable:
    """Adapter that always injects the piped value as the first argument."""

    def stage(value):
        return func(value, *args, **kwargs)

    stage.__name__ = f"first_arg({_name_of(func)})"
    return stage


def substitute_at(func: Callable, *args, **kwargs) -> Callable:
    """Adapter that only substitutes the piped value at placeholder positions."""

    def stage(value):
        return func(
            *(value if arg is PLACEHOLDER else arg for arg in args),
            **{name: value if arg is PLACEHOLDER else arg for name, arg in kwargs.items()},
        )

    stage.__name__ = f"substitute_at({_name_of(func)})"
    return stage


def apply_stage(value, stage):
    if isinstance(stage, (Template, Opaque)):
        return stage.bind(value)
    if isinstance(stage, Deferred):
        return resolve(stage, value)
    if callable(stage):
        return stage(value)
    raise TypeError(f"pipe stage must be callable, got {type(stage).__name__}")


def pipe(value, *stages):
    """Thread ``value`` through ``stages`` left to right."""
    return _fold(apply_stage, stages, value)


def compose(*stages) -> Callable:
    """Left-to-right composition: ``compose(f, g)(x) == g(f(x))``."""

    def composed(value):
        return pipe(value, *stages)

    return composed


class Pipe:
    """Eager pipe wrapper: ``(Pipe(v) | f | call(g, 2)).value``."""

    __slots__ = ("value",)

    def __init__(self, value) -> None:
        self.value = value

    def __or__(self, stage) -> "Pipe":
        return Pipe(apply_stage(self.value, stage))

    def __repr__(self) -> str:
        return f"Pipe({self.value!r})"
