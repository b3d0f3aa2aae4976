"""Evaluator for the pipe-expression language.

Pipes are evaluated eagerly and left to right: the left side is evaluated once,
spliced into the stage as a ``Bound`` node by ``rewrite_stage`` and the
resulting call is evaluated. Names resolve through the caller's environment,
then through the builtins (the public combinators plus a few helpers).
"""

from __future__ import annotations

import logging
import math
import operator
import os
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Final

from . import cartesian, mapping, mutation, reduction, selection
from .ast import Assign, Block, Bound, Call, Expr, Infix, Lambda, Name, Number, Pipe, Placeholder, Prefix, Program, String, Vector
from .errors import PipeParseError, UndefinedNameError, classify_runtime_exception
from .parser import ParseError, parse_program
from .placeholder import compose
from .rewrite import rewrite_stage, substitute
from .values import Record, Seq, infer_kind

logger = logging.getLogger(__name__)

_PROGRAM_CACHE_MAX: Final[int] = max(1, int(os.environ.get("PIPEFOLD_PROGRAM_CACHE_MAX", "256")))


@lru_cache(maxsize=_PROGRAM_CACHE_MAX)
def _parse_program_cached(source: str) -> Program:
    return parse_program(source)


def _logical_and(left, right):
    return bool(left) and bool(right)


def _logical_or(left, right):
    return bool(left) or bool(right)


_INFIX_OPS: Final[dict[str, Callable[[object, object], object]]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "%": operator.mod,
    "^": operator.pow,
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_SHORT_CIRCUIT_OPS: Final[dict[str, Callable[[object, object], object]]] = {
    "&&": _logical_and,
    "||": _logical_or,
}

_PREFIX_OPS: Final[dict[str, Callable[[object], object]]] = {
    "-": operator.neg,
    "!": operator.not_,
}


def _vector(*items) -> Seq:
    return Seq(items, infer_kind(items))


def _seq_range(start: int, stop: int) -> Seq:
    step = 1 if stop >= start else -1
    return Seq(range(start, stop + step, step), "int")


def _record(**fields) -> Record:
    return Record(fields)


def _identity(value):
    return value


_BUILTINS: Final[dict[str, object]] = {
    "true": True,
    "false": False,
    "null": None,
    "c": _vector,
    "seq": _seq_range,
    "record": _record,
    "identity": _identity,
    "compose": compose,
    "choose": math.comb,
    "length": len,
    "sum": sum,
    "abs": abs,
    "sqrt": math.sqrt,
    "round": round,
    "min": min,
    "max": max,
    "upper": str.upper,
    "lower": str.lower,
    "paste": lambda *parts, sep=" ": sep.join(str(part) for part in parts),
    "map": mapping.map,
    "map_bool": mapping.map_bool,
    "map_int": mapping.map_int,
    "map_float": mapping.map_float,
    "map_string": mapping.map_string,
    "imap": mapping.imap,
    "map2": mapping.map2,
    "pmap": mapping.pmap,
    "keep": selection.keep,
    "discard": selection.discard,
    "every": selection.every,
    "some": selection.some,
    "none": selection.none,
    "has_element": selection.has_element,
    "detect": selection.detect,
    "detect_index": selection.detect_index,
    "pluck": selection.pluck,
    "modify": mutation.modify,
    "modify_if": mutation.modify_if,
    "modify_at": mutation.modify_at,
    "cross": cartesian.cross,
    "cross_to_table": cartesian.cross_to_table,
    "reduce": reduction.reduce,
    "accumulate": reduction.accumulate,
    "done": reduction.done,
}


class Scope(MutableMapping[str, object]):
    def __init__(self, data: Mapping[str, object] | None = None, parent: "Scope | None" = None) -> None:
        self.data: dict[str, object] = {} if data is None else dict(data)
        self.parent = parent

    def __getitem__(self, key: str) -> object:
        if key in self.data:
            return self.data[key]
        if self.parent is not None:
            return self.parent[key]
        if key in _BUILTINS:
            return _BUILTINS[key]
        raise KeyError(key)

    def __setitem__(self, key: str, value: object) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]

    def __iter__(self):
        seen: set[str] = set()
        current: Scope | None = self
        while current is not None:
            for key in current.data:
                if key not in seen:
                    seen.add(key)
                    yield key
            current = current.parent

    def __len__(self) -> int:
        return sum(1 for _ in self.__iter__())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        if key in self.data:
            return True
        if self.parent is not None:
            return key in self.parent
        return key in _BUILTINS

    def child(self, data: Mapping[str, object] | None = None) -> "Scope":
        return Scope(data=data, parent=self)


@dataclass(frozen=True)
class UserFunction:
    """Closure created by ``\\(params) body``."""

    params: tuple[str, ...]
    body: Expr
    closure: Scope

    def __call__(self, *args, **kwargs):
        bindings = dict(zip(self.params, args))
        if len(args) > len(self.params):
            raise TypeError(f"lambda takes {len(self.params)} argument(s) but {len(args)} were given")
        for name, value in kwargs.items():
            if name not in self.params:
                raise TypeError(f"lambda got an unexpected keyword argument {name!r}")
            if name in bindings:
                raise TypeError(f"lambda got multiple values for argument {name!r}")
            bindings[name] = value
        missing = [name for name in self.params if name not in bindings]
        if missing:
            raise TypeError(f"lambda missing argument(s): {', '.join(missing)}")
        return _eval_expr(self.body, self.closure.child(bindings))


@dataclass(frozen=True)
class BlockFunction:
    """Unary function created by an opaque block used as a value."""

    body: Expr
    closure: Scope

    def __call__(self, value):
        return _eval_expr(substitute(self.body, Bound(value)), self.closure)


def _eval_pipe(expr: Pipe, env: Scope):
    value = _eval_expr(expr.left, env)
    rewritten = rewrite_stage(Bound(value), expr.stage)
    logger.debug("pipe stage %r rewritten to %r", expr.stage, rewritten)
    return _eval_expr(rewritten, env)


def _eval_expr(expr: Expr, env: Scope) -> object:
    if isinstance(expr, Number):
        return expr.value

    if isinstance(expr, String):
        return expr.value

    if isinstance(expr, Bound):
        return expr.value

    if isinstance(expr, Name):
        if expr.value in env:
            return env[expr.value]
        raise UndefinedNameError(f"Undefined name {expr.value!r}")

    if isinstance(expr, Placeholder):
        raise UndefinedNameError("Placeholder '.' used outside of a pipe stage")

    if isinstance(expr, Vector):
        return _vector(*(_eval_expr(item, env) for item in expr.items))

    if isinstance(expr, Prefix):
        return _PREFIX_OPS[expr.op](_eval_expr(expr.right, env))

    if isinstance(expr, Infix):
        left = _eval_expr(expr.left, env)
        if expr.op in _SHORT_CIRCUIT_OPS:
            if expr.op == "&&" and not left:
                return False
            if expr.op == "||" and left:
                return True
            return _SHORT_CIRCUIT_OPS[expr.op](left, _eval_expr(expr.right, env))
        right = _eval_expr(expr.right, env)
        return _INFIX_OPS[expr.op](left, right)

    if isinstance(expr, Call):
        func = _eval_expr(expr.func, env)
        if not callable(func):
            raise TypeError(f"{type(func).__name__} value cannot be called")
        args = [_eval_expr(arg, env) for arg in expr.args]
        kwargs = {name: _eval_expr(arg, env) for name, arg in expr.kwargs}
        return func(*args, **kwargs)

    if isinstance(expr, Lambda):
        return UserFunction(params=expr.params, body=expr.body, closure=env)

    if isinstance(expr, Block):
        return BlockFunction(body=expr.body, closure=env)

    if isinstance(expr, Pipe):
        return _eval_pipe(expr, env)

    if isinstance(expr, Assign):
        value = _eval_expr(expr.value, env)
        env[expr.name] = value
        return value

    raise TypeError(f"Unsupported expression node: {type(expr)!r}")


def _evaluate_program(program: Program, env: Scope):
    result = None
    for stmt in program.statements:
        result = _eval_expr(stmt, env)
    return result


def evaluate(source: str, env: Mapping[str, object] | None = None):
    """Parse and evaluate a pipe program; the last statement is the result.

    ``env`` supplies extra bindings (Python callables included). Assignments
    made by the program do not leak back into ``env``.
    """
    program = _parse_program_cached(source)
    return _evaluate_program(program, Scope(data=env))


def evaluate_with_errors(source: str, *, env: Mapping[str, object] | None = None):
    """Evaluate with structured error classes for parse and runtime failures."""
    try:
        return evaluate(source, env)
    except ParseError as err:
        raise PipeParseError.from_parse_error(err) from err
    except Exception as err:
        classified = classify_runtime_exception(err)
        if classified is err:
            raise
        raise classified from err
