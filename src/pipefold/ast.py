"""AST nodes for the pipe-expression language."""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Number as Numeric
from typing import Union


@dataclass(frozen=True)
class Number:
    value: Numeric


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class Name:
    value: str


@dataclass(frozen=True)
class Placeholder:
    pass


@dataclass(frozen=True)
class Bound:
    """Already-evaluated value spliced in by the evaluator's pipe rewrite."""

    value: object


@dataclass(frozen=True)
class Vector:
    items: tuple["Expr", ...]


@dataclass(frozen=True)
class Prefix:
    op: str
    right: "Expr"


@dataclass(frozen=True)
class Infix:
    op: str
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Call:
    func: "Expr"
    args: tuple["Expr", ...] = ()
    kwargs: tuple[tuple[str, "Expr"], ...] = ()


@dataclass(frozen=True)
class Lambda:
    params: tuple[str, ...]
    body: "Expr"


@dataclass(frozen=True)
class Block:
    body: "Expr"


@dataclass(frozen=True)
class Pipe:
    left: "Expr"
    stage: "Expr"


@dataclass(frozen=True)
class Assign:
    name: str
    value: "Expr"


@dataclass(frozen=True)
class Program:
    statements: tuple["Expr", ...]


Expr = Union[Number, String, Name, Placeholder, Bound, Vector, Prefix, Infix, Call, Lambda, Block, Pipe, Assign]
