"""Sequence abstraction: element kinds, containers, views and coercion."""

from __future__ import annotations

import copy
import math
import numbers
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Final, Iterator

import jax.numpy as jnp
import numpy as np

from .errors import IndexOutOfRange, PathNotFound, TypeMismatch


class ElementKind(str, Enum):
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    ANY = "any"


_JAX_DTYPES: Final[dict[ElementKind, object]] = {
    ElementKind.BOOL: jnp.bool_,
    ElementKind.INT: jnp.int32,
    ElementKind.FLOAT: jnp.float32,
}


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


class Seq(list):
    """Ordered sequence carrying a declared element kind."""

    def __init__(self, items=(), kind: ElementKind | str = ElementKind.ANY) -> None:
        super().__init__(items)
        self.kind = ElementKind(kind)

    def __repr__(self) -> str:
        return f"Seq({list.__repr__(self)}, kind={self.kind.value!r})"

    @classmethod
    def of(cls, items, kind: ElementKind | str) -> "Seq":
        """Build a sequence, coercing every item to ``kind``."""
        kind = ElementKind(kind)
        return cls((coerce_element(item, kind, where=f"item[{idx + 1}]") for idx, item in enumerate(items)), kind)

    def to_array(self):
        dtype = _JAX_DTYPES.get(self.kind)
        if dtype is None:
            raise TypeMismatch(f"Seq of kind {self.kind.value!r} has no array representation")
        return jnp.asarray(list(self), dtype=dtype)


class Record(dict):
    """Insertion-ordered mapping from string keys to values."""

    def __repr__(self) -> str:
        return f"Record({dict.__repr__(self)})"


@dataclass(frozen=True)
class Table:
    """Row-oriented table with one named column per field."""

    columns: tuple[str, ...]
    rows: tuple[tuple, ...]

    def __post_init__(self) -> None:
        width = len(self.columns)
        for idx, row in enumerate(self.rows):
            if len(row) != width:
                raise TypeMismatch(f"row {idx + 1} has {len(row)} fields, expected {width}")

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Record]:
        for row in self.rows:
            yield Record(zip(self.columns, row))

    @property
    def shape(self) -> tuple[int, int]:
        return (len(self.rows), len(self.columns))

    def column(self, name: str) -> Seq:
        try:
            idx = self.columns.index(name)
        except ValueError:
            raise PathNotFound(f"Table has no column {name!r}") from None
        values = [row[idx] for row in self.rows]
        return Seq(values, infer_kind(values))

    def to_records(self) -> list[Record]:
        return list(self)


@dataclass(frozen=True)
class SequenceView:
    """Uniform read-only view over sequences and keyed containers."""

    values: tuple
    keys: tuple[str, ...] | None
    kind: ElementKind

    @property
    def keyed(self) -> bool:
        return self.keys is not None

    def __len__(self) -> int:
        return len(self.values)

    def labels(self) -> tuple:
        """Keys for keyed containers, 1-based positions otherwise."""
        if self.keys is not None:
            return self.keys
        return tuple(range(1, len(self.values) + 1))

    def rebuild(self, values, kind: ElementKind = ElementKind.ANY, keys: tuple[str, ...] | None = None):
        if self.keys is not None:
            return Record(zip(self.keys if keys is None else keys, values))
        return Seq(values, kind)


def _is_array(value: object) -> bool:
    return isinstance(value, (jnp.ndarray, np.ndarray))


def _kind_of_dtype(dtype) -> ElementKind:
    if jnp.issubdtype(dtype, jnp.bool_):
        return ElementKind.BOOL
    if jnp.issubdtype(dtype, jnp.integer):
        return ElementKind.INT
    if jnp.issubdtype(dtype, jnp.floating):
        return ElementKind.FLOAT
    return ElementKind.ANY


def kind_of(value: object) -> ElementKind:
    if isinstance(value, (bool, np.bool_)):
        return ElementKind.BOOL
    if isinstance(value, numbers.Integral):
        return ElementKind.INT
    if isinstance(value, numbers.Real):
        return ElementKind.FLOAT
    if isinstance(value, str):
        return ElementKind.STRING
    if _is_array(value) and value.ndim == 0:
        return _kind_of_dtype(value.dtype)
    return ElementKind.ANY


def infer_kind(values) -> ElementKind:
    kinds = {kind_of(value) for value in values}
    if len(kinds) == 1:
        return kinds.pop()
    return ElementKind.ANY


def is_sequence(value: object) -> bool:
    if isinstance(value, (str, bytes, Mapping)):
        return False
    if _is_array(value):
        return value.ndim == 1
    return isinstance(value, Sequence)


def as_sequence(value: object, *, where: str = "sequence") -> SequenceView:
    if isinstance(value, Seq):
        return SequenceView(values=tuple(value), keys=None, kind=value.kind)
    if isinstance(value, Mapping):
        keys = tuple(value.keys())
        for key in keys:
            if not isinstance(key, str):
                raise TypeMismatch(f"{where} keys must be strings, got {type(key).__name__}")
        values = tuple(value.values())
        return SequenceView(values=values, keys=keys, kind=infer_kind(values))
    if _is_array(value):
        if value.ndim != 1:
            raise TypeMismatch(f"{where} must be one-dimensional, got shape {tuple(value.shape)}")
        return SequenceView(values=tuple(value.tolist()), keys=None, kind=_kind_of_dtype(value.dtype))
    if is_sequence(value):
        values = tuple(value)
        return SequenceView(values=values, keys=None, kind=infer_kind(values))
    raise TypeMismatch(f"{where} must be a sequence or keyed container, got {type(value).__name__}")


def rebuild_like(original: object, view: SequenceView, values, kind: ElementKind):
    """Build a new container of the same type as ``original``."""
    if isinstance(original, Seq):
        return Seq(values, kind)
    if isinstance(original, Record) or (view.keyed and not isinstance(original, dict)):
        return Record(zip(view.keys, values))
    if isinstance(original, dict):
        # Counter and defaultdict do not accept a plain iterable of pairs.
        out = copy.copy(original)
        for key, value in zip(view.keys, values):
            out[key] = value
        return out
    if isinstance(original, tuple):
        return tuple(values)
    if isinstance(original, list):
        return list(values)
    return Seq(values, kind)


def _unwrap_scalar(value: object, *, where: str) -> object:
    if _is_array(value):
        if value.size != 1:
            raise TypeMismatch(f"{where} must be length-one, got shape {tuple(value.shape)}")
        return np.asarray(value).reshape(-1)[0].item()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (list, tuple, Mapping, Table)):
        raise TypeMismatch(f"{where} must be length-one, got {type(value).__name__}")
    return value


def coerce_element(value: object, kind: ElementKind, *, where: str = "value") -> object:
    """Losslessly coerce a single result to ``kind`` or raise TypeMismatch."""
    if kind is ElementKind.ANY:
        return value
    scalar = _unwrap_scalar(value, where=where)

    if kind is ElementKind.BOOL:
        if isinstance(scalar, bool):
            return scalar
    elif kind is ElementKind.INT:
        if isinstance(scalar, bool):
            return int(scalar)
        if isinstance(scalar, numbers.Integral):
            return int(scalar)
        if isinstance(scalar, float) and math.isfinite(scalar) and scalar.is_integer():
            return int(scalar)
    elif kind is ElementKind.FLOAT:
        if isinstance(scalar, numbers.Real):
            return float(scalar)
    elif kind is ElementKind.STRING:
        if isinstance(scalar, str):
            return scalar

    raise TypeMismatch(f"{where} of type {type(scalar).__name__} cannot be coerced to {kind.value}")


def resolve_position(position: object, length: int, *, where: str = "position") -> int:
    """Validate a 1-based position and return the matching 0-based offset."""
    if isinstance(position, bool) or not isinstance(position, numbers.Integral):
        raise TypeMismatch(f"{where} must be an integer, got {type(position).__name__}")
    position = int(position)
    if position < 1 or position > length:
        raise IndexOutOfRange(f"{where} {position} is outside [1, {length}]")
    return position - 1
