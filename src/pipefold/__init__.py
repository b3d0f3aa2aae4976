"""pipefold public API."""

import logging

from .cartesian import cross, cross_to_table
from .errors import (
    EmptyInputNoInit,
    IndexOutOfRange,
    LengthMismatch,
    PathNotFound,
    PipefoldError,
    PipeParseError,
    PipeRuntimeError,
    TypeMismatch,
    UndefinedNameError,
)
from .evaluator import evaluate, evaluate_with_errors
from .log import setup_logger
from .mapping import imap, map, map2, map_bool, map_float, map_int, map_string, pmap
from .mutation import modify, modify_at, modify_if
from .parser import ParseError, parse, parse_program
from .placeholder import PLACEHOLDER, Pipe, _, call, compose, first_arg, opaque, pipe, substitute_at
from .reduction import Continue, Stop, accumulate, done, reduce
from .rewrite import desugar, rewrite_stage
from .selection import detect, detect_index, discard, every, has_element, keep, none, pluck, some
from .values import MISSING, ElementKind, Record, Seq, Table, as_sequence

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "map",
    "map_bool",
    "map_int",
    "map_float",
    "map_string",
    "imap",
    "map2",
    "pmap",
    "keep",
    "discard",
    "every",
    "some",
    "none",
    "has_element",
    "detect",
    "detect_index",
    "pluck",
    "modify",
    "modify_if",
    "modify_at",
    "cross",
    "cross_to_table",
    "reduce",
    "accumulate",
    "done",
    "Continue",
    "Stop",
    "PLACEHOLDER",
    "_",
    "Pipe",
    "pipe",
    "call",
    "opaque",
    "first_arg",
    "substitute_at",
    "compose",
    "parse",
    "parse_program",
    "ParseError",
    "desugar",
    "rewrite_stage",
    "evaluate",
    "evaluate_with_errors",
    "setup_logger",
    "ElementKind",
    "Seq",
    "Record",
    "Table",
    "MISSING",
    "as_sequence",
    "PipefoldError",
    "TypeMismatch",
    "LengthMismatch",
    "IndexOutOfRange",
    "PathNotFound",
    "EmptyInputNoInit",
    "PipeParseError",
    "PipeRuntimeError",
    "UndefinedNameError",
]
