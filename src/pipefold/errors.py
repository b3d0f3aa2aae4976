"""Structured error types for the combinator core and the pipe language."""

from __future__ import annotations

from dataclasses import dataclass

from .parser import ParseError


class PipefoldError(Exception):
    """Base class for structured pipefold errors."""


class TypeMismatch(PipefoldError, TypeError):
    """A result cannot be coerced to the declared element kind."""


class LengthMismatch(PipefoldError, ValueError):
    """Multi-sequence combinators were given unequal-length inputs."""


class IndexOutOfRange(PipefoldError, IndexError):
    """A position or key lies outside the container."""


class PathNotFound(PipefoldError, LookupError):
    """A pluck path step is absent."""


class EmptyInputNoInit(PipefoldError, ValueError):
    """Reduction over an empty input without an initial value."""


@dataclass(frozen=True)
class PipeParseError(PipefoldError):
    """Wraps parser failures with explicit parse-stage typing."""

    message: str
    start: int
    end: int
    expected: tuple[str, ...] = ()
    found: str | None = None

    @classmethod
    def from_parse_error(cls, err: ParseError) -> "PipeParseError":
        return cls(
            message=err.message,
            start=err.start,
            end=err.end,
            expected=err.expected,
            found=err.found,
        )

    def __str__(self) -> str:
        expected = ""
        if self.expected:
            expected = f"; expected {', '.join(self.expected)}"
        found = ""
        if self.found is not None:
            found = f"; found {self.found}"
        return f"{self.message} at span [{self.start}, {self.end}){expected}{found}"


class PipeRuntimeError(PipefoldError):
    """Generic runtime failure after successful parse."""


class UndefinedNameError(PipeRuntimeError, NameError):
    """A name in a pipe expression has no binding."""


def classify_runtime_exception(err: Exception) -> PipefoldError:
    """Map a foreign runtime exception to a structured pipefold error."""
    if isinstance(err, PipefoldError):
        return err
    message = str(err)
    if isinstance(err, NameError):
        return UndefinedNameError(message)
    return PipeRuntimeError(message)
