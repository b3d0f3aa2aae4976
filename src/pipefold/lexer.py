"""Tokenization for the pipe-expression language."""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int
    end: int


class LexError(SyntaxError):
    def __init__(self, message: str, pos: int) -> None:
        super().__init__(f"{message} at index {pos}")
        self.message = message
        self.pos = pos


_SINGLE_TOKENS = {
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACK",
    "]": "RBRACK",
    ",": "COMMA",
    "\\": "BACKSLASH",
}

# Longest match first.
_MULTI_CHAR_TOKENS = (
    ("|>", "PIPE"),
    ("<-", "ASSIGN"),
    ("==", "OP"),
    ("!=", "OP"),
    ("<=", "OP"),
    (">=", "OP"),
    ("&&", "OP"),
    ("||", "OP"),
)

_SINGLE_OPS = set("+-*/%^<>!")

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "0": "\0",
}

_NUMBER_RE = re.compile(
    r"""
    (?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)   # mantissa
    (?:[eE][+\-]?[0-9]+)?              # exponent
    """,
    re.VERBOSE,
)


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def _is_ident_continue(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


def _scan_string(source: str, start: int) -> tuple[str, int]:
    quote = source[start]
    chars: list[str] = []
    i = start + 1
    while i < len(source):
        ch = source[i]
        if ch == quote:
            return "".join(chars), i + 1
        if ch == "\\":
            if i + 1 >= len(source):
                break
            escaped = source[i + 1]
            if escaped not in _ESCAPES:
                raise LexError(f"Unknown escape \\{escaped}", i)
            chars.append(_ESCAPES[escaped])
            i += 2
            continue
        if ch in {"\n", "\r"}:
            break
        chars.append(ch)
        i += 1
    raise LexError("Unterminated string literal", start)


def tokenize(source: str) -> list[Token]:
    tokens: list[Token] = []
    i = 0

    while i < len(source):
        ch = source[i]

        if ch in {" ", "\t", "\f", "\v"}:
            i += 1
            continue

        if ch == "#":
            while i < len(source) and source[i] not in {"\n", "\r"}:
                i += 1
            continue

        if ch in {"\n", "\r", ";"}:
            start = i
            while i < len(source) and source[i] in {"\n", "\r", ";", " ", "\t"}:
                i += 1
            tokens.append(Token("SEP", ";", start, i))
            continue

        matched = next(((text, kind) for text, kind in _MULTI_CHAR_TOKENS if source.startswith(text, i)), None)
        if matched is not None:
            text, kind = matched
            tokens.append(Token(kind, text, i, i + len(text)))
            i += len(text)
            continue

        if ch == "." and not (i + 1 < len(source) and source[i + 1].isdigit()):
            tokens.append(Token("DOT", ch, i, i + 1))
            i += 1
            continue

        if ch.isdigit() or ch == ".":
            match = _NUMBER_RE.match(source, i)
            assert match is not None
            tokens.append(Token("NUMBER", match.group(0), i, match.end()))
            i = match.end()
            continue

        if ch in {'"', "'"}:
            value, end = _scan_string(source, i)
            tokens.append(Token("STRING", value, i, end))
            i = end
            continue

        if ch == "=":
            tokens.append(Token("EQUALS", ch, i, i + 1))
            i += 1
            continue

        if ch in _SINGLE_TOKENS:
            tokens.append(Token(_SINGLE_TOKENS[ch], ch, i, i + 1))
            i += 1
            continue

        if ch in _SINGLE_OPS:
            tokens.append(Token("OP", ch, i, i + 1))
            i += 1
            continue

        if _is_ident_start(ch):
            start = i
            i += 1
            while i < len(source) and _is_ident_continue(source[i]):
                i += 1
            tokens.append(Token("NAME", source[start:i], start, i))
            continue

        raise LexError(f"Unexpected character {ch!r}", i)

    tokens.append(Token("EOF", "", len(source), len(source)))
    return tokens
