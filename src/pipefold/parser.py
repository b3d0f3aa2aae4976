"""Parser for the pipe-expression language.

Precedence, lowest first: ``|>``, ``||``, ``&&``, comparisons, ``+ -``,
``* / %``, unary ``- !``, ``^`` (right-associative), calls. A pipe stage is a
postfix expression: a name, a call, a parenthesised expression, a lambda
``\\(x) body`` or an opaque block ``{ ... }``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .ast import Assign, Block, Call, Expr, Infix, Lambda, Name, Number, Pipe, Placeholder, Prefix, Program, String, Vector
from .lexer import LexError, Token, tokenize

_COMPARISON_OPS = {"==", "!=", "<", "<=", ">", ">="}
_ADDITIVE_OPS = {"+", "-"}
_MULTIPLICATIVE_OPS = {"*", "/", "%"}
_PREFIX_OPS = {"-", "!"}


class ParseError(SyntaxError):
    def __init__(
        self,
        message: str,
        start: int,
        end: int,
        expected: tuple[str, ...] = (),
        found: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.start = start
        self.end = end
        self.expected = expected
        self.found = found

    def __str__(self) -> str:
        expected_text = ""
        if self.expected:
            expected_text = f"; expected {', '.join(self.expected)}"
        found_text = ""
        if self.found is not None:
            found_text = f"; found {self.found}"
        return f"{self.message} at span [{self.start}, {self.end}){expected_text}{found_text}"


@dataclass
class _Parser:
    tokens: list[Token]
    index: int = 0

    def parse_program(self) -> Program:
        statements: list[Expr] = []
        self._consume_separators()
        while self._peek().kind != "EOF":
            statements.append(self._parse_statement())
            if self._peek().kind not in {"SEP", "EOF"}:
                self._error(expected=("SEP", "EOF"))
            self._consume_separators()
        return Program(statements=tuple(statements))

    def parse_expression_only(self) -> Expr:
        self._consume_separators()
        expr = self._parse_statement()
        self._consume_separators()
        self._expect("EOF")
        return expr

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _peek_next(self) -> Token:
        return self.tokens[min(self.index + 1, len(self.tokens) - 1)]

    def _advance(self) -> Token:
        tok = self.tokens[self.index]
        self.index += 1
        return tok

    def _expect(self, kind: str) -> Token:
        tok = self._peek()
        if tok.kind != kind:
            self._error(tok, expected=(kind,))
        return self._advance()

    def _error(self, tok: Token | None = None, *, message: str | None = None, expected: tuple[str, ...] = ()) -> None:
        token = tok if tok is not None else self._peek()
        detail = message if message is not None else "Unexpected token"
        normalized_expected = tuple(dict.fromkeys(expected))
        if token.kind == "EOF":
            found = "EOF"
        elif token.text:
            found = f"{token.kind}({token.text})"
        else:
            found = token.kind
        raise ParseError(detail, token.pos, token.end, expected=normalized_expected, found=found)

    def _match_op(self, ops: set[str]) -> str | None:
        tok = self._peek()
        if tok.kind == "OP" and tok.text in ops:
            self._advance()
            return tok.text
        return None

    def _consume_separators(self) -> None:
        while self._peek().kind == "SEP":
            self._advance()

    def _parse_statement(self) -> Expr:
        if self._peek().kind == "NAME" and self._peek_next().kind == "ASSIGN":
            name = self._advance().text
            self._advance()
            return Assign(name=name, value=self._parse_pipeline())
        return self._parse_pipeline()

    def _parse_pipeline(self) -> Expr:
        expr = self._parse_or()
        while self._peek().kind == "PIPE":
            self._advance()
            self._consume_separators()
            stage = self._parse_postfix()
            expr = Pipe(left=expr, stage=stage)
        return expr

    def _parse_binary_level(self, ops: set[str], operand) -> Expr:
        left = operand()
        while True:
            op = self._match_op(ops)
            if op is None:
                return left
            left = Infix(op=op, left=left, right=operand())

    def _parse_or(self) -> Expr:
        return self._parse_binary_level({"||"}, self._parse_and)

    def _parse_and(self) -> Expr:
        return self._parse_binary_level({"&&"}, self._parse_comparison)

    def _parse_comparison(self) -> Expr:
        left = self._parse_additive()
        op = self._match_op(_COMPARISON_OPS)
        if op is None:
            return left
        right = self._parse_additive()
        if self._peek().kind == "OP" and self._peek().text in _COMPARISON_OPS:
            self._error(message="Comparisons cannot be chained")
        return Infix(op=op, left=left, right=right)

    def _parse_additive(self) -> Expr:
        return self._parse_binary_level(_ADDITIVE_OPS, self._parse_multiplicative)

    def _parse_multiplicative(self) -> Expr:
        return self._parse_binary_level(_MULTIPLICATIVE_OPS, self._parse_unary)

    def _parse_unary(self) -> Expr:
        op = self._match_op(_PREFIX_OPS)
        if op is not None:
            return Prefix(op=op, right=self._parse_unary())
        return self._parse_power()

    def _parse_power(self) -> Expr:
        base = self._parse_postfix()
        if self._match_op({"^"}) is not None:
            return Infix(op="^", left=base, right=self._parse_unary())
        return base

    def _parse_postfix(self) -> Expr:
        expr = self._parse_primary()
        while self._peek().kind == "LPAREN":
            self._advance()
            args, kwargs = self._parse_arguments()
            expr = Call(func=expr, args=args, kwargs=kwargs)
        return expr

    def _parse_arguments(self) -> tuple[tuple[Expr, ...], tuple[tuple[str, Expr], ...]]:
        args: list[Expr] = []
        kwargs: list[tuple[str, Expr]] = []
        self._consume_separators()
        if self._peek().kind == "RPAREN":
            self._advance()
            return (), ()
        while True:
            self._consume_separators()
            if self._peek().kind == "NAME" and self._peek_next().kind == "EQUALS":
                name_tok = self._advance()
                self._advance()
                if any(name == name_tok.text for name, _ in kwargs):
                    self._error(name_tok, message=f"Duplicate keyword argument {name_tok.text!r}")
                kwargs.append((name_tok.text, self._parse_pipeline()))
            else:
                if kwargs:
                    self._error(message="Positional argument follows keyword argument")
                args.append(self._parse_pipeline())
            self._consume_separators()
            if self._peek().kind == "COMMA":
                self._advance()
                continue
            self._expect("RPAREN")
            return tuple(args), tuple(kwargs)

    def _parse_sequence_items(self, closing: str) -> tuple[Expr, ...]:
        items: list[Expr] = []
        self._consume_separators()
        if self._peek().kind == closing:
            self._advance()
            return ()
        while True:
            self._consume_separators()
            items.append(self._parse_pipeline())
            self._consume_separators()
            if self._peek().kind == "COMMA":
                self._advance()
                continue
            self._expect(closing)
            return tuple(items)

    def _parse_lambda(self) -> Lambda:
        self._expect("BACKSLASH")
        self._expect("LPAREN")
        params: list[str] = []
        if self._peek().kind != "RPAREN":
            while True:
                tok = self._expect("NAME")
                if tok.text in params:
                    self._error(tok, message=f"Duplicate parameter {tok.text!r}")
                params.append(tok.text)
                if self._peek().kind == "COMMA":
                    self._advance()
                    continue
                break
        self._expect("RPAREN")
        return Lambda(params=tuple(params), body=self._parse_pipeline())

    def _parse_primary(self) -> Expr:
        tok = self._peek()

        if tok.kind == "NUMBER":
            self._advance()
            if any(ch in tok.text for ch in ".eE"):
                return Number(float(tok.text))
            return Number(int(tok.text))

        if tok.kind == "STRING":
            self._advance()
            return String(tok.text)

        if tok.kind == "NAME":
            self._advance()
            return Name(tok.text)

        if tok.kind == "DOT":
            self._advance()
            return Placeholder()

        if tok.kind == "LPAREN":
            self._advance()
            self._consume_separators()
            expr = self._parse_pipeline()
            self._consume_separators()
            self._expect("RPAREN")
            return expr

        if tok.kind == "LBRACK":
            self._advance()
            return Vector(items=self._parse_sequence_items("RBRACK"))

        if tok.kind == "LBRACE":
            self._advance()
            self._consume_separators()
            body = self._parse_pipeline()
            self._consume_separators()
            self._expect("RBRACE")
            return Block(body=body)

        if tok.kind == "BACKSLASH":
            return self._parse_lambda()

        self._error(tok, expected=("NUMBER", "STRING", "NAME", "DOT", "LPAREN", "LBRACK", "LBRACE", "BACKSLASH"))
        raise AssertionError("unreachable")


def _tokenize(source: str) -> list[Token]:
    try:
        return tokenize(source)
    except LexError as err:
        raise ParseError(err.message, err.pos, err.pos + 1) from err


def parse(source: str) -> Expr:
    return _Parser(_tokenize(source)).parse_expression_only()


def parse_program(source: str) -> Program:
    return _Parser(_tokenize(source)).parse_program()
