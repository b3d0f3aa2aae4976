from __future__ import annotations

import unittest

from pipefold.ast import Number, String, Vector
from pipefold.lexer import LexError, tokenize
from pipefold.parser import ParseError, parse


class LexerAndLiteralCoverageTests(unittest.TestCase):
    def _tokens(self, source: str, *, with_spans: bool = False):
        if with_spans:
            return [(tok.kind, tok.text, tok.pos, tok.end) for tok in tokenize(source) if tok.kind != "EOF"]
        return [(tok.kind, tok.text) for tok in tokenize(source) if tok.kind != "EOF"]

    def test_token_golden_delimiters_and_arrows(self) -> None:
        tokens = self._tokens("(){}[],\\|><-", with_spans=True)
        self.assertEqual(
            tokens,
            [
                ("LPAREN", "(", 0, 1),
                ("RPAREN", ")", 1, 2),
                ("LBRACE", "{", 2, 3),
                ("RBRACE", "}", 3, 4),
                ("LBRACK", "[", 4, 5),
                ("RBRACK", "]", 5, 6),
                ("COMMA", ",", 6, 7),
                ("BACKSLASH", "\\", 7, 8),
                ("PIPE", "|>", 8, 10),
                ("ASSIGN", "<-", 10, 12),
            ],
        )

    def test_token_golden_pipe_separators_and_comments(self) -> None:
        tokens = self._tokens("x |> f(.)\n# note\n; y", with_spans=True)
        self.assertEqual(
            tokens,
            [
                ("NAME", "x", 0, 1),
                ("PIPE", "|>", 2, 4),
                ("NAME", "f", 5, 6),
                ("LPAREN", "(", 6, 7),
                ("DOT", ".", 7, 8),
                ("RPAREN", ")", 8, 9),
                ("SEP", ";", 9, 10),
                ("SEP", ";", 16, 19),
                ("NAME", "y", 19, 20),
            ],
        )

    def test_operator_tokens(self) -> None:
        tokens = self._tokens("a == b != c <= d >= e && f || g < h > i + j - k * l / m % n ^ o !p")
        ops = [text for kind, text in tokens if kind == "OP"]
        self.assertEqual(ops, ["==", "!=", "<=", ">=", "&&", "||", "<", ">", "+", "-", "*", "/", "%", "^", "!"])

    def test_keyword_equals_is_its_own_token(self) -> None:
        self.assertEqual(self._tokens("f(a = 1)")[2:4], [("NAME", "a"), ("EQUALS", "=")])

    def test_number_literal_forms(self) -> None:
        tokens = self._tokens("1 2.5 .5 3e2 1.5E-3")
        self.assertEqual(tokens, [("NUMBER", text) for text in ("1", "2.5", ".5", "3e2", "1.5E-3")])

    def test_dot_before_digit_is_a_number_not_a_placeholder(self) -> None:
        self.assertEqual(self._tokens("f(.5)")[2], ("NUMBER", ".5"))
        self.assertEqual(self._tokens("f(. 5)")[2:4], [("DOT", "."), ("NUMBER", "5")])

    def test_identifiers_allow_underscores_and_digits(self) -> None:
        self.assertEqual(self._tokens("map_int _tmp x2"), [("NAME", "map_int"), ("NAME", "_tmp"), ("NAME", "x2")])

    def test_string_literals_and_escapes(self) -> None:
        self.assertEqual(self._tokens('"ab"', with_spans=True), [("STRING", "ab", 0, 4)])
        self.assertEqual(self._tokens('"a\\nb"'), [("STRING", "a\nb")])
        self.assertEqual(self._tokens("'it\\'s'"), [("STRING", "it's")])
        self.assertEqual(self._tokens('"say \'hi\'"'), [("STRING", "say 'hi'")])

    def test_lexer_errors(self) -> None:
        cases = {
            '"abc': 0,
            '"\\q"': 1,
            "1 @ 2": 2,
            '"line\nbreak"': 0,
        }
        for source, pos in cases.items():
            with self.subTest(source=source):
                with self.assertRaises(LexError) as ctx:
                    tokenize(source)
                self.assertEqual(ctx.exception.pos, pos)

    def test_lexer_errors_surface_as_parse_errors(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            parse("1 $ 2")
        self.assertEqual((ctx.exception.start, ctx.exception.end), (2, 3))
        self.assertIn("Unexpected character", str(ctx.exception))

    def test_literal_values(self) -> None:
        self.assertEqual(parse("42"), Number(42))
        self.assertIsInstance(parse("42").value, int)
        self.assertIsInstance(parse("4.0").value, float)
        self.assertIsInstance(parse("4e1").value, float)
        self.assertEqual(parse("'x'"), String("x"))
        self.assertEqual(parse("[]"), Vector(()))
        self.assertEqual(parse('[1, "a"]'), Vector((Number(1), String("a"))))

    def test_eof_token_is_always_last(self) -> None:
        tokens = tokenize("")
        self.assertEqual([(tok.kind, tok.pos, tok.end) for tok in tokens], [("EOF", 0, 0)])


if __name__ == "__main__":
    unittest.main()
