from __future__ import annotations

import unittest

from calc_jax.errors import CalcTokenError
from calc_jax.lexer import NUMBER, OPERATOR, TEXT, TokenStream, tokenize


class LexerAndLiteralCoverageTests(unittest.TestCase):
    def _tokens(self, source: str, *, with_spans: bool = False):
        if with_spans:
            return [(tok.kind, tok.text, tok.pos, tok.end) for tok in tokenize(source)]
        return [(tok.kind, tok.text) for tok in tokenize(source)]

    def _value(self, source: str) -> float:
        (tok,) = list(tokenize(source))
        self.assertEqual(tok.kind, NUMBER)
        assert tok.value is not None
        return tok.value

    def test_token_golden_spans(self) -> None:
        self.assertEqual(
            self._tokens("12 + ab*(_x1)", with_spans=True),
            [
                (NUMBER, "12", 0, 2),
                (OPERATOR, "+", 3, 4),
                (TEXT, "ab", 5, 7),
                (OPERATOR, "*", 7, 8),
                (OPERATOR, "(", 8, 9),
                (TEXT, "_x1", 9, 12),
                (OPERATOR, ")", 12, 13),
            ],
        )

    def test_whitespace_is_skipped(self) -> None:
        self.assertEqual(self._tokens(" \t1\t+  2 "), [(NUMBER, "1"), (OPERATOR, "+"), (NUMBER, "2")])
        self.assertEqual(self._tokens("   "), [])

    def test_decimal_literals(self) -> None:
        cases = {
            "007": 7.0,
            "10e-3": 0.01,
            "2e3": 2000.0,
            ".5": 0.5,
            "5.": 5.0,
            "3.25": 3.25,
        }
        for source, expected in cases.items():
            with self.subTest(source=source):
                self.assertEqual(self._value(source), expected)

    def test_base_prefixed_literals(self) -> None:
        cases = {
            "0x10": 16.0,
            "0xff": 255.0,
            "0xFF": 255.0,
            "0xffffffff": 4294967295.0,
            "0b101": 5.0,
            "0x": 0.0,
        }
        for source, expected in cases.items():
            with self.subTest(source=source):
                self.assertEqual(self._value(source), expected)

    def test_base_digits_are_consumed_greedily(self) -> None:
        self.assertEqual(self._tokens("0b1012"), [(NUMBER, "0b101"), (NUMBER, "2")])
        self.assertEqual(self._tokens("0x1fg"), [(NUMBER, "0x1f"), (TEXT, "g")])

    def test_base_literal_overflow(self) -> None:
        with self.assertRaises(CalcTokenError) as ctx:
            list(tokenize("0x100000000"))
        self.assertEqual(str(ctx.exception), "Base 16 constant overflowed 32 bit range.")

        with self.assertRaises(CalcTokenError) as ctx:
            list(tokenize("0b" + "1" * 33))
        self.assertEqual(str(ctx.exception), "Base 2 constant overflowed 32 bit range.")

    def test_invalid_numeric_constants_quote_the_slice(self) -> None:
        for source in ("3ee2", "3..14", "1e", ".", "1.2.3"):
            with self.subTest(source=source):
                with self.assertRaises(CalcTokenError) as ctx:
                    list(tokenize(source))
                self.assertEqual(str(ctx.exception), f"Invalid numeric constant '{source}'.")
                self.assertEqual(ctx.exception.text, source)

    def test_errors_are_raised_lazily(self) -> None:
        tokens = tokenize("1 + 3ee2")
        first = next(tokens)
        self.assertEqual(first.value, 1.0)
        self.assertEqual(next(tokens).text, "+")
        with self.assertRaises(CalcTokenError):
            next(tokens)

    def test_barewords(self) -> None:
        self.assertEqual(self._tokens("sin x_2 e"), [(TEXT, "sin"), (TEXT, "x_2"), (TEXT, "e")])

    def test_quoted_text(self) -> None:
        self.assertEqual(self._tokens("'a b' + \"c\""), [(TEXT, "a b"), (OPERATOR, "+"), (TEXT, "c")])
        self.assertEqual(self._tokens("\"it's\""), [(TEXT, "it's")])

    def test_unterminated_quote_returns_trailing_text(self) -> None:
        self.assertEqual(self._tokens("1 + 'rest of line"), [(NUMBER, "1"), (OPERATOR, "+"), (TEXT, "rest of line")])
        self.assertEqual(self._tokens("'"), [(TEXT, "")])

    def test_longest_operator_match(self) -> None:
        cases = {
            "a>>>b": [(TEXT, "a"), (OPERATOR, ">>>"), (TEXT, "b")],
            "a>>b": [(TEXT, "a"), (OPERATOR, ">>"), (TEXT, "b")],
            "a>=b": [(TEXT, "a"), (OPERATOR, ">="), (TEXT, "b")],
            "a||b": [(TEXT, "a"), (OPERATOR, "||"), (TEXT, "b")],
            "a|b": [(TEXT, "a"), (OPERATOR, "|"), (TEXT, "b")],
            "2^^3": [(NUMBER, "2"), (OPERATOR, "^^"), (NUMBER, "3")],
            "1!=2": [(NUMBER, "1"), (OPERATOR, "!="), (NUMBER, "2")],
            "!!1": [(OPERATOR, "!"), (OPERATOR, "!"), (NUMBER, "1")],
        }
        for source, expected in cases.items():
            with self.subTest(source=source):
                self.assertEqual(self._tokens(source), expected)

    def test_operator_match_falls_back_to_shorter_symbol(self) -> None:
        self.assertEqual(self._tokens(">>="), [(OPERATOR, ">>"), (OPERATOR, "=")])
        self.assertEqual(self._tokens("&&&"), [(OPERATOR, "&&"), (OPERATOR, "&")])

    def test_operator_tokens_reference_the_registry(self) -> None:
        from calc_jax.ops import find_operator

        (tok,) = list(tokenize("<<"))
        self.assertIs(tok.op, find_operator("<<"))

    def test_unknown_characters_become_single_char_text(self) -> None:
        self.assertEqual(self._tokens("1,@#"), [(NUMBER, "1"), (TEXT, ","), (TEXT, "@"), (TEXT, "#")])

    def test_token_stream_lookahead(self) -> None:
        stream = TokenStream(tokenize("1 + x"))
        peeked = stream.peek()
        assert peeked is not None
        self.assertEqual(peeked.text, "1")
        self.assertIs(stream.next(), peeked)
        self.assertEqual([tok.text for tok in stream], ["+", "x"])
        self.assertTrue(stream.exhausted())
        self.assertIsNone(stream.next())


if __name__ == "__main__":
    unittest.main()
