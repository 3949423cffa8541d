"""Tokenization of a single calculator input line."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Iterable, Iterator

from .errors import CalcTokenError
from .ops import Operator, find_operator, is_operator_prefix


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int
    end: int
    value: float | None = None
    op: Operator | None = None


NUMBER: Final = "NUMBER"
TEXT: Final = "TEXT"
OPERATOR: Final = "OPERATOR"

_DIGITS: Final = frozenset("0123456789")
_HEX_DIGITS: Final = "0123456789abcdef"
_WHITESPACE: Final = frozenset(" \t\r\n\f\v")
_QUOTES: Final = frozenset("'\"")
_BASE_PREFIXES: Final[dict[str, int]] = {"0b": 2, "0x": 16}
_INTEGER_BITS: Final = 32
_INTEGER_LIMIT: Final = 1 << _INTEGER_BITS


def _is_word_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def _is_word_continue(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


def _digit_value(ch: str, base: int) -> int | None:
    digit = _HEX_DIGITS.find(ch.lower())
    return digit if 0 <= digit < base else None


def _scan_based_integer(source: str, start: int, base: int) -> tuple[float, int]:
    i = start + 2
    value = 0
    while i < len(source):
        digit = _digit_value(source[i], base)
        if digit is None:
            break
        value = value * base + digit
        if value >= _INTEGER_LIMIT:
            raise CalcTokenError.overflow(source[start : i + 1], start, base, _INTEGER_BITS)
        i += 1
    return float(value), i


def _scan_decimal(source: str, start: int) -> tuple[float, int]:
    i = start
    while i < len(source):
        ch = source[i]
        if ch in _DIGITS or ch == ".":
            i += 1
        elif ch == "e":
            i += 1
            if i < len(source) and source[i] == "-":
                i += 1
        else:
            break
    text = source[start:i]
    try:
        return float(text), i
    except ValueError:
        raise CalcTokenError.invalid_constant(text, start) from None


def _scan_number(source: str, start: int) -> tuple[float, int]:
    base = _BASE_PREFIXES.get(source[start : start + 2])
    if base is not None:
        return _scan_based_integer(source, start, base)
    return _scan_decimal(source, start)


def _scan_quoted(source: str, start: int) -> tuple[str, int]:
    quote = source[start]
    close = source.find(quote, start + 1)
    if close < 0:
        # Unterminated: everything up to the end of the line.
        return source[start + 1 :], len(source)
    return source[start + 1 : close], close + 1


def _scan_operator(source: str, start: int) -> tuple[Operator, int] | None:
    best: tuple[Operator, int] | None = None
    end = start + 1
    while end <= len(source) and is_operator_prefix(source[start:end]):
        op = find_operator(source[start:end])
        if op is not None:
            best = (op, end)
        end += 1
    return best


def tokenize(source: str) -> Iterator[Token]:
    """Lazily scan ``source`` into tokens.

    Numbers become ``NUMBER`` tokens carrying their float value, registry
    symbols become ``OPERATOR`` tokens (longest match wins), and words, quoted
    runs and any other single character become ``TEXT`` tokens. Malformed
    numeric literals raise :class:`CalcTokenError` when reached.
    """
    i = 0
    while i < len(source):
        ch = source[i]

        if ch in _WHITESPACE:
            i += 1
            continue

        if ch in _DIGITS or ch == ".":
            value, end = _scan_number(source, i)
            yield Token(NUMBER, source[i:end], i, end, value=value)
            i = end
            continue

        if _is_word_start(ch):
            start = i
            i += 1
            while i < len(source) and _is_word_continue(source[i]):
                i += 1
            yield Token(TEXT, source[start:i], start, i)
            continue

        if ch in _QUOTES:
            text, end = _scan_quoted(source, i)
            yield Token(TEXT, text, i, end)
            i = end
            continue

        matched = _scan_operator(source, i)
        if matched is not None:
            op, end = matched
            yield Token(OPERATOR, op.name, i, end, op=op)
            i = end
            continue

        yield Token(TEXT, ch, i, i + 1)
        i += 1


class TokenStream:
    """Single-token lookahead over a lazy token sequence."""

    _EMPTY: Final = object()

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens = iter(tokens)
        self._buffered: object = self._EMPTY

    def peek(self) -> Token | None:
        if self._buffered is self._EMPTY:
            self._buffered = next(self._tokens, None)
        return self._buffered  # type: ignore[return-value]

    def next(self) -> Token | None:
        tok = self.peek()
        self._buffered = self._EMPTY
        return tok

    def exhausted(self) -> bool:
        return self.peek() is None

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next()
            if tok is None:
                return
            yield tok
