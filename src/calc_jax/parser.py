"""Shift-reduce parser turning a token stream into an expression tree.

The parser keeps one pending operand (``current``) and a stack of
``(operator, left operand)`` pairs. Incoming operators reduce the stack while
the stacked operator binds tighter, which gives precedence climbing without a
grammar. Parentheses are zero-arity fences on the same stack.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Final, Iterable

from .ast import Constant, Expr, FunctionNode, OperatorNode
from .errors import CalcArityError, CalcParseError
from .lexer import NUMBER, OPERATOR, TEXT, Token, TokenStream, tokenize
from .ops import CLOSE_PAREN, COLON, NEGATE, OPEN_PAREN, QUESTION, SUBTRACT, TERMINATOR, TERNARY, Operator, find_operator

logger = logging.getLogger(__name__)

_PARSE_CACHE_MAX: Final[int] = max(1, int(os.environ.get("CALC_JAX_PARSE_CACHE_MAX", "256")))

_STATEMENT_SEPARATOR = ","


def _binds_before(stacked: Operator, incoming: Operator) -> bool:
    """True when ``stacked`` must be reduced before ``incoming`` is shifted."""
    if not stacked.is_unary and incoming.is_unary:
        return False
    # Left-associative operators reduce equal-precedence chains left to right.
    stacked_precedence = stacked.precedence if stacked.right_assoc else stacked.precedence + 1
    return incoming.precedence < stacked_precedence


def _combine_binary(op: Operator, left: Expr, right: Expr) -> Expr:
    # `a ? b : c` arrives as ?(a, :(b, c)); fuse it into one 3-ary node.
    # Only the tree shape is checked, so `a ? (b : c)` fuses as well.
    if op is QUESTION and isinstance(right, OperatorNode) and right.op is COLON:
        return OperatorNode(TERNARY, (left, *right.args))
    return OperatorNode(op, (left, right))


class _Parser:
    def __init__(self, tokens: TokenStream, is_nested: bool) -> None:
        self.tokens = tokens
        self.is_nested = is_nested
        self.current: Expr | None = None
        self.stack: list[tuple[Operator, Expr | None]] = []
        self.ended_on_separator = False

    def parse_statement(self) -> Expr:
        while True:
            tok = self.tokens.peek()
            if tok is None:
                break
            if tok.kind == TEXT and tok.text == _STATEMENT_SEPARATOR:
                self.tokens.next()
                self.ended_on_separator = True
                break
            if self.is_nested and tok.op is CLOSE_PAREN and not self._has_open_fence():
                break
            self.tokens.next()
            if tok.kind == NUMBER:
                self.push_constant(tok)
            elif tok.kind == OPERATOR:
                assert tok.op is not None
                self.push_operator(tok.op, tok)
            else:
                self.push_symbol(tok)
        return self._finish()

    def _has_open_fence(self) -> bool:
        return any(op is OPEN_PAREN for op, _ in self.stack)

    def push_constant(self, tok: Token) -> None:
        if self.current is not None:
            raise CalcParseError(f"Expecting operator but got {tok.text}.", tok.pos)
        assert tok.value is not None
        self.current = Constant(tok.value)

    def push_symbol(self, tok: Token) -> None:
        if self.current is not None:
            raise CalcParseError(f"Expecting operator but got {tok.text}.", tok.pos)
        name = tok.text
        args = self._parse_arguments()
        op = find_operator(name)
        if op is None:
            self.current = FunctionNode(name, args)
            return
        if len(args) != op.arity:
            raise CalcArityError(name, op.arity, len(args))
        self.current = OperatorNode(op, args)

    def _parse_arguments(self) -> tuple[Expr, ...]:
        opening = self.tokens.peek()
        if opening is None or opening.op is not OPEN_PAREN:
            return ()
        self.tokens.next()

        closing = self.tokens.peek()
        if closing is not None and closing.op is CLOSE_PAREN:
            self.tokens.next()
            return ()

        args: list[Expr] = []
        while True:
            nested = _Parser(self.tokens, is_nested=True)
            args.append(nested.parse_statement())
            if nested.ended_on_separator:
                continue
            if self.tokens.next() is None:
                raise CalcParseError("Unexpected end of input.")
            return tuple(args)

    def push_operator(self, op: Operator, tok: Token | None = None) -> None:
        pos = None if tok is None else tok.pos
        if op is SUBTRACT and self.current is None:
            op = NEGATE

        if op is not OPEN_PAREN:
            while self.stack and _binds_before(self.stack[-1][0], op):
                if self._reduce(op, pos):
                    return

        if op is CLOSE_PAREN:
            raise CalcParseError("Too many close parentheses.", pos)

        self.stack.append((op, self.current))
        self.current = None

    def _reduce(self, incoming: Operator, pos: int | None) -> bool:
        """Pop one stack entry into ``current``; True when a fence was closed."""
        op, left = self.stack.pop()

        if op.arity == 1:
            if left is not None or self.current is None:
                raise CalcParseError("Unary operator is missing an operand.", pos)
            self.current = OperatorNode(op, (self.current,))
            return False

        if op.arity == 2:
            if left is None or self.current is None:
                raise CalcParseError("Binary operator is missing an operand.", pos)
            self.current = _combine_binary(op, left, self.current)
            return False

        if left is not None or op is not OPEN_PAREN:
            raise CalcParseError("Unexpected open parenthesis.", pos)
        if incoming is CLOSE_PAREN and self.current is None:
            raise CalcParseError("Unexpected close parenthesis.", pos)
        return True

    def _finish(self) -> Expr:
        if self.current is None:
            raise CalcParseError("Unexpected end of input.")
        self.push_operator(TERMINATOR)
        if len(self.stack) != 1:
            raise CalcParseError("Unexpected end of input.")
        result = self.stack[0][1]
        assert result is not None
        return result


def parse(tokens: TokenStream | Iterable[Token], is_nested: bool = False) -> Expr:
    """Parse one statement from ``tokens``.

    A top-level comma ends the statement and is consumed, so calling
    ``parse`` repeatedly on the same stream walks a comma-separated line. In
    nested (argument) mode an unmatched ``)`` also ends the statement and is
    left in the stream for the caller.
    """
    stream = tokens if isinstance(tokens, TokenStream) else TokenStream(tokens)
    return _Parser(stream, is_nested).parse_statement()


@lru_cache(maxsize=_PARSE_CACHE_MAX)
def parse_line(line: str) -> tuple[Expr, ...]:
    """Parse every comma-separated statement of ``line``.

    Trees are immutable, so results are shared between calls with the same
    text. Failures are not cached.
    """
    logger.debug("parsing %r", line)
    stream = TokenStream(tokenize(line))
    statements: list[Expr] = []
    while not stream.exhausted():
        statements.append(parse(stream))
    return tuple(statements)
