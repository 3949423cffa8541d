"""Tree-walking evaluator with user-defined functions."""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Final, Iterator

from .ast import Constant, Expr, FunctionNode, OperatorNode
from .errors import CalcArityError, CalcNameError, CalcRecursionError, CalcRuntimeError
from .ops import ASSIGN, Binary, Invalid, Lazy, Nullary, Unary
from .lexer import TokenStream, tokenize
from .parser import parse

logger = logging.getLogger(__name__)

MAX_RECURSION: Final[int] = 256
_STACK_LIMIT: Final[int] = max(1000, int(os.environ.get("CALC_JAX_STACK_LIMIT", "10000")))


@dataclass(frozen=True)
class UserFunction:
    body: Expr
    params: tuple[str, ...] = ()

    def signature(self, name: str) -> str:
        return f"{name}({', '.join(self.params)})"


@dataclass
class Context:
    """Long-lived calculator state: the user-defined function table."""

    functions: dict[str, UserFunction] = field(default_factory=dict)

    def define(self, name: str, function: UserFunction) -> None:
        if name in self.functions:
            logger.debug("redefining %s", function.signature(name))
        else:
            logger.debug("defining %s", function.signature(name))
        self.functions[name] = function

    def names(self) -> list[str]:
        return sorted(self.functions)


@dataclass(frozen=True)
class Frame:
    """Bindings for one user function call. Never mutated; calls make a new one."""

    context: Context
    params: tuple[str, ...] = ()
    values: tuple[float, ...] = ()
    depth: int = 0

    def call(self, function: UserFunction, args: tuple[float, ...]) -> "Frame":
        if self.depth >= MAX_RECURSION:
            raise CalcRecursionError()
        return Frame(self.context, function.params, args, self.depth + 1)

    def evaluate(self, expr: Expr) -> float:
        if isinstance(expr, Constant):
            return expr.value

        if isinstance(expr, OperatorNode):
            strategy = expr.op.strategy
            if isinstance(strategy, Binary):
                left = self.evaluate(expr.args[0])
                right = self.evaluate(expr.args[1])
                return strategy.fn(left, right)
            if isinstance(strategy, Unary):
                return strategy.fn(self.evaluate(expr.args[0]))
            if isinstance(strategy, Lazy):
                first = self.evaluate(expr.args[0])
                index = strategy.select(first)
                return first if index == 0 else self.evaluate(expr.args[index])
            if isinstance(strategy, Nullary):
                return strategy.fn()
            assert isinstance(strategy, Invalid)
            raise CalcRuntimeError(f"Invalid use of {expr.op.name} operator.")

        name = expr.name
        if name in self.params:
            if expr.args:
                raise CalcRuntimeError(f"Use of {name}() as first class function is not supported.")
            return self.values[self.params.index(name)]

        function = self.context.functions.get(name)
        if function is None:
            raise CalcNameError(name)
        if len(expr.args) != len(function.params):
            raise CalcArityError(name, len(function.params), len(expr.args))
        args = tuple(self.evaluate(arg) for arg in expr.args)
        return self.call(function, args).evaluate(function.body)


@contextmanager
def _stack_headroom() -> Iterator[None]:
    # Each user call costs a few Python frames. The raised limit lets
    # MAX_RECURSION fire first for ordinary bodies; trees or bodies deep
    # enough to exhaust it anyway report the same error.
    previous = sys.getrecursionlimit()
    if previous < _STACK_LIMIT:
        sys.setrecursionlimit(_STACK_LIMIT)
    try:
        yield
    except RecursionError:
        raise CalcRecursionError() from None
    finally:
        sys.setrecursionlimit(previous)


def evaluate(expr: Expr, context: Context) -> float:
    """Evaluate ``expr`` against the user functions in ``context``."""
    with _stack_headroom():
        return Frame(context).evaluate(expr)


def _parse_statement(stream: TokenStream) -> Expr:
    # Nested argument lists recurse in the parser.
    with _stack_headroom():
        return parse(stream)


def deconstruct_function_definition(expr: Expr) -> tuple[UserFunction, str] | None:
    """Split ``name(p, ...) = body`` into a function and its name.

    Returns None, leaving ``expr`` as it was, for anything else; such a tree
    fails later in :func:`evaluate` because ``=`` cannot be evaluated.
    """
    if not isinstance(expr, OperatorNode) or expr.op is not ASSIGN:
        return None
    target, body = expr.args
    if not isinstance(target, FunctionNode):
        return None
    if not all(isinstance(param, FunctionNode) and param.is_bare_name for param in target.args):
        return None
    params = tuple(param.name for param in target.args if isinstance(param, FunctionNode))
    return UserFunction(body=body, params=params), target.name


def iter_statements(line: str) -> Iterator[Expr]:
    """Lazily parse the comma-separated statements of ``line``.

    The next statement is only tokenized and parsed once the caller asks for
    it, so a syntax error later in the line leaves earlier statements run.
    """
    stream = TokenStream(tokenize(line))
    while not stream.exhausted():
        yield _parse_statement(stream)


def run_statement(statement: Expr, context: Context) -> float | None:
    """Register a definition in ``context`` or evaluate anything else."""
    definition = deconstruct_function_definition(statement)
    if definition is None:
        return evaluate(statement, context)
    function, name = definition
    context.define(name, function)
    return None


def evaluate_line(line: str, context: Context) -> list[float]:
    """Run every statement of ``line``; definitions update ``context``.

    Returns the values of the non-definition statements in order. Statements
    run left to right, so a definition is visible to later statements of the
    same line; an error aborts the rest of the line.
    """
    results: list[float] = []
    for statement in iter_statements(line):
        value = run_statement(statement, context)
        if value is not None:
            results.append(value)
    return results


@dataclass
class Calculator:
    """Callable wrapper that evaluates lines in a persistent context."""

    context: Context = field(default_factory=Context)

    def __call__(self, line: str) -> list[float]:
        return evaluate_line(line, self.context)
