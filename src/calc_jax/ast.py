"""Expression tree nodes produced by the parser."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from .errors import CalcRecursionError
from .ops import Operator


def format_number(value: float) -> str:
    """Render a float the way the calculator prints it (``3`` not ``3.0``)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


@dataclass(frozen=True)
class Constant:
    value: float

    def __str__(self) -> str:
        return format_number(self.value)


@dataclass(frozen=True)
class OperatorNode:
    op: Operator
    args: tuple["Expr", ...] = ()

    def __str__(self) -> str:
        return _format_call(self.op.name, self.args)


@dataclass(frozen=True)
class FunctionNode:
    """A name with optional arguments.

    Whether this is a parameter reference or a call of a user-defined
    function is only decided at evaluation time.
    """

    name: str
    args: tuple["Expr", ...] = ()

    @property
    def is_bare_name(self) -> bool:
        return not self.args

    def __str__(self) -> str:
        return _format_call(self.name, self.args)


Expr = Union[Constant, OperatorNode, FunctionNode]


def _format_call(name: str, args: tuple[Expr, ...]) -> str:
    if not args:
        return name
    return f"{name}({','.join(str(arg) for arg in args)})"


def format_expression(expr: Expr) -> str:
    """Prefix rendering of ``expr``, e.g. ``+(1,*(2,3))``."""
    try:
        return str(expr)
    except RecursionError:
        raise CalcRecursionError() from None
