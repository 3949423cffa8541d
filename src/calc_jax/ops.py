"""Static operator and function registry.

Every operator, builtin function and named constant the calculator knows is
described by one immutable :class:`Operator` entry. The table is built once
at import time and exposed read-only; the tokenizer uses it for longest-match
symbol recognition, the parser for precedence/arity, and the evaluator for
the numeric kernels.

Kernels run on ``jax.numpy`` in 64-bit mode so that IEEE-754 semantics hold
(``3/0`` is infinity, ``sqrt(-1)`` is NaN) instead of Python raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Callable, Final, Mapping, Union

import jax
from jax import lax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)


class Precedence(IntEnum):
    """Binding strength, loosest first. Only the numeric order matters."""

    NONE = 0
    BRACE = 1
    TERMINATOR = 2
    ASSIGN = 3
    TERNARY = 4
    LOGICAL_OR = 5
    LOGICAL_AND = 6
    BINARY_OR = 7
    BINARY_XOR = 8
    BINARY_AND = 9
    COMPARE_EQ = 10
    COMPARE_DIFF = 11
    SHIFT = 12
    ADDITION = 13
    MULTIPLY = 14
    UNARY = 15
    POWER = 16


@dataclass(frozen=True)
class Nullary:
    fn: Callable[[], float]


@dataclass(frozen=True)
class Unary:
    fn: Callable[[float], float]


@dataclass(frozen=True)
class Binary:
    fn: Callable[[float, float], float]


@dataclass(frozen=True)
class Lazy:
    """Short-circuit strategy.

    ``select`` receives the value of the first operand and returns the index
    of the operand that produces the result; 0 means the first operand's
    value itself, so the remaining operands are never evaluated.
    """

    select: Callable[[float], int]


@dataclass(frozen=True)
class Invalid:
    """Structural marker: takes part in parsing but cannot be evaluated."""


Strategy = Union[Nullary, Unary, Binary, Lazy, Invalid]


@dataclass(frozen=True, eq=False)
class Operator:
    name: str
    precedence: Precedence
    arity: int
    strategy: Strategy
    right_assoc: bool = False
    help: str = ""

    @property
    def is_unary(self) -> bool:
        return self.arity == 1

    @property
    def is_callable_only(self) -> bool:
        return self.precedence == Precedence.NONE

    def __repr__(self) -> str:
        return f"Operator({self.name!r})"


def _f64(x: float) -> jnp.ndarray:
    return jnp.asarray(x, dtype=jnp.float64)


def _i64(x: float) -> jnp.ndarray:
    return lax.convert_element_type(_f64(x), jnp.int64)


def _as_float(value: jnp.ndarray) -> float:
    return float(lax.convert_element_type(value, jnp.float64))


def _float_unary(fn: Callable[[jnp.ndarray], jnp.ndarray]) -> Callable[[float], float]:
    def kernel(x: float) -> float:
        return _as_float(fn(_f64(x)))

    return kernel


def _float_binary(fn: Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]) -> Callable[[float, float], float]:
    def kernel(left: float, right: float) -> float:
        return _as_float(fn(_f64(left), _f64(right)))

    return kernel


def _int_unary(fn: Callable[[jnp.ndarray], jnp.ndarray]) -> Callable[[float], float]:
    def kernel(x: float) -> float:
        return _as_float(fn(_i64(x)))

    return kernel


def _int_binary(fn: Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]) -> Callable[[float, float], float]:
    def kernel(left: float, right: float) -> float:
        return _as_float(fn(_i64(left), _i64(right)))

    return kernel


def _compare(cmp_op: Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]) -> Callable[[float, float], float]:
    def kernel(left: float, right: float) -> float:
        return _as_float(cmp_op(_f64(left), _f64(right)))

    return kernel


def _narrowing_cast(dtype) -> Callable[[float], float]:
    # Truncate to i64 first, then wrap into the narrower width.
    def kernel(x: float) -> float:
        return _as_float(lax.convert_element_type(_i64(x), dtype))

    return kernel


def _round_half_away(x: jnp.ndarray) -> jnp.ndarray:
    whole = jnp.trunc(x)
    return jnp.where(jnp.abs(x - whole) >= 0.5, whole + jnp.sign(x), whole)


def _logical_not(x: float) -> float:
    return _as_float(lax.eq(_f64(x), _f64(0.0)))


def _select_or(first: float) -> int:
    return 0 if first != 0 else 1


def _select_and(first: float) -> int:
    return 0 if first == 0 else 1


def _select_ternary(condition: float) -> int:
    return 1 if condition != 0 else 2


_STRUCTURAL: Final = Invalid()


def _op(name: str, precedence: Precedence, arity: int, strategy: Strategy, *, right: bool = False, help: str = "") -> Operator:
    return Operator(name=name, precedence=precedence, arity=arity, strategy=strategy, right_assoc=right, help=help)


def _fn1(name: str, fn: Callable[[jnp.ndarray], jnp.ndarray], help: str) -> Operator:
    return _op(name, Precedence.NONE, 1, Unary(_float_unary(fn)), help=help)


_P = Precedence

OPEN_PAREN: Final = _op("(", _P.BRACE, 0, _STRUCTURAL, help="open a group or argument list")
CLOSE_PAREN: Final = _op(")", _P.BRACE, 0, _STRUCTURAL, help="close a group or argument list")
ASSIGN: Final = _op("=", _P.ASSIGN, 2, _STRUCTURAL, right=True, help="define a function: f(x) = body")
QUESTION: Final = _op("?", _P.TERNARY, 2, _STRUCTURAL, right=True, help="ternary condition: c ? a : b")
COLON: Final = _op(":", _P.TERNARY, 2, _STRUCTURAL, right=True, help="ternary alternative: c ? a : b")
SUBTRACT: Final = _op("-", _P.ADDITION, 2, Binary(_float_binary(lax.sub)), help="subtraction or negation")

# Reachable only from the parser, never by name lookup.
NEGATE: Final = _op("-", _P.UNARY, 1, Unary(_float_unary(lax.neg)), right=True, help="negation")
TERNARY: Final = _op("?:", _P.TERNARY, 3, Lazy(_select_ternary), right=True, help="conditional")
TERMINATOR: Final = _op("<end>", _P.TERMINATOR, 0, _STRUCTURAL, help="end of input")

_TABLE: Final[tuple[Operator, ...]] = (
    OPEN_PAREN,
    CLOSE_PAREN,
    ASSIGN,
    QUESTION,
    COLON,
    # Short-circuit logic.
    _op("||", _P.LOGICAL_OR, 2, Lazy(_select_or), help="logical or, skips the right operand when the left is non-zero"),
    _op("&&", _P.LOGICAL_AND, 2, Lazy(_select_and), help="logical and, skips the right operand when the left is zero"),
    # Bitwise, on 64-bit signed integers.
    _op("|", _P.BINARY_OR, 2, Binary(_int_binary(jnp.bitwise_or)), help="bitwise or"),
    _op("^^", _P.BINARY_XOR, 2, Binary(_int_binary(jnp.bitwise_xor)), help="bitwise exclusive or"),
    _op("&", _P.BINARY_AND, 2, Binary(_int_binary(jnp.bitwise_and)), help="bitwise and"),
    _op("<<", _P.SHIFT, 2, Binary(_int_binary(jnp.left_shift)), help="shift left"),
    _op(">>", _P.SHIFT, 2, Binary(_int_binary(jnp.right_shift)), help="arithmetic shift right"),
    _op(">>>", _P.SHIFT, 2, Binary(_int_binary(lax.shift_right_logical)), help="logical shift right"),
    _op("~", _P.UNARY, 1, Unary(_int_unary(jnp.invert)), right=True, help="bitwise not"),
    # Comparisons.
    _op("==", _P.COMPARE_EQ, 2, Binary(_compare(lax.eq)), help="equal"),
    _op("!=", _P.COMPARE_EQ, 2, Binary(_compare(lax.ne)), help="not equal"),
    _op("<", _P.COMPARE_DIFF, 2, Binary(_compare(lax.lt)), help="less than"),
    _op(">", _P.COMPARE_DIFF, 2, Binary(_compare(lax.gt)), help="greater than"),
    _op("<=", _P.COMPARE_DIFF, 2, Binary(_compare(lax.le)), help="less than or equal"),
    _op(">=", _P.COMPARE_DIFF, 2, Binary(_compare(lax.ge)), help="greater than or equal"),
    # Arithmetic.
    _op("+", _P.ADDITION, 2, Binary(_float_binary(lax.add)), help="addition"),
    SUBTRACT,
    _op("*", _P.MULTIPLY, 2, Binary(_float_binary(lax.mul)), help="multiplication"),
    _op("/", _P.MULTIPLY, 2, Binary(_float_binary(jnp.true_divide)), help="division"),
    _op("%", _P.MULTIPLY, 2, Binary(_float_binary(jnp.mod)), help="floored remainder, x - y * floor(x / y), sign follows the divisor"),
    _op("^", _P.POWER, 2, Binary(_float_binary(jnp.power)), right=True, help="power"),
    _op("!", _P.UNARY, 1, Unary(_logical_not), right=True, help="logical not"),
    # Math library.
    _op("max", _P.NONE, 2, Binary(_float_binary(jnp.maximum)), help="larger of two values"),
    _op("min", _P.NONE, 2, Binary(_float_binary(jnp.minimum)), help="smaller of two values"),
    _fn1("sqrt", jnp.sqrt, "square root"),
    _fn1("exp", jnp.exp, "e raised to x"),
    _fn1("ln", jnp.log, "natural logarithm"),
    _fn1("log", jnp.log10, "base 10 logarithm"),
    _fn1("log2", jnp.log2, "base 2 logarithm"),
    _fn1("abs", jnp.abs, "absolute value"),
    _fn1("ceil", jnp.ceil, "round up"),
    _fn1("floor", jnp.floor, "round down"),
    _fn1("round", _round_half_away, "round to nearest, halves away from zero"),
    # Trigonometry.
    _fn1("sin", jnp.sin, "sine"),
    _fn1("cos", jnp.cos, "cosine"),
    _fn1("tan", jnp.tan, "tangent"),
    _fn1("asin", jnp.arcsin, "inverse sine"),
    _fn1("acos", jnp.arccos, "inverse cosine"),
    _fn1("atan", jnp.arctan, "inverse tangent"),
    _fn1("sinh", jnp.sinh, "hyperbolic sine"),
    _fn1("cosh", jnp.cosh, "hyperbolic cosine"),
    _fn1("tanh", jnp.tanh, "hyperbolic tangent"),
    _fn1("asinh", jnp.arcsinh, "inverse hyperbolic sine"),
    _fn1("acosh", jnp.arccosh, "inverse hyperbolic cosine"),
    _fn1("atanh", jnp.arctanh, "inverse hyperbolic tangent"),
    # Fixed-width integer casts.
    _op("i8", _P.NONE, 1, Unary(_narrowing_cast(jnp.int8)), help="wrap to signed 8 bit"),
    _op("u8", _P.NONE, 1, Unary(_narrowing_cast(jnp.uint8)), help="wrap to unsigned 8 bit"),
    _op("i16", _P.NONE, 1, Unary(_narrowing_cast(jnp.int16)), help="wrap to signed 16 bit"),
    _op("u16", _P.NONE, 1, Unary(_narrowing_cast(jnp.uint16)), help="wrap to unsigned 16 bit"),
    _op("i32", _P.NONE, 1, Unary(_narrowing_cast(jnp.int32)), help="wrap to signed 32 bit"),
    _op("u32", _P.NONE, 1, Unary(_narrowing_cast(jnp.uint32)), help="wrap to unsigned 32 bit"),
    # Constants.
    _op("e", _P.NONE, 0, Nullary(lambda: float(jnp.e)), help="Euler's number"),
    _op("pi", _P.NONE, 0, Nullary(lambda: float(jnp.pi)), help="ratio of circumference to diameter"),
)


def _index_by_name(table: tuple[Operator, ...]) -> Mapping[str, Operator]:
    by_name: dict[str, Operator] = {}
    for op in table:
        if op.name in by_name:
            raise ValueError(f"Duplicate operator name {op.name!r}")
        by_name[op.name] = op
    return MappingProxyType(by_name)


_BY_NAME: Final[Mapping[str, Operator]] = _index_by_name(_TABLE)
_PREFIXES: Final[frozenset[str]] = frozenset(
    name[:end] for name in _BY_NAME for end in range(1, len(name) + 1)
)


def find_operator(name: str) -> Operator | None:
    """Exact-match lookup; internal-only entries are never returned."""
    return _BY_NAME.get(name)


def is_operator_prefix(text: str) -> bool:
    return text in _PREFIXES


def operator_names() -> tuple[str, ...]:
    return tuple(op.name for op in _TABLE if not op.is_callable_only)


def function_names() -> tuple[str, ...]:
    return tuple(op.name for op in _TABLE if op.is_callable_only)


def describe(name: str) -> str | None:
    op = find_operator(name)
    if op is None:
        return None
    if op.is_callable_only:
        params = ", ".join("xyz"[i] for i in range(op.arity))
        signature = name if op.arity == 0 else f"{name}({params})"
    else:
        signature = name
    return f"{signature}: {op.help}" if op.help else signature
