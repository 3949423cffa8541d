"""Structured error types for the tokenizer/parser/evaluator stages."""

from __future__ import annotations


class CalcError(Exception):
    """Base class for every failure raised by calc-jax.

    ``str(err)`` is the user-facing message; the CLI prints it verbatim and
    moves on to the next line.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class CalcTokenError(CalcError):
    """Malformed numeric literal or overflowing base-prefixed constant."""

    def __init__(self, message: str, *, text: str, pos: int) -> None:
        super().__init__(message)
        self.text = text
        self.pos = pos

    @classmethod
    def invalid_constant(cls, text: str, pos: int) -> "CalcTokenError":
        return cls(f"Invalid numeric constant '{text}'.", text=text, pos=pos)

    @classmethod
    def overflow(cls, text: str, pos: int, base: int, bits: int) -> "CalcTokenError":
        return cls(f"Base {base} constant overflowed {bits} bit range.", text=text, pos=pos)


class CalcParseError(CalcError):
    """Structural failure while building an expression tree."""

    def __init__(self, message: str, pos: int | None = None) -> None:
        super().__init__(message)
        self.pos = pos


class CalcRuntimeError(CalcError):
    """Failure after a successful parse."""


class CalcArityError(CalcRuntimeError):
    def __init__(self, name: str, expected: int, got: int) -> None:
        super().__init__(f"Wrong number of arguments for {name}(): expected {expected} but got {got}.")
        self.name = name
        self.expected = expected
        self.got = got


class CalcNameError(CalcRuntimeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown value {name}.")
        self.name = name


class CalcRecursionError(CalcRuntimeError):
    def __init__(self) -> None:
        super().__init__("Excessive recursion.")
