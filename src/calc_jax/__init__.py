"""calc-jax public API."""

from .ast import Constant, Expr, FunctionNode, OperatorNode, format_expression, format_number
from .errors import (
    CalcArityError,
    CalcError,
    CalcNameError,
    CalcParseError,
    CalcRecursionError,
    CalcRuntimeError,
    CalcTokenError,
)
from .evaluator import (
    MAX_RECURSION,
    Calculator,
    Context,
    Frame,
    UserFunction,
    deconstruct_function_definition,
    evaluate,
    evaluate_line,
    iter_statements,
    run_statement,
)
from .lexer import Token, TokenStream, tokenize
from .ops import Operator, describe, find_operator, function_names, operator_names
from .parser import parse, parse_line

__all__ = [
    "tokenize",
    "Token",
    "TokenStream",
    "parse",
    "parse_line",
    "evaluate",
    "evaluate_line",
    "iter_statements",
    "run_statement",
    "deconstruct_function_definition",
    "Calculator",
    "Context",
    "Frame",
    "UserFunction",
    "MAX_RECURSION",
    "Operator",
    "find_operator",
    "operator_names",
    "function_names",
    "describe",
    "Constant",
    "OperatorNode",
    "FunctionNode",
    "Expr",
    "format_expression",
    "format_number",
    "CalcError",
    "CalcTokenError",
    "CalcParseError",
    "CalcRuntimeError",
    "CalcArityError",
    "CalcNameError",
    "CalcRecursionError",
]
