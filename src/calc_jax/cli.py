"""Evaluate calculator expressions from arguments, an argument file or stdin."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, TextIO

from .ast import format_expression, format_number
from .errors import CalcError
from .evaluator import Context, iter_statements, run_statement
from .ops import describe, function_names, operator_names

logger = logging.getLogger(__name__)


def _input_lines(expressions: list[str], stdin: TextIO) -> Iterable[str]:
    # A single argument naming a readable file is an argument file.
    if len(expressions) == 1 and Path(expressions[0]).is_file():
        path = Path(expressions[0])
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.debug("cannot read %s (%s); treating it as an expression", path, exc)
        else:
            logger.debug("reading argument file %s", path)
            return text.splitlines()
    if expressions:
        return expressions
    logger.debug("reading expressions from stdin")
    return (line.rstrip("\n") for line in stdin)


def _print_operators(out: TextIO) -> None:
    print("Operators:", file=out)
    for name in operator_names():
        print(f"  {describe(name)}", file=out)
    print("Functions:", file=out)
    for name in function_names():
        print(f"  {describe(name)}", file=out)


def _print_functions(context: Context, out: TextIO) -> None:
    for name in context.names():
        function = context.functions[name]
        print(f"{function.signature(name)} = {function.body}", file=out)


def run_lines(lines: Iterable[str], context: Context, out: TextIO, *, show_tree: bool = False) -> bool:
    """Evaluate ``lines`` in order, printing values or error messages.

    Returns True when every line succeeded.
    """
    ok = True
    for line in lines:
        try:
            for statement in iter_statements(line):
                if show_tree:
                    print(format_expression(statement), file=out)
                value = run_statement(statement, context)
                if value is not None:
                    print(format_number(value), file=out)
        except CalcError as err:
            print(err, file=out)
            ok = False
    return ok


def main(argv: list[str] | None = None, *, stdin: TextIO | None = None, stdout: TextIO | None = None) -> int:
    parser = argparse.ArgumentParser(prog="calc-jax", description=__doc__)
    parser.add_argument(
        "expressions",
        nargs="*",
        help="one input line per argument, or a single argument file; stdin when omitted",
    )
    parser.add_argument("--show-tree", action="store_true", help="print the parsed tree before each value")
    parser.add_argument("--list", action="store_true", help="list user functions defined by the end of the run")
    parser.add_argument("--operators", action="store_true", help="list builtin operators and functions")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    out = sys.stdout if stdout is None else stdout

    if args.operators:
        _print_operators(out)
        if not args.expressions:
            return 0

    context = Context()
    lines = _input_lines(args.expressions, sys.stdin if stdin is None else stdin)
    ok = run_lines(lines, context, out, show_tree=args.show_tree)
    if args.list:
        _print_functions(context, out)
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
