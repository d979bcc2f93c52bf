#!/usr/bin/env python3
"""
bytexpr CLI - Compile and evaluate arithmetic expressions

Usage:
    bytexpr eval "x^2 + y" 3 1
    bytexpr tree "(3+4)*(5-2)"
    bytexpr disasm "sin(PI/2)"
    bytexpr run --arg 5       # Prompt for an expression on stdin
"""

import argparse
import sys
from typing import Optional

from .ast_nodes import count_nodes, debug
from .binder import ArgBinding
from .bytecode import CodeGenError
from .config import CompilerConfig
from .expression import CompiledExpression, ExprParser


def report_error(source: str, error: Exception) -> None:
    """Print an error, with a caret under the offset for syntax errors."""
    print(f"Error: {error}", file=sys.stderr)
    offset = getattr(error, "offset", None)
    if offset is not None:
        print(f"  {source}", file=sys.stderr)
        print(f"  {' ' * offset}^", file=sys.stderr)


def parse_define(text: str) -> tuple[str, float]:
    """Parse a NAME=VALUE option."""
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    try:
        return name.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid value for {name}: {value!r}")


def make_config(args: argparse.Namespace) -> CompilerConfig:
    return CompilerConfig(max_code_size=args.max_code_size)


def parse_source(source: str, args: argparse.Namespace) -> Optional[ExprParser]:
    """Parse source, reporting syntax errors. None on failure."""
    parser = ExprParser(make_config(args))
    if not parser.parse(source):
        report_error(source, parser.error)
        return None
    return parser


def compile_source(source: str, args: argparse.Namespace) -> Optional[CompiledExpression]:
    """Parse, bind standard library and defines, compile. None on failure."""
    parser = parse_source(source, args)
    if parser is None:
        return None

    parser.register_std()
    for name, value in args.define or []:
        parser.bind_value(name, value)

    missing = parser.unbound_calls()
    if missing:
        print(f"Warning: unbound functions evaluate to 0: {', '.join(missing)}", file=sys.stderr)

    nodes = count_nodes(parser.tree)
    try:
        expr = parser.compile()
    except CodeGenError as e:
        report_error(source, e)
        return None

    if args.verbose:
        print(f"Parsed {nodes} nodes", file=sys.stderr)
        slots = sorted(
            (binding.index, name)
            for name, binding in parser.bindings.variables.items()
            if isinstance(binding, ArgBinding)
        )
        for index, name in slots:
            print(f"  arg {index}: {name}", file=sys.stderr)
        print(f"Compiled to {len(expr.bytecode)} bytes", file=sys.stderr)

    return expr


def format_result(value: float) -> str:
    return repr(value)


def cmd_eval(args: argparse.Namespace) -> int:
    """Evaluate command."""
    expr = compile_source(args.expression, args)
    if expr is None:
        return 1
    if len(args.values) < expr.arg_count:
        print(f"Warning: expression takes {expr.arg_count} arguments, "
              f"got {len(args.values)}; missing ones read as 0", file=sys.stderr)
    print(format_result(expr.evaluate(args.values)))
    return 0


def cmd_tree(args: argparse.Namespace) -> int:
    """Print the canonical form of an expression."""
    parser = parse_source(args.expression, args)
    if parser is None:
        return 1
    if args.debug:
        for line in debug(parser.tree):
            print(line)
    else:
        print(parser.to_string())
    return 0


def cmd_disasm(args: argparse.Namespace) -> int:
    """Emit bytecode listing only."""
    expr = compile_source(args.expression, args)
    if expr is None:
        return 1
    for line in expr.disassemble():
        print(line)
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Interactive command: read one expression and evaluate it."""
    try:
        source = input("Expression: ")
    except EOFError:
        print("Error: no expression given", file=sys.stderr)
        return 1

    expr = compile_source(source, args)
    if expr is None:
        return 1
    values = args.arg if args.arg else [5.0]
    print(format_result(expr.evaluate(values)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bytexpr",
        description="bytexpr - arithmetic expressions to bytecode"
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Print compile diagnostics to stderr")
    parser.add_argument("-D", "--define", action="append", type=parse_define,
                        metavar="NAME=VALUE", help="Bind a variable to a value")
    parser.add_argument("--max-code-size", type=int, default=CompilerConfig.max_code_size,
                        help="Bytecode size limit in bytes")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Eval command
    eval_parser = subparsers.add_parser("eval", help="Compile and evaluate")
    eval_parser.add_argument("expression", help="Expression source")
    eval_parser.add_argument("values", nargs="*", type=float,
                             help="Argument values, in slot order")
    eval_parser.set_defaults(func=cmd_eval)

    # Tree command
    tree_parser = subparsers.add_parser("tree", help="Print the canonical form")
    tree_parser.add_argument("expression", help="Expression source")
    tree_parser.add_argument("--debug", action="store_true",
                             help="Print one node per line instead")
    tree_parser.set_defaults(func=cmd_tree)

    # Disasm command
    disasm_parser = subparsers.add_parser("disasm", help="Print the bytecode listing")
    disasm_parser.add_argument("expression", help="Expression source")
    disasm_parser.set_defaults(func=cmd_disasm)

    # Run command
    run_parser = subparsers.add_parser("run", help="Read an expression from stdin and evaluate it")
    run_parser.add_argument("--arg", action="append", type=float,
                            help="Argument value (repeatable, default 5)")
    run_parser.set_defaults(func=cmd_run)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
