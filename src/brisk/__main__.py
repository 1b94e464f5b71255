#!/usr/bin/env python3
"""
CLI for the Brisk interpreter.

Usage:
    python -m brisk run FILE
    python -m brisk repl
    python -m brisk check FILE
    python -m brisk tokens FILE
    python -m brisk ast FILE

With no action the REPL starts.

Examples:
    # Run a script; only program output goes to stdout
    python -m brisk run script.bk

    # Lex and parse without evaluating
    python -m brisk check script.bk

    # Debug logging from the lexer, parser and interpreter
    python -m brisk -vv run script.bk
    BRISK_LOG_LEVEL=DEBUG python -m brisk run script.bk
"""

import argparse
import logging
import os
import sys
from pathlib import Path

DEFAULT_RECURSION_LIMIT = 10000


def configure_logging(verbosity: int) -> None:
    """Set the log level from -v flags, falling back to BRISK_LOG_LEVEL."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        name = os.environ.get("BRISK_LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, name, logging.WARNING)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )


def read_source(path_str: str):
    """Read a UTF-8 source file; returns None (after reporting) if missing."""
    source_path = Path(path_str)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    return source_path.read_text(encoding="utf-8")


def cmd_run(args):
    """Evaluate a Brisk file."""
    from .errors import BriskError
    from .runtime import Interpreter

    source = read_source(args.file)
    if source is None:
        return 1

    try:
        Interpreter().run(source, filename=args.file)
    except BriskError as e:
        print(e, file=sys.stderr)
        return 1
    return 0


def cmd_repl(args):
    """Start the interactive loop."""
    from .repl import repl
    return repl()


def cmd_check(args):
    """Lex and parse a Brisk file without evaluating it."""
    from . import tokenize, parse
    from .ast import Program
    from .errors import BriskError

    source = read_source(args.file)
    if source is None:
        return 1

    try:
        tree = parse(tokenize(source, args.file), args.file, source)
    except BriskError as e:
        print(e, file=sys.stderr)
        return 1

    count = len(tree.statements) if isinstance(tree, Program) else 0
    print(f"OK: {Path(args.file).name} - {count} statement(s)")
    return 0


def cmd_tokens(args):
    """Print the token stream of a Brisk file."""
    from . import tokenize
    from .errors import BriskError

    source = read_source(args.file)
    if source is None:
        return 1

    try:
        tokens = tokenize(source, args.file)
    except BriskError as e:
        print(e, file=sys.stderr)
        return 1

    for token in tokens:
        print(f"{token.span.start.line}:{token.span.start.column}\t{token.type.name}\t{token.lexeme!r}")
    return 0


def cmd_ast(args):
    """Print the syntax tree of a Brisk file."""
    from . import tokenize, parse, dump_ast
    from .errors import BriskError

    source = read_source(args.file)
    if source is None:
        return 1

    try:
        tree = parse(tokenize(source, args.file), args.file, source)
    except BriskError as e:
        print(e, file=sys.stderr)
        return 1

    print(dump_ast(tree))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='brisk',
        description='Brisk scripting language interpreter',
    )
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase log verbosity (repeatable)')
    parser.add_argument('--recursion-limit', type=int, default=DEFAULT_RECURSION_LIMIT,
                        metavar='N', help='Host recursion limit for deeply nested programs')

    subparsers = parser.add_subparsers(dest='action')

    run_parser = subparsers.add_parser('run', help='Run a Brisk file')
    run_parser.add_argument('file', help='Brisk source file')

    subparsers.add_parser('repl', help='Start the interactive interpreter')

    check_parser = subparsers.add_parser('check', help='Check a Brisk file for syntax errors')
    check_parser.add_argument('file', help='Brisk source file')

    tokens_parser = subparsers.add_parser('tokens', help='Dump the tokens of a Brisk file')
    tokens_parser.add_argument('file', help='Brisk source file')

    ast_parser = subparsers.add_parser('ast', help='Dump the syntax tree of a Brisk file')
    ast_parser.add_argument('file', help='Brisk source file')

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.recursion_limit > sys.getrecursionlimit():
        sys.setrecursionlimit(args.recursion_limit)

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'check':
        return cmd_check(args)
    elif args.action == 'tokens':
        return cmd_tokens(args)
    elif args.action == 'ast':
        return cmd_ast(args)
    else:
        return cmd_repl(args)


if __name__ == '__main__':
    sys.exit(main())
