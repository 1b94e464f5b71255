"""
Brisk - a small imperative scripting language.

This package provides:
- Lexer: Tokenizes Brisk source, including $"..." text spans
- Parser: Builds an AST with precedence climbing
- Interpreter: Evaluates the AST against a persistent global scope

Usage:
    from brisk import run, Interpreter

    run('int x = 6 * 7')
    run('print($"x is {x}")')

    # Or keep an isolated global scope and capture output
    import io
    out = io.StringIO()
    interp = Interpreter(stdout=out)
    interp.run('list xs = [1, 2]; xs.push(3); print(xs)')
    out.getvalue()      # "[1, 2, 3]\\n"
"""

import logging

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    AstNode,
    AstVisitor,
    Program,
    dump_ast,
    print_ast,
)

from .errors import (
    BriskError,
    BriskSyntaxError,
    LexerError,
    ParserError,
    EvalError,
    BriskReferenceError,
    BriskTypeError,
    ArityError,
    ControlFlowError,
    RedeclarationError,
    Diagnostic,
    ErrorSeverity,
)

from .runtime import (
    Interpreter,
    Value,
    run,
    get_default_interpreter,
    reset_default_interpreter,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',

    # Lexer
    'Lexer',
    'tokenize',

    # Parser
    'Parser',
    'parse',

    # AST
    'AstNode',
    'AstVisitor',
    'Program',
    'dump_ast',
    'print_ast',

    # Errors
    'BriskError',
    'BriskSyntaxError',
    'LexerError',
    'ParserError',
    'EvalError',
    'BriskReferenceError',
    'BriskTypeError',
    'ArityError',
    'ControlFlowError',
    'RedeclarationError',
    'Diagnostic',
    'ErrorSeverity',

    # Runtime
    'Interpreter',
    'Value',
    'run',
    'get_default_interpreter',
    'reset_default_interpreter',
]
