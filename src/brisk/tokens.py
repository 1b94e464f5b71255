"""
Token types for the Brisk lexer.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the Brisk lexer."""

    # --- Numeric literals ---
    DEC = auto()                # 255, 255d, 0d255
    HEX = auto()                # 0xff, 0hff, 0ffh
    OCT = auto()                # 0o377, 0q377, 377o, 377q
    BIN = auto()                # 0b1010, 0y1010, 1010b, 1010y
    FLOAT = auto()              # 3.14, .5

    # --- Other literals ---
    STRING = auto()             # "hello", 'hello'
    IDENTIFIER = auto()         # user-defined names
    KEYWORD = auto()            # if, while, ret, ...

    # --- Text spans ---
    LSPAN = auto()              # $" opening an interpolated string
    RSPAN = auto()              # closing quote of an interpolated string

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    MUL = auto()                # *
    DIV = auto()                # /
    REMAINDER = auto()          # %
    POW = auto()                # **

    # --- Bitwise operators ---
    BNOT = auto()               # ~
    BAND = auto()               # &
    BOR = auto()                # |
    XOR = auto()                # ^
    SHL = auto()                # <<
    SHR = auto()                # >>

    # --- Logical operators ---
    NOT = auto()                # !
    AND = auto()                # &&
    OR = auto()                 # ||
    NULLISH = auto()            # ??

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LTE = auto()                # <=
    GTE = auto()                # >=
    EE = auto()                 # ==
    NE = auto()                 # !=

    # --- Assignment operators ---
    EQ = auto()                 # =
    PLUS_EQ = auto()            # +=
    MINUS_EQ = auto()           # -=
    MUL_EQ = auto()             # *=
    DIV_EQ = auto()             # /=
    REMAINDER_EQ = auto()       # %=
    POW_EQ = auto()             # **=
    SHL_EQ = auto()             # <<=
    SHR_EQ = auto()             # >>=
    BAND_EQ = auto()            # &=
    BOR_EQ = auto()             # |=
    XOR_EQ = auto()             # ^=
    AND_EQ = auto()             # &&=
    OR_EQ = auto()              # ||=
    NULLISH_EQ = auto()         # ??=

    # --- Increment / decrement ---
    PPLUS = auto()              # ++
    MMINUS = auto()             # --

    # --- Punctuation ---
    QMARK = auto()              # ?
    COLON = auto()              # :
    SEMICOLON = auto()          # ;
    COMMA = auto()              # ,
    DOT = auto()                # .
    OPT_CHAIN = auto()          # ?.
    ARROW = auto()              # =>

    # --- Delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LSQUARE = auto()            # [
    RSQUARE = auto()            # ]
    LBLOCK = auto()             # {
    RBLOCK = auto()             # }

    # --- Special ---
    EOF = auto()                # end of file


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


NUMBER_TOKENS = frozenset({
    TokenType.DEC, TokenType.HEX, TokenType.OCT, TokenType.BIN, TokenType.FLOAT,
})


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # Digit run, unescaped text or name
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def is_keyword(self, name: str) -> bool:
        return self.type == TokenType.KEYWORD and self.value == name

    def __str__(self) -> str:
        if self.type in NUMBER_TOKENS or self.type in (
                TokenType.STRING, TokenType.IDENTIFIER, TokenType.KEYWORD):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


KEYWORDS: frozenset = frozenset({
    "true",
    "false",
    "null",
    "const",
    "ret",
    "if",
    "elif",
    "else",
    "while",
    "for",
    "continue",
    "break",
    "jmp",      # reserved, rejected by the parser
    "map",
})


# Longest operators first so the lexer can match greedily
OPERATORS: dict[str, TokenType] = {
    "**=": TokenType.POW_EQ,
    "<<=": TokenType.SHL_EQ,
    ">>=": TokenType.SHR_EQ,
    "&&=": TokenType.AND_EQ,
    "||=": TokenType.OR_EQ,
    "??=": TokenType.NULLISH_EQ,

    "**": TokenType.POW,
    "<<": TokenType.SHL,
    ">>": TokenType.SHR,
    "&&": TokenType.AND,
    "||": TokenType.OR,
    "??": TokenType.NULLISH,
    "?.": TokenType.OPT_CHAIN,
    "++": TokenType.PPLUS,
    "--": TokenType.MMINUS,
    "+=": TokenType.PLUS_EQ,
    "-=": TokenType.MINUS_EQ,
    "*=": TokenType.MUL_EQ,
    "/=": TokenType.DIV_EQ,
    "%=": TokenType.REMAINDER_EQ,
    "&=": TokenType.BAND_EQ,
    "|=": TokenType.BOR_EQ,
    "^=": TokenType.XOR_EQ,
    "<=": TokenType.LTE,
    ">=": TokenType.GTE,
    "==": TokenType.EE,
    "!=": TokenType.NE,
    "=>": TokenType.ARROW,

    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MUL,
    "/": TokenType.DIV,
    "%": TokenType.REMAINDER,
    "~": TokenType.BNOT,
    "&": TokenType.BAND,
    "|": TokenType.BOR,
    "^": TokenType.XOR,
    "!": TokenType.NOT,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "=": TokenType.EQ,
    "?": TokenType.QMARK,
    ":": TokenType.COLON,
    ";": TokenType.SEMICOLON,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LSQUARE,
    "]": TokenType.RSQUARE,
    "{": TokenType.LBLOCK,
    "}": TokenType.RBLOCK,
}


# Compound assignment -> underlying binary operator
COMPOUND_OPERATORS: dict[TokenType, TokenType] = {
    TokenType.PLUS_EQ: TokenType.PLUS,
    TokenType.MINUS_EQ: TokenType.MINUS,
    TokenType.MUL_EQ: TokenType.MUL,
    TokenType.DIV_EQ: TokenType.DIV,
    TokenType.REMAINDER_EQ: TokenType.REMAINDER,
    TokenType.POW_EQ: TokenType.POW,
    TokenType.SHL_EQ: TokenType.SHL,
    TokenType.SHR_EQ: TokenType.SHR,
    TokenType.BAND_EQ: TokenType.BAND,
    TokenType.BOR_EQ: TokenType.BOR,
    TokenType.XOR_EQ: TokenType.XOR,
    TokenType.AND_EQ: TokenType.AND,
    TokenType.OR_EQ: TokenType.OR,
    TokenType.NULLISH_EQ: TokenType.NULLISH,
}

ASSIGN_OPERATORS = frozenset({TokenType.EQ, *COMPOUND_OPERATORS})


def is_assign_operator(token_type: TokenType) -> bool:
    """Check if a token type is `=` or one of the compound assignments."""
    return token_type in ASSIGN_OPERATORS


def operator_symbol(token_type: TokenType) -> str:
    """Source spelling of an operator token, used in messages."""
    for symbol, kind in OPERATORS.items():
        if kind == token_type:
            return symbol
    return token_type.name.lower()
