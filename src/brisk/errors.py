"""
Brisk exceptions and error handling.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors (reference, type, arity, control flow, declarations)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message with an optional source range."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity = ErrorSeverity.ERROR
    span: Optional[SourceSpan] = None
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, kind: str = "error", show_source: bool = True) -> str:
        """Format the diagnostic as a message line plus a caret excerpt."""
        parts = []

        # Header: location: Kind[code]: message
        if self.span is not None:
            parts.append(f"{self.span.start}: {kind}[{self.code}]: {self.message}")
        else:
            parts.append(f"{kind}[{self.code}]: {self.message}")

        if show_source and self.span is not None and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column
            else:
                end_col = len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        data = {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": None,
            "hints": self.hints,
        }
        if self.span is not None:
            data["range"] = {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            }
        return data


class BriskError(Exception):
    """Base exception for all Brisk errors."""

    kind = "Error"

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def span(self) -> Optional[SourceSpan]:
        return self.diagnostic.span

    def with_span(self, span: Optional[SourceSpan]) -> "BriskError":
        """Attach a source range if the error does not carry one yet."""
        if self.diagnostic.span is None and span is not None:
            self.diagnostic.span = span
        return self

    def attach_source(self, source: str) -> "BriskError":
        """Fill in the offending source line from the full program text."""
        span = self.diagnostic.span
        if span is not None and self.diagnostic.source_line is None:
            lines = source.splitlines()
            if 1 <= span.start.line <= len(lines):
                self.diagnostic.source_line = lines[span.start.line - 1]
        return self

    def __str__(self) -> str:
        return self.diagnostic.format(self.kind)


class BriskSyntaxError(BriskError):
    """Malformed token stream or grammar violation."""
    kind = "SyntaxError"


class LexerError(BriskSyntaxError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(BriskSyntaxError):
    """Error during parsing (E1xx)."""
    pass


class EvalError(BriskError):
    """Error raised while evaluating a program (E4xx)."""
    kind = "RuntimeError"


class BriskReferenceError(EvalError):
    """Access or assignment of an undeclared name."""
    kind = "ReferenceError"


class BriskTypeError(EvalError):
    """Type mismatch or unsupported operand combination."""
    kind = "TypeError"


class ArityError(EvalError):
    """Function called with the wrong number of arguments."""
    kind = "ArityError"


class ControlFlowError(EvalError):
    """`ret`, `continue` or `break` outside a valid enclosing construct."""
    kind = "ControlFlowError"


class RedeclarationError(EvalError):
    """Duplicate declaration in one scope, or assignment to a constant."""
    kind = "RedeclarationError"


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    diag = Diagnostic(
        code="E001",
        message=f"unexpected character '{char}'",
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        message="unterminated string literal",
        span=span,
        source_line=source_line,
        hints=["string literals must be closed with matching quotes"],
    )
    return LexerError(diag)


def error_unterminated_text_span(span: SourceSpan, source_line: str = None) -> LexerError:
    """E003: Unterminated text span or interpolation hole."""
    diag = Diagnostic(
        code="E003",
        message="unterminated text span",
        span=span,
        source_line=source_line,
        hints=['text spans look like $"total: {a + b}"'],
    )
    return LexerError(diag)


def error_invalid_number_literal(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E006: Invalid number literal."""
    diag = Diagnostic(
        code="E006",
        message=f"invalid number literal '{text}'",
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_dangling_dollar(span: SourceSpan, source_line: str = None) -> LexerError:
    """E009: '$' not followed by a quote."""
    diag = Diagnostic(
        code="E009",
        message="expected a quote after '$'",
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        message=f"expected {expected}, found {found}",
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_unexpected_eof(expected: str, span: SourceSpan,
                         source_line: str = None) -> ParserError:
    """E102: Unexpected end of file."""
    diag = Diagnostic(
        code="E102",
        message=f"unexpected end of file, expected {expected}",
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_invalid_expression(found: str, span: SourceSpan,
                             source_line: str = None) -> ParserError:
    """E103: Invalid expression."""
    diag = Diagnostic(
        code="E103",
        message=f"invalid expression, found {found}",
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_invalid_numeric_literal(radix: str, text: str, span: SourceSpan,
                                  source_line: str = None) -> ParserError:
    """E104: Digits do not fit the literal's radix."""
    diag = Diagnostic(
        code="E104",
        message=f"invalid {radix} literal '{text}'",
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_unsupported_statement(keyword: str, span: SourceSpan,
                                source_line: str = None) -> ParserError:
    """E105: Reserved keyword with no statement form."""
    diag = Diagnostic(
        code="E105",
        message=f"'{keyword}' statements are not supported",
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_invalid_assignment_target(span: SourceSpan,
                                    source_line: str = None) -> ParserError:
    """E106: Left side of an assignment is not assignable."""
    diag = Diagnostic(
        code="E106",
        message="invalid assignment target",
        span=span,
        source_line=source_line,
        hints=["only names, list indices and map keys can be assigned"],
    )
    return ParserError(diag)


# --- Runtime error codes ---

def error_undefined_identifier(name: str, span: SourceSpan = None) -> BriskReferenceError:
    """E401: Undefined identifier."""
    return BriskReferenceError(Diagnostic(
        code="E401",
        message=f"'{name}' is not defined",
        span=span,
    ))


def error_type_mismatch(expected: str, found: str, span: SourceSpan = None) -> BriskTypeError:
    """E402: Value does not match the declared type."""
    return BriskTypeError(Diagnostic(
        code="E402",
        message=f"type '{found}' is not assignable to type '{expected}'",
        span=span,
    ))


def error_arity(too_many: bool, expected: int, found: int, span: SourceSpan = None) -> ArityError:
    """E403: Wrong argument count."""
    which = "many" if too_many else "few"
    return ArityError(Diagnostic(
        code="E403",
        message=f"too {which} parameters in the function call "
                f"(expected {expected}, got {found})",
        span=span,
    ))


def error_illegal_statement(keyword: str, span: SourceSpan = None) -> ControlFlowError:
    """E404: ret/continue/break outside a function or loop."""
    return ControlFlowError(Diagnostic(
        code="E404",
        message=f"illegal {keyword} statement",
        span=span,
    ))


def error_redeclaration(name: str, span: SourceSpan = None) -> RedeclarationError:
    """E405: Name declared twice in one scope."""
    return RedeclarationError(Diagnostic(
        code="E405",
        message=f"identifier '{name}' has already been declared",
        span=span,
    ))


def error_const_assignment(name: str, span: SourceSpan = None) -> RedeclarationError:
    """E406: Assignment to a const binding."""
    return RedeclarationError(Diagnostic(
        code="E406",
        message=f"assignment to constant variable '{name}'",
        span=span,
    ))


def error_recursion_depth(span: SourceSpan = None) -> EvalError:
    """E407: Host stack exhausted."""
    return EvalError(Diagnostic(
        code="E407",
        message="maximum recursion depth exceeded",
        span=span,
    ))


def error_unsupported_operands(op: str, left: str, right: str,
                               span: SourceSpan = None) -> BriskTypeError:
    """E408: Binary operator applied to an unsupported pair of types."""
    return BriskTypeError(Diagnostic(
        code="E408",
        message=f"unsupported operand type(s) for {op}: '{left}' and '{right}'",
        span=span,
    ))


def error_bad_unary_operand(op: str, operand: str, span: SourceSpan = None) -> BriskTypeError:
    """E408: Unary operator applied to an unsupported type."""
    return BriskTypeError(Diagnostic(
        code="E408",
        message=f"bad operand type for unary {op}: '{operand}'",
        span=span,
    ))


def error_not_callable(type_name: str, span: SourceSpan = None) -> BriskTypeError:
    """E409: Call on a non-function value."""
    return BriskTypeError(Diagnostic(
        code="E409",
        message=f"'{type_name}' is not a function",
        span=span,
    ))


def error_division_by_zero(span: SourceSpan = None) -> EvalError:
    """E410: Integer or float division by zero."""
    return EvalError(Diagnostic(
        code="E410",
        message="division by zero",
        span=span,
    ))


def error_wrong_return_type(found: str, expected: str, span: SourceSpan = None) -> BriskTypeError:
    """E411: Function result does not match its return type."""
    return BriskTypeError(Diagnostic(
        code="E411",
        message=f"wrong return type: there is no conversion from '{found}' to '{expected}'",
        span=span,
    ))


def error_unknown_type(name: str, span: SourceSpan = None) -> BriskTypeError:
    """E412: Declared type name is not a Brisk type."""
    return BriskTypeError(Diagnostic(
        code="E412",
        message=f"unknown type '{name}'",
        span=span,
        hints=["types are int, float, bool, string, null, list, map, fun and auto"],
    ))


def error_cannot_read(key: str, type_name: str, span: SourceSpan = None) -> BriskTypeError:
    """E413: Key or index access on a value without members."""
    return BriskTypeError(Diagnostic(
        code="E413",
        message=f"cannot read property '{key}' of {type_name}",
        span=span,
    ))


def error_index_out_of_range(index: str, size: int, span: SourceSpan = None) -> EvalError:
    """E414: List assignment outside the current bounds."""
    return EvalError(Diagnostic(
        code="E414",
        message=f"list index {index} out of range for size {size}",
        span=span,
    ))


def error_invalid_conversion(found: str, target: str, span: SourceSpan = None) -> BriskTypeError:
    """E415: Cast with no conversion between the types."""
    return BriskTypeError(Diagnostic(
        code="E415",
        message=f"there is no conversion from '{found}' to '{target}'",
        span=span,
    ))


def error_negative_shift(span: SourceSpan = None) -> EvalError:
    """E416: Shift by a negative count."""
    return EvalError(Diagnostic(
        code="E416",
        message="negative shift count",
        span=span,
    ))


def error_cannot_set(key: str, type_name: str, span: SourceSpan = None) -> BriskTypeError:
    """E417: Index assignment on a value without settable members."""
    return BriskTypeError(Diagnostic(
        code="E417",
        message=f"cannot set property '{key}' of {type_name}",
        span=span,
    ))
