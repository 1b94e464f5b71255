"""
Abstract Syntax Tree (AST) node definitions for Brisk.

The parser produces a strict tree of these nodes; the interpreter walks it
read-only. Every node carries the source span it was parsed from so that
runtime errors can point back at the offending code.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Union, Any
from abc import ABC
from .tokens import SourceSpan, Token, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Statement(AstNode):
    """Base class for statements that are not expressions."""
    pass


# =============================================================================
# Literals
# =============================================================================

class Radix(Enum):
    """Which literal form a number was written in."""
    DEC = "dec"
    HEX = "hex"
    OCT = "oct"
    BIN = "bin"
    FLOAT = "float"


@dataclass
class NumberLiteral(Expression):
    """A numeric literal; `value` is already converted from its radix."""
    radix: Radix
    value: Union[int, float]
    token: Token


@dataclass
class StringLiteral(Expression):
    value: str


@dataclass
class TextSpan(Expression):
    """An interpolated string: $"a = {a}". Parts are concatenated in order."""
    parts: List[Expression]


@dataclass
class BoolLiteral(Expression):
    value: bool


@dataclass
class NullLiteral(Expression):
    pass


@dataclass
class ListLiteral(Expression):
    """A list literal (e.g., [1, 2, 3])."""
    elements: List[Expression]


@dataclass
class MapEntry(AstNode):
    """One `key: value` pair; the key is an expression."""
    key: Expression
    value: Expression


@dataclass
class MapLiteral(Expression):
    """A map literal (e.g., map { "a": 1, b: 2 })."""
    entries: List[MapEntry]


# =============================================================================
# Operators
# =============================================================================

@dataclass
class Identifier(Expression):
    """A variable or function name reference."""
    name: str


@dataclass
class BinaryOp(Expression):
    """A binary operation, including assignment and the comma operator."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass
class UnaryOp(Expression):
    """A prefix or postfix unary operation (e.g., -n, !x, i++)."""
    operator: TokenType
    operand: Expression
    is_postfix: bool = False


@dataclass
class CastExpr(Expression):
    """A parenthesized type name applied to an operand: (int)x."""
    type_name: str
    operand: Expression


@dataclass
class TernaryOp(Expression):
    """cond ? then : else"""
    condition: Expression
    then_branch: Expression
    else_branch: Expression


@dataclass
class FunctionCall(Expression):
    callee: Expression
    arguments: List[Expression]


@dataclass
class IndexAccess(Expression):
    """Subscript access (e.g., items[0], m["key"])."""
    target: Expression
    index: Expression


@dataclass
class KeyAccess(Expression):
    """Member access with `.` or the optional chain `?.`."""
    target: Expression
    operator: TokenType  # DOT or OPT_CHAIN
    key: str

    @property
    def is_optional(self) -> bool:
        return self.operator == TokenType.OPT_CHAIN


# =============================================================================
# Statements
# =============================================================================

@dataclass
class Declarator(AstNode):
    """A single `name [= initializer]` inside a declaration."""
    name: str
    initializer: Optional[Expression] = None


@dataclass
class VarDecl(Statement):
    """A variable declaration.

    Syntax:
        int a = 1
        const string name = "x"
        auto a, b = 2, c
    """
    is_const: bool
    declared_type: str
    items: List[Declarator]


class BlockKind(Enum):
    DEFAULT = "default"
    FUNCTION_BODY = "function_body"
    CONTROL_FLOW_BODY = "control_flow_body"


@dataclass
class Block(Statement):
    """A brace-delimited sequence of statements."""
    statements: List[AstNode]
    kind: BlockKind = BlockKind.DEFAULT


@dataclass
class IfCase(AstNode):
    """One `if`/`elif` condition and the statement it guards."""
    condition: Expression
    then_branch: AstNode


@dataclass
class IfStatement(Statement):
    cases: List[IfCase]
    else_branch: Optional[AstNode] = None


@dataclass
class WhileStatement(Statement):
    condition: Expression
    body: AstNode


@dataclass
class ForStatement(Statement):
    """for (init; condition; step) body -- every clause is optional."""
    init: Optional[AstNode]
    condition: Optional[Expression]
    step: Optional[Expression]
    body: AstNode


@dataclass
class Parameter(AstNode):
    """A function parameter: [const] type name."""
    is_const: bool
    type_name: str
    name: str


@dataclass
class FunctionDef(Statement):
    """A function definition.

    Syntax:
        int add(int a, int b) { ret a + b }
        int add(int a, int b) => a + b

    For the arrow form, `body` is the expression itself.
    """
    return_type: str
    name: str
    parameters: List[Parameter]
    body: AstNode


@dataclass
class ReturnStatement(Statement):
    value: Optional[Expression] = None


@dataclass
class ContinueStatement(Statement):
    pass


@dataclass
class BreakStatement(Statement):
    pass


@dataclass
class Program(AstNode):
    """A complete source unit."""
    statements: List[AstNode] = field(default_factory=list)


# =============================================================================
# Visitor Helpers
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that renders the AST structure as indented text."""

    def __init__(self, indent: int = 0, lines: Optional[List[str]] = None):
        self.indent = indent
        self.lines = lines if lines is not None else []

    def _emit(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def generic_visit(self, node: AstNode) -> List[str]:
        self._emit(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name in ("span", "token"):
                continue
            if isinstance(value, AstNode):
                self._emit(f"  {name}:")
                PrintVisitor(self.indent + 2, self.lines).generic_visit(value)
            elif isinstance(value, list):
                self._emit(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        PrintVisitor(self.indent + 2, self.lines).generic_visit(item)
                    else:
                        self._emit(f"    {item!r}")
                self._emit("  ]")
            elif isinstance(value, Enum):
                self._emit(f"  {name}: {value.name}")
            else:
                self._emit(f"  {name}: {value!r}")
        return self.lines


def dump_ast(node: AstNode) -> str:
    """Render an AST node as an indented tree."""
    return "\n".join(PrintVisitor().generic_visit(node))


def print_ast(node: AstNode) -> None:
    """Print an AST node for debugging."""
    print(dump_ast(node))
