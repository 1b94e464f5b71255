"""
Recursive descent parser for Brisk.

Converts a token stream into an Abstract Syntax Tree (AST).
"""

import logging
from typing import List, Optional
from .tokens import Token, TokenType, SourceSpan, ASSIGN_OPERATORS, is_assign_operator
from .ast import (
    AstNode, Expression,
    # Literals
    Radix, NumberLiteral, StringLiteral, TextSpan, BoolLiteral, NullLiteral,
    ListLiteral, MapEntry, MapLiteral,
    # Operators and access
    Identifier, BinaryOp, UnaryOp, CastExpr, TernaryOp,
    FunctionCall, IndexAccess, KeyAccess,
    # Statements
    Declarator, VarDecl, Block, BlockKind, IfCase, IfStatement,
    WhileStatement, ForStatement, Parameter, FunctionDef,
    ReturnStatement, ContinueStatement, BreakStatement, Program,
)
from .errors import (
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_expression,
    error_invalid_numeric_literal,
    error_unsupported_statement,
    error_invalid_assignment_target,
)
from .types import CAST_TYPES

logger = logging.getLogger(__name__)

# Stop the expression parser at top-level commas (argument lists,
# list/map items and declarator initializers)
SKIP_COMMA_PRECEDENCE = 1
ASSIGN_PRECEDENCE = 3
TERNARY_PRECEDENCE = 4

NUMBER_RADIX = {
    TokenType.DEC: (Radix.DEC, 10),
    TokenType.HEX: (Radix.HEX, 16),
    TokenType.OCT: (Radix.OCT, 8),
    TokenType.BIN: (Radix.BIN, 2),
}

PREFIX_OPERATORS = (
    TokenType.NOT, TokenType.PLUS, TokenType.MINUS, TokenType.BNOT,
    TokenType.PPLUS, TokenType.MMINUS,
)

ASSIGNABLE = (Identifier, IndexAccess, KeyAccess)


class Parser:
    """
    Recursive descent parser for Brisk.

    Usage:
        parser = Parser(tokens)
        program = parser.parse()

    Expressions use precedence climbing over PRECEDENCE:
        Lowest:  ,
                 = += -= ... ??=     (right-associative)
                 ? :
                 ??
                 ||
                 &&
                 |
                 ^
                 &
                 == !=
                 < <= > >=
                 << >>
                 + -
                 * / %
        Highest: **                  (right-associative)
                 unary ! + - ~ ++ -- (type)
    """

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.COMMA: 0,
        TokenType.QMARK: TERNARY_PRECEDENCE,
        TokenType.NULLISH: 5,
        TokenType.OR: 6,
        TokenType.AND: 7,
        TokenType.BOR: 8,
        TokenType.XOR: 9,
        TokenType.BAND: 10,
        TokenType.EE: 11,
        TokenType.NE: 11,
        TokenType.LT: 12,
        TokenType.LTE: 12,
        TokenType.GT: 12,
        TokenType.GTE: 12,
        TokenType.SHL: 13,
        TokenType.SHR: 13,
        TokenType.PLUS: 14,
        TokenType.MINUS: 14,
        TokenType.MUL: 15,
        TokenType.DIV: 15,
        TokenType.REMAINDER: 15,
        TokenType.POW: 16,
    }
    PRECEDENCE.update({op: ASSIGN_PRECEDENCE for op in ASSIGN_OPERATORS})

    # Right-associative operators
    RIGHT_ASSOCIATIVE = {TokenType.POW, *ASSIGN_OPERATORS}

    def __init__(self, tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.source = source  # Original source code for error excerpts
        self.pos = 0
        self._lines: Optional[List[str]] = None

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        return self._current().type in token_types

    def _check_keyword(self, name: str) -> bool:
        return self._current().is_keyword(name)

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _source_line(self, line: int) -> Optional[str]:
        if self.source is None:
            return None
        if self._lines is None:
            self._lines = self.source.splitlines()
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _describe(self, token: Token) -> str:
        if token.type in (TokenType.IDENTIFIER, TokenType.KEYWORD):
            return f"'{token.value}'"
        if token.lexeme:
            return f"'{token.lexeme}'"
        return token.type.name

    def _error(self, expected: str) -> None:
        """Raise a parser error at the current token."""
        token = self._current()
        line = self._source_line(token.span.start.line)
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span, line)
        raise error_unexpected_token(expected, self._describe(token), token.span, line)

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        prev_pos = max(0, self.pos - 1)
        end_token = self.tokens[prev_pos]
        return SourceSpan(start.span.start, end_token.span.end)

    def _skip_semicolons(self) -> None:
        while self._match(TokenType.SEMICOLON):
            pass

    # =========================================================================
    # Program and Statements
    # =========================================================================

    def parse(self) -> AstNode:
        """Parse the whole token stream. Empty input yields a NullLiteral."""
        start = self._current()
        self._skip_semicolons()
        if self._is_at_end():
            return NullLiteral(span=start.span)

        statements = []
        while not self._is_at_end():
            statements.append(self._parse_statement())
            self._skip_semicolons()

        program = Program(span=self._span_from(start), statements=statements)
        logger.debug("parsed %d top-level statements", len(statements))
        return program

    def _is_type_name(self, token: Token) -> bool:
        return (token.type == TokenType.IDENTIFIER
                or token.is_keyword("null") or token.is_keyword("map"))

    def _parse_statement(self) -> AstNode:
        """Dispatch on the leading token(s) of a statement."""
        token = self._current()

        if token.type == TokenType.LBLOCK:
            return self._parse_block(BlockKind.DEFAULT)

        if token.type == TokenType.KEYWORD:
            keyword = token.value
            if keyword == "const":
                return self._parse_var_decl()
            if keyword == "if":
                return self._parse_if()
            if keyword == "while":
                return self._parse_while()
            if keyword == "for":
                return self._parse_for()
            if keyword == "ret":
                return self._parse_return()
            if keyword == "continue":
                self._advance()
                return ContinueStatement(span=token.span)
            if keyword == "break":
                self._advance()
                return BreakStatement(span=token.span)
            if keyword == "jmp":
                raise error_unsupported_statement(
                    keyword, token.span, self._source_line(token.span.start.line)
                )

        if self._is_type_name(token) and self._peek(1).type == TokenType.IDENTIFIER:
            if self._peek(2).type == TokenType.LPAREN:
                return self._parse_function_def()
            return self._parse_var_decl()

        return self.parse_expression()

    def _parse_block(self, kind: BlockKind) -> Block:
        """Parse { statements }."""
        start = self._consume(TokenType.LBLOCK, "'{'")
        statements = []
        self._skip_semicolons()
        while not self._check(TokenType.RBLOCK):
            if self._is_at_end():
                self._error("'}'")
            statements.append(self._parse_statement())
            self._skip_semicolons()
        self._consume(TokenType.RBLOCK, "'}'")
        return Block(span=self._span_from(start), statements=statements, kind=kind)

    def _parse_body(self) -> AstNode:
        """Parse the statement governed by if/elif/else/while/for."""
        if self._check(TokenType.LBLOCK):
            return self._parse_block(BlockKind.CONTROL_FLOW_BODY)
        return self._parse_statement()

    def _parse_type_name(self) -> str:
        token = self._current()
        if self._is_type_name(token):
            self._advance()
            return token.value
        self._error("type name")

    def _parse_var_decl(self) -> VarDecl:
        """Parse [const] type name [= expr] (, name [= expr])*."""
        start = self._current()
        is_const = False
        if self._check_keyword("const"):
            self._advance()
            is_const = True
        declared_type = self._parse_type_name()

        items = [self._parse_declarator()]
        while self._match(TokenType.COMMA):
            items.append(self._parse_declarator())

        return VarDecl(
            span=self._span_from(start),
            is_const=is_const,
            declared_type=declared_type,
            items=items,
        )

    def _parse_declarator(self) -> Declarator:
        name_token = self._consume(TokenType.IDENTIFIER, "identifier")
        initializer = None
        if self._match(TokenType.EQ):
            initializer = self.parse_expression(SKIP_COMMA_PRECEDENCE)
        return Declarator(
            span=self._span_from(name_token),
            name=name_token.value,
            initializer=initializer,
        )

    def _parse_condition(self) -> Expression:
        self._consume(TokenType.LPAREN, "'('")
        condition = self.parse_expression()
        self._consume(TokenType.RPAREN, "')'")
        return condition

    def _parse_if(self) -> IfStatement:
        """Parse if (c) s [elif (c) s]* [else s]."""
        start = self._advance()  # consume 'if'
        cases = []

        case_start = start
        condition = self._parse_condition()
        body = self._parse_body()
        cases.append(IfCase(span=self._span_from(case_start), condition=condition, then_branch=body))

        while True:
            self._skip_semicolons()
            if not self._check_keyword("elif"):
                break
            case_start = self._advance()
            condition = self._parse_condition()
            body = self._parse_body()
            cases.append(IfCase(span=self._span_from(case_start), condition=condition, then_branch=body))

        else_branch = None
        if self._check_keyword("else"):
            self._advance()
            else_branch = self._parse_body()

        return IfStatement(span=self._span_from(start), cases=cases, else_branch=else_branch)

    def _parse_while(self) -> WhileStatement:
        start = self._advance()  # consume 'while'
        condition = self._parse_condition()
        body = self._parse_body()
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_for(self) -> ForStatement:
        """Parse for (init; condition; step) body -- all clauses optional."""
        start = self._advance()  # consume 'for'
        self._consume(TokenType.LPAREN, "'('")

        init = None
        if not self._check(TokenType.SEMICOLON):
            token = self._current()
            if token.is_keyword("const") or (
                    self._is_type_name(token) and self._peek(1).type == TokenType.IDENTIFIER):
                init = self._parse_var_decl()
            else:
                init = self.parse_expression()
        self._consume(TokenType.SEMICOLON, "';'")

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self.parse_expression()
        self._consume(TokenType.SEMICOLON, "';'")

        step = None
        if not self._check(TokenType.RPAREN):
            step = self.parse_expression()
        self._consume(TokenType.RPAREN, "')'")

        body = self._parse_body()
        return ForStatement(
            span=self._span_from(start),
            init=init,
            condition=condition,
            step=step,
            body=body,
        )

    def _parse_return(self) -> ReturnStatement:
        """Parse ret [expr]; the value must start on the same line as `ret`."""
        start = self._advance()  # consume 'ret'
        value = None
        following = self._current()
        if (following.span.start.line == start.span.end.line
                and not self._check_any(TokenType.SEMICOLON, TokenType.RBLOCK, TokenType.EOF)):
            value = self.parse_expression()
        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_function_def(self) -> FunctionDef:
        """Parse type name(params) { ... } or type name(params) => expr."""
        start = self._current()
        return_type = self._parse_type_name()
        name = self._consume(TokenType.IDENTIFIER, "function name").value

        self._consume(TokenType.LPAREN, "'('")
        parameters = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._parse_parameter())
            while self._match(TokenType.COMMA):
                parameters.append(self._parse_parameter())
        self._consume(TokenType.RPAREN, "')'")

        if self._match(TokenType.ARROW):
            body = self.parse_expression()
        elif self._check(TokenType.LBLOCK):
            body = self._parse_block(BlockKind.FUNCTION_BODY)
        else:
            self._error("'{' or '=>'")

        return FunctionDef(
            span=self._span_from(start),
            return_type=return_type,
            name=name,
            parameters=parameters,
            body=body,
        )

    def _parse_parameter(self) -> Parameter:
        """Parse [const] type name."""
        start = self._current()
        is_const = False
        if self._check_keyword("const"):
            self._advance()
            is_const = True
        type_name = self._parse_type_name()
        name = self._consume(TokenType.IDENTIFIER, "parameter name").value
        return Parameter(span=self._span_from(start), is_const=is_const, type_name=type_name, name=name)

    # =========================================================================
    # Expressions
    # =========================================================================

    def parse_expression(self, min_precedence: int = 0) -> Expression:
        """Parse an expression; commas are included unless min_precedence > 0."""
        return self._parse_binary_expr(min_precedence)

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator

            if op_token.type == TokenType.QMARK:
                left = self._parse_ternary(left)
                continue

            if is_assign_operator(op_token.type) and not isinstance(left, ASSIGNABLE):
                raise error_invalid_assignment_target(
                    left.span, self._source_line(left.span.start.line)
                )

            # Right-associative operators use same precedence, others use precedence + 1
            next_precedence = precedence if op_token.type in self.RIGHT_ASSOCIATIVE else precedence + 1
            right = self._parse_binary_expr(next_precedence)

            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op_token.type,
                right=right
            )

        return left

    def _parse_ternary(self, condition: Expression) -> TernaryOp:
        """Parse the `then : else` tail after `?` has been consumed."""
        then_branch = self._parse_binary_expr(ASSIGN_PRECEDENCE)
        self._consume(TokenType.COLON, "':'")
        else_branch = self._parse_binary_expr(ASSIGN_PRECEDENCE)
        return TernaryOp(
            span=SourceSpan(condition.span.start, else_branch.span.end),
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
        )

    def _is_cast(self) -> bool:
        """`( typename )` in operand position starts a cast."""
        return (self._check(TokenType.LPAREN)
                and self._peek(1).type == TokenType.IDENTIFIER
                and self._peek(1).value in CAST_TYPES
                and self._peek(2).type == TokenType.RPAREN)

    def _parse_unary_expr(self) -> Expression:
        """Parse prefix operators and casts (precedence 17)."""
        if self._check_any(*PREFIX_OPERATORS):
            op = self._advance()
            operand = self._parse_unary_expr()
            if op.type in (TokenType.PPLUS, TokenType.MMINUS) and not isinstance(operand, ASSIGNABLE):
                raise error_invalid_assignment_target(
                    operand.span, self._source_line(operand.span.start.line)
                )
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand
            )

        if self._is_cast():
            start = self._advance()  # consume '('
            type_name = self._advance().value
            self._advance()  # consume ')'
            operand = self._parse_unary_expr()
            return CastExpr(
                span=SourceSpan(start.span.start, operand.span.end),
                type_name=type_name,
                operand=operand,
            )

        return self._parse_postfix_expr()

    def _parse_postfix_expr(self) -> Expression:
        """Parse calls, indexing and member access chains, then x++ / x--."""
        expr = self._parse_primary_expr()

        while True:
            if self._check(TokenType.LPAREN):
                expr = self._parse_call(expr)
            elif self._match(TokenType.LSQUARE):
                index = self.parse_expression()
                self._consume(TokenType.RSQUARE, "']'")
                expr = IndexAccess(
                    span=SourceSpan(expr.span.start, self._peek(-1).span.end),
                    target=expr,
                    index=index,
                )
            elif self._check_any(TokenType.DOT, TokenType.OPT_CHAIN):
                op = self._advance()
                key = self._consume(TokenType.IDENTIFIER, "property name")
                expr = KeyAccess(
                    span=SourceSpan(expr.span.start, key.span.end),
                    target=expr,
                    operator=op.type,
                    key=key.value,
                )
            else:
                break

        if self._check_any(TokenType.PPLUS, TokenType.MMINUS):
            if not isinstance(expr, ASSIGNABLE):
                raise error_invalid_assignment_target(
                    expr.span, self._source_line(expr.span.start.line)
                )
            op = self._advance()
            expr = UnaryOp(
                span=SourceSpan(expr.span.start, op.span.end),
                operator=op.type,
                operand=expr,
                is_postfix=True,
            )

        return expr

    def _parse_call(self, callee: Expression) -> FunctionCall:
        self._consume(TokenType.LPAREN, "'('")
        args = self._parse_items(TokenType.RPAREN, "')'")
        return FunctionCall(
            span=SourceSpan(callee.span.start, self._peek(-1).span.end),
            callee=callee,
            arguments=args,
        )

    def _parse_items(self, closing: TokenType, expected: str) -> List[Expression]:
        """Parse comma separated expressions up to and including `closing`."""
        items = []
        if self._match(closing):
            return items
        items.append(self.parse_expression(SKIP_COMMA_PRECEDENCE))
        while self._match(TokenType.COMMA):
            if self._check(closing):
                break
            items.append(self.parse_expression(SKIP_COMMA_PRECEDENCE))
        self._consume(closing, expected)
        return items

    def _parse_number(self, token: Token) -> NumberLiteral:
        """Convert a numeric token's digit run, stripping `_` separators."""
        digits = token.value.replace('_', '')
        try:
            if token.type == TokenType.FLOAT:
                return NumberLiteral(span=token.span, radix=Radix.FLOAT,
                                     value=float(digits), token=token)
            radix, base = NUMBER_RADIX[token.type]
            return NumberLiteral(span=token.span, radix=radix,
                                 value=int(digits, base), token=token)
        except ValueError:
            name = Radix.FLOAT.value if token.type == TokenType.FLOAT else NUMBER_RADIX[token.type][0].value
            raise error_invalid_numeric_literal(
                name, token.lexeme, token.span, self._source_line(token.span.start.line)
            )

    def _parse_primary_expr(self) -> Expression:
        """Parse literals, names, parenthesized expressions and containers."""
        token = self._current()

        if token.type in NUMBER_RADIX or token.type == TokenType.FLOAT:
            self._advance()
            return self._parse_number(token)

        if token.type == TokenType.STRING:
            self._advance()
            return StringLiteral(span=token.span, value=token.value)

        if token.type == TokenType.LSPAN:
            return self._parse_text_span()

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.KEYWORD:
            if token.value in ("true", "false"):
                self._advance()
                return BoolLiteral(span=token.span, value=token.value == "true")
            if token.value == "null":
                self._advance()
                return NullLiteral(span=token.span)
            if token.value == "map":
                return self._parse_map_literal()

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self.parse_expression()
            self._consume(TokenType.RPAREN, "')'")
            return expr

        if token.type == TokenType.LSQUARE:
            self._advance()
            elements = self._parse_items(TokenType.RSQUARE, "']'")
            return ListLiteral(span=self._span_from(token), elements=elements)

        if token.type == TokenType.EOF:
            raise error_unexpected_eof("expression", token.span, self._source_line(token.span.start.line))
        raise error_invalid_expression(
            self._describe(token), token.span, self._source_line(token.span.start.line)
        )

    def _parse_text_span(self) -> TextSpan:
        """Parse LSPAN (STRING | '{' expr '}')* RSPAN."""
        start = self._advance()  # consume LSPAN
        parts: List[Expression] = []
        while not self._check(TokenType.RSPAN):
            token = self._current()
            if token.type == TokenType.STRING:
                self._advance()
                parts.append(StringLiteral(span=token.span, value=token.value))
            elif self._match(TokenType.LBLOCK):
                parts.append(self.parse_expression())
                self._consume(TokenType.RBLOCK, "'}'")
            else:
                self._error("text or '{'")
        self._advance()  # consume RSPAN
        return TextSpan(span=self._span_from(start), parts=parts)

    def _parse_map_literal(self) -> MapLiteral:
        """Parse map { key: value, ... }; keys are expressions."""
        start = self._advance()  # consume 'map'
        self._consume(TokenType.LBLOCK, "'{'")
        entries = []
        while not self._check(TokenType.RBLOCK):
            key = self.parse_expression(SKIP_COMMA_PRECEDENCE)
            self._consume(TokenType.COLON, "':'")
            value = self.parse_expression(SKIP_COMMA_PRECEDENCE)
            entries.append(MapEntry(span=SourceSpan(key.span.start, value.span.end), key=key, value=value))
            if not self._check(TokenType.RBLOCK):
                self._consume(TokenType.COMMA, "',' or '}'")
        self._consume(TokenType.RBLOCK, "'}'")
        return MapLiteral(span=self._span_from(start), entries=entries)


def parse(tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None) -> AstNode:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: List of tokens from the lexer
        filename: Optional filename for error messages
        source: Optional original source code for error excerpts

    Returns:
        Parsed Program AST, or a NullLiteral for empty input

    Raises:
        ParserError: If parsing fails
    """
    parser = Parser(tokens, filename, source)
    return parser.parse()
