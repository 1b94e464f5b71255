"""
Tree-walking interpreter for Brisk.

Statements are executed to a Completion (normal, return, continue or
break); expressions are evaluated to a Value. Which control-flow
statements are legal is carried in a FlowContext passed down explicitly.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO

from .values import (
    Value, NULL, Closure, BoundBuiltin,
    int_val, float_val, bool_val, string_val, list_val, map_val, function_val,
)
from .context import Binding, Scope, FlowContext, TOP_LEVEL
from .completion import Completion, CompletionKind, CONTINUE, BREAK
from .builtins import get_member, global_values
from .operators import (
    BINARY_OPERATORS, UNARY_OPERATORS, convert, increment, decrement,
    index_value, set_index,
)

from ..ast import (
    AstNode, Expression, Program, Block, BlockKind,
    NumberLiteral, Radix, StringLiteral, TextSpan, BoolLiteral, NullLiteral,
    ListLiteral, MapLiteral, Identifier, BinaryOp, UnaryOp, CastExpr, TernaryOp,
    FunctionCall, IndexAccess, KeyAccess,
    VarDecl, FunctionDef, IfStatement, WhileStatement, ForStatement,
    ReturnStatement, ContinueStatement, BreakStatement,
)
from ..tokens import TokenType, COMPOUND_OPERATORS
from .. import types as T
from ..errors import (
    BriskError,
    error_undefined_identifier,
    error_type_mismatch,
    error_arity,
    error_illegal_statement,
    error_redeclaration,
    error_const_assignment,
    error_recursion_depth,
    error_not_callable,
    error_wrong_return_type,
    error_unknown_type,
    error_cannot_read,
    error_cannot_set,
)

logger = logging.getLogger(__name__)

SHORT_CIRCUIT = (TokenType.AND, TokenType.OR, TokenType.NULLISH)


@dataclass
class Reference:
    """An assignable location: a variable, a list/map slot or a map key."""
    get: Callable[[], Value]
    set: Callable[[Value], None]


class Interpreter:
    """
    Tree-walking interpreter for Brisk programs.

    One interpreter owns one global scope, pre-seeded with the builtin
    functions and kept across `run` calls so that later inputs can use
    earlier definitions.

    Usage:
        interp = Interpreter()
        interp.run("int a = 40")
        interp.run("a + 2")        # Value(42, int)
    """

    def __init__(self, stdout: Optional[TextIO] = None):
        """
        Initialize the interpreter.

        Args:
            stdout: Stream for `print`; defaults to sys.stdout at write time
        """
        self.stdout = stdout
        self._source: Optional[str] = None
        self.global_scope = Scope(name="global")
        for name, value in global_values().items():
            self.global_scope.declare(name, Binding(True, T.FUN, value))

    def write(self, text: str) -> None:
        """Write one line of program output."""
        stream = self.stdout if self.stdout is not None else sys.stdout
        stream.write(text + "\n")

    def run(self, source: str, filename: Optional[str] = None) -> Value:
        """
        Tokenize, parse and evaluate `source` in the global scope.

        Returns the value of the last statement. Errors propagate as
        BriskError subclasses with the offending source line attached.
        """
        from ..lexer import tokenize
        from ..parser import parse

        outer_source, self._source = self._source, source
        try:
            tokens = tokenize(source, filename)
            tree = parse(tokens, filename, source)
            return self.visit(tree, self.global_scope)
        except RecursionError:
            # Host stack exhausted by deep recursion or nesting
            raise error_recursion_depth() from None
        except BriskError as exc:
            exc.attach_source(source)
            raise
        finally:
            self._source = outer_source

    def visit(self, node: AstNode, scope: Scope, flow: FlowContext = TOP_LEVEL) -> Value:
        """Evaluate any node against `scope` and return its value."""
        if isinstance(node, Expression):
            return self.evaluate(node, scope, flow)
        return self.execute(node, scope, flow).value

    # =========================================================================
    # Statements
    # =========================================================================

    def execute(self, stmt: AstNode, scope: Scope, flow: FlowContext) -> Completion:
        """Execute a statement, attaching its span to errors raised inside it."""
        try:
            return self._execute_statement(stmt, scope, flow)
        except BriskError as exc:
            raise exc.with_span(stmt.span)

    def _execute_statement(self, stmt: AstNode, scope: Scope, flow: FlowContext) -> Completion:
        if isinstance(stmt, Expression):
            return Completion.normal(self.evaluate(stmt, scope, flow))
        elif isinstance(stmt, VarDecl):
            return self._execute_var_decl(stmt, scope, flow)
        elif isinstance(stmt, FunctionDef):
            return self._execute_function_def(stmt, scope)
        elif isinstance(stmt, Program):
            return self._execute_statements(stmt.statements, scope, flow)
        elif isinstance(stmt, Block):
            return self._execute_block(stmt, scope, flow)
        elif isinstance(stmt, IfStatement):
            return self._execute_if(stmt, scope, flow)
        elif isinstance(stmt, WhileStatement):
            return self._execute_while(stmt, scope, flow)
        elif isinstance(stmt, ForStatement):
            return self._execute_for(stmt, scope, flow)
        elif isinstance(stmt, ReturnStatement):
            return self._execute_return(stmt, scope, flow)
        elif isinstance(stmt, ContinueStatement):
            if not flow.in_loop:
                raise error_illegal_statement("continue", stmt.span)
            return CONTINUE
        elif isinstance(stmt, BreakStatement):
            if not flow.in_loop:
                raise error_illegal_statement("break", stmt.span)
            return BREAK
        else:
            raise RuntimeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_statements(self, statements: List[AstNode], scope: Scope,
                            flow: FlowContext) -> Completion:
        """Run statements in order, stopping at the first abrupt completion."""
        last = NULL
        for stmt in statements:
            completion = self.execute(stmt, scope, flow)
            if completion.is_abrupt:
                return completion
            last = completion.value
        return Completion.normal(last)

    def _execute_block(self, block: Block, scope: Scope, flow: FlowContext) -> Completion:
        """
        Execute a block.

        Function bodies run directly in the call scope; other blocks get a
        fresh child scope that is dropped when the block finishes.
        """
        if block.kind != BlockKind.FUNCTION_BODY:
            scope = scope.child(block.kind.value)
        return self._execute_statements(block.statements, scope, flow)

    def _execute_body(self, body: AstNode, scope: Scope, flow: FlowContext) -> Completion:
        """Execute the statement governed by if/while/for in its own scope."""
        if isinstance(body, Block):
            return self._execute_block(body, scope, flow)
        return self.execute(body, scope.child("body"), flow)

    def _check_type_name(self, name: str, node: AstNode) -> None:
        if not T.is_known_type(name):
            raise error_unknown_type(name, node.span)

    def _execute_var_decl(self, stmt: VarDecl, scope: Scope, flow: FlowContext) -> Completion:
        """Declare each name, checking initializers against the declared type."""
        self._check_type_name(stmt.declared_type, stmt)
        value = NULL
        for item in stmt.items:
            if not scope.can_declare(item.name):
                raise error_redeclaration(item.name, item.span)
            value = NULL
            if item.initializer is not None:
                value = self.evaluate(item.initializer, scope, flow)
            if not T.is_assignable(stmt.declared_type, value.type):
                raise error_type_mismatch(stmt.declared_type, value.type, item.span)
            scope.declare(item.name, Binding(stmt.is_const, stmt.declared_type, value))
        return Completion.normal(value)

    def _execute_function_def(self, stmt: FunctionDef, scope: Scope) -> Completion:
        """Bind a closure over the defining scope as a const `fun`."""
        self._check_type_name(stmt.return_type, stmt)
        for param in stmt.parameters:
            self._check_type_name(param.type_name, param)
        if not scope.can_declare(stmt.name):
            raise error_redeclaration(stmt.name, stmt.span)

        closure = Closure(
            return_type=stmt.return_type,
            name=stmt.name,
            params=stmt.parameters,
            body=stmt.body,
            scope=scope,
            source=self._source,
        )
        value = function_val(closure)
        scope.declare(stmt.name, Binding(True, T.FUN, value))
        return Completion.normal(value)

    def _execute_if(self, stmt: IfStatement, scope: Scope, flow: FlowContext) -> Completion:
        for case in stmt.cases:
            if self.evaluate(case.condition, scope, flow).is_truthy():
                return self._execute_body(case.then_branch, scope, flow)
        if stmt.else_branch is not None:
            return self._execute_body(stmt.else_branch, scope, flow)
        return Completion.normal()

    def _execute_while(self, stmt: WhileStatement, scope: Scope, flow: FlowContext) -> Completion:
        loop_flow = flow.enter_loop()
        while self.evaluate(stmt.condition, scope, flow).is_truthy():
            completion = self._execute_body(stmt.body, scope, loop_flow)
            if completion.kind == CompletionKind.BREAK:
                break
            if completion.kind == CompletionKind.RETURN:
                return completion
        return Completion.normal()

    def _execute_for(self, stmt: ForStatement, scope: Scope, flow: FlowContext) -> Completion:
        """Execute for (init; condition; step); the init clause gets its own scope."""
        loop_scope = scope.child("for")
        loop_flow = flow.enter_loop()

        if stmt.init is not None:
            self.execute(stmt.init, loop_scope, flow)

        while stmt.condition is None or self.evaluate(stmt.condition, loop_scope, flow).is_truthy():
            completion = self._execute_body(stmt.body, loop_scope, loop_flow)
            if completion.kind == CompletionKind.BREAK:
                break
            if completion.kind == CompletionKind.RETURN:
                return completion
            if stmt.step is not None:
                self.evaluate(stmt.step, loop_scope, flow)
        return Completion.normal()

    def _execute_return(self, stmt: ReturnStatement, scope: Scope, flow: FlowContext) -> Completion:
        if not flow.in_function:
            raise error_illegal_statement("return", stmt.span)
        value = NULL
        if stmt.value is not None:
            value = self.evaluate(stmt.value, scope, flow)
        return Completion.returning(value)

    # =========================================================================
    # Expressions
    # =========================================================================

    def evaluate(self, expr: Expression, scope: Scope, flow: FlowContext = TOP_LEVEL) -> Value:
        """Evaluate an expression, attaching its span to errors raised inside it."""
        try:
            return self._evaluate(expr, scope, flow)
        except BriskError as exc:
            raise exc.with_span(expr.span)

    def _evaluate(self, expr: Expression, scope: Scope, flow: FlowContext) -> Value:
        if isinstance(expr, NumberLiteral):
            if expr.radix == Radix.FLOAT:
                return float_val(expr.value)
            return int_val(expr.value)
        elif isinstance(expr, StringLiteral):
            return string_val(expr.value)
        elif isinstance(expr, BoolLiteral):
            return bool_val(expr.value)
        elif isinstance(expr, NullLiteral):
            return NULL
        elif isinstance(expr, TextSpan):
            return string_val("".join(
                self.evaluate(part, scope, flow).to_display() for part in expr.parts
            ))
        elif isinstance(expr, Identifier):
            return self._eval_identifier(expr, scope)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr, scope, flow)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr, scope, flow)
        elif isinstance(expr, CastExpr):
            return convert(self.evaluate(expr.operand, scope, flow), expr.type_name)
        elif isinstance(expr, TernaryOp):
            if self.evaluate(expr.condition, scope, flow).is_truthy():
                return self.evaluate(expr.then_branch, scope, flow)
            return self.evaluate(expr.else_branch, scope, flow)
        elif isinstance(expr, FunctionCall):
            return self._eval_function_call(expr, scope, flow)
        elif isinstance(expr, IndexAccess):
            target = self.evaluate(expr.target, scope, flow)
            index = self.evaluate(expr.index, scope, flow)
            return index_value(target, index)
        elif isinstance(expr, KeyAccess):
            return self._eval_key_access(expr, scope, flow)
        elif isinstance(expr, ListLiteral):
            return list_val([self.evaluate(item, scope, flow) for item in expr.elements])
        elif isinstance(expr, MapLiteral):
            entries = {}
            for entry in expr.entries:
                key = self.evaluate(entry.key, scope, flow).key_string()
                entries[key] = self.evaluate(entry.value, scope, flow)
            return map_val(entries)
        else:
            raise RuntimeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_identifier(self, ident: Identifier, scope: Scope) -> Value:
        """Evaluate an identifier (variable lookup)."""
        binding = scope.get(ident.name)
        if binding is None:
            raise error_undefined_identifier(ident.name, ident.span)
        return binding.value

    def _eval_binary_op(self, op: BinaryOp, scope: Scope, flow: FlowContext) -> Value:
        """Evaluate a binary operation, assignment or comma expression."""
        if op.operator == TokenType.COMMA:
            self.evaluate(op.left, scope, flow)
            return self.evaluate(op.right, scope, flow)

        if op.operator == TokenType.EQ or op.operator in COMPOUND_OPERATORS:
            return self._eval_assignment(op, scope, flow)

        left = self.evaluate(op.left, scope, flow)

        # Short-circuit: the right operand only runs when it can matter
        if op.operator == TokenType.AND and not left.is_truthy():
            return left
        if op.operator == TokenType.OR and left.is_truthy():
            return left
        if op.operator == TokenType.NULLISH and not left.is_null:
            return left

        right = self.evaluate(op.right, scope, flow)
        return BINARY_OPERATORS[op.operator](left, right)

    def _eval_unary_op(self, op: UnaryOp, scope: Scope, flow: FlowContext) -> Value:
        if op.operator in (TokenType.PPLUS, TokenType.MMINUS):
            ref = self._reference(op.operand, scope, flow)
            old = ref.get()
            new = increment(old) if op.operator == TokenType.PPLUS else decrement(old)
            ref.set(new)
            return old if op.is_postfix else new

        operand = self.evaluate(op.operand, scope, flow)
        return UNARY_OPERATORS[op.operator](operand)

    def _eval_assignment(self, op: BinaryOp, scope: Scope, flow: FlowContext) -> Value:
        """
        Evaluate `=` and the compound assignments.

        Compound forms read the current value first, apply the underlying
        operator and write back; `&&=`, `||=` and `??=` skip both the
        right operand and the write when they short-circuit.
        """
        ref = self._reference(op.left, scope, flow)

        if op.operator == TokenType.EQ:
            value = self.evaluate(op.right, scope, flow)
        else:
            base = COMPOUND_OPERATORS[op.operator]
            current = ref.get()
            if base in SHORT_CIRCUIT:
                if base == TokenType.AND and not current.is_truthy():
                    return current
                if base == TokenType.OR and current.is_truthy():
                    return current
                if base == TokenType.NULLISH and not current.is_null:
                    return current
            value = BINARY_OPERATORS[base](current, self.evaluate(op.right, scope, flow))

        ref.set(value)
        return value

    def _reference(self, target: Expression, scope: Scope, flow: FlowContext) -> Reference:
        """Resolve an assignment target once, so compound forms evaluate it once."""
        if isinstance(target, Identifier):
            name = target.name
            binding = scope.get(name)
            if binding is None:
                raise error_undefined_identifier(name, target.span)

            def store(value: Value) -> None:
                if binding.is_const:
                    raise error_const_assignment(name, target.span)
                if not T.is_assignable(binding.declared_type, value.type):
                    raise error_type_mismatch(binding.declared_type, value.type, target.span)
                scope.set(name, value)

            return Reference(lambda: binding.value, store)

        if isinstance(target, IndexAccess):
            container = self.evaluate(target.target, scope, flow)
            index = self.evaluate(target.index, scope, flow)
            return Reference(
                lambda: index_value(container, index),
                lambda value: set_index(container, index, value),
            )

        if isinstance(target, KeyAccess):
            container = self.evaluate(target.target, scope, flow)
            key = target.key

            def store_key(value: Value) -> None:
                if container.type != T.MAP:
                    raise error_cannot_set(key, container.type, target.span)
                container.data.entries[key] = value

            return Reference(lambda: self._read_key(container, key, target), store_key)

        raise RuntimeError(f"Unsupported assignment target: {type(target).__name__}")

    def _eval_key_access(self, access: KeyAccess, scope: Scope, flow: FlowContext) -> Value:
        target = self.evaluate(access.target, scope, flow)
        if access.is_optional and target.is_null:
            return NULL
        return self._read_key(target, access.key, access)

    def _read_key(self, target: Value, key: str, node: KeyAccess) -> Value:
        """
        target.key

        Map entries win over methods; lists, maps and strings yield null for
        unknown members; every other type has no members at all.
        """
        if target.type == T.MAP and key in target.data.entries:
            return target.data.entries[key]
        member = get_member(target, key)
        if member is not None:
            return member
        if target.type in (T.LIST, T.MAP, T.STRING):
            return NULL
        raise error_cannot_read(key, target.type, node.span)

    # =========================================================================
    # Calls
    # =========================================================================

    def _eval_function_call(self, call: FunctionCall, scope: Scope, flow: FlowContext) -> Value:
        callee = self.evaluate(call.callee, scope, flow)
        args = [self.evaluate(arg, scope, flow) for arg in call.arguments]
        return self.call_function(callee, args)

    def call_function(self, callee: Value, args: List[Value]) -> Value:
        """
        Call a `fun` value.

        Checks the argument count and each argument against its parameter
        type, runs the body (or the host implementation) and checks the
        result against the declared return type.
        """
        if callee.type != T.FUN:
            raise error_not_callable(callee.type)

        func = callee.data
        params = func.params
        if len(args) != len(params):
            raise error_arity(len(args) > len(params), len(params), len(args))
        for param, arg in zip(params, args):
            if not T.is_assignable(param.type_name, arg.type):
                raise error_type_mismatch(param.type_name, arg.type)

        logger.debug("call %s(%d args)", func.name, len(args))

        if isinstance(func, BoundBuiltin):
            if func.receiver is not None:
                result = func.function.implementation(self, func.receiver, *args)
            else:
                result = func.function.implementation(self, *args)
        else:
            result = self._call_closure(func, args)

        if not T.is_assignable(func.return_type, result.type):
            raise error_wrong_return_type(result.type, func.return_type)
        return result

    def _call_closure(self, func: Closure, args: List[Value]) -> Value:
        call_scope = func.scope.child(f"call {func.name}")
        body_flow = FlowContext().enter_function()
        try:
            for param, arg in zip(func.params, args):
                if not call_scope.can_declare(param.name):
                    raise error_redeclaration(param.name, param.span)
                call_scope.declare(param.name, Binding(param.is_const, param.type_name, arg))

            if isinstance(func.body, Block):
                completion = self._execute_block(func.body, call_scope, body_flow)
                if completion.kind == CompletionKind.RETURN:
                    return completion.value
                return NULL
            return self.evaluate(func.body, call_scope, body_flow)
        except BriskError as exc:
            # Spans inside the body point into the defining input
            if func.source is not None:
                exc.attach_source(func.source)
            raise


# Default interpreter used by the module-level run()
_default: Optional[Interpreter] = None


def get_default_interpreter() -> Interpreter:
    """Get the process-wide interpreter whose global scope `run` shares."""
    global _default
    if _default is None:
        _default = Interpreter()
    return _default


def reset_default_interpreter() -> None:
    """Drop the shared interpreter; the next `run` starts a fresh global scope."""
    global _default
    _default = None


def run(source: str, filename: Optional[str] = None) -> Value:
    """
    Evaluate Brisk source against the shared global scope.

    This is a convenience wrapper around Interpreter.run():

        from brisk import run

        run("int double(int x) => x * 2")
        run("double(21)")      # Value(42, int)
    """
    return get_default_interpreter().run(source, filename)
