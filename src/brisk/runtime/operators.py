"""
Operator semantics for Brisk values.

Each operator is a plain function over `Value` operands that checks the
pair of type tags itself and raises a BriskTypeError naming the operator
and the operand types for any unsupported combination. The interpreter
looks operators up in BINARY_OPERATORS / UNARY_OPERATORS and never
inspects operand types on its own.

Arithmetic rules:
    int  op int   -> int (wrapped to 64 bits)
    int  op float -> float
    string + string -> string
    int / int truncates toward zero, int % int takes the dividend's sign
"""

import math
from typing import Callable, Dict

from ..tokens import TokenType, operator_symbol
from .. import types as T
from ..errors import (
    error_unsupported_operands,
    error_bad_unary_operand,
    error_division_by_zero,
    error_negative_shift,
    error_invalid_conversion,
    error_cannot_read,
    error_cannot_set,
    error_index_out_of_range,
)
from .values import (
    Value, NULL, int_val, float_val, bool_val, string_val, wrap_int,
)

BinaryFn = Callable[[Value, Value], Value]
UnaryFn = Callable[[Value], Value]

INT64_MOD = 1 << 64


def _unsupported(op: TokenType, left: Value, right: Value):
    return error_unsupported_operands(operator_symbol(op), left.type, right.type)


def _numeric_pair(left: Value, right: Value) -> bool:
    return T.is_numeric(left.type) and T.is_numeric(right.type)


def _both_int(left: Value, right: Value) -> bool:
    return left.type == T.INT and right.type == T.INT


# =============================================================================
# Arithmetic
# =============================================================================

def add(left: Value, right: Value) -> Value:
    if _both_int(left, right):
        return int_val(left.data + right.data)
    if _numeric_pair(left, right):
        return float_val(left.data + right.data)
    if left.type == T.STRING and right.type == T.STRING:
        return string_val(left.data + right.data)
    raise _unsupported(TokenType.PLUS, left, right)


def sub(left: Value, right: Value) -> Value:
    if _both_int(left, right):
        return int_val(left.data - right.data)
    if _numeric_pair(left, right):
        return float_val(left.data - right.data)
    raise _unsupported(TokenType.MINUS, left, right)


def mul(left: Value, right: Value) -> Value:
    if _both_int(left, right):
        return int_val(left.data * right.data)
    if _numeric_pair(left, right):
        return float_val(left.data * right.data)
    raise _unsupported(TokenType.MUL, left, right)


def div(left: Value, right: Value) -> Value:
    if not _numeric_pair(left, right):
        raise _unsupported(TokenType.DIV, left, right)
    if right.data == 0:
        raise error_division_by_zero()
    if _both_int(left, right):
        quotient = abs(left.data) // abs(right.data)
        if (left.data < 0) != (right.data < 0):
            quotient = -quotient
        return int_val(quotient)
    return float_val(left.data / right.data)


def remainder(left: Value, right: Value) -> Value:
    if not _numeric_pair(left, right):
        raise _unsupported(TokenType.REMAINDER, left, right)
    if right.data == 0:
        raise error_division_by_zero()
    if _both_int(left, right):
        result = abs(left.data) % abs(right.data)
        return int_val(-result if left.data < 0 else result)
    return float_val(math.fmod(left.data, right.data))


def power(left: Value, right: Value) -> Value:
    if not _numeric_pair(left, right):
        raise _unsupported(TokenType.POW, left, right)
    if _both_int(left, right) and right.data >= 0:
        return int_val(pow(left.data, right.data, INT64_MOD))
    if left.data == 0 and right.data < 0:
        raise error_division_by_zero()
    try:
        return float_val(math.pow(left.data, right.data))
    except OverflowError:
        return float_val(math.inf)
    except ValueError:
        # negative base with a fractional exponent
        return float_val(math.nan)


# =============================================================================
# Bitwise
# =============================================================================

def _bits(op: TokenType, left: Value, right: Value) -> tuple:
    if not _numeric_pair(left, right):
        raise _unsupported(op, left, right)
    if not (math.isfinite(left.data) and math.isfinite(right.data)):
        raise _unsupported(op, left, right)
    return int(left.data), int(right.data)


def band(left: Value, right: Value) -> Value:
    a, b = _bits(TokenType.BAND, left, right)
    return int_val(a & b)


def bor(left: Value, right: Value) -> Value:
    a, b = _bits(TokenType.BOR, left, right)
    return int_val(a | b)


def xor(left: Value, right: Value) -> Value:
    a, b = _bits(TokenType.XOR, left, right)
    return int_val(a ^ b)


def shl(left: Value, right: Value) -> Value:
    a, b = _bits(TokenType.SHL, left, right)
    if b < 0:
        raise error_negative_shift()
    if b >= 64:
        return int_val(0)
    return int_val(a << b)


def shr(left: Value, right: Value) -> Value:
    a, b = _bits(TokenType.SHR, left, right)
    if b < 0:
        raise error_negative_shift()
    return int_val(a >> b)


# =============================================================================
# Logical
# =============================================================================

def logical_and(left: Value, right: Value) -> Value:
    """Returns `right` if `left` is truthy, else `left` (no coercion)."""
    return right if left.is_truthy() else left


def logical_or(left: Value, right: Value) -> Value:
    """Returns `left` if truthy, else `right` (no coercion)."""
    return left if left.is_truthy() else right


def nullish(left: Value, right: Value) -> Value:
    return right if left.type == T.NULL else left


# =============================================================================
# Comparison
# =============================================================================

def _compare(op: TokenType, left: Value, right: Value, test: Callable[[float, float], bool]) -> Value:
    if not _numeric_pair(left, right):
        raise _unsupported(op, left, right)
    return bool_val(test(left.data, right.data))


def lt(left: Value, right: Value) -> Value:
    return _compare(TokenType.LT, left, right, lambda a, b: a < b)


def gt(left: Value, right: Value) -> Value:
    return _compare(TokenType.GT, left, right, lambda a, b: a > b)


def lte(left: Value, right: Value) -> Value:
    return _compare(TokenType.LTE, left, right, lambda a, b: a <= b)


def gte(left: Value, right: Value) -> Value:
    return _compare(TokenType.GTE, left, right, lambda a, b: a >= b)


def values_equal(left: Value, right: Value) -> bool:
    """
    Same-variant equality; int and float compare by value.

    Lists, maps and functions compare by identity.
    """
    if _numeric_pair(left, right):
        return left.data == right.data
    if left.type != right.type:
        return False
    if left.type in (T.LIST, T.MAP, T.FUN):
        return left.data is right.data
    return left.data == right.data


def ee(left: Value, right: Value) -> Value:
    return bool_val(values_equal(left, right))


def ne(left: Value, right: Value) -> Value:
    return bool_val(not values_equal(left, right))


# =============================================================================
# Unary
# =============================================================================

def logical_not(operand: Value) -> Value:
    return bool_val(not operand.is_truthy())


def negate(operand: Value) -> Value:
    if operand.type == T.INT:
        return int_val(-operand.data)
    if operand.type == T.FLOAT:
        return float_val(-operand.data)
    raise error_bad_unary_operand("-", operand.type)


def unary_plus(operand: Value) -> Value:
    if T.is_numeric(operand.type):
        return operand
    raise error_bad_unary_operand("+", operand.type)


def bnot(operand: Value) -> Value:
    if operand.type == T.INT or (operand.type == T.FLOAT and math.isfinite(operand.data)):
        return int_val(~int(operand.data))
    raise error_bad_unary_operand("~", operand.type)


BINARY_OPERATORS: Dict[TokenType, BinaryFn] = {
    TokenType.PLUS: add,
    TokenType.MINUS: sub,
    TokenType.MUL: mul,
    TokenType.DIV: div,
    TokenType.REMAINDER: remainder,
    TokenType.POW: power,
    TokenType.BAND: band,
    TokenType.BOR: bor,
    TokenType.XOR: xor,
    TokenType.SHL: shl,
    TokenType.SHR: shr,
    TokenType.AND: logical_and,
    TokenType.OR: logical_or,
    TokenType.NULLISH: nullish,
    TokenType.LT: lt,
    TokenType.GT: gt,
    TokenType.LTE: lte,
    TokenType.GTE: gte,
    TokenType.EE: ee,
    TokenType.NE: ne,
}

UNARY_OPERATORS: Dict[TokenType, UnaryFn] = {
    TokenType.NOT: logical_not,
    TokenType.MINUS: negate,
    TokenType.PLUS: unary_plus,
    TokenType.BNOT: bnot,
}


def increment(operand: Value) -> Value:
    """Value of `x + 1` for ++."""
    if not T.is_numeric(operand.type):
        raise error_bad_unary_operand("++", operand.type)
    return add(operand, int_val(1))


def decrement(operand: Value) -> Value:
    if not T.is_numeric(operand.type):
        raise error_bad_unary_operand("--", operand.type)
    return sub(operand, int_val(1))


# =============================================================================
# Conversions
# =============================================================================

def _to_int(value: Value) -> Value:
    if value.type == T.INT:
        return value
    if value.type == T.BOOL:
        return int_val(1 if value.data else 0)
    if value.type == T.FLOAT and math.isfinite(value.data):
        return int_val(math.trunc(value.data))
    if value.type == T.STRING:
        text = value.data.strip()
        try:
            return int_val(int(text, 10))
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            number = math.nan
        if math.isfinite(number):
            return int_val(math.trunc(number))
    raise error_invalid_conversion(value.type, T.INT)


def _to_float(value: Value) -> Value:
    if value.type in (T.INT, T.FLOAT):
        return float_val(value.data)
    if value.type == T.BOOL:
        return float_val(1.0 if value.data else 0.0)
    if value.type == T.STRING:
        try:
            return float_val(float(value.data.strip()))
        except ValueError:
            pass
    raise error_invalid_conversion(value.type, T.FLOAT)


def convert(value: Value, type_name: str) -> Value:
    """Apply a `(type)expr` cast."""
    if type_name == T.AUTO or type_name == value.type:
        return value
    if type_name == T.INT:
        return _to_int(value)
    if type_name == T.FLOAT:
        return _to_float(value)
    if type_name == T.STRING:
        return string_val(value.to_display())
    if type_name == T.BOOL:
        return bool_val(value.is_truthy())
    raise error_invalid_conversion(value.type, type_name)


# =============================================================================
# Indexing
# =============================================================================

def _position(index: Value) -> int:
    """Digit-string form of an index as a position, or -1 if it has none."""
    key = index.key_string()
    if key.isascii() and key.isdigit():
        return int(key)
    return -1


def index_value(target: Value, index: Value) -> Value:
    """
    target[index]

    Lists and strings look the index up by its string form, so 1 and "1"
    address the same element; missing positions and missing map keys
    yield null.
    """
    if target.type == T.LIST:
        pos = _position(index)
        items = target.data.items
        return items[pos] if 0 <= pos < len(items) else NULL
    if target.type == T.MAP:
        return target.data.entries.get(index.key_string(), NULL)
    if target.type == T.STRING:
        pos = _position(index)
        return string_val(target.data[pos]) if 0 <= pos < len(target.data) else NULL
    raise error_cannot_read(index.key_string(), target.type)


def set_index(target: Value, index: Value, value: Value) -> None:
    """target[index] = value; lists must already have the position."""
    if target.type == T.LIST:
        pos = _position(index)
        items = target.data.items
        if not 0 <= pos < len(items):
            raise error_index_out_of_range(index.key_string(), len(items))
        items[pos] = value
        return
    if target.type == T.MAP:
        target.data.entries[index.key_string()] = value
        return
    raise error_cannot_set(index.key_string(), target.type)
