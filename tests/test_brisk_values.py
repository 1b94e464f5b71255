"""
Tests for Brisk runtime values, operators, scopes and builtins.
"""

import dataclasses
import math

import pytest

from brisk import types as T
from brisk.errors import BriskTypeError, EvalError
from brisk.runtime import (
    NULL, int_val, float_val, bool_val, string_val, list_val, map_val,
    from_python, to_python, Binding, Scope, FlowContext, get_builtin_registry,
)
from brisk.runtime import operators as ops
from brisk.runtime.builtins import get_member
from brisk.runtime.values import wrap_int, BuiltinFunction
from brisk.runtime.completion import Completion, CompletionKind, CONTINUE, BREAK


# --- Value Tests ---

class TestValues:
    """Test runtime value construction."""

    def test_int_value(self):
        v = int_val(42)
        assert v.data == 42
        assert v.type == T.INT
        assert v.type_of() == "int"

    def test_int_wraps_to_64_bits(self):
        assert int_val(2 ** 63).data == -(2 ** 63)
        assert wrap_int(2 ** 64 + 5) == 5
        assert wrap_int(-1) == -1

    def test_float_value(self):
        v = float_val(3)
        assert v.data == 3.0
        assert v.type == T.FLOAT

    def test_null_value(self):
        assert NULL.is_null
        assert NULL.type_of() == "null"

    def test_list_value_copies_items(self):
        items = [int_val(1)]
        v = list_val(items)
        items.append(int_val(2))
        assert len(v.data) == 1

    def test_from_python(self):
        v = from_python({"a": [1, 2.5, "x", True, None]})
        assert v.type == T.MAP
        assert to_python(v) == {"a": [1, 2.5, "x", True, None]}

    def test_from_python_rejects_objects(self):
        with pytest.raises(ValueError):
            from_python(object())


class TestTruthiness:
    """Test truthiness used by conditions."""

    @pytest.mark.parametrize("value", [
        bool_val(False), int_val(0), float_val(0.0), string_val(""),
        NULL, list_val([]), map_val({}),
    ])
    def test_falsy(self, value):
        assert value.is_truthy() is False

    @pytest.mark.parametrize("value", [
        bool_val(True), int_val(-1), float_val(0.5), string_val("0"),
        list_val([NULL]), map_val({"a": NULL}),
    ])
    def test_truthy(self, value):
        assert value.is_truthy() is True


class TestStringForms:
    """Test display and repr forms."""

    def test_display_string_is_raw(self):
        assert string_val("hi").to_display() == "hi"

    def test_repr_string_is_quoted(self):
        assert string_val('say "hi"').to_repr() == '"say \\"hi\\""'

    def test_scalars(self):
        assert int_val(7).to_display() == "7"
        assert float_val(1.5).to_display() == "1.5"
        assert float_val(2).to_display() == "2.0"
        assert bool_val(True).to_display() == "true"
        assert NULL.to_display() == "null"

    def test_list(self):
        v = list_val([int_val(1), string_val("a"), NULL])
        assert v.to_display() == '[1, "a", null]'

    def test_map(self):
        v = map_val({"a": int_val(1), "b": list_val([])})
        assert v.to_display() == "map {a: 1, b: []}"

    def test_self_containing_list(self):
        v = list_val([])
        v.data.items.append(v)
        assert v.to_repr() == "[[...]]"

    def test_function(self):
        member = get_member(string_val(""), "size")
        assert member.to_repr() == "<fun size>"


# --- Operator Tests ---

class TestArithmetic:
    """Test arithmetic operators."""

    def test_int_add(self):
        assert ops.add(int_val(2), int_val(3)) == int_val(5)

    def test_mixed_add_is_float(self):
        result = ops.add(int_val(2), float_val(0.5))
        assert result.type == T.FLOAT
        assert result.data == 2.5

    def test_string_concat(self):
        assert ops.add(string_val("a"), string_val("b")).data == "ab"

    def test_string_plus_int_rejected(self):
        with pytest.raises(BriskTypeError) as exc_info:
            ops.add(string_val("a"), int_val(1))
        assert exc_info.value.code == "E408"
        assert "'string' and 'int'" in exc_info.value.message

    def test_int_division_truncates(self):
        assert ops.div(int_val(7), int_val(2)).data == 3
        assert ops.div(int_val(-7), int_val(2)).data == -3

    def test_float_division(self):
        assert ops.div(float_val(7), int_val(2)).data == 3.5

    def test_remainder_sign_follows_dividend(self):
        assert ops.remainder(int_val(-7), int_val(3)).data == -1
        assert ops.remainder(int_val(7), int_val(-3)).data == 1

    @pytest.mark.parametrize("fn", [ops.div, ops.remainder])
    def test_division_by_zero(self, fn):
        with pytest.raises(EvalError) as exc_info:
            fn(int_val(1), int_val(0))
        assert exc_info.value.code == "E410"

    def test_power(self):
        assert ops.power(int_val(2), int_val(10)) == int_val(1024)
        assert ops.power(int_val(2), int_val(-1)).data == 0.5

    def test_int_overflow_wraps(self):
        big = int_val(2 ** 63 - 1)
        assert ops.add(big, int_val(1)).data == -(2 ** 63)

    def test_float_overflow_is_inf(self):
        assert ops.power(float_val(10.0), float_val(400.0)).data == math.inf


class TestBitwise:
    """Test bitwise operators."""

    def test_and_or_xor(self):
        assert ops.band(int_val(12), int_val(10)).data == 8
        assert ops.bor(int_val(12), int_val(10)).data == 14
        assert ops.xor(int_val(12), int_val(10)).data == 6

    def test_shifts(self):
        assert ops.shl(int_val(1), int_val(4)).data == 16
        assert ops.shr(int_val(-16), int_val(2)).data == -4

    def test_negative_shift(self):
        with pytest.raises(EvalError) as exc_info:
            ops.shl(int_val(1), int_val(-1))
        assert exc_info.value.code == "E416"

    def test_bnot(self):
        assert ops.bnot(int_val(0)).data == -1

    def test_string_rejected(self):
        with pytest.raises(BriskTypeError):
            ops.band(string_val("a"), int_val(1))


class TestComparison:
    """Test comparison and equality."""

    def test_relational(self):
        assert ops.lt(int_val(1), float_val(1.5)).data is True
        assert ops.gte(int_val(2), int_val(2)).data is True

    def test_relational_needs_numbers(self):
        with pytest.raises(BriskTypeError):
            ops.lt(string_val("a"), string_val("b"))

    def test_numeric_equality_across_types(self):
        assert ops.ee(int_val(1), float_val(1.0)).data is True

    def test_cross_type_equality_is_false(self):
        assert ops.ee(int_val(1), string_val("1")).data is False
        assert ops.ne(NULL, bool_val(False)).data is True

    def test_lists_compare_by_identity(self):
        a = list_val([int_val(1)])
        b = list_val([int_val(1)])
        assert ops.ee(a, a).data is True
        assert ops.ee(a, b).data is False


class TestConversions:
    """Test (type) casts."""

    def test_float_to_int_truncates(self):
        assert ops.convert(float_val(-2.7), T.INT) == int_val(-2)

    def test_string_to_int(self):
        assert ops.convert(string_val(" 42 "), T.INT) == int_val(42)

    def test_string_to_float(self):
        assert ops.convert(string_val("2.5"), T.FLOAT).data == 2.5

    def test_to_string(self):
        assert ops.convert(list_val([int_val(1)]), T.STRING).data == "[1]"

    def test_to_bool(self):
        assert ops.convert(string_val(""), T.BOOL).data is False

    def test_invalid(self):
        with pytest.raises(BriskTypeError) as exc_info:
            ops.convert(string_val("abc"), T.INT)
        assert exc_info.value.code == "E415"


class TestIndexing:
    """Test index reads and writes."""

    def test_list_index(self):
        v = list_val([int_val(10), int_val(20)])
        assert ops.index_value(v, int_val(1)).data == 20
        assert ops.index_value(v, string_val("1")).data == 20

    def test_missing_index_is_null(self):
        v = list_val([int_val(10)])
        assert ops.index_value(v, int_val(5)) is NULL
        assert ops.index_value(v, int_val(-1)) is NULL

    def test_map_key(self):
        v = map_val({"1": string_val("one")})
        assert ops.index_value(v, int_val(1)).data == "one"
        assert ops.index_value(v, string_val("nope")) is NULL

    def test_string_index(self):
        assert ops.index_value(string_val("abc"), int_val(2)).data == "c"

    def test_index_on_int(self):
        with pytest.raises(BriskTypeError) as exc_info:
            ops.index_value(int_val(1), int_val(0))
        assert exc_info.value.code == "E413"

    def test_set_list_out_of_range(self):
        v = list_val([])
        with pytest.raises(EvalError) as exc_info:
            ops.set_index(v, int_val(0), int_val(1))
        assert exc_info.value.code == "E414"

    def test_set_map(self):
        v = map_val({})
        ops.set_index(v, string_val("k"), int_val(1))
        assert v.data.entries["k"].data == 1


# --- Types, Scope and Flow ---

class TestTypes:
    """Test declared type rules."""

    def test_assignable(self):
        assert T.is_assignable(T.INT, T.INT)
        assert T.is_assignable(T.AUTO, T.LIST)
        assert T.is_assignable(T.STRING, T.NULL)
        assert not T.is_assignable(T.INT, T.FLOAT)

    def test_known_types(self):
        assert T.is_known_type("fun")
        assert not T.is_known_type("number")


class TestScope:
    """Test lexical scopes."""

    def test_declare_and_get(self):
        scope = Scope()
        scope.declare("a", Binding(False, T.INT, int_val(1)))
        assert scope.get("a").value.data == 1
        assert scope.get("b") is None

    def test_lookup_walks_parents(self):
        outer = Scope()
        outer.declare("a", Binding(False, T.INT, int_val(1)))
        inner = outer.child()
        assert inner.has("a")
        assert inner.can_declare("a")
        assert not outer.can_declare("a")
        assert inner.depth() == 1

    def test_set_updates_nearest(self):
        outer = Scope()
        outer.declare("a", Binding(False, T.INT, int_val(1)))
        inner = outer.child()
        assert inner.set("a", int_val(2))
        assert outer.get("a").value.data == 2
        assert not inner.set("missing", int_val(0))


class TestFlowContext:
    """Test control-flow legality flags."""

    def test_top_level(self):
        flow = FlowContext()
        assert not flow.in_function
        assert not flow.in_loop

    def test_function_resets_loop(self):
        flow = FlowContext().enter_loop().enter_function()
        assert flow.in_function
        assert not flow.in_loop

    def test_loop_keeps_function(self):
        flow = FlowContext().enter_function().enter_loop()
        assert flow.in_function
        assert flow.in_loop


class TestBuiltins:
    """Test the builtin registry."""

    def test_global_functions(self):
        registry = get_builtin_registry()
        assert registry.get_function("print") is not None
        assert registry.get_function("typeof") is not None
        assert registry.get_function("nope") is None

    def test_methods(self):
        registry = get_builtin_registry()
        assert registry.get_method(T.LIST, "push") is not None
        assert registry.get_method(T.STRING, "push") is None

    def test_registry_is_singleton(self):
        assert get_builtin_registry() is get_builtin_registry()

    def test_get_member_binds_receiver(self):
        xs = list_val([])
        member = get_member(xs, "push")
        assert member.type == T.FUN
        assert member.data.receiver is xs
        assert get_member(int_val(1), "size") is None

    def test_builtin_function_fields(self):
        names = [f.name for f in dataclasses.fields(BuiltinFunction)]
        assert names == ["name", "params", "return_type", "implementation"]


class TestCompletion:
    """Test statement completion records."""

    def test_default_value_is_null(self):
        assert Completion(CompletionKind.NORMAL).value is NULL
        assert CONTINUE.value is NULL
        assert BREAK.value is NULL

    def test_abrupt_kinds(self):
        assert not Completion.normal(int_val(1)).is_abrupt
        assert Completion.returning().is_abrupt
        assert CONTINUE.is_abrupt
        assert BREAK.kind == CompletionKind.BREAK

    def test_returning_carries_value(self):
        assert Completion.returning(int_val(3)).value == int_val(3)
