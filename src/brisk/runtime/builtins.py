"""
Built-in function registry for the Brisk interpreter.

Global functions are seeded into every interpreter's global scope:
    print(auto input) -> null
    typeof(auto data) -> string

Methods are looked up by (type tag, name) when a member is read from a
value, and come back bound to that value:
    list.size() -> int
    list.push(auto item) -> int
    string.size() -> int
    map.size() -> int
"""

from typing import Dict, List, Optional, Tuple

from .. import types as T
from .values import (
    Value, NULL, BuiltinFunction, ParamSpec, int_val, string_val, builtin_val,
)


class BuiltinRegistry:
    """
    Registry of all built-in functions and methods.

    Functions are registered by name; methods by the type tag of their
    receiver and their name.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._methods: Dict[Tuple[str, str], BuiltinFunction] = {}  # (type_name, method_name)
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def get_method(self, type_name: str, method_name: str) -> Optional[BuiltinFunction]:
        """Look up a method by type and method name."""
        return self._methods.get((type_name, method_name))

    def functions(self) -> List[BuiltinFunction]:
        return list(self._functions.values())

    def register(self, func: BuiltinFunction) -> None:
        self._functions[func.name] = func

    def register_method(self, type_name: str, func: BuiltinFunction) -> None:
        """Register a method for a specific type."""
        self._methods[(type_name, func.name)] = func

    def _register_all(self) -> None:
        self._register_global_functions()
        self._register_list_methods()
        self._register_string_methods()
        self._register_map_methods()

    # --- Global Functions ---

    def _register_global_functions(self) -> None:

        def _print(interp, value: Value) -> Value:
            interp.write(value.to_display())
            return NULL

        def _typeof(interp, value: Value) -> Value:
            return string_val(value.type_of())

        self.register(BuiltinFunction(
            "print",
            [ParamSpec(T.AUTO, "input")],
            T.NULL,
            _print,
        ))
        self.register(BuiltinFunction(
            "typeof",
            [ParamSpec(T.AUTO, "data")],
            T.STRING,
            _typeof,
        ))

    # --- List Methods ---

    def _register_list_methods(self) -> None:

        def _size(interp, receiver: Value) -> Value:
            return int_val(len(receiver.data.items))

        def _push(interp, receiver: Value, item: Value) -> Value:
            receiver.data.items.append(item)
            return int_val(len(receiver.data.items))

        self.register_method(T.LIST, BuiltinFunction("size", [], T.INT, _size))
        self.register_method(T.LIST, BuiltinFunction(
            "push", [ParamSpec(T.AUTO, "item")], T.INT, _push))

    # --- String Methods ---

    def _register_string_methods(self) -> None:

        def _size(interp, receiver: Value) -> Value:
            return int_val(len(receiver.data))

        self.register_method(T.STRING, BuiltinFunction("size", [], T.INT, _size))

    # --- Map Methods ---

    def _register_map_methods(self) -> None:

        def _size(interp, receiver: Value) -> Value:
            return int_val(len(receiver.data.entries))

        self.register_method(T.MAP, BuiltinFunction("size", [], T.INT, _size))


# Global singleton registry
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def get_member(target: Value, name: str) -> Optional[Value]:
    """Return the builtin method `name` bound to `target`, if there is one."""
    method = get_builtin_registry().get_method(target.type, name)
    if method is None:
        return None
    return builtin_val(method, target)


def global_values() -> Dict[str, Value]:
    """Builtin function values to seed into a global scope."""
    return {func.name: builtin_val(func) for func in get_builtin_registry().functions()}
