"""
Runtime values for the Brisk interpreter.

A `Value` pairs host data with one of the type tags from `brisk.types`:

    int     Python int, wrapped to signed 64 bits
    float   Python float
    bool    Python bool
    null    None
    string  Python str
    list    ListData (shared by reference)
    map     MapData (shared by reference, insertion ordered)
    fun     Closure or BoundBuiltin
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from .. import types as T

if TYPE_CHECKING:
    from ..ast import AstNode, Parameter
    from .context import Scope


INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def wrap_int(n: int) -> int:
    """Wrap an arbitrary precision int into the signed 64-bit range."""
    return ((n - INT64_MIN) & 0xFFFFFFFFFFFFFFFF) + INT64_MIN


@dataclass
class ListData:
    """Ordered element storage for list values."""
    items: List["Value"] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class MapData:
    """Key/value storage for map values; keys are the string form of the key."""
    entries: Dict[str, "Value"] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class ParamSpec:
    """Parameter description for host-provided functions."""
    type_name: str
    name: str
    is_const: bool = False


@dataclass(eq=False)
class Closure:
    """A user-defined function together with the scope it was defined in."""
    return_type: str
    name: str
    params: List["Parameter"]
    body: "AstNode"
    scope: "Scope"
    # Text of the run that defined it, for error excerpts
    source: Optional[str] = None


@dataclass
class BuiltinFunction:
    """
    A host-provided function.

    `implementation` receives the calling interpreter, then the receiver for
    methods, then the argument values.
    """
    name: str
    params: List[ParamSpec]
    return_type: str
    implementation: Callable[..., "Value"]


@dataclass(eq=False)
class BoundBuiltin:
    """A builtin, optionally bound to the list/map/string it was read from."""
    function: BuiltinFunction
    receiver: Optional["Value"] = None

    @property
    def name(self) -> str:
        return self.function.name

    @property
    def params(self) -> List[ParamSpec]:
        return self.function.params

    @property
    def return_type(self) -> str:
        return self.function.return_type


@dataclass
class Value:
    """
    A runtime value with its Brisk type tag.

    The `data` field holds the host object.
    The `type` field holds the tag used for declaration, assignment,
    parameter and return checks.
    """
    data: Any
    type: str

    def __repr__(self) -> str:
        return f"Value({self.to_repr()}, {self.type})"

    def type_of(self) -> str:
        return self.type

    @property
    def is_null(self) -> bool:
        return self.type == T.NULL

    def is_truthy(self) -> bool:
        """
        Truthiness used by conditions and `!`.

        false, 0, 0.0, "", null, [] and empty maps are falsy; functions
        and everything else are truthy.
        """
        if self.type == T.NULL:
            return False
        if self.type == T.FUN:
            return True
        if self.type in (T.LIST, T.MAP):
            return len(self.data) > 0
        return bool(self.data)

    # --- String forms ---

    def to_display(self) -> str:
        """String form written by `print` and used by text spans."""
        if self.type == T.STRING:
            return self.data
        return self.to_repr()

    def to_repr(self, _seen: Optional[set] = None) -> str:
        """String form with strings quoted, used inside containers."""
        if self.type == T.NULL:
            return "null"
        if self.type == T.BOOL:
            return "true" if self.data else "false"
        if self.type == T.INT:
            return str(self.data)
        if self.type == T.FLOAT:
            return repr(self.data)
        if self.type == T.STRING:
            return '"' + self.data.replace('\\', '\\\\').replace('"', '\\"') + '"'
        if self.type == T.FUN:
            return f"<fun {self.data.name}>"

        seen = _seen if _seen is not None else set()
        if id(self.data) in seen:
            return "[...]" if self.type == T.LIST else "map {...}"
        seen.add(id(self.data))
        try:
            if self.type == T.LIST:
                return "[" + ", ".join(v.to_repr(seen) for v in self.data.items) + "]"
            parts = [f"{key}: {v.to_repr(seen)}" for key, v in self.data.entries.items()]
            return "map {" + ", ".join(parts) + "}"
        finally:
            seen.discard(id(self.data))

    def key_string(self) -> str:
        """Lookup key for map entries and list indices."""
        return self.to_display()

    def __str__(self) -> str:
        return self.to_display()


# Convenience constructors

def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(wrap_int(int(n)), T.INT)


def float_val(x: float) -> Value:
    """Create a float value."""
    return Value(float(x), T.FLOAT)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(bool(b), T.BOOL)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), T.STRING)


NULL = Value(None, T.NULL)


def null_val() -> Value:
    return NULL


def list_val(items: List[Value]) -> Value:
    """Create a list value that owns `items`."""
    return Value(ListData(list(items)), T.LIST)


def map_val(entries: Dict[str, Value]) -> Value:
    """Create a map value from string keys."""
    return Value(MapData(dict(entries)), T.MAP)


def function_val(closure: Closure) -> Value:
    return Value(closure, T.FUN)


def builtin_val(function: BuiltinFunction, receiver: Optional[Value] = None) -> Value:
    return Value(BoundBuiltin(function, receiver), T.FUN)


def from_python(data: Any) -> Value:
    """Wrap a plain Python object (used by tests and embedders)."""
    if data is None:
        return NULL
    if isinstance(data, Value):
        return data
    if isinstance(data, bool):
        return bool_val(data)
    if isinstance(data, int):
        return int_val(data)
    if isinstance(data, float):
        return float_val(data)
    if isinstance(data, str):
        return string_val(data)
    if isinstance(data, (list, tuple)):
        return list_val([from_python(item) for item in data])
    if isinstance(data, dict):
        return map_val({str(k): from_python(v) for k, v in data.items()})
    raise ValueError(f"cannot convert {type(data).__name__} to a Brisk value")


def to_python(value: Value) -> Any:
    """Unwrap a value into plain Python data; functions stay wrapped."""
    if value.type == T.LIST:
        return [to_python(item) for item in value.data.items]
    if value.type == T.MAP:
        return {key: to_python(item) for key, item in value.data.entries.items()}
    if value.type == T.FUN:
        return value
    return value.data
