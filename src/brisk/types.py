"""
Type tags for Brisk values and declarations.

Every runtime value reports one of the value tags below through
`Value.type_of()`. Declarations, parameters and function results name a
type, which is either a value tag or `auto` (accept anything).

Assignment rules:
    auto <- any
    T    <- null       (null is assignable to every declared type)
    T    <- T
"""

from typing import FrozenSet


INT = "int"
FLOAT = "float"
BOOL = "bool"
NULL = "null"
STRING = "string"
LIST = "list"
MAP = "map"
FUN = "fun"

AUTO = "auto"

VALUE_TYPES: FrozenSet[str] = frozenset({INT, FLOAT, BOOL, NULL, STRING, LIST, MAP, FUN})

# Names accepted wherever a type is declared
KNOWN_TYPES: FrozenSet[str] = VALUE_TYPES | {AUTO}

# Names accepted by the `(type)expr` cast form
CAST_TYPES: FrozenSet[str] = frozenset({INT, FLOAT, BOOL, STRING, AUTO})

NUMERIC_TYPES: FrozenSet[str] = frozenset({INT, FLOAT})


def is_known_type(name: str) -> bool:
    """Check if a name is a declarable type."""
    return name in KNOWN_TYPES


def is_assignable(declared: str, actual: str) -> bool:
    """Check if a value tagged `actual` may be stored in a `declared` slot."""
    if declared == AUTO or actual == NULL:
        return True
    return declared == actual


def is_numeric(type_name: str) -> bool:
    return type_name in NUMERIC_TYPES
