"""
Brisk runtime - tree-walking evaluation of parsed programs.

This module provides:
- Interpreter: Executes statements and evaluates expressions
- Value: Runtime values tagged with their Brisk type
- Scope: Lexical variable bindings
- BuiltinRegistry: print, typeof and the list/string/map members
"""

from .values import (
    Value,
    NULL,
    Closure,
    BuiltinFunction,
    BoundBuiltin,
    ParamSpec,
    int_val,
    float_val,
    bool_val,
    string_val,
    null_val,
    list_val,
    map_val,
    from_python,
    to_python,
)

from .context import (
    Binding,
    Scope,
    FlowContext,
)

from .completion import (
    Completion,
    CompletionKind,
)

from .builtins import (
    BuiltinRegistry,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    run,
    get_default_interpreter,
    reset_default_interpreter,
)

__all__ = [
    'Value',
    'NULL',
    'Closure',
    'BuiltinFunction',
    'BoundBuiltin',
    'ParamSpec',
    'int_val',
    'float_val',
    'bool_val',
    'string_val',
    'null_val',
    'list_val',
    'map_val',
    'from_python',
    'to_python',
    'Binding',
    'Scope',
    'FlowContext',
    'Completion',
    'CompletionKind',
    'BuiltinRegistry',
    'get_builtin_registry',
    'Interpreter',
    'run',
    'get_default_interpreter',
    'reset_default_interpreter',
]
