"""
Lexical scopes and evaluation flags for the Brisk interpreter.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Optional

from .values import Value

logger = logging.getLogger(__name__)


@dataclass
class Binding:
    """A named slot: its declared type, const flag and current value."""
    is_const: bool
    declared_type: str
    value: Value


@dataclass(eq=False)
class Scope:
    """
    A single scope containing variable bindings.

    Scopes form a chain via the `parent` field for lexical scoping. A name
    may be declared once per scope; inner scopes may shadow outer names.
    """
    parent: Optional["Scope"] = None
    name: str = "block"  # For debugging
    bindings: Dict[str, Binding] = field(default_factory=dict)

    def can_declare(self, name: str) -> bool:
        """True if `name` is not yet declared in this scope (parents ignored)."""
        return name not in self.bindings

    def declare(self, name: str, binding: Binding) -> None:
        """Insert a binding into this scope. Callers check can_declare first."""
        self.bindings[name] = binding

    def get(self, name: str) -> Optional[Binding]:
        """Look up a binding in this scope or parent scopes."""
        scope = self
        while scope is not None:
            binding = scope.bindings.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def has(self, name: str) -> bool:
        """Check if a name exists in this scope or parents."""
        return self.get(name) is not None

    def set(self, name: str, value: Value) -> bool:
        """
        Update the nearest binding for `name`.

        Returns True if found and updated, False if not found.
        """
        binding = self.get(name)
        if binding is None:
            return False
        binding.value = value
        return True

    def child(self, name: str = "block") -> "Scope":
        """Create a nested scope whose parent is this one."""
        logger.debug("enter scope %s", name)
        return Scope(parent=self, name=name)

    def depth(self) -> int:
        count = 0
        scope = self.parent
        while scope is not None:
            count += 1
            scope = scope.parent
        return count


@dataclass(frozen=True)
class FlowContext:
    """
    Which control-flow statements are legal at the current point.

    `ret` needs `in_function`; `continue` and `break` need `in_loop`. A
    function body resets `in_loop`, so loops do not leak into nested
    function definitions.
    """
    in_function: bool = False
    in_loop: bool = False

    def enter_function(self) -> "FlowContext":
        return FlowContext(in_function=True, in_loop=False)

    def enter_loop(self) -> "FlowContext":
        if self.in_loop:
            return self
        return replace(self, in_loop=True)


TOP_LEVEL = FlowContext()
