"""
Statement completions.

Executing a statement yields a Completion instead of setting interpreter
flags: loops absorb CONTINUE and BREAK, function calls unwrap RETURN, and
blocks stop at the first abrupt completion and hand it outward.
"""

from dataclasses import dataclass, field
from enum import Enum, auto

from .values import Value, NULL


class CompletionKind(Enum):
    NORMAL = auto()
    RETURN = auto()
    CONTINUE = auto()
    BREAK = auto()


@dataclass(frozen=True)
class Completion:
    kind: CompletionKind
    value: Value = field(default_factory=lambda: NULL)

    @property
    def is_abrupt(self) -> bool:
        return self.kind != CompletionKind.NORMAL

    @staticmethod
    def normal(value: Value = NULL) -> "Completion":
        return Completion(CompletionKind.NORMAL, value)

    @staticmethod
    def returning(value: Value = NULL) -> "Completion":
        return Completion(CompletionKind.RETURN, value)


CONTINUE = Completion(CompletionKind.CONTINUE)
BREAK = Completion(CompletionKind.BREAK)
