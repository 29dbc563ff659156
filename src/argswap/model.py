from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from argswap.exceptions import InapplicableInvocation
from argswap.types import TypeEnvironment, TypeRef

Position = Tuple[int, int]


class ArgumentKind(Enum):
    NAME = "name"
    ATTRIBUTE = "attribute"
    METHOD_CALL = "method_call"
    LITERAL = "literal"
    SELF = "self"
    OTHER = "other"


class Resolution(Enum):
    UNRESOLVED = "unresolved"
    KEPT = "kept"
    SWAPPED = "swapped"


@dataclass(frozen=True)
class Argument:
    source: str
    name: str | None = None
    type: TypeRef | None = None
    kind: ArgumentKind = ArgumentKind.OTHER

    @property
    def is_literal(self) -> bool:
        return self.kind is ArgumentKind.LITERAL

    @property
    def is_self(self) -> bool:
        return self.kind is ArgumentKind.SELF

    @property
    def swap_eligible(self) -> bool:
        return self.name is not None and not self.is_literal


@dataclass(frozen=True)
class Parameter:
    name: str
    type: TypeRef | None = None
    position: int = 0


@dataclass(frozen=True)
class Invocation:
    """One call site: the callee's parameters paired with the supplied arguments."""

    callee: str
    parameters: Tuple[Parameter, ...]
    arguments: Tuple[Argument, ...]
    environment: TypeEnvironment = field(default_factory=TypeEnvironment)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))
        object.__setattr__(self, "arguments", tuple(self.arguments))
        if len(self.parameters) != len(self.arguments):
            raise InapplicableInvocation(
                f"{self.callee}: {len(self.arguments)} arguments for "
                f"{len(self.parameters)} parameters"
            )
        if any(not parameter.name for parameter in self.parameters):
            raise InapplicableInvocation(f"{self.callee}: parameter names unavailable")

    def __len__(self) -> int:
        return len(self.arguments)


@dataclass(frozen=True, order=True)
class SwapProposal:
    first: int
    second: int

    def __post_init__(self) -> None:
        if self.first == self.second:
            raise ValueError("a swap needs two distinct positions")
        if self.first > self.second:
            first, second = self.second, self.first
            object.__setattr__(self, "first", first)
            object.__setattr__(self, "second", second)


@dataclass(frozen=True)
class SuggestedFix:
    order: Tuple[int, ...]
    arguments: Tuple[str, ...]
    replacement: str


@dataclass(frozen=True)
class Finding:
    path: str
    line: int
    column: int
    callee: str
    original: str
    proposals: Tuple[SwapProposal, ...]
    fix: SuggestedFix

    @property
    def message(self) -> str:
        return (
            f"Arguments to {self.callee}() appear to be swapped; "
            f"did you mean '{self.fix.replacement}'?"
        )

    def render(self) -> str:
        return f"{self.path}:{self.line}:{self.column}: {self.message}"


@dataclass(frozen=True)
class TextEdit:
    path: str
    start: Position
    end: Position
    replacement: str
