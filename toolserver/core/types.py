"""Shared type definitions."""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """Static metadata identifying one capability."""

    name: str
    description: str
    input_schema: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Represents the outcome returned to the caller after executing a tool."""

    segments: tuple[str, ...]
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.segments)


@dataclass(slots=True)
class CapturedOutput(Generic[T]):
    """A computation's value together with the text it printed while running."""

    value: T
    stdout_text: str = ""
    stderr_text: str = ""


ToolHandler = Callable[[Mapping[str, Any]], Any]
