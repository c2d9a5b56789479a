"""Decorator-based collection of the built-in tools.

Tool modules register their handlers at import time; the registry is filled
from the catalog once settings are known.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, Mapping, TypeVar

from pydantic import BaseModel

from ..core.types import ToolDescriptor, ToolHandler

ArgsT = TypeVar("ArgsT", bound=BaseModel)

_EMPTY_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


class ToolCatalog:
    def __init__(self) -> None:
        self._entries: list[tuple[ToolDescriptor, ToolHandler]] = []

    def tool(
        self,
        name: str,
        description: str,
        args_model: type[ArgsT] | None = None,
    ) -> Callable[[Callable[[ArgsT], Any]], Callable[[ArgsT], Any]]:
        """Register the decorated function under ``name``.

        With ``args_model`` the raw argument map is validated into the model
        before the function is called, and the model's JSON schema becomes
        the tool's input schema. Without it the function receives the raw map.
        """

        schema = args_model.model_json_schema() if args_model is not None else _EMPTY_SCHEMA

        def decorator(func: Callable[[ArgsT], Any]) -> Callable[[ArgsT], Any]:
            if args_model is None:
                handler: ToolHandler = func  # type: ignore[assignment]
            else:

                def handler(arguments: Mapping[str, Any]) -> Any:
                    return func(args_model.model_validate(dict(arguments)))

                handler.__name__ = func.__name__

            self._entries.append((ToolDescriptor(name, description, schema), handler))
            return func

        return decorator

    def __iter__(self) -> Iterator[tuple[ToolDescriptor, ToolHandler]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


catalog = ToolCatalog()
