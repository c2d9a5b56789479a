"""Name-keyed registry of tool descriptors and their dispatch bridges."""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Iterable, Iterator, Mapping

from ..core.config import ServerSettings
from ..core.exceptions import DuplicateToolError, UnknownToolError
from ..core.logging_config import get_logger
from ..core.types import ToolDescriptor, ToolHandler
from .bridge import CompletionSlot, DispatchBridge

logger = get_logger(__name__)


class ToolRegistry:
    """Own the registered tools and forward invocations to their bridges.

    The registry keeps no per-request state; any number of invocations may be
    in flight at once.
    """

    def __init__(
        self,
        *,
        executor: Executor | None = None,
        timeout: float | None = None,
        include_captured: bool = False,
    ) -> None:
        self._bridges: dict[str, DispatchBridge] = {}
        self._executor = executor
        self._timeout = timeout
        self._include_captured = include_captured

    @classmethod
    def from_settings(cls, settings: ServerSettings) -> ToolRegistry:
        executor = None
        if settings.max_workers is not None:
            executor = ThreadPoolExecutor(
                max_workers=settings.max_workers,
                thread_name_prefix="tool-worker",
            )
        return cls(
            executor=executor,
            timeout=settings.tool_timeout_seconds,
            include_captured=settings.surface_captured_output,
        )

    def register(self, descriptor: ToolDescriptor, handler: ToolHandler) -> DispatchBridge:
        if descriptor.name in self._bridges:
            raise DuplicateToolError(descriptor.name)
        bridge = DispatchBridge(
            descriptor,
            handler,
            executor=self._executor,
            timeout=self._timeout,
            include_captured=self._include_captured,
        )
        self._bridges[descriptor.name] = bridge
        logger.debug("tool_registered", tool=descriptor.name)
        return bridge

    def register_all(self, entries: Iterable[tuple[ToolDescriptor, ToolHandler]]) -> None:
        for descriptor, handler in entries:
            self.register(descriptor, handler)

    def dispatch(self, tool_name: str, arguments: Mapping[str, Any] | None = None) -> CompletionSlot:
        """Start an invocation; raises UnknownToolError before scheduling anything."""

        bridge = self._bridges.get(tool_name)
        if bridge is None:
            raise UnknownToolError(tool_name)
        logger.debug("tool_dispatched", tool=tool_name)
        return bridge.invoke(arguments or {})

    def descriptors(self) -> list[ToolDescriptor]:
        return [bridge.descriptor for bridge in self._bridges.values()]

    def close(self) -> None:
        """Stop accepting pooled work; running handlers are not interrupted."""

        if self._executor is not None:
            self._executor.shutdown(wait=False)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._bridges

    def __iter__(self) -> Iterator[str]:
        return iter(self._bridges)

    def __len__(self) -> int:
        return len(self._bridges)
