"""Asynchronous dispatch of tool handlers onto worker threads.

Each invocation gets a fresh CompletionSlot which is returned to the caller
straight away; the handler runs on its own worker and resolves the slot when
it finishes. Whatever the handler does (return, raise, print) the slot ends
up resolved exactly once with a ToolResult.
"""

from __future__ import annotations

import asyncio
import threading
import time
from concurrent.futures import Executor, Future
from typing import Any, Callable, Mapping

from ..core.logging_config import get_logger
from ..core.types import ToolDescriptor, ToolHandler, ToolResult
from .encoder import encode, encode_fault, error_result

logger = get_logger(__name__)


class CompletionSlot:
    """Single-assignment cell holding the eventual result of one invocation."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        self._future: Future[ToolResult] = Future()
        self._lock = threading.Lock()

    def resolve(self, result: ToolResult) -> bool:
        """Store ``result``; returns False if the slot was already resolved."""

        with self._lock:
            if self._future.done():
                return False
            self._future.set_result(result)
            return True

    @property
    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> ToolResult:
        """Block until resolved; raises ``TimeoutError`` if ``timeout`` passes first."""

        return self._future.result(timeout)

    async def wait(self) -> ToolResult:
        return await asyncio.wrap_future(self._future)

    def add_done_callback(self, callback: Callable[[CompletionSlot], Any]) -> None:
        self._future.add_done_callback(lambda _: callback(self))


class DispatchBridge:
    """Runs one tool's handler off the caller's thread."""

    def __init__(
        self,
        descriptor: ToolDescriptor,
        handler: ToolHandler,
        *,
        executor: Executor | None = None,
        timeout: float | None = None,
        include_captured: bool = False,
    ) -> None:
        self.descriptor = descriptor
        self._handler = handler
        self._executor = executor
        self._timeout = timeout
        self._include_captured = include_captured

    @property
    def name(self) -> str:
        return self.descriptor.name

    def invoke(self, arguments: Mapping[str, Any]) -> CompletionSlot:
        """Schedule the handler and return its (usually unresolved) slot."""

        slot = CompletionSlot(self.name)
        payload = dict(arguments)
        if self._timeout is not None:
            self._arm_timeout(slot, self._timeout)

        if self._executor is not None:
            self._executor.submit(self._run, slot, payload)
        else:
            worker = threading.Thread(
                target=self._run,
                args=(slot, payload),
                name=f"tool-{self.name}",
                daemon=True,
            )
            worker.start()
        return slot

    def _run(self, slot: CompletionSlot, arguments: dict[str, Any]) -> None:
        started = time.perf_counter()
        try:
            result = encode(self._handler(arguments), include_captured=self._include_captured)
        except Exception as exc:
            logger.warning(
                "tool_handler_fault",
                tool=self.name,
                error_type=exc.__class__.__name__,
                error=str(exc),
            )
            result = encode_fault(exc)

        latency_ms = round((time.perf_counter() - started) * 1000, 3)
        if not slot.resolve(result):
            logger.warning("tool_result_discarded", tool=self.name, latency_ms=latency_ms)
            return
        logger.info(
            "tool_call_completed",
            tool=self.name,
            is_error=result.is_error,
            latency_ms=latency_ms,
        )

    def _arm_timeout(self, slot: CompletionSlot, timeout: float) -> None:
        def expire() -> None:
            if slot.resolve(error_result(f"Tool '{self.name}' timed out after {timeout:g} seconds")):
                logger.warning("tool_call_timed_out", tool=self.name, timeout_seconds=timeout)

        timer = threading.Timer(timeout, expire)
        timer.daemon = True
        slot.add_done_callback(lambda _: timer.cancel())
        timer.start()
