"""Greeting tool returning a multi-segment result."""

import time
from typing import Any, Mapping

from ...core.types import ToolResult
from ..catalog import catalog

GREETING_DELAY_SECONDS = 1.0


@catalog.tool(name="hello", description="Returns hello")
def hello(arguments: Mapping[str, Any]) -> ToolResult:
    time.sleep(GREETING_DELAY_SECONDS)
    return ToolResult(segments=("Hello world!", "Hello doors!"), is_error=False)
