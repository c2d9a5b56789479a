from typing import Any

import pytest

from toolserver.core.types import ToolResult
from toolserver.mcp.catalog import catalog
from toolserver.mcp.registry import ToolRegistry

# Populate the catalog with the built-in tools.
import toolserver.mcp.tools  # noqa: F401


@pytest.fixture
def registry(monkeypatch):
    monkeypatch.setattr("toolserver.mcp.tools.greeting.GREETING_DELAY_SECONDS", 0)
    registry = ToolRegistry()
    registry.register_all(catalog)
    yield registry
    registry.close()


@pytest.fixture
def invoke(registry):
    def _invoke(name: str, **arguments: Any) -> ToolResult:
        return registry.dispatch(name, arguments).result(timeout=10)

    return _invoke
