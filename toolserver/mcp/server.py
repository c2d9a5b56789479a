"""FastMCP server configuration and lifecycle helpers."""

from __future__ import annotations

from typing import Any, Mapping

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import Tool, ToolResult as MCPToolResult
from mcp.types import TextContent
from pydantic import Field

from ..core.config import ServerSettings, get_settings
from ..core.logging_config import get_logger
from ..core.types import ToolResult
from .catalog import catalog
from .registry import ToolRegistry

# Import tool modules so decorators run at import time.
from . import tools  # noqa: F401

logger = get_logger(__name__)

SERVER_INSTRUCTIONS = (
    "Local file operations, directory management, command execution and "
    "s-expression evaluation."
)

_REGISTRY: ToolRegistry | None = None


class BridgedTool(Tool):
    """FastMCP tool whose execution is delegated to a ToolRegistry."""

    registry: Any = Field(exclude=True, repr=False)

    async def run(self, arguments: dict[str, Any]) -> MCPToolResult:
        slot = self.registry.dispatch(self.name, arguments)
        result: ToolResult = await slot.wait()
        if result.is_error:
            # The protocol layer turns ToolError into a result with isError set.
            raise ToolError(result.text)
        return MCPToolResult(
            content=[TextContent(type="text", text=segment) for segment in result.segments]
        )


def build_registry(settings: ServerSettings | None = None) -> ToolRegistry:
    """Create a registry holding every built-in tool."""

    registry = ToolRegistry.from_settings(settings or get_settings())
    registry.register_all(catalog)
    logger.info("tool_registry_ready", count=len(registry), tools=list(registry))
    return registry


def build_server(registry: ToolRegistry, settings: ServerSettings | None = None) -> FastMCP:
    """Expose every registry entry on a FastMCP server."""

    settings = settings or get_settings()
    server = FastMCP(name=settings.server_name, instructions=SERVER_INSTRUCTIONS)
    for descriptor in registry.descriptors():
        server.add_tool(
            BridgedTool(
                name=descriptor.name,
                description=descriptor.description,
                parameters=dict(descriptor.input_schema),
                registry=registry,
            )
        )
    return server


def get_registry() -> ToolRegistry:
    """Return the process-wide registry, building it on first use."""

    global _REGISTRY
    if _REGISTRY is None:
        _REGISTRY = build_registry()
    return _REGISTRY


async def call_tool(name: str, arguments: Mapping[str, Any]) -> ToolResult:
    """Execute a tool by name with arguments, in process."""

    logger.debug("tool_call", name=name, arguments=arguments)
    slot = get_registry().dispatch(name, arguments)
    return await slot.wait()


def get_tools_schema(registry: ToolRegistry | None = None) -> list[dict[str, Any]]:
    """Describe the registered tools in MCP ``tools/list`` shape."""

    registry = registry or get_registry()
    return [
        {
            "name": descriptor.name,
            "description": descriptor.description,
            "inputSchema": dict(descriptor.input_schema),
        }
        for descriptor in registry.descriptors()
    ]
