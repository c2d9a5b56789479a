import pytest
from fastmcp.exceptions import ToolError

from toolserver.core.config import ServerSettings
from toolserver.mcp.server import (
    BridgedTool,
    build_server,
    call_tool,
    get_tools_schema,
)


def _bridged(registry, name):
    descriptor = next(d for d in registry.descriptors() if d.name == name)
    return BridgedTool(
        name=descriptor.name,
        description=descriptor.description,
        parameters=dict(descriptor.input_schema),
        registry=registry,
    )


@pytest.mark.asyncio
async def test_bridged_tool_returns_one_text_block_per_segment(registry):
    tool = _bridged(registry, "hello")

    result = await tool.run({})

    assert [block.text for block in result.content] == ["Hello world!", "Hello doors!"]


@pytest.mark.asyncio
async def test_bridged_tool_raises_tool_error_for_error_results(registry, tmp_path):
    tool = _bridged(registry, "read_file")

    with pytest.raises(ToolError, match="Error: Path is not a file"):
        await tool.run({"path": str(tmp_path)})


@pytest.mark.asyncio
async def test_build_server_exposes_every_registered_tool(registry):
    server = build_server(registry, ServerSettings(_env_file=None))

    tools = await server.get_tools()

    assert set(tools) == set(registry)


@pytest.mark.asyncio
async def test_call_tool_uses_process_registry(registry, monkeypatch):
    monkeypatch.setattr("toolserver.mcp.server._REGISTRY", registry)

    result = await call_tool("evaluate", {"expression": "(* 6 7)"})

    assert result.text == "42"
    assert result.is_error is False


def test_tools_schema_lists_descriptors(registry):
    schema = {entry["name"]: entry for entry in get_tools_schema(registry)}

    write_schema = schema["write_file"]["inputSchema"]
    assert write_schema["type"] == "object"
    assert set(write_schema["required"]) == {"path", "content"}
    assert write_schema["properties"]["append"]["default"] is False
    assert "description" in write_schema["properties"]["path"]

    command_schema = schema["execute_command"]["inputSchema"]
    assert command_schema["properties"]["args"]["type"] == "array"
    assert command_schema["properties"]["args"]["items"] == {"type": "string"}
