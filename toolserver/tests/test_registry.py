import sys
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from toolserver.core.exceptions import DuplicateToolError, UnknownToolError
from toolserver.core.types import ToolDescriptor, ToolResult
from toolserver.mcp.bridge import CompletionSlot
from toolserver.mcp.registry import ToolRegistry

SCHEMA = {"type": "object", "properties": {}}


def _descriptor(name):
    return ToolDescriptor(name=name, description=f"{name} tool", input_schema=SCHEMA)


def test_register_rejects_duplicate_names():
    registry = ToolRegistry()
    registry.register(_descriptor("echo"), lambda arguments: "one")

    with pytest.raises(DuplicateToolError, match="echo"):
        registry.register(_descriptor("echo"), lambda arguments: "two")


def test_dispatch_unknown_tool_fails_before_any_handler_runs():
    registry = ToolRegistry()
    calls = []
    registry.register(_descriptor("echo"), lambda arguments: calls.append(arguments))

    with pytest.raises(UnknownToolError, match="Unknown tool: missing"):
        registry.dispatch("missing", {})

    assert calls == []


def test_every_builtin_tool_resolves_without_error(registry, invoke, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "a.txt").write_text("0123456789")
    arguments = {
        "evaluate": {"expression": "(+ 1 2)"},
        "hello": {},
        "read_file": {"path": "a.txt"},
        "write_file": {"path": "b.txt", "content": "x"},
        "list_directory": {},
        "execute_command": {"command": sys.executable, "args": ["-c", "pass"]},
        "file_info": {"path": "a.txt"},
        "create_directory": {"path": "sub"},
    }

    assert set(registry) == set(arguments)
    for name, args in arguments.items():
        result = invoke(name, **args)
        assert result.is_error is False, (name, result)


def test_dispatch_returns_before_handler_finishes():
    registry = ToolRegistry()
    release = threading.Event()
    registry.register(_descriptor("slow"), lambda arguments: release.wait(5) and "finished")

    slot = registry.dispatch("slow", {})

    assert isinstance(slot, CompletionSlot)
    assert slot.done is False
    release.set()
    assert slot.result(timeout=5).segments == ("finished",)


def test_handler_fault_becomes_error_result():
    registry = ToolRegistry()

    def broken(arguments):
        raise OSError("disk on fire")

    registry.register(_descriptor("broken"), broken)

    result = registry.dispatch("broken", {}).result(timeout=5)

    assert result == ToolResult(segments=("Error: disk on fire",), is_error=True)


def test_fault_does_not_poison_the_worker_pool():
    with ThreadPoolExecutor(max_workers=1) as executor:
        registry = ToolRegistry(executor=executor)
        registry.register(_descriptor("broken"), lambda arguments: 1 / 0)
        registry.register(_descriptor("echo"), lambda arguments: arguments["text"])

        failed = registry.dispatch("broken", {})
        succeeded = registry.dispatch("echo", {"text": "still alive"})

        assert failed.result(timeout=5).is_error is True
        assert succeeded.result(timeout=5).segments == ("still alive",)


def test_slot_resolves_only_once():
    slot = CompletionSlot("echo")

    assert slot.resolve(ToolResult(segments=("first",))) is True
    assert slot.resolve(ToolResult(segments=("second",))) is False
    assert slot.result().segments == ("first",)


def test_timeout_resolves_slot_with_error_and_discards_late_result():
    registry = ToolRegistry(timeout=0.05)
    release = threading.Event()
    finished = threading.Event()

    def hung(arguments):
        release.wait(5)
        finished.set()
        return "too late"

    registry.register(_descriptor("hung"), hung)

    slot = registry.dispatch("hung", {})
    result = slot.result(timeout=5)

    assert result.is_error is True
    assert result.text == "Error: Tool 'hung' timed out after 0.05 seconds"

    release.set()
    assert finished.wait(5)
    assert slot.result().text == result.text


def test_concurrent_invocations_complete_independently():
    registry = ToolRegistry()
    barrier = threading.Barrier(3, timeout=5)

    def meet(arguments):
        barrier.wait()
        return arguments["token"]

    registry.register(_descriptor("meet"), meet)

    slots = [registry.dispatch("meet", {"token": token}) for token in ("a", "b", "c")]

    assert sorted(slot.result(timeout=5).text for slot in slots) == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_slot_can_be_awaited():
    registry = ToolRegistry()
    registry.register(_descriptor("echo"), lambda arguments: arguments["text"])

    result = await registry.dispatch("echo", {"text": "hi"}).wait()

    assert result.segments == ("hi",)
