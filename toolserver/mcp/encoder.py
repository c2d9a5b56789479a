"""Conversion of handler outcomes into tool results."""

from __future__ import annotations

from typing import Any

from ..core.types import CapturedOutput, ToolResult


def text_result(text: str) -> ToolResult:
    return ToolResult(segments=(text,), is_error=False)


def error_result(message: str) -> ToolResult:
    return ToolResult(segments=(f"Error: {message}",), is_error=True)


def fault_message(exc: BaseException) -> str:
    """Return the user-facing message for a raised fault."""

    return str(exc) or exc.__class__.__name__


def encode(outcome: Any, *, include_captured: bool = False) -> ToolResult:
    """Turn a handler's return value into a ToolResult.

    - a ``ToolResult`` is passed through unchanged, which lets handlers
      return several segments or report a result-level failure;
    - a ``CapturedOutput`` yields the display form of its value; the
      captured text is dropped unless ``include_captured`` is set;
    - anything else yields one segment with its display form.
    """

    if isinstance(outcome, ToolResult):
        return outcome
    if isinstance(outcome, CapturedOutput):
        segments = [_display(outcome.value)]
        if include_captured:
            if outcome.stdout_text:
                segments.append(f"STDOUT:\n{outcome.stdout_text}")
            if outcome.stderr_text:
                segments.append(f"STDERR:\n{outcome.stderr_text}")
        return ToolResult(segments=tuple(segments), is_error=False)
    return text_result(_display(outcome))


def encode_fault(exc: BaseException) -> ToolResult:
    return error_result(fault_message(exc))


def _display(value: Any) -> str:
    return "" if value is None else str(value)
