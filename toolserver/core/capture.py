"""Per-invocation capture of standard output and standard error.

``sys.stdout``/``sys.stderr`` are process-wide, so capturing them with
``contextlib.redirect_stdout`` would let concurrent invocations steal each
other's text. Instead, while at least one capture is active the real streams
are replaced by proxies that look up the destination buffer in a
``ContextVar``. Each worker thread runs in its own context, so a capture only
ever sees what its own computation printed. Writes from threads without an
active capture pass straight through to the original stream.
"""

from __future__ import annotations

import io
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, TextIO, TypeVar

from .types import CapturedOutput

T = TypeVar("T")

_stdout_buffer: ContextVar[io.StringIO | None] = ContextVar("toolserver_stdout", default=None)
_stderr_buffer: ContextVar[io.StringIO | None] = ContextVar("toolserver_stderr", default=None)


class _ContextLocalStream:
    """File-like proxy writing to the context's buffer, or to the original stream."""

    def __init__(self, buffer: ContextVar[io.StringIO | None], fallback: TextIO) -> None:
        self._buffer = buffer
        self._fallback = fallback

    def _target(self) -> TextIO:
        buffer = self._buffer.get()
        return buffer if buffer is not None else self._fallback

    def write(self, text: str) -> int:
        return self._target().write(text)

    def writelines(self, lines: Any) -> None:
        self._target().writelines(lines)

    def flush(self) -> None:
        self._target().flush()

    def __getattr__(self, name: str) -> Any:
        return getattr(self._target(), name)


@dataclass
class _Installation:
    lock: threading.Lock = field(default_factory=threading.Lock)
    active: int = 0
    original_stdout: TextIO | None = None
    original_stderr: TextIO | None = None


_installation = _Installation()


def _acquire_streams() -> None:
    with _installation.lock:
        if _installation.active == 0:
            _installation.original_stdout = sys.stdout
            _installation.original_stderr = sys.stderr
            sys.stdout = _ContextLocalStream(_stdout_buffer, sys.stdout)  # type: ignore[assignment]
            sys.stderr = _ContextLocalStream(_stderr_buffer, sys.stderr)  # type: ignore[assignment]
        _installation.active += 1


def _release_streams() -> None:
    with _installation.lock:
        _installation.active -= 1
        if _installation.active > 0:
            return
        # Leave the streams alone if someone else swapped them in the meantime.
        if isinstance(sys.stdout, _ContextLocalStream):
            sys.stdout = _installation.original_stdout  # type: ignore[assignment]
        if isinstance(sys.stderr, _ContextLocalStream):
            sys.stderr = _installation.original_stderr  # type: ignore[assignment]
        _installation.original_stdout = None
        _installation.original_stderr = None


@dataclass(slots=True)
class CaptureBuffers:
    """Buffers receiving one capture's output."""

    stdout: io.StringIO = field(default_factory=io.StringIO)
    stderr: io.StringIO = field(default_factory=io.StringIO)


@contextmanager
def captured_streams() -> Iterator[CaptureBuffers]:
    """Redirect this context's stdout/stderr into fresh buffers.

    The redirection is undone on every exit path. The yielded buffers stay
    readable after the block, including when it raised.
    """

    buffers = CaptureBuffers()
    _acquire_streams()
    out_token = _stdout_buffer.set(buffers.stdout)
    err_token = _stderr_buffer.set(buffers.stderr)
    try:
        yield buffers
    finally:
        _stdout_buffer.reset(out_token)
        _stderr_buffer.reset(err_token)
        _release_streams()


def capture_output(computation: Callable[[], T]) -> CapturedOutput[T]:
    """Run ``computation`` and return its value along with what it printed.

    Exceptions raised by the computation propagate unchanged once the
    original streams are back in place.
    """

    with captured_streams() as buffers:
        value = computation()
    return CapturedOutput(
        value=value,
        stdout_text=buffers.stdout.getvalue(),
        stderr_text=buffers.stderr.getvalue(),
    )


def is_capturing() -> bool:
    """Return True when the current context has an active capture."""

    return _stdout_buffer.get() is not None
