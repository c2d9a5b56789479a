"""Structlog logging for the tool server.

Standard output is the protocol stream, so every handler writes to standard
error or to a file. Tool handlers run on worker threads named
``tool-<name>``; the thread name is attached to each event so concurrent
invocations can be told apart in the log.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.types import Processor

from .config import ServerSettings, get_settings

# Library loggers that report every protocol request at INFO.
_CHATTY_LOGGERS = ("mcp", "fastmcp")

_CONFIGURED = False


def _shared_processors() -> list[Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CallsiteParameterAdder([CallsiteParameter.THREAD_NAME]),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _plain_text_renderer(_: Any, event_name: str, event_dict: dict[str, Any]) -> str:
    """Render ``<timestamp> [LEVEL] <thread>: <event> key=value ...``.

    The thread prefix is left out for the main thread.
    """

    timestamp = event_dict.pop("timestamp", datetime.now(tz=timezone.utc).isoformat())
    level = str(event_dict.pop("level", "info")).upper()
    thread = event_dict.pop("thread_name", None)
    event = event_dict.pop("event", "") or event_dict.pop("message", "") or event_name

    if thread and thread != "MainThread":
        event = f"{thread}: {event}"
    extras = " ".join(f"{key}={value}" for key, value in event_dict.items() if value is not None)
    return " ".join(part for part in (timestamp, f"[{level}]", event, extras) if part)


def _formatter() -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        # Records from fastmcp/mcp go through the same chain as our own.
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _plain_text_renderer,
        ],
    )


def _build_handlers(settings: ServerSettings) -> list[logging.Handler]:
    console_handler = logging.StreamHandler(sys.stderr)
    handlers: list[logging.Handler] = [console_handler]

    log_file = (settings.log_file or "").strip()
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(_formatter())
        handler.setLevel(settings.log_level)
    return handlers


def configure_logging() -> None:
    """Configure application-wide logging once."""

    global _CONFIGURED
    if _CONFIGURED and logging.getLogger().handlers:
        return

    settings = get_settings()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        handlers=_build_handlers(settings),
        level=settings.log_level,
        format="%(message)s",
    )

    if settings.log_level != "DEBUG":
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).debug(
        "logging_configured",
        env=settings.app_env,
        level=settings.log_level,
        log_file=settings.log_file or "stderr-only",
    )

    _CONFIGURED = True


def get_logger(*args: Any, **kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Return a configured structlog logger."""

    configure_logging()
    return structlog.get_logger(*args, **kwargs)
