"""Run the tool server on the STDIO transport.

Standard output carries the protocol, so the startup banner and all logs go
to standard error.
"""

from __future__ import annotations

import sys

from pydantic import ValidationError

from toolserver.core.config import env_file_candidates, get_settings, resolved_env_file
from toolserver.core.exceptions import ConfigurationError

BANNER = (
    "Enhanced MCP Server with file operations and command execution "
    "running on STDIO transport."
)


def main() -> None:
    try:
        settings = get_settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid server configuration: {exc}") from exc

    from toolserver.core.logging_config import configure_logging, get_logger
    from toolserver.mcp.server import build_server, get_registry

    configure_logging()
    logger = get_logger(__name__)

    registry = get_registry()
    server = build_server(registry, settings)
    logger.info(
        "server_starting",
        name=settings.server_name,
        version=settings.server_version,
        env=settings.app_env,
        env_file=resolved_env_file() or "not-found",
        env_candidates=list(env_file_candidates()),
        tools=len(registry),
        max_workers=settings.max_workers or "per-invocation",
        timeout_seconds=settings.tool_timeout_seconds,
    )
    print(BANNER, file=sys.stderr)

    try:
        # Blocks until the client closes the stream.
        server.run(transport="stdio")
    finally:
        registry.close()
        logger.info("server_shutdown")


if __name__ == "__main__":
    main()
