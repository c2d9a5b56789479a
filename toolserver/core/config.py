"""Configuration management for the tool server."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_REPO_ROOT = Path(__file__).resolve().parents[2]
# Repo-root .env first, then whatever the process was started from.
_ENV_FILE_CANDIDATES: tuple[str, ...] = (
    str(_REPO_ROOT / ".env"),
    ".env",
)


class ServerSettings(BaseSettings):
    """Centralised configuration derived from environment variables."""

    app_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: str | None = Field(
        None,
        description="Plain-text log file path; None or empty disables file output",
    )

    server_name: str = Field("file-command-server", description="Advertised MCP server name")
    server_version: str = Field("0.2.0", description="Server version reported at startup")

    max_workers: int | None = Field(
        None,
        ge=1,
        description="Size of the shared worker pool; None spawns one thread per invocation",
    )
    tool_timeout_seconds: float | None = Field(
        None,
        gt=0,
        description="Deadline after which an unfinished invocation resolves as an error",
    )
    surface_captured_output: bool = Field(
        False,
        description="Append captured stdout/stderr to results as extra text segments",
    )

    model_config = SettingsConfigDict(
        env_prefix="TOOLSERVER_",
        env_file=_ENV_FILE_CANDIDATES,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> ServerSettings:
    """Return a cached ServerSettings instance."""

    return ServerSettings()


def resolved_env_file() -> str | None:
    """Return the first readable .env file from the candidate list."""

    for candidate in _ENV_FILE_CANDIDATES:
        path = Path(candidate).expanduser()
        if path.is_file():
            return str(path)
    return None


def env_file_candidates() -> tuple[str, ...]:
    """Expose configured env file search order for diagnostics."""

    return _ENV_FILE_CANDIDATES
