"""Shared helpers for tool implementations."""

from __future__ import annotations

from pathlib import Path

from ...core.exceptions import HandlerFault


def existing_path(path: str, missing_message: str) -> Path:
    """Return ``path`` as a Path, raising HandlerFault if it does not exist."""

    resolved = Path(path)
    if not resolved.exists():
        raise HandlerFault(f"{missing_message}: {path}")
    return resolved
