"""Core infrastructure utilities."""

from .config import ServerSettings, get_settings
from .logging_config import configure_logging, get_logger

__all__ = [
    "ServerSettings",
    "configure_logging",
    "get_logger",
    "get_settings",
]
