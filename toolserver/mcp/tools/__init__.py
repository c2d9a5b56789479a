"""Built-in tool registrations grouped by domain."""

from . import evaluate, greeting, files, commands  # noqa: F401

__all__ = ["evaluate", "greeting", "files", "commands"]
