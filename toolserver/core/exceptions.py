"""Custom exception hierarchy for the tool server."""


class ToolServerError(Exception):
    """Base exception for server-level issues."""


class ConfigurationError(ToolServerError):
    """Raised when configuration is invalid or missing."""


class DuplicateToolError(ToolServerError, ValueError):
    """Raised when two tool descriptors are registered under the same name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool already registered: {name}")
        self.name = name


class UnknownToolError(ToolServerError, LookupError):
    """Raised when an invocation names a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class HandlerFault(ToolServerError):
    """Raised by tool handlers for expected, user-facing failures."""


class ExpressionError(ToolServerError):
    """Base class for failures of the expression language."""


class ReadError(ExpressionError):
    """Raised when expression source cannot be parsed."""


class EvaluationError(ExpressionError):
    """Raised when a parsed expression cannot be evaluated."""
