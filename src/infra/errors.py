"""Custom exception hierarchy for the navigator runtime.

All application-specific exceptions inherit from NavigatorError,
which carries an error code for invocation response mapping.
"""

from __future__ import annotations

from collections.abc import Iterable


class NavigatorError(Exception):
    """Base exception for all navigator errors."""

    def __init__(self, message: str, *, code: str = "INTERNAL_ERROR") -> None:
        super().__init__(message)
        self.code = code

    @property
    def kind(self) -> str:
        """Error kind reported to the model; the exception class name."""
        return type(self).__name__


class ContextError(NavigatorError):
    """Errors in the context layer (provider wiring, snapshot construction)."""

    def __init__(self, message: str, *, code: str = "CONTEXT_ERROR") -> None:
        super().__init__(message, code=code)


class ToolError(NavigatorError):
    """Errors during tool registration or execution."""

    def __init__(self, message: str, *, code: str = "TOOL_ERROR") -> None:
        super().__init__(message, code=code)


class DuplicateToolError(ToolError):
    """A tool with the same name is already registered."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool already registered: {tool_name}", code="DUPLICATE_TOOL")
        self.tool_name = tool_name


class UnknownToolError(ToolError):
    """Invocation of a tool name the registry does not know."""

    def __init__(self, tool_name: str, available: Iterable[str] = ()) -> None:
        names = ", ".join(available) or "none"
        super().__init__(
            f"Tool not available: {tool_name} (available: {names})",
            code="TOOL_NOT_FOUND",
        )
        self.tool_name = tool_name


class InvalidArgumentsError(ToolError):
    """Arguments do not satisfy the tool's parameter schema."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message, code="INVALID_ARGUMENTS")
        self.field = field


class HandlerError(ToolError):
    """Fault raised inside a tool's own logic or while applying its effects."""

    def __init__(self, message: str, *, code: str = "HANDLER_ERROR") -> None:
        super().__init__(message, code=code)


class UnknownActionError(ToolError):
    """manage_ui_state was asked for an action outside its dispatch table."""

    def __init__(self, action: str, known_actions: Iterable[str] = ()) -> None:
        self.known_actions = tuple(known_actions)
        super().__init__(
            f"Unknown UI action: {action!r}. "
            f"Must be one of: {', '.join(self.known_actions)}",
            code="UNKNOWN_ACTION",
        )
        self.action = action


class ExecutionRejectedError(ToolError):
    """An execution guard refused the call before it reached the handler."""

    def __init__(self, message: str, *, code: str) -> None:
        super().__init__(message, code=code)
