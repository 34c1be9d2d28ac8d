"""
Tool Errors
-----------
Typed errors a tool raises for expected failures. The dispatcher
recognizes ToolExecutionError (and everything below it) and passes
the message through verbatim.
"""

from typing import Optional


class ToolExecutionError(Exception):
    """Recognized, expected failure while executing a tool."""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.tool_name = tool_name
        self.original_error = original_error


class ToolError(ToolExecutionError):
    """Base class for domain errors with a stable error code."""

    code = "TOOL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class UnauthorizedError(ToolError):
    """The user has no access to the requested resource."""

    code = "UNAUTHORIZED"

    def __init__(self, message: str = "You don't have access to this resource"):
        super().__init__(message)


class ChildNotFoundError(ToolError):
    code = "CHILD_NOT_FOUND"

    def __init__(self, child_id: str):
        super().__init__(f"Child not found: {child_id}")
        self.child_id = child_id


class SessionNotFoundError(ToolError):
    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class GoalNotFoundError(ToolError):
    code = "GOAL_NOT_FOUND"

    def __init__(self, goal_id: str):
        super().__init__(f"Goal not found: {goal_id}")
        self.goal_id = goal_id


class ChildIdRequiredError(ToolError):
    """A resource needs a child id that the call did not provide."""

    code = "CHILD_ID_REQUIRED"

    def __init__(self, resource_type: str):
        super().__init__(f"Child ID is required to access {resource_type}")


class UserIdRequiredError(ToolError):
    code = "USER_ID_REQUIRED"

    def __init__(self):
        super().__init__("User ID is required")


class DatabaseError(ToolError):
    """A data-store query failed."""

    code = "DATABASE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)


class DuplicateToolError(ValueError):
    """Raised by the registry when a tool name is already taken."""

    def __init__(self, name: str):
        super().__init__(f'Tool "{name}" is already registered')
        self.name = name
