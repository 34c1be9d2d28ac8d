# Tools module - Tool registry and execution
# Each tool: name, pydantic input model, async executor
# The executor is the firewall between the model and the backend

from .registry import (
    ToolRegistry, Tool, ToolContext, ToolResult,
    create_tool, create_read_only_tool,
)
from .executor import ToolExecutor, ToolCallOutcome
from .introspect import to_input_schema, convert, convert_object
from .errors import (
    ToolExecutionError, ToolError, DuplicateToolError,
    UnauthorizedError, ChildNotFoundError, SessionNotFoundError,
    GoalNotFoundError, ChildIdRequiredError, UserIdRequiredError,
    DatabaseError,
)
from .store import TherapyStore, InMemoryTherapyStore
from .catalog import create_default_tools

__all__ = [
    "ToolRegistry",
    "Tool",
    "ToolContext",
    "ToolResult",
    "create_tool",
    "create_read_only_tool",
    "ToolExecutor",
    "ToolCallOutcome",
    "to_input_schema",
    "convert",
    "convert_object",
    "ToolExecutionError",
    "ToolError",
    "DuplicateToolError",
    "UnauthorizedError",
    "ChildNotFoundError",
    "SessionNotFoundError",
    "GoalNotFoundError",
    "ChildIdRequiredError",
    "UserIdRequiredError",
    "DatabaseError",
    "TherapyStore",
    "InMemoryTherapyStore",
    "create_default_tools",
]
