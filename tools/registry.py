"""
Tool Registry
-------------
Named, schema-described operations the assistant's model may call.
Each tool is unit-testable without the LLM.

The registry is a plain in-memory map owned by whoever constructs it.
There is no module-level instance; pass the registry to the executor
and the agent loop explicitly.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type
import logging

from pydantic import BaseModel

from .errors import DuplicateToolError
from .introspect import to_input_schema


@dataclass(frozen=True)
class ToolContext:
    """
    Per-request context built by the authorization layer.

    Opaque to the registry and the executor; only tools read it.
    """
    user_id: str
    child_id: Optional[str] = None
    family_id: Optional[str] = None
    conversation_id: Optional[str] = None


@dataclass
class ToolResult:
    """Uniform success/failure envelope returned by every tool execution."""
    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}

    def __repr__(self) -> str:
        status = "✓" if self.success else "✗"
        return f"ToolResult({status} {self.data if self.success else self.error!r})"


ToolFunction = Callable[[Any, ToolContext], Awaitable[ToolResult]]


@dataclass
class Tool:
    """
    Tool definition.

    Each tool defines:
    - A globally unique name
    - A description written for the model
    - A pydantic model describing (and validating) its input
    - An async execute function taking the validated model and context
    """
    name: str
    description: str
    input_model: Type[BaseModel]
    execute: ToolFunction
    category: str = "general"

    @property
    def input_schema(self) -> Dict[str, Any]:
        """Capability descriptor derived from the input model."""
        return to_input_schema(self.input_model)

    def to_definition(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    def __repr__(self) -> str:
        return f"Tool(name={self.name}, category={self.category})"


class ToolRegistry:
    """
    Registry for all available tools.

    Names are unique: registering a name twice is rejected, never
    silently overwritten.
    """

    def __init__(self):
        self._tools: Dict[str, Tool] = {}
        self._logger = logging.getLogger("aac.tools.registry")

    def register(self, tool: Tool) -> None:
        """Register a tool. Raises DuplicateToolError if the name is taken."""
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)

        self._tools[tool.name] = tool
        self._logger.debug(f"Registered tool: {tool.name} ({tool.category})")

    def unregister(self, name: str) -> bool:
        """Unregister a tool. Returns whether one existed."""
        if name in self._tools:
            del self._tools[name]
            return True
        return False

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def list_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def list_by_category(self, category: str) -> List[Tool]:
        return [t for t in self._tools.values() if t.category == category]

    def list_definitions(self) -> List[Dict[str, Any]]:
        """All tools as {name, description, inputSchema} for advertisement."""
        return [tool.to_definition() for tool in self._tools.values()]

    def to_anthropic_tools(self) -> List[Dict[str, Any]]:
        """All tools in the tool-calling wire shape {name, description, input_schema}."""
        return [
            {
                "name": definition["name"],
                "description": definition["description"],
                "input_schema": definition["inputSchema"],
            }
            for definition in self.list_definitions()
        ]

    def clear(self) -> None:
        """Remove every registration."""
        self._tools.clear()

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools


def create_tool(
    name: str,
    description: str,
    input_model: Type[BaseModel],
    execute: ToolFunction,
    category: str = "general",
) -> Tool:
    """Create a tool definition."""
    return Tool(
        name=name,
        description=description,
        input_model=input_model,
        execute=execute,
        category=category,
    )


def create_read_only_tool(
    name: str,
    description: str,
    input_model: Type[BaseModel],
    get_data: Callable[[Any, ToolContext], Awaitable[Any]],
    category: str = "read",
) -> Tool:
    """
    Create a tool that only returns data.

    Whatever `get_data` returns becomes the success payload; any error
    it raises becomes a failure result carrying the error's message.
    """
    async def execute(validated: Any, context: ToolContext) -> ToolResult:
        try:
            data = await get_data(validated, context)
        except Exception as e:
            return ToolResult.fail(str(e))
        return ToolResult.ok(data)

    return create_tool(name, description, input_model, execute, category=category)
