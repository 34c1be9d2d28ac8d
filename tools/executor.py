"""
Tool Executor
-------------
Validates input, invokes a registered tool, and normalizes every outcome
into a ToolResult.

This is the error-containment boundary between the model and the
backend: execute_tool() always returns a ToolResult and never raises,
whatever the tool does.

Order within one call: lookup -> validation -> execution -> error
classification. No extra timeout is imposed; tools and their callers
own execution-level timeouts.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional
import logging
import time

from pydantic import ValidationError

from core.errors import ErrorCategory, classify_exception, log_error
from infra.config import get_config

from .models import format_validation_error
from .registry import ToolContext, ToolRegistry, ToolResult


@dataclass
class ToolCallOutcome:
    """What the agent loop feeds back to the model for one tool call."""
    result: Any
    is_error: bool = False


ToolCallExecutor = Callable[[str, Any], Awaitable[ToolCallOutcome]]


class ToolExecutor:
    """
    Dispatches tool calls against a registry.

    Rules:
    - Unknown tools and invalid input fail without reaching the tool
    - Typed tool errors keep their message verbatim
    - Anything else is wrapped as "Tool execution failed: ..."
    - Domain errors are not logged in test mode
    """

    def __init__(self, registry: ToolRegistry, quiet: Optional[bool] = None):
        self.registry = registry
        self.quiet = get_config().is_test if quiet is None else quiet
        self._logger = logging.getLogger("aac.tools.executor")

    async def execute_tool(
        self,
        name: str,
        raw_input: Any,
        context: ToolContext,
    ) -> ToolResult:
        """
        Execute a tool by name with input validation.

        This is the ONLY entry point for tool execution.
        """
        tool = self.registry.get(name) if isinstance(name, str) else None
        if tool is None:
            log_error(self._logger, ErrorCategory.UNKNOWN_TOOL, f"Unknown tool: {name}")
            return ToolResult.fail(f"Unknown tool: {name}")

        try:
            validated = tool.input_model.model_validate(raw_input)
        except ValidationError as e:
            message = format_validation_error(e)
            log_error(self._logger, ErrorCategory.VALIDATION_ERROR, f"{name}: {message}")
            return ToolResult.fail(message)
        except Exception as e:
            return self._unexpected(name, e)

        start = time.perf_counter()
        try:
            result = await tool.execute(validated, context)
        except Exception as e:
            return self._failed(name, e)

        if not isinstance(result, ToolResult):
            return self._unexpected(
                name, TypeError(f"expected ToolResult, got {type(result).__name__}")
            )

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._logger.info(
            f"Executed {name} in {elapsed_ms:.1f}ms",
            extra={
                "tool_name": name,
                "execution_time_ms": elapsed_ms,
                "success": result.success,
            },
        )
        return result

    def _failed(self, name: str, error: Exception) -> ToolResult:
        """Typed tool errors keep their message; anything else is wrapped."""
        category = classify_exception(error)
        if category is ErrorCategory.DOMAIN_ERROR:
            if not self.quiet:
                log_error(self._logger, category, f"Tool execution error ({name}): {error}")
            return ToolResult.fail(str(error))

        log_error(self._logger, category, f"Error executing tool ({name}): {error}", exc_info=error)
        return ToolResult.fail(f"Tool execution failed: {error}")

    def _unexpected(self, name: str, error: Exception) -> ToolResult:
        log_error(
            self._logger,
            ErrorCategory.UNEXPECTED_ERROR,
            f"Unexpected error executing tool ({name}): {error}",
            exc_info=error,
        )
        return ToolResult.fail(f"Tool execution failed: {error}")

    def create_executor(self, context: ToolContext) -> ToolCallExecutor:
        """
        Adapter for the agent loop: (name, input) -> ToolCallOutcome.

        A failed tool comes back as its error text with is_error set, so
        the conversation continues and the model can explain or retry.
        """
        async def execute_tool_call(name: str, tool_input: Any) -> ToolCallOutcome:
            tool_result = await self.execute_tool(name, tool_input, context)

            if tool_result.success:
                data = tool_result.data
                return ToolCallOutcome(result=data if data is not None else "Success")
            return ToolCallOutcome(result=tool_result.error or "Unknown error", is_error=True)

        return execute_tool_call
