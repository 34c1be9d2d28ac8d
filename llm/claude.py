"""
Claude Service
--------------
The model-calling collaborator: chat completions against the Anthropic
API with retries, typed errors and a tool-calling loop.

Rate limits, 5xx responses and connection failures are retried with
exponential backoff and jitter. Every other failure is wrapped in a
ClaudeError and raised at once.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional
import asyncio
import json
import logging
import random

import anthropic
from anthropic import AsyncAnthropic

from infra.config import get_api_key

from .types import ChatResponse, ModelTier, TokenUsage, ToolLoopResult, model_id

DEFAULT_MODEL = ModelTier.SONNET
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7

MAX_RETRIES = 3
INITIAL_RETRY_DELAY_MS = 1000
MAX_RETRY_DELAY_MS = 30000

DEFAULT_MAX_ITERATIONS = 10

logger = logging.getLogger("aac.llm.claude")


# =============================================================================
# Errors
# =============================================================================

class ClaudeError(Exception):
    """Any failure talking to the model provider."""

    def __init__(self, message: str, code: str, retryable: bool = False, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable
        self.status_code = status_code


class ClaudeRateLimitError(ClaudeError):
    def __init__(self, message: str, retry_after_ms: Optional[int] = None):
        super().__init__(message, "RATE_LIMIT", retryable=True, status_code=429)
        self.retry_after_ms = retry_after_ms


class ClaudeAPIError(ClaudeError):
    """Provider returned an error status. 5xx is retryable."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message, "API_ERROR", retryable=status_code >= 500, status_code=status_code)


def _retry_after_ms(error: anthropic.RateLimitError) -> Optional[int]:
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    value = headers.get("retry-after") if headers is not None else None
    try:
        return int(value) * 1000 if value is not None else None
    except (TypeError, ValueError):
        return None


def wrap_error(error: BaseException) -> ClaudeError:
    """Translate SDK (or arbitrary) exceptions into the ClaudeError family."""
    if isinstance(error, ClaudeError):
        return error
    if isinstance(error, anthropic.RateLimitError):
        return ClaudeRateLimitError(str(error), _retry_after_ms(error))
    if isinstance(error, anthropic.APIStatusError):
        return ClaudeAPIError(str(error), error.status_code)
    if isinstance(error, anthropic.APIError):
        return ClaudeAPIError(str(error), 500)
    return ClaudeError(str(error), "UNKNOWN_ERROR", retryable=False, status_code=500)


def is_retryable(error: BaseException) -> bool:
    if isinstance(error, (anthropic.RateLimitError, anthropic.InternalServerError, anthropic.APIConnectionError)):
        return True
    if isinstance(error, ClaudeError):
        return error.retryable
    return False


# =============================================================================
# Service
# =============================================================================

ToolCallHandler = Callable[[str, Any], Awaitable[Any]]


class ClaudeService:
    """
    Async wrapper around the Anthropic messages API.

    Usage:
        service = ClaudeService()
        response = await service.chat([{"role": "user", "content": "Hi"}])
        print(response.text)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: ModelTier = DEFAULT_MODEL,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
        default_temperature: float = DEFAULT_TEMPERATURE,
        max_retries: int = MAX_RETRIES,
    ):
        api_key = api_key or get_api_key()
        if not api_key:
            raise ClaudeError("ANTHROPIC_API_KEY is required", "MISSING_API_KEY")

        self.client = AsyncAnthropic(api_key=api_key)
        self._configure(default_model, default_max_tokens, default_temperature, max_retries)

    def _configure(self, default_model, default_max_tokens, default_temperature, max_retries) -> None:
        self.default_model = default_model
        self.default_max_tokens = default_max_tokens
        self.default_temperature = default_temperature
        self.max_retries = max_retries
        self._sleep = asyncio.sleep

    @classmethod
    def with_client(
        cls,
        client: Any,
        default_model: ModelTier = DEFAULT_MODEL,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
        default_temperature: float = DEFAULT_TEMPERATURE,
        max_retries: int = MAX_RETRIES,
    ) -> "ClaudeService":
        """Build a service around an existing client (tests, custom transports)."""
        service = cls.__new__(cls)
        service.client = client
        service._configure(default_model, default_max_tokens, default_temperature, max_retries)
        return service

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        system: Optional[str] = None,
        model: Any = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        stop_sequences: Optional[List[str]] = None,
    ) -> ChatResponse:
        """Single non-streaming completion."""
        params: Dict[str, Any] = {
            "model": model_id(model if model is not None else self.default_model),
            "max_tokens": max_tokens if max_tokens is not None else self.default_max_tokens,
            "temperature": temperature if temperature is not None else self.default_temperature,
            "messages": messages,
        }
        if system is not None:
            params["system"] = system
        if tools:
            params["tools"] = [_anthropic_tool(t) for t in tools]
        if stop_sequences:
            params["stop_sequences"] = stop_sequences

        response = await self._with_retry(lambda: self.client.messages.create(**params))

        return ChatResponse(
            content=[_content_block(block) for block in response.content],
            usage=TokenUsage.from_anthropic(response.usage),
            stop_reason=getattr(response, "stop_reason", None),
            model=getattr(response, "model", params["model"]),
        )

    async def run_tool_loop(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        execute_tool_call: ToolCallHandler,
        system: Optional[str] = None,
        model: Any = None,
        max_tokens: Optional[int] = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> ToolLoopResult:
        """
        Chat until the model stops calling tools.

        Each tool call goes through `execute_tool_call(name, input)`, which
        returns an object with `result` and `is_error` (see
        ToolExecutor.create_executor). Results are fed back as tool_result
        blocks; a failed call is marked is_error and the loop continues.

        Raises:
            ClaudeError: MAX_ITERATIONS_EXCEEDED past `max_iterations`,
                or any provider failure from chat()
        """
        conversation = list(messages)
        total_usage = TokenUsage()

        for iteration in range(1, max_iterations + 1):
            response = await self.chat(
                conversation,
                system=system,
                model=model,
                max_tokens=max_tokens,
                tools=tools,
            )
            total_usage.add(response.usage)
            conversation.append({"role": "assistant", "content": response.content})

            tool_calls = response.tool_calls
            if not tool_calls or response.stop_reason == "end_turn":
                return ToolLoopResult(
                    content=response.content,
                    messages=conversation,
                    total_usage=total_usage,
                    iterations=iteration,
                )

            results = [await self._run_tool_call(call, execute_tool_call) for call in tool_calls]
            conversation.append({"role": "user", "content": results})

        raise ClaudeError(
            f"Tool loop exceeded maximum iterations ({max_iterations})",
            "MAX_ITERATIONS_EXCEEDED",
        )

    async def _run_tool_call(self, call: Dict[str, Any], execute_tool_call: ToolCallHandler) -> Dict[str, Any]:
        block: Dict[str, Any] = {"type": "tool_result", "tool_use_id": call.get("id")}
        try:
            outcome = await execute_tool_call(call.get("name"), call.get("input"))
        except Exception as e:
            logger.error(f"Tool call handler raised for {call.get('name')}: {e}", exc_info=e)
            block["content"] = f"Error: {e}"
            block["is_error"] = True
            return block

        result = getattr(outcome, "result", outcome)
        block["content"] = result if isinstance(result, str) else json.dumps(result, default=str)
        if getattr(outcome, "is_error", False):
            block["is_error"] = True
        return block

    async def _with_retry(self, call: Callable[[], Awaitable[Any]]) -> Any:
        delay_ms = INITIAL_RETRY_DELAY_MS

        for attempt in range(self.max_retries + 1):
            try:
                return await call()
            except Exception as e:
                if not is_retryable(e) or attempt >= self.max_retries:
                    raise wrap_error(e) from e

                logger.warning(
                    f"Claude API error (attempt {attempt + 1}/{self.max_retries + 1}), "
                    f"retrying in {delay_ms:.0f}ms: {e}"
                )
                await self._sleep(delay_ms / 1000)
                delay_ms = min(delay_ms * 2 + random.random() * 1000, MAX_RETRY_DELAY_MS)


def _anthropic_tool(tool: Dict[str, Any]) -> Dict[str, Any]:
    """Accept both {inputSchema} definitions and ready {input_schema} dicts."""
    schema = tool.get("input_schema", tool.get("inputSchema", {"type": "object", "properties": {}}))
    return {"name": tool["name"], "description": tool.get("description", ""), "input_schema": schema}


def _content_block(block: Any) -> Dict[str, Any]:
    if isinstance(block, dict):
        return dict(block)

    kind = getattr(block, "type", None)
    if kind == "text":
        return {"type": "text", "text": block.text}
    if kind == "tool_use":
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    if hasattr(block, "model_dump"):
        return block.model_dump()
    return {"type": kind}
