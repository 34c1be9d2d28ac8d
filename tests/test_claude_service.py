"""
Claude Service Tests
--------------------
The Anthropic client is replaced by a scripted fake; nothing touches
the network.
"""

import anthropic
import httpx
import pytest

from llm.claude import (
    ClaudeAPIError,
    ClaudeError,
    ClaudeRateLimitError,
    ClaudeService,
    is_retryable,
    wrap_error,
)
from llm.types import ModelTier, TokenUsage
from tools.executor import ToolCallOutcome

from conftest import FakeAnthropicClient, sdk_response

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def status_error(cls, status, headers=None):
    response = httpx.Response(status, headers=headers or {}, request=REQUEST)
    return cls(f"status {status}", response=response, body=None)


def make_service(script, **kwargs):
    service = ClaudeService.with_client(FakeAnthropicClient(script), **kwargs)
    service.delays = []

    async def no_sleep(seconds):
        service.delays.append(seconds)

    service._sleep = no_sleep
    return service


def text_block(text):
    return {"type": "text", "text": text}


def tool_use_block(call_id, name, tool_input):
    return {"type": "tool_use", "id": call_id, "name": name, "input": tool_input}


# =============================================================================
# Construction
# =============================================================================

class TestConstruction:

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with pytest.raises(ClaudeError) as info:
            ClaudeService()

        assert info.value.code == "MISSING_API_KEY"
        assert info.value.retryable is False

    def test_explicit_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        service = ClaudeService(api_key="sk-test")

        assert service.default_model is ModelTier.SONNET
        assert service.max_retries == 3


# =============================================================================
# Chat
# =============================================================================

class TestChat:

    async def test_defaults(self):
        service = make_service([sdk_response(text_block("Hello"))])

        response = await service.chat([{"role": "user", "content": "Hi"}])

        [params] = service.client.messages.calls
        assert params == {
            "model": "claude-sonnet-4-20250514",
            "max_tokens": 4096,
            "temperature": 0.7,
            "messages": [{"role": "user", "content": "Hi"}],
        }
        assert response.text == "Hello"
        assert response.usage == TokenUsage(10, 5)
        assert response.stop_reason == "end_turn"

    async def test_overrides_and_tools(self):
        service = make_service([sdk_response(text_block("ok"))])
        tools = [{
            "name": "echo",
            "description": "Echo",
            "inputSchema": {"type": "object", "properties": {"text": {"type": "string"}}},
        }]

        await service.chat(
            [{"role": "user", "content": "Hi"}],
            system="Be brief",
            model=ModelTier.HAIKU,
            max_tokens=20,
            temperature=0,
            tools=tools,
            stop_sequences=["\n"],
        )

        [params] = service.client.messages.calls
        assert params["model"] == "claude-3-5-haiku-20241022"
        assert params["system"] == "Be brief"
        assert params["max_tokens"] == 20
        assert params["temperature"] == 0
        assert params["stop_sequences"] == ["\n"]
        assert params["tools"] == [{
            "name": "echo",
            "description": "Echo",
            "input_schema": {"type": "object", "properties": {"text": {"type": "string"}}},
        }]

    async def test_blocks_become_dicts(self):
        service = make_service([sdk_response(
            text_block("Let me look."),
            tool_use_block("t1", "get_child", {"childId": "abc"}),
            stop_reason="tool_use",
        )])

        response = await service.chat([{"role": "user", "content": "Sam?"}])

        assert response.tool_calls == [tool_use_block("t1", "get_child", {"childId": "abc"})]
        assert response.text == "Let me look."

    async def test_cache_usage_read(self):
        service = make_service([sdk_response(text_block("ok"), cache_read_input_tokens=7)])

        response = await service.chat([{"role": "user", "content": "Hi"}])

        assert response.usage.cache_read_input_tokens == 7


# =============================================================================
# Retries and errors
# =============================================================================

class TestRetry:

    async def test_retries_then_succeeds(self):
        service = make_service([
            status_error(anthropic.RateLimitError, 429),
            status_error(anthropic.InternalServerError, 503),
            sdk_response(text_block("finally")),
        ])

        response = await service.chat([{"role": "user", "content": "Hi"}])

        assert response.text == "finally"
        assert len(service.client.messages.calls) == 3
        assert service.delays[0] == pytest.approx(1.0)
        assert 2.0 <= service.delays[1] <= 3.0

    async def test_retryable_claude_error(self):
        service = make_service([
            ClaudeError("flaky", "API_ERROR", retryable=True),
            sdk_response(text_block("ok")),
        ])

        assert (await service.chat([{"role": "user", "content": "Hi"}])).text == "ok"

    async def test_gives_up_after_max_retries(self):
        service = make_service(
            [status_error(anthropic.InternalServerError, 503) for _ in range(2)],
            max_retries=1,
        )

        with pytest.raises(ClaudeAPIError) as info:
            await service.chat([{"role": "user", "content": "Hi"}])

        assert info.value.status_code == 503
        assert info.value.retryable is True
        assert len(service.client.messages.calls) == 2

    async def test_client_error_not_retried(self):
        service = make_service([status_error(anthropic.BadRequestError, 400)])

        with pytest.raises(ClaudeAPIError) as info:
            await service.chat([{"role": "user", "content": "Hi"}])

        assert info.value.status_code == 400
        assert info.value.code == "API_ERROR"
        assert service.delays == []

    async def test_unknown_error_wrapped(self):
        service = make_service([ValueError("weird")])

        with pytest.raises(ClaudeError) as info:
            await service.chat([{"role": "user", "content": "Hi"}])

        assert info.value.code == "UNKNOWN_ERROR"
        assert len(service.client.messages.calls) == 1

    async def test_delay_is_capped(self):
        service = make_service(
            [ClaudeError("flaky", "API_ERROR", retryable=True) for _ in range(8)]
            + [sdk_response(text_block("ok"))],
            max_retries=8,
        )

        await service.chat([{"role": "user", "content": "Hi"}])

        assert max(service.delays) <= 30.0


class TestErrorMapping:

    def test_rate_limit(self):
        error = wrap_error(status_error(anthropic.RateLimitError, 429, {"retry-after": "2"}))

        assert isinstance(error, ClaudeRateLimitError)
        assert error.code == "RATE_LIMIT"
        assert error.status_code == 429
        assert error.retry_after_ms == 2000
        assert error.retryable is True

    def test_connection_error(self):
        error = wrap_error(anthropic.APIConnectionError(request=REQUEST))

        assert isinstance(error, ClaudeAPIError)
        assert error.status_code == 500

    def test_already_wrapped_passes_through(self):
        original = ClaudeAPIError("bad", 404)

        assert wrap_error(original) is original

    @pytest.mark.parametrize("error, expected", [
        (ClaudeAPIError("bad gateway", 502), True),
        (ClaudeAPIError("not found", 404), False),
        (ClaudeRateLimitError("slow down"), True),
        (ValueError("nope"), False),
    ])
    def test_is_retryable(self, error, expected):
        assert is_retryable(error) is expected

    def test_sdk_errors_retryable(self):
        assert is_retryable(status_error(anthropic.RateLimitError, 429))
        assert is_retryable(status_error(anthropic.InternalServerError, 500))
        assert is_retryable(anthropic.APIConnectionError(request=REQUEST))
        assert not is_retryable(status_error(anthropic.BadRequestError, 400))


# =============================================================================
# Tool loop
# =============================================================================

class TestToolLoop:

    async def test_tool_round_trip(self):
        service = make_service([
            sdk_response(
                tool_use_block("t1", "echo", {"text": "hi"}),
                tool_use_block("t2", "missing", {}),
                stop_reason="tool_use",
            ),
            sdk_response(text_block("All done"), input_tokens=20, output_tokens=8),
        ])
        seen = []

        async def handler(name, tool_input):
            seen.append((name, tool_input))
            if name == "echo":
                return ToolCallOutcome(result={"echo": tool_input["text"]})
            return ToolCallOutcome(result=f"Unknown tool: {name}", is_error=True)

        result = await service.run_tool_loop(
            [{"role": "user", "content": "Echo hi"}],
            tools=[],
            execute_tool_call=handler,
        )

        assert seen == [("echo", {"text": "hi"}), ("missing", {})]
        assert result.iterations == 2
        assert result.content == [text_block("All done")]
        assert result.total_usage == TokenUsage(30, 13)

        tool_results = result.messages[2]
        assert tool_results["role"] == "user"
        assert tool_results["content"] == [
            {"type": "tool_result", "tool_use_id": "t1", "content": '{"echo": "hi"}'},
            {"type": "tool_result", "tool_use_id": "t2", "content": "Unknown tool: missing", "is_error": True},
        ]

    async def test_no_tool_calls_returns_at_once(self):
        service = make_service([sdk_response(text_block("Hi!"))])

        async def handler(name, tool_input):
            raise AssertionError("should not be called")

        result = await service.run_tool_loop([{"role": "user", "content": "Hi"}], [], handler)

        assert result.iterations == 1
        assert len(result.messages) == 2

    async def test_handler_exception_becomes_error_result(self):
        service = make_service([
            sdk_response(tool_use_block("t1", "echo", {}), stop_reason="tool_use"),
            sdk_response(text_block("Sorry")),
        ])

        async def handler(name, tool_input):
            raise RuntimeError("boom")

        result = await service.run_tool_loop([{"role": "user", "content": "Hi"}], [], handler)

        assert result.messages[2]["content"] == [
            {"type": "tool_result", "tool_use_id": "t1", "content": "Error: boom", "is_error": True},
        ]

    async def test_max_iterations(self):
        service = make_service([
            sdk_response(tool_use_block(f"t{i}", "echo", {}), stop_reason="tool_use")
            for i in range(2)
        ])

        async def handler(name, tool_input):
            return ToolCallOutcome(result="ok")

        with pytest.raises(ClaudeError) as info:
            await service.run_tool_loop([{"role": "user", "content": "Hi"}], [], handler, max_iterations=2)

        assert info.value.code == "MAX_ITERATIONS_EXCEEDED"
