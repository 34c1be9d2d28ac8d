"""
Tool Executor Tests
-------------------
The dispatcher is the error-containment boundary: every call resolves
to a ToolResult, whatever the tool does.

Tests cover:
- Unknown tools and invalid input
- Domain errors pass through verbatim, anything else is wrapped
- Logging severity per failure kind
- The agent-loop adapter
"""

import asyncio
import logging

import pytest
from pydantic import BaseModel, Field, model_validator

from llm.claude import ClaudeAPIError
from tools.errors import ChildNotFoundError, ToolExecutionError, UnauthorizedError
from tools.executor import ToolCallOutcome, ToolExecutor
from tools.registry import ToolContext, ToolResult, create_tool


class EchoInput(BaseModel):
    text: str


class LimitInput(BaseModel):
    name: str = Field(min_length=2)
    limit: int = Field(ge=1, le=100)


async def echo(data: EchoInput, context: ToolContext) -> ToolResult:
    return ToolResult.ok(data.text)


def register(registry, name, execute, model=EchoInput):
    registry.register(create_tool(name, f"{name} tool", model, execute))


class TestEndToEnd:

    async def test_echo(self, registry, executor, ctx):
        register(registry, "echo", echo)

        result = await executor.execute_tool("echo", {"text": "hi"}, ctx)

        assert result.success is True
        assert result.data == "hi"

    async def test_tool_result_returned_unchanged(self, registry, executor, ctx):
        expected = ToolResult.fail("business rule said no")

        async def refuse(data, context):
            return expected

        register(registry, "refuse", refuse)

        assert await executor.execute_tool("refuse", {"text": "x"}, ctx) is expected

    async def test_context_reaches_tool(self, registry, executor):
        seen = []

        async def spy(data, context):
            seen.append(context)
            return ToolResult.ok()

        register(registry, "spy", spy)
        context = ToolContext(user_id="u1", child_id="c1")

        await executor.execute_tool("spy", {"text": "x"}, context)

        assert seen == [context]


class TestUnknownTool:

    @pytest.mark.parametrize("raw_input", [None, {}, {"text": "hi"}, "junk", 42])
    async def test_any_input(self, executor, ctx, raw_input):
        result = await executor.execute_tool("missing", raw_input, ctx)

        assert result.success is False
        assert result.error == "Unknown tool: missing"

    async def test_non_string_name(self, executor, ctx):
        result = await executor.execute_tool(["not", "hashable"], {}, ctx)

        assert result.success is False
        assert result.error.startswith("Unknown tool")

    async def test_logged_at_info(self, executor, ctx, caplog):
        with caplog.at_level(logging.DEBUG, logger="aac"):
            await executor.execute_tool("missing", {}, ctx)

        [record] = [r for r in caplog.records if r.name == "aac.tools.executor"]
        assert record.levelno == logging.INFO
        assert record.error_category == "UNKNOWN_TOOL"


class TestValidation:

    async def test_all_violations_joined(self, registry, executor, ctx):
        calls = []

        async def never(data, context):
            calls.append(data)
            return ToolResult.ok()

        register(registry, "limited", never, model=LimitInput)

        result = await executor.execute_tool("limited", {"name": "x", "limit": 500}, ctx)

        assert result.success is False
        assert result.error.startswith("Invalid input: ")
        assert "name: " in result.error
        assert "limit: " in result.error
        assert "; " in result.error
        assert calls == []

    async def test_missing_field(self, registry, executor, ctx):
        register(registry, "echo", echo)

        result = await executor.execute_tool("echo", {}, ctx)

        assert result.error == "Invalid input: text: Field required"

    async def test_none_input(self, registry, executor, ctx):
        register(registry, "echo", echo)

        result = await executor.execute_tool("echo", None, ctx)

        assert result.success is False
        assert result.error.startswith("Invalid input: ")

    async def test_root_error_has_no_path(self, registry, executor, ctx):
        class Pair(BaseModel):
            a: int
            b: int

            @model_validator(mode="after")
            def ordered(self):
                if self.a > self.b:
                    raise ValueError("a must not exceed b")
                return self

        register(registry, "pair", echo, model=Pair)

        result = await executor.execute_tool("pair", {"a": 2, "b": 1}, ctx)

        assert result.error == "Invalid input: Value error, a must not exceed b"


class TestExecutionErrors:

    async def test_plain_error_wrapped(self, registry, executor, ctx):
        async def boom(data, context):
            raise RuntimeError("disk on fire")

        register(registry, "boom", boom)

        result = await executor.execute_tool("boom", {"text": "x"}, ctx)

        assert result.to_dict() == {"success": False, "error": "Tool execution failed: disk on fire"}

    async def test_domain_error_verbatim(self, registry, executor, ctx):
        async def missing_child(data, context):
            raise ChildNotFoundError("abc")

        register(registry, "child", missing_child)

        result = await executor.execute_tool("child", {"text": "x"}, ctx)

        assert result.error == "Child not found: abc"

    async def test_base_execution_error_verbatim(self, registry, executor, ctx):
        async def fail(data, context):
            raise ToolExecutionError("quota exhausted", tool_name="fail")

        register(registry, "fail", fail)

        result = await executor.execute_tool("fail", {"text": "x"}, ctx)

        assert result.error == "quota exhausted"

    async def test_non_result_return_wrapped(self, registry, executor, ctx):
        async def sloppy(data, context):
            return "not a ToolResult"

        register(registry, "sloppy", sloppy)

        result = await executor.execute_tool("sloppy", {"text": "x"}, ctx)

        assert result.success is False
        assert result.error.startswith("Tool execution failed: ")

    async def test_cancellation_propagates(self, registry, executor, ctx):
        async def cancelled(data, context):
            raise asyncio.CancelledError()

        register(registry, "cancelled", cancelled)

        with pytest.raises(asyncio.CancelledError):
            await executor.execute_tool("cancelled", {"text": "x"}, ctx)


class TestLogging:

    async def test_unexpected_error_logged_as_anomaly(self, registry, executor, ctx, caplog):
        async def boom(data, context):
            raise RuntimeError("disk on fire")

        register(registry, "boom", boom)

        with caplog.at_level(logging.DEBUG, logger="aac"):
            await executor.execute_tool("boom", {"text": "x"}, ctx)

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert errors[0].error_category == "UNEXPECTED_ERROR"

    async def test_provider_error_inside_tool_logged_as_llm_failure(self, registry, executor, ctx, caplog):
        async def summarize(data, context):
            raise ClaudeAPIError("upstream unavailable", 503)

        register(registry, "summarize", summarize)

        with caplog.at_level(logging.DEBUG, logger="aac"):
            result = await executor.execute_tool("summarize", {"text": "x"}, ctx)

        assert result.error == "Tool execution failed: upstream unavailable"
        [record] = [r for r in caplog.records if hasattr(r, "error_category")]
        assert record.error_category == "LLM_FAILURE"
        assert record.levelno == logging.ERROR

    async def test_domain_error_silent_in_test_mode(self, registry, executor, ctx, caplog):
        async def deny(data, context):
            raise UnauthorizedError()

        register(registry, "deny", deny)

        with caplog.at_level(logging.DEBUG, logger="aac"):
            await executor.execute_tool("deny", {"text": "x"}, ctx)

        assert executor.quiet is True
        assert not [r for r in caplog.records if getattr(r, "error_category", None) == "DOMAIN_ERROR"]

    async def test_domain_error_logged_as_warning_when_not_quiet(self, registry, ctx, caplog):
        async def deny(data, context):
            raise UnauthorizedError()

        register(registry, "deny", deny)
        loud = ToolExecutor(registry, quiet=False)

        with caplog.at_level(logging.DEBUG, logger="aac"):
            result = await loud.execute_tool("deny", {"text": "x"}, ctx)

        assert result.error == "You don't have access to this resource"
        [record] = [r for r in caplog.records if getattr(r, "error_category", None) == "DOMAIN_ERROR"]
        assert record.levelno == logging.WARNING

    async def test_success_logs_elapsed_time(self, registry, executor, ctx, caplog):
        register(registry, "echo", echo)

        with caplog.at_level(logging.DEBUG, logger="aac"):
            await executor.execute_tool("echo", {"text": "hi"}, ctx)

        [record] = [r for r in caplog.records if getattr(r, "tool_name", None) == "echo"]
        assert record.success is True
        assert record.execution_time_ms >= 0


class TestAgentLoopAdapter:

    async def test_success_passes_data(self, registry, executor, ctx):
        register(registry, "echo", echo)
        call = executor.create_executor(ctx)

        assert await call("echo", {"text": "hi"}) == ToolCallOutcome(result="hi", is_error=False)

    async def test_success_without_data(self, registry, executor, ctx):
        async def done(data, context):
            return ToolResult.ok()

        register(registry, "done", done)
        call = executor.create_executor(ctx)

        assert await call("done", {"text": "x"}) == ToolCallOutcome(result="Success")

    async def test_failure_becomes_error_text(self, executor, ctx):
        call = executor.create_executor(ctx)

        outcome = await call("missing", {})

        assert outcome.is_error is True
        assert outcome.result == "Unknown tool: missing"

    async def test_failure_without_message(self, registry, executor, ctx):
        async def silent(data, context):
            return ToolResult(success=False)

        register(registry, "silent", silent)
        call = executor.create_executor(ctx)

        assert await call("silent", {"text": "x"}) == ToolCallOutcome(result="Unknown error", is_error=True)
