"""
Test Configuration
------------------
Shared fixtures for all tests.

Every test gets fresh instances; nothing relies on resetting globals.
The process runs in the "test" environment, which silences domain-error
logging in the executor.
"""

import os
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

os.environ["AAC_ENVIRONMENT"] = "test"

from llm.types import ChatResponse, TokenUsage
from tools import InMemoryTherapyStore, ToolContext, ToolExecutor, ToolRegistry


# =============================================================================
# Fake collaborators
# =============================================================================

class FakeChatService:
    """
    Stands in for ClaudeService in router tests.

    `reply` is the classifier's text answer; `error` is raised instead
    when set; `hang` makes the call never finish.
    """

    def __init__(
        self,
        reply: Optional[str] = "ANALYSIS",
        usage: Optional[TokenUsage] = None,
        error: Optional[Exception] = None,
        hang: bool = False,
    ):
        self.reply = reply
        self.usage = usage or TokenUsage(input_tokens=150, output_tokens=3)
        self.error = error
        self.hang = hang
        self.calls: List[Dict[str, Any]] = []

    async def chat(self, messages, system=None, model=None, max_tokens=None, temperature=None, **kwargs):
        import asyncio

        self.calls.append({
            "messages": messages,
            "system": system,
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.hang:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error

        content = [] if self.reply is None else [{"type": "text", "text": self.reply}]
        return ChatResponse(content=content, usage=self.usage, stop_reason="end_turn")


class FakeMessages:
    """Replays scripted SDK responses (or raises scripted errors) in order."""

    def __init__(self, script: List[Any]):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **params):
        self.calls.append(params)
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class FakeAnthropicClient:
    def __init__(self, script: List[Any]):
        self.messages = FakeMessages(script)


def sdk_response(*blocks, stop_reason="end_turn", input_tokens=10, output_tokens=5, **usage):
    """Build an object shaped like an SDK Message."""
    return SimpleNamespace(
        content=[SimpleNamespace(**block) for block in blocks],
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens, **usage),
        stop_reason=stop_reason,
        model="claude-test",
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def registry():
    return ToolRegistry()


@pytest.fixture
def executor(registry):
    return ToolExecutor(registry)


@pytest.fixture
def ctx():
    return ToolContext(user_id="parent@example.com")


@pytest.fixture
def store():
    return InMemoryTherapyStore()


@pytest.fixture
def family(store):
    """One family with a caregiver, a child and an assigned therapist."""
    caregiver = store.add_caregiver("family-1", "parent@example.com", name="Pat")
    child = store.add_child("Sam", "family-1")
    therapist = store.add_therapist("slp@example.com", name="Dr. Lee")
    store.assign(therapist.id, child.id)
    return SimpleNamespace(caregiver=caregiver, child=child, therapist=therapist)


@pytest.fixture
def fake_chat():
    return FakeChatService()
