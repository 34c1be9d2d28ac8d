"""
Model-calling types shared by the Claude service and the router.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ModelTier(str, Enum):
    """Cost/capability bands a request can be routed to."""
    HAIKU = "haiku"     # cheap, fast
    SONNET = "sonnet"   # balanced
    OPUS = "opus"       # premium


MODELS: Dict[ModelTier, str] = {
    ModelTier.HAIKU: "claude-3-5-haiku-20241022",
    ModelTier.SONNET: "claude-sonnet-4-20250514",
    ModelTier.OPUS: "claude-opus-4-20250514",
}


def model_id(model: Any) -> str:
    """Provider model id for a tier; anything else is passed through as-is."""
    try:
        return MODELS[ModelTier(model)]
    except ValueError:
        return str(model)


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: Optional[int] = None
    cache_read_input_tokens: Optional[int] = None

    @classmethod
    def from_anthropic(cls, usage: Any) -> "TokenUsage":
        """Build from an SDK usage object (or a plain dict)."""
        def read(name: str) -> Optional[int]:
            if isinstance(usage, dict):
                return usage.get(name)
            return getattr(usage, name, None)

        return cls(
            input_tokens=read("input_tokens") or 0,
            output_tokens=read("output_tokens") or 0,
            cache_creation_input_tokens=read("cache_creation_input_tokens"),
            cache_read_input_tokens=read("cache_read_input_tokens"),
        )

    def add(self, other: "TokenUsage") -> None:
        """Accumulate another call's usage into this one."""
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        if other.cache_creation_input_tokens:
            self.cache_creation_input_tokens = (
                (self.cache_creation_input_tokens or 0) + other.cache_creation_input_tokens
            )
        if other.cache_read_input_tokens:
            self.cache_read_input_tokens = (
                (self.cache_read_input_tokens or 0) + other.cache_read_input_tokens
            )

    def to_dict(self) -> Dict[str, int]:
        result = {"input_tokens": self.input_tokens, "output_tokens": self.output_tokens}
        if self.cache_creation_input_tokens is not None:
            result["cache_creation_input_tokens"] = self.cache_creation_input_tokens
        if self.cache_read_input_tokens is not None:
            result["cache_read_input_tokens"] = self.cache_read_input_tokens
        return result


@dataclass
class ChatResponse:
    """One model reply. Content blocks are plain dicts ({"type": "text", ...})."""
    content: List[Dict[str, Any]]
    usage: TokenUsage
    stop_reason: Optional[str] = None
    model: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(block.get("text", "") for block in self.content if block.get("type") == "text")

    @property
    def tool_calls(self) -> List[Dict[str, Any]]:
        return [block for block in self.content if block.get("type") == "tool_use"]


@dataclass
class ToolLoopResult:
    content: List[Dict[str, Any]]
    messages: List[Dict[str, Any]]
    total_usage: TokenUsage = field(default_factory=TokenUsage)
    iterations: int = 0
