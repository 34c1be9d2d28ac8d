# LLM module - the model-calling collaborator

from .types import ModelTier, MODELS, TokenUsage, ChatResponse, ToolLoopResult, model_id
from .claude import (
    ClaudeService, ClaudeError, ClaudeRateLimitError, ClaudeAPIError,
)

__all__ = [
    "ModelTier",
    "MODELS",
    "TokenUsage",
    "ChatResponse",
    "ToolLoopResult",
    "model_id",
    "ClaudeService",
    "ClaudeError",
    "ClaudeRateLimitError",
    "ClaudeAPIError",
]
