"""
Model Selector
--------------
Pure mapping from message class to model tier, with the reason for
each choice. No state, no I/O.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from llm.types import ModelTier


class MessageClass(str, Enum):
    """Categories the classifier sorts inbound messages into."""
    SIMPLE_TOOL = "SIMPLE_TOOL"
    ANALYSIS = "ANALYSIS"
    PLANNING = "PLANNING"
    CHITCHAT = "CHITCHAT"


MODEL_FOR_CLASS: Dict[MessageClass, ModelTier] = {
    MessageClass.SIMPLE_TOOL: ModelTier.HAIKU,
    MessageClass.ANALYSIS: ModelTier.SONNET,
    MessageClass.PLANNING: ModelTier.OPUS,
    MessageClass.CHITCHAT: ModelTier.HAIKU,
}

SELECTION_REASONS: Dict[Tuple[MessageClass, ModelTier], str] = {
    (MessageClass.SIMPLE_TOOL, ModelTier.HAIKU): "Simple tool invocation - Haiku is fast and cost-effective",
    (MessageClass.ANALYSIS, ModelTier.SONNET): "Analysis task - Sonnet provides good balance of capability and cost",
    (MessageClass.PLANNING, ModelTier.OPUS): "Complex planning - Opus excels at multi-step reasoning",
    (MessageClass.CHITCHAT, ModelTier.HAIKU): "Casual conversation - Haiku handles chitchat efficiently",
}

# Remapped tables fall back to "<class> - <tier strength>"
CLASS_LABELS: Dict[MessageClass, str] = {
    MessageClass.SIMPLE_TOOL: "Simple tool invocation",
    MessageClass.ANALYSIS: "Analysis task",
    MessageClass.PLANNING: "Complex planning",
    MessageClass.CHITCHAT: "Casual conversation",
}

TIER_STRENGTHS: Dict[ModelTier, str] = {
    ModelTier.HAIKU: "Haiku is fast and cost-effective",
    ModelTier.SONNET: "Sonnet provides good balance of capability and cost",
    ModelTier.OPUS: "Opus excels at multi-step reasoning",
}


def selection_reason(message_class: MessageClass, model: ModelTier) -> str:
    reason = SELECTION_REASONS.get((message_class, model))
    if reason is None:
        reason = f"{CLASS_LABELS[message_class]} - {TIER_STRENGTHS[model]}"
    return reason


@dataclass
class ModelSelectionResult:
    model: ModelTier
    message_class: MessageClass
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model.value,
            "message_class": self.message_class.value,
            "reason": self.reason,
        }


def select_model(
    message_class: MessageClass,
    model_for_class: Optional[Mapping[MessageClass, ModelTier]] = None,
) -> ModelSelectionResult:
    """Pick the tier for a message class."""
    message_class = MessageClass(message_class)
    table = model_for_class if model_for_class is not None else MODEL_FOR_CLASS
    model = table[message_class]
    return ModelSelectionResult(
        model=model,
        message_class=message_class,
        reason=selection_reason(message_class, model),
    )


def class_for_model(
    model: ModelTier,
    model_for_class: Optional[Mapping[MessageClass, ModelTier]] = None,
    default: MessageClass = MessageClass.ANALYSIS,
) -> MessageClass:
    """First class that maps to `model`, or `default` when none does."""
    table = model_for_class if model_for_class is not None else MODEL_FOR_CLASS
    for message_class, tier in table.items():
        if tier == model:
            return message_class
    return default
