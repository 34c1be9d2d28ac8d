# Routing module - classify, select a model tier, track spend

from .selector import (
    MessageClass, ModelSelectionResult, MODEL_FOR_CLASS, SELECTION_REASONS, select_model,
)
from .pricing import Cost, ModelPricing, MODEL_PRICING, calculate_cost
from .classifier import ClassificationResult, MessageClassifier, parse_message_class
from .router import (
    RouterConfig, RouterService, RoutingResult, ExecutionCostSummary, classify_message,
)

__all__ = [
    "MessageClass",
    "ModelSelectionResult",
    "MODEL_FOR_CLASS",
    "SELECTION_REASONS",
    "select_model",
    "Cost",
    "ModelPricing",
    "MODEL_PRICING",
    "calculate_cost",
    "ClassificationResult",
    "MessageClassifier",
    "parse_message_class",
    "RouterConfig",
    "RouterService",
    "RoutingResult",
    "ExecutionCostSummary",
    "classify_message",
]
