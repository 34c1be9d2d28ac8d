"""
Cost Calculator
---------------
Token usage to USD. Prices are per million tokens and static for the
life of the process.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from llm.types import ModelTier, TokenUsage, model_id

# Cache reads bill at 10% of the normal input rate.
CACHE_READ_DISCOUNT = 0.9

TOKENS_PER_UNIT = 1_000_000


@dataclass(frozen=True)
class ModelPricing:
    input: float   # USD per million input tokens
    output: float  # USD per million output tokens


MODEL_PRICING: Dict[ModelTier, ModelPricing] = {
    ModelTier.HAIKU: ModelPricing(input=0.80, output=4.00),
    ModelTier.SONNET: ModelPricing(input=3.00, output=15.00),
    ModelTier.OPUS: ModelPricing(input=15.00, output=75.00),
}


@dataclass
class Cost:
    input_cost: float
    output_cost: float
    total_cost: float
    model: str  # display label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_cost": self.input_cost,
            "output_cost": self.output_cost,
            "total_cost": self.total_cost,
            "model": self.model,
        }

    def __add__(self, other: "Cost") -> "Cost":
        return Cost(
            input_cost=self.input_cost + other.input_cost,
            output_cost=self.output_cost + other.output_cost,
            total_cost=self.total_cost + other.total_cost,
            model="combined",
        )


def calculate_cost(
    usage: TokenUsage,
    model: ModelTier,
    pricing: Optional[Mapping[ModelTier, ModelPricing]] = None,
) -> Cost:
    """
    Price one call.

    total = input + output - cache_read * input_price * 0.9
    """
    model = ModelTier(model)
    price = (pricing if pricing is not None else MODEL_PRICING)[model]

    input_cost = usage.input_tokens / TOKENS_PER_UNIT * price.input
    output_cost = usage.output_tokens / TOKENS_PER_UNIT * price.output

    cache_adjustment = 0.0
    if usage.cache_read_input_tokens:
        cache_adjustment = usage.cache_read_input_tokens / TOKENS_PER_UNIT * price.input * CACHE_READ_DISCOUNT

    return Cost(
        input_cost=input_cost,
        output_cost=output_cost,
        total_cost=input_cost + output_cost - cache_adjustment,
        model=model_id(model),
    )
