"""
Pricing and Model Selection Tests
---------------------------------
"""

import pytest

from llm.types import ModelTier, TokenUsage
from routing.pricing import MODEL_PRICING, Cost, ModelPricing, calculate_cost
from routing.selector import (
    MODEL_FOR_CLASS,
    SELECTION_REASONS,
    MessageClass,
    class_for_model,
    select_model,
)


# =============================================================================
# Selection
# =============================================================================

class TestSelectModel:

    @pytest.mark.parametrize("message_class, tier", [
        (MessageClass.SIMPLE_TOOL, ModelTier.HAIKU),
        (MessageClass.ANALYSIS, ModelTier.SONNET),
        (MessageClass.PLANNING, ModelTier.OPUS),
        (MessageClass.CHITCHAT, ModelTier.HAIKU),
    ])
    def test_default_table(self, message_class, tier):
        result = select_model(message_class)

        assert result.model is tier
        assert result.message_class is message_class
        assert result.reason == SELECTION_REASONS[(message_class, tier)]

    def test_reason_text(self):
        assert select_model(MessageClass.PLANNING).reason == "Complex planning - Opus excels at multi-step reasoning"

    def test_accepts_label_string(self):
        assert select_model("CHITCHAT").model is ModelTier.HAIKU

    def test_custom_table(self):
        table = dict(MODEL_FOR_CLASS)
        table[MessageClass.PLANNING] = ModelTier.SONNET

        assert select_model(MessageClass.PLANNING, table).model is ModelTier.SONNET

    def test_remapped_reason_names_the_chosen_tier(self):
        table = dict(MODEL_FOR_CLASS)
        table[MessageClass.PLANNING] = ModelTier.HAIKU
        table[MessageClass.CHITCHAT] = ModelTier.SONNET

        assert select_model(MessageClass.PLANNING, table).reason == (
            "Complex planning - Haiku is fast and cost-effective"
        )
        assert select_model(MessageClass.CHITCHAT, table).reason == (
            "Casual conversation - Sonnet provides good balance of capability and cost"
        )

    @pytest.mark.parametrize("tier", list(ModelTier))
    def test_every_pairing_has_a_reason(self, tier):
        for message_class in MessageClass:
            assert tier.value.capitalize() in select_model(message_class, {message_class: tier}).reason

    def test_to_dict(self):
        assert select_model(MessageClass.ANALYSIS).to_dict() == {
            "model": "sonnet",
            "message_class": "ANALYSIS",
            "reason": "Analysis task - Sonnet provides good balance of capability and cost",
        }


class TestClassForModel:

    def test_first_match_wins(self):
        assert class_for_model(ModelTier.HAIKU) is MessageClass.SIMPLE_TOOL

    def test_default_when_absent(self):
        table = {MessageClass.SIMPLE_TOOL: ModelTier.HAIKU}

        assert class_for_model(ModelTier.OPUS, table) is MessageClass.ANALYSIS


# =============================================================================
# Pricing
# =============================================================================

class TestCalculateCost:

    def test_million_haiku_input(self):
        cost = calculate_cost(TokenUsage(input_tokens=1_000_000), ModelTier.HAIKU)

        assert cost.input_cost == pytest.approx(0.80)
        assert cost.output_cost == 0
        assert cost.total_cost == pytest.approx(0.80)
        assert cost.model == "claude-3-5-haiku-20241022"

    @pytest.mark.parametrize("tier, input_price, output_price", [
        (ModelTier.HAIKU, 0.80, 4.00),
        (ModelTier.SONNET, 3.00, 15.00),
        (ModelTier.OPUS, 15.00, 75.00),
    ])
    def test_price_table(self, tier, input_price, output_price):
        cost = calculate_cost(TokenUsage(1_000_000, 1_000_000), tier)

        assert cost.input_cost == pytest.approx(input_price)
        assert cost.output_cost == pytest.approx(output_price)
        assert cost.total_cost == pytest.approx(input_price + output_price)

    def test_zero_usage_is_free(self):
        assert calculate_cost(TokenUsage(), ModelTier.OPUS).total_cost == 0

    def test_cache_reads_discounted(self):
        plain = calculate_cost(TokenUsage(input_tokens=1_000_000), ModelTier.HAIKU)
        cached = calculate_cost(
            TokenUsage(input_tokens=1_000_000, cache_read_input_tokens=1_000_000),
            ModelTier.HAIKU,
        )

        assert cached.input_cost == pytest.approx(plain.input_cost)
        assert plain.total_cost - cached.total_cost == pytest.approx(0.72)

    def test_custom_pricing(self):
        pricing = dict(MODEL_PRICING)
        pricing[ModelTier.SONNET] = ModelPricing(input=1.0, output=2.0)

        cost = calculate_cost(TokenUsage(500_000, 500_000), ModelTier.SONNET, pricing)

        assert cost.total_cost == pytest.approx(1.5)

    def test_costs_add(self):
        total = Cost(0.1, 0.2, 0.3, "a") + Cost(1.0, 2.0, 3.0, "b")

        assert total.model == "combined"
        assert total.total_cost == pytest.approx(3.3)
