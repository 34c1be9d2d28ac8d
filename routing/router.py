"""
Router Service
--------------
Routes a message to a model tier: classify with the fast tier, select
the tier for that class, and price the classification.

The router holds configuration and a lazily-built chat collaborator,
nothing else. It never raises because classification never raises.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

from infra.config import ConfigError
from llm.types import ModelTier, TokenUsage, model_id

from .classifier import (
    DEFAULT_CLASSIFICATION_TIMEOUT_MS,
    DEFAULT_FALLBACK_MODEL,
    ChatService,
    ClassificationResult,
    MessageClassifier,
)
from .pricing import MODEL_PRICING, Cost, ModelPricing, calculate_cost
from .selector import MODEL_FOR_CLASS, MessageClass, ModelSelectionResult, select_model

# The classifier always runs on this tier, so routing is always billed here.
ROUTER_MODEL = ModelTier.HAIKU


@dataclass
class RouterConfig:
    fallback_model: ModelTier = DEFAULT_FALLBACK_MODEL
    classification_timeout_ms: int = DEFAULT_CLASSIFICATION_TIMEOUT_MS
    debug: bool = False
    pricing: Dict[ModelTier, ModelPricing] = field(default_factory=lambda: dict(MODEL_PRICING))
    model_for_class: Dict[MessageClass, ModelTier] = field(default_factory=lambda: dict(MODEL_FOR_CLASS))

    @classmethod
    def from_config(cls, config) -> "RouterConfig":
        """
        Read the `router` section of a ConfigManager.

        Keys: fallback_model, classification_timeout_ms, debug,
        pricing.<tier>.{input,output}, model_for_class.<CLASS>.

        Raises:
            ConfigError: pricing or model_for_class is not a mapping
        """
        router = cls()
        router.fallback_model = ModelTier(config.get("router.fallback_model", router.fallback_model.value))
        router.classification_timeout_ms = config.get_int(
            "router.classification_timeout_ms", router.classification_timeout_ms
        )
        router.debug = config.get_bool("router.debug", router.debug)

        for tier_name, prices in config.get_mapping("router.pricing").items():
            tier = ModelTier(tier_name)
            if not isinstance(prices, dict):
                raise ConfigError(f"router.pricing.{tier_name} must be a mapping of input/output prices")
            current = router.pricing[tier]
            router.pricing[tier] = ModelPricing(
                input=float(prices.get("input", current.input)),
                output=float(prices.get("output", current.output)),
            )

        for class_name, tier_name in config.get_mapping("router.model_for_class").items():
            router.model_for_class[MessageClass(class_name)] = ModelTier(tier_name)

        return router


@dataclass
class RoutingResult:
    classification: ClassificationResult
    model_selection: ModelSelectionResult
    router_cost: Cost

    def to_dict(self) -> Dict[str, Any]:
        return {
            "classification": self.classification.to_dict(),
            "model_selection": self.model_selection.to_dict(),
            "router_cost": self.router_cost.to_dict(),
        }


@dataclass
class ExecutionCostSummary:
    router_cost: Cost
    execution_cost: Cost
    total_cost: Cost
    models: Dict[str, str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "router_cost": self.router_cost.to_dict(),
            "execution_cost": self.execution_cost.to_dict(),
            "total_cost": self.total_cost.to_dict(),
            "models": dict(self.models),
        }


class RouterService:
    """
    Cost-optimized message router.

    Usage:
        router = RouterService()
        routing = await router.route_message("How is Sam doing this week?")
        model = routing.model_selection.model
    """

    def __init__(self, config: Optional[RouterConfig] = None, claude_service: Optional[ChatService] = None):
        self.config = config or RouterConfig()
        self._claude_service = claude_service
        self._logger = logging.getLogger("aac.routing.router")
        self.classifier = MessageClassifier(
            service_provider=lambda: self.claude_service,
            timeout_ms=self.config.classification_timeout_ms,
            fallback_model=self.config.fallback_model,
            model_for_class=self.config.model_for_class,
            debug=self.config.debug,
        )

    @property
    def claude_service(self) -> ChatService:
        """Chat collaborator, built on first use."""
        if self._claude_service is None:
            from llm.claude import ClaudeService
            self._claude_service = ClaudeService()
        return self._claude_service

    @classmethod
    def with_service(cls, service: ChatService, config: Optional[RouterConfig] = None) -> "RouterService":
        return cls(config=config, claude_service=service)

    async def classify_message(self, message: str) -> ClassificationResult:
        return await self.classifier.classify(message)

    def select_model(self, message_class: MessageClass) -> ModelSelectionResult:
        return select_model(message_class, self.config.model_for_class)

    def calculate_cost(self, usage: TokenUsage, model: ModelTier) -> Cost:
        return calculate_cost(usage, model, self.config.pricing)

    async def route_message(self, message: str) -> RoutingResult:
        """Classify, select a tier, and price the classification."""
        classification = await self.classify_message(message)
        selection = self.select_model(classification.message_class)
        router_cost = self.calculate_cost(classification.router_usage, ROUTER_MODEL)

        self._logger.info(
            f"Routed to {selection.model.value} ({classification.message_class.value})",
            extra={
                "message_class": classification.message_class.value,
                "latency_ms": classification.latency_ms,
                "total_cost": router_cost.total_cost,
            },
        )
        return RoutingResult(
            classification=classification,
            model_selection=selection,
            router_cost=router_cost,
        )

    def calculate_cost_summary(
        self,
        router_usage: TokenUsage,
        execution_usage: TokenUsage,
        execution_model: ModelTier,
    ) -> ExecutionCostSummary:
        """Router cost plus the cost of the tier that produced the answer."""
        router_cost = self.calculate_cost(router_usage, ROUTER_MODEL)
        execution_cost = self.calculate_cost(execution_usage, execution_model)

        return ExecutionCostSummary(
            router_cost=router_cost,
            execution_cost=execution_cost,
            total_cost=router_cost + execution_cost,
            models={
                "router": model_id(ROUTER_MODEL),
                "execution": model_id(execution_model),
            },
        )


async def classify_message(message: str, claude_service: ChatService) -> ClassificationResult:
    """Classify with a given collaborator and default settings."""
    return await RouterService.with_service(claude_service).classify_message(message)
