"""
Message Classifier
------------------
Labels an inbound message with one of four classes using the cheap,
fast model tier.

The provider call races a timer. If the timer wins, the call is
abandoned (not cancelled: it may still finish and consume quota) and a
fallback class is returned with zero usage. Unparseable answers fall
back too, but keep the usage the provider reported. classify() never
raises.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol
import asyncio
import logging
import re
import time

from core.errors import ErrorCategory, classify_exception, log_error
from llm.types import ModelTier, TokenUsage

from .selector import MODEL_FOR_CLASS, MessageClass, class_for_model

CLASSIFIER_MODEL = ModelTier.HAIKU
CLASSIFIER_MAX_TOKENS = 20
CLASSIFIER_TEMPERATURE = 0

DEFAULT_CLASSIFICATION_TIMEOUT_MS = 5000
DEFAULT_FALLBACK_MODEL = ModelTier.SONNET

CLASSIFICATION_SYSTEM_PROMPT = """You are a message classifier for an AAC (Augmentative and Alternative Communication) assistant. Your job is to classify user messages into one of four categories to route them to the appropriate AI model.

Categories:
1. SIMPLE_TOOL - Basic tool invocations like recording a word, logging communication events, simple lookups
2. ANALYSIS - Requests for data analysis, generating insights, understanding patterns, summarizing usage
3. PLANNING - Complex reasoning, creating communication plans, goal setting, multi-step strategies
4. CHITCHAT - Casual conversation, greetings, small talk, questions about capabilities

Respond with ONLY the category name (SIMPLE_TOOL, ANALYSIS, PLANNING, or CHITCHAT) on a single line. No explanation needed."""

_NOT_LABEL = re.compile(r"[^A-Z_]")


class ChatService(Protocol):
    async def chat(
        self,
        messages: List[Dict[str, Any]],
        system: Optional[str] = None,
        model: Any = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Any: ...


@dataclass
class ClassificationResult:
    message_class: MessageClass
    router_usage: TokenUsage
    latency_ms: float
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message_class": self.message_class.value,
            "router_usage": self.router_usage.to_dict(),
            "latency_ms": round(self.latency_ms, 2),
            "fallback": self.fallback,
        }


def parse_message_class(text: Optional[str]) -> Optional[MessageClass]:
    """Exact label match after trimming, uppercasing and dropping non-label characters."""
    if not text:
        return None
    normalized = _NOT_LABEL.sub("", text.strip().upper())
    try:
        return MessageClass(normalized)
    except ValueError:
        return None


def _first_text(response: Any) -> Optional[str]:
    for block in getattr(response, "content", None) or []:
        if isinstance(block, dict):
            if block.get("type") == "text":
                return block.get("text")
        elif getattr(block, "type", None) == "text":
            return getattr(block, "text", None)
    return None


def _usage(response: Any) -> TokenUsage:
    usage = getattr(response, "usage", None)
    if isinstance(usage, TokenUsage):
        return usage
    return TokenUsage.from_anthropic(usage or {})


def _consume(task: "asyncio.Future") -> None:
    # Abandoned call finished: retrieve the outcome so it is never reported as lost.
    if not task.cancelled() and task.exception() is not None:
        logging.getLogger("aac.routing.classifier").debug(
            f"Abandoned classification call failed: {task.exception()}"
        )


class MessageClassifier:
    """
    Fast-tier classifier with a timeout race and a fallback class.

    `service_provider` is called once per classification to get the chat
    collaborator, so the caller can construct it lazily.
    """

    def __init__(
        self,
        service_provider: Callable[[], ChatService],
        timeout_ms: int = DEFAULT_CLASSIFICATION_TIMEOUT_MS,
        fallback_model: ModelTier = DEFAULT_FALLBACK_MODEL,
        model_for_class: Optional[Mapping[MessageClass, ModelTier]] = None,
        debug: bool = False,
    ):
        self._service_provider = service_provider
        self.timeout_ms = timeout_ms
        self.fallback_model = ModelTier(fallback_model)
        self.model_for_class = dict(model_for_class or MODEL_FOR_CLASS)
        self.debug = debug
        self._logger = logging.getLogger("aac.routing.classifier")

    @property
    def fallback_class(self) -> MessageClass:
        return class_for_model(self.fallback_model, self.model_for_class)

    async def classify(self, message: str) -> ClassificationResult:
        start = time.perf_counter()

        try:
            call = asyncio.ensure_future(self._service_provider().chat(
                messages=[{"role": "user", "content": message}],
                system=CLASSIFICATION_SYSTEM_PROMPT,
                model=CLASSIFIER_MODEL,
                max_tokens=CLASSIFIER_MAX_TOKENS,
                temperature=CLASSIFIER_TEMPERATURE,
            ))
            done, _ = await asyncio.wait(
                {call},
                timeout=self.timeout_ms / 1000,
                return_when=asyncio.FIRST_COMPLETED,
            )

            if call not in done:
                call.add_done_callback(_consume)
                log_error(
                    self._logger,
                    ErrorCategory.CLASSIFICATION_TIMEOUT,
                    f"Classification timed out after {self.timeout_ms}ms, using fallback",
                )
                return self._fallback(TokenUsage(), start)

            response = call.result()
        except Exception as e:
            category = classify_exception(e, default=ErrorCategory.LLM_FAILURE)
            log_error(self._logger, category, f"Classification failed: {e}")
            return self._fallback(TokenUsage(), start)

        text = _first_text(response)
        message_class = parse_message_class(text)
        if message_class is None:
            log_error(
                self._logger,
                ErrorCategory.CLASSIFICATION_UNPARSEABLE,
                f"Unknown classification {text!r}, using fallback",
            )
            return self._fallback(_usage(response), start)

        latency_ms = self._elapsed(start)
        if self.debug:
            self._logger.debug(
                f"Classified message as {message_class.value} in {latency_ms:.2f}ms",
                extra={"message_class": message_class.value, "latency_ms": latency_ms},
            )
        return ClassificationResult(
            message_class=message_class,
            router_usage=_usage(response),
            latency_ms=latency_ms,
        )

    def _fallback(self, usage: TokenUsage, start: float) -> ClassificationResult:
        latency_ms = self._elapsed(start)
        self._logger.info(
            f"Fallback classification {self.fallback_class.value} after {latency_ms:.2f}ms",
            extra={"message_class": self.fallback_class.value, "latency_ms": latency_ms},
        )
        return ClassificationResult(
            message_class=self.fallback_class,
            router_usage=usage,
            latency_ms=latency_ms,
            fallback=True,
        )

    @staticmethod
    def _elapsed(start: float) -> float:
        return (time.perf_counter() - start) * 1000
