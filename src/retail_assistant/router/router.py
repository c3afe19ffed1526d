"""Ordered tier chain that turns one free-text question into exactly one outcome.

Tiers, in evaluation order:

1. ``faq``        semantic FAQ lookup
2. ``capability`` capability questions answered by the intent detector
3. ``intent``     any other detected intent
4. ``template``   fuzzy template match
5. ``greeting``   greeting, thanks or farewell
6. ``untrained``  canned reply while the FAQ store is empty
7. ``agent``      generated conversational fallback, static text if that fails

Each tier returns a ``TierResult``. Upstream failures are carried in
``TierResult.error`` and the router moves on; they never reach the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from retail_assistant.config import Settings, settings
from retail_assistant.errors import InputError, UpstreamServiceError, VectorDimensionError
from retail_assistant.faq.resolver import SemanticFAQResolver
from retail_assistant.intent.detector import IntentDetector
from retail_assistant.intent.types import Intent
from retail_assistant.logging import get_logger
from retail_assistant.matching.matcher import TemplateMatcher
from retail_assistant.matching.templates import ActionId
from retail_assistant.models.adapter import ChatMessage, OpenAIAdapter, get_openai
from retail_assistant.router.greetings import (
    GREETING_SUGGESTIONS,
    MESSAGES,
    SHORT_SUGGESTIONS,
    classify_small_talk,
    is_capability_question,
)
from retail_assistant.router.outcomes import (
    AgentFallback,
    ErrorOutcome,
    GreetingOutcome,
    ResolutionOutcome,
    TemplateHit,
    ToolDispatch,
)
from retail_assistant.store.faq_store import EmbeddingStore
from retail_assistant.utils.timing import LatencyTracker

logger = get_logger(__name__)

UNTRAINED_MESSAGE = (
    "I don't have any FAQ knowledge yet. Please train me with some questions and answers first."
)

AGENT_SUGGESTIONS: list[str] = [
    "Show me top products",
    "Generate sales report",
    "Give me product analysis for [Product Name]",
    "Show me store performance data",
    "What are your capabilities?",
    "Show me analytics dashboard",
]

STATIC_AGENT_SUGGESTIONS: list[str] = [
    "Show me top products",
    "Generate sales report",
    "What are your capabilities?",
    "Show me analytics dashboard",
]

STATIC_AGENT_ANSWER = (
    "I'm your retail analytics assistant, here to help with business intelligence!\n\n"
    "While some features are still in development, I can currently help you with:\n\n"
    "📊 Analytics & Reports\n"
    "- Show top products and sales data\n"
    "- Generate sales reports and performance analysis\n"
    "- Analyze individual products and stores\n\n"
    "🔮 Forecasting & Planning\n"
    "- Sales forecasts for products and locations\n"
    "- Demand planning and inventory insights\n\n"
    "💡 Try asking me:\n"
    '• "Show me top products"\n'
    '• "Generate sales report"\n'
    '• "Give me [Product Name] analysis"\n'
    '• "What are your capabilities?"'
)

_AGENT_SYSTEM = (
    "You are the AI agent of a retail business intelligence platform.\n\n"
    "SYSTEM CAPABILITIES:\n"
    "- Analytics & reporting: sales trends, product performance, store analysis, KPI tracking\n"
    "- Demand forecasting: product and store-level sales predictions\n"
    "- Inventory management: replenishment recommendations, stock optimization\n"
    "- Store performance: individual store analytics and comparison\n\n"
    "HOW TO USE:\n"
    '- Ask for reports: "Show me top products", "Generate sales report"\n'
    '- Analyze specific items: "Give me PE Mens Full Rib analysis"\n'
    '- Check store performance: "Show me store ABC data"\n'
    '- Get forecasts: "Next month sales forecast for Product X in Mumbai"\n\n'
    "RESPONSE GUIDELINES:\n"
    "- Be helpful, professional, and conversational\n"
    "- Acknowledge what you can do and what is still in development\n"
    "- Suggest specific questions the user can ask that you can handle\n"
    "- Always provide helpful alternatives"
)

TIER_NAMES: tuple[str, ...] = (
    "faq",
    "capability",
    "intent",
    "template",
    "greeting",
    "untrained",
    "agent",
)


@dataclass
class TierResult:
    outcome: ResolutionOutcome | None = None
    error: UpstreamServiceError | None = None


@dataclass
class _Attempt:
    question: str
    trace: list[str] = field(default_factory=list)
    # Cached so the capability and intent tiers share one detection
    intent: Intent | None = None
    intent_checked: bool = False


class ResolutionRouter:
    def __init__(
        self,
        store: EmbeddingStore,
        faq: SemanticFAQResolver,
        intents: IntentDetector,
        matcher: TemplateMatcher,
        llm: OpenAIAdapter | None = None,
        cfg: Settings | None = None,
    ):
        self.cfg = cfg or settings
        self.store = store
        self.faq = faq
        self.intents = intents
        self.matcher = matcher
        self._llm = llm
        self.latency: dict[str, LatencyTracker] = {
            name: LatencyTracker(name, window=self.cfg.LATENCY_WINDOW)
            for name in (*TIER_NAMES, "total")
        }
        self._tiers: tuple[tuple[str, Callable[[_Attempt], TierResult]], ...] = (
            ("faq", self._faq_tier),
            ("capability", self._capability_tier),
            ("intent", self._intent_tier),
            ("template", self._template_tier),
            ("greeting", self._greeting_tier),
            ("untrained", self._untrained_tier),
            ("agent", self._agent_tier),
        )

    @property
    def llm(self) -> OpenAIAdapter:
        if self._llm is None:
            self._llm = get_openai()
        return self._llm

    def resolve(self, question: str) -> ResolutionOutcome:
        """Run the tiers in order and return the first outcome produced.

        Raises ``InputError`` for an empty or non-string question. Unexpected
        failures, including mismatched embedding sizes, become ``ErrorOutcome``.
        """
        if not isinstance(question, str) or not question.strip():
            raise InputError("Question cannot be empty")

        attempt = _Attempt(question=question.strip())
        with self.latency["total"].measure():
            try:
                outcome = self._run(attempt)
            except InputError:
                raise
            except VectorDimensionError as e:
                logger.exception(f"Embedding dimension mismatch: {e}")
                outcome = ErrorOutcome(reason=str(e))
            except Exception as e:
                logger.exception(f"Unexpected error resolving {attempt.question!r}")
                outcome = ErrorOutcome(reason=f"Unexpected error: {e}")
        outcome.trace = attempt.trace
        return outcome

    def _run(self, attempt: _Attempt) -> ResolutionOutcome:
        for name, tier in self._tiers:
            attempt.trace.append(name)
            tier_log = logger.bind(tier=name)
            tier_log.debug(f"Tier {name}: {attempt.question!r}")
            with self.latency[name].measure():
                result = tier(attempt)
            if result.error is not None:
                attempt.trace.append(f"{name}:error:{result.error.service}")
                tier_log.warning(f"Tier {name} skipped after upstream failure: {result.error}")
            if result.outcome is not None:
                tier_log.info(f"Resolved by {name} tier as {result.outcome.outcome_type}")
                return result.outcome
        raise RuntimeError("no tier produced an outcome")

    def _faq_tier(self, attempt: _Attempt) -> TierResult:
        try:
            hit = self.faq.resolve(attempt.question)
        except UpstreamServiceError as e:
            return TierResult(error=e)
        return TierResult(outcome=hit)

    def _detect(self, attempt: _Attempt) -> Intent | None:
        if not attempt.intent_checked:
            attempt.intent = self.intents.detect(attempt.question)
            attempt.intent_checked = True
            if attempt.intent is not None:
                attempt.trace.extend(f"intent:{flag}" for flag in attempt.intent.flags)
        return attempt.intent

    def _capability_tier(self, attempt: _Attempt) -> TierResult:
        if not is_capability_question(attempt.question):
            return TierResult()
        intent = self._detect(attempt)
        if intent is not None and intent.action == ActionId.GET_CAPABILITIES:
            return TierResult(outcome=ToolDispatch(intent=intent))
        return TierResult()

    def _intent_tier(self, attempt: _Attempt) -> TierResult:
        intent = self._detect(attempt)
        if intent is not None and intent.action != ActionId.GET_CAPABILITIES:
            return TierResult(outcome=ToolDispatch(intent=intent))
        return TierResult()

    def _template_tier(self, attempt: _Attempt) -> TierResult:
        candidate = self.matcher.match(attempt.question)
        if candidate is None:
            return TierResult()
        return TierResult(
            outcome=TemplateHit(
                template=candidate.template,
                extracted_params=candidate.params,
                score=candidate.score,
                strategy=candidate.strategy,
                missing_inputs=candidate.missing_inputs,
            )
        )

    def _greeting_tier(self, attempt: _Attempt) -> TierResult:
        kind = classify_small_talk(attempt.question)
        if kind is None:
            return TierResult()
        suggestions = GREETING_SUGGESTIONS if kind == "greeting" else SHORT_SUGGESTIONS
        return TierResult(
            outcome=GreetingOutcome(kind=kind, message=MESSAGES[kind], suggestions=list(suggestions))
        )

    def _untrained_tier(self, attempt: _Attempt) -> TierResult:
        if not self.store.is_empty():
            return TierResult()
        return TierResult(
            outcome=AgentFallback(
                free_text=UNTRAINED_MESSAGE,
                suggestions=list(STATIC_AGENT_SUGGESTIONS),
                source="untrained",
            )
        )

    def _agent_tier(self, attempt: _Attempt) -> TierResult:
        messages = [
            ChatMessage(role="system", content=_AGENT_SYSTEM),
            ChatMessage(
                role="user",
                content=(
                    f'User Query: "{attempt.question}"\n\n'
                    "Please respond as the analytics assistant, explaining what you can do "
                    "and suggesting alternative questions the user can ask."
                ),
            ),
        ]
        static = AgentFallback(
            free_text=STATIC_AGENT_ANSWER,
            suggestions=list(STATIC_AGENT_SUGGESTIONS),
            source="static",
        )
        try:
            text, _ = self.llm.chat(
                messages=messages,
                model=self.cfg.LLM_MODEL,
                max_tokens=self.cfg.AGENT_MAX_TOKENS,
                temperature=self.cfg.AGENT_TEMPERATURE,
            )
        except UpstreamServiceError as e:
            return TierResult(outcome=static, error=e)
        except Exception as e:  # this tier must always answer
            logger.warning(f"Agent fallback failed unexpectedly: {e}")
            return TierResult(outcome=static)
        if not text:
            return TierResult(outcome=static)
        return TierResult(
            outcome=AgentFallback(free_text=text, suggestions=list(AGENT_SUGGESTIONS), source="generated")
        )
