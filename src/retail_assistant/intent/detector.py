from __future__ import annotations

from retail_assistant.config import Settings, settings
from retail_assistant.errors import UpstreamServiceError
from retail_assistant.logging import get_logger
from retail_assistant.models.adapter import OpenAIAdapter, get_openai

from .llm import LLMIntentError, detect_with_llm
from .rules import RULES, IntentRule, detect_with_rules
from .types import Intent

logger = get_logger(__name__)


class IntentDetector:
    """LLM classification with an ordered regex fallback.

    ``detect`` never raises for model or transport problems; those degrade to
    the rules and are noted in ``Intent.flags``.
    """

    def __init__(
        self,
        llm: OpenAIAdapter | None = None,
        cfg: Settings | None = None,
        rules: tuple[IntentRule, ...] = RULES,
    ):
        self.cfg = cfg or settings
        self._llm = llm
        self.rules = rules

    @property
    def llm(self) -> OpenAIAdapter:
        if self._llm is None:
            self._llm = get_openai()
        return self._llm

    def detect(self, question: str) -> Intent | None:
        flags: list[str] = []
        if self.cfg.USE_LLM_INTENT:
            try:
                intent = detect_with_llm(question, self.llm, self.cfg)
                logger.debug(f"LLM intent: {intent.action.value} ({intent.confidence:.2f})")
                return intent
            except UpstreamServiceError as e:
                logger.warning(f"Intent LLM unavailable, using rules: {e}")
                flags.append("llm_call_failed")
            except LLMIntentError as e:
                logger.warning(f"Unusable intent LLM output, using rules: {e}")
                flags.append("invalid_llm_json")
        else:
            flags.append("llm_disabled")

        intent = detect_with_rules(question, self.rules)
        if intent is None:
            logger.debug(f"No intent rule matched: {question!r}")
            return None
        intent.flags = flags
        return intent
