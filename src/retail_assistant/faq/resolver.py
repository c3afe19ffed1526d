"""Semantic FAQ lookup: embed the question, rank stored entries, optionally rewrite the answer."""

from __future__ import annotations

from typing import Callable

from retail_assistant.config import Settings, settings
from retail_assistant.embed.encoder import embed_text
from retail_assistant.logging import get_logger
from retail_assistant.models.adapter import ChatMessage, OpenAIAdapter, get_openai
from retail_assistant.router.outcomes import FAQHit
from retail_assistant.store.faq_store import EmbeddingStore, FAQEntry

logger = get_logger(__name__)

REFUSAL = "Sorry, I don't have an answer for that."

_REWRITE_SYSTEM = (
    "You are a helpful support assistant.\n"
    "Answer ONLY based on the stored FAQ knowledge base.\n"
    "If the question is unrelated or not found in the database, politely reply:\n"
    f'"{REFUSAL}"\n\n'
    "Keep your response concise, helpful, and professional."
)


def _rewrite_messages(question: str, entry: FAQEntry) -> list[ChatMessage]:
    user = (
        f"Question: {question}\n\n"
        "FAQ Knowledge Base:\n"
        f"Question: {entry.question}\n"
        f"Answer: {entry.answer}\n\n"
        "Please provide a helpful response based on this FAQ knowledge."
    )
    return [
        ChatMessage(role="system", content=_REWRITE_SYSTEM),
        ChatMessage(role="user", content=user),
    ]


class SemanticFAQResolver:
    def __init__(
        self,
        store: EmbeddingStore,
        llm: OpenAIAdapter | None = None,
        cfg: Settings | None = None,
        embed_fn: Callable[[str], list[float]] | None = None,
    ):
        self.store = store
        self.cfg = cfg or settings
        self._llm = llm
        self._embed = embed_fn or (lambda text: embed_text(text, self.cfg))

    @property
    def llm(self) -> OpenAIAdapter:
        if self._llm is None:
            self._llm = get_openai()
        return self._llm

    def resolve(self, question: str) -> FAQHit | None:
        """Best stored entry at or above the similarity threshold, or None.

        Embedding failures propagate as ``UpstreamServiceError``; a failed
        rewrite only drops the rewritten answer.
        """
        if self.store.is_empty():
            return None

        query = self._embed(question)
        ranked = self.store.rank_against(query)
        above = [r for r in ranked if r.similarity >= self.cfg.FAQ_SIMILARITY_TAU]
        if not above:
            best = ranked[0].similarity if ranked else 0.0
            logger.debug(f"No FAQ above {self.cfg.FAQ_SIMILARITY_TAU} (best {best:.3f})")
            return None

        top = above[0]
        logger.info(f"FAQ match {top.entry.id} similarity={top.similarity:.3f}")
        return FAQHit(
            entry=top.entry,
            similarity=top.similarity,
            rewritten_answer=self._rewrite(question, top.entry),
            top_matches=above[: self.cfg.FAQ_TOP_MATCHES],
        )

    def _rewrite(self, question: str, entry: FAQEntry) -> str | None:
        if not self.cfg.FAQ_REWRITE_ENABLED:
            return None
        try:
            text, _ = self.llm.chat(
                messages=_rewrite_messages(question, entry),
                model=self.cfg.LLM_MODEL,
                max_tokens=self.cfg.REWRITE_MAX_TOKENS,
                temperature=self.cfg.REWRITE_TEMPERATURE,
            )
        except Exception as e:  # rewrite is optional
            logger.warning(f"FAQ rewrite failed, returning stored answer: {e}")
            return None
        return text or None
