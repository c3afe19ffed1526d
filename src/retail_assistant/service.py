"""Entry point used by the HTTP layer and the CLI.

``AssistantService`` wires the store, resolver, detector, matcher and router
together and exposes question resolution plus FAQ administration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from retail_assistant.actions.dispatcher import ActionDispatcher
from retail_assistant.config import Settings, settings
from retail_assistant.embed.encoder import embed_text
from retail_assistant.errors import InputError
from retail_assistant.faq.resolver import SemanticFAQResolver
from retail_assistant.ingest.bulk import BulkResult, BulkTrainer
from retail_assistant.intent.detector import IntentDetector
from retail_assistant.logging import get_logger
from retail_assistant.matching.matcher import TemplateMatcher
from retail_assistant.matching.templates import (
    TemplateCategory,
    TemplateRegistry,
    build_default_registry,
)
from retail_assistant.models.adapter import OpenAIAdapter
from retail_assistant.router.outcomes import ResolutionOutcome, TemplateHit, ToolDispatch
from retail_assistant.router.router import ResolutionRouter
from retail_assistant.store.faq_store import EmbeddingStore, FAQEntry, UpsertResult
from retail_assistant.telemetry.recorder import log_resolution
from retail_assistant.utils.timing import timer

logger = get_logger(__name__)


class AssistantService:
    def __init__(
        self,
        cfg: Settings | None = None,
        store: EmbeddingStore | None = None,
        llm: OpenAIAdapter | None = None,
        registry: TemplateRegistry | None = None,
        dispatcher: ActionDispatcher | None = None,
        embed_fn: Callable[[str], list[float]] | None = None,
    ):
        self.cfg = cfg or settings
        embed = embed_fn or (lambda text: embed_text(text, self.cfg))
        self.registry = registry if registry is not None else build_default_registry()
        self.store = (
            store if store is not None else EmbeddingStore(embed, self.cfg.FAQ_STORE_PATH or None)
        )
        self.matcher = TemplateMatcher(self.registry, self.cfg)
        self.router = ResolutionRouter(
            store=self.store,
            faq=SemanticFAQResolver(self.store, llm=llm, cfg=self.cfg, embed_fn=embed),
            intents=IntentDetector(llm=llm, cfg=self.cfg),
            matcher=self.matcher,
            llm=llm,
            cfg=self.cfg,
        )
        self.trainer = BulkTrainer(self.store, cfg=self.cfg)
        self.dispatcher = dispatcher

    def resolve(self, question: str) -> ResolutionOutcome:
        with timer() as elapsed_ms:
            outcome = self.router.resolve(question)
        if self.cfg.RECORD_RESOLUTIONS:
            log_resolution(
                question,
                {"outcome": outcome.to_dict(), "latency_ms": elapsed_ms()},
                path=Path(self.cfg.log_dir) / "resolutions.jsonl",
            )
        return outcome

    def ask(self, question: str) -> dict[str, Any]:
        """Resolve ``question`` and, when a dispatcher is configured, run the chosen action."""
        outcome = self.resolve(question)
        response = outcome.to_dict()
        if self.dispatcher is None or not isinstance(outcome, (ToolDispatch, TemplateHit)):
            return response
        if isinstance(outcome, TemplateHit) and outcome.missing_inputs:
            return response
        try:
            response["result"] = self.dispatcher.dispatch(outcome.action, outcome.params)
        except Exception as e:
            logger.warning(f"Action {outcome.action.value} failed: {e}")
            response["result_error"] = str(e)
        return response

    # FAQ administration

    def train(self, question: str, answer: str) -> UpsertResult:
        return self.store.upsert(question, answer)

    def train_batch(
        self, entries: Sequence[Mapping[str, Any]], batch_size: int | None = None
    ) -> BulkResult:
        return self.trainer.train_batch(entries, batch_size=batch_size)

    def get_entry(self, entry_id: str) -> FAQEntry:
        return self.store.get(entry_id)

    def list_entries(self, page: int = 1, limit: int = 10, search: str | None = None) -> dict[str, Any]:
        return self.store.list(page=page, limit=limit, search=search)

    def update_entry(
        self, entry_id: str, question: str | None = None, answer: str | None = None
    ) -> FAQEntry:
        return self.store.update(entry_id, question=question, answer=answer)

    def delete_entry(self, entry_id: str) -> None:
        self.store.delete(entry_id)

    def clear_all(self) -> int:
        return self.store.delete_all()

    def faq_stats(self) -> dict[str, Any]:
        return self.store.stats()

    # Templates

    def list_templates(self, category: TemplateCategory | str = "all") -> list[dict[str, Any]]:
        try:
            templates = self.registry.by_category(category)
        except ValueError as e:
            raise InputError(f"Unknown template category: {category}") from e
        return [t.to_dict() for t in templates]

    def match_template(self, text: str) -> dict[str, Any]:
        candidate = self.matcher.match(text)
        return {
            "match": (
                TemplateHit(
                    template=candidate.template,
                    extracted_params=candidate.params,
                    score=candidate.score,
                    strategy=candidate.strategy,
                    missing_inputs=candidate.missing_inputs,
                ).to_dict()
                if candidate
                else None
            ),
            "suggestions": self.matcher.suggest(text),
        }

    def stats(self) -> dict[str, Any]:
        return {
            "faq_entries": len(self.store),
            "templates": len(self.registry),
            "latency": {name: t.get_stats() for name, t in self.router.latency.items()},
        }
