"""The possible results of one resolution call. Exactly one is produced per call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Union

from retail_assistant.intent.types import Intent
from retail_assistant.matching.templates import ActionId, Template
from retail_assistant.store.faq_store import FAQEntry, RankedEntry


@dataclass
class FAQHit:
    outcome_type: ClassVar[str] = "faq"

    entry: FAQEntry
    similarity: float
    rewritten_answer: str | None = None
    top_matches: list[RankedEntry] = field(default_factory=list)
    trace: list[str] = field(default_factory=list)

    @property
    def answer(self) -> str:
        return self.rewritten_answer or self.entry.answer

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.outcome_type,
            "answer": self.answer,
            "similarity": self.similarity,
            "rewritten": self.rewritten_answer is not None,
            "faq": self.entry.to_dict(),
            "top_matches": [
                {"question": m.entry.question, "answer": m.entry.answer, "similarity": m.similarity}
                for m in self.top_matches
            ],
            "trace": list(self.trace),
        }


@dataclass
class ToolDispatch:
    outcome_type: ClassVar[str] = "tool"

    intent: Intent
    trace: list[str] = field(default_factory=list)

    @property
    def action(self) -> ActionId:
        return self.intent.action

    @property
    def params(self) -> dict[str, Any]:
        return self.intent.params

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.outcome_type, "intent": self.intent.to_dict(), "trace": list(self.trace)}


@dataclass
class TemplateHit:
    outcome_type: ClassVar[str] = "template"

    template: Template
    extracted_params: dict[str, Any]
    score: float = 0.0
    strategy: str = "scored"
    missing_inputs: list[str] = field(default_factory=list)
    trace: list[str] = field(default_factory=list)

    @property
    def action(self) -> ActionId:
        return self.template.action_id

    @property
    def params(self) -> dict[str, Any]:
        return self.extracted_params

    @property
    def input_prompt(self) -> str | None:
        return self.template.input_prompt if self.missing_inputs else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.outcome_type,
            "template": self.template.to_dict(),
            "extracted_params": dict(self.extracted_params),
            # inf for exact matches is not valid JSON
            "score": self.score if self.score != float("inf") else None,
            "strategy": self.strategy,
            "missing_inputs": list(self.missing_inputs),
            "input_prompt": self.input_prompt,
            "trace": list(self.trace),
        }


@dataclass
class GreetingOutcome:
    outcome_type: ClassVar[str] = "greeting"

    kind: Literal["greeting", "thanks", "farewell"]
    message: str
    suggestions: list[str] = field(default_factory=list)
    trace: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.outcome_type,
            "kind": self.kind,
            "message": self.message,
            "suggestions": list(self.suggestions),
            "trace": list(self.trace),
        }


@dataclass
class AgentFallback:
    outcome_type: ClassVar[str] = "agent"

    free_text: str
    suggestions: list[str] = field(default_factory=list)
    # "untrained" | "generated" | "static"
    source: str = "generated"
    trace: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.outcome_type,
            "answer": self.free_text,
            "suggestions": list(self.suggestions),
            "source": self.source,
            "trace": list(self.trace),
        }


@dataclass
class ErrorOutcome:
    outcome_type: ClassVar[str] = "error"

    reason: str
    trace: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.outcome_type, "reason": self.reason, "trace": list(self.trace)}


ResolutionOutcome = Union[FAQHit, ToolDispatch, TemplateHit, GreetingOutcome, AgentFallback, ErrorOutcome]
