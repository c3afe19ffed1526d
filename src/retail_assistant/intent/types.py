from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from retail_assistant.matching.templates import ActionId


@dataclass
class Intent:
    action: ActionId
    params: dict[str, Any] = field(default_factory=dict)
    description: str = ""
    confidence: float = 0.0  # 0..1
    source: str = "rules"  # "llm"|"rules"
    # Why the LLM path was skipped or rejected, e.g. "llm_call_failed"
    flags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "params": dict(self.params),
            "description": self.description,
            "confidence": self.confidence,
            "source": self.source,
        }
