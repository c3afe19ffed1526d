"""Fuzzy matching of free text against the predefined question templates."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from retail_assistant.config import Settings, settings
from retail_assistant.logging import get_logger
from retail_assistant.matching.similarity import word_similarity
from retail_assistant.matching.templates import (
    Template,
    TemplateCategory,
    TemplateRegistry,
)

logger = get_logger(__name__)

EXACT_MATCH_SCORE = float("inf")

EXACT_TOKEN_WEIGHT = 3.0
CONTAINS_TOKEN_WEIGHT = 2.0
SIMILAR_TOKEN_WEIGHT = 1.5
CATEGORY_BONUS = 2.0
ACTION_FRAGMENT_BONUS = 1.0
SUGGESTION_SIMILARITY_TAU = 0.6

_CATEGORY_KEYWORDS: dict[TemplateCategory, tuple[str, ...]] = {
    TemplateCategory.ANALYTICS: ("analytics",),
    TemplateCategory.PRODUCT: ("product",),
    TemplateCategory.REPLENISHMENT: ("replenish",),
    TemplateCategory.STORE_SALES: ("store", "sales"),
}

_ACTION_FRAGMENTS: tuple[str, ...] = ("top", "trend", "performance", "count", "show")

# Coarse keyword -> candidate triggers, consulted only when scoring finds nothing.
# Best effort: some keywords overlap with the greeting vocabulary.
_KEYWORD_FALLBACK: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("top", ("show me top 5 products", "show me top 5 stores")),
    ("products", ("show me top 5 products", "how many products do we have", "show me active products")),
    ("stores", ("show me top 5 stores", "show me store performance")),
    ("sales", ("what are the sales trends", "show me sales performance for store")),
    ("performance", ("show me store performance", "show me product performance")),
    ("replenishment", ("show me replenishment recommendations", "calculate replenishment for store")),
    ("analytics", ("show me the analytics dashboard", "show me summary KPIs")),
    ("trends", ("what are the sales trends",)),
    ("count", ("how many products do we have",)),
    ("help", ("help", "what can you do")),
    ("dashboard", ("show me the analytics dashboard",)),
    ("kpi", ("show me summary KPIs",)),
    ("discount", ("what is the discount impact",)),
    ("tax", ("show me tax and MRP analytics",)),
    ("mrp", ("show me tax and MRP analytics",)),
    ("mumbai", ("what is last month sales status of mumbai, powai store",)),
    ("powai", ("what is last month sales status of mumbai, powai store",)),
    ("forecast", ("what is the sales forecast for next month", "show me sales forecast by store", "what is the demand forecast")),
    ("replenishment status", ("what is the replenishment status",)),
    ("store sales", ("show me sales performance for store", "what are the top products in store")),
    ("store products", ("what are the top products in store", "show me top products in store")),
    ("top products", ("what are the top products in store", "show me top products in store")),
    ("luc-66", ("what are the top products in store LUC-66",)),
    ("sur-5", ("what are the top products in store SUR-5",)),
    ("capabilities", ("what can you do", "what are your capabilities")),
    ("about", ("tell me about yourself", "who are you")),
    ("yourself", ("tell me about yourself", "who are you")),
    ("can you", ("what can you do", "what are your capabilities")),
    ("do you", ("what can you do", "what are your capabilities")),
    ("thank", ("help", "what can you do")),
    ("bye", ("help", "what can you do")),
)

_LOCATION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"which was (?:the )?top performing item in (\w+)",
        r"top performing item in (\w+)",
        r"top item in (\w+)",
        r"best performing item in (\w+)",
        r"top product in (\w+)",
    )
)
_TOP_PERFORMING_ITEM_TRIGGER = "which was top performing item in"

_STORE_CODE = re.compile(r"\b([a-z]{3}-\d+)\b", re.IGNORECASE)
_PARAM_EXTRACTORS: dict[str, re.Pattern[str]] = {
    "storeName": re.compile(r"\bstore\s+(?!performance\b|sales\b|data\b)([a-z0-9][\w\s,-]*?)\s*[?.!]*$"),
    "location": re.compile(r"\bin\s+([a-z][a-z\s,]*?)\s*[?.!]*$"),
    "name": re.compile(r"\b(?:named|called|name)\s+([\w\s-]+?)\s*[?.!]*$"),
    "category": re.compile(r"\bcategory\s+([\w-]+)"),
    "month": re.compile(r"\b(\d{4}-\d{2})\b"),
    "productId": re.compile(r"\bproduct\s+(?:id\s+)?([a-z0-9][\w-]*\d[\w-]*)"),
}

_PUNCT = re.compile(r"[^\w\s-]+")


def clean_text(text: str) -> str:
    """Lowercase, trim, replace punctuation with spaces and collapse whitespace."""
    return " ".join(_PUNCT.sub(" ", (text or "").lower()).split())


def tokenize(text: str) -> list[str]:
    """Cleaned tokens longer than two characters."""
    return [w.strip("-") for w in clean_text(text).split() if len(w.strip("-")) > 2]


@dataclass(frozen=True)
class ScoredCandidate:
    template: Template
    score: float
    matched_words: frozenset[str] = frozenset()
    params: dict[str, Any] = field(default_factory=dict)
    # exact | location | scored | keyword
    strategy: str = "scored"

    @property
    def exact(self) -> bool:
        return self.strategy == "exact"

    @property
    def missing_inputs(self) -> list[str]:
        return sorted(k for k in self.template.required_inputs if not self.params.get(k))


class TemplateMatcher:
    def __init__(self, registry: TemplateRegistry, cfg: Settings | None = None):
        self.registry = registry
        self.cfg = cfg or settings
        self._trigger_clean = [(t, clean_text(t.trigger_phrase)) for t in registry]
        self._trigger_tokens = [(t, tokenize(t.trigger_phrase)) for t in registry]

    def match(self, text: str) -> ScoredCandidate | None:
        cleaned = clean_text(text)
        if not cleaned:
            return None

        for template, trigger in self._trigger_clean:
            if cleaned == trigger:
                return self._candidate(template, text, EXACT_MATCH_SCORE, tokenize(text), "exact")

        located = self._match_location(text)
        if located is not None:
            return located

        best = self._best_scored(text)
        if best is not None and (
            best.score >= self.cfg.TEMPLATE_MIN_SCORE
            or len(best.matched_words) >= self.cfg.TEMPLATE_MIN_MATCHED_WORDS
        ):
            return best

        fallback = self._match_keyword(text)
        if fallback is None:
            logger.debug(f"No template match for: {text!r}")
        return fallback

    def score(self, template: Template, text: str) -> tuple[float, frozenset[str]]:
        """Pairwise token score plus keyword bonuses for one template."""
        cleaned = clean_text(text)
        tokens = tokenize(cleaned)
        return self._score(template, tokenize(template.trigger_phrase), cleaned, tokens)

    def extract_params(self, template: Template, text: str) -> dict[str, Any]:
        params: dict[str, Any] = dict(template.default_params)
        lowered = (text or "").strip().lower()
        wanted = set(params) | set(template.required_inputs)

        code = _STORE_CODE.search(lowered)
        if code and ("storeId" in wanted or "storeName" in wanted) and not params.get("storeId"):
            params["storeId"] = code.group(1).upper()

        for key, pattern in _PARAM_EXTRACTORS.items():
            if key not in wanted or params.get(key):
                continue
            m = pattern.search(lowered)
            if m:
                value = m.group(1).strip(" ,")
                if value:
                    params[key] = value
        return params

    def suggest(self, text: str, limit: int = 3) -> list[str]:
        """Trigger phrases sharing the most loosely-similar words with ``text``."""
        tokens = tokenize(text)
        ranked: list[tuple[int, str]] = []
        for template, trig_tokens in self._trigger_tokens:
            hits = 0
            for u in tokens:
                for q in trig_tokens:
                    if u == q or u in q or q in u or word_similarity(u, q) > SUGGESTION_SIMILARITY_TAU:
                        hits += 1
            if hits:
                ranked.append((hits, template.trigger_phrase))
        ranked.sort(key=lambda x: -x[0])
        return [phrase for _, phrase in ranked[:limit]]

    def _candidate(
        self,
        template: Template,
        text: str,
        score: float,
        matched: list[str] | frozenset[str],
        strategy: str,
        params: dict[str, Any] | None = None,
    ) -> ScoredCandidate:
        merged = self.extract_params(template, text)
        if params:
            merged.update(params)
        return ScoredCandidate(
            template=template,
            score=score,
            matched_words=frozenset(matched),
            params=merged,
            strategy=strategy,
        )

    def _match_location(self, text: str) -> ScoredCandidate | None:
        template = self.registry.get(_TOP_PERFORMING_ITEM_TRIGGER)
        if template is None:
            return None
        lowered = text.lower()
        for pattern in _LOCATION_PATTERNS:
            m = pattern.search(lowered)
            if m:
                return self._candidate(
                    template, text, EXACT_MATCH_SCORE, tokenize(text), "location",
                    params={"location": m.group(1).strip()},
                )
        return None

    def _score(
        self,
        template: Template,
        trig_tokens: list[str],
        cleaned: str,
        tokens: list[str],
    ) -> tuple[float, frozenset[str]]:
        tau = self.cfg.WORD_SIMILARITY_TAU
        total = 0.0
        matched: set[str] = set()
        for u in tokens:
            for q in trig_tokens:
                if u == q:
                    total += EXACT_TOKEN_WEIGHT
                    matched.add(u)
                elif u in q or q in u:
                    total += CONTAINS_TOKEN_WEIGHT
                    matched.add(u)
                else:
                    sim = word_similarity(u, q)
                    if sim > tau:
                        total += SIMILAR_TOKEN_WEIGHT * sim
                        matched.add(u)

        for keyword in _CATEGORY_KEYWORDS.get(template.category, ()):
            if keyword in cleaned:
                total += CATEGORY_BONUS

        action = template.action_id.value.lower()
        for fragment in _ACTION_FRAGMENTS:
            if fragment in action and fragment in cleaned:
                total += ACTION_FRAGMENT_BONUS

        return total, frozenset(matched)

    def _best_scored(self, text: str) -> ScoredCandidate | None:
        cleaned = clean_text(text)
        tokens = tokenize(cleaned)
        best: tuple[Template, float, frozenset[str]] | None = None
        for template, trig_tokens in self._trigger_tokens:
            total, matched = self._score(template, trig_tokens, cleaned, tokens)
            # Strict comparison keeps the first-registered template on ties
            if total > 0 and (best is None or total > best[1]):
                best = (template, total, matched)
        if best is None:
            return None
        return self._candidate(best[0], text, best[1], best[2], "scored")

    def _match_keyword(self, text: str) -> ScoredCandidate | None:
        lowered = text.lower()
        for keyword, triggers in _KEYWORD_FALLBACK:
            if keyword not in lowered:
                continue
            for trigger in triggers:
                template = self.registry.get(trigger)
                if template is None:
                    continue
                words = trigger.lower().split()
                head, tail = " ".join(words[:2]), " ".join(words[-2:])
                if head in lowered or tail in lowered:
                    return self._candidate(template, text, 0.0, [keyword], "keyword")
        return None
