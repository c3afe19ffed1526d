"""Ordered regex intent rules, evaluated first-match-wins against the lowercased question."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

from retail_assistant.matching.templates import ActionId

from .types import Intent

RULE_CONFIDENCE = 0.9

Extractor = Callable[["re.Match[str]"], dict[str, Any]]


def _no_params(_: re.Match[str]) -> dict[str, Any]:
    return {}


def _city(m: re.Match[str]) -> dict[str, Any]:
    return {"city": m.group(1).strip(" ,")}


def _forecast(m: re.Match[str]) -> dict[str, Any]:
    city = m.group(2)
    return {"productName": m.group(1).strip(), "city": city.strip(" ,") if city else None}


def _product_name(m: re.Match[str]) -> dict[str, Any]:
    return {"productName": (m.group(1) or m.group(2)).strip()}


def _store_name(m: re.Match[str]) -> dict[str, Any]:
    return {"storeName": m.group(1).strip()}


@dataclass(frozen=True)
class IntentRule:
    pattern: re.Pattern[str]
    action: ActionId
    extract: Extractor
    description: str

    def apply(self, text: str) -> Intent | None:
        m = self.pattern.search(text)
        if m is None:
            return None
        return Intent(
            action=self.action,
            params=self.extract(m),
            description=self.description,
            confidence=RULE_CONFIDENCE,
            source="rules",
        )


def _rule(pattern: str, action: ActionId, extract: Extractor, description: str) -> IntentRule:
    return IntentRule(re.compile(pattern), action, extract, description)


A = ActionId

# Order matters: the first matching rule wins.
RULES: tuple[IntentRule, ...] = (
    _rule(r"top\s+products\s+in\s+([a-z][a-z\s,]*)", A.GET_TOP_PRODUCTS_IN_CITY, _city,
          "Get top products in a specific city"),
    _rule(r"top\s+\d*\s*products", A.GET_TOP_PRODUCTS, _no_params,
          "Get top products across all stores"),
    _rule(r"how\s+many\s+products|product\s+count|total\s+products", A.GET_PRODUCT_COUNT,
          _no_params, "Get total product count"),
    _rule(r"sales\s+report|sales\s+data|sales\s+summary", A.GET_SALES_REPORT, _no_params,
          "Get sales report"),
    _rule(r"analytics\s+dashboard|dashboard|business\s+insights", A.GET_ANALYTICS_DASHBOARD,
          _no_params, "Get comprehensive analytics dashboard"),
    _rule(r"store\s+analysis|store\s+performance|store\s+report", A.GET_STORE_ANALYSIS,
          _no_params, "Get store performance analysis"),
    _rule(r"products\s+in\s+([a-z][a-z\s,]*)", A.GET_TOP_PRODUCTS_IN_CITY, _city,
          "Get products in a specific city"),
    _rule(r"best\s+selling\s+products", A.GET_TOP_PRODUCTS, _no_params,
          "Get best selling products"),
    _rule(r"inventory\s+summary|product\s+inventory", A.GET_PRODUCT_COUNT, _no_params,
          "Get product inventory summary"),
    _rule(r"sales\s+trend|trend\s+for|monthly\s+sales", A.GET_SALES_REPORT, _no_params,
          "Get sales trend analysis"),
    _rule(r"top\s+stores|stores\s+by\s+performance|store\s+ranking", A.GET_STORE_ANALYSIS,
          _no_params, "Get top stores by performance"),
    _rule(r"brand\s+performance|brand\s+data|brand\s+analysis", A.GET_ANALYTICS_DASHBOARD,
          _no_params, "Get brand performance analysis"),
    _rule(r"(?:next\s+)?months?\s+(?:sales\s+)?forecast\s+(?:for\s+)?(.+?)"
          r"(?:\s+in\s+([a-z][a-z\s,]*?))?\s*\??$",
          A.GET_PRODUCT_FORECAST, _forecast,
          "Get sales forecast for specific product and city"),
    _rule(r"(?:what\s+are\s+)?(?:your\s+)?(?:potential\s+)?use\s+cases?|capabilities?"
          r"|what\s+can\s+you\s+do",
          A.GET_CAPABILITIES, _no_params, "Get system capabilities and use cases"),
    _rule(r"(?:give\s+me\s+)?([^?]+?)\s+analysis\s*\??$|analyze\s+([^?]+?)\s*\??$",
          A.GET_PRODUCT_ANALYSIS, _product_name, "Get detailed product analysis by name"),
    _rule(r"(?:store\s+)?([a-z]{3,}[a-z0-9\s\-]*?)\s+(?:store|data|performance|analysis)",
          A.GET_STORE_ANALYSIS_BY_NAME, _store_name,
          "Get store analysis by store name with context"),
)


def detect_with_rules(question: str, rules: tuple[IntentRule, ...] = RULES) -> Intent | None:
    text = (question or "").strip().lower()
    if not text:
        return None
    for rule in rules:
        intent = rule.apply(text)
        if intent is not None:
            return intent
    return None
