from __future__ import annotations

import json
from typing import Any

from retail_assistant.config import Settings, settings
from retail_assistant.matching.templates import INTENT_ACTIONS, ActionId
from retail_assistant.models.adapter import ChatMessage, OpenAIAdapter

from .types import Intent

_PROMPT_ACTIONS = (
    "getProductForecast, getProductAnalysis, getStoreAnalysisByName, getTopProducts, "
    "getProductCount, getSalesReport, getAnalyticsDashboard, getCapabilities"
)

_SYSTEM_PROMPT = (
    "You are an AI assistant that analyzes retail business queries and determines the user's intent.\n\n"
    "Analyze the user's question and return a JSON object with the following structure:\n"
    "{\n"
    f'  "action": "one of: {_PROMPT_ACTIONS}",\n'
    '  "params": {\n'
    '    "productName": "extracted product name or null",\n'
    '    "city": "extracted city name or null",\n'
    '    "storeName": "extracted store name or null",\n'
    '    "period": "extracted time period or null",\n'
    '    "limit": "extracted number limit or null"\n'
    "  },\n"
    '  "description": "brief description of what the user wants",\n'
    '  "confidence": 0.9\n'
    "}\n\n"
    "Rules:\n"
    '- For sales forecasts: action = "getProductForecast", extract productName and city\n'
    '- For product analysis: action = "getProductAnalysis", extract productName\n'
    '- For store analysis: action = "getStoreAnalysisByName", extract storeName '
    "(only if a specific store name is mentioned)\n"
    '- For city-based analytics: action = "getAnalyticsDashboard", extract city\n'
    '- For top products: action = "getTopProducts", extract city if mentioned\n'
    '- For capabilities: action = "getCapabilities" if asking about what the system can do\n'
    '- For sales reports: action = "getSalesReport", extract period, city if mentioned\n'
    '- For analytics: action = "getAnalyticsDashboard" for general business insights\n'
    '- For product count: action = "getProductCount" if asking about inventory\n\n'
    "IMPORTANT:\n"
    '- "mumbai", "delhi", "bangalore" etc. are CITIES, not store names\n'
    '- Store names are specific business names like "ABC Store", "Central Mall", "Reliance Mart"\n'
    '- "store performance in mumbai" means stores in that city: getAnalyticsDashboard with city="mumbai"\n'
    "- Only use getStoreAnalysisByName when a specific store name is mentioned\n\n"
    "Examples:\n"
    '- "next months sales forecast for PE Mens Full Rib Navy FL in mumbai" -> getProductForecast '
    'with productName="PE Mens Full Rib Navy FL", city="mumbai"\n'
    '- "give me PE Mens Full Rib White FL analysis" -> getProductAnalysis '
    'with productName="PE Mens Full Rib White FL"\n'
    '- "show me store ABC data" -> getStoreAnalysisByName with storeName="ABC"\n'
    '- "what are your capabilities" -> getCapabilities\n'
    '- "top 5 products in delhi" -> getTopProducts with city="delhi", limit=5\n\n'
    "Return JSON only."
)


class LLMIntentError(ValueError):
    """Model output could not be turned into an Intent."""


def _build_messages(question: str) -> list[ChatMessage]:
    return [
        ChatMessage(role="system", content=_SYSTEM_PROMPT),
        ChatMessage(role="user", content=f'Analyze this query: "{question}"'),
    ]


def extract_json_object(text: str) -> str | None:
    """First balanced ``{...}`` substring of ``text``, skipping braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        start = text.find("{", start + 1)
    return None


def _clamp(value: Any, default: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    if v <= 0.0:
        return default
    return max(0.0, min(1.0, v))


def _coerce_params(params: dict[str, Any]) -> dict[str, Any]:
    # The model is told to emit null for absent values; drop those.
    out: dict[str, Any] = {}
    for key, value in params.items():
        if value is None or (isinstance(value, str) and value.strip().lower() in {"", "null"}):
            continue
        out[str(key)] = value.strip() if isinstance(value, str) else value
    return out


def parse_intent(raw: str, default_confidence: float = 0.9) -> Intent:
    """Turn raw model output into an Intent, raising LLMIntentError when unusable."""
    blob = extract_json_object(raw or "")
    if blob is None:
        raise LLMIntentError("no JSON object in model output")
    try:
        payload = json.loads(blob)
    except json.JSONDecodeError as e:
        raise LLMIntentError(f"invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise LLMIntentError("model output is not an object")

    action = ActionId.parse(payload.get("action")) if payload.get("action") else None
    params = payload.get("params")
    if action is None or action not in INTENT_ACTIONS:
        raise LLMIntentError(f"unknown action: {payload.get('action')!r}")
    if not isinstance(params, dict):
        raise LLMIntentError("params missing")

    return Intent(
        action=action,
        params=_coerce_params(params),
        description=str(payload.get("description") or "AI-detected intent"),
        confidence=_clamp(payload.get("confidence"), default_confidence),
        source="llm",
    )


def detect_with_llm(
    question: str,
    adapter: OpenAIAdapter,
    cfg: Settings | None = None,
) -> Intent:
    """One chat completion; raises UpstreamServiceError or LLMIntentError on failure."""
    cfg = cfg or settings
    raw, _ = adapter.chat(
        messages=_build_messages(question),
        model=cfg.LLM_MODEL,
        max_tokens=cfg.INTENT_MAX_TOKENS,
        temperature=cfg.INTENT_TEMPERATURE,
    )
    return parse_intent(raw, default_confidence=cfg.INTENT_DEFAULT_CONFIDENCE)
