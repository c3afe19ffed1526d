"""Small-talk and capability-question heuristics used by the router."""

from __future__ import annotations

import re
from typing import Literal

GREETINGS: tuple[str, ...] = (
    "hi",
    "hello",
    "hey",
    "good morning",
    "good afternoon",
    "good evening",
    "morning",
    "afternoon",
    "evening",
    "sup",
    "what's up",
    "howdy",
    "yo",
    "greetings",
    "hi there",
    "hello there",
    "hey there",
    "good day",
    "what's happening",
    "how are you",
    "how's it going",
)

# A greeting prefix only counts when the whole message stays this short
_SHORT_TAIL = 10

_FAREWELLS: tuple[str, ...] = ("bye", "goodbye", "see you")

_CAPABILITY_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"what\s+can\s+you\s+do",
        r"what\s+are\s+your\s+capabilities",
        r"what\s+are\s+your\s+(?:potential\s+)?use\s+cases",
        r"how\s+can\s+you\s+help",
        r"what\s+do\s+you\s+do",
        r"tell\s+me\s+about\s+yourself",
        r"who\s+are\s+you",
    )
)

GREETING_SUGGESTIONS: list[str] = [
    "Show me top 5 products",
    "Show me store performance",
    "Show me the analytics dashboard",
    "Show me replenishment recommendations",
    "Help",
]
SHORT_SUGGESTIONS: list[str] = [
    "Show me top 5 products",
    "Show me store performance",
    "Show me the analytics dashboard",
    "Help",
]

MESSAGES: dict[str, str] = {
    "greeting": "Hello! 👋 I'm your business analytics assistant. I can help you with:",
    "thanks": (
        "You're welcome! 😊 I'm here to help you get the business insights you need. "
        "Is there anything else you'd like to know about your business data?"
    ),
    "farewell": (
        "Goodbye! 👋 It was great helping you today. Feel free to come back anytime "
        "for business insights and analytics. Have a great day!"
    ),
}


def is_greeting(message: str) -> bool:
    """True when ``message`` is primarily a greeting rather than a question that contains one."""
    text = (message or "").strip().lower()
    if not text:
        return False
    words = [w for w in re.sub(r"[!?.,]", "", text).split() if len(w) > 2]
    for greeting in GREETINGS:
        if text in (greeting, greeting + "!", greeting + "?"):
            return True
        if (
            text.startswith(greeting)
            and len(text) < len(greeting) + _SHORT_TAIL
            and not text[len(greeting) : len(greeting) + 1].isalnum()
        ):
            return True
        if len(words) <= 2 and greeting in words:
            return True
    return False


def is_thanks(message: str) -> bool:
    return "thank" in (message or "").lower()


def is_farewell(message: str) -> bool:
    text = (message or "").lower()
    return any(f in text for f in _FAREWELLS)


def classify_small_talk(message: str) -> Literal["greeting", "thanks", "farewell"] | None:
    if is_greeting(message):
        return "greeting"
    if is_thanks(message):
        return "thanks"
    if is_farewell(message):
        return "farewell"
    return None


def is_capability_question(message: str) -> bool:
    text = (message or "").lower()
    return any(p.search(text) for p in _CAPABILITY_PATTERNS)
