"""Fakes shared by the test modules."""

from typing import Any

from retail_assistant.embed.encoder import _mock_vector
from retail_assistant.errors import UpstreamServiceError


class DummyLLM:
    """Chat stand-in. ``reply`` is a string, an exception, or a callable of the messages."""

    def __init__(self, reply: Any = "") -> None:
        self.reply = reply
        self.calls: list[dict[str, Any]] = []

    def chat(self, messages, model=None, max_tokens=300, temperature=0.0):
        self.calls.append(
            {"messages": messages, "model": model, "max_tokens": max_tokens, "temperature": temperature}
        )
        reply = self.reply
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(messages)
        return reply, {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}


def failing_llm() -> DummyLLM:
    return DummyLLM(UpstreamServiceError("chat", "connection refused"))


def mock_embed(text: str) -> list[float]:
    return _mock_vector(text, 32).tolist()


def keyword_embed(text: str) -> list[float]:
    """Two-axis embedding: questions about opening hours vs everything else."""
    return [1.0, 0.0] if "hours" in text.lower() else [0.0, 1.0]
