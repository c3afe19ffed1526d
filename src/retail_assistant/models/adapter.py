"""Thin wrapper over the OpenAI SDK for the two external services the router uses.

Both calls carry a timeout and make a single attempt (``max_retries=0``); every
SDK failure surfaces as ``UpstreamServiceError`` so callers can fall back to the
next tier instead of retrying.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, TypedDict

import openai
from openai import OpenAI

from retail_assistant.config import Settings, settings
from retail_assistant.errors import UpstreamServiceError


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class OpenAIAdapter:
    def __init__(self, cfg: Settings | None = None):
        self.cfg = cfg or settings
        try:
            self.client = OpenAI(
                api_key=self.cfg.OPENAI_API_KEY,
                base_url=self.cfg.OPENAI_BASE_URL,
                organization=self.cfg.OPENAI_ORG,
                max_retries=0,
            )
        except openai.OpenAIError as e:
            # Missing API key is reported here by the SDK
            raise UpstreamServiceError("client", str(e)) from e

    def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        max_tokens: int = 300,
        temperature: float = 0.0,
    ) -> tuple[str, dict[str, int]]:
        """Run one chat completion and return ``(text, usage)``.

        The text may be empty; callers parse it defensively.
        """
        try:
            resp = self.client.chat.completions.create(
                model=model or self.cfg.LLM_MODEL,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=self.cfg.LLM_TIMEOUT_S,
            )
        except openai.OpenAIError as e:
            raise UpstreamServiceError("chat", str(e)) from e

        text = ""
        if resp.choices:
            text = (resp.choices[0].message.content or "").strip()
        usage: dict[str, int] = {}
        if resp.usage is not None:
            usage = {
                "prompt_tokens": resp.usage.prompt_tokens,
                "completion_tokens": resp.usage.completion_tokens,
                "total_tokens": resp.usage.total_tokens,
            }
        return text, usage

    def embed(self, texts: list[str], embed_model: str | None = None) -> list[list[float]]:
        if not texts:
            return []
        try:
            resp = self.client.embeddings.create(
                model=embed_model or self.cfg.EMBED_MODEL,
                input=texts,
                timeout=self.cfg.EMBED_TIMEOUT_S,
            )
        except openai.OpenAIError as e:
            raise UpstreamServiceError("embedding", str(e)) from e

        data: list[Any] = sorted(resp.data, key=lambda d: d.index)
        if len(data) != len(texts) or any(not d.embedding for d in data):
            raise UpstreamServiceError(
                "embedding", f"expected {len(texts)} embeddings, got {len(data)}"
            )
        return [list(d.embedding) for d in data]


@lru_cache(maxsize=1)
def get_openai() -> OpenAIAdapter:
    return OpenAIAdapter()
