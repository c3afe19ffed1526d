import pytest
from helpers import DummyLLM, failing_llm, keyword_embed

from retail_assistant.config import Settings
from retail_assistant.errors import UpstreamServiceError
from retail_assistant.faq.resolver import REFUSAL, SemanticFAQResolver
from retail_assistant.store.faq_store import EmbeddingStore


@pytest.fixture
def trained_store() -> EmbeddingStore:
    store = EmbeddingStore(keyword_embed)
    store.upsert("What are your store hours?", "We are open 9am to 9pm.")
    return store


def test_hit_above_threshold_returns_stored_answer(trained_store, cfg: Settings) -> None:
    resolver = SemanticFAQResolver(trained_store, llm=failing_llm(), cfg=cfg, embed_fn=keyword_embed)

    hit = resolver.resolve("when are the opening hours")

    assert hit is not None
    assert hit.similarity == pytest.approx(1.0)
    assert hit.entry.question == "What are your store hours?"
    assert hit.answer == "We are open 9am to 9pm."
    assert hit.rewritten_answer is None
    assert len(hit.top_matches) == 1


def test_below_threshold_returns_none(trained_store, cfg: Settings) -> None:
    resolver = SemanticFAQResolver(trained_store, cfg=cfg, embed_fn=keyword_embed)
    assert resolver.resolve("show me top products") is None


def test_threshold_is_inclusive(cfg: Settings) -> None:
    cfg.FAQ_SIMILARITY_TAU = 1.0
    store = EmbeddingStore(lambda text: [1.0, 0.0])
    store.upsert("q", "a")
    resolver = SemanticFAQResolver(store, cfg=cfg, embed_fn=lambda text: [1.0, 0.0])
    hit = resolver.resolve("anything")
    assert hit is not None
    assert hit.similarity == 1.0


def test_rewrite_used_when_enabled(trained_store, cfg: Settings) -> None:
    cfg.FAQ_REWRITE_ENABLED = True
    llm = DummyLLM("We're open from 9am until 9pm every day.")
    resolver = SemanticFAQResolver(trained_store, llm=llm, cfg=cfg, embed_fn=keyword_embed)

    hit = resolver.resolve("opening hours?")

    assert hit is not None
    assert hit.answer == "We're open from 9am until 9pm every day."
    assert hit.entry.answer == "We are open 9am to 9pm."
    call = llm.calls[0]
    assert call["max_tokens"] == 300
    assert call["temperature"] == pytest.approx(0.7)
    system, user = call["messages"]
    assert REFUSAL in system["content"]
    assert "We are open 9am to 9pm." in user["content"]


def test_rewrite_failure_falls_back_to_stored_answer(trained_store, cfg: Settings) -> None:
    cfg.FAQ_REWRITE_ENABLED = True
    resolver = SemanticFAQResolver(trained_store, llm=failing_llm(), cfg=cfg, embed_fn=keyword_embed)

    hit = resolver.resolve("opening hours?")

    assert hit is not None
    assert hit.answer == "We are open 9am to 9pm."


def test_empty_rewrite_falls_back_to_stored_answer(trained_store, cfg: Settings) -> None:
    cfg.FAQ_REWRITE_ENABLED = True
    resolver = SemanticFAQResolver(trained_store, llm=DummyLLM(""), cfg=cfg, embed_fn=keyword_embed)
    hit = resolver.resolve("opening hours?")
    assert hit is not None
    assert hit.rewritten_answer is None


def test_top_matches_capped(cfg: Settings) -> None:
    store = EmbeddingStore(lambda text: [1.0, 0.0])
    for i in range(5):
        store.upsert(f"hours question {i}", f"answer {i}")
    resolver = SemanticFAQResolver(store, cfg=cfg, embed_fn=lambda text: [1.0, 0.0])

    hit = resolver.resolve("hours")

    assert hit is not None
    assert len(hit.top_matches) == 3


def test_empty_store_skips_embedding(cfg: Settings) -> None:
    def boom(text: str) -> list[float]:
        raise AssertionError("embedding should not be requested")

    resolver = SemanticFAQResolver(EmbeddingStore(boom), cfg=cfg, embed_fn=boom)
    assert resolver.resolve("anything") is None


def test_embedding_failure_propagates(trained_store, cfg: Settings) -> None:
    def down(text: str) -> list[float]:
        raise UpstreamServiceError("embedding", "quota exceeded")

    resolver = SemanticFAQResolver(trained_store, cfg=cfg, embed_fn=down)
    with pytest.raises(UpstreamServiceError):
        resolver.resolve("opening hours?")
