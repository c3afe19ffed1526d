"""Pytest configuration file."""

from typing import Any, Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from helpers import failing_llm, mock_embed

from retail_assistant.api.main import create_app
from retail_assistant.config import Settings
from retail_assistant.service import AssistantService
from retail_assistant.store.faq_store import EmbeddingStore


@pytest.fixture
def cfg(tmp_path) -> Settings:
    return Settings(
        EMBED_BACKEND="mock",
        MOCK_EMBED_DIM=32,
        FAQ_STORE_PATH="",
        USE_LLM_INTENT=False,
        FAQ_REWRITE_ENABLED=False,
        BULK_BATCH_DELAY_S=0.0,
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def store() -> EmbeddingStore:
    return EmbeddingStore(mock_embed)


@pytest.fixture
def make_service(cfg: Settings) -> Callable[..., AssistantService]:
    def _make(
        llm: Any = None,
        store: EmbeddingStore | None = None,
        embed_fn: Callable[[str], list[float]] = mock_embed,
        **kwargs: Any,
    ) -> AssistantService:
        return AssistantService(
            cfg=cfg,
            store=store if store is not None else EmbeddingStore(embed_fn),
            llm=llm if llm is not None else failing_llm(),
            embed_fn=embed_fn,
            **kwargs,
        )

    return _make


@pytest.fixture
def service(make_service) -> AssistantService:
    return make_service()


@pytest.fixture
def app(service: AssistantService) -> FastAPI:
    """Create a test FastAPI application."""
    return create_app(service)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create a test client."""
    return TestClient(app)
