from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None
    OPENAI_ORG: str | None = None

    LLM_MODEL: str = "gpt-4o-mini"
    EMBED_BACKEND: Literal["openai", "mock"] = "openai"
    EMBED_MODEL: str = "text-embedding-3-small"
    # Dimensionality of the deterministic mock embeddings
    MOCK_EMBED_DIM: int = 256

    # Single attempt per call; a timeout counts as a failed call
    LLM_TIMEOUT_S: float = 20.0
    EMBED_TIMEOUT_S: float = 10.0

    # FAQ tier
    FAQ_SIMILARITY_TAU: float = 0.70
    FAQ_TOP_MATCHES: int = 3
    FAQ_REWRITE_ENABLED: bool = True
    REWRITE_MAX_TOKENS: int = 300
    REWRITE_TEMPERATURE: float = 0.7
    # Empty string keeps the store in memory only
    FAQ_STORE_PATH: str = "artifacts/faq_store.jsonl"

    # Intent tier
    USE_LLM_INTENT: bool = True
    INTENT_MAX_TOKENS: int = 300
    INTENT_TEMPERATURE: float = 0.1
    INTENT_DEFAULT_CONFIDENCE: float = 0.9

    # Template tier
    TEMPLATE_MIN_SCORE: float = 2.0
    TEMPLATE_MIN_MATCHED_WORDS: int = 2
    WORD_SIMILARITY_TAU: float = 0.7

    # Agent fallback tier
    AGENT_MAX_TOKENS: int = 400
    AGENT_TEMPERATURE: float = 0.7

    # Bulk training
    BULK_MAX_ENTRIES: int = 100
    BULK_BATCH_SIZE: int = 10
    BULK_BATCH_DELAY_S: float = 0.1

    RECORD_RESOLUTIONS: bool = False
    # Per-tier latency statistics cover this many most recent calls
    LATENCY_WINDOW: int = 1000

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    log_dir: str = "logs"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
