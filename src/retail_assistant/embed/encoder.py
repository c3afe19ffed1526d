import hashlib

import numpy as np
import numpy.typing as npt

from retail_assistant.config import Settings, settings
from retail_assistant.errors import UpstreamServiceError
from retail_assistant.models.adapter import get_openai


def _mock_vector(text: str, dim: int) -> npt.NDArray[np.float32]:
    # Deterministic per text: identical strings embed identically, unrelated
    # strings land close to orthogonal.
    seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
    rng = np.random.default_rng(seed)
    return rng.standard_normal(dim).astype(np.float32)


def embed_texts(texts: list[str], cfg: Settings | None = None) -> list[list[float]]:
    cfg = cfg or settings
    if cfg.EMBED_BACKEND == "mock":
        return [_mock_vector(t, cfg.MOCK_EMBED_DIM).tolist() for t in texts]
    elif cfg.EMBED_BACKEND == "openai":
        client = get_openai()
        return client.embed(texts, embed_model=cfg.EMBED_MODEL)
    else:
        raise RuntimeError(f"Unknown embed backend: {cfg.EMBED_BACKEND}")


def embed_text(text: str, cfg: Settings | None = None) -> list[float]:
    vectors = embed_texts([text], cfg)
    if not vectors:
        raise UpstreamServiceError("embedding", "empty embedding response")
    return vectors[0]
