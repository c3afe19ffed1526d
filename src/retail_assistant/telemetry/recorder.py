from __future__ import annotations

import time
from pathlib import Path
from typing import Any

from retail_assistant.config import settings
from retail_assistant.utils.jsonl import append_jsonl


def _log_dir() -> Path:
    d = Path(getattr(settings, "log_dir", None) or "logs")
    d.mkdir(parents=True, exist_ok=True)
    return d


def log_resolution(question: str, payload: dict[str, Any], path: str | Path | None = None) -> None:
    """Append one resolution record to ``resolutions.jsonl`` in the log directory."""
    data = payload.copy()
    data.setdefault("question", question)
    data.setdefault("ts", time.time())
    append_jsonl(data, Path(path) if path else _log_dir() / "resolutions.jsonl")
