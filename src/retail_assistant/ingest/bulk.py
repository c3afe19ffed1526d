"""Batched, paced ingestion of many (question, answer) pairs."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from retail_assistant.config import Settings, settings
from retail_assistant.errors import InputError
from retail_assistant.logging import get_logger
from retail_assistant.store.faq_store import EmbeddingStore

logger = get_logger(__name__)


@dataclass
class BulkError:
    index: int
    question: str
    error: str


@dataclass
class BulkResult:
    total: int
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[BulkError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "errors": [
                {"index": e.index, "question": e.question, "error": e.error} for e in self.errors
            ],
        }


class BulkTrainer:
    def __init__(
        self,
        store: EmbeddingStore,
        cfg: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.cfg = cfg or settings
        self._sleep = sleep

    def train_batch(
        self, entries: Sequence[Mapping[str, Any]], batch_size: int | None = None
    ) -> BulkResult:
        """Upsert every entry; per-entry failures are recorded, not raised.

        Chunks of ``batch_size`` run concurrently, with a fixed pause between
        chunks. Raises ``InputError`` before doing anything if ``entries`` is
        empty or larger than ``BULK_MAX_ENTRIES``.
        """
        if not entries:
            raise InputError("FAQ list must be a non-empty array")
        if len(entries) > self.cfg.BULK_MAX_ENTRIES:
            raise InputError(f"Maximum {self.cfg.BULK_MAX_ENTRIES} FAQs allowed per request")

        size = max(1, batch_size or self.cfg.BULK_BATCH_SIZE)
        result = BulkResult(total=len(entries))

        for start in range(0, len(entries), size):
            chunk = entries[start : start + size]
            with ThreadPoolExecutor(max_workers=len(chunk)) as ex:
                futs = {
                    ex.submit(self._train_one, entry): start + offset
                    for offset, entry in enumerate(chunk)
                }
                for fut in as_completed(futs):
                    index = futs[fut]
                    try:
                        action = fut.result()
                    except Exception as e:
                        result.failed += 1
                        result.errors.append(
                            BulkError(index=index, question=_question_of(entries[index]), error=str(e))
                        )
                        logger.warning(f"Bulk entry {index} failed: {e}")
                        continue
                    if action == "created":
                        result.created += 1
                    else:
                        result.updated += 1

            if start + size < len(entries):
                self._sleep(self.cfg.BULK_BATCH_DELAY_S)

        result.errors.sort(key=lambda e: e.index)
        logger.info(
            f"Bulk training: {result.created} created, {result.updated} updated, "
            f"{result.failed} failed of {result.total}"
        )
        return result

    def _train_one(self, entry: Mapping[str, Any]) -> str:
        if not isinstance(entry, Mapping):
            raise InputError("Each FAQ must be an object with question and answer")
        return self.store.upsert(entry.get("question"), entry.get("answer")).action  # type: ignore[arg-type]


def _question_of(entry: Any) -> str:
    if isinstance(entry, Mapping) and entry.get("question"):
        return str(entry["question"])
    return "Unknown"
