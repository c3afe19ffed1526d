"""Persisted (question, answer, embedding) records with full-scan cosine ranking.

Records live in memory and, when a path is configured, are mirrored to a JSONL
file rewritten on every mutation. The store is the only writer of FAQ entries.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Literal

import numpy as np

from retail_assistant.errors import InputError, NotFoundError, VectorDimensionError
from retail_assistant.logging import get_logger
from retail_assistant.utils.jsonl import read_jsonl, write_jsonl

logger = get_logger(__name__)

EmbedFn = Callable[[str], list[float]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def cosine_similarity(a: list[float] | np.ndarray, b: list[float] | np.ndarray) -> float:
    """Dot product over the product of magnitudes; 0 when either vector is all zeros."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise VectorDimensionError(va.size, vb.size)
    na = float(np.linalg.norm(va))
    nb = float(np.linalg.norm(vb))
    if na == 0.0 or nb == 0.0:
        return 0.0
    sim = float(np.dot(va, vb) / (na * nb))
    return max(-1.0, min(1.0, sim))


@dataclass
class FAQEntry:
    id: str
    question: str
    answer: str
    embedding: list[float]
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self, with_embedding: bool = False) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        if with_embedding:
            out["embedding"] = self.embedding
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FAQEntry":
        return cls(
            id=str(data["id"]),
            question=str(data["question"]),
            answer=str(data["answer"]),
            embedding=[float(x) for x in data["embedding"]],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


@dataclass(frozen=True)
class RankedEntry:
    entry: FAQEntry
    similarity: float


@dataclass(frozen=True)
class UpsertResult:
    entry_id: str
    action: Literal["created", "updated"]


class EmbeddingStore:
    def __init__(self, embed_fn: EmbedFn, path: str | Path | None = None):
        self._embed = embed_fn
        self.path = Path(path) if path else None
        self._entries: dict[str, FAQEntry] = {}
        self._lock = threading.Lock()
        if self.path is not None and self.path.exists():
            self._load()

    def __len__(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def upsert(self, question: str, answer: str) -> UpsertResult:
        """Insert, or update the entry whose question is exactly ``question`` (trimmed)."""
        q = (question or "").strip() if isinstance(question, str) else ""
        a = (answer or "").strip() if isinstance(answer, str) else ""
        if not q or not a:
            raise InputError("Question and answer are required")

        # Embed before taking the lock; no lock is held across the network call.
        embedding = self._embed(q)

        with self._lock:
            existing = self._find_by_question(q)
            if existing is not None:
                entry = replace(existing, answer=a, embedding=list(embedding), updated_at=_now())
                result = UpsertResult(existing.id, "updated")
            else:
                entry = FAQEntry(id=uuid.uuid4().hex, question=q, answer=a, embedding=list(embedding))
                result = UpsertResult(entry.id, "created")
            self._commit({**self._entries, entry.id: entry})
        logger.debug(f"FAQ {result.action}: {result.entry_id} ({q!r})")
        return result

    def update(self, entry_id: str, question: str | None = None, answer: str | None = None) -> FAQEntry:
        """Edit an entry by id, re-embedding when the question text changes.

        Raises ``InputError`` when the new question already belongs to another entry.
        """
        current = self.get(entry_id)
        new_q = question.strip() if question and question.strip() else None
        new_a = answer.strip() if answer and answer.strip() else None
        embedding = self._embed(new_q) if new_q and new_q != current.question else None

        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                raise NotFoundError(f"FAQ {entry_id} not found")
            if new_q:
                clash = self._find_by_question(new_q)
                if clash is not None and clash.id != entry_id:
                    raise InputError(f"Question already exists as FAQ {clash.id}")
            updated = replace(
                entry,
                question=new_q or entry.question,
                answer=new_a or entry.answer,
                embedding=list(embedding) if embedding is not None else entry.embedding,
                updated_at=_now(),
            )
            self._commit({**self._entries, entry_id: updated})
            return updated

    def get(self, entry_id: str) -> FAQEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise NotFoundError(f"FAQ {entry_id} not found")
        return entry

    def delete(self, entry_id: str) -> None:
        with self._lock:
            if entry_id not in self._entries:
                raise NotFoundError(f"FAQ {entry_id} not found")
            self._commit({k: v for k, v in self._entries.items() if k != entry_id})

    def delete_all(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._commit({})
        logger.info(f"Cleared {count} FAQ entries")
        return count

    def list(self, page: int = 1, limit: int = 10, search: str | None = None) -> dict[str, Any]:
        """Newest-first page of entries, optionally filtered by a substring."""
        page = max(1, page)
        limit = max(1, limit)
        entries = sorted(self._entries.values(), key=lambda e: e.created_at, reverse=True)
        if search:
            needle = search.lower()
            entries = [
                e for e in entries if needle in e.question.lower() or needle in e.answer.lower()
            ]
        total = len(entries)
        start = (page - 1) * limit
        total_pages = -(-total // limit)
        return {
            "results": entries[start : start + limit],
            "page": page,
            "limit": limit,
            "total_results": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        }

    def stats(self) -> dict[str, Any]:
        entries = sorted(self._entries.values(), key=lambda e: e.created_at, reverse=True)
        week_ago = _now() - timedelta(days=7)
        return {
            "total": len(entries),
            "recent": sum(1 for e in entries if e.created_at >= week_ago),
            "latest_questions": [e.question for e in entries[:5]],
        }

    def rank_against(self, query_embedding: list[float]) -> list[RankedEntry]:
        """Every entry scored by cosine similarity, best first."""
        snapshot = list(self._entries.values())
        ranked = [RankedEntry(e, cosine_similarity(query_embedding, e.embedding)) for e in snapshot]
        ranked.sort(key=lambda r: r.similarity, reverse=True)
        return ranked

    def _find_by_question(self, question: str) -> FAQEntry | None:
        for entry in self._entries.values():
            if entry.question == question:
                return entry
        return None

    def _load(self) -> None:
        assert self.path is not None
        for record in read_jsonl(self.path):
            entry = FAQEntry.from_dict(record)
            self._entries[entry.id] = entry
        logger.info(f"Loaded {len(self._entries)} FAQ entries from {self.path}")

    def _commit(self, entries: dict[str, FAQEntry]) -> None:
        # Caller holds the lock. Memory changes only once the snapshot is on disk.
        if self.path is not None:
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            write_jsonl([e.to_dict(with_embedding=True) for e in entries.values()], tmp)
            tmp.replace(self.path)
        self._entries = entries
