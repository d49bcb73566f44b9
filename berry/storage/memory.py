"""Process-local memory store for lite mode and tests.

Records are kept exactly as a vector store would hold them (document plus
encoded scalar metadata) and filtered with the same predicate dialect,
including ChromaDB's rule that range operators only take int or float
operands. Similarity is lexical, so result order differs from ChromaDB's.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable
from typing import Any

from ..core.exceptions import StorageError, ValidationError
from ..core.schemas import Memory, MemoryCreate
from .base import MemoryStoreBase, Where
from .codec import (
    generate_memory_id,
    merge_metadata,
    new_memory_metadata,
    to_memory,
    to_metadata,
)

_TOKEN_RE = re.compile(r"\w+")

_COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _match_field(value: Any, condition: Any) -> bool:
    if not isinstance(condition, dict):
        return value == condition
    for op, expected in condition.items():
        if op == "$eq":
            ok = value == expected
        elif op == "$ne":
            ok = value != expected
        elif op == "$in":
            ok = value in expected
        elif op == "$nin":
            ok = value not in expected
        elif op in _COMPARISONS:
            if not isinstance(expected, int | float):
                raise ValidationError(
                    f"Expected operand value to be an int or a float for operator {op}, "
                    f"got {expected!r}"
                )
            ok = _is_number(value) and _COMPARISONS[op](value, expected)
        else:
            raise StorageError(f"Unsupported predicate operator: {op}")
        if not ok:
            return False
    return True


def matches(metadata: dict[str, Any], where: Where | None) -> bool:
    """Evaluate a metadata predicate against encoded metadata."""
    if not where:
        return True
    for key, condition in where.items():
        if key == "$and":
            if not all(matches(metadata, c) for c in condition):
                return False
        elif key == "$or":
            if not any(matches(metadata, c) for c in condition):
                return False
        elif not _match_field(metadata.get(key), condition):
            return False
    return True


def _tokens(text: str) -> set[str]:
    return set(_TOKEN_RE.findall(text.lower()))


def lexical_similarity(query: str, document: str) -> float:
    """Share of query tokens present in the document (0.0 to 1.0)."""
    q = _tokens(query)
    if not q:
        return 0.0
    return len(q & _tokens(document)) / len(q)


class InMemoryMemoryStore(MemoryStoreBase):
    """Memory store backed by a dict, with lexical overlap standing in for embeddings."""

    def __init__(self) -> None:
        self._documents: dict[str, str] = {}
        self._metadatas: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._documents)

    async def add(self, record: MemoryCreate) -> Memory:
        memory_id = generate_memory_id()
        metadata = new_memory_metadata(record)
        self._documents[memory_id] = record.content
        self._metadatas[memory_id] = to_metadata(record.type, metadata)
        return Memory(id=memory_id, content=record.content, type=record.type, metadata=metadata)

    def put_raw(self, memory_id: str, document: str, metadata: dict[str, Any]) -> None:
        """Insert an already-encoded record, e.g. one written before visibility existed."""
        self._documents[memory_id] = document
        self._metadatas[memory_id] = dict(metadata)

    def raw_metadata(self, memory_id: str) -> dict[str, Any] | None:
        """Encoded metadata as stored, or None."""
        meta = self._metadatas.get(memory_id)
        return dict(meta) if meta is not None else None

    async def get_by_id(self, memory_id: str) -> Memory | None:
        if memory_id not in self._documents:
            return None
        return to_memory(memory_id, self._documents[memory_id], self._metadatas[memory_id])

    async def delete(self, memory_id: str) -> bool:
        if memory_id not in self._documents:
            return False
        del self._documents[memory_id]
        del self._metadatas[memory_id]
        return True

    async def update(self, memory_id: str, patch: dict[str, Any]) -> Memory | None:
        existing = await self.get_by_id(memory_id)
        if existing is None:
            return None
        metadata = merge_metadata(existing.metadata, patch)
        self._metadatas[memory_id] = to_metadata(existing.type, metadata)
        return existing.model_copy(update={"metadata": metadata})

    async def query(self, text: str, where: Where | None = None, limit: int = 10) -> list[Memory]:
        candidates = [
            (lexical_similarity(text, self._documents[mid]), mid)
            for mid, meta in self._metadatas.items()
            if matches(meta, where)
        ]
        candidates.sort(key=lambda x: -x[0])
        return [
            to_memory(mid, self._documents[mid], self._metadatas[mid])
            for _, mid in candidates[:limit]
        ]

    async def scan(self, where: Where | None = None, limit: int = 10) -> list[Memory]:
        out: list[Memory] = []
        for mid, meta in self._metadatas.items():
            if len(out) >= limit:
                break
            if matches(meta, where):
                out.append(to_memory(mid, self._documents[mid], meta))
        return out

    async def health_check(self) -> bool:
        return True

