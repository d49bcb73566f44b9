"""Abstract storage interface for memory backends."""

from abc import ABC, abstractmethod
from typing import Any

from ..core.schemas import Memory, MemoryCreate

# Metadata predicate in the Mongo-style dialect built by ``berry.retrieval.predicates``.
Where = dict[str, Any]


class MemoryStoreBase(ABC):
    """Abstract base for memory storage backends.

    Backends hold flat scalar metadata only; list-valued fields are encoded by
    ``berry.storage.codec`` and never leave the store in encoded form.
    Unreachable backends raise ``StorageConnectionError``; missing records are
    reported as ``None`` / ``False``.
    """

    async def initialize(self) -> None:
        """Open connections and create the collection if needed."""
        return None

    async def close(self) -> None:
        """Release backend resources."""
        return None

    @abstractmethod
    async def add(self, record: MemoryCreate) -> Memory:
        """Insert a new memory, resolving id, created_at and owner."""
        ...

    @abstractmethod
    async def get_by_id(self, memory_id: str) -> Memory | None:
        """Get a single memory by ID."""
        ...

    @abstractmethod
    async def delete(self, memory_id: str) -> bool:
        """Delete a memory. Returns False when it did not exist."""
        ...

    @abstractmethod
    async def update(self, memory_id: str, patch: dict[str, Any]) -> Memory | None:
        """Overwrite metadata fields in ``patch``, keeping all others."""
        ...

    @abstractmethod
    async def query(self, text: str, where: Where | None = None, limit: int = 10) -> list[Memory]:
        """Similarity search, best match first, pre-filtered by ``where``."""
        ...

    @abstractmethod
    async def scan(self, where: Where | None = None, limit: int = 10) -> list[Memory]:
        """List memories matching ``where`` in backend order."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the backend answers."""
        ...
