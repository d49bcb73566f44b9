"""Pytest fixtures shared by unit and integration tests."""

import pytest

from berry.core.enums import MemoryType, Visibility
from berry.core.schemas import Memory, MemoryCreate, MemoryMetadata
from berry.memory.service import MemoryService
from berry.storage.memory import InMemoryMemoryStore


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Auto-clear the settings LRU cache after each test to prevent pollution."""
    yield
    from berry.core.config import get_settings

    get_settings.cache_clear()


@pytest.fixture
def make_memory():
    """Factory for in-memory ``Memory`` objects (no store involved)."""

    def _make(
        memory_id: str = "mem_1_abc",
        content: str = "Test memory content",
        type: MemoryType = MemoryType.INFORMATION,
        **metadata,
    ) -> Memory:
        metadata.setdefault("created_at", "2025-01-15T12:00:00.000Z")
        return Memory(
            id=memory_id,
            content=content,
            type=type,
            metadata=MemoryMetadata(**metadata),
        )

    return _make


@pytest.fixture
def private_memory(make_memory):
    return make_memory(owner="alice", created_by="alice", visibility=Visibility.PRIVATE)


@pytest.fixture
def shared_memory(make_memory):
    return make_memory(
        owner="alice",
        created_by="alice",
        visibility=Visibility.SHARED,
        shared_with=["bob"],
    )


@pytest.fixture
def store() -> InMemoryMemoryStore:
    return InMemoryMemoryStore()


@pytest.fixture
def service(store) -> MemoryService:
    return MemoryService(store)


@pytest.fixture
def sample_create() -> MemoryCreate:
    return MemoryCreate(
        content="Buy milk",
        type=MemoryType.INFORMATION,
        created_by="alice",
        owner="alice",
        visibility=Visibility.PRIVATE,
    )
