"""Storage layer: abstract store, metadata codec, ChromaDB and in-process backends."""

from .base import MemoryStoreBase, Where
from .factory import create_store
from .memory import InMemoryMemoryStore

__all__ = [
    "InMemoryMemoryStore",
    "MemoryStoreBase",
    "Where",
    "create_store",
]
