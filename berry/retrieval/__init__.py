"""Retrieval: metadata predicates and visibility-aware search."""

from .search import MemorySearchEngine

__all__ = ["MemorySearchEngine"]
