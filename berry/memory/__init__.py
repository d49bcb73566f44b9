"""Memory service: access-controlled operations over the store."""

from .service import MemoryService

__all__ = ["MemoryService"]
