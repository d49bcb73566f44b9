"""Berry: a personal memory store with visibility-aware access and search."""

from .core.enums import MemoryType, Visibility
from .core.schemas import Memory, MemoryCreate, SearchFilters, SearchResult
from .memory.service import MemoryService

__version__ = "1.0.0"

__all__ = [
    "Memory",
    "MemoryCreate",
    "MemoryService",
    "MemoryType",
    "SearchFilters",
    "SearchResult",
    "Visibility",
]
