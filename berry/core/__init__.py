"""Core types, configuration and access policy for Berry."""

from .config import Settings, get_settings
from .enums import MemoryType, Visibility
from .schemas import (
    DateRange,
    Memory,
    MemoryCreate,
    MemoryMetadata,
    SearchFilters,
    SearchResult,
    VisibilityContext,
)
from .visibility import HUMAN_OWNER_ID, can_access, can_mutate

__all__ = [
    "get_settings",
    "Settings",
    "MemoryType",
    "Visibility",
    "DateRange",
    "Memory",
    "MemoryCreate",
    "MemoryMetadata",
    "SearchFilters",
    "SearchResult",
    "VisibilityContext",
    "HUMAN_OWNER_ID",
    "can_access",
    "can_mutate",
]
