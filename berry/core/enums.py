"""Core enums for memory types and visibility levels."""

from enum import Enum


class MemoryType(str, Enum):
    """Type of memory record."""

    QUESTION = "question"  # Two-way: may later carry a response
    REQUEST = "request"  # Two-way: may later carry a response
    INFORMATION = "information"  # One-way

    @property
    def is_two_way(self) -> bool:
        return self is not MemoryType.INFORMATION


class Visibility(str, Enum):
    """Read-access class of a memory."""

    PRIVATE = "private"  # Owner only
    SHARED = "shared"  # Owner and actors listed in shared_with
    PUBLIC = "public"  # Everyone
