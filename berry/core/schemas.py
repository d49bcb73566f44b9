"""Core Pydantic schemas for memories, search filters, and results."""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import MemoryType, Visibility


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_iso(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        datetime.fromisoformat(value)
    except ValueError:
        raise ValueError(f"not an ISO 8601 date string: {value!r}") from None
    return value


class MemoryMetadata(_CamelModel):
    """Provenance, access-control and categorization attributes of a memory."""

    created_at: str = Field(default_factory=utc_now_iso)  # Immutable
    created_by: str | None = None
    owner: str | None = None  # Authority for access decisions; falls back to created_by
    # None = legacy record, treated as public. Unrecognised stored values are kept so
    # the policy can deny them.
    visibility: Annotated[Visibility | str | None, Field(union_mode="left_to_right")] = None
    shared_with: list[str] = Field(default_factory=list)  # Only consulted when shared
    tags: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)  # Other memory IDs, not enforced

    # Two-way types (question/request) may receive these later
    responded_by: str | None = None
    response: str | None = None
    responded_at: str | None = None

    @property
    def resolved_owner(self) -> str | None:
        return self.owner or self.created_by or None


class Memory(_CamelModel):
    """A stored question, request, or piece of information."""

    id: str
    content: str  # Embedded for similarity search
    type: MemoryType
    metadata: MemoryMetadata = Field(default_factory=MemoryMetadata)


class MemoryCreate(_CamelModel):
    """Schema for creating a new memory."""

    content: str = Field(min_length=1)
    type: MemoryType
    created_by: str | None = None
    owner: str | None = None
    visibility: Visibility = Visibility.PUBLIC
    shared_with: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)

    @field_validator("owner")
    @classmethod
    def _owner_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("owner must be a non-empty string")
        return v


class DateRange(_CamelModel):
    """Inclusive creation-time window; bounds are ISO 8601 strings."""

    from_: str | None = Field(default=None, alias="from")
    to: str | None = None

    @field_validator("from_", "to")
    @classmethod
    def _iso(cls, v: str | None) -> str | None:
        return _check_iso(v)


class SearchFilters(_CamelModel):
    """Structured filters for search. Tags and references match on ANY value."""

    type: MemoryType | None = None
    created_by: str | None = None
    tags: list[str] | None = None
    references: list[str] | None = None
    date_range: DateRange | None = None


class VisibilityContext(_CamelModel):
    """Per-request identity used to filter reads. Never persisted."""

    model_config = ConfigDict(frozen=True)

    actor: str
    admin_override: bool = False


class SearchResult(_CamelModel):
    """A memory with its rank-derived score (not a calibrated similarity)."""

    memory: Memory
    score: float
