"""API request/response schemas. Field names follow the camelCase wire format."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.enums import MemoryType, Visibility
from ..core.schemas import SearchFilters


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateMemoryMetadata(_Request):
    """Optional attributes of a new memory."""

    created_by: str | None = None
    owner: str | None = Field(default=None, min_length=1)  # Falls back to created_by
    visibility: Visibility | None = None  # Defaults to public
    shared_with: list[str] | None = None
    tags: list[str] | None = None
    references: list[str] | None = None


class CreateMemoryRequest(_Request):
    """Request to store a memory."""

    content: str = Field(min_length=1)
    type: MemoryType | None = None  # Defaults to DEFAULTS__TYPE
    metadata: CreateMemoryMetadata = Field(default_factory=CreateMemoryMetadata)


class SearchMemoriesRequest(_Request):
    """Request to search memories. Without asActor no visibility filtering applies."""

    query: str | None = None
    filters: SearchFilters | None = None
    limit: int | None = Field(default=None, ge=1)
    as_actor: str | None = None
    admin_access: bool = False


class UpdateVisibilityRequest(_Request):
    """Request to change a memory's visibility; only the owner or admin may."""

    as_actor: str = Field(min_length=1)
    admin_access: bool = False
    visibility: Visibility
    shared_with: list[str] | None = None


class ApiResponse(BaseModel):
    """Envelope for every response."""

    success: bool
    data: Any | None = None
    error: str | None = None
