"""Configuration management with pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel as PydanticBaseModel
from pydantic import Field
from pydantic_settings import BaseSettings

from .enums import MemoryType


class StorageSettings(PydanticBaseModel):
    """Vector store connection settings (nested; read via Settings env prefix).

    Env vars: STORAGE__PROVIDER, STORAGE__URL, STORAGE__API_KEY, STORAGE__TENANT,
    STORAGE__DATABASE, STORAGE__COLLECTION.
    """

    provider: Literal["local", "cloud", "memory"] = Field(default="local")
    url: str = Field(default="http://localhost:8000")  # ChromaDB server for provider=local
    api_key: str | None = Field(default=None)  # Chroma Cloud only
    tenant: str | None = Field(default=None)  # Chroma Cloud only
    database: str | None = Field(default=None)  # Chroma Cloud only
    collection: str = Field(default="memories")


class SearchSettings(PydanticBaseModel):
    """Search tuning."""

    default_limit: int = Field(default=10, ge=1)
    overfetch_factor: int = Field(
        default=3,
        ge=1,
        description="Backend cap multiplier when results are post-filtered by visibility.",
    )
    score_decrement: float = Field(default=0.1, ge=0.0)


class AccessSettings(PydanticBaseModel):
    """Access control settings."""

    admin_actor: str = Field(default="human")  # Reserved identity allowed to override checks
    require_actor_for_delete: bool = Field(
        default=False,
        description="Reject deletes that carry no actor instead of running them unchecked.",
    )


class DefaultsSettings(PydanticBaseModel):
    """Values applied when a create request omits them."""

    type: MemoryType = Field(default=MemoryType.QUESTION)
    created_by: str = Field(default="user")


class Settings(BaseSettings):
    """Application settings with nested configuration."""

    app_name: str = Field(default="Berry")
    debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)
    cors_origins: list[str] | None = Field(default=None)  # None = allow all

    storage: StorageSettings = Field(default_factory=StorageSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    access: AccessSettings = Field(default_factory=AccessSettings)
    defaults: DefaultsSettings = Field(default_factory=DefaultsSettings)

    model_config = {
        "env_file": ".env",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings.

    The result is cached for the process lifetime; call
    ``get_settings.cache_clear()`` after changing environment variables.
    An autouse fixture in ``tests/conftest.py`` does this after each test.
    """
    return Settings()
