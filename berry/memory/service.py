"""Memory service: access-controlled create, read, search, delete and visibility changes."""

from typing import Any

from ..core.config import Settings, get_settings
from ..core.enums import Visibility
from ..core.exceptions import MemoryAccessDenied, MemoryNotFoundError, ValidationError
from ..core.schemas import (
    Memory,
    MemoryCreate,
    SearchFilters,
    SearchResult,
    VisibilityContext,
    utc_now_iso,
)
from ..core.visibility import HUMAN_OWNER_ID, can_access, can_mutate
from ..retrieval.search import DEFAULT_LIMIT, MemorySearchEngine
from ..storage.base import MemoryStoreBase
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


class MemoryService:
    """
    Entry point for memory operations.

    Reads and deletes without an actor skip access checks entirely, so that
    callers predating visibility keep working (deletes can be made strict with
    ``require_actor_for_delete``). Visibility changes always require an actor.
    Ownership is checked before any mutating store call.
    """

    def __init__(
        self,
        store: MemoryStoreBase,
        search_engine: MemorySearchEngine | None = None,
        admin_actor: str = HUMAN_OWNER_ID,
        require_actor_for_delete: bool = False,
    ) -> None:
        self.store = store
        self.admin_actor = admin_actor
        self.require_actor_for_delete = require_actor_for_delete
        self.search_engine = search_engine or MemorySearchEngine(store, admin_actor=admin_actor)

    @classmethod
    def from_settings(
        cls, store: MemoryStoreBase, settings: Settings | None = None
    ) -> "MemoryService":
        """Build a service whose search tuning and admin identity come from settings."""
        settings = settings or get_settings()
        engine = MemorySearchEngine(
            store,
            overfetch_factor=settings.search.overfetch_factor,
            score_decrement=settings.search.score_decrement,
            admin_actor=settings.access.admin_actor,
        )
        return cls(
            store,
            search_engine=engine,
            admin_actor=settings.access.admin_actor,
            require_actor_for_delete=settings.access.require_actor_for_delete,
        )

    async def create(self, record: MemoryCreate) -> Memory:
        memory = await self.store.add(record)
        logger.info(
            "memory_created",
            memory_id=memory.id,
            type=memory.type.value,
            owner=memory.metadata.owner,
            visibility=memory.metadata.visibility,
        )
        return memory

    async def _require(self, memory_id: str) -> Memory:
        memory = await self.store.get_by_id(memory_id)
        if memory is None:
            raise MemoryNotFoundError(memory_id)
        return memory

    def _check_mutate(
        self, memory: Memory, actor: str, admin_override: bool, action: str, message: str
    ) -> None:
        if not can_mutate(memory, actor, admin_override, admin_actor=self.admin_actor):
            logger.warning("memory_access_denied", memory_id=memory.id, actor=actor, action=action)
            raise MemoryAccessDenied(memory.id, actor, message=message)

    async def get(
        self,
        memory_id: str,
        actor: str | None = None,
        admin_override: bool = False,
    ) -> Memory:
        """Fetch a memory; enforce the read policy only when an actor is given."""
        memory = await self._require(memory_id)
        if actor and not can_access(memory, actor, admin_override, admin_actor=self.admin_actor):
            logger.warning("memory_access_denied", memory_id=memory_id, actor=actor, action="read")
            raise MemoryAccessDenied(memory_id, actor)
        return memory

    async def delete(
        self,
        memory_id: str,
        actor: str | None = None,
        admin_override: bool = False,
    ) -> str:
        """Delete a memory, checking ownership first when an actor is given.

        Without an actor the delete runs unchecked unless
        ``require_actor_for_delete`` is set.
        """
        if actor:
            memory = await self._require(memory_id)
            self._check_mutate(
                memory, actor, admin_override, "delete", "Only the owner can delete this memory"
            )
        elif self.require_actor_for_delete:
            logger.warning("memory_access_denied", memory_id=memory_id, actor=None, action="delete")
            raise MemoryAccessDenied(
                memory_id, None, message="An actor is required to delete memories"
            )
        else:
            logger.warning("memory_delete_unchecked", memory_id=memory_id)
        deleted = await self.store.delete(memory_id)
        if not deleted:
            raise MemoryNotFoundError(memory_id)
        logger.info("memory_deleted", memory_id=memory_id, actor=actor)
        return memory_id

    async def search(
        self,
        query: str | None = None,
        filters: SearchFilters | None = None,
        limit: int = DEFAULT_LIMIT,
        actor: str | None = None,
        admin_override: bool = False,
    ) -> list[SearchResult]:
        """Search memories; results are visibility-filtered only when an actor is given."""
        context = VisibilityContext(actor=actor, admin_override=admin_override) if actor else None
        return await self.search_engine.search(
            query=query, filters=filters, limit=limit, context=context
        )

    async def update_visibility(
        self,
        memory_id: str,
        visibility: Visibility,
        shared_with: list[str] | None = None,
        *,
        actor: str,
        admin_override: bool = False,
    ) -> Memory:
        """Change visibility and ``shared_with``; owner or admin only.

        Not compare-and-swap: concurrent updates are last-writer-wins.
        """
        if not actor:
            raise ValidationError("asActor is required")
        visibility = Visibility(visibility)
        memory = await self._require(memory_id)
        self._check_mutate(
            memory,
            actor,
            admin_override,
            "update_visibility",
            "Only the owner can modify visibility",
        )
        updated = await self.store.update(
            memory_id, {"visibility": visibility, "shared_with": shared_with}
        )
        if updated is None:
            # Deleted between the ownership check and the write
            raise MemoryNotFoundError(memory_id)
        logger.info(
            "memory_visibility_updated",
            memory_id=memory_id,
            actor=actor,
            visibility=visibility.value,
            shared_with=shared_with or [],
        )
        return updated

    async def health(self) -> dict[str, Any]:
        """Backend connectivity summary."""
        healthy = await self.store.health_check()
        return {
            "status": "healthy" if healthy else "degraded",
            "timestamp": utc_now_iso(),
            "services": {"chromadb": "connected" if healthy else "disconnected"},
        }
