"""Construct the configured memory store."""

from ..core.config import StorageSettings, get_settings
from ..utils.logging_config import get_logger
from .base import MemoryStoreBase
from .memory import InMemoryMemoryStore

logger = get_logger(__name__)


async def create_store(settings: StorageSettings | None = None) -> MemoryStoreBase:
    """Build and initialize a store for ``STORAGE__PROVIDER``.

    ``memory`` needs no backend; ``local`` and ``cloud`` connect to ChromaDB.
    Initialization failures propagate (``StorageConnectionError`` or
    ``ConfigurationError``) and leave nothing open.
    """
    settings = settings or get_settings().storage
    if settings.provider == "memory":
        store: MemoryStoreBase = InMemoryMemoryStore()
    else:
        from .chroma import ChromaMemoryStore

        store = ChromaMemoryStore(settings)
    try:
        await store.initialize()
    except Exception:
        await store.close()
        raise
    logger.info("memory_store_initialized", provider=settings.provider)
    return store
