"""ChromaDB memory store."""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import urlparse

import chromadb
from chromadb.config import Settings as ChromaClientSettings

from ..core.config import StorageSettings
from ..core.exceptions import (
    ConfigurationError,
    StorageConnectionError,
    StorageError,
    ValidationError,
)
from ..core.schemas import Memory, MemoryCreate
from ..utils.logging_config import get_logger
from .base import MemoryStoreBase, Where
from .codec import generate_memory_id, merge_metadata, new_memory_metadata, to_memory, to_metadata

logger = get_logger(__name__)

T = TypeVar("T")

_INCLUDE = ["documents", "metadatas"]
_COLLECTION_DESCRIPTION = "Berry memory storage collection"


def _check_cloud_credentials(settings: StorageSettings) -> None:
    if not (settings.api_key and settings.tenant and settings.database):
        raise ConfigurationError(
            "STORAGE__API_KEY, STORAGE__TENANT, and STORAGE__DATABASE are required "
            "for the cloud provider"
        )


def _build_client(settings: StorageSettings) -> Any:
    """Create a ChromaDB client for the configured provider."""
    if settings.provider == "cloud":
        return chromadb.CloudClient(
            tenant=settings.tenant,
            database=settings.database,
            api_key=settings.api_key,
        )
    url = urlparse(settings.url)
    ssl = url.scheme == "https"
    return chromadb.HttpClient(
        host=url.hostname or "localhost",
        port=url.port or (443 if ssl else 8000),
        ssl=ssl,
        settings=ChromaClientSettings(anonymized_telemetry=False),
    )


class ChromaMemoryStore(MemoryStoreBase):
    """Memory store backed by a ChromaDB collection.

    The chromadb client is synchronous; calls run in the default executor.
    Arguments the client rejects surface as ``ValidationError``; connection and
    server failures surface as ``StorageConnectionError``.
    """

    def __init__(self, settings: StorageSettings, client: Any = None) -> None:
        if client is None and settings.provider == "cloud":
            _check_cloud_credentials(settings)
        self.settings = settings
        self.client = client
        self.collection: Any = None

    async def _run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking client call in the executor.

        The client rejects bad arguments (e.g. a non-numeric range operand) with
        ``ValueError`` or ``TypeError`` before any request is sent; those become
        ``ValidationError``. Everything else is treated as the backend failing.
        """
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))
        except (StorageError, ConfigurationError):
            raise
        except (ValueError, TypeError) as e:
            logger.warning(
                "chroma_call_rejected", call=getattr(fn, "__name__", str(fn)), error=str(e)
            )
            raise ValidationError(f"ChromaDB rejected the request: {e}") from e
        except Exception as e:
            logger.error("chroma_call_failed", call=getattr(fn, "__name__", str(fn)), error=str(e))
            raise StorageConnectionError(f"ChromaDB request failed: {e}") from e

    def _ensure_collection(self) -> Any:
        if self.collection is None:
            raise StorageError("ChromaDB collection not initialized. Call initialize() first.")
        return self.collection

    async def initialize(self) -> None:
        """Connect and get or create the memories collection."""
        if self.client is None:
            loop = asyncio.get_running_loop()
            try:
                self.client = await loop.run_in_executor(None, _build_client, self.settings)
            except Exception as e:
                # HttpClient reports an unreachable server as ValueError
                logger.error("chroma_connect_failed", url=self.settings.url, error=str(e))
                raise StorageConnectionError(f"Could not connect to ChromaDB: {e}") from e
        self.collection = await self._run(
            self.client.get_or_create_collection,
            name=self.settings.collection,
            metadata={"description": _COLLECTION_DESCRIPTION},
        )
        logger.info(
            "chroma_collection_ready",
            provider=self.settings.provider,
            collection=self.settings.collection,
        )

    async def close(self) -> None:
        self.collection = None

    async def add(self, record: MemoryCreate) -> Memory:
        collection = self._ensure_collection()
        memory_id = generate_memory_id()
        metadata = new_memory_metadata(record)
        await self._run(
            collection.add,
            ids=[memory_id],
            documents=[record.content],
            metadatas=[to_metadata(record.type, metadata)],
        )
        return Memory(id=memory_id, content=record.content, type=record.type, metadata=metadata)

    async def _get_raw(self, memory_id: str) -> tuple[str, dict[str, Any]] | None:
        collection = self._ensure_collection()
        result = await self._run(collection.get, ids=[memory_id], include=_INCLUDE)
        ids = result.get("ids") or []
        documents = result.get("documents") or []
        if not ids or not documents or documents[0] is None:
            return None
        metadatas = result.get("metadatas") or []
        metadata = dict(metadatas[0] or {}) if metadatas else {}
        return documents[0], metadata

    async def get_by_id(self, memory_id: str) -> Memory | None:
        raw = await self._get_raw(memory_id)
        if raw is None:
            return None
        document, metadata = raw
        return to_memory(memory_id, document, metadata)

    async def delete(self, memory_id: str) -> bool:
        # Existence check first so callers can tell "not found" from "deleted"
        if await self._get_raw(memory_id) is None:
            return False
        collection = self._ensure_collection()
        await self._run(collection.delete, ids=[memory_id])
        return True

    async def update(self, memory_id: str, patch: dict[str, Any]) -> Memory | None:
        raw = await self._get_raw(memory_id)
        if raw is None:
            return None
        document, old_metadata = raw
        existing = to_memory(memory_id, document, old_metadata)
        metadata = merge_metadata(existing.metadata, patch)
        encoded: dict[str, Any] = to_metadata(existing.type, metadata)
        # Chroma merges metadata on update; None removes keys the new encoding dropped
        for key in old_metadata:
            encoded.setdefault(key, None)
        collection = self._ensure_collection()
        await self._run(collection.update, ids=[memory_id], metadatas=[encoded])
        return existing.model_copy(update={"metadata": metadata})

    def _rows_to_memories(
        self,
        ids: list[str],
        documents: list[str | None],
        metadatas: list[dict[str, Any] | None],
    ) -> list[Memory]:
        out: list[Memory] = []
        for i, memory_id in enumerate(ids):
            document = documents[i] if i < len(documents) else None
            metadata = metadatas[i] if i < len(metadatas) else None
            if document is None or metadata is None:
                continue
            out.append(to_memory(memory_id, document, dict(metadata)))
        return out

    async def query(self, text: str, where: Where | None = None, limit: int = 10) -> list[Memory]:
        collection = self._ensure_collection()
        result = await self._run(
            collection.query,
            query_texts=[text],
            n_results=limit,
            where=where or None,
            include=_INCLUDE,
        )
        ids = (result.get("ids") or [[]])[0] or []
        documents = (result.get("documents") or [[]])[0] or []
        metadatas = (result.get("metadatas") or [[]])[0] or []
        return self._rows_to_memories(ids, documents, metadatas)

    async def scan(self, where: Where | None = None, limit: int = 10) -> list[Memory]:
        collection = self._ensure_collection()
        result = await self._run(collection.get, where=where or None, limit=limit, include=_INCLUDE)
        return self._rows_to_memories(
            result.get("ids") or [],
            result.get("documents") or [],
            result.get("metadatas") or [],
        )

    async def health_check(self) -> bool:
        if self.client is None:
            return False
        try:
            await self._run(self.client.heartbeat)
        except (StorageConnectionError, ValidationError):
            return False
        return True
