"""API routes for memory operations."""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from ..core.config import get_settings
from ..core.enums import Visibility
from ..core.schemas import MemoryCreate
from ..memory.service import MemoryService
from ..utils.logging_config import get_logger
from .schemas import (
    ApiResponse,
    CreateMemoryRequest,
    SearchMemoriesRequest,
    UpdateVisibilityRequest,
)

logger = get_logger(__name__)
router = APIRouter(tags=["memory"])


def get_memory_service(request: Request) -> MemoryService:
    """Get memory service from app state."""
    return request.app.state.memory_service


def _ok(data, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse(success=True, data=data).model_dump(exclude_none=True),
    )


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.get("/health")
async def health(service: MemoryService = Depends(get_memory_service)):
    """Report backend connectivity; 503 when the vector store is unreachable."""
    status = await service.health()
    return JSONResponse(status_code=200 if status["status"] == "healthy" else 503, content=status)


@router.get("/v1/memory/{memory_id}")
async def get_memory(
    memory_id: str,
    as_actor: str | None = Query(default=None, alias="asActor"),
    admin_access: bool = Query(default=False, alias="adminAccess"),
    service: MemoryService = Depends(get_memory_service),
):
    """Retrieve a single memory; visibility is checked when asActor is given."""
    memory = await service.get(memory_id, actor=as_actor, admin_override=admin_access)
    return _ok(_dump(memory))


@router.post("/v1/memory")
async def create_memory(
    body: CreateMemoryRequest,
    service: MemoryService = Depends(get_memory_service),
):
    """Create a new memory."""
    defaults = get_settings().defaults
    meta = body.metadata
    record = MemoryCreate(
        content=body.content,
        type=body.type or defaults.type,
        created_by=meta.created_by or defaults.created_by,
        owner=meta.owner,
        visibility=meta.visibility or Visibility.PUBLIC,
        shared_with=meta.shared_with or [],
        tags=meta.tags or [],
        references=meta.references or [],
    )
    memory = await service.create(record)
    return _ok(_dump(memory), status_code=201)


@router.delete("/v1/memory/{memory_id}")
async def delete_memory(
    memory_id: str,
    as_actor: str | None = Query(default=None, alias="asActor"),
    admin_access: bool = Query(default=False, alias="adminAccess"),
    service: MemoryService = Depends(get_memory_service),
):
    """Delete a memory; only the owner (or admin) may when asActor is given."""
    deleted_id = await service.delete(memory_id, actor=as_actor, admin_override=admin_access)
    return _ok({"id": deleted_id})


@router.patch("/v1/memory/{memory_id}/visibility")
async def update_visibility(
    memory_id: str,
    body: UpdateVisibilityRequest,
    service: MemoryService = Depends(get_memory_service),
):
    """Change visibility and sharedWith of a memory."""
    memory = await service.update_visibility(
        memory_id,
        body.visibility,
        body.shared_with,
        actor=body.as_actor,
        admin_override=body.admin_access,
    )
    return _ok(_dump(memory))


@router.post("/v1/search")
async def search_memories(
    body: SearchMemoriesRequest,
    service: MemoryService = Depends(get_memory_service),
):
    """Search memories by similarity and/or metadata filters."""
    limit = body.limit or get_settings().search.default_limit
    results = await service.search(
        query=body.query,
        filters=body.filters,
        limit=limit,
        actor=body.as_actor,
        admin_override=body.admin_access,
    )
    return _ok([_dump(r) for r in results])
