"""FastAPI application factory and entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.config import get_settings
from ..core.exceptions import (
    MemoryAccessDenied,
    MemoryNotFoundError,
    StorageConnectionError,
    ValidationError,
)
from ..memory.service import MemoryService
from ..storage.factory import create_store
from ..utils.logging_config import configure_logging, get_logger
from .middleware import RequestLoggingMiddleware
from .routes import router

logger = get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler: builds the store unless a service was injected."""
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)

    store = None
    if getattr(app.state, "memory_service", None) is None:
        logger.info("berry_starting", provider=settings.storage.provider)
        store = await create_store(settings.storage)
        app.state.memory_service = MemoryService.from_settings(store, settings)

    yield

    if store is not None:
        await store.close()
        app.state.memory_service = None


def create_app(memory_service: MemoryService | None = None) -> FastAPI:
    """Create FastAPI application. Pass ``memory_service`` to bypass store construction."""
    app = FastAPI(
        title="Berry",
        description="Personal memory store for humans and AI tools",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.memory_service = memory_service

    @app.exception_handler(MemoryNotFoundError)
    async def memory_not_found_handler(_request: Request, exc: MemoryNotFoundError) -> JSONResponse:
        return _error(404, "Memory not found")

    @app.exception_handler(MemoryAccessDenied)
    async def memory_access_denied_handler(
        _request: Request, exc: MemoryAccessDenied
    ) -> JSONResponse:
        return _error(403, str(exc))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(400, _validation_message(exc))

    @app.exception_handler(StorageConnectionError)
    async def storage_unavailable_handler(
        request: Request, exc: StorageConnectionError
    ) -> JSONResponse:
        logger.error("storage_unavailable", path=request.url.path, error=str(exc))
        return _error(503, "Storage backend unavailable")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = "Not found" if exc.status_code == 404 else str(exc.detail)
        return _error(exc.status_code, message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_error",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return _error(500, str(exc) if get_settings().debug else "Internal server error")

    settings = get_settings()
    origins = settings.cors_origins if settings.cors_origins is not None else ["*"]
    # Browsers reject credentialed requests against wildcard origins
    allow_credentials = "*" not in origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(router)
    return app


app = create_app()
