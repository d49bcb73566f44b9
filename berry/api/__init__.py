"""API layer: FastAPI app, routes and request schemas."""

from .app import create_app
from .routes import get_memory_service

__all__ = ["create_app", "get_memory_service"]
