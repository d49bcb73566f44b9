"""Entry point for running the API server."""

import uvicorn

from berry.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "berry.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
