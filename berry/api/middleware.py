"""API middleware: request logging."""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.logging_config import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request's start, outcome and duration.

    The request id (taken from ``X-Request-ID`` when the caller sends one) is
    bound to the log context, so service events such as ``memory_access_denied``
    carry it too.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        bind_request_context(request_id=request_id, method=request.method, path=request.url.path)

        logger.info(
            "request_started",
            client=request.client.host if request.client else None,
        )
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("request_failed", error=str(e))
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "request_completed",
            status_code=response.status_code,
            elapsed_ms=round(elapsed_ms, 2),
        )
        clear_request_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        return response
