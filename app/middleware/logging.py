"""Logging middleware for request tracking."""
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64


def _request_id_from(request: Request) -> str:
    """Reuse a sane upstream request ID (e.g. from a proxy) or generate one."""
    incoming = request.headers.get(REQUEST_ID_HEADER) if request.headers else None
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and incoming.replace("-", "").isalnum():
        return incoming
    return str(uuid.uuid4())


class LoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request ID to every log line and log each request's outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _request_id_from(request)

        # Endpoint handlers can read it from request.state
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start_time = time.perf_counter()
        logger.info(
            "request_started",
            client_host=request.client.host if request.client else None,
            query_params=str(request.query_params) if request.query_params else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                exception=str(exc),
                exception_type=type(exc).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id

        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

        return response
