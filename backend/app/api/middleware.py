"""
Request middleware for logging, timing, and request ID tracking.
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import structlog

from app.core.logging import get_logger
from app.core.metrics import record_request

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds a request id (the caller's X-Request-ID, or a fresh one) to the
    structlog context, logs one line per request with status and duration,
    records it in the request metrics and echoes the id back in the response
    headers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        start_time = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            duration_ms = round(elapsed * 1000, 2)
            record_request(request.method, 500, elapsed)
            logger.error("request_failed", error=str(e), duration_ms=duration_ms)
            raise

        elapsed = time.perf_counter() - start_time
        duration_ms = round(elapsed * 1000, 2)
        record_request(request.method, response.status_code, elapsed)
        log = logger.warning if response.status_code >= 500 else logger.info
        log("request_completed", status_code=response.status_code, duration_ms=duration_ms)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
