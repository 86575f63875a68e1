"""
HTTP middleware: request correlation and latency.

``RequestIDMiddleware`` gives each request an id (the caller's
``X-Request-ID`` when present) and publishes it to the logging context for
the lifetime of the request.  ``RequestTimingMiddleware`` reports latency in
``X-Process-Time`` and writes one access line per request, at WARNING when
the request took longer than ``SLOW_REQUEST_MS``.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from agrofund.core.logging import request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"
SLOW_REQUEST_MS = 500


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request id to ``request.state``, the log context and the response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        ctx_token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(ctx_token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed_ms:.2f}ms"

        slow = elapsed_ms > SLOW_REQUEST_MS
        logger.log(
            logging.WARNING if slow else logging.DEBUG,
            "%s %s -> %d in %.2fms%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            " (slow)" if slow else "",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "elapsed_ms": elapsed_ms,
            },
        )
        return response
