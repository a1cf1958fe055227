"""
Fetchr — Request Logging Middleware
====================================

What:  One access log line per HTTP request.
How:   Measures the time spent in the rest of the stack and logs method, path,
       status, duration, request ID and client address. Requests under the
       resource routes also carry the call kind ("read" or "batch") and, for
       reads, the resource name taken from the path.

Log level by status:
    5xx → ERROR     4xx → WARNING     otherwise → INFO

Batch bodies are never logged; they may hold user data.
"""

import logging
import time
from typing import Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from fetchr.config import settings
from fetchr.middleware.request_id import request_id_var

logger = logging.getLogger("fetchr.access")

QUIET_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def describe_resource_call(
    method: str, path: str, base: Optional[str] = None
) -> Tuple[Optional[str], Optional[str]]:
    """
    Return (kind, resource) for a request to the resource routes.

    Example:
        describe_resource_call("GET", "/api/resource/widgets.1;id=1")
        → ("read", "widgets.1")

    `base` is the resource mount (settings.resource_path when None).
    (None, None) for any other path.
    """
    base = base or settings.resource_path
    if path != base and not path.startswith(base + "/"):
        return None, None
    if method != "GET":
        return "batch", None
    return "read", path[len(base) + 1:].split(";", 1)[0] or None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request; resource calls are tagged with their kind."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        # Why app.state: create_app() may mount the resource routes elsewhere
        mount = getattr(request.app.state, "resource_path", None)
        kind, resource = describe_resource_call(request.method, path, mount)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        rid = request_id_var.get("")
        client = request.client.host if request.client else "unknown"
        status = response.status_code

        logger.log(
            _level_for(status),
            "%s %s → %d in %.1fms [%s] from %s%s",
            request.method,
            path,
            status,
            elapsed_ms,
            rid,
            client,
            f" ({kind} {resource})" if resource else (f" ({kind})" if kind else ""),
            extra={
                "request_id": rid,
                "call_kind": kind,
                "resource": resource,
                "status": status,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response
