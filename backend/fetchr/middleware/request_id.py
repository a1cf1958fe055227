"""
Fetchr — Request ID Middleware
===============================

What:  Assigns a correlation ID to each request and echoes it in X-Request-ID.
Why:   Resource handlers receive the Starlette Request as their context, so
       `context.state.request_id` lets them tag their own logs and upstream
       calls with the same ID the client sees.
How:   Reuse a client-provided X-Request-ID (trimmed to 64 chars) or generate
       a short UUID; store it in a ContextVar and on request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a unique ID to each request for tracing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get("X-Request-ID", "").strip()
        rid = supplied[:MAX_REQUEST_ID_LENGTH] or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
