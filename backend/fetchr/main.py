"""
Fetchr — FastAPI Application Factory
=====================================

What:  Builds the FastAPI app around a handler registry.
Why:   The application root owns the handler registry and the dispatcher;
       nothing else holds process-wide handler state.
How:   create_app() builds the registry (or takes one), registers handlers,
       stores registry/dispatcher on app.state and mounts the routes.
Who:   Called by uvicorn (uvicorn fetchr.main:app) or by an embedding service
       that passes its own handlers.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Req ID → Logging → GZip → CORS         │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────────┐ ┌──────────────────────┐  │
    │  │ GET  /api/resource/* │ │ POST /api/resource   │  │
    │  └──────────────────────┘ └──────────────────────┘  │
    │  ┌──────────────────────┐                           │
    │  │ GET  /health         │                           │
    │  └──────────────────────┘                           │
    │                                                     │
    │  app.state: registry, dispatcher, dispatch_timeout  │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from fetchr import __version__
from fetchr.config import settings
from fetchr.exceptions import ConfigurationError, FetchrError
from fetchr.middleware.logging import RequestLoggingMiddleware
from fetchr.middleware.request_id import RequestIDMiddleware, request_id_var
from fetchr.routes import health, resource
from fetchr.services.dispatcher import Dispatcher
from fetchr.services.registry import HandlerRegistry

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    registry: HandlerRegistry = app.state.registry

    logger.info("Fetchr %s starting up", __version__)
    if len(registry):
        logger.info("Registered handlers: %s", ", ".join(registry.names()))
    else:
        logger.warning("No resource handlers registered; every resource call will 404")
    logger.info("Resource routes at %s", app.state.resource_path)

    yield

    logger.info("Fetchr shutting down")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

_ERROR_CODES = {
    400: "bad_request",
    404: "not_found",
    504: "gateway_timeout",
}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Errors delivered through a completion are rendered by the resource
    routes themselves. These handlers cover errors that escape a route,
    e.g. a Fetcher used from an application-defined endpoint.

        FetchrError  → its status_code (500 when unset), JSON body
        Exception    → 500, generic message, stack trace logged only
    """

    @app.exception_handler(FetchrError)
    async def handle_fetchr_error(request: Request, exc: FetchrError):
        rid = request_id_var.get("")
        status = exc.status_code or 500
        if status >= 500:
            logger.error("[%s] %s | Context: %s", rid, exc.message, exc.context)
        else:
            logger.warning("[%s] %s", rid, exc.message)
        return JSONResponse(
            status_code=status,
            content={
                "error": _ERROR_CODES.get(status, "server_error" if status >= 500 else "request_failed"),
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    handlers: Iterable[Any] = (),
    registry: Optional[HandlerRegistry] = None,
    dispatch_timeout: Optional[float] = None,
    resource_path: Optional[str] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        handlers:          Handlers to register on the registry
        registry:          Existing registry to use (a new one by default)
        dispatch_timeout:  Seconds the resource routes wait for a completion;
                           None uses settings.dispatch_timeout, 0 disables
        resource_path:     Mount path of the resource routes, e.g. "/resource";
                           None uses settings.resource_path ("/api/resource")

    Raises:
        ConfigurationError: A handler failed registration, or resource_path
            is empty.
    """
    mount = settings.resource_path if resource_path is None else "/" + resource_path.strip("/")
    if mount == "/":
        raise ConfigurationError(message="resource_path must name a path segment")

    registry = registry if registry is not None else HandlerRegistry()
    for handler in handlers:
        registry.register(handler)

    app = FastAPI(
        title="Fetchr API",
        description=(
            "CRUD access to named resources. Each resource name's first segment "
            "selects the registered handler that serves it."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.dispatcher = Dispatcher(registry)
    app.state.dispatch_timeout = (
        settings.dispatch_timeout if dispatch_timeout is None else dispatch_timeout
    )
    app.state.resource_path = mount

    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Why a per-app prefix: embedding services and tests mount the same router
    # at different paths (e.g. "/resource" next to their own "/api")
    app.include_router(resource.router, prefix=mount)
    app.include_router(health.router)

    return app


# uvicorn expects `fetchr.main:app` to be importable
app = create_app()
