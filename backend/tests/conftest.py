"""
Fetchr — Test Configuration (conftest.py)
==========================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── echo_handler: records calls, answers with its received arguments
    ├── widget_handler: MagicMock handler named "widgets"
    ├── registry: HandlerRegistry holding both handlers
    ├── dispatcher: Dispatcher over that registry
    └── test_client: HTTPX AsyncClient for the app built around the registry
"""

import os
from typing import Any, Dict, List, Tuple
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Override settings for testing BEFORE any fetchr imports
os.environ["FETCHR_LOG_LEVEL"] = "WARNING"
os.environ["FETCHR_DISPATCH_TIMEOUT"] = "2"

from fetchr.services.dispatcher import Dispatcher  # noqa: E402
from fetchr.services.handler_base import ResourceHandler  # noqa: E402
from fetchr.services.registry import HandlerRegistry  # noqa: E402


def extract_meta(params: Dict[str, Any]) -> Dict[str, Any]:
    """'meta.'-prefixed params become response meta: meta.statusCode=201 → {"statusCode": "201"}."""
    return {
        key[len("meta."):]: value
        for key, value in params.items()
        if key.startswith("meta.")
    }


class EchoHandler(ResourceHandler):
    """
    Answers every call with the arguments it received.

    Every call is appended to `calls` as (operation, positional args).
    """

    def __init__(self, name: str = "echo"):
        self.name = name
        self.calls: List[Tuple[str, tuple]] = []

    def _answer(self, operation, resource, params, config, completion, body=None):
        args: Dict[str, Any] = {"resource": resource, "params": params, "config": config}
        if body is not None:
            args["body"] = body
        completion.resolve({"operation": operation, "args": args}, extract_meta(params))

    def read(self, context, resource, params, config, completion):
        self.calls.append(("read", (context, resource, params, config, completion)))
        self._answer("read", resource, params, config, completion)

    def create(self, context, resource, params, body, config, completion):
        self.calls.append(("create", (context, resource, params, body, config, completion)))
        self._answer("create", resource, params, config, completion, body=body)

    def update(self, context, resource, params, body, config, completion):
        self.calls.append(("update", (context, resource, params, body, config, completion)))
        self._answer("update", resource, params, config, completion, body=body)

    def delete(self, context, resource, params, config, completion):
        self.calls.append(("delete", (context, resource, params, config, completion)))
        self._answer("delete", resource, params, config, completion)


@pytest.fixture
def echo_handler():
    return EchoHandler()


@pytest.fixture
def widget_handler():
    """
    MagicMock handler named "widgets".

    Tests set side effects on its methods; call_args exposes exactly what
    the dispatcher passed.
    """
    handler = MagicMock()
    handler.name = "widgets"
    for op in ("read", "create", "update", "delete"):
        getattr(handler, op).return_value = None
    return handler


@pytest.fixture
def registry(echo_handler, widget_handler):
    return HandlerRegistry([echo_handler, widget_handler])


@pytest.fixture
def dispatcher(registry):
    return Dispatcher(registry)


@pytest_asyncio.fixture
async def test_client(registry):
    """
    HTTPX AsyncClient talking to an app built around the `registry` fixture.

    Usage:
        async def test_read(test_client):
            response = await test_client.get("/api/resource/echo")
            assert response.status_code == 200
    """
    from fetchr.main import create_app

    app = create_app(registry=registry, dispatch_timeout=1.0)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
