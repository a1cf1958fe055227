"""
Fetchr — Resource Route Handlers (HTTP Adapter)
================================================

What:  Translates inbound HTTP requests into Calls and completions into responses.
Why:   Browsers and remote clients reach the same handlers as server-side code.
How:   GET → read call from the path; any other method → the `g0` entry of a
       batch body. The Starlette Request is the call context.

Mounting:
    create_app() includes `router` under app.state.resource_path, which
    defaults to settings.resource_path ("/api/resource"). The routes below are
    relative to that mount; with FETCHR_API_PREFIX="" they are served at
    /resource/... exactly.

Routes (relative to the mount):
    GET    /<name>;<k>=<v>;...?<query>   read <name> with matrix + query params
    POST   ""  or /<anything>            batch body, only key "g0" is dispatched
    (PUT, PATCH and DELETE are accepted on the batch routes as well)

Response mapping:
    success  → status meta.status_code or 200, headers from meta
               GET: JSON data   batch: {"g0": {"data": ...}}
    error    → status error.status_code or 400, plain-text message
    empty or missing "requests" → 400 with an empty body, nothing dispatched
"""

import json
import logging
from typing import Any, Dict, Iterable, Tuple
from urllib.parse import parse_qsl, quote, unquote

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError as PydanticValidationError

from fetchr.exceptions import BadRequestError
from fetchr.models.call import Call, FetchResult, Operation
from fetchr.schemas.resource import BatchRequest, SingleRequest
from fetchr.services.completion import Completion
from fetchr.services.dispatcher import Dispatcher
from fetchr.services.fetcher import Fetcher

logger = logging.getLogger(__name__)

DEFAULT_GUID = "g0"
BATCH_METHODS = ["POST", "PUT", "PATCH", "DELETE"]

# Mounted by main.create_app() under the app's resource path
router = APIRouter(tags=["Resource"])


# ── Dependencies ──────────────────────────────────────────────────────────

def get_dispatcher(request: Request) -> Dispatcher:
    """The dispatcher owned by the application (see main.create_app)."""
    return request.app.state.dispatcher


def get_fetcher(request: Request) -> Fetcher:
    """A Fetcher bound to the current request, for use in other routes."""
    return Fetcher(
        request.app.state.dispatcher,
        context=request,
        timeout=request.app.state.dispatch_timeout,
    )


# ── Helpers ───────────────────────────────────────────────────────────────

def _add_param(params: Dict[str, Any], key: str, value: str) -> None:
    # Repeated keys collect into a list, like a parsed query string
    if key not in params:
        params[key] = value
    elif isinstance(params[key], list):
        params[key].append(value)
    else:
        params[key] = [params[key], value]


def raw_resource_segment(request: Request, decoded: str) -> str:
    """
    The still percent-encoded text after the resource mount.

    Starlette hands the route an already-decoded path parameter. Splitting
    that on ';' would treat an encoded '%3B' inside a value as a separator,
    and parsing it again would decode '%2B' twice. So the segment is cut out
    of scope["raw_path"] instead, and parse_resource_path() decodes it once.

    Falls back to re-quoting `decoded` when the server gives no raw path.
    """
    mount = request.app.state.resource_path + "/"
    raw_path = request.scope.get("raw_path")
    if raw_path:
        # Some transports leave the query string on raw_path
        raw = raw_path.decode("latin-1").split("?", 1)[0]
        start = raw.find(mount)
        if start != -1:
            return raw[start + len(mount):]
    return quote(decoded, safe="/;=")


def parse_resource_path(
    segment: str, query_items: Iterable[Tuple[str, str]] = ()
) -> Tuple[str, Dict[str, Any]]:
    """
    Split a raw '<name>;<k>=<v>;...' segment into the resource name and params.

    `segment` is percent-encoded: literal ';' separates matrix parameters,
    and each name, key and value is decoded exactly once. Query items are
    merged in; a matrix parameter wins over a query parameter of the same
    name.

    Example:
        parse_resource_path("widgets.123;meta.lang=en;q=a%2Bb", [("sort", "asc")])
        → ("widgets.123", {"sort": "asc", "meta.lang": "en", "q": "a+b"})
    """
    raw_name, _, matrix = segment.partition(";")

    params: Dict[str, Any] = {}
    for key, value in query_items:
        _add_param(params, key, value)

    # Why replace before decoding: only literal ';' separates parameters,
    # an encoded '%3B' or '%26' stays inside its value
    matrix_params: Dict[str, Any] = {}
    for key, value in parse_qsl(matrix.replace(";", "&"), keep_blank_values=True):
        _add_param(matrix_params, key, value)

    params.update(matrix_params)
    return unquote(raw_name), params


def error_response(error: BaseException) -> PlainTextResponse:
    """Map any delivered error to its carried status (400 default) and message."""
    status = getattr(error, "status_code", None) or getattr(error, "statusCode", None) or 400
    message = getattr(error, "message", None) or str(error) or "request failed"
    return PlainTextResponse(content=message, status_code=int(status))


def _success_response(payload: Any, result: FetchResult) -> JSONResponse:
    return JSONResponse(
        content=jsonable_encoder(payload),
        status_code=result.meta.status_code or 200,
        headers=result.meta.headers or None,
    )


async def _run(request: Request, dispatcher: Dispatcher, call: Call) -> FetchResult:
    dispatcher.dispatch(call)
    # Why bounded: a handler that never resolves must not hold the
    # connection open forever; the call itself is left running
    return await call.completion.wait(request.app.state.dispatch_timeout)


# ── Routes ────────────────────────────────────────────────────────────────

@router.get(
    "/{resource_path:path}",
    summary="Read a resource",
    description=(
        "Reads the named resource. Matrix parameters (';key=value') and the query "
        "string are merged into the handler params."
    ),
)
async def read_resource(
    resource_path: str,
    request: Request,
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> Response:
    segment = raw_resource_segment(request, resource_path)
    resource, params = parse_resource_path(segment, request.query_params.multi_items())

    call = Call(
        resource=resource,
        operation=Operation.READ,
        completion=Completion(resource=resource),
        context=request,
        params=params,
        config={},
    )
    try:
        result = await _run(request, dispatcher, call)
    except Exception as e:
        # Every delivered error becomes a response; nothing reaches the
        # global handlers from here
        return error_response(e)

    return _success_response(result.data, result)


@router.api_route(
    "",
    methods=BATCH_METHODS,
    summary="Execute a resource request",
    description="Dispatches the 'g0' entry of a {\"requests\": {...}} body.",
)
@router.api_route(
    "/{resource_path:path}",
    methods=BATCH_METHODS,
    include_in_schema=False,
)
async def batch_resource(
    request: Request,
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> Response:
    # ── Step 1: Read the envelope ─────────────────────────────────────────
    # Why raw body: an absent body and an empty "requests" both answer a bare
    # 400, which a typed Body() parameter would turn into a 422
    raw = await request.body()
    if not raw.strip():
        return Response(status_code=400)

    try:
        batch = BatchRequest.model_validate(json.loads(raw))
    except (ValueError, PydanticValidationError):
        logger.warning("Rejected batch body: not a JSON object with 'requests'")
        return error_response(BadRequestError("Request body must be a JSON object"))

    if not batch.requests:
        return Response(status_code=400)

    # ── Step 2: Pick the single request ───────────────────────────────────
    # Only "g0" is processed; other keys are ignored
    if DEFAULT_GUID not in batch.requests:
        logger.warning("Rejected batch body without '%s': keys=%s", DEFAULT_GUID, list(batch.requests))
        return error_response(BadRequestError(f"Request '{DEFAULT_GUID}' is missing"))

    try:
        single = SingleRequest.model_validate(batch.requests[DEFAULT_GUID])
    except PydanticValidationError as e:
        logger.warning("Rejected batch request '%s': %s", DEFAULT_GUID, e.errors())
        return error_response(BadRequestError(f"Request '{DEFAULT_GUID}' is malformed"))

    # ── Step 3: Dispatch and wrap ─────────────────────────────────────────
    call = Call(
        resource=single.resource,
        operation=single.operation,
        completion=Completion(resource=single.resource),
        context=request,
        params=single.params or {},
        body=single.body or {},
        config=single.config or {},
    )
    try:
        result = await _run(request, dispatcher, call)
    except Exception as e:
        return error_response(e)

    return _success_response({DEFAULT_GUID: {"data": result.data}}, result)
