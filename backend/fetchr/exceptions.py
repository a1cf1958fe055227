"""
Fetchr — Custom Exception Hierarchy
====================================

What:  Defines the errors raised while registering handlers and dispatching calls.
Why:   Each error carries an HTTP status code so the resource adapter can turn a
       failed call into a response without knowing where the failure came from.
How:   Each exception class carries a message, an optional context dict and a
       status code. Dispatch-time errors are delivered through the call's
       completion; registration errors are raised directly.
Who:   Raised by the registry, dispatcher, completion and HTTP adapter.
When:  At startup (registration) and per call (dispatch).

Exception Hierarchy:
    FetchrError (base)
    ├── ConfigurationError              → 500 (bad handler at registration)
    ├── NotFoundError                   → 404 (no handler for the resource key)
    ├── UnsupportedOperationError       → 400 (operation outside read/create/update/delete)
    ├── HandlerError                    → carried status, 400 when absent
    ├── BadRequestError                 → 400 (malformed batch body)
    ├── DispatchTimeoutError            → 504 (completion not resolved in time)
    └── CompletionAlreadyResolvedError  → 500 (handler resolved a call twice)

Propagation:
    Registry/dispatcher errors are never swallowed: registration raises,
    dispatch rejects the completion. HandlerError is relayed verbatim.
"""

from typing import Any, Dict, Optional


class FetchrError(Exception):
    """
    Base exception for all Fetchr errors.

    Attributes:
        message:      Caller-facing description (safe to return in a response)
        context:      Additional debug info (logged, not returned)
        status_code:  HTTP status the adapter should emit, None to use the default
    """

    status_code: Optional[int] = 500

    def __init__(
        self,
        message: str = "Request failed",
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.context = context or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ConfigurationError(FetchrError):
    """
    Raised when a handler cannot be registered.

    When:    The handler is missing, has no usable name, lacks one of the four
             CRUD methods, or its name is already taken by another handler.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Handler is not defined correctly",
        handler_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if handler_name:
            ctx["handler"] = handler_name
        super().__init__(message=message, context=ctx)
        self.handler_name = handler_name


class NotFoundError(FetchrError):
    """
    Raised when a resource key does not resolve to a registered handler.

    HTTP:    404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        key: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Handler could not be found"
        if key:
            message = f"Handler '{key}' could not be found"
        ctx = context or {}
        ctx["key"] = key
        super().__init__(message=message, context=ctx)
        self.key = key


class UnsupportedOperationError(FetchrError):
    """
    Raised when a call names an operation outside read/create/update/delete.

    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        operation: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"Operation '{operation}' is not supported"
        ctx = context or {}
        ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class HandlerError(FetchrError):
    """
    Error originated by a resource handler.

    The dispatcher never inspects or rewrites it. At the HTTP boundary the
    carried status code becomes the response status (400 when None).

    Example:
        completion.reject(HandlerError("widget 7 not found", status_code=404))
    """

    status_code = None

    def __init__(
        self,
        message: str = "request failed",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context, status_code=status_code)


class BadRequestError(FetchrError):
    """Raised by the HTTP adapter when a batch body cannot be read."""

    status_code = 400

    def __init__(
        self,
        message: str = "Bad request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DispatchTimeoutError(FetchrError):
    """
    Raised when a call's completion is not resolved within the wait bound.

    HTTP:    504 Gateway Timeout
    The call itself keeps running; only the waiter gives up.
    """

    status_code = 504

    def __init__(
        self,
        timeout: float = 0.0,
        resource: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"Resource call did not complete within {timeout:g} seconds"
        ctx = context or {}
        ctx["timeout"] = timeout
        if resource:
            ctx["resource"] = resource
        super().__init__(message=message, context=ctx)
        self.timeout = timeout


class CompletionAlreadyResolvedError(FetchrError):
    """Raised when a handler resolves the same completion a second time."""

    status_code = 500

    def __init__(
        self,
        resource: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Completion was already resolved"
        if resource:
            message = f"Completion for '{resource}' was already resolved"
        super().__init__(message=message, context=context)
