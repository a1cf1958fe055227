"""
Fetchr — Completion (single-shot result channel)
=================================================

What:  The object a handler resolves to report the outcome of a call.
Why:   Handlers may finish synchronously, from a task, or from a worker thread;
       the caller needs one awaitable result no matter which.
How:   Wraps an asyncio.Future bound to the loop that created the call.
       The first resolution wins; any later one raises
       CompletionAlreadyResolvedError so double-reporting handlers fail loudly.

Handler usage (either style):
    completion.resolve({"id": 1}, {"statusCode": 201})
    completion.reject(HandlerError("gone", status_code=410))

    completion(None, {"id": 1})      # node-style (error, data, meta)
    completion(err)
"""

import asyncio
import threading
from typing import Any, Mapping, Optional

from fetchr.exceptions import (
    CompletionAlreadyResolvedError,
    DispatchTimeoutError,
    HandlerError,
)
from fetchr.models.call import FetchResult, ResponseMeta


def _error_from_mapping(error: Mapping) -> HandlerError:
    status = error.get("statusCode", error.get("status_code"))
    return HandlerError(
        message=error.get("message") or "request failed",
        status_code=int(status) if str(status).isdigit() else None,
        context={k: v for k, v in error.items() if k not in ("statusCode", "status_code", "message")},
    )


class Completion:
    """
    Exactly-once result holder for one call.

    Must be created while an event loop is running; resolution from other
    threads is marshalled onto that loop.
    """

    def __init__(self, resource: str = "", loop: Optional[asyncio.AbstractEventLoop] = None):
        self.resource = resource
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future = self._loop.create_future()
        self._lock = threading.Lock()
        self._resolved = False

    def __call__(self, error: Any = None, data: Any = None, meta: Any = None) -> None:
        if error is not None:
            self.reject(error)
        else:
            self.resolve(data, meta)

    def __repr__(self) -> str:
        state = "resolved" if self._resolved else "pending"
        return f"<Completion(resource='{self.resource}', {state})>"

    @property
    def resolved(self) -> bool:
        """True once resolve() or reject() has been accepted."""
        return self._resolved

    def resolve(self, data: Any = None, meta: Any = None) -> None:
        """Report success with `data` and optional {statusCode, headers} meta."""
        result = FetchResult(data=data, meta=ResponseMeta.from_value(meta))
        self._settle(result, None)

    def reject(self, error: Any) -> None:
        """
        Report failure.

        Exceptions are delivered as they are. A mapping such as
        {"statusCode": 404, "message": "gone"} becomes a HandlerError carrying
        that status and message; any other value becomes HandlerError(str(value)).
        """
        if isinstance(error, Mapping):
            error = _error_from_mapping(error)
        elif not isinstance(error, BaseException):
            error = HandlerError(str(error) or "request failed")
        self._settle(None, error)

    def _settle(self, result: Optional[FetchResult], error: Optional[BaseException]) -> None:
        # Why a thread lock: handlers may resolve from worker threads, and the
        # exactly-once check has to happen before hopping onto the loop
        with self._lock:
            if self._resolved:
                raise CompletionAlreadyResolvedError(resource=self.resource)
            self._resolved = True

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        # Same loop: settle now so wait() sees it without an extra loop turn
        if running is self._loop:
            self._apply(result, error)
        else:
            self._loop.call_soon_threadsafe(self._apply, result, error)

    def _apply(self, result: Optional[FetchResult], error: Optional[BaseException]) -> None:
        # The waiter may already have been cancelled
        if self._future.done():
            return
        if error is not None:
            self._future.set_exception(error)
        else:
            self._future.set_result(result)

    async def wait(self, timeout: Optional[float] = None) -> FetchResult:
        """
        Wait for the handler's outcome.

        Returns:
            FetchResult(data, meta) on success.

        Raises:
            The error the handler (or dispatcher) rejected the call with.
            DispatchTimeoutError if `timeout` seconds pass first. The
            underlying call is left running; a late resolution is dropped.
        """
        if not timeout:
            return await self._future
        # Why shield: a timed-out waiter must not cancel the future that a late
        # handler will still resolve
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError:
            raise DispatchTimeoutError(timeout=timeout, resource=self.resource) from None
