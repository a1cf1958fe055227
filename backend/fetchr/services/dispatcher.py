"""
Fetchr — Dispatcher
====================

What:  Routes a Call to the registered handler's method for its operation.
Why:   Callers (programmatic API, HTTP adapter) should not care which handler
       serves a resource or how its arguments are laid out.
How:   Resolve handler by key → build per-operation arguments → invoke.

Dispatch Flow:
    Call ──▶ registry.resolve(key) ──▶ call.arguments() ──▶ handler.<op>(*args)
               │ NotFoundError            │ UnsupportedOperationError
               ▼                          ▼
          completion.reject          completion.reject

Guarantees:
    - dispatch() never raises and never waits for the handler
    - On the success path the handler alone resolves the completion
    - A handler exception (sync, or from its coroutine) is forwarded to the
      completion unchanged if the completion is still pending
    - A cancelled handler task rejects the completion with
      HandlerError("handler cancelled", status_code=503)
"""

import asyncio
import inspect
import logging
from functools import partial
from typing import Set

from fetchr.exceptions import HandlerError, NotFoundError, UnsupportedOperationError
from fetchr.models.call import Call, Operation
from fetchr.services.registry import HandlerRegistry

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Stateless apart from the registry reference and in-flight handler tasks.

    The task set holds strong references to coroutine handlers so they are not
    garbage collected before they resolve their completion.
    """

    def __init__(self, registry: HandlerRegistry):
        self.registry = registry
        self._tasks: Set[asyncio.Future] = set()

    def dispatch(self, call: Call) -> None:
        """Invoke the handler for `call`; the outcome arrives via call.completion."""
        logger.debug("dispatch %s %s", call.operation, call.resource)

        try:
            handler = self.registry.resolve(call.handler_key)
            args = call.arguments()
        except (NotFoundError, UnsupportedOperationError) as e:
            # Why reject instead of raise: callers only ever look at the completion
            logger.warning("Rejected call to '%s': %s", call.resource, e.message)
            call.completion.reject(e)
            return

        method = getattr(handler, Operation.parse(call.operation).value)

        try:
            outcome = method(*args.positional())
        except Exception as e:
            self._relay_failure(call, e)
            return

        # Coroutine handlers run as tasks; dispatch returns without awaiting them
        if inspect.isawaitable(outcome):
            task = asyncio.ensure_future(outcome)
            # Why keep a reference: the loop holds tasks weakly
            self._tasks.add(task)
            task.add_done_callback(partial(self._on_handler_done, call))

    def _on_handler_done(self, call: Call, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            # Why not relay CancelledError: it is a BaseException, so waiters
            # that catch Exception (the HTTP routes) would let it escape
            if not call.completion.resolved:
                logger.warning("Handler for '%s' was cancelled", call.resource)
                call.completion.reject(HandlerError("handler cancelled", status_code=503))
            return
        error = task.exception()
        if error is not None:
            self._relay_failure(call, error)

    def _relay_failure(self, call: Call, error: BaseException) -> None:
        if call.completion.resolved:
            logger.error(
                "Handler for '%s' raised after resolving its completion: %s",
                call.resource,
                error,
                exc_info=error,
            )
            return
        logger.warning("Handler for '%s' failed: %s", call.resource, error)
        call.completion.reject(error)
