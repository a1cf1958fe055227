"""
Fetchr — Programmatic CRUD API
===============================

What:  read/create/update/delete coroutines bound to a caller context.
Why:   Server-side code calls resources the same way the HTTP adapter does,
       without building Call objects by hand.
How:   Each method builds a Call, hands it to the Dispatcher and awaits the
       completion.

Example:
    fetcher = Fetcher(dispatcher, context=request)
    widget = await fetcher.read("widgets.123", {"id": "123"})
    print(widget.data, widget.meta.status_code)
"""

from typing import Any, Dict, Optional, Union

from fetchr.config import settings
from fetchr.models.call import Call, FetchResult, Operation
from fetchr.services.completion import Completion
from fetchr.services.dispatcher import Dispatcher


class Fetcher:
    """
    CRUD facade over a Dispatcher.

    Args:
        dispatcher: Dispatcher owning the handler registry
        context:    Passed to every handler call as its first argument
        timeout:    Seconds to wait per call; None uses settings.dispatch_timeout,
                    0 waits indefinitely
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        context: Any = None,
        timeout: Optional[float] = None,
    ):
        self.dispatcher = dispatcher
        self.context = context
        self.timeout = settings.dispatch_timeout if timeout is None else timeout

    def submit(
        self,
        operation: Union[Operation, str],
        resource: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> Completion:
        """Dispatch without waiting; returns the call's completion."""
        # Created here, on the caller's loop, so handler threads can resolve it
        completion = Completion(resource=resource)
        self.dispatcher.dispatch(
            Call(
                resource=resource,
                operation=operation,
                completion=completion,
                context=self.context,
                params=params or {},
                body=body,
                config=config,
            )
        )
        return completion

    async def read(
        self,
        resource: str,
        params: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> FetchResult:
        return await self.submit(Operation.READ, resource, params, config=config).wait(self.timeout)

    async def create(
        self,
        resource: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> FetchResult:
        return await self.submit(Operation.CREATE, resource, params, body, config).wait(self.timeout)

    async def update(
        self,
        resource: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> FetchResult:
        return await self.submit(Operation.UPDATE, resource, params, body, config).wait(self.timeout)

    async def delete(
        self,
        resource: str,
        params: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> FetchResult:
        return await self.submit(Operation.DELETE, resource, params, config=config).wait(self.timeout)
