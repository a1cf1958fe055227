"""
Fetchr — Abstract Resource Handler Interface
=============================================

What:  Abstract base class defining the contract for resource handlers.
Why:   Callers address resources by name; the handler registered under the
       name's first segment does the actual work. This is the Strategy pattern.
How:   Concrete handlers set `name` and implement the four CRUD methods.
       Duck-typed objects with the same shape are accepted by the registry too.
Who:   Registered with HandlerRegistry; invoked by the Dispatcher.

Contract:
    - Each method receives the completion as its last argument and must
      resolve it exactly once (completion.resolve / completion.reject)
    - Methods may be plain functions or coroutines
    - Errors may be reported by rejecting or by raising before resolving;
      the dispatcher forwards raised errors to the completion
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from fetchr.services.completion import Completion


class ResourceHandler(ABC):
    """
    Base class for a family of resources sharing one handler key.

    Example:
        class WidgetHandler(ResourceHandler):
            name = "widgets"

            async def read(self, context, resource, params, config, completion):
                completion.resolve(await load_widget(params["id"]))
            ...
    """

    name: str = ""

    @abstractmethod
    def read(
        self,
        context: Any,
        resource: str,
        params: Dict[str, Any],
        config: Dict[str, Any],
        completion: Completion,
    ) -> Any:
        """Fetch the resource identified by `resource` and `params`."""
        ...

    @abstractmethod
    def create(
        self,
        context: Any,
        resource: str,
        params: Dict[str, Any],
        body: Dict[str, Any],
        config: Dict[str, Any],
        completion: Completion,
    ) -> Any:
        """Create a resource from `body`."""
        ...

    @abstractmethod
    def update(
        self,
        context: Any,
        resource: str,
        params: Dict[str, Any],
        body: Dict[str, Any],
        config: Dict[str, Any],
        completion: Completion,
    ) -> Any:
        """Update the resource identified by `params` with `body`."""
        ...

    @abstractmethod
    def delete(
        self,
        context: Any,
        resource: str,
        params: Dict[str, Any],
        config: Dict[str, Any],
        completion: Completion,
    ) -> Any:
        """Delete the resource identified by `params`."""
        ...
