"""
Fetchr — Handler Registry
==========================

What:  Maps handler keys to handler instances.
Why:   The dispatcher looks up the handler for a resource name by its first
       dotted segment ("widgets.123" → "widgets").
How:   A dict guarded by a lock on writes. One registry is created by the
       application root and passed to the Dispatcher; tests build their own.

Registration policy:
    - Name must be a non-empty string without '.', otherwise it could never
      be resolved
    - All four CRUD methods must be callable
    - Re-registering the same instance is a no-op; a different handler under
      a taken name is rejected
    - Entries are never removed
"""

import logging
import threading
from typing import Any, Dict, Iterable, List

from fetchr.exceptions import ConfigurationError, NotFoundError
from fetchr.models.call import Operation

logger = logging.getLogger(__name__)

_REQUIRED_METHODS = tuple(op.value for op in Operation)


class HandlerRegistry:
    """Registry of resource handlers keyed by name."""

    def __init__(self, handlers: Iterable[Any] = ()):
        self._handlers: Dict[str, Any] = {}
        self._lock = threading.Lock()
        for handler in handlers:
            self.register(handler)

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def register(self, handler: Any) -> None:
        """
        Store `handler` under `handler.name`.

        Raises:
            ConfigurationError: Missing handler or name, name containing '.',
                missing CRUD method, or name already taken by another handler.
        """
        name = getattr(handler, "name", None) if handler is not None else None
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError()
        # Why: the key is the text before the first '.', so "a.b" could never resolve
        if "." in name:
            raise ConfigurationError(
                message=f"Handler name '{name}' must not contain '.'",
                handler_name=name,
            )

        # Checked up front so a broken handler fails at startup, not on first call
        missing = [m for m in _REQUIRED_METHODS if not callable(getattr(handler, m, None))]
        if missing:
            raise ConfigurationError(
                message=f"Handler '{name}' is missing operations: {', '.join(missing)}",
                handler_name=name,
                context={"missing": missing},
            )

        # Check-and-set must be atomic; registration may run from several threads
        with self._lock:
            existing = self._handlers.get(name)
            if existing is handler:
                return
            if existing is not None:
                raise ConfigurationError(
                    message=f"A different handler is already registered as '{name}'",
                    handler_name=name,
                )
            self._handlers[name] = handler

        logger.debug("handler %s added", name)

    def resolve(self, key: str) -> Any:
        """
        Return the handler registered under `key`.

        Raises:
            NotFoundError: `key` is empty or unregistered.
        """
        # Reads are lock-free; entries are only ever added
        handler = self._handlers.get(key) if key else None
        if handler is None:
            raise NotFoundError(key=key)
        return handler

    def names(self) -> List[str]:
        return sorted(self._handlers)
