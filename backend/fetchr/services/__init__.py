"""
Fetchr — Services Layer
========================

Service Inventory:
    - HandlerRegistry: handler key → handler instance
    - Dispatcher:      Call → handler method, failures → completion
    - Completion:      exactly-once result channel resolved by handlers
    - Fetcher:         read/create/update/delete coroutines for in-process callers
    - ResourceHandler: abstract base for handlers
"""

from fetchr.services.completion import Completion
from fetchr.services.dispatcher import Dispatcher
from fetchr.services.fetcher import Fetcher
from fetchr.services.handler_base import ResourceHandler
from fetchr.services.registry import HandlerRegistry

__all__ = [
    "Completion",
    "Dispatcher",
    "Fetcher",
    "HandlerRegistry",
    "ResourceHandler",
]
