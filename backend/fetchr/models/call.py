"""
Fetchr — Call Model
====================

What:  Value objects describing one resource invocation.
Why:   The dispatcher needs a single, uniform shape for calls coming from the
       programmatic API and from the HTTP adapter.
How:   `Operation` is the closed set of CRUD verbs. `Call` carries everything
       the handler needs; `Call.arguments()` picks the argument struct for the
       operation so read/delete and create/update get distinct signatures.

Handler argument order:
    read, delete:    (context, resource, params, config, completion)
    create, update:  (context, resource, params, body, config, completion)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple, Union

from fetchr.exceptions import UnsupportedOperationError


class Operation(str, Enum):
    """The four CRUD operations a handler implements."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: Union["Operation", str, None]) -> "Operation":
        """
        Convert a wire/API value into an Operation.

        Accepts "del" as an alias of delete (the name used by older clients).
        Raises UnsupportedOperationError for anything else.
        """
        if isinstance(value, Operation):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            if name == "del":
                return cls.DELETE
            try:
                return cls(name)
            except ValueError:
                pass
        raise UnsupportedOperationError(operation=value)

    @property
    def has_body(self) -> bool:
        return self in (Operation.CREATE, Operation.UPDATE)


@dataclass(frozen=True)
class ResponseMeta:
    """
    Optional metadata a handler returns with its data.

    Carries the HTTP status code and headers for the response built by the
    resource adapter. Both are ignored by programmatic callers unless they
    choose to read them.
    """

    status_code: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_value(cls, meta: Any) -> "ResponseMeta":
        """Normalize None, a ResponseMeta, or a {statusCode, headers} mapping."""
        if meta is None:
            return cls()
        if isinstance(meta, ResponseMeta):
            return meta
        if isinstance(meta, Mapping):
            status = meta.get("status_code", meta.get("statusCode"))
            headers = meta.get("headers") or {}
            return cls(
                status_code=int(status) if status is not None else None,
                headers={str(k): str(v) for k, v in dict(headers).items()},
            )
        raise TypeError(f"Unsupported meta type: {type(meta).__name__}")


class FetchResult(NamedTuple):
    """Successful outcome of a call: handler data plus response metadata."""

    data: Any
    meta: ResponseMeta


@dataclass(frozen=True)
class ReadArgs:
    """Arguments passed to read and delete handler methods."""

    context: Any
    resource: str
    params: Dict[str, Any]
    config: Dict[str, Any]
    completion: Any

    def positional(self) -> Tuple[Any, ...]:
        return (self.context, self.resource, self.params, self.config, self.completion)


@dataclass(frozen=True)
class WriteArgs:
    """Arguments passed to create and update handler methods (body before config)."""

    context: Any
    resource: str
    params: Dict[str, Any]
    body: Dict[str, Any]
    config: Dict[str, Any]
    completion: Any

    def positional(self) -> Tuple[Any, ...]:
        return (
            self.context,
            self.resource,
            self.params,
            self.body,
            self.config,
            self.completion,
        )


HandlerArgs = Union[ReadArgs, WriteArgs]


@dataclass(frozen=True)
class Call:
    """
    One normalized invocation.

    Created per request, handed to Dispatcher.dispatch(), then discarded.
    `operation` is kept as received so the dispatcher can reject unknown
    values through the completion instead of failing at construction.
    """

    resource: str
    operation: Union[Operation, str]
    completion: Any
    context: Any = None
    params: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None
    config: Optional[Dict[str, Any]] = None

    @property
    def handler_key(self) -> str:
        """Registry key: the resource name up to the first '.'."""
        return (self.resource or "").split(".", 1)[0]

    def arguments(self) -> HandlerArgs:
        """Build the argument struct for this call's operation."""
        operation = Operation.parse(self.operation)
        params = self.params if self.params is not None else {}
        config = self.config if self.config is not None else {}
        if operation.has_body:
            return WriteArgs(
                context=self.context,
                resource=self.resource,
                params=params,
                body=self.body if self.body is not None else {},
                config=config,
                completion=self.completion,
            )
        return ReadArgs(
            context=self.context,
            resource=self.resource,
            params=params,
            config=config,
            completion=self.completion,
        )
