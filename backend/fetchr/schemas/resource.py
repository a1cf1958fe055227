"""
Fetchr — Pydantic Request/Response Schemas
===========================================

What:  Models for the batch request body and the auxiliary JSON responses.
Why:   The batch body arrives as untyped JSON; validating the single request
       we process keeps bad input out of the dispatcher.

Batch body:
    {
        "requests": {
            "g0": {
                "resource": "widgets",
                "operation": "create",
                "params": {},
                "body": {"name": "x"},
                "config": {}
            }
        }
    }
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SingleRequest(BaseModel):
    """
    One keyed entry of a batch body.

    `operation` stays a plain string so unknown values reach the dispatcher
    and are rejected there with UnsupportedOperationError.
    """

    resource: str = Field(description="Resource name, e.g. 'widgets.123'")
    operation: str = Field(description="read, create, update or delete")
    params: Optional[Dict[str, Any]] = Field(default=None)
    body: Optional[Dict[str, Any]] = Field(default=None)
    config: Optional[Dict[str, Any]] = Field(default=None)


class BatchRequest(BaseModel):
    """
    Envelope of a non-GET resource request.

    Only the `g0` entry is read; other entries are left unvalidated.
    """

    requests: Optional[Dict[str, Any]] = Field(default=None)


class ErrorResponse(BaseModel):
    """
    Error body for failures outside the resource adapter.

    Example:
        {"error": "not_found", "message": "Handler 'x' could not be found", "request_id": "a1b2c3d4"}
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""

    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    handlers: List[str] = Field(description="Registered handler keys")
    uptime_seconds: float = Field(description="Seconds since service started")
