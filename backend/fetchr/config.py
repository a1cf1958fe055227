"""
Fetchr — Application Configuration
===================================

What:  Where the resource routes mount, how long callers wait on a handler,
       CORS, server address and log level.
Why:   A bad prefix or a negative timeout should fail at startup, not on the
       first request.
How:   Pydantic Settings reads FETCHR_* environment variables (or .env),
       normalizes and validates them, and exposes the `settings` singleton.
Who:   Imported by main.py, the resource routes and the Fetcher.
When:  Loaded once at module import time.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development.
    """

    # ── Resource Routes ───────────────────────────────────────────────────
    # What: Path prefix the resource router is mounted under
    # Resulting routes: GET {api_prefix}/{resource_segment}/<name>;<matrix>
    #                   POST {api_prefix}/{resource_segment}
    # Default /api matches the path browser clients post to ("/api/resource").
    # Set FETCHR_API_PREFIX="" to serve the bare /resource/<name> surface, or
    # pass create_app(resource_path="/resource") for a single app.
    api_prefix: str = Field(default="/api")
    resource_segment: str = Field(default="resource")

    @field_validator("api_prefix")
    @classmethod
    def normalize_api_prefix(cls, v: str) -> str:
        """Leading slash, no trailing slash; empty string mounts at the root."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @field_validator("resource_segment")
    @classmethod
    def validate_resource_segment(cls, v: str) -> str:
        v = v.strip("/")
        if not v:
            raise ValueError("resource_segment must not be empty")
        return v

    # ── Dispatch ──────────────────────────────────────────────────────────
    # What: Seconds to wait for a handler to resolve its completion
    # 0 disables the bound; the call is never cancelled, only the waiter gives up
    dispatch_timeout: float = Field(default=30.0, ge=0)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @property
    def resource_path(self) -> str:
        """Full mount path of the resource routes, e.g. /api/resource."""
        return f"{self.api_prefix}/{self.resource_segment}"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_prefix": "FETCHR_",
    }


# Singleton instance, imported throughout the application
settings = Settings()
