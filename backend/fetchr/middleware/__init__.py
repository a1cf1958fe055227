"""
Fetchr — Middleware Package
============================

Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route

Request ID runs first so the access log line carries the correlation ID.
"""
