"""
Fetchr — Resource Access Layer
===============================

What: CRUD calls against named resources, served by registered handlers and
      reachable both in-process (Fetcher) and over HTTP (resource routes).

Layout:

    ┌─────────────────────────────────────┐
    │   Routes (HTTP adapter, health)     │  ← Request ⇄ Call / Response
    ├─────────────────────────────────────┤
    │   Services (Fetcher, Dispatcher,    │  ← resolve, shape arguments,
    │   Registry, Completion)             │    relay results
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← Call, Operation, batch body
    └─────────────────────────────────────┘
"""

__version__ = "0.1.0"
