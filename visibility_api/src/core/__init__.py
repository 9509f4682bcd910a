"""
Core application utilities for settings, logging, errors and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Structured logging with request correlation ids
- Domain error types shared by the store, the storage adapter and the API
- Dependency helpers (visibility store lookup)
"""
