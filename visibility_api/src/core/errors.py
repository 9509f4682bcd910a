"""
Domain errors raised by the visibility store and its storage adapters.

Invalid team identifiers do not exist as an error class: any integer pair is
accepted. The only failure callers must handle is the storage backend being
unreachable, which is propagated rather than retried.
"""
from __future__ import annotations


class VisibilityError(Exception):
    """Base class for visibility store errors."""


# PUBLIC_INTERFACE
class StorageUnavailableError(VisibilityError):
    """The persistence layer behind the store could not be read or written."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        super().__init__(message or f"Permission storage unavailable during '{operation}'")
