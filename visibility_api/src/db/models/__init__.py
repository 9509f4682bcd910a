"""
ORM models for the visibility service.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .visibility import TeamPermission  # noqa: F401
