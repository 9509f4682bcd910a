"""
Public Pydantic schemas used by FastAPI routes and tests.

Schemas are grouped into common response envelopes and the visibility
permission models.
"""

from .common import MessageResponse  # noqa: F401
from .visibility import PermissionCheck, PermissionEdgeRead, TeamSet  # noqa: F401
