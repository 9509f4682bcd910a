"""
API route modules for the visibility service.

This package contains subrouters for:
- Team permissions: grant, revoke, check and list visibility edges
- Teams: directional enumerations and per-team cleanup

Routers are included from src.api.main (under the /api/v1 prefix).
"""
