from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from src.services.visibility import VisibilityStore

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def get_visibility_store(request: Request) -> VisibilityStore:
    """
    Return the VisibilityStore built at application startup.

    The store lives on app.state so every request shares one instance; tests
    replace this dependency with a store of their own.
    """
    store = getattr(request.app.state, "visibility_store", None)
    if store is None:
        logger.error("Visibility store requested before application startup completed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Visibility store is not initialized.",
        )
    return store
