"""
Persistence adapters for the visibility store.

The store keeps its own in-memory index and writes through to an adapter
before changing that index, so an adapter failure never leaves the index ahead
of durable state. Adapters report every backend failure as
StorageUnavailableError; retrying is left to the caller.
"""
from __future__ import annotations

import logging
from typing import List, Protocol, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.errors import StorageUnavailableError
from src.repositories.visibility import TeamPermissionRepository

logger = logging.getLogger(__name__)

# Connection refusals from asyncpg surface as OSError rather than a DBAPI error.
_BACKEND_ERRORS = (SQLAlchemyError, OSError)


class PermissionStorage(Protocol):
    """Durable backing for permission edges."""

    async def load_all(self) -> List[Tuple[int, int]]: ...

    async def add(self, subject_id: int, object_id: int) -> None: ...

    async def remove(self, subject_id: int, object_id: int) -> None: ...

    async def remove_team(self, team_id: int) -> int: ...


# PUBLIC_INTERFACE
class SqlPermissionStorage:
    """
    SQLAlchemy-backed adapter over the team_permissions table.

    Each call runs in its own short session and transaction.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def load_all(self) -> List[Tuple[int, int]]:
        try:
            async with self._session_maker() as session:
                return await TeamPermissionRepository(session).list_pairs()
        except _BACKEND_ERRORS as exc:
            logger.error("Loading team permissions failed: %s", exc)
            raise StorageUnavailableError("load") from exc

    async def add(self, subject_id: int, object_id: int) -> None:
        try:
            async with self._session_maker() as session:
                repo = TeamPermissionRepository(session)
                await repo.insert_if_absent(subject_id, object_id)
                await repo.commit()
        except _BACKEND_ERRORS as exc:
            logger.error("Persisting grant %s -> %s failed: %s", subject_id, object_id, exc)
            raise StorageUnavailableError("grant") from exc

    async def remove(self, subject_id: int, object_id: int) -> None:
        try:
            async with self._session_maker() as session:
                repo = TeamPermissionRepository(session)
                await repo.delete_pair(subject_id, object_id)
                await repo.commit()
        except _BACKEND_ERRORS as exc:
            logger.error("Persisting revoke %s -> %s failed: %s", subject_id, object_id, exc)
            raise StorageUnavailableError("revoke") from exc

    async def remove_team(self, team_id: int) -> int:
        try:
            async with self._session_maker() as session:
                repo = TeamPermissionRepository(session)
                removed = await repo.delete_for_team(team_id)
                await repo.commit()
                return removed
        except _BACKEND_ERRORS as exc:
            logger.error("Removing permissions of team %s failed: %s", team_id, exc)
            raise StorageUnavailableError("forget_team") from exc
