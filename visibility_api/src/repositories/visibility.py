from __future__ import annotations

from typing import List, Tuple

from sqlalchemy import delete, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from src.db.models.visibility import TeamPermission
from .base import BaseRepository


class TeamPermissionRepository(BaseRepository):
    """Repository for directed team-to-team visibility edges."""

    async def list_pairs(self) -> List[Tuple[int, int]]:
        stmt = select(TeamPermission.subject_team_id, TeamPermission.object_team_id)
        result = await self.execute(stmt)
        return [(int(s), int(o)) for s, o in result.all()]

    async def exists(self, subject_id: int, object_id: int) -> bool:
        stmt = select(TeamPermission.subject_team_id).where(
            TeamPermission.subject_team_id == subject_id,
            TeamPermission.object_team_id == object_id,
        )
        return (await self.scalar_one_or_none(stmt)) is not None

    async def insert_if_absent(self, subject_id: int, object_id: int) -> None:
        """
        Insert the edge, doing nothing when it already exists.

        PostgreSQL and SQLite get a native ON CONFLICT DO NOTHING; other
        dialects fall back to check-then-insert.
        """
        values = {"subject_team_id": subject_id, "object_team_id": object_id}
        dialect = self.dialect_name
        if dialect == "postgresql":
            stmt = pg_insert(TeamPermission).values(**values).on_conflict_do_nothing()
        elif dialect == "sqlite":
            stmt = sqlite_insert(TeamPermission).values(**values).on_conflict_do_nothing()
        else:
            if await self.exists(subject_id, object_id):
                return
            await self.add_all([TeamPermission(**values)])
            return
        await self.execute(stmt)

    async def delete_pair(self, subject_id: int, object_id: int) -> int:
        stmt = delete(TeamPermission).where(
            TeamPermission.subject_team_id == subject_id,
            TeamPermission.object_team_id == object_id,
        )
        result = await self.execute(stmt)
        return int(result.rowcount or 0)

    async def delete_for_team(self, team_id: int) -> int:
        """Delete every edge in which the team is subject or object."""
        stmt = delete(TeamPermission).where(
            or_(
                TeamPermission.subject_team_id == team_id,
                TeamPermission.object_team_id == team_id,
            )
        )
        result = await self.execute(stmt)
        return int(result.rowcount or 0)
