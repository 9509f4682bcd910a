from __future__ import annotations

from sqlalchemy import Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, CreatedAtMixin


class TeamPermission(CreatedAtMixin, Base):
    """Directed grant: the subject team may view the object team's detailed stats."""
    __tablename__ = "team_permissions"
    __table_args__ = (
        # The composite primary key already serves subject-first lookups.
        Index("ix_team_permissions_object_team_id", "object_team_id"),
    )

    subject_team_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    object_team_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    def __repr__(self) -> str:
        return f"TeamPermission({self.subject_team_id} -> {self.object_team_id})"
