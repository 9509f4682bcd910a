from __future__ import annotations

from typing import Iterable, List

from pydantic import BaseModel, Field


class PermissionEdgeRead(BaseModel):
    """A single visibility grant."""
    subject_id: int = Field(..., description="Team allowed to view the object team's detailed stats")
    object_id: int = Field(..., description="Team whose detailed stats may be viewed")


class PermissionCheck(PermissionEdgeRead):
    """Result of a visibility decision."""
    permitted: bool = Field(..., description="True if the subject team may view the object team")


class TeamSet(BaseModel):
    """Set of team ids related to one team. Ordering carries no meaning."""
    team_id: int = Field(..., description="Team the set was computed for")
    team_ids: List[int] = Field(default_factory=list, description="Distinct related team ids, ascending")

    @classmethod
    def of(cls, team_id: int, team_ids: Iterable[int]) -> "TeamSet":
        return cls(team_id=team_id, team_ids=sorted(set(team_ids)))
