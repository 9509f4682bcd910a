from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from src.core.deps import get_visibility_store
from src.schemas.common import ErrorResponse, MessageResponse
from src.schemas.visibility import TeamSet
from src.services.visibility import VisibilityStore

router = APIRouter(
    prefix="/teams",
    tags=["Teams"],
    responses={503: {"model": ErrorResponse, "description": "Permission storage unavailable"}},
)


# PUBLIC_INTERFACE
@router.get(
    "/{object_id}/viewers",
    response_model=TeamSet,
    summary="Teams that can see a team",
)
async def teams_that_can_see(
    object_id: int = Path(..., description="Team whose viewers are listed"),
    store: VisibilityStore = Depends(get_visibility_store),
) -> TeamSet:
    return TeamSet.of(object_id, await store.get_teams_that_can_see(object_id))


# PUBLIC_INTERFACE
@router.get(
    "/{subject_id}/visible",
    response_model=TeamSet,
    summary="Teams a team can see",
)
async def teams_that_it_sees(
    subject_id: int = Path(..., description="Team whose visible teams are listed"),
    store: VisibilityStore = Depends(get_visibility_store),
) -> TeamSet:
    return TeamSet.of(subject_id, await store.get_teams_that_it_sees(subject_id))


# PUBLIC_INTERFACE
@router.delete(
    "/{team_id}/permissions",
    response_model=MessageResponse,
    summary="Remove all permissions of a team",
    description=(
        "Drop every grant in which the team is viewer or viewed. Intended to be called "
        "by the team-management service when a team is deleted."
    ),
)
async def forget_team(
    team_id: int = Path(..., description="Team being removed"),
    store: VisibilityStore = Depends(get_visibility_store),
) -> MessageResponse:
    removed = await store.forget_team(team_id)
    return MessageResponse(
        message="Team permissions removed",
        details={"team_id": team_id, "removed": removed},
    )
