from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path

from src.core.deps import get_visibility_store
from src.schemas.common import ErrorResponse, MessageResponse
from src.schemas.visibility import PermissionCheck, PermissionEdgeRead
from src.services.visibility import VisibilityStore

router = APIRouter(
    prefix="/team-permissions",
    tags=["Team Permissions"],
    responses={503: {"model": ErrorResponse, "description": "Permission storage unavailable"}},
)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[PermissionEdgeRead],
    summary="List all permission edges",
    description="Every active grant. Order is unspecified; intended for administration and debugging.",
)
async def list_permissions(
    store: VisibilityStore = Depends(get_visibility_store),
) -> List[PermissionEdgeRead]:
    edges = await store.get_all_permissions()
    return [PermissionEdgeRead(subject_id=e.subject_id, object_id=e.object_id) for e in edges]


# PUBLIC_INTERFACE
@router.get(
    "/{subject_id}/{object_id}",
    response_model=PermissionCheck,
    summary="Check permission",
    description="Whether the subject team may view the object team's detailed statistics.",
)
async def check_permission(
    subject_id: int = Path(..., description="Viewing team"),
    object_id: int = Path(..., description="Viewed team"),
    store: VisibilityStore = Depends(get_visibility_store),
) -> PermissionCheck:
    permitted = await store.is_permitted(subject_id, object_id)
    return PermissionCheck(subject_id=subject_id, object_id=object_id, permitted=permitted)


# PUBLIC_INTERFACE
@router.put(
    "/{subject_id}/{object_id}",
    response_model=MessageResponse,
    summary="Grant permission",
    description="Permit the subject team to view the object team. Granting twice is a no-op.",
)
async def grant_permission(
    subject_id: int = Path(..., description="Team being granted visibility"),
    object_id: int = Path(..., description="Team being made visible"),
    store: VisibilityStore = Depends(get_visibility_store),
) -> MessageResponse:
    await store.grant(subject_id, object_id)
    return MessageResponse(
        message="Permission granted",
        details={"subject_id": subject_id, "object_id": object_id},
    )


# PUBLIC_INTERFACE
@router.delete(
    "/{subject_id}/{object_id}",
    response_model=MessageResponse,
    summary="Revoke permission",
    description="Remove the subject team's visibility of the object team. Revoking a missing grant is a no-op.",
)
async def revoke_permission(
    subject_id: int = Path(..., description="Team losing visibility"),
    object_id: int = Path(..., description="Team no longer visible"),
    store: VisibilityStore = Depends(get_visibility_store),
) -> MessageResponse:
    await store.revoke(subject_id, object_id)
    return MessageResponse(
        message="Permission revoked",
        details={"subject_id": subject_id, "object_id": object_id},
    )
