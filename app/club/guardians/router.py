"""
Guardian API Router

Guardian accounts and registration approvals
"""

from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import ClubUserContext, get_current_user, require_coach, require_roles
from ..models import (
    ApprovalStatus,
    GuardianDetail,
    GuardianPlayerLink,
    GuardianResponse,
    GuardianUpdate,
    PendingApprovals,
    RejectionRequest,
    UserRole
)
from .service import guardian_service

router = APIRouter(prefix="/guardians", tags=["Guardians"])

require_approver = require_roles([UserRole.admin, UserRole.manager])


def _check_self_or_staff(guardian_id: str, user: ClubUserContext):
    if guardian_id != user.guardian_id and not user.is_coach():
        raise HTTPException(status_code=403, detail="Not allowed to access this guardian")


@router.get("", response_model=List[GuardianResponse])
async def list_guardians(
    status: Optional[ApprovalStatus] = Query(None, description="Approval status filter"),
    user: ClubUserContext = Depends(require_coach)
):
    """Guardians"""
    return await guardian_service.list_guardians(status.value if status else None)


@router.get("/approvals", response_model=PendingApprovals)
async def list_pending_approvals(user: ClubUserContext = Depends(require_approver)):
    """Registrations waiting for review"""
    return await guardian_service.list_pending()


@router.get("/{guardian_id}", response_model=GuardianDetail)
async def get_guardian(
    guardian_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """Guardian with linked players"""
    _check_self_or_staff(guardian_id, user)
    try:
        return await guardian_service.get_guardian(guardian_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{guardian_id}", response_model=GuardianDetail)
async def update_guardian(
    guardian_id: str,
    data: GuardianUpdate,
    user: ClubUserContext = Depends(get_current_user)
):
    """Update contact details"""
    _check_self_or_staff(guardian_id, user)
    try:
        return await guardian_service.update_contact(guardian_id, data.model_dump(exclude_unset=True))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{guardian_id}/players")
async def link_player(
    guardian_id: str,
    data: GuardianPlayerLink,
    user: ClubUserContext = Depends(require_coach)
):
    """Link a guardian to a player"""
    try:
        await guardian_service.link_player(guardian_id, data.player_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"message": "Player linked", "guardian_id": guardian_id, "player_id": data.player_id}


@router.delete("/{guardian_id}/players/{player_id}")
async def unlink_player(
    guardian_id: str,
    player_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Unlink a guardian from a player"""
    await guardian_service.unlink_player(guardian_id, player_id)
    return {"message": "Player unlinked", "guardian_id": guardian_id, "player_id": player_id}


@router.post("/{guardian_id}/approve", response_model=GuardianResponse)
async def approve_guardian(
    guardian_id: str,
    user: ClubUserContext = Depends(require_approver)
):
    """Approve a guardian registration"""
    try:
        return await guardian_service.approve_guardian(guardian_id, user.guardian_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{guardian_id}/reject", response_model=GuardianResponse)
async def reject_guardian(
    guardian_id: str,
    data: RejectionRequest,
    user: ClubUserContext = Depends(require_approver)
):
    """Reject a guardian registration with a reason"""
    try:
        return await guardian_service.reject_guardian(guardian_id, data.reason, user.guardian_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
