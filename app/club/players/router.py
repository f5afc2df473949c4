"""
Player API Router

Children registered with the club
"""

from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import (
    ClubUserContext,
    get_current_user,
    require_coach,
    require_roles
)
from ..models import (
    ApprovalStatus,
    PlayerCreate,
    PlayerResponse,
    PlayerUpdate,
    RejectionRequest,
    TeamAssignment,
    UserRole
)
from .service import player_service

router = APIRouter(prefix="/players", tags=["Players"])

require_approver = require_roles([UserRole.admin, UserRole.manager])


async def _check_guardian_access(player_id: str, user: ClubUserContext):
    """Parents may only touch their own children"""
    if user.is_coach():
        return
    player = await player_service.get_player(player_id)
    if user.guardian_id not in player["guardian_ids"]:
        raise HTTPException(status_code=403, detail="Not your player")


# =============================================
# Queries
# =============================================

@router.get("", response_model=List[PlayerResponse])
async def list_players(
    status: Optional[ApprovalStatus] = Query(None, description="Approval status filter"),
    user: ClubUserContext = Depends(require_coach)
):
    """All players"""
    return await player_service.list_players(status.value if status else None)


@router.get("/mine", response_model=List[PlayerResponse])
async def list_my_players(user: ClubUserContext = Depends(get_current_user)):
    """Players linked to the current guardian"""
    return await player_service.list_by_guardian(user.guardian_id)


@router.get("/team/{team_id}", response_model=List[PlayerResponse])
async def list_team_players(
    team_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Players on a team"""
    return await player_service.list_by_team(team_id)


@router.get("/guardian/{guardian_id}", response_model=List[PlayerResponse])
async def list_guardian_players(
    guardian_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """Players linked to a guardian"""
    if guardian_id != user.guardian_id and not user.is_coach():
        raise HTTPException(status_code=403, detail="Not allowed to view these players")
    return await player_service.list_by_guardian(guardian_id)


@router.get("/{player_id}", response_model=PlayerResponse)
async def get_player(
    player_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """One player"""
    try:
        await _check_guardian_access(player_id, user)
        return await player_service.get_player(player_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


# =============================================
# Writes
# =============================================

@router.post("", response_model=PlayerResponse, status_code=201)
async def create_player(
    data: PlayerCreate,
    user: ClubUserContext = Depends(get_current_user)
):
    """
    Register a player

    Parents register their own children; the player is linked to them.
    Coaches and admins may register any player.
    """
    payload = data.model_dump()
    if not user.is_coach():
        payload["guardian_id"] = user.guardian_id
    return await player_service.create_player(payload)


@router.patch("/{player_id}", response_model=PlayerResponse)
async def update_player(
    player_id: str,
    data: PlayerUpdate,
    user: ClubUserContext = Depends(get_current_user)
):
    """Update a player"""
    try:
        await _check_guardian_access(player_id, user)
        return await player_service.update_player(player_id, data.model_dump(exclude_unset=True))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{player_id}")
async def delete_player(
    player_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Delete a player"""
    await player_service.delete_player(player_id)
    return {"message": "Player deleted", "id": player_id}


@router.post("/{player_id}/teams")
async def assign_player_to_team(
    player_id: str,
    data: TeamAssignment,
    user: ClubUserContext = Depends(require_coach)
):
    """Add a player to a team"""
    try:
        await player_service.assign_to_team(player_id, data.team_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"message": "Player assigned", "player_id": player_id, "team_id": data.team_id}


@router.delete("/{player_id}/teams/{team_id}")
async def remove_player_from_team(
    player_id: str,
    team_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Remove a player from a team"""
    await player_service.remove_from_team(player_id, team_id)
    return {"message": "Player removed", "player_id": player_id, "team_id": team_id}


# =============================================
# Approval
# =============================================

@router.post("/{player_id}/approve", response_model=PlayerResponse)
async def approve_player(
    player_id: str,
    user: ClubUserContext = Depends(require_approver)
):
    """Approve a registration"""
    try:
        return await player_service.approve_player(player_id, user.guardian_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{player_id}/reject", response_model=PlayerResponse)
async def reject_player(
    player_id: str,
    data: RejectionRequest,
    user: ClubUserContext = Depends(require_approver)
):
    """Reject a registration with a reason"""
    try:
        return await player_service.reject_player(player_id, data.reason, user.guardian_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
