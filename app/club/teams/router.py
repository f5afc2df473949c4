"""
Team API Router
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import (
    ClubUserContext,
    get_current_user,
    require_admin,
    require_coach,
    require_permission
)
from ..models import (
    PlayerResponse,
    TeamCreate,
    TeamResponse,
    TeamStaffAdd,
    TeamStaffMember,
    TeamUpdate
)
from .service import team_service

router = APIRouter(prefix="/teams", tags=["Teams"])


def _check_team_access(team_id: str, user: ClubUserContext):
    if not user.can_access_team(team_id):
        raise HTTPException(status_code=403, detail="Not assigned to this team")


@router.get("", response_model=List[TeamResponse])
async def list_teams(
    include_archived: bool = Query(False),
    user: ClubUserContext = Depends(get_current_user)
):
    """Teams"""
    return await team_service.list_teams(include_archived)


@router.get("/{team_id}", response_model=TeamResponse)
async def get_team(
    team_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """One team"""
    try:
        return await team_service.get_team(team_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=TeamResponse, status_code=201)
async def create_team(
    data: TeamCreate,
    user: ClubUserContext = Depends(require_permission("teams.create"))
):
    """Create a team"""
    return await team_service.create_team(data.model_dump())


@router.patch("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: str,
    data: TeamUpdate,
    user: ClubUserContext = Depends(require_coach)
):
    """Update a team (coaches only their own teams)"""
    _check_team_access(team_id, user)
    try:
        return await team_service.update_team(team_id, data.model_dump(exclude_unset=True))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{team_id}/archive", response_model=TeamResponse)
async def archive_team(
    team_id: str,
    user: ClubUserContext = Depends(require_admin)
):
    """Archive a team"""
    try:
        return await team_service.set_archived(team_id, True)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{team_id}/unarchive", response_model=TeamResponse)
async def unarchive_team(
    team_id: str,
    user: ClubUserContext = Depends(require_admin)
):
    """Restore an archived team"""
    try:
        return await team_service.set_archived(team_id, False)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{team_id}")
async def delete_team(
    team_id: str,
    user: ClubUserContext = Depends(require_permission("teams.delete"))
):
    """Delete a team with no players"""
    try:
        await team_service.delete_team(team_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"message": "Team deleted", "id": team_id}


# =============================================
# Roster / staff
# =============================================

@router.get("/{team_id}/roster", response_model=List[PlayerResponse])
async def get_roster(
    team_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Players on the team"""
    _check_team_access(team_id, user)
    return await team_service.get_roster(team_id)


@router.get("/{team_id}/staff", response_model=List[TeamStaffMember])
async def list_staff(
    team_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """Coaches and managers"""
    return await team_service.list_staff(team_id)


@router.post("/{team_id}/staff", response_model=TeamStaffMember, status_code=201)
async def add_staff(
    team_id: str,
    data: TeamStaffAdd,
    user: ClubUserContext = Depends(require_admin)
):
    """Add a coach or manager"""
    try:
        return await team_service.add_staff(
            team_id, data.member_id, data.member_type.value, user.guardian_id
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/{team_id}/staff/{member_id}")
async def remove_staff(
    team_id: str,
    member_id: str,
    user: ClubUserContext = Depends(require_admin)
):
    """Remove a coach or manager"""
    await team_service.remove_staff(team_id, member_id)
    return {"message": "Staff member removed", "team_id": team_id, "member_id": member_id}
