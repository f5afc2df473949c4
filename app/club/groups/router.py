"""
Group API Router
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import ClubUserContext, get_current_user, require_permission
from ..models import (
    GroupCreate,
    GroupDetail,
    GroupResponse,
    GroupStaffAdd,
    GroupStaffMember,
    GroupUpdate
)
from .service import group_service

router = APIRouter(prefix="/groups", tags=["Groups"])


@router.get("", response_model=List[GroupResponse])
async def list_groups(user: ClubUserContext = Depends(get_current_user)):
    """Groups"""
    return await group_service.list_groups()


@router.get("/{group_id}", response_model=GroupDetail)
async def get_group(
    group_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """One group with its teams and staff"""
    try:
        return await group_service.get_group(group_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    data: GroupCreate,
    user: ClubUserContext = Depends(require_permission("groups.create"))
):
    """Create a group"""
    return await group_service.create_group(data.model_dump())


@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: str,
    data: GroupUpdate,
    user: ClubUserContext = Depends(require_permission("groups.edit.all"))
):
    """Update a group"""
    try:
        return await group_service.update_group(group_id, data.model_dump(exclude_unset=True))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{group_id}")
async def delete_group(
    group_id: str,
    user: ClubUserContext = Depends(require_permission("groups.delete"))
):
    """Delete a group; its teams stay"""
    await group_service.delete_group(group_id)
    return {"message": "Group deleted", "id": group_id}


# =============================================
# Staff
# =============================================

@router.post("/{group_id}/staff", response_model=GroupStaffMember, status_code=201)
async def add_staff(
    group_id: str,
    data: GroupStaffAdd,
    user: ClubUserContext = Depends(require_permission("groups.edit.all"))
):
    """Give a guardian a role in the group"""
    try:
        return await group_service.add_staff(group_id, data.guardian_id, data.role)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/{group_id}/staff/{guardian_id}")
async def remove_staff(
    group_id: str,
    guardian_id: str,
    user: ClubUserContext = Depends(require_permission("groups.edit.all"))
):
    """Remove a guardian from the group staff"""
    await group_service.remove_staff(group_id, guardian_id)
    return {"message": "Staff member removed", "group_id": group_id, "guardian_id": guardian_id}
