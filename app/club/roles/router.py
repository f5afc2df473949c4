"""
User Role API Router
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import ClubUserContext, get_current_user, require_admin, require_permission
from ..models import RoleAssignmentCreate, RoleAssignmentResponse, RoleAssignmentUpdate
from .service import role_service

router = APIRouter(prefix="/roles", tags=["Roles"])

require_role_assigner = require_permission("roles.assign")


@router.get("", response_model=List[RoleAssignmentResponse])
async def list_roles(
    include_inactive: bool = Query(False),
    user: ClubUserContext = Depends(require_admin)
):
    """Role assignments, newest first"""
    return await role_service.list_user_roles(include_inactive)


@router.get("/candidates")
async def list_candidates(user: ClubUserContext = Depends(require_admin)):
    """Approved guardians and teams available for assignment"""
    return await role_service.list_candidates()


@router.get("/guardian/{guardian_id}", response_model=List[RoleAssignmentResponse])
async def get_guardian_roles(
    guardian_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """Active roles of a guardian (own roles, or any for admins)"""
    if guardian_id != user.guardian_id and not user.is_admin():
        raise HTTPException(status_code=403, detail="Not allowed to view these roles")
    return await role_service.get_guardian_roles(guardian_id)


@router.post("", response_model=RoleAssignmentResponse, status_code=201)
async def assign_role(
    data: RoleAssignmentCreate,
    user: ClubUserContext = Depends(require_role_assigner)
):
    """Assign a role"""
    try:
        return await role_service.assign_role(
            data.guardian_id, data.role.value, data.team_id, user.guardian_id
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.patch("/{role_id}", response_model=RoleAssignmentResponse)
async def update_role(
    role_id: str,
    data: RoleAssignmentUpdate,
    user: ClubUserContext = Depends(require_role_assigner)
):
    """Update a role assignment"""
    changes = data.model_dump(exclude_unset=True, mode="json")
    try:
        return await role_service.update_role(role_id, changes)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{role_id}")
async def deactivate_role(
    role_id: str,
    user: ClubUserContext = Depends(require_role_assigner)
):
    """Deactivate a role assignment"""
    try:
        await role_service.deactivate_role(role_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Role deactivated", "id": role_id}
