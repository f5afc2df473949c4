"""
Permission Matrix API Router
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import ClubUserContext, get_current_user, require_admin
from ..models import PermissionCategory, RolePermissionGrant, UserPermissions, UserRole
from .service import permission_service, legacy_flags

router = APIRouter(prefix="/permissions", tags=["Permissions"])


@router.get("/me", response_model=UserPermissions)
async def get_my_permissions(user: ClubUserContext = Depends(get_current_user)):
    """Resolved permissions and legacy role flags of the current user"""
    permissions = await permission_service.get_effective_permissions(user.guardian_id, user.roles)
    teams = await permission_service.get_accessible_teams(user.guardian_id)
    return UserPermissions(
        user_id=user.guardian_id,
        permissions=permissions,
        flags=legacy_flags(permissions),
        accessible_teams=teams
    )


@router.get("", response_model=List[PermissionCategory])
async def list_permissions(user: ClubUserContext = Depends(require_admin)):
    """All permissions grouped by category"""
    return await permission_service.list_permissions()


@router.get("/roles")
async def list_role_permissions(user: ClubUserContext = Depends(require_admin)):
    """Role → permission matrix"""
    rows = await permission_service.list_role_permissions()
    matrix = {role.value: [] for role in UserRole}
    for row in rows:
        matrix.setdefault(row["role"], []).append(str(row["permission_id"]))
    return {"matrix": matrix, "rows": rows}


@router.post("/roles", status_code=201)
async def grant_permission(
    data: RolePermissionGrant,
    user: ClubUserContext = Depends(require_admin)
):
    """Grant a permission to a role"""
    try:
        return await permission_service.grant(data.role.value, data.permission_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/roles/{role}/{permission_id}")
async def revoke_permission(
    role: UserRole,
    permission_id: str,
    user: ClubUserContext = Depends(require_admin)
):
    """Revoke a permission from a role"""
    await permission_service.revoke(role.value, permission_id)
    return {"message": "Permission revoked", "role": role.value, "permission_id": permission_id}
