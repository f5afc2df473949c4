"""
Club Management Dependencies

Request context and role/permission checks
"""

from typing import Optional, List

from fastapi import Depends, HTTPException, status, Request
from loguru import logger

from app.auth.router import decode_access_token, get_bearer_token
from app.config import get_settings
from .models import UserRole

# Fixed context used when CLUB_TEST_MODE=1 in the environment
TEST_USER_CONFIG = {
    "guardian_id": "00000000-0000-0000-0000-000000000001",
    "full_name": "Club Administrator",
    "email": "admin@example.com",
    "roles": [UserRole.admin.value],
}


class ClubUserContext:
    """Signed-in club user"""

    def __init__(
        self,
        guardian_id: str,
        full_name: str = "",
        email: str = "",
        roles: Optional[List[str]] = None,
        team_ids: Optional[List[str]] = None
    ):
        self.guardian_id = guardian_id
        self.full_name = full_name
        self.email = email
        self.roles = list(roles or [])
        self.team_ids = list(team_ids or [])

    def has_role(self, role) -> bool:
        value = role.value if isinstance(role, UserRole) else role
        return value in self.roles

    def is_admin(self) -> bool:
        return self.has_role(UserRole.admin)

    def is_manager(self) -> bool:
        return self.has_role(UserRole.manager)

    def is_coach(self) -> bool:
        """Coach or above"""
        return any(self.has_role(r) for r in (UserRole.coach, UserRole.manager, UserRole.admin))

    def is_parent(self) -> bool:
        return self.has_role(UserRole.parent)

    def can_access_team(self, team_id: str) -> bool:
        """Admins see every team; others only their assigned teams"""
        return self.is_admin() or str(team_id) in self.team_ids


def _load_team_ids(guardian_id: str) -> List[str]:
    """Teams from active team-scoped role assignments"""
    from database.supabase_client import get_supabase_client
    try:
        response = get_supabase_client().table("user_roles").select("team_id").eq(
            "guardian_id", guardian_id
        ).eq("is_active", True).execute()
        return sorted({str(row["team_id"]) for row in response.data or [] if row.get("team_id")})
    except Exception as e:
        logger.warning(f"Team lookup failed for {guardian_id}: {e}")
        return []


async def get_current_user(request: Request) -> ClubUserContext:
    """
    Resolve the current club user

    Reads the Bearer session token issued by /auth/login.

    With CLUB_TEST_MODE=1 in the environment every request signs in as
    a fixed administrator.
    """
    if get_settings().CLUB_TEST_MODE:
        return ClubUserContext(**TEST_USER_CONFIG)

    token = get_bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    payload = decode_access_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    guardian_id = payload["guardian_id"]
    return ClubUserContext(
        guardian_id=guardian_id,
        full_name=payload.get("full_name", ""),
        email=payload.get("email", ""),
        roles=payload.get("roles", []),
        team_ids=_load_team_ids(guardian_id)
    )


def require_coach(user: ClubUserContext = Depends(get_current_user)) -> ClubUserContext:
    """Coach or above"""
    if not user.is_coach():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Coach access required"
        )
    return user


def require_admin(user: ClubUserContext = Depends(get_current_user)) -> ClubUserContext:
    """Administrator only"""
    if not user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required"
        )
    return user


def require_roles(allowed_roles: List[UserRole]):
    """Any of the given roles"""
    def _check(user: ClubUserContext = Depends(get_current_user)) -> ClubUserContext:
        if not any(user.has_role(r) for r in allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Allowed roles: {', '.join([r.value for r in allowed_roles])}"
            )
        return user
    return _check


def require_permission(name: str):
    """A named permission (see app.club.permissions)"""
    async def _check(user: ClubUserContext = Depends(get_current_user)) -> ClubUserContext:
        from .permissions.service import permission_service
        if user.is_admin():
            return user
        if not await permission_service.has_permission(user.guardian_id, name, user.roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {name}"
            )
        return user
    return _check
