"""
Permission Service

Permission-name lookups backed by the get_user_permissions and
get_accessible_teams RPCs, with a short per-user cache.
"""

import time
from typing import Optional, List, Dict, Any, Iterable, Tuple

from loguru import logger

from app.config import get_settings
from database.supabase_client import get_supabase_client


# =============================================
# Permission catalogue
# =============================================

PERMISSION_CATALOGUE: Dict[str, List[str]] = {
    "teams": [
        "teams.view.all",
        "teams.view.assigned",
        "teams.view.children",
        "teams.create",
        "teams.edit.all",
        "teams.edit.assigned",
        "teams.delete",
    ],
    "events": [
        "events.view.all",
        "events.view.assigned",
        "events.view.children",
        "events.create",
        "events.edit.all",
        "events.edit.assigned",
        "events.delete",
    ],
    "users": ["users.view.all", "users.edit.all", "users.delete"],
    "roles": ["roles.assign", "roles.manage"],
    "groups": ["groups.view.all", "groups.create", "groups.edit.all", "groups.delete"],
    "analytics": ["analytics.view.all", "analytics.view.assigned"],
    "system": ["settings.manage", "approvals.manage"],
}

ALL_PERMISSIONS: List[str] = [name for names in PERMISSION_CATALOGUE.values() for name in names]

# Role matrix used when the backend cannot answer
DEFAULT_ROLE_PERMISSIONS: Dict[str, List[str]] = {
    "admin": list(ALL_PERMISSIONS),
    "manager": [
        "teams.view.assigned",
        "teams.edit.assigned",
        "events.view.assigned",
        "events.create",
        "events.edit.assigned",
        "events.delete",
        "users.view.all",
        "analytics.view.assigned",
        "approvals.manage",
    ],
    "coach": [
        "teams.view.assigned",
        "teams.edit.assigned",
        "events.view.assigned",
        "events.create",
        "events.edit.assigned",
        "analytics.view.assigned",
    ],
    "parent": [
        "teams.view.children",
        "events.view.children",
    ],
}


def permissions_for_roles(roles: Iterable[str]) -> List[str]:
    """Union of the default permissions of the given roles"""
    names = set()
    for role in roles:
        names.update(DEFAULT_ROLE_PERMISSIONS.get(role, []))
    return sorted(names)


def legacy_flags(permissions: Iterable[str]) -> Dict[str, bool]:
    """
    Old-style role flags derived from permission names

    isAdmin: can view every team
    isCoach: can create events but is not an admin
    isManager: can manage approvals but is not an admin
    isParent: can view their children's teams but cannot create events
    """
    perms = set(permissions)
    is_admin = "teams.view.all" in perms
    return {
        "isAdmin": is_admin,
        "isCoach": "events.create" in perms and not is_admin,
        "isManager": "approvals.manage" in perms and not is_admin,
        "isParent": "teams.view.children" in perms and "events.create" not in perms,
    }


class PermissionService:
    """Permission checks"""

    def __init__(self, cache_seconds: Optional[int] = None):
        self._cache_seconds = cache_seconds
        self._cache: Dict[str, Tuple[float, List[str]]] = {}

    @property
    def supabase(self):
        return get_supabase_client()

    @property
    def cache_seconds(self) -> int:
        if self._cache_seconds is not None:
            return self._cache_seconds
        return get_settings().PERMISSION_CACHE_SECONDS

    # =============================================
    # Lookups
    # =============================================

    def _fetch_permissions(self, user_id: str) -> List[str]:
        response = self.supabase.rpc("get_user_permissions", {"user_id": user_id}).execute()
        return [row["permission_name"] for row in response.data or []]

    async def get_user_permissions(self, user_id: str) -> List[str]:
        """Permission names granted to a user ([] on error)"""
        try:
            return self._fetch_permissions(user_id)
        except Exception as e:
            logger.error(f"Permission lookup failed for {user_id}: {e}")
            return []

    async def get_accessible_teams(self, user_id: str) -> List[str]:
        """Team ids a user may see ([] on error)"""
        try:
            response = self.supabase.rpc("get_accessible_teams", {"user_id": user_id}).execute()
            return [str(row["team_id"]) for row in response.data or []]
        except Exception as e:
            logger.error(f"Accessible teams lookup failed for {user_id}: {e}")
            return []

    async def get_effective_permissions(self, user_id: str, roles: Iterable[str] = ()) -> List[str]:
        """
        Cached permissions of a user

        Falls back to the default role matrix when the RPC fails.
        """
        cached = self._cache.get(user_id)
        now = time.monotonic()
        if cached and cached[0] > now:
            return cached[1]

        try:
            permissions = self._fetch_permissions(user_id)
        except Exception as e:
            logger.warning(f"Permission RPC unavailable, using role defaults: {e}")
            permissions = permissions_for_roles(roles)

        self._cache[user_id] = (now + self.cache_seconds, permissions)
        return permissions

    async def has_permission(self, user_id: str, name: str, roles: Iterable[str] = ()) -> bool:
        return name in await self.get_effective_permissions(user_id, roles)

    async def has_any(self, user_id: str, names: Iterable[str], roles: Iterable[str] = ()) -> bool:
        permissions = set(await self.get_effective_permissions(user_id, roles))
        return any(name in permissions for name in names)

    async def has_all(self, user_id: str, names: Iterable[str], roles: Iterable[str] = ()) -> bool:
        permissions = set(await self.get_effective_permissions(user_id, roles))
        return all(name in permissions for name in names)

    def clear_cache(self, user_id: Optional[str] = None):
        """Drop one user's cached permissions, or everyone's"""
        if user_id:
            self._cache.pop(user_id, None)
        else:
            self._cache.clear()

    # =============================================
    # Permission matrix
    # =============================================

    async def list_permissions(self) -> List[Dict[str, Any]]:
        """Permissions grouped by category"""
        response = self.supabase.table("permissions").select(
            "id, name, category, description"
        ).order("category").order("name").execute()

        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for row in response.data or []:
            grouped.setdefault(row.get("category") or "other", []).append({
                "id": str(row["id"]),
                "name": row["name"],
                "category": row.get("category") or "other",
                "description": row.get("description"),
            })

        return [
            {"category": category, "permissions": permissions}
            for category, permissions in sorted(grouped.items())
        ]

    async def list_role_permissions(self) -> List[Dict[str, Any]]:
        """role → permission_id rows"""
        response = self.supabase.table("role_permissions").select(
            "role, permission_id"
        ).execute()
        return response.data or []

    async def grant(self, role: str, permission_id: str) -> Dict[str, Any]:
        """Grant a permission to a role"""
        existing = self.supabase.table("role_permissions").select("role").eq(
            "role", role
        ).eq("permission_id", permission_id).execute()
        if existing.data:
            raise ValueError(f"{role} already has this permission")

        response = self.supabase.table("role_permissions").insert({
            "role": role,
            "permission_id": permission_id,
        }).execute()

        self.clear_cache()
        logger.info(f"Permission {permission_id} granted to {role}")
        return response.data[0] if response.data else {"role": role, "permission_id": permission_id}

    async def revoke(self, role: str, permission_id: str) -> bool:
        """Revoke a permission from a role"""
        self.supabase.table("role_permissions").delete().eq(
            "role", role
        ).eq("permission_id", permission_id).execute()

        self.clear_cache()
        logger.info(f"Permission {permission_id} revoked from {role}")
        return True


permission_service = PermissionService()
