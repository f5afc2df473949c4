"""
User Role Service

Role assignments in user_roles. Guardian and team names are looked up
separately and joined in memory.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime

from loguru import logger

from database.supabase_client import get_supabase_client


class RoleService:
    """User role assignment service"""

    @property
    def supabase(self):
        return get_supabase_client()

    # =============================================
    # Queries
    # =============================================

    async def list_user_roles(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        """Role assignments, newest first, with guardian and team names"""
        query = self.supabase.table("user_roles").select(
            "id, guardian_id, role, team_id, is_active, assigned_at, assigned_by"
        )
        if not include_inactive:
            query = query.eq("is_active", True)
        rows = query.order("assigned_at", desc=True).execute().data or []

        guardians = self._guardians_by_id({r.get("guardian_id") for r in rows})
        teams = self._teams_by_id({r.get("team_id") for r in rows})

        return [self._to_assignment(row, guardians, teams) for row in rows]

    async def get_guardian_roles(self, guardian_id: str) -> List[Dict[str, Any]]:
        """Active roles of one guardian ([] on error)"""
        try:
            rows = self.supabase.table("user_roles").select(
                "id, guardian_id, role, team_id, is_active, assigned_at, assigned_by"
            ).eq("guardian_id", guardian_id).eq("is_active", True).execute().data or []
        except Exception as e:
            logger.error(f"Role lookup failed for {guardian_id}: {e}")
            return []

        teams = self._teams_by_id({r.get("team_id") for r in rows})
        guardians = self._guardians_by_id({guardian_id})
        return [self._to_assignment(row, guardians, teams) for row in rows]

    async def list_candidates(self) -> Dict[str, List[Dict[str, Any]]]:
        """Approved guardians and all teams, for the assignment form"""
        guardians = self.supabase.table("guardians").select(
            "id, first_name, last_name, email"
        ).eq("approval_status", "approved").order("last_name").execute().data or []

        teams = self.supabase.table("teams").select(
            "id, name, age_group"
        ).order("name").execute().data or []

        return {
            "guardians": [
                {
                    "id": str(g["id"]),
                    "name": self._guardian_name(g),
                    "email": g.get("email") or "",
                }
                for g in guardians
            ],
            "teams": [
                {"id": str(t["id"]), "name": t.get("name") or "", "age_group": t.get("age_group")}
                for t in teams
            ],
        }

    # =============================================
    # Writes
    # =============================================

    async def assign_role(
        self,
        guardian_id: str,
        role: str,
        team_id: Optional[str],
        assigned_by: str
    ) -> Dict[str, Any]:
        """Assign a role; refuses an identical active assignment"""
        query = self.supabase.table("user_roles").select("id").eq(
            "guardian_id", guardian_id
        ).eq("role", role).eq("is_active", True)
        query = query.eq("team_id", team_id) if team_id else query.is_("team_id", "null")
        if query.execute().data:
            raise ValueError("This role is already assigned")

        response = self.supabase.table("user_roles").insert({
            "guardian_id": guardian_id,
            "role": role,
            "team_id": team_id,
            "is_active": True,
            "assigned_at": datetime.now().isoformat(),
            "assigned_by": assigned_by,
        }).execute()

        if not response.data:
            raise RuntimeError("Role assignment failed")

        logger.info(f"Role {role} assigned to {guardian_id} by {assigned_by}")
        return await self._reload(response.data[0]["id"])

    async def update_role(self, role_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Change role, team or active flag of an assignment"""
        if not changes:
            return await self._reload(role_id)

        response = self.supabase.table("user_roles").update(changes).eq("id", role_id).execute()
        if not response.data:
            raise LookupError("Role assignment not found")
        return await self._reload(role_id)

    async def deactivate_role(self, role_id: str) -> bool:
        """Switch an assignment off (the row is kept)"""
        response = self.supabase.table("user_roles").update({
            "is_active": False
        }).eq("id", role_id).execute()
        if not response.data:
            raise LookupError("Role assignment not found")
        logger.info(f"Role assignment {role_id} deactivated")
        return True

    # =============================================
    # Helpers
    # =============================================

    async def _reload(self, role_id: str) -> Dict[str, Any]:
        response = self.supabase.table("user_roles").select("*").eq(
            "id", role_id
        ).maybe_single().execute()
        row = response.data if response else None
        if not row:
            raise LookupError("Role assignment not found")
        guardians = self._guardians_by_id({row.get("guardian_id")})
        teams = self._teams_by_id({row.get("team_id")})
        return self._to_assignment(row, guardians, teams)

    def _guardians_by_id(self, ids) -> Dict[str, Dict[str, Any]]:
        ids = [i for i in ids if i]
        if not ids:
            return {}
        rows = self.supabase.table("guardians").select(
            "id, first_name, last_name, email"
        ).in_("id", ids).execute().data or []
        return {str(r["id"]): r for r in rows}

    def _teams_by_id(self, ids) -> Dict[str, Dict[str, Any]]:
        ids = [i for i in ids if i]
        if not ids:
            return {}
        rows = self.supabase.table("teams").select("id, name").in_("id", ids).execute().data or []
        return {str(r["id"]): r for r in rows}

    @staticmethod
    def _guardian_name(guardian: Dict[str, Any]) -> str:
        return f"{guardian.get('first_name') or ''} {guardian.get('last_name') or ''}".strip()

    def _to_assignment(
        self,
        row: Dict[str, Any],
        guardians: Dict[str, Dict[str, Any]],
        teams: Dict[str, Dict[str, Any]]
    ) -> Dict[str, Any]:
        if not row.get("guardian_id") or not row.get("role"):
            logger.warning(f"Incomplete user_roles row {row.get('id')}")

        guardian = guardians.get(str(row.get("guardian_id")), {})
        team = teams.get(str(row.get("team_id")), {}) if row.get("team_id") else {}

        return {
            "id": str(row.get("id")),
            "guardian_id": str(row.get("guardian_id") or ""),
            "guardian_name": self._guardian_name(guardian) or "Unknown",
            "guardian_email": guardian.get("email") or "",
            "role": row.get("role") or "parent",
            "team_id": str(row["team_id"]) if row.get("team_id") else None,
            "team_name": team.get("name"),
            "is_active": row.get("is_active", True),
            "assigned_at": row.get("assigned_at"),
            "assigned_by": row.get("assigned_by"),
        }


role_service = RoleService()
