"""
Team Service

Teams, rosters (player_teams) and staff (team_members)
"""

from typing import Optional, List, Dict, Any
from datetime import date, datetime

from loguru import logger

from app.offline.client import OfflineFirstAPI
from database.supabase_client import get_supabase_client
from ..players.service import player_service


def team_view(row: Dict[str, Any], player_count: int = 0) -> Dict[str, Any]:
    """teams row → team view-model"""
    return {
        "id": str(row["id"]),
        "name": row.get("name") or "",
        "age_group": row.get("age_group"),
        "season_year": row.get("season_year"),
        "description": row.get("description"),
        "group_id": row.get("group_id"),
        "archived": bool(row.get("archived")),
        "player_count": player_count,
    }


class TeamService(OfflineFirstAPI):
    """Team service"""

    @property
    def supabase(self):
        return get_supabase_client()

    # =============================================
    # Teams
    # =============================================

    async def list_teams(self, include_archived: bool = False) -> List[Dict[str, Any]]:
        """Teams by name, archived ones only on request"""
        async def online():
            query = self.supabase.table("teams").select("*")
            if not include_archived:
                query = query.eq("archived", False)
            rows = query.order("name").execute().data or []
            self.cache_rows("teams", rows)
            return rows, self._player_counts([r["id"] for r in rows])

        async def offline():
            rows = self.store.list("teams")
            if not include_archived:
                rows = [r for r in rows if not r.get("archived")]
            return sorted(rows, key=lambda r: r.get("name") or ""), {}

        rows, counts = await self.with_offline_fallback(online, offline, "list_teams")
        return [team_view(r, counts.get(str(r["id"]), 0)) for r in rows]

    async def get_team(self, team_id: str) -> Dict[str, Any]:
        """One team (LookupError when missing)"""
        async def online():
            response = self.supabase.table("teams").select("*").eq(
                "id", team_id
            ).maybe_single().execute()
            row = response.data if response else None
            if not row:
                return None, 0
            self.cache_rows("teams", [row])
            return row, self._player_counts([team_id]).get(str(team_id), 0)

        async def offline():
            return self.store.get("teams", team_id), 0

        row, count = await self.with_offline_fallback(online, offline, "get_team")
        if not row:
            raise LookupError("Team not found")
        return team_view(row, count)

    async def create_team(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a team (season year defaults to the current year)"""
        row = {
            "name": data["name"],
            "age_group": data["age_group"],
            "season_year": data.get("season_year") or date.today().year,
            "description": data.get("description"),
            "group_id": data.get("group_id"),
            "archived": False,
        }

        async def online():
            response = self.supabase.table("teams").insert(row).execute()
            if not response.data:
                raise RuntimeError("Team insert returned no row")
            self.cache_rows("teams", response.data)
            return response.data[0]

        created = await self.write_with_fallback(online, "teams", row, "create_team")
        logger.info(f"Team created: {created['name']} ({created['id']})")
        return team_view(created)

    async def update_team(self, team_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update the given fields only"""
        if not changes:
            return await self.get_team(team_id)

        async def online():
            response = self.supabase.table("teams").update(changes).eq("id", team_id).execute()
            if not response.data:
                raise LookupError("Team not found")
            return response.data[0]

        await self.write_with_fallback(online, "teams", changes, "update_team", team_id)
        return await self.get_team(team_id)

    async def set_archived(self, team_id: str, archived: bool) -> Dict[str, Any]:
        """Archive or restore a team"""
        team = await self.update_team(team_id, {"archived": archived})
        logger.info(f"Team {team_id} {'archived' if archived else 'unarchived'}")
        return team

    async def delete_team(self, team_id: str) -> bool:
        """Delete a team; refused while players are assigned"""
        if self.is_online:
            assigned = self.supabase.table("player_teams").select(
                "player_id", count="exact"
            ).eq("team_id", team_id).execute()
            if assigned.count or assigned.data:
                raise ValueError("Cannot delete a team that still has players assigned")

        async def online():
            self.supabase.table("teams").delete().eq("id", team_id).execute()

        await self.delete_with_fallback(online, "teams", team_id, "delete_team")
        logger.info(f"Team deleted: {team_id}")
        return True

    # =============================================
    # Roster / staff
    # =============================================

    async def get_roster(self, team_id: str) -> List[Dict[str, Any]]:
        """Players on the team"""
        return await player_service.list_by_team(team_id)

    async def list_staff(self, team_id: str) -> List[Dict[str, Any]]:
        """Coaches and managers of a team"""
        rows = self.supabase.table("team_members").select("*").eq(
            "team_id", team_id
        ).eq("is_active", True).execute().data or []

        member_ids = [r["member_id"] for r in rows if r.get("member_id")]
        names: Dict[str, str] = {}
        if member_ids:
            for g in self.supabase.table("guardians").select(
                "id, first_name, last_name"
            ).in_("id", member_ids).execute().data or []:
                names[str(g["id"])] = f"{g.get('first_name') or ''} {g.get('last_name') or ''}".strip()

        return [
            {
                "id": str(r["id"]),
                "member_id": str(r["member_id"]),
                "member_name": names.get(str(r["member_id"]), ""),
                "member_type": r.get("member_type") or "coach",
                "is_active": r.get("is_active", True),
                "assigned_at": r.get("assigned_at"),
            }
            for r in rows
        ]

    async def add_staff(
        self,
        team_id: str,
        member_id: str,
        member_type: str,
        assigned_by: str
    ) -> Dict[str, Any]:
        """Add a coach or manager (ValueError when already on the team)"""
        existing = self.supabase.table("team_members").select("id").eq(
            "team_id", team_id
        ).eq("member_id", member_id).eq("is_active", True).execute()
        if existing.data:
            raise ValueError("Member is already on this team")

        response = self.supabase.table("team_members").insert({
            "team_id": team_id,
            "member_id": member_id,
            "member_type": member_type,
            "is_active": True,
            "assigned_at": datetime.now().isoformat(),
            "assigned_by": assigned_by,
        }).execute()

        if not response.data:
            raise RuntimeError("Staff insert returned no row")

        logger.info(f"{member_type} {member_id} added to team {team_id}")
        row = response.data[0]
        return {
            "id": str(row["id"]),
            "member_id": str(member_id),
            "member_type": member_type,
            "is_active": True,
            "assigned_at": row.get("assigned_at"),
        }

    async def remove_staff(self, team_id: str, member_id: str) -> bool:
        self.supabase.table("team_members").delete().eq(
            "team_id", team_id
        ).eq("member_id", member_id).execute()
        logger.info(f"Member {member_id} removed from team {team_id}")
        return True

    # =============================================
    # Helpers
    # =============================================

    def _player_counts(self, team_ids: List[str]) -> Dict[str, int]:
        if not team_ids:
            return {}
        links = self.supabase.table("player_teams").select("team_id").in_(
            "team_id", team_ids
        ).execute().data or []
        counts: Dict[str, int] = {}
        for link in links:
            key = str(link["team_id"])
            counts[key] = counts.get(key, 0) + 1
        return counts


team_service = TeamService()
