"""
Player Service

Children registered with the club: profile rows in players, team membership
in player_teams and guardian links in player_guardians.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import date, datetime

from loguru import logger

from app.auth.validation import get_age
from app.offline.client import OfflineFirstAPI
from database.supabase_client import get_supabase_client

PLAYER_COLUMNS = (
    "id, first_name, last_name, date_of_birth, medical_conditions, "
    "additional_medical_notes, profile_image, approval_status"
)


def uk_age_group(date_of_birth, on: Optional[date] = None) -> Optional[str]:
    """
    UK age group of a player

    The season runs September to August; a player's group is U{age + 1}
    where age is taken on 31 August at the start of the current season.

    Args:
        date_of_birth: date or ISO string
        on: reference date (defaults to today)

    Returns:
        e.g. "U11", or None without a date of birth
    """
    if not date_of_birth:
        return None
    if isinstance(date_of_birth, str):
        date_of_birth = date.fromisoformat(date_of_birth[:10])

    on = on or date.today()
    season_year = on.year if on.month >= 9 else on.year - 1
    age = get_age(date_of_birth, date(season_year, 8, 31))
    return f"U{age + 1}"


def split_name(full_name: str) -> Tuple[str, str]:
    """First word is the first name, the rest is the last name"""
    first, _, last = full_name.strip().partition(" ")
    return first, last.strip()


def player_view(
    row: Dict[str, Any],
    team_ids: Optional[List[str]] = None,
    guardian_ids: Optional[List[str]] = None
) -> Dict[str, Any]:
    """players row → player view-model"""
    dob = row.get("date_of_birth")
    return {
        "id": str(row["id"]),
        "name": f"{row.get('first_name') or ''} {row.get('last_name') or ''}".strip(),
        "date_of_birth": str(dob)[:10] if dob else None,
        "age_group": uk_age_group(dob) if dob else None,
        "medical_info": row.get("medical_conditions") or "",
        "notes": row.get("additional_medical_notes") or "",
        "profile_image": row.get("profile_image") or "",
        "status": row.get("approval_status") or "pending",
        "team_ids": team_ids if team_ids is not None else row.get("_team_ids", []),
        "guardian_ids": guardian_ids if guardian_ids is not None else row.get("_guardian_ids", []),
    }


class PlayerService(OfflineFirstAPI):
    """Player service"""

    @property
    def supabase(self):
        return get_supabase_client()

    # =============================================
    # Queries
    # =============================================

    async def list_players(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """All players, optionally filtered by approval status"""
        async def online():
            query = self.supabase.table("players").select(PLAYER_COLUMNS)
            if status:
                query = query.eq("approval_status", status)
            rows = query.order("last_name").execute().data or []
            return self._annotate(rows)

        async def offline():
            rows = self.store.list("players")
            if status:
                rows = [r for r in rows if r.get("approval_status") == status]
            return rows

        rows = await self.with_offline_fallback(online, offline, "list_players")
        return [player_view(r) for r in rows]

    async def get_player(self, player_id: str) -> Dict[str, Any]:
        """One player (LookupError when missing)"""
        async def online():
            response = self.supabase.table("players").select(PLAYER_COLUMNS).eq(
                "id", player_id
            ).maybe_single().execute()
            row = response.data if response else None
            return self._annotate([row])[0] if row else None

        async def offline():
            return self.store.get("players", player_id)

        row = await self.with_offline_fallback(online, offline, "get_player")
        if not row:
            raise LookupError("Player not found")
        return player_view(row)

    async def list_by_team(self, team_id: str) -> List[Dict[str, Any]]:
        """Players on a team, resolved through player_teams"""
        async def online():
            links = self.supabase.table("player_teams").select("player_id").eq(
                "team_id", team_id
            ).execute().data or []
            player_ids = [link["player_id"] for link in links]
            if not player_ids:
                return []
            rows = self.supabase.table("players").select(PLAYER_COLUMNS).in_(
                "id", player_ids
            ).execute().data or []
            return self._annotate(rows)

        async def offline():
            return [r for r in self.store.list("players") if team_id in r.get("_team_ids", [])]

        rows = await self.with_offline_fallback(online, offline, "list_players_by_team")
        return [player_view(r) for r in rows]

    async def list_by_guardian(self, guardian_id: str) -> List[Dict[str, Any]]:
        """Players linked to a guardian"""
        async def online():
            links = self.supabase.table("player_guardians").select("player_id").eq(
                "guardian_id", guardian_id
            ).execute().data or []
            player_ids = [link["player_id"] for link in links]
            if not player_ids:
                return []
            rows = self.supabase.table("players").select(PLAYER_COLUMNS).in_(
                "id", player_ids
            ).execute().data or []
            return self._annotate(rows)

        async def offline():
            return [
                r for r in self.store.list("players")
                if guardian_id in r.get("_guardian_ids", [])
            ]

        rows = await self.with_offline_fallback(online, offline, "list_players_by_guardian")
        return [player_view(r) for r in rows]

    # =============================================
    # Writes
    # =============================================

    async def create_player(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a player

        The full name is split at the first space. New players wait for
        approval. An optional team assignment and guardian link follow.
        """
        first_name, last_name = split_name(data["name"])
        dob = data.get("date_of_birth")
        row = {
            "first_name": first_name,
            "last_name": last_name,
            "date_of_birth": dob.isoformat() if isinstance(dob, date) else dob,
            "medical_conditions": data.get("medical_info"),
            "additional_medical_notes": data.get("notes"),
            "profile_image": data.get("profile_image"),
            "approval_status": "pending",
        }
        team_id = data.get("team_id")
        guardian_id = data.get("guardian_id")

        async def online():
            response = self.supabase.table("players").insert(row).execute()
            if not response.data:
                raise RuntimeError("Player insert returned no row")
            created = response.data[0]

            if team_id:
                self.supabase.table("player_teams").insert({
                    "player_id": created["id"],
                    "team_id": team_id,
                    "join_date": date.today().isoformat(),
                }).execute()
            if guardian_id:
                self.supabase.table("player_guardians").insert({
                    "player_id": created["id"],
                    "guardian_id": guardian_id,
                }).execute()

            created = {
                **created,
                "_team_ids": [team_id] if team_id else [],
                "_guardian_ids": [guardian_id] if guardian_id else [],
            }
            self.cache_rows("players", [created])
            return created

        offline_row = {
            **row,
            "_team_ids": [team_id] if team_id else [],
            "_guardian_ids": [guardian_id] if guardian_id else [],
        }
        created = await self.write_with_fallback(online, "players", offline_row, "create_player")
        if str(created["id"]).startswith("local_") and (team_id or guardian_id):
            logger.warning(f"Player {created['id']} created offline; team/guardian links need re-applying after sync")

        logger.info(f"Player created: {created['id']}")
        return player_view(created)

    async def update_player(self, player_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update the given fields only"""
        update = {}
        if changes.get("name"):
            update["first_name"], update["last_name"] = split_name(changes["name"])
        if "date_of_birth" in changes and changes["date_of_birth"] is not None:
            dob = changes["date_of_birth"]
            update["date_of_birth"] = dob.isoformat() if isinstance(dob, date) else dob
        if "medical_info" in changes:
            update["medical_conditions"] = changes["medical_info"]
        if "notes" in changes:
            update["additional_medical_notes"] = changes["notes"]
        if "profile_image" in changes:
            update["profile_image"] = changes["profile_image"]

        if not update:
            return await self.get_player(player_id)

        async def online():
            response = self.supabase.table("players").update(update).eq("id", player_id).execute()
            if not response.data:
                raise LookupError("Player not found")
            return response.data[0]

        await self.write_with_fallback(online, "players", update, "update_player", player_id)
        return await self.get_player(player_id)

    async def delete_player(self, player_id: str) -> bool:
        async def online():
            self.supabase.table("players").delete().eq("id", player_id).execute()

        await self.delete_with_fallback(online, "players", player_id, "delete_player")
        logger.info(f"Player deleted: {player_id}")
        return True

    async def assign_to_team(self, player_id: str, team_id: str) -> bool:
        """Add a player to a team (ValueError when already a member)"""
        existing = self.supabase.table("player_teams").select("player_id").eq(
            "player_id", player_id
        ).eq("team_id", team_id).execute()
        if existing.data:
            raise ValueError("Player is already on this team")

        self.supabase.table("player_teams").insert({
            "player_id": player_id,
            "team_id": team_id,
            "join_date": date.today().isoformat(),
        }).execute()
        logger.info(f"Player {player_id} assigned to team {team_id}")
        return True

    async def remove_from_team(self, player_id: str, team_id: str) -> bool:
        self.supabase.table("player_teams").delete().eq(
            "player_id", player_id
        ).eq("team_id", team_id).execute()
        logger.info(f"Player {player_id} removed from team {team_id}")
        return True

    # =============================================
    # Approval
    # =============================================

    async def approve_player(self, player_id: str, approved_by: str) -> Dict[str, Any]:
        return await self._set_approval(player_id, {
            "approval_status": "approved",
            "approved_at": datetime.now().isoformat(),
            "approved_by": approved_by,
            "rejection_reason": None,
        })

    async def reject_player(self, player_id: str, reason: str, rejected_by: str) -> Dict[str, Any]:
        return await self._set_approval(player_id, {
            "approval_status": "rejected",
            "rejection_reason": reason,
            "approved_by": rejected_by,
        })

    async def _set_approval(self, player_id: str, update: Dict[str, Any]) -> Dict[str, Any]:
        response = self.supabase.table("players").update(update).eq("id", player_id).execute()
        if not response.data:
            raise LookupError("Player not found")
        logger.info(f"Player {player_id} {update['approval_status']}")
        return await self.get_player(player_id)

    # =============================================
    # Helpers
    # =============================================

    def _annotate(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Attach team and guardian ids, then mirror the rows offline"""
        player_ids = [r["id"] for r in rows]
        team_ids: Dict[str, List[str]] = {}
        guardian_ids: Dict[str, List[str]] = {}

        if player_ids:
            for link in self.supabase.table("player_teams").select(
                "player_id, team_id"
            ).in_("player_id", player_ids).execute().data or []:
                team_ids.setdefault(str(link["player_id"]), []).append(str(link["team_id"]))

            for link in self.supabase.table("player_guardians").select(
                "player_id, guardian_id"
            ).in_("player_id", player_ids).execute().data or []:
                guardian_ids.setdefault(str(link["player_id"]), []).append(str(link["guardian_id"]))

        annotated = [
            {
                **row,
                "_team_ids": team_ids.get(str(row["id"]), []),
                "_guardian_ids": guardian_ids.get(str(row["id"]), []),
            }
            for row in rows
        ]
        self.cache_rows("players", annotated)
        return annotated


player_service = PlayerService()
