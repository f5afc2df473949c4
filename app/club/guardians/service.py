"""
Guardian Service

Guardian accounts, guardian-player links and the registration approval
workflow for guardians and players
"""

from typing import Optional, List, Dict, Any
from datetime import datetime

from loguru import logger

from app.offline.client import OfflineFirstAPI
from database.supabase_client import get_supabase_client
from ..players.service import PLAYER_COLUMNS, player_service, player_view

GUARDIAN_DETAIL_FIELDS = (
    "address",
    "city",
    "postcode",
    "emergency_contact_name",
    "emergency_contact_phone",
)


def guardian_view(row: Dict[str, Any], player_ids: Optional[List[str]] = None) -> Dict[str, Any]:
    """guardians row → guardian view-model"""
    first_name = row.get("first_name") or ""
    last_name = row.get("last_name") or ""
    return {
        "id": str(row["id"]),
        "first_name": first_name,
        "last_name": last_name,
        "full_name": f"{first_name} {last_name}".strip(),
        "email": row.get("email"),
        "phone": row.get("phone"),
        "relationship": row.get("relationship"),
        "approval_status": row.get("approval_status") or "pending",
        "rejection_reason": row.get("rejection_reason"),
        "player_ids": player_ids if player_ids is not None else row.get("_player_ids", []),
    }


class GuardianService(OfflineFirstAPI):
    """Guardian service"""

    @property
    def supabase(self):
        return get_supabase_client()

    # =============================================
    # Guardians
    # =============================================

    async def list_guardians(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Guardians by last name, optionally filtered by approval status"""
        async def online():
            query = self.supabase.table("guardians").select("*")
            if status:
                query = query.eq("approval_status", status)
            rows = query.order("last_name").execute().data or []
            return self._annotate(rows)

        async def offline():
            rows = self.store.list("guardians")
            if status:
                rows = [r for r in rows if r.get("approval_status") == status]
            return sorted(rows, key=lambda r: r.get("last_name") or "")

        rows = await self.with_offline_fallback(online, offline, "list_guardians")
        return [guardian_view(r) for r in rows]

    async def get_guardian(self, guardian_id: str) -> Dict[str, Any]:
        """One guardian with their linked players (LookupError when missing)"""
        async def online():
            response = self.supabase.table("guardians").select("*").eq(
                "id", guardian_id
            ).maybe_single().execute()
            row = response.data if response else None
            return self._annotate([row])[0] if row else None

        async def offline():
            return self.store.get("guardians", guardian_id)

        row = await self.with_offline_fallback(online, offline, "get_guardian")
        if not row:
            raise LookupError("Guardian not found")

        detail = guardian_view(row)
        detail.update({field: row.get(field) for field in GUARDIAN_DETAIL_FIELDS})
        detail["players"] = await player_service.list_by_guardian(guardian_id)
        return detail

    async def update_contact(self, guardian_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update contact and emergency details"""
        if changes:
            async def online():
                response = self.supabase.table("guardians").update(changes).eq(
                    "id", guardian_id
                ).execute()
                if not response.data:
                    raise LookupError("Guardian not found")
                return response.data[0]

            await self.write_with_fallback(
                online, "guardians", changes, "update_guardian", guardian_id
            )
            logger.info(f"Guardian {guardian_id} contact details updated")

        return await self.get_guardian(guardian_id)

    # =============================================
    # Guardian ↔ player links
    # =============================================

    async def link_player(self, guardian_id: str, player_id: str) -> bool:
        """Link a guardian to a player (ValueError when already linked)"""
        existing = self.supabase.table("player_guardians").select("player_id").eq(
            "guardian_id", guardian_id
        ).eq("player_id", player_id).execute()
        if existing.data:
            raise ValueError("Guardian is already linked to this player")

        self.supabase.table("player_guardians").insert({
            "guardian_id": guardian_id,
            "player_id": player_id,
        }).execute()
        logger.info(f"Guardian {guardian_id} linked to player {player_id}")
        return True

    async def unlink_player(self, guardian_id: str, player_id: str) -> bool:
        self.supabase.table("player_guardians").delete().eq(
            "guardian_id", guardian_id
        ).eq("player_id", player_id).execute()
        logger.info(f"Guardian {guardian_id} unlinked from player {player_id}")
        return True

    # =============================================
    # Approval workflow
    # =============================================

    async def list_pending(self) -> Dict[str, Any]:
        """Guardians and players waiting for review"""
        guardians = self.supabase.table("guardians").select("*").eq(
            "approval_status", "pending"
        ).order("created_at").execute().data or []

        players = self.supabase.table("players").select(PLAYER_COLUMNS).eq(
            "approval_status", "pending"
        ).order("created_at").execute().data or []

        guardian_items = [guardian_view(r) for r in self._annotate(guardians)]
        player_items = [player_view(r, [], []) for r in players]
        return {
            "guardians": guardian_items,
            "players": player_items,
            "total": len(guardian_items) + len(player_items),
        }

    async def count_pending(self) -> int:
        total = 0
        for table in ("guardians", "players"):
            response = self.supabase.table(table).select("id", count="exact").eq(
                "approval_status", "pending"
            ).execute()
            total += response.count if response.count is not None else len(response.data or [])
        return total

    async def approve_guardian(self, guardian_id: str, approved_by: str) -> Dict[str, Any]:
        return await self._set_approval(guardian_id, {
            "approval_status": "approved",
            "approved_at": datetime.now().isoformat(),
            "approved_by": approved_by,
            "rejection_reason": None,
        })

    async def reject_guardian(self, guardian_id: str, reason: str, rejected_by: str) -> Dict[str, Any]:
        return await self._set_approval(guardian_id, {
            "approval_status": "rejected",
            "rejection_reason": reason,
            "approved_by": rejected_by,
        })

    async def _set_approval(self, guardian_id: str, update: Dict[str, Any]) -> Dict[str, Any]:
        response = self.supabase.table("guardians").update(update).eq("id", guardian_id).execute()
        if not response.data:
            raise LookupError("Guardian not found")
        logger.info(f"Guardian {guardian_id} {update['approval_status']}")
        return guardian_view(self._annotate(response.data)[0])

    # =============================================
    # Helpers
    # =============================================

    def _annotate(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Attach linked player ids, then mirror the rows offline"""
        guardian_ids = [r["id"] for r in rows]
        player_ids: Dict[str, List[str]] = {}
        if guardian_ids:
            for link in self.supabase.table("player_guardians").select(
                "guardian_id, player_id"
            ).in_("guardian_id", guardian_ids).execute().data or []:
                player_ids.setdefault(str(link["guardian_id"]), []).append(str(link["player_id"]))

        annotated = [{**row, "_player_ids": player_ids.get(str(row["id"]), [])} for row in rows]
        self.cache_rows("guardians", annotated)
        return annotated


guardian_service = GuardianService()
