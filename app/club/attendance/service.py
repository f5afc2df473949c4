"""
Attendance Service

RSVPs and attendance marking, both stored in event_responses (one row per
event and player). Writes made while the backend is unreachable are queued
in the offline cache under "{player_id}:{event_id}".
"""

from typing import Optional, List, Dict, Any, Iterable
from datetime import date, datetime

from loguru import logger

from app.offline.client import OfflineFirstAPI
from app.offline.store import attendance_key
from database.supabase_client import get_supabase_client
from ..models import AttendanceStatus, RsvpStatus

ATTENDED_STATUSES = (AttendanceStatus.present.value, AttendanceStatus.late.value)


def response_key(row: Dict[str, Any]) -> str:
    return attendance_key(row["player_id"], row["event_id"])


def response_view(row: Dict[str, Any], player_name: str = "") -> Dict[str, Any]:
    """event_responses row → response view-model"""
    return {
        "id": str(row.get("id")),
        "event_id": str(row["event_id"]),
        "player_id": str(row["player_id"]),
        "player_name": player_name or row.get("_player_name", ""),
        "rsvp_status": row.get("rsvp_status"),
        "attendance_status": row.get("attendance_status"),
        "attended": row.get("attended"),
        "notes": row.get("notes"),
        "response_date": row.get("response_date"),
        "attendance_marked_at": row.get("attendance_marked_at"),
        "pending_sync": bool(row.get("_pending")),
    }


class AttendanceService(OfflineFirstAPI):
    """RSVP and attendance service"""

    @property
    def supabase(self):
        return get_supabase_client()

    # =============================================
    # RSVP
    # =============================================

    async def set_rsvp(self, event_id: str, player_id: str, status: str) -> Dict[str, Any]:
        """Record a player's RSVP (updates the existing response if any)"""
        status = RsvpStatus(status).value
        row = await self._upsert_response(event_id, player_id, {
            "rsvp_status": status,
            "response_date": datetime.now().isoformat(),
        }, "set_rsvp")
        logger.info(f"RSVP {status}: player {player_id} event {event_id}")
        return response_view(row)

    async def list_responses(self, event_id: str) -> List[Dict[str, Any]]:
        """Responses for an event with player names"""
        async def online():
            rows = self.supabase.table("event_responses").select("*").eq(
                "event_id", event_id
            ).execute().data or []
            names = self._player_names([r["player_id"] for r in rows])
            rows = [{**r, "_player_name": names.get(str(r["player_id"]), "")} for r in rows]
            self.cache_rows("attendance", rows, key=response_key)
            return rows

        async def offline():
            return self.store.list("attendance", event_id=event_id)

        rows = await self.with_offline_fallback(online, offline, "list_responses")
        return sorted(
            (response_view(r) for r in rows),
            key=lambda r: r["player_name"]
        )

    async def rsvp_summary(self, event_ids: Iterable[str]) -> List[Dict[str, Any]]:
        """Going / maybe / not going counts per event"""
        event_ids = [str(e) for e in event_ids]
        summary = {e: {"event_id": e, "going": 0, "maybe": 0, "not_going": 0} for e in event_ids}
        if not event_ids:
            return []

        rows = self.supabase.table("event_responses").select(
            "event_id, rsvp_status"
        ).in_("event_id", event_ids).execute().data or []

        for row in rows:
            counts = summary.get(str(row["event_id"]))
            status = row.get("rsvp_status")
            if counts is not None and status in counts:
                counts[status] += 1

        return [summary[e] for e in event_ids]

    async def player_rsvps(self, player_id: str) -> List[Dict[str, Any]]:
        """A player's responses to upcoming events"""
        responses = self.supabase.table("event_responses").select("*").eq(
            "player_id", player_id
        ).execute().data or []
        if not responses:
            return []

        upcoming = self.supabase.table("events").select("id").in_(
            "id", [r["event_id"] for r in responses]
        ).gte("event_date", date.today().isoformat()).execute().data or []
        upcoming_ids = {str(e["id"]) for e in upcoming}

        return [response_view(r) for r in responses if str(r["event_id"]) in upcoming_ids]

    # =============================================
    # Attendance
    # =============================================

    async def mark_attendance(
        self,
        response_id: str,
        status: str,
        notes: Optional[str],
        marked_by: str
    ) -> Dict[str, Any]:
        """Mark one response (LookupError when missing)"""
        fields = self._attendance_fields(status, notes, marked_by)

        async def online():
            response = self.supabase.table("event_responses").update(fields).eq(
                "id", response_id
            ).execute()
            if not response.data:
                raise LookupError("Response not found")
            row = response.data[0]
            self.cache_rows("attendance", [row], key=response_key)
            return row

        # Offline writes need the cached row to find the player/event key
        cached = self.store.list("attendance", id=response_id) if self.offline_enabled else []
        if not cached:
            return response_view(await online())

        row = await self.write_with_fallback(
            online, "attendance", {**fields, "_pending": True},
            "mark_attendance", response_key(cached[0])
        )
        return response_view(row)

    async def bulk_mark(
        self,
        event_id: str,
        statuses: Dict[str, str],
        marked_by: str
    ) -> List[Dict[str, Any]]:
        """Mark attendance for several players of one event"""
        results = []
        for player_id, status in statuses.items():
            fields = self._attendance_fields(status, None, marked_by)
            row = await self._upsert_response(event_id, player_id, fields, "bulk_mark")
            results.append(response_view(row))
        logger.info(f"Attendance marked for {len(results)} player(s) at event {event_id}")
        return results

    async def attendance_summary(self, event_id: str) -> Dict[str, Any]:
        """Count per attendance status; unmarked responses count as not_marked"""
        async def online():
            return self.supabase.table("event_responses").select(
                "attendance_status"
            ).eq("event_id", event_id).execute().data or []

        async def offline():
            return self.store.list("attendance", event_id=event_id)

        rows = await self.with_offline_fallback(online, offline, "attendance_summary")

        summary = {status.value: 0 for status in AttendanceStatus}
        for row in rows:
            status = row.get("attendance_status") or AttendanceStatus.not_marked.value
            if status in summary:
                summary[status] += 1

        return {"event_id": str(event_id), **summary, "total": len(rows)}

    # =============================================
    # Helpers
    # =============================================

    @staticmethod
    def _attendance_fields(status: str, notes: Optional[str], marked_by: str) -> Dict[str, Any]:
        status = AttendanceStatus(status).value
        fields = {
            "attendance_status": status,
            "attended": status in ATTENDED_STATUSES,
            "attendance_marked_at": datetime.now().isoformat(),
            "marked_by": marked_by,
        }
        if notes is not None:
            fields["notes"] = notes
        return fields

    async def _upsert_response(
        self,
        event_id: str,
        player_id: str,
        fields: Dict[str, Any],
        operation_name: str
    ) -> Dict[str, Any]:
        """Update the event/player response or insert one"""
        async def online():
            existing = self.supabase.table("event_responses").select("id").eq(
                "event_id", event_id
            ).eq("player_id", player_id).execute().data or []

            if existing:
                response = self.supabase.table("event_responses").update(fields).eq(
                    "id", existing[0]["id"]
                ).execute()
            else:
                response = self.supabase.table("event_responses").insert({
                    "event_id": event_id,
                    "player_id": player_id,
                    **fields,
                }).execute()

            if not response.data:
                raise RuntimeError("Response write returned no row")
            row = response.data[0]
            self.cache_rows("attendance", [row], key=response_key)
            return row

        payload = {"event_id": event_id, "player_id": player_id, **fields, "_pending": True}
        return await self.write_with_fallback(
            online, "attendance", payload, operation_name, attendance_key(player_id, event_id)
        )

    def _player_names(self, player_ids: List[str]) -> Dict[str, str]:
        if not player_ids:
            return {}
        rows = self.supabase.table("players").select(
            "id, first_name, last_name"
        ).in_("id", player_ids).execute().data or []
        return {
            str(p["id"]): f"{p.get('first_name') or ''} {p.get('last_name') or ''}".strip()
            for p in rows
        }


attendance_service = AttendanceService()
