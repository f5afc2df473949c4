"""
Event Service

Training sessions, matches and other club events
"""

from typing import Optional, List, Dict, Any
from datetime import date, datetime

from loguru import logger

from app.offline.client import OfflineFirstAPI
from database.supabase_client import get_supabase_client


def combine_event_date(day, time: Optional[str] = None) -> str:
    """date + "HH:MM" → event_date timestamp"""
    if isinstance(day, (date, datetime)):
        day = day.isoformat()[:10]
    return f"{day}T{time or '00:00'}:00"


def event_view(row: Dict[str, Any]) -> Dict[str, Any]:
    """events row → event view-model"""
    event_date = str(row.get("event_date") or "")
    time = event_date[11:16] if len(event_date) >= 16 else None
    return {
        "id": str(row["id"]),
        "name": row.get("title") or "",
        "date": event_date[:10] or None,
        "time": time,
        "location": row.get("location"),
        "notes": row.get("description"),
        "event_type": row.get("event_type") or "training",
        "team_id": str(row["team_id"]) if row.get("team_id") else None,
        "is_home": row.get("is_home"),
        "parent_event_id": str(row["parent_event_id"]) if row.get("parent_event_id") else None,
        "is_recurring": bool(row.get("is_recurring")),
    }


def event_row(data: Dict[str, Any]) -> Dict[str, Any]:
    """Event form fields → events columns (only the fields given)"""
    row: Dict[str, Any] = {}
    if data.get("name") is not None:
        row["title"] = data["name"]
    if data.get("date") is not None:
        row["event_date"] = combine_event_date(data["date"], data.get("time"))
    if "location" in data:
        row["location"] = data["location"]
    if "notes" in data:
        row["description"] = data["notes"]
    if data.get("event_type") is not None:
        event_type = data["event_type"]
        row["event_type"] = getattr(event_type, "value", event_type)
    if "team_id" in data:
        row["team_id"] = data["team_id"]
    if "is_home" in data:
        row["is_home"] = data["is_home"]
    return row


def is_series_parent(row: Dict[str, Any]) -> bool:
    """Header row of a recurring series (its dates live in the occurrences)"""
    return bool(row.get("is_recurring")) and not row.get("parent_event_id")


class EventService(OfflineFirstAPI):
    """Event service"""

    @property
    def supabase(self):
        return get_supabase_client()

    async def list_events(
        self,
        team_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        include_series_parents: bool = False
    ) -> List[Dict[str, Any]]:
        """Events by date, filtered by team and date range"""
        start_key = start.isoformat() if start else None
        end_key = f"{end.isoformat()}T23:59:59" if end else None

        async def online():
            query = self.supabase.table("events").select("*")
            if team_id:
                query = query.eq("team_id", team_id)
            if start_key:
                query = query.gte("event_date", start_key)
            if end_key:
                query = query.lte("event_date", end_key)
            rows = query.order("event_date").execute().data or []
            self.cache_rows("events", rows)
            return rows

        async def offline():
            rows = self.store.list("events")
            if team_id:
                rows = [r for r in rows if str(r.get("team_id")) == str(team_id)]
            if start_key:
                rows = [r for r in rows if str(r.get("event_date") or "") >= start_key]
            if end_key:
                rows = [r for r in rows if str(r.get("event_date") or "") <= end_key]
            return sorted(rows, key=lambda r: str(r.get("event_date") or ""))

        rows = await self.with_offline_fallback(online, offline, "list_events")
        if not include_series_parents:
            rows = [r for r in rows if not is_series_parent(r)]
        return [event_view(r) for r in rows]

    async def list_upcoming(self, team_id: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
        """Next events from today on"""
        events = await self.list_events(team_id=team_id, start=date.today())
        return events[:limit]

    async def get_event(self, event_id: str) -> Dict[str, Any]:
        """One event (LookupError when missing)"""
        async def online():
            response = self.supabase.table("events").select("*").eq(
                "id", event_id
            ).maybe_single().execute()
            row = response.data if response else None
            if row:
                self.cache_rows("events", [row])
            return row

        async def offline():
            return self.store.get("events", event_id)

        row = await self.with_offline_fallback(online, offline, "get_event")
        if not row:
            raise LookupError("Event not found")
        return event_view(row)

    async def create_event(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a single event"""
        row = event_row(data)
        row.setdefault("event_type", "training")
        row["is_recurring"] = False

        async def online():
            response = self.supabase.table("events").insert(row).execute()
            if not response.data:
                raise RuntimeError("Event insert returned no row")
            self.cache_rows("events", response.data)
            return response.data[0]

        created = await self.write_with_fallback(online, "events", row, "create_event")
        logger.info(f"Event created: {created.get('title')} ({created['id']})")
        return event_view(created)

    async def update_event(self, event_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update the given fields only"""
        # event_date holds both parts, so a half-change keeps the other half
        if changes.get("time") and changes.get("date") is None:
            current = await self.get_event(event_id)
            changes = {**changes, "date": current["date"]}
        elif changes.get("date") and changes.get("time") is None:
            current = await self.get_event(event_id)
            changes = {**changes, "time": current["time"]}

        update = event_row(changes)
        if not update:
            return await self.get_event(event_id)

        async def online():
            response = self.supabase.table("events").update(update).eq("id", event_id).execute()
            if not response.data:
                raise LookupError("Event not found")
            return response.data[0]

        await self.write_with_fallback(online, "events", update, "update_event", event_id)
        return await self.get_event(event_id)

    async def delete_event(self, event_id: str) -> bool:
        async def online():
            self.supabase.table("events").delete().eq("id", event_id).execute()

        await self.delete_with_fallback(online, "events", event_id, "delete_event")
        logger.info(f"Event deleted: {event_id}")
        return True


event_service = EventService()
