"""
Recurring Events

Date generation for recurring series plus the series writes: a parent
event, its event_recurrence rule and one events row per occurrence.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional, List, Dict, Any, Union

from dateutil.relativedelta import relativedelta
from loguru import logger

from app.config import get_settings
from database.supabase_client import get_supabase_client
from ..models import RecurrenceType, UpdateScope
from .service import event_row, event_view, is_series_parent

# 0=Sunday .. 6=Saturday
WEEKDAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

OCCURRENCE_SUFFIX = re.compile(r"^(?P<title>.*) \((?P<n>\d+)\)$")


def sunday_weekday(day: date) -> int:
    """Weekday number with Sunday as 0"""
    return (day.weekday() + 1) % 7


def normalize_days(days) -> List[int]:
    """Day numbers (0=Sunday) or weekday names → sorted day numbers"""
    result = set()
    for day in days or []:
        if isinstance(day, str) and not day.isdigit():
            name = day.strip().lower()
            matches = [i for i, full in enumerate(WEEKDAY_NAMES) if full == name or full[:3] == name]
            if not matches:
                raise ValueError(f"Unknown weekday: {day}")
            result.add(matches[0])
        else:
            number = int(day)
            if number < 0 or number > 6:
                raise ValueError(f"Weekday must be 0-6 (0=Sunday): {day}")
            result.add(number)
    return sorted(result)


@dataclass
class RecurrencePattern:
    """Recurrence rule"""
    type: str
    interval: int = 1
    days_of_week: List[Union[int, str]] = field(default_factory=list)
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None

    def __post_init__(self):
        self.type = RecurrenceType(getattr(self.type, "value", self.type)).value
        if self.interval < 1:
            raise ValueError("Interval must be at least 1")
        self.days_of_week = normalize_days(self.days_of_week)
        if isinstance(self.end_date, str):
            self.end_date = date.fromisoformat(self.end_date[:10])

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "RecurrencePattern":
        """event_recurrence row → pattern"""
        return cls(
            type=row["recurrence_type"],
            interval=row.get("recurrence_interval") or 1,
            days_of_week=row.get("days_of_week") or [],
            end_date=row.get("end_date"),
            max_occurrences=row.get("max_occurrences"),
        )

    def to_row(self, parent_event_id: str) -> Dict[str, Any]:
        return {
            "parent_event_id": parent_event_id,
            "recurrence_type": self.type,
            "recurrence_interval": self.interval,
            "days_of_week": self.days_of_week,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "max_occurrences": self.max_occurrences,
        }


def _matches(current: date, start: date, pattern: RecurrencePattern, days: List[int]) -> bool:
    if pattern.type == RecurrenceType.daily.value:
        return (current - start).days % pattern.interval == 0

    if pattern.type in (RecurrenceType.weekly.value, RecurrenceType.biweekly.value):
        interval = pattern.interval * (2 if pattern.type == RecurrenceType.biweekly.value else 1)
        # Weeks run Sunday to Saturday, counted from the start's week
        week_start = start - timedelta(days=sunday_weekday(start))
        week_index = (current - week_start).days // 7
        return sunday_weekday(current) in days and week_index % interval == 0

    # monthly: same day of month, clamped to the month's last day
    months = (current.year - start.year) * 12 + current.month - start.month
    if months % pattern.interval != 0:
        return False
    return current == start + relativedelta(months=months)


def generate_occurrences(
    start: Union[date, datetime],
    pattern: RecurrencePattern,
    max_iterations: Optional[int] = None
) -> List[datetime]:
    """
    Occurrence datetimes of a series

    Steps forward one day at a time from start (inclusive), stopping at
    the end date, the occurrence limit or the iteration cap. A series with
    neither an end date nor a limit gets the default occurrence limit.
    The start's time of day is kept.
    """
    settings = get_settings()
    max_iterations = max_iterations or settings.RECURRENCE_MAX_ITERATIONS

    if isinstance(start, datetime):
        start_day, start_time = start.date(), start.time()
    else:
        start_day, start_time = start, time(0, 0)

    limit = pattern.max_occurrences
    if not limit and not pattern.end_date:
        limit = settings.RECURRENCE_DEFAULT_MAX_OCCURRENCES

    days = pattern.days_of_week or [sunday_weekday(start_day)]
    occurrences: List[datetime] = []

    for step in range(max_iterations):
        if limit and len(occurrences) >= limit:
            break
        current = start_day + timedelta(days=step)
        if pattern.end_date and current > pattern.end_date:
            break
        if _matches(current, start_day, pattern, days):
            occurrences.append(datetime.combine(current, start_time))

    return occurrences


def _parse_event_date(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class RecurrenceService:
    """Recurring series writes"""

    @property
    def supabase(self):
        return get_supabase_client()

    # =============================================
    # Create
    # =============================================

    async def create_series(self, event: Dict[str, Any], pattern: RecurrencePattern) -> Dict[str, Any]:
        """
        Create a parent event, its recurrence rule and every occurrence

        Occurrences are titled "{title} (n)" and point at the parent.
        """
        parent_data = event_row(event)
        parent_data.setdefault("event_type", "training")
        parent_data.update({"is_recurring": True, "parent_event_id": None})

        response = self.supabase.table("events").insert(parent_data).execute()
        if not response.data:
            raise RuntimeError("Parent event insert returned no row")
        parent = response.data[0]

        self.supabase.table("event_recurrence").insert(pattern.to_row(parent["id"])).execute()

        count = self._insert_occurrences(parent, pattern, _parse_event_date(parent["event_date"]))
        logger.info(f"Created recurring series {parent['id']} with {count} occurrences")
        return {"parent": event_view(parent), "occurrence_count": count}

    def _insert_occurrences(
        self,
        parent: Dict[str, Any],
        pattern: RecurrencePattern,
        start: datetime,
        first_number: int = 1
    ) -> int:
        dates = generate_occurrences(start, pattern)
        base_title = parent.get("title") or ""
        rows = [
            {
                "title": f"{base_title} ({first_number + i})",
                "event_date": occurrence.isoformat(),
                "occurrence_date": occurrence.date().isoformat(),
                "event_type": parent.get("event_type"),
                "location": parent.get("location"),
                "description": parent.get("description"),
                "team_id": parent.get("team_id"),
                "is_home": parent.get("is_home"),
                "is_recurring": False,
                "parent_event_id": parent["id"],
            }
            for i, occurrence in enumerate(dates)
        ]
        if rows:
            self.supabase.table("events").insert(rows).execute()
        return len(rows)

    # =============================================
    # Update / delete
    # =============================================

    async def update_series(
        self,
        event_id: str,
        changes: Dict[str, Any],
        pattern: Optional[RecurrencePattern] = None,
        scope: UpdateScope = UpdateScope.all_series
    ) -> Dict[str, Any]:
        """
        Edit a series

        A new pattern rewrites the recurrence rule and regenerates the
        occurrences in scope. Otherwise the field changes are applied to
        the events in scope; each occurrence keeps its own date and number.
        """
        scope = UpdateScope(scope)
        event = self._get_row(event_id)
        parent = self._get_row(event.get("parent_event_id")) if event.get("parent_event_id") else event

        if pattern is not None:
            if scope == UpdateScope.this_only:
                raise ValueError("A new recurrence pattern applies to the series, not one occurrence")
            return await self._regenerate(parent, event, pattern, scope)

        if scope == UpdateScope.this_only:
            targets = [event]
        else:
            occurrences = self._occurrences(parent["id"])
            if scope == UpdateScope.this_and_future and event["id"] != parent["id"]:
                cutoff = self._occurrence_day(event)
                targets = [o for o in occurrences if self._occurrence_day(o) >= cutoff]
            else:
                targets = [parent] + occurrences

        updated = 0
        for row in targets:
            update = self._series_update(row, changes, scope)
            if update:
                self.supabase.table("events").update(update).eq("id", row["id"]).execute()
                updated += 1

        logger.info(f"Series {parent['id']}: {updated} event(s) updated ({scope.value})")
        return {"parent": event_view(self._get_row(parent["id"])), "occurrence_count": updated}

    async def _regenerate(
        self,
        parent: Dict[str, Any],
        event: Dict[str, Any],
        pattern: RecurrencePattern,
        scope: UpdateScope
    ) -> Dict[str, Any]:
        self.supabase.table("event_recurrence").update(
            pattern.to_row(parent["id"])
        ).eq("parent_event_id", parent["id"]).execute()

        occurrences = self._occurrences(parent["id"])
        if scope == UpdateScope.this_and_future and event["id"] != parent["id"]:
            cutoff = self._occurrence_day(event)
            removed = [o for o in occurrences if self._occurrence_day(o) >= cutoff]
            kept = len(occurrences) - len(removed)
            start = _parse_event_date(event["event_date"])
        else:
            removed = occurrences
            kept = 0
            start = _parse_event_date(parent["event_date"])

        if removed:
            self.supabase.table("events").delete().in_("id", [o["id"] for o in removed]).execute()

        count = self._insert_occurrences(parent, pattern, start, first_number=kept + 1)
        logger.info(f"Regenerated {count} occurrences for series {parent['id']}")
        return {"parent": event_view(parent), "occurrence_count": count}

    async def delete_series(self, event_id: str, scope: UpdateScope = UpdateScope.all_series) -> int:
        """
        Delete events of a series

        A child id resolves to its parent for the series-wide scopes.
        Any scope on the series parent removes the whole series.
        Returns the number of events deleted.
        """
        scope = UpdateScope(scope)
        event = self._get_row(event_id)

        if scope == UpdateScope.this_only and not is_series_parent(event):
            self.supabase.table("events").delete().eq("id", event_id).execute()
            return 1

        parent_id = event.get("parent_event_id") or event["id"]
        occurrences = self._occurrences(parent_id)

        if scope == UpdateScope.this_and_future and event.get("parent_event_id"):
            cutoff = self._occurrence_day(event)
            doomed = [o["id"] for o in occurrences if self._occurrence_day(o) >= cutoff]
            if doomed:
                self.supabase.table("events").delete().in_("id", doomed).execute()
            logger.info(f"Series {parent_id}: deleted {len(doomed)} future occurrence(s)")
            return len(doomed)

        self.supabase.table("events").delete().eq("parent_event_id", parent_id).execute()
        self.supabase.table("event_recurrence").delete().eq("parent_event_id", parent_id).execute()
        self.supabase.table("events").delete().eq("id", parent_id).execute()
        logger.info(f"Series {parent_id} deleted with {len(occurrences)} occurrence(s)")
        return len(occurrences) + 1

    async def get_recurrence_info(self, event_id: str) -> Dict[str, Any]:
        """Event with its series rule and occurrences"""
        event = self._get_row(event_id)
        parent_id = event.get("parent_event_id") or event["id"]

        response = self.supabase.table("event_recurrence").select("*").eq(
            "parent_event_id", parent_id
        ).maybe_single().execute()
        recurrence = response.data if response else None

        occurrences = self._occurrences(parent_id) if recurrence else []
        return {
            "event": event_view(event),
            "recurrence": recurrence,
            "occurrences": [event_view(o) for o in occurrences],
        }

    # =============================================
    # Helpers
    # =============================================

    def _get_row(self, event_id: str) -> Dict[str, Any]:
        response = self.supabase.table("events").select("*").eq(
            "id", event_id
        ).maybe_single().execute()
        row = response.data if response else None
        if not row:
            raise LookupError("Event not found")
        return row

    def _occurrences(self, parent_id: str) -> List[Dict[str, Any]]:
        return self.supabase.table("events").select("*").eq(
            "parent_event_id", parent_id
        ).order("event_date").execute().data or []

    @staticmethod
    def _occurrence_day(row: Dict[str, Any]) -> str:
        return str(row.get("occurrence_date") or row.get("event_date") or "")[:10]

    @staticmethod
    def _series_update(row: Dict[str, Any], changes: Dict[str, Any], scope: UpdateScope) -> Dict[str, Any]:
        """Per-row update; series-wide edits keep each row's date and number"""
        if scope == UpdateScope.this_only:
            if changes.get("time") and changes.get("date") is None:
                changes = {**changes, "date": str(row.get("event_date"))[:10]}
            elif changes.get("date") and changes.get("time") is None:
                changes = {**changes, "time": str(row.get("event_date") or "")[11:16] or None}
            return event_row(changes)

        shared = {k: v for k, v in changes.items() if k not in ("date", "time", "name")}
        update = event_row(shared)

        if changes.get("name"):
            match = OCCURRENCE_SUFFIX.match(row.get("title") or "")
            if row.get("parent_event_id") and match:
                update["title"] = f"{changes['name']} ({match.group('n')})"
            else:
                update["title"] = changes["name"]

        if changes.get("time"):
            day = str(row.get("event_date"))[:10]
            update["event_date"] = f"{day}T{changes['time']}:00"

        return update


recurrence_service = RecurrenceService()
