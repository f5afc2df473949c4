"""
Analytics Service

Activity tracking and the numbers behind the admin dashboards. Read paths
log failures and return empty or zeroed results; tracking never raises.
"""

from typing import Optional, List, Dict, Any
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta
from loguru import logger

from database.supabase_client import get_supabase_client
from ..events.service import event_service, is_series_parent

DISTRIBUTION_COLORS = ["#3b82f6", "#ef4444", "#10b981", "#f59e0b", "#8b5cf6"]

STAT_FIELDS = ("total_players", "active_teams", "events_this_month", "avg_attendance")

EVENT_STATUS = {
    "user_action": "success",
    "page_view": "info",
    "error": "error",
}


def format_event_title(event_name: str) -> str:
    """team_created → Team Created"""
    return " ".join(word[:1].upper() + word[1:] for word in event_name.split("_"))


def format_event_description(properties: Optional[Dict[str, Any]]) -> str:
    properties = properties or {}
    if properties.get("description"):
        return str(properties["description"])
    if properties.get("event_type"):
        return f"{properties['event_type']} event"
    if properties.get("team"):
        return f"Related to {properties['team']}"
    return "Activity recorded"


def event_status(event_type: Optional[str]) -> str:
    return EVENT_STATUS.get(event_type or "", "info")


def _as_number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


class AnalyticsService:
    """Analytics service"""

    @property
    def supabase(self):
        return get_supabase_client()

    async def track_event(
        self,
        event_type: str,
        event_name: str,
        properties: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        team_id: Optional[str] = None,
        page_url: Optional[str] = None
    ) -> bool:
        """Record an analytics event; failures are logged only"""
        payload = {
            "event_type": event_type,
            "event_name": event_name,
            "properties": properties or {},
            "user_id": user_id,
            "team_id": team_id,
            "page_url": page_url,
        }
        try:
            self.supabase.table("analytics_events").insert(payload).execute()
            return True
        except Exception as e:
            logger.error(f"Error tracking analytics event {event_name}: {e}")
            return False

    async def dashboard_stats(self) -> Dict[str, Any]:
        """
        Headline numbers from the dashboard_stats view

        The view yields one row per metric ({metric, value, unit}).
        """
        stats = {field: 0 for field in STAT_FIELDS}
        try:
            rows = self.supabase.table("dashboard_stats").select("*").execute().data or []
        except Exception as e:
            logger.error(f"Error fetching dashboard stats: {e}")
            return stats

        for row in rows:
            metric = row.get("metric")
            if metric in stats:
                value = _as_number(row.get("value"))
                stats[metric] = value if metric == "avg_attendance" else int(value)
        return stats

    async def attendance_trends(self, team_id: Optional[str] = None, months: int = 6) -> List[Dict[str, Any]]:
        """Attendance rate per calendar month, oldest first"""
        first_of_month = date.today().replace(day=1)
        trends = []
        try:
            for i in range(months - 1, -1, -1):
                month_start = first_of_month - relativedelta(months=i)
                month_end = month_start + relativedelta(months=1) - timedelta(days=1)
                rate = self._attendance_rate(team_id, month_start, month_end)
                trends.append({"month": month_start.strftime("%b"), "rate": rate})
        except Exception as e:
            logger.error(f"Error fetching attendance trends: {e}")
            return []
        return trends

    async def team_attendance_comparison(self) -> List[Dict[str, Any]]:
        """Attendance rate of every team over the last 30 days"""
        end = date.today()
        start = end - timedelta(days=30)
        try:
            teams = self.supabase.table("teams").select("id, name").order("name").execute().data or []
            return [
                {
                    "team_id": str(team["id"]),
                    "team_name": team.get("name") or "",
                    "rate": self._attendance_rate(str(team["id"]), start, end),
                }
                for team in teams
            ]
        except Exception as e:
            logger.error(f"Error fetching team attendance comparison: {e}")
            return []

    async def event_type_distribution(self, days: int = 30) -> List[Dict[str, Any]]:
        """Share of events per type as rounded percentages"""
        since = (datetime.now() - timedelta(days=days)).isoformat()
        try:
            rows = self.supabase.table("events").select("event_type").gte(
                "event_date", since
            ).execute().data or []
        except Exception as e:
            logger.error(f"Error fetching event type distribution: {e}")
            return []

        counts: Dict[str, int] = {}
        for row in rows:
            event_type = row.get("event_type") or "other"
            counts[event_type] = counts.get(event_type, 0) + 1

        total = len(rows)
        return [
            {
                "name": name[:1].upper() + name[1:],
                "value": round(count / total * 100),
                "color": DISTRIBUTION_COLORS[index % len(DISTRIBUTION_COLORS)],
            }
            for index, (name, count) in enumerate(counts.items())
        ]

    async def recent_activities(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Latest analytics events as activity feed entries"""
        try:
            rows = self.supabase.table("analytics_events").select(
                "id, event_type, event_name, properties, timestamp, user_id"
            ).order("timestamp", desc=True).limit(limit).execute().data or []
        except Exception as e:
            logger.error(f"Error fetching recent activities: {e}")
            return []

        return [
            {
                "id": str(row["id"]),
                "title": format_event_title(row.get("event_name") or ""),
                "description": format_event_description(row.get("properties")),
                "timestamp": row.get("timestamp"),
                "status": event_status(row.get("event_type")),
            }
            for row in rows
        ]

    async def team_performance_summary(self, team_id: str, days: int = 30) -> Optional[Any]:
        end = date.today()
        start = end - timedelta(days=days)
        try:
            response = self.supabase.rpc("get_team_performance_summary", {
                "p_team_id": team_id,
                "p_start_date": start.isoformat(),
                "p_end_date": end.isoformat(),
            }).execute()
            return response.data
        except Exception as e:
            logger.error(f"Error fetching team performance summary: {e}")
            return None

    async def club_dashboard(self) -> Dict[str, Any]:
        """Counts, upcoming events and alerts for the admin dashboard"""
        today = date.today()
        month_start = today.replace(day=1)
        next_month = month_start + relativedelta(months=1)

        total_players = self._count(
            self.supabase.table("players").select("id", count="exact").eq("approval_status", "approved")
        )
        active_teams = self._count(
            self.supabase.table("teams").select("id", count="exact").eq("archived", False)
        )
        month_events = self.supabase.table("events").select(
            "id, is_recurring, parent_event_id"
        ).gte("event_date", month_start.isoformat()).lt("event_date", next_month.isoformat()).execute().data or []
        # Series headers share a date with their first occurrence
        events_this_month = sum(1 for row in month_events if not is_series_parent(row))
        pending_guardians = self._count(
            self.supabase.table("guardians").select("id", count="exact").eq("approval_status", "pending")
        )
        pending_players = self._count(
            self.supabase.table("players").select("id", count="exact").eq("approval_status", "pending")
        )
        failed_payments = self._count(
            self.supabase.table("payments").select("id", count="exact")
            .eq("status", "failed")
            .gte("created_at", (datetime.now() - timedelta(days=30)).isoformat())
        )

        upcoming = await event_service.list_upcoming(limit=5)

        pending_approvals = pending_guardians + pending_players
        alerts = []
        if pending_approvals:
            alerts.append({
                "alert_type": "pending_approvals",
                "message": f"{pending_approvals} registration(s) awaiting approval",
                "severity": "warning",
                "count": pending_approvals,
            })
        if failed_payments:
            alerts.append({
                "alert_type": "failed_payments",
                "message": f"{failed_payments} failed payment(s) in the last 30 days",
                "severity": "error",
                "count": failed_payments,
            })

        return {
            "total_players": total_players,
            "active_teams": active_teams,
            "events_this_month": events_this_month,
            "pending_approvals": pending_approvals,
            "upcoming_events": upcoming,
            "alerts": alerts,
        }

    def _attendance_rate(self, team_id: Optional[str], start: date, end: date) -> float:
        response = self.supabase.rpc("calculate_attendance_rate", {
            "p_team_id": team_id,
            "p_start_date": start.isoformat(),
            "p_end_date": end.isoformat(),
        }).execute()
        return _as_number(response.data)

    @staticmethod
    def _count(query) -> int:
        response = query.execute()
        return response.count if response.count is not None else len(response.data or [])


analytics_service = AnalyticsService()
