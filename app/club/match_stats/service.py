"""
Match Statistics Service

One match_statistics row per (player, event) pair. Recording again for the
same pair replaces the earlier figures.
"""

from typing import List, Dict, Any, Optional
from datetime import datetime

from loguru import logger

from database.supabase_client import get_supabase_client

COUNT_FIELDS = (
    "goals",
    "shot_attempts",
    "intercepts",
    "tips",
    "turnovers_won",
    "turnovers_lost",
    "contacts",
    "obstructions",
    "footwork_errors",
    "quarters_played",
)
AWARD_FIELDS = ("player_of_match_coach", "player_of_match_players")


def stats_view(row: Dict[str, Any]) -> Dict[str, Any]:
    """match_statistics row → view-model (missing counts read as 0)"""
    view = {
        "id": str(row["id"]),
        "player_id": str(row["player_id"]),
        "event_id": str(row["event_id"]),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }
    view.update({f: int(row.get(f) or 0) for f in COUNT_FIELDS})
    view.update({f: bool(row.get(f)) for f in AWARD_FIELDS})
    return view


def shooting_accuracy(goals: int, attempts: int) -> float:
    """Goals per attempt as a percentage, two decimals"""
    if not attempts:
        return 0.0
    return round(goals / attempts * 100, 2)


class MatchStatsService:
    """Match statistics service"""

    @property
    def supabase(self):
        return get_supabase_client()

    async def list_for_event(self, event_id: str) -> List[Dict[str, Any]]:
        """Figures recorded for a match, newest first"""
        rows = self.supabase.table("match_statistics").select("*").eq(
            "event_id", event_id
        ).order("created_at", desc=True).execute().data or []
        return [stats_view(r) for r in rows]

    async def list_for_player(self, player_id: str) -> List[Dict[str, Any]]:
        """A player's figures across matches, newest first"""
        rows = self.supabase.table("match_statistics").select("*").eq(
            "player_id", player_id
        ).order("created_at", desc=True).execute().data or []
        return [stats_view(r) for r in rows]

    async def record(self, data: Dict[str, Any], recorded_by: Optional[str] = None) -> Dict[str, Any]:
        """Create or replace the figures for one player in one match"""
        row = {f: data.get(f) or 0 for f in COUNT_FIELDS}
        row.update({f: bool(data.get(f)) for f in AWARD_FIELDS})
        row["updated_at"] = datetime.now().isoformat()

        existing = self.supabase.table("match_statistics").select("id").eq(
            "player_id", data["player_id"]
        ).eq("event_id", data["event_id"]).execute().data or []

        if existing:
            response = self.supabase.table("match_statistics").update(row).eq(
                "id", existing[0]["id"]
            ).execute()
        else:
            row.update({
                "player_id": data["player_id"],
                "event_id": data["event_id"],
                "created_by": recorded_by,
            })
            response = self.supabase.table("match_statistics").insert(row).execute()

        if not response.data:
            raise RuntimeError("Match statistics write returned no row")

        logger.info(f"Match stats recorded: player {data['player_id']} event {data['event_id']}")
        return stats_view(response.data[0])

    async def delete(self, stats_id: str) -> bool:
        response = self.supabase.table("match_statistics").delete().eq("id", stats_id).execute()
        if not response.data:
            raise LookupError("Match statistics not found")
        logger.info(f"Match stats deleted: {stats_id}")
        return True

    async def player_summary(self, player_id: str) -> Dict[str, Any]:
        """
        Totals across every recorded match

        A match counts towards player_of_match_count when either the coach
        or the players picked the player.
        """
        rows = self.supabase.table("match_statistics").select("*").eq(
            "player_id", player_id
        ).execute().data or []
        stats = [stats_view(r) for r in rows]

        goals = sum(s["goals"] for s in stats)
        attempts = sum(s["shot_attempts"] for s in stats)
        return {
            "player_id": str(player_id),
            "total_games": len(stats),
            "total_goals": goals,
            "total_shot_attempts": attempts,
            "shooting_accuracy": shooting_accuracy(goals, attempts),
            "total_intercepts": sum(s["intercepts"] for s in stats),
            "total_tips": sum(s["tips"] for s in stats),
            "player_of_match_count": sum(
                1 for s in stats if s["player_of_match_coach"] or s["player_of_match_players"]
            ),
        }


match_stats_service = MatchStatsService()
