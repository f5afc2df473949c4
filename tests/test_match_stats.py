"""
Match statistics tests
"""
import pytest
from pydantic import ValidationError

from app.club.dependencies import ClubUserContext
from app.club.match_stats.service import match_stats_service, shooting_accuracy, stats_view
from app.club.models import MatchStatsRecord


def _figures(**overrides):
    data = {"player_id": "p-amy", "event_id": "e-match", "goals": 7, "shot_attempts": 9, "quarters_played": 4}
    data.update(overrides)
    return data


class TestMatchStatsModels:

    def test_goals_within_attempts(self):
        with pytest.raises(ValidationError):
            MatchStatsRecord(**_figures(goals=10))

    def test_four_quarters_at_most(self):
        with pytest.raises(ValidationError):
            MatchStatsRecord(**_figures(quarters_played=5))

    def test_no_negative_counts(self):
        with pytest.raises(ValidationError):
            MatchStatsRecord(**_figures(intercepts=-1))

    def test_view_fills_missing_counts(self):
        view = stats_view({"id": 4, "player_id": "p-amy", "event_id": "e-1", "goals": 2})
        assert view["id"] == "4"
        assert view["goals"] == 2
        assert view["tips"] == 0
        assert view["player_of_match_coach"] is False

    def test_accuracy(self):
        assert shooting_accuracy(2, 3) == 66.67
        assert shooting_accuracy(0, 0) == 0.0


class TestMatchStatsService:

    @pytest.mark.asyncio
    async def test_record_then_replace(self, backend):
        first = await match_stats_service.record(_figures(), "g-coach")
        second = await match_stats_service.record(_figures(goals=8), "g-coach")

        rows = backend.rows("match_statistics")
        assert len(rows) == 1
        assert rows[0]["goals"] == 8
        assert rows[0]["created_by"] == "g-coach"
        assert first["id"] == second["id"]

    @pytest.mark.asyncio
    async def test_lists_newest_first(self, backend):
        backend.seed("match_statistics",
                     {"id": "ms-1", "player_id": "p-amy", "event_id": "e-1", "goals": 1,
                      "created_at": "2026-09-01T10:00:00"},
                     {"id": "ms-2", "player_id": "p-amy", "event_id": "e-2", "goals": 3,
                      "created_at": "2026-09-08T10:00:00"},
                     {"id": "ms-3", "player_id": "p-ben", "event_id": "e-2", "goals": 0,
                      "created_at": "2026-09-08T10:05:00"})

        by_player = await match_stats_service.list_for_player("p-amy")
        by_event = await match_stats_service.list_for_event("e-2")

        assert [s["id"] for s in by_player] == ["ms-2", "ms-1"]
        assert [s["id"] for s in by_event] == ["ms-3", "ms-2"]

    @pytest.mark.asyncio
    async def test_summary(self, backend):
        backend.seed("match_statistics",
                     {"id": "ms-1", "player_id": "p-amy", "event_id": "e-1", "goals": 4, "shot_attempts": 6,
                      "intercepts": 2, "tips": 1, "player_of_match_coach": True},
                     {"id": "ms-2", "player_id": "p-amy", "event_id": "e-2", "goals": 2, "shot_attempts": 3,
                      "intercepts": 1, "player_of_match_players": True},
                     {"id": "ms-3", "player_id": "p-amy", "event_id": "e-3", "goals": 0, "shot_attempts": 0})

        summary = await match_stats_service.player_summary("p-amy")

        assert summary == {
            "player_id": "p-amy",
            "total_games": 3,
            "total_goals": 6,
            "total_shot_attempts": 9,
            "shooting_accuracy": 66.67,
            "total_intercepts": 3,
            "total_tips": 1,
            "player_of_match_count": 2,
        }

    @pytest.mark.asyncio
    async def test_summary_without_matches(self, backend):
        summary = await match_stats_service.player_summary("p-amy")
        assert summary["total_games"] == 0
        assert summary["shooting_accuracy"] == 0.0

    @pytest.mark.asyncio
    async def test_delete_missing(self, backend):
        with pytest.raises(LookupError):
            await match_stats_service.delete("ms-none")


class TestMatchStatsRoutes:

    def test_coach_records(self, client_as, backend):
        coach = ClubUserContext("g-coach", roles=["coach"])

        response = client_as(coach).post("/api/club/match-stats", json=_figures())

        assert response.status_code == 200
        assert response.json()["goals"] == 7
        assert backend.rows("match_statistics")[0]["created_by"] == "g-coach"

    def test_parent_cannot_record(self, client_as, parent_user):
        assert client_as(parent_user).post("/api/club/match-stats", json=_figures()).status_code == 403

    def test_impossible_figures_rejected(self, client, backend):
        assert client.post("/api/club/match-stats", json=_figures(goals=12)).status_code == 422

    def test_parent_sees_own_player(self, client_as, parent_user, backend, sample_player):
        backend.seed("players", sample_player)
        backend.seed("player_guardians", {"player_id": "p-amy", "guardian_id": "g-parent"})
        backend.seed("match_statistics", {"id": "ms-1", "player_id": "p-amy", "event_id": "e-1", "goals": 5,
                                          "shot_attempts": 5})

        response = client_as(parent_user).get("/api/club/match-stats/players/p-amy/summary")

        assert response.status_code == 200
        assert response.json()["shooting_accuracy"] == 100.0

    def test_parent_cannot_see_others(self, client_as, parent_user, backend, sample_player):
        backend.seed("players", sample_player)
        assert client_as(parent_user).get("/api/club/match-stats/players/p-amy").status_code == 403

    def test_delete(self, client, backend):
        backend.seed("match_statistics", {"id": "ms-1", "player_id": "p-amy", "event_id": "e-1"})

        assert client.delete("/api/club/match-stats/ms-1").status_code == 200
        assert client.delete("/api/club/match-stats/ms-1").status_code == 404
        assert backend.rows("match_statistics") == []
