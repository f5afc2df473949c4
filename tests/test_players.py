"""
Player service and router tests
"""
import pytest
from datetime import date, timedelta

from app.club.players.service import player_service, player_view, split_name, uk_age_group
from app.offline.client import connectivity


class TestUkAgeGroup:
    """Age group from the 31 August cut-off"""

    def test_after_season_start(self):
        assert uk_age_group("2015-03-14", on=date(2026, 10, 19)) == "U12"

    def test_before_season_start(self):
        assert uk_age_group("2015-03-14", on=date(2026, 7, 1)) == "U11"

    def test_september_birthday_is_youngest_in_year(self):
        assert uk_age_group(date(2015, 9, 1), on=date(2026, 10, 19)) == "U11"
        assert uk_age_group(date(2015, 8, 31), on=date(2026, 10, 19)) == "U12"

    def test_missing(self):
        assert uk_age_group(None) is None


class TestPlayerView:

    def test_split_name(self):
        assert split_name("Amy Rose Jones") == ("Amy", "Rose Jones")
        assert split_name("Amy") == ("Amy", "")

    def test_view_uses_annotations(self):
        view = player_view({
            "id": 5, "first_name": "Amy", "last_name": "Jones",
            "date_of_birth": "2015-03-14", "_team_ids": ["t-1"], "_guardian_ids": ["g-1"],
        })
        assert view["id"] == "5"
        assert view["name"] == "Amy Jones"
        assert view["status"] == "pending"
        assert view["team_ids"] == ["t-1"]
        assert view["guardian_ids"] == ["g-1"]


class TestPlayerService:

    @pytest.mark.asyncio
    async def test_create_with_links(self, backend):
        player = await player_service.create_player({
            "name": "Amy Jones",
            "date_of_birth": date(2015, 3, 14),
            "team_id": "t-1",
            "guardian_id": "g-1",
        })

        assert player["name"] == "Amy Jones"
        assert player["status"] == "pending"
        assert player["team_ids"] == ["t-1"]
        assert backend.rows("players")[0]["first_name"] == "Amy"
        assert backend.rows("player_teams")[0]["team_id"] == "t-1"
        assert backend.rows("player_guardians")[0]["guardian_id"] == "g-1"

    @pytest.mark.asyncio
    async def test_list_by_team(self, backend, sample_player):
        backend.seed("players", sample_player, {"id": "p-ben", "first_name": "Ben", "last_name": "Ng"})
        backend.seed("player_teams", {"player_id": "p-amy", "team_id": "t-u12"})

        players = await player_service.list_by_team("t-u12")

        assert [p["id"] for p in players] == ["p-amy"]
        assert players[0]["team_ids"] == ["t-u12"]

    @pytest.mark.asyncio
    async def test_list_filters_status(self, backend, sample_player):
        backend.seed("players", sample_player, {"id": "p-ben", "first_name": "Ben", "approval_status": "pending"})
        pending = await player_service.list_players("pending")
        assert [p["id"] for p in pending] == ["p-ben"]

    @pytest.mark.asyncio
    async def test_missing_player(self, backend):
        with pytest.raises(LookupError):
            await player_service.get_player("p-none")

    @pytest.mark.asyncio
    async def test_assign_twice(self, backend):
        await player_service.assign_to_team("p-amy", "t-1")
        with pytest.raises(ValueError):
            await player_service.assign_to_team("p-amy", "t-1")

    @pytest.mark.asyncio
    async def test_approve_and_reject(self, backend, sample_player):
        backend.seed("players", {**sample_player, "approval_status": "pending"})

        approved = await player_service.approve_player("p-amy", "g-admin")
        assert approved["status"] == "approved"

        rejected = await player_service.reject_player("p-amy", "Duplicate registration", "g-admin")
        assert rejected["status"] == "rejected"
        assert backend.rows("players")[0]["rejection_reason"] == "Duplicate registration"

    @pytest.mark.asyncio
    async def test_reads_fall_back_to_cache(self, backend, sample_player):
        backend.seed("players", sample_player)
        backend.seed("player_guardians", {"player_id": "p-amy", "guardian_id": "g-parent"})
        await player_service.list_players()

        backend.fail = True
        cached = await player_service.list_by_guardian("g-parent")

        assert [p["id"] for p in cached] == ["p-amy"]

    @pytest.mark.asyncio
    async def test_create_offline_is_queued(self, backend, offline_store):
        backend.fail = True

        player = await player_service.create_player({"name": "Cara Lee", "date_of_birth": "2016-01-02"})

        assert player["id"].startswith("local_")
        assert connectivity.is_online is False
        assert offline_store.pending_count() == 1
        assert backend.rows("players") == []

    @pytest.mark.asyncio
    async def test_delete_offline_leaves_tombstone(self, backend, offline_store, sample_player):
        offline_store.put("players", "p-amy", sample_player)
        backend.fail = True

        await player_service.delete_player("p-amy")

        assert offline_store.get("players", "p-amy") is None
        assert offline_store.get_record("players", "p-amy").sync_status == "deleted"


class TestPlayerRoutes:

    def test_parent_registers_own_child(self, client_as, parent_user, backend):
        response = client_as(parent_user).post("/api/club/players", json={
            "name": "Amy Jones", "date_of_birth": "2015-03-14", "guardian_id": "g-someone-else",
        })

        assert response.status_code == 201
        assert response.json()["guardian_ids"] == ["g-parent"]

    def test_parent_cannot_read_other_player(self, client_as, parent_user, backend, sample_player):
        backend.seed("players", sample_player)
        response = client_as(parent_user).get("/api/club/players/p-amy")
        assert response.status_code == 403

    def test_parent_cannot_list_all(self, client_as, parent_user):
        assert client_as(parent_user).get("/api/club/players").status_code == 403

    def test_future_birth_date_rejected(self, client):
        response = client.post("/api/club/players", json={
            "name": "Amy Jones", "date_of_birth": (date.today() + timedelta(days=30)).isoformat(),
        })
        assert response.status_code == 422

    def test_approve_missing(self, client):
        assert client.post("/api/club/players/p-none/approve").status_code == 404
