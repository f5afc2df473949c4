"""
RSVP and attendance tests
"""
import pytest
from datetime import date, timedelta

from app.club.attendance.service import attendance_service
from app.offline.store import attendance_key


def _future_date():
    return f"{(date.today() + timedelta(days=7)).isoformat()}T18:00:00"


class TestRsvp:

    @pytest.mark.asyncio
    async def test_rsvp_then_change(self, backend):
        first = await attendance_service.set_rsvp("e-1", "p-amy", "maybe")
        second = await attendance_service.set_rsvp("e-1", "p-amy", "going")

        rows = backend.rows("event_responses")
        assert len(rows) == 1
        assert rows[0]["rsvp_status"] == "going"
        assert first["id"] == second["id"]
        assert second["response_date"]

    @pytest.mark.asyncio
    async def test_unknown_status(self, backend):
        with pytest.raises(ValueError):
            await attendance_service.set_rsvp("e-1", "p-amy", "yes")

    @pytest.mark.asyncio
    async def test_responses_sorted_by_player_name(self, backend):
        backend.seed("players",
                     {"id": "p-zed", "first_name": "Zed", "last_name": "Ray"},
                     {"id": "p-amy", "first_name": "Amy", "last_name": "Jones"})
        backend.seed("event_responses",
                     {"id": "r-1", "event_id": "e-1", "player_id": "p-zed", "rsvp_status": "going"},
                     {"id": "r-2", "event_id": "e-1", "player_id": "p-amy", "rsvp_status": "maybe"},
                     {"id": "r-3", "event_id": "e-2", "player_id": "p-amy", "rsvp_status": "going"})

        responses = await attendance_service.list_responses("e-1")

        assert [r["player_name"] for r in responses] == ["Amy Jones", "Zed Ray"]
        assert responses[0]["pending_sync"] is False

    @pytest.mark.asyncio
    async def test_summary(self, backend):
        backend.seed("event_responses",
                     {"event_id": "e-1", "player_id": "p-1", "rsvp_status": "going"},
                     {"event_id": "e-1", "player_id": "p-2", "rsvp_status": "going"},
                     {"event_id": "e-1", "player_id": "p-3", "rsvp_status": "not_going"},
                     {"event_id": "e-2", "player_id": "p-1", "rsvp_status": "maybe"},
                     {"event_id": "e-2", "player_id": "p-2", "rsvp_status": None})

        summary = await attendance_service.rsvp_summary(["e-1", "e-2", "e-3"])

        assert summary == [
            {"event_id": "e-1", "going": 2, "maybe": 0, "not_going": 1},
            {"event_id": "e-2", "going": 0, "maybe": 1, "not_going": 0},
            {"event_id": "e-3", "going": 0, "maybe": 0, "not_going": 0},
        ]
        assert await attendance_service.rsvp_summary([]) == []

    @pytest.mark.asyncio
    async def test_player_rsvps_upcoming_only(self, backend):
        backend.seed("events",
                     {"id": "e-old", "event_date": "2020-01-01T10:00:00"},
                     {"id": "e-next", "event_date": _future_date()})
        backend.seed("event_responses",
                     {"id": "r-1", "event_id": "e-old", "player_id": "p-amy", "rsvp_status": "going"},
                     {"id": "r-2", "event_id": "e-next", "player_id": "p-amy", "rsvp_status": "going"})

        rsvps = await attendance_service.player_rsvps("p-amy")

        assert [r["event_id"] for r in rsvps] == ["e-next"]

    @pytest.mark.asyncio
    async def test_offline_rsvp_is_queued(self, backend, offline_store):
        backend.fail = True

        response = await attendance_service.set_rsvp("e-1", "p-amy", "going")
        listed = await attendance_service.list_responses("e-1")

        assert response["pending_sync"] is True
        assert offline_store.get_record("attendance", attendance_key("p-amy", "e-1")).sync_status == "pending"
        assert [r["rsvp_status"] for r in listed] == ["going"]


class TestAttendance:

    @pytest.mark.asyncio
    async def test_mark(self, backend):
        backend.seed("event_responses", {"id": "r-1", "event_id": "e-1", "player_id": "p-amy"})

        marked = await attendance_service.mark_attendance("r-1", "late", "Bus delayed", "g-coach")

        assert marked["attendance_status"] == "late"
        assert marked["attended"] is True
        assert marked["notes"] == "Bus delayed"
        assert backend.rows("event_responses")[0]["marked_by"] == "g-coach"

    @pytest.mark.asyncio
    async def test_absent_is_not_attended(self, backend):
        backend.seed("event_responses", {"id": "r-1", "event_id": "e-1", "player_id": "p-amy"})
        marked = await attendance_service.mark_attendance("r-1", "absent", None, "g-coach")
        assert marked["attended"] is False
        assert marked["notes"] is None

    @pytest.mark.asyncio
    async def test_mark_missing(self, backend):
        with pytest.raises(LookupError):
            await attendance_service.mark_attendance("r-none", "present", None, "g-coach")

    @pytest.mark.asyncio
    async def test_offline_mark_uses_cached_response(self, backend, offline_store):
        offline_store.put("attendance", attendance_key("p-amy", "e-1"),
                          {"id": "r-1", "event_id": "e-1", "player_id": "p-amy", "rsvp_status": "going"})
        backend.fail = True

        marked = await attendance_service.mark_attendance("r-1", "present", None, "g-coach")

        assert marked["attendance_status"] == "present"
        assert marked["rsvp_status"] == "going"
        assert marked["pending_sync"] is True

    @pytest.mark.asyncio
    async def test_bulk_mark(self, backend):
        backend.seed("event_responses", {"id": "r-1", "event_id": "e-1", "player_id": "p-amy", "rsvp_status": "going"})

        results = await attendance_service.bulk_mark("e-1", {"p-amy": "present", "p-ben": "injured"}, "g-coach")

        assert [r["attendance_status"] for r in results] == ["present", "injured"]
        assert len(backend.rows("event_responses")) == 2
        assert results[0]["rsvp_status"] == "going"

    @pytest.mark.asyncio
    async def test_summary(self, backend):
        backend.seed("event_responses",
                     {"event_id": "e-1", "player_id": "p-1", "attendance_status": "present"},
                     {"event_id": "e-1", "player_id": "p-2", "attendance_status": "present"},
                     {"event_id": "e-1", "player_id": "p-3", "attendance_status": "late"},
                     {"event_id": "e-1", "player_id": "p-4"})

        summary = await attendance_service.attendance_summary("e-1")

        assert summary == {
            "event_id": "e-1", "present": 2, "absent": 0, "injured": 0,
            "late": 1, "not_marked": 1, "total": 4,
        }


class TestAttendanceRoutes:

    def test_parent_rsvps_for_own_player(self, client_as, parent_user, backend, sample_player):
        backend.seed("players", sample_player)
        backend.seed("player_guardians", {"player_id": "p-amy", "guardian_id": "g-parent"})

        response = client_as(parent_user).post("/api/club/attendance/events/e-1/rsvp",
                                               json={"player_id": "p-amy", "status": "going"})

        assert response.status_code == 200
        assert response.json()["rsvp_status"] == "going"

    def test_parent_cannot_rsvp_for_others(self, client_as, parent_user, backend, sample_player):
        backend.seed("players", sample_player)
        response = client_as(parent_user).post("/api/club/attendance/events/e-1/rsvp",
                                               json={"player_id": "p-amy", "status": "going"})
        assert response.status_code == 403

    def test_parent_cannot_list_responses(self, client_as, parent_user):
        assert client_as(parent_user).get("/api/club/attendance/events/e-1/responses").status_code == 403

    def test_rsvp_summary_query(self, client, backend):
        backend.seed("event_responses", {"event_id": "e-1", "player_id": "p-1", "rsvp_status": "maybe"})
        response = client.get("/api/club/attendance/rsvp-summary", params=[("event_ids", "e-1"), ("event_ids", "e-2")])
        assert [s["maybe"] for s in response.json()] == [1, 0]

    def test_mark_missing(self, client, backend):
        response = client.post("/api/club/attendance/responses/r-none/mark", json={"status": "present"})
        assert response.status_code == 404

    def test_bulk_mark_rejects_unknown_status(self, client, backend):
        response = client.post("/api/club/attendance/events/e-1/mark",
                               json={"statuses": {"p-amy": "asleep"}})
        assert response.status_code == 422
