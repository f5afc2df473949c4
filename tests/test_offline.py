"""
Offline cache, API client and queue replay tests
"""
import asyncio

import pytest

from app.offline.client import (
    OFFLINE_MESSAGE,
    ApiClient,
    ConnectivityState,
    OfflineFirstAPI,
    connectivity,
)
from app.offline.store import OfflineStore, SYNC_DELETED, SYNC_PENDING, attendance_key
from app.offline.sync import SyncService


class TestOfflineStore:

    def test_put_and_get(self, offline_store):
        offline_store.put("teams", "t-1", {"name": "U12 Hornets"})
        assert offline_store.get("teams", "t-1") == {"name": "U12 Hornets", "id": "t-1"}
        assert offline_store.get_record("teams", "t-1").sync_status == "synced"

    def test_save_local_assigns_local_id(self, offline_store):
        row = offline_store.save_local("players", {"first_name": "Cara"})
        record = offline_store.get_record("players", row["id"])

        assert row["id"].startswith("local_")
        assert record.is_local
        assert record.sync_status == SYNC_PENDING

    def test_save_local_merges_existing(self, offline_store):
        offline_store.put("guardians", "g-1", {"first_name": "Pat", "city": "York"})
        merged = offline_store.save_local("guardians", {"city": "Leeds"}, "g-1")
        assert merged == {"first_name": "Pat", "city": "Leeds", "id": "g-1"}

    def test_delete_local_row_forgets_it(self, offline_store):
        row = offline_store.save_local("players", {"first_name": "Cara"})
        offline_store.mark_deleted("players", row["id"])
        assert offline_store.get_record("players", row["id"]) is None
        assert offline_store.pending_count() == 0

    def test_delete_remote_row_leaves_tombstone(self, offline_store):
        offline_store.put("players", "p-1", {"first_name": "Amy"})
        offline_store.mark_deleted("players", "p-1")

        assert offline_store.get("players", "p-1") is None
        assert offline_store.list("players") == []
        assert offline_store.get_record("players", "p-1").sync_status == SYNC_DELETED
        assert offline_store.pending_count() == 1

    def test_list_filters(self, offline_store):
        offline_store.put("events", "e-1", {"team_id": "t-1"})
        offline_store.put("events", "e-2", {"team_id": "t-2"})
        assert [r["id"] for r in offline_store.list("events", team_id="t-2")] == ["e-2"]

    def test_replace_id(self, offline_store):
        row = offline_store.save_local("teams", {"name": "U10 Bees"})
        offline_store.replace_id("teams", row["id"], {"id": "t-9", "name": "U10 Bees"})

        assert offline_store.get("teams", row["id"]) is None
        assert offline_store.get_record("teams", "t-9").sync_status == "synced"

    def test_sync_metadata(self, offline_store):
        assert offline_store.last_sync_time() is None
        offline_store.update_sync_metadata("teams")
        assert offline_store.last_sync_time("teams") is not None
        assert offline_store.last_sync_time("events") is None
        assert offline_store.last_sync_time() is not None

    def test_unknown_table(self, offline_store):
        with pytest.raises(ValueError):
            offline_store.put("payments", "x", {})

    def test_memory_database(self):
        store = OfflineStore(":memory:")
        store.put("teams", "t-1", {"name": "U9 Ants"})
        assert store.get("teams", "t-1")["name"] == "U9 Ants"
        store.close()


class TestConnectivity:

    def test_came_back(self):
        state = ConnectivityState()
        assert state.set_online(False) is False
        assert state.set_online(True) is True
        assert state.set_online(True) is False


class TestApiClient:

    @pytest.mark.asyncio
    async def test_success(self, fake_db):
        async def operation():
            return {"ok": True}

        response = await ApiClient(retry_delay=0).request(operation, "ping")
        assert response.success
        assert response.data == {"ok": True}

    @pytest.mark.asyncio
    async def test_retries_then_fails(self, fake_db):
        attempts = []

        async def operation():
            attempts.append(1)
            raise ConnectionError("refused")

        response = await ApiClient(retries=3, retry_delay=0).request(operation, "ping")

        assert not response.success
        assert response.error == "refused"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_recovers_on_retry(self, fake_db):
        attempts = []

        async def operation():
            attempts.append(1)
            if len(attempts) < 2:
                raise ConnectionError("refused")
            return "ok"

        response = await ApiClient(retries=3, retry_delay=0).request(operation, "ping")
        assert response.success and response.data == "ok"

    @pytest.mark.asyncio
    async def test_timeout(self, fake_db):
        async def operation():
            await asyncio.sleep(1)

        response = await ApiClient(retries=1, retry_delay=0, timeout=0.01).request(operation, "slow")
        assert response.error == "Request timeout"

    @pytest.mark.asyncio
    async def test_offline_short_circuits(self, fake_db):
        called = []

        async def operation():
            called.append(1)

        connectivity.is_online = False
        response = await ApiClient().request(operation, "ping")

        assert response.error == OFFLINE_MESSAGE
        assert called == []


class TestOfflineFirstAPI:

    @pytest.mark.asyncio
    async def test_falls_back_when_online_call_fails(self, backend):
        api = OfflineFirstAPI()

        async def online():
            raise ConnectionError("refused")

        async def offline():
            return "cached"

        assert await api.with_offline_fallback(online, offline, "read") == "cached"

    @pytest.mark.asyncio
    async def test_write_errors_propagate_while_reachable(self, backend):
        api = OfflineFirstAPI()

        async def online():
            raise ValueError("duplicate key")

        with pytest.raises(ValueError):
            await api.write_with_fallback(online, "teams", {"name": "Bees"}, "create_team")
        assert connectivity.is_online is True

    def test_cache_keeps_pending_edits(self, backend, offline_store):
        offline_store.save_local("teams", {"name": "Local name"}, "t-1")
        OfflineFirstAPI().cache_rows("teams", [{"id": "t-1", "name": "Remote name"}])
        assert offline_store.get("teams", "t-1")["name"] == "Local name"


class TestSyncService:

    @pytest.mark.asyncio
    async def test_pushes_local_create(self, backend, offline_store):
        local = offline_store.save_local("players", {"first_name": "Cara", "_team_ids": ["t-1"]})

        result = await SyncService(offline_store).perform_full_sync()

        remote = backend.rows("players")[0]
        assert result.success
        assert result.pushed["players"] == 1
        assert remote["first_name"] == "Cara"
        assert "_team_ids" not in remote
        assert offline_store.get("players", local["id"]) is None
        assert offline_store.get("players", remote["id"])["first_name"] == "Cara"
        assert offline_store.pending_count() == 0

    @pytest.mark.asyncio
    async def test_pushes_update_and_delete(self, backend, offline_store):
        backend.seed("teams", {"id": "t-1", "name": "Old"}, {"id": "t-2", "name": "Gone"})
        offline_store.put("teams", "t-2", {"name": "Gone"})
        offline_store.save_local("teams", {"name": "New"}, "t-1")
        offline_store.mark_deleted("teams", "t-2")

        await SyncService(offline_store).perform_full_sync()

        assert backend.rows("teams") == [{"id": "t-1", "name": "New"}]
        assert offline_store.get_record("teams", "t-2") is None
        assert offline_store.get_record("teams", "t-1").sync_status == "synced"

    @pytest.mark.asyncio
    async def test_attendance_matched_on_player_and_event(self, backend, offline_store):
        backend.seed("event_responses", {"id": "r-1", "player_id": "p-1", "event_id": "e-1", "rsvp_status": "maybe"})
        key = attendance_key("p-1", "e-1")
        offline_store.save_local("attendance", {"player_id": "p-1", "event_id": "e-1", "rsvp_status": "going"}, key)

        await SyncService(offline_store).perform_full_sync()

        rows = backend.rows("event_responses")
        assert len(rows) == 1
        assert rows[0]["rsvp_status"] == "going"
        assert offline_store.get_record("attendance", key).sync_status == "synced"

    @pytest.mark.asyncio
    async def test_pull_refreshes_cache(self, backend, offline_store):
        backend.seed("events", {"id": "e-1", "title": "Training"})

        result = await SyncService(offline_store).perform_full_sync()

        assert result.pulled["events"] == 1
        assert offline_store.get("events", "e-1")["title"] == "Training"
        assert offline_store.last_sync_time("events") is not None

    @pytest.mark.asyncio
    async def test_skipped_when_offline(self, backend, offline_store):
        connectivity.is_online = False
        result = await SyncService(offline_store).perform_full_sync()
        assert result.skipped

    @pytest.mark.asyncio
    async def test_skipped_while_running(self, backend, offline_store):
        service = SyncService(offline_store)
        service.sync_in_progress = True
        assert (await service.perform_full_sync()).skipped

    @pytest.mark.asyncio
    async def test_failure_keeps_local_changes(self, backend, offline_store):
        offline_store.save_local("players", {"first_name": "Cara"})
        backend.fail = True

        result = await SyncService(offline_store, ApiClient(retries=1, retry_delay=0)).perform_full_sync()

        assert not result.success
        assert result.errors
        assert offline_store.pending_count() == 1

    @pytest.mark.asyncio
    async def test_push_retried_after_dropped_connection(self, backend, offline_store):
        offline_store.save_local("guardians", {"first_name": "Pat"})
        backend.fail_next = 1

        result = await SyncService(offline_store, ApiClient(retries=2, retry_delay=0)).perform_full_sync()

        assert result.success
        assert result.pushed["guardians"] == 1
        assert backend.calls[:2] == [("guardians", "insert"), ("guardians", "insert")]
        assert len(backend.rows("guardians")) == 1
        assert offline_store.pending_count() == 0

    @pytest.mark.asyncio
    async def test_push_gives_up_after_retries(self, backend, offline_store):
        offline_store.save_local("guardians", {"first_name": "Pat"})
        backend.fail_next = 2

        result = await SyncService(offline_store, ApiClient(retries=2, retry_delay=0)).perform_full_sync()

        assert not result.success
        assert result.pushed["guardians"] == 0
        assert result.errors[0].startswith("guardians/local_")
        assert offline_store.pending_count() == 1

    @pytest.mark.asyncio
    async def test_manual_sync_offline(self, backend, offline_store):
        connectivity.is_online = False
        result = await SyncService(offline_store).manual_sync()
        assert result.errors == ["Cannot sync while offline"]

    @pytest.mark.asyncio
    async def test_reconnect_triggers_sync(self, backend, offline_store):
        offline_store.save_local("teams", {"name": "U10 Bees"})
        connectivity.is_online = False
        service = SyncService(offline_store)

        assert await service.check_connectivity() is True
        assert connectivity.is_online is True
        assert not service.has_pending_changes()
        assert service.last_result.success

    def test_status(self, backend, offline_store):
        offline_store.save_local("teams", {"name": "U10 Bees"})
        status = SyncService(offline_store).get_sync_status()
        assert status == {
            "is_online": True,
            "sync_in_progress": False,
            "last_sync": None,
            "pending_changes": 1,
        }
