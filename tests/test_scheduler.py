"""
Scheduler tests
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.offline.sync import SyncResult
from scheduler.scheduler import ClubScheduler


@pytest.fixture
def sync_mock():
    service = MagicMock()
    service.perform_full_sync = AsyncMock(return_value=SyncResult(success=True))
    service.check_connectivity = AsyncMock(return_value=True)
    return service


class TestClubScheduler:

    def test_setup_registers_jobs(self, sync_mock):
        scheduler = ClubScheduler(sync_mock)
        scheduler.setup()

        assert sorted(job.id for job in scheduler.scheduler.get_jobs()) == [
            "connectivity_check", "offline_sync",
        ]

    @pytest.mark.asyncio
    async def test_run_now_sync(self, sync_mock):
        scheduler = ClubScheduler(sync_mock)

        await scheduler.run_now("sync")

        sync_mock.perform_full_sync.assert_awaited_once()
        assert scheduler.get_status()["last_sync"] is not None

    @pytest.mark.asyncio
    async def test_sync_skipped_while_running(self, sync_mock):
        scheduler = ClubScheduler(sync_mock)
        scheduler._sync_running = True

        await scheduler.run_now("sync")

        sync_mock.perform_full_sync.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sync_error_is_contained(self, sync_mock):
        sync_mock.perform_full_sync.side_effect = RuntimeError("boom")
        scheduler = ClubScheduler(sync_mock)

        await scheduler.run_now("sync")

        assert scheduler._sync_running is False
        assert scheduler.get_status()["last_sync"] is None

    @pytest.mark.asyncio
    async def test_connectivity_check(self, sync_mock):
        scheduler = ClubScheduler(sync_mock)

        await scheduler.run_now("connectivity")

        status = scheduler.get_status()
        assert status["last_online"] is True
        assert status["last_check"] is not None

    @pytest.mark.asyncio
    async def test_connectivity_check_waits_for_sync(self, sync_mock):
        scheduler = ClubScheduler(sync_mock)
        scheduler._sync_running = True

        await scheduler.run_now("connectivity")

        sync_mock.check_connectivity.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_job(self, sync_mock):
        scheduler = ClubScheduler(sync_mock)
        await scheduler.run_now("reindex")
        sync_mock.perform_full_sync.assert_not_awaited()
        sync_mock.check_connectivity.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_and_stop(self, sync_mock):
        scheduler = ClubScheduler(sync_mock)

        scheduler.start()
        status = scheduler.get_status()
        scheduler.stop()

        assert status["running"] is True
        assert len(status["jobs"]) == 2
        assert all(job["next_run"] for job in status["jobs"])
        assert scheduler.scheduler.running is False
