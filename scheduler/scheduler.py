"""
Background sync scheduler
"""
from typing import Optional
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from app.config import get_settings
from app.offline.sync import SyncService, sync_service


class ClubScheduler:
    """Periodic queue replay and connectivity checks"""

    def __init__(self, service: Optional[SyncService] = None):
        """
        Args:
            service: sync service to drive (defaults to the shared one)
        """
        self.scheduler = AsyncIOScheduler()
        self.sync_service = service or sync_service
        self._sync_running = False
        self._check_running = False
        self._last_sync: Optional[datetime] = None
        self._last_check: Optional[datetime] = None
        self._last_online: Optional[bool] = None

    def setup(self):
        """Register the jobs"""
        settings = get_settings()

        self.scheduler.add_job(
            self._run_sync,
            IntervalTrigger(minutes=settings.SYNC_INTERVAL_MINUTES),
            id="offline_sync",
            name="Offline Queue Sync",
            replace_existing=True
        )
        logger.info(f"Sync scheduled every {settings.SYNC_INTERVAL_MINUTES} min")

        self.scheduler.add_job(
            self._run_connectivity_check,
            IntervalTrigger(seconds=settings.CONNECTIVITY_CHECK_SECONDS),
            id="connectivity_check",
            name="Connectivity Check",
            replace_existing=True
        )
        logger.info(f"Connectivity check every {settings.CONNECTIVITY_CHECK_SECONDS}s")

    async def _run_sync(self):
        """Replay queued changes"""
        if self._sync_running:
            logger.warning("Sync already running, skipping")
            return

        self._sync_running = True
        logger.info("=== Scheduled sync started ===")

        try:
            result = await self.sync_service.perform_full_sync()
            self._last_sync = datetime.now()
            if result.skipped:
                logger.debug("Scheduled sync skipped (offline or busy)")
            else:
                logger.info(f"Scheduled sync done: pushed={result.pushed} pulled={result.pulled}")
        except Exception as e:
            logger.error(f"Scheduled sync error: {e}")
        finally:
            self._sync_running = False

    async def _run_connectivity_check(self):
        """Refresh the online flag"""
        if self._check_running or self._sync_running:
            logger.debug("Sync or check in progress, skipping connectivity check")
            return

        self._check_running = True
        try:
            self._last_online = await self.sync_service.check_connectivity()
            self._last_check = datetime.now()
        except Exception as e:
            logger.error(f"Connectivity check error: {e}")
        finally:
            self._check_running = False

    def start(self):
        """Start the scheduler"""
        self.setup()
        self.scheduler.start()
        logger.info("Scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

    def get_status(self) -> dict:
        """Scheduler status"""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None
            })

        return {
            "running": self.scheduler.running,
            "sync_running": self._sync_running,
            "check_running": self._check_running,
            "last_sync": self._last_sync.isoformat() if self._last_sync else None,
            "last_check": self._last_check.isoformat() if self._last_check else None,
            "last_online": self._last_online,
            "jobs": jobs
        }

    async def run_now(self, kind: str = "sync"):
        """Run a job immediately"""
        if kind == "sync":
            await self._run_sync()
        elif kind == "connectivity":
            await self._run_connectivity_check()
        else:
            logger.warning(f"Unknown job type: {kind}")
