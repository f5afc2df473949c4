"""
Club Manager - FastAPI web server

Data source: Supabase, with a local offline cache
"""

from typing import Optional

from fastapi import FastAPI
from loguru import logger
from dotenv import load_dotenv

from app.auth import auth_router
from app.club import club_router
from app.config import get_settings
from app.offline.client import connectivity
from app.offline.router import router as sync_router
from app.offline.store import get_offline_store, set_offline_store
from app.offline.sync import sync_service
from database.supabase_client import is_connected
from scheduler.scheduler import ClubScheduler

APP_VERSION = "1.0.0"

# Environment
load_dotenv()

# FastAPI app
app = FastAPI(
    title="Club Manager",
    description="Teams, players, events, attendance and billing for a youth club",
    version=APP_VERSION
)

# Auth router
app.include_router(auth_router, prefix="/api")

# Club management router
app.include_router(club_router, prefix="/api")

# Offline sync router
app.include_router(sync_router, prefix="/api")

_scheduler: Optional[ClubScheduler] = None


# ==================== Lifecycle ====================

@app.on_event("startup")
async def startup_event():
    """Open the offline cache and start background jobs"""
    global _scheduler
    settings = get_settings()

    if settings.OFFLINE_ENABLED:
        get_offline_store()

    if settings.SCHEDULER_ENABLED:
        _scheduler = ClubScheduler()
        _scheduler.start()

    logger.info("Server started")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop background jobs and close the cache"""
    global _scheduler
    if _scheduler:
        _scheduler.stop()
        _scheduler = None

    if get_settings().OFFLINE_ENABLED:
        get_offline_store().close()
        set_offline_store(None)

    logger.info("Server stopped")


# ==================== API Endpoints ====================

@app.get("/api/health")
async def api_health():
    """Backend connectivity"""
    online = is_connected()
    connectivity.set_online(online)
    return {
        "status": "ok" if online else "degraded",
        "backend_connected": online,
        "offline_enabled": get_settings().OFFLINE_ENABLED,
        "offline_mode": not online
    }


@app.get("/api/status")
async def api_status():
    """Version, sync and scheduler status"""
    settings = get_settings()
    return {
        "version": APP_VERSION,
        "sync": sync_service.get_sync_status() if settings.OFFLINE_ENABLED else None,
        "scheduler": _scheduler.get_status() if _scheduler else {"running": False}
    }
