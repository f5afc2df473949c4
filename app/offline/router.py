"""
Sync API Router
"""

from fastapi import APIRouter, Depends

from app.club.dependencies import ClubUserContext, get_current_user, require_admin
from .sync import sync_service

router = APIRouter(prefix="/sync", tags=["Sync"])


@router.get("/status")
async def sync_status(user: ClubUserContext = Depends(get_current_user)):
    """Online flag, last sync and queued changes"""
    return sync_service.get_sync_status()


@router.post("")
async def run_sync(user: ClubUserContext = Depends(require_admin)):
    """Replay queued changes now"""
    result = await sync_service.manual_sync()
    return result.to_dict()
