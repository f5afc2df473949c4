"""
Attendance API Router

RSVPs and attendance marking
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import ClubUserContext, get_current_user, require_coach
from ..models import (
    AttendanceMark,
    AttendanceSummary,
    BulkAttendance,
    EventResponseRecord,
    RsvpRequest,
    RsvpSummary
)
from ..players.service import player_service
from .service import attendance_service

router = APIRouter(prefix="/attendance", tags=["Attendance"])


async def _check_player_access(player_id: str, user: ClubUserContext):
    """Guardians may respond only for their own players"""
    if user.is_coach():
        return
    try:
        player = await player_service.get_player(player_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="Player not found")
    if user.guardian_id not in player["guardian_ids"]:
        raise HTTPException(status_code=403, detail="You can only respond for your own players")


# =============================================
# RSVP
# =============================================

@router.post("/events/{event_id}/rsvp", response_model=EventResponseRecord)
async def set_rsvp(
    event_id: str,
    data: RsvpRequest,
    user: ClubUserContext = Depends(get_current_user)
):
    """RSVP for a player"""
    await _check_player_access(data.player_id, user)
    return await attendance_service.set_rsvp(event_id, data.player_id, data.status.value)


@router.get("/events/{event_id}/responses", response_model=List[EventResponseRecord])
async def list_responses(
    event_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Responses for an event"""
    return await attendance_service.list_responses(event_id)


@router.get("/rsvp-summary", response_model=List[RsvpSummary])
async def rsvp_summary(
    event_ids: List[str] = Query(..., description="Event ids"),
    user: ClubUserContext = Depends(get_current_user)
):
    """RSVP counts per event"""
    return await attendance_service.rsvp_summary(event_ids)


@router.get("/players/{player_id}/rsvps", response_model=List[EventResponseRecord])
async def player_rsvps(
    player_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """A player's responses to upcoming events"""
    await _check_player_access(player_id, user)
    return await attendance_service.player_rsvps(player_id)


# =============================================
# Attendance
# =============================================

@router.post("/responses/{response_id}/mark", response_model=EventResponseRecord)
async def mark_attendance(
    response_id: str,
    data: AttendanceMark,
    user: ClubUserContext = Depends(require_coach)
):
    """Mark attendance on one response"""
    try:
        return await attendance_service.mark_attendance(
            response_id, data.status.value, data.notes, user.guardian_id
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/events/{event_id}/mark", response_model=List[EventResponseRecord])
async def bulk_mark(
    event_id: str,
    data: BulkAttendance,
    user: ClubUserContext = Depends(require_coach)
):
    """Mark attendance for several players"""
    statuses = {player_id: status.value for player_id, status in data.statuses.items()}
    return await attendance_service.bulk_mark(event_id, statuses, user.guardian_id)


@router.get("/events/{event_id}/summary", response_model=AttendanceSummary)
async def attendance_summary(
    event_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Attendance counts for an event"""
    return await attendance_service.attendance_summary(event_id)
