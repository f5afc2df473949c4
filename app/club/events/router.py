"""
Event API Router

Single events and recurring series
"""

from datetime import date
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import ClubUserContext, get_current_user, require_coach
from ..models import (
    EventCreate,
    EventResponse,
    EventUpdate,
    RecurrenceInfo,
    RecurringEventCreate,
    SeriesResult,
    SeriesUpdate,
    UpdateScope
)
from .recurrence import RecurrencePattern, recurrence_service
from .service import event_service

router = APIRouter(prefix="/events", tags=["Events"])


def _check_team_access(team_id: Optional[str], user: ClubUserContext):
    if team_id and not user.can_access_team(team_id):
        raise HTTPException(status_code=403, detail="Not assigned to this team")


# =============================================
# Events
# =============================================

@router.get("", response_model=List[EventResponse])
async def list_events(
    team_id: Optional[str] = Query(None),
    start: Optional[date] = Query(None, description="From date (inclusive)"),
    end: Optional[date] = Query(None, description="To date (inclusive)"),
    user: ClubUserContext = Depends(get_current_user)
):
    """Events by date"""
    return await event_service.list_events(team_id, start, end)


@router.get("/upcoming", response_model=List[EventResponse])
async def list_upcoming(
    team_id: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    user: ClubUserContext = Depends(get_current_user)
):
    """Next events"""
    return await event_service.list_upcoming(team_id, limit)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """One event"""
    try:
        return await event_service.get_event(event_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=EventResponse, status_code=201)
async def create_event(
    data: EventCreate,
    user: ClubUserContext = Depends(require_coach)
):
    """Create an event"""
    _check_team_access(data.team_id, user)
    return await event_service.create_event(data.model_dump())


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    data: EventUpdate,
    user: ClubUserContext = Depends(require_coach)
):
    """Update an event"""
    try:
        return await event_service.update_event(event_id, data.model_dump(exclude_unset=True))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Delete an event"""
    await event_service.delete_event(event_id)
    return {"message": "Event deleted", "id": event_id}


# =============================================
# Recurring series
# =============================================

def _pattern(data) -> RecurrencePattern:
    try:
        return RecurrencePattern(
            type=data.type.value,
            interval=data.interval,
            days_of_week=data.days_of_week,
            end_date=data.end_date,
            max_occurrences=data.max_occurrences
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/recurring", response_model=SeriesResult, status_code=201)
async def create_recurring_event(
    data: RecurringEventCreate,
    user: ClubUserContext = Depends(require_coach)
):
    """Create a recurring series"""
    _check_team_access(data.event.team_id, user)
    pattern = _pattern(data.pattern)
    return await recurrence_service.create_series(data.event.model_dump(), pattern)


@router.get("/{event_id}/recurrence", response_model=RecurrenceInfo)
async def get_recurrence_info(
    event_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """Series rule and occurrences of an event"""
    try:
        return await recurrence_service.get_recurrence_info(event_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{event_id}/series", response_model=SeriesResult)
async def update_series(
    event_id: str,
    data: SeriesUpdate,
    user: ClubUserContext = Depends(require_coach)
):
    """Edit this occurrence, this and future ones, or the whole series"""
    pattern = _pattern(data.pattern) if data.pattern else None
    try:
        return await recurrence_service.update_series(
            event_id, data.changes.model_dump(exclude_unset=True), pattern, data.scope
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{event_id}/series")
async def delete_series(
    event_id: str,
    scope: UpdateScope = Query(UpdateScope.all_series),
    user: ClubUserContext = Depends(require_coach)
):
    """Delete this occurrence, this and future ones, or the whole series"""
    try:
        deleted = await recurrence_service.delete_series(event_id, scope)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Series updated", "deleted": deleted, "scope": scope.value}
