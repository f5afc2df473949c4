"""
Analytics API Router
"""

from typing import Optional, List, Any
from fastapi import APIRouter, Depends, Query

from ..dependencies import ClubUserContext, get_current_user, require_admin, require_coach
from ..models import (
    AttendanceTrendPoint,
    DashboardStats,
    DistributionSlice,
    RecentActivity,
    TeamAttendance,
    TrackEventRequest
)
from .service import analytics_service

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.post("/track")
async def track_event(
    data: TrackEventRequest,
    user: ClubUserContext = Depends(get_current_user)
):
    """Record a client event"""
    recorded = await analytics_service.track_event(
        data.event_type,
        data.event_name,
        data.properties,
        user_id=user.guardian_id,
        team_id=data.team_id,
        page_url=data.page_url
    )
    return {"recorded": recorded}


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(user: ClubUserContext = Depends(require_coach)):
    return await analytics_service.dashboard_stats()


@router.get("/attendance-trends", response_model=List[AttendanceTrendPoint])
async def attendance_trends(
    team_id: Optional[str] = Query(None),
    months: int = Query(6, ge=1, le=24),
    user: ClubUserContext = Depends(require_coach)
):
    """Monthly attendance rate, oldest first"""
    return await analytics_service.attendance_trends(team_id, months)


@router.get("/team-attendance", response_model=List[TeamAttendance])
async def team_attendance(user: ClubUserContext = Depends(require_coach)):
    """Attendance rate per team (last 30 days)"""
    return await analytics_service.team_attendance_comparison()


@router.get("/event-types", response_model=List[DistributionSlice])
async def event_type_distribution(
    days: int = Query(30, ge=1, le=365),
    user: ClubUserContext = Depends(require_coach)
):
    return await analytics_service.event_type_distribution(days)


@router.get("/activity", response_model=List[RecentActivity])
async def recent_activities(
    limit: int = Query(10, ge=1, le=100),
    user: ClubUserContext = Depends(require_admin)
):
    """Activity feed"""
    return await analytics_service.recent_activities(limit)


@router.get("/teams/{team_id}/performance")
async def team_performance(
    team_id: str,
    days: int = Query(30, ge=1, le=365),
    user: ClubUserContext = Depends(require_coach)
) -> Any:
    return {
        "team_id": team_id,
        "days": days,
        "summary": await analytics_service.team_performance_summary(team_id, days)
    }
