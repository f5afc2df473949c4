"""
Club Management Router

Main router of the club service
- Dashboard
- Teams, groups, players, guardians
- Events, RSVP, attendance and match statistics
- Billing and analytics
- Roles and permissions
"""

from fastapi import APIRouter, Depends

from .dependencies import ClubUserContext, require_admin
from .models import ClubDashboard
from .analytics import analytics_router, analytics_service
from .attendance import attendance_router
from .billing import billing_router
from .events import events_router
from .groups import groups_router
from .guardians import guardians_router
from .match_stats import match_stats_router
from .permissions import permissions_router
from .players import players_router
from .roles import roles_router
from .teams import teams_router

router = APIRouter(prefix="/club", tags=["Club Management"])

router.include_router(teams_router)
router.include_router(groups_router)
router.include_router(players_router)
router.include_router(guardians_router)
router.include_router(events_router)
router.include_router(attendance_router)
router.include_router(match_stats_router)
router.include_router(billing_router)
router.include_router(analytics_router)
router.include_router(roles_router)
router.include_router(permissions_router)


# =============================================
# Dashboard
# =============================================

@router.get("/dashboard", response_model=ClubDashboard)
async def get_dashboard(user: ClubUserContext = Depends(require_admin)):
    """
    Club dashboard

    Player, team and event counts, pending approvals, the next events and
    alerts for pending approvals and failed payments.
    """
    return await analytics_service.club_dashboard()
