"""
Teams Module

Teams, rosters and team staff
"""

from .router import router as teams_router
from .service import team_service, team_view

__all__ = ["teams_router", "team_service", "team_view"]
