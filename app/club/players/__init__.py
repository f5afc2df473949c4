"""
Players Module

Children registered with the club
- profiles and UK age groups
- team membership and guardian links
- registration approval
"""

from .router import router as players_router
from .service import player_service, player_view, uk_age_group

__all__ = ["players_router", "player_service", "player_view", "uk_age_group"]
