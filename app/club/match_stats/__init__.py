"""
Match Statistics Module

Per-player figures for matches and season totals
"""

from .router import router as match_stats_router
from .service import match_stats_service

__all__ = ["match_stats_router", "match_stats_service"]
