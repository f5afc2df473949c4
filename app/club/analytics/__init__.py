"""
Analytics Module

Activity tracking and dashboard figures
"""

from .router import router as analytics_router
from .service import analytics_service

__all__ = ["analytics_router", "analytics_service"]
