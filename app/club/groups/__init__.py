"""
Groups Module

Groups of teams (for example an age band) and their staff
"""

from .router import router as groups_router
from .service import group_service

__all__ = ["groups_router", "group_service"]
