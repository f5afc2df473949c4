"""
Attendance Module

RSVPs (going / maybe / not going) and attendance marking
"""

from .router import router as attendance_router
from .service import attendance_service

__all__ = ["attendance_router", "attendance_service"]
