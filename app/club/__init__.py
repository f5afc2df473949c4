"""
Club Management Module

Teams and groups, players and guardians, events with RSVP, attendance and
match statistics, billing, analytics and role-based permissions
"""

from .router import router as club_router
from .models import (
    UserRole,
    ApprovalStatus,
    EventType,
    RsvpStatus,
    AttendanceStatus,
    PaymentStatus
)
from .dependencies import ClubUserContext

__all__ = [
    "club_router",
    "UserRole",
    "ApprovalStatus",
    "EventType",
    "RsvpStatus",
    "AttendanceStatus",
    "PaymentStatus",
    "ClubUserContext"
]
