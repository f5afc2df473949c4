"""
Events Module

Training sessions, matches and recurring series
"""

from .router import router as events_router
from .service import event_service, event_view
from .recurrence import RecurrencePattern, generate_occurrences, recurrence_service

__all__ = [
    "events_router",
    "event_service",
    "event_view",
    "RecurrencePattern",
    "generate_occurrences",
    "recurrence_service",
]
