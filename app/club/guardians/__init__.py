"""
Guardians Module

Parent/carer accounts and registration approvals
"""

from .router import router as guardians_router
from .service import guardian_service, guardian_view

__all__ = ["guardians_router", "guardian_service", "guardian_view"]
