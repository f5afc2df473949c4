"""
Roles Module

User role assignment (parent, coach, manager, admin)
"""

from .router import router as roles_router
from .service import role_service

__all__ = ["roles_router", "role_service"]
