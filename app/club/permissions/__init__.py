"""
Permissions Module

Permission catalogue, default role matrix and cached permission checks
"""

from .router import router as permissions_router
from .service import (
    permission_service,
    PermissionService,
    PERMISSION_CATALOGUE,
    DEFAULT_ROLE_PERMISSIONS,
    legacy_flags,
    permissions_for_roles,
)

__all__ = [
    "permissions_router",
    "permission_service",
    "PermissionService",
    "PERMISSION_CATALOGUE",
    "DEFAULT_ROLE_PERMISSIONS",
    "legacy_flags",
    "permissions_for_roles",
]
