"""
Offline Module

Local cache of backend rows and the replay of writes queued while offline
"""
from .store import OfflineStore, get_offline_store, set_offline_store
from .client import ApiClient, ApiError, ApiResponse, OfflineFirstAPI, connectivity
from .sync import SyncService, SyncResult, sync_service

__all__ = [
    "OfflineStore",
    "get_offline_store",
    "set_offline_store",
    "ApiClient",
    "ApiError",
    "ApiResponse",
    "OfflineFirstAPI",
    "connectivity",
    "SyncService",
    "SyncResult",
    "sync_service",
]
