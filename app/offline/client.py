"""
Online-first data access

Services try the backend first and fall back to the offline cache when the
backend is unreachable. Writes made while offline are queued in the cache
and replayed by the sync service.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from loguru import logger

from app.config import get_settings
from database.supabase_client import is_connected
from .store import OfflineStore, SYNC_SYNCED, get_offline_store

T = TypeVar("T")


class ConnectivityState:
    """Process-wide online flag, refreshed by connectivity checks"""

    def __init__(self):
        self.is_online = True

    def set_online(self, online: bool) -> bool:
        """Update the flag; True when the backend just came back"""
        came_back = online and not self.is_online
        if online != self.is_online:
            logger.info("Backend online" if online else "Backend offline")
        self.is_online = online
        return came_back


connectivity = ConnectivityState()


class ApiError(Exception):
    """Backend call failure"""

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


@dataclass
class ApiResponse(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None


OFFLINE_MESSAGE = "Currently offline - changes will sync when online"


class ApiClient:
    """Backend calls with a fixed number of attempts and a per-attempt timeout"""

    def __init__(
        self,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        enable_offline: bool = True
    ):
        settings = get_settings()
        self.retries = retries or settings.API_RETRY_ATTEMPTS
        self.retry_delay = settings.API_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self.timeout = timeout or settings.API_TIMEOUT_SECONDS
        self.enable_offline = enable_offline

    async def request(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        allow_offline: bool = True
    ) -> ApiResponse[T]:
        """Run an async operation, retrying with a linearly growing delay"""
        if not connectivity.is_online and self.enable_offline and allow_offline:
            logger.warning(f"API client: offline, {operation_name} queued")
            return ApiResponse(success=False, error=OFFLINE_MESSAGE)

        for attempt in range(1, self.retries + 1):
            try:
                result = await asyncio.wait_for(operation(), timeout=self.timeout)
                return ApiResponse(success=True, data=result)
            except asyncio.TimeoutError:
                error: Exception = ApiError("Request timeout", 408, "TIMEOUT")
            except Exception as e:
                error = e

            logger.error(f"API client: {operation_name} attempt {attempt} failed: {error}")
            if attempt == self.retries:
                return ApiResponse(success=False, error=str(error) or "Unknown error occurred")

            await asyncio.sleep(self.retry_delay * attempt)

        return ApiResponse(success=False, error="All retry attempts failed")


class OfflineFirstAPI:
    """Base for services whose rows are mirrored in the offline cache"""

    @property
    def is_online(self) -> bool:
        return connectivity.is_online

    @property
    def offline_enabled(self) -> bool:
        return get_settings().OFFLINE_ENABLED

    @property
    def store(self) -> OfflineStore:
        return get_offline_store()

    async def with_offline_fallback(
        self,
        online_operation: Callable[[], Awaitable[T]],
        offline_operation: Callable[[], Awaitable[T]],
        operation_name: str
    ) -> T:
        """Try the backend, fall back to the cache on failure"""
        if not self.offline_enabled:
            return await online_operation()

        if self.is_online:
            try:
                return await online_operation()
            except Exception as e:
                logger.warning(f"{operation_name} failed online, trying offline: {e}")

        return await offline_operation()

    def queue_write(
        self,
        table: str,
        payload: Dict[str, Any],
        record_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Keep a write locally until the backend is reachable"""
        if not self.offline_enabled:
            raise ApiError(OFFLINE_MESSAGE, 503, "OFFLINE")
        row = self.store.save_local(table, payload, record_id)
        logger.info(f"Queued offline write: {table}/{row['id']}")
        return row

    def cache_rows(self, table: str, rows, key="id") -> None:
        """Mirror fetched rows, leaving local pending edits untouched"""
        if not self.offline_enabled:
            return
        try:
            for row in rows or []:
                record_id = key(row) if callable(key) else str(row.get(key))
                existing = self.store.get_record(table, record_id)
                if existing and existing.sync_status != SYNC_SYNCED:
                    continue
                self.store.put(table, record_id, row)
        except Exception as e:
            logger.debug(f"Cache refresh skipped for {table}: {e}")

    async def write_with_fallback(
        self,
        online_operation: Callable[[], Awaitable[T]],
        table: str,
        payload: Dict[str, Any],
        operation_name: str,
        record_id: Optional[str] = None
    ):
        """
        Run a backend write; queue it locally when the backend is unreachable

        Errors raised while the backend is reachable (bad input, constraint
        violations) are re-raised unchanged.
        """
        if self.is_online or not self.offline_enabled:
            try:
                return await online_operation()
            except Exception as e:
                if not self.offline_enabled or is_connected():
                    raise
                connectivity.set_online(False)
                logger.warning(f"{operation_name} failed, saving offline: {e}")

        return self.queue_write(table, payload, record_id)

    async def delete_with_fallback(
        self,
        online_operation: Callable[[], Awaitable[Any]],
        table: str,
        record_id: str,
        operation_name: str
    ) -> bool:
        """Run a backend delete; leave a tombstone when the backend is unreachable"""
        if self.is_online or not self.offline_enabled:
            try:
                await online_operation()
                if self.offline_enabled:
                    self.store.delete(table, record_id)
                return True
            except Exception as e:
                if not self.offline_enabled or is_connected():
                    raise
                connectivity.set_online(False)
                logger.warning(f"{operation_name} failed, deleting offline: {e}")

        self.store.mark_deleted(table, record_id)
        logger.info(f"Queued offline delete: {table}/{record_id}")
        return True
