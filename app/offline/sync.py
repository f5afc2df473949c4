"""
Offline queue replay

Pushes writes queued in the offline cache to the backend, then pulls a fresh
copy of every mirrored table. There is no conflict resolution: a row with
local pending changes is never overwritten by the remote copy.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from database.supabase_client import get_supabase_client, is_connected
from .client import ApiClient, ApiError, connectivity
from .store import (
    OfflineRecord,
    OfflineStore,
    SYNC_DELETED,
    SYNC_SYNCED,
    attendance_key,
    get_offline_store,
)


@dataclass
class SyncTable:
    """Mapping between an offline table and its backend table"""
    local: str
    remote: str
    key_fields: Tuple[str, ...] = ()  # natural key; empty means the id column

    def local_key(self, row: Dict[str, Any]) -> str:
        if self.key_fields == ("player_id", "event_id"):
            return attendance_key(row["player_id"], row["event_id"])
        return str(row["id"])


# Replay order follows foreign keys: guardians before players, teams before events
SYNC_TABLES: List[SyncTable] = [
    SyncTable("guardians", "guardians"),
    SyncTable("teams", "teams"),
    SyncTable("players", "players"),
    SyncTable("events", "events"),
    SyncTable("attendance", "event_responses", ("player_id", "event_id")),
]

# Columns the backend owns; keys starting with "_" are local annotations
_SERVER_FIELDS = ("id", "created_at", "updated_at")


@dataclass
class SyncResult:
    """Outcome of one replay"""
    success: bool = False
    pushed: Dict[str, int] = field(default_factory=dict)
    pulled: Dict[str, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "skipped": self.skipped,
            "pushed": self.pushed,
            "pulled": self.pulled,
            "errors": self.errors,
            "duration_seconds": round(self.duration_seconds, 3),
        }


class SyncService:
    """Replays the offline queue against the backend"""

    def __init__(self, store: Optional[OfflineStore] = None, api: Optional[ApiClient] = None):
        self._store = store
        self._api = api
        self.sync_in_progress = False
        self.last_result: Optional[SyncResult] = None

    @property
    def store(self) -> OfflineStore:
        return self._store or get_offline_store()

    @property
    def supabase(self):
        return get_supabase_client()

    @property
    def api(self) -> ApiClient:
        """Retrying backend client used for every push and pull"""
        if self._api is None:
            self._api = ApiClient(enable_offline=False)
        return self._api

    @staticmethod
    def _call(func: Callable, *args):
        async def operation():
            return func(*args)
        return operation

    # =============================================
    # Full sync
    # =============================================

    async def perform_full_sync(self) -> SyncResult:
        """Push pending local changes, then refresh every mirrored table"""
        result = SyncResult()
        if not connectivity.is_online or self.sync_in_progress:
            logger.debug("Sync skipped (offline or already running)")
            result.skipped = True
            return result

        self.sync_in_progress = True
        start_time = datetime.now()
        logger.info("Syncing offline cache...")

        try:
            for table in SYNC_TABLES:
                try:
                    result.pushed[table.local] = await self._push_table(table, result)
                    result.pulled[table.local] = await self._pull_table(table)
                    self.store.update_sync_metadata(table.local)
                except Exception as e:
                    logger.error(f"{table.local} sync failed: {e}")
                    result.errors.append(f"{table.local}: {e}")
                    raise

            result.success = not result.errors
            logger.info(f"Sync complete: pushed={result.pushed} pulled={result.pulled}")
        except Exception:
            result.success = False
            logger.error("Sync failed. Changes remain saved locally.")
        finally:
            result.duration_seconds = (datetime.now() - start_time).total_seconds()
            self.sync_in_progress = False
            self.last_result = result

        return result

    async def _push_table(self, table: SyncTable, result: SyncResult) -> int:
        """Replay pending records; one failing record does not stop the rest"""
        pushed = 0
        for record in self.store.pending(table.local):
            response = await self.api.request(
                self._call(self._push_record, table, record),
                f"sync {table.local}/{record.record_id}",
                allow_offline=False
            )
            if response.success:
                pushed += 1
            else:
                logger.error(f"Failed to sync {table.local} {record.record_id}: {response.error}")
                result.errors.append(f"{table.local}/{record.record_id}: {response.error}")
        return pushed

    def _push_record(self, table: SyncTable, record: OfflineRecord):
        remote = self.supabase.table(table.remote)
        data = {
            k: v for k, v in record.payload.items()
            if k not in _SERVER_FIELDS and not k.startswith("_")
        }

        if table.key_fields:
            query = self.supabase.table(table.remote).select("id")
            for key in table.key_fields:
                query = query.eq(key, record.payload[key])
            existing = query.execute().data or []

            if record.sync_status == SYNC_DELETED:
                if existing:
                    remote.delete().eq("id", existing[0]["id"]).execute()
                self.store.delete(table.local, record.record_id)
                return

            if existing:
                response = remote.update(data).eq("id", existing[0]["id"]).execute()
            else:
                response = remote.insert(data).execute()
            row = (response.data or [{**record.payload, **data}])[0]
            self.store.put(table.local, record.record_id, row)
            return

        if record.sync_status == SYNC_DELETED:
            remote.delete().eq("id", record.record_id).execute()
            self.store.delete(table.local, record.record_id)
        elif record.is_local:
            response = remote.insert(data).execute()
            if not response.data:
                raise RuntimeError("insert returned no row")
            self.store.replace_id(table.local, record.record_id, response.data[0])
        else:
            remote.update(data).eq("id", record.record_id).execute()
            self.store.mark_synced(table.local, record.record_id)

    def _fetch_rows(self, remote: str) -> List[Dict[str, Any]]:
        return self.supabase.table(remote).select("*").execute().data or []

    async def _pull_table(self, table: SyncTable) -> int:
        """Download remote rows, keeping local pending edits"""
        response = await self.api.request(
            self._call(self._fetch_rows, table.remote), f"pull {table.remote}", allow_offline=False
        )
        if not response.success:
            raise ApiError(response.error or "pull failed")

        pulled = 0
        for row in response.data or []:
            key = table.local_key(row)
            local = self.store.get_record(table.local, key)
            if local is None or local.sync_status == SYNC_SYNCED:
                self.store.put(table.local, key, row)
                pulled += 1
        return pulled

    # =============================================
    # Triggers and status
    # =============================================

    async def manual_sync(self) -> SyncResult:
        """User-requested sync"""
        if not connectivity.is_online:
            logger.warning("Cannot sync while offline")
            return SyncResult(success=False, errors=["Cannot sync while offline"])
        return await self.perform_full_sync()

    async def check_connectivity(self) -> bool:
        """Refresh the online flag; replay the queue when the backend returns"""
        online = is_connected()
        if connectivity.set_online(online):
            await self.perform_full_sync()
        return online

    def has_pending_changes(self) -> bool:
        return self.store.pending_count() > 0

    def get_sync_status(self) -> Dict[str, Any]:
        last_sync = self.store.last_sync_time()
        return {
            "is_online": connectivity.is_online,
            "sync_in_progress": self.sync_in_progress,
            "last_sync": last_sync.isoformat() if last_sync else None,
            "pending_changes": self.store.pending_count(),
        }


sync_service = SyncService()
