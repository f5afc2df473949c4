"""
Offline cache

Local SQLite copy of backend rows plus the queue of writes made while the
backend was unreachable. Rows are stored in their backend shape so the same
mapping code serves online and offline reads.
"""
import json
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from loguru import logger


SYNC_SYNCED = "synced"
SYNC_PENDING = "pending"
SYNC_DELETED = "deleted"  # tombstone, replayed as a remote delete

LOCAL_ID_PREFIX = "local_"

OFFLINE_TABLES = ("guardians", "teams", "players", "events", "attendance")

SCHEMA = """
CREATE TABLE IF NOT EXISTS records (
    table_name TEXT NOT NULL,
    record_id TEXT NOT NULL,
    payload TEXT NOT NULL,
    sync_status TEXT NOT NULL DEFAULT 'synced',
    last_modified TEXT NOT NULL,
    PRIMARY KEY (table_name, record_id)
);
CREATE INDEX IF NOT EXISTS idx_records_status ON records (table_name, sync_status);
CREATE TABLE IF NOT EXISTS sync_metadata (
    table_name TEXT PRIMARY KEY,
    last_sync_time TEXT NOT NULL
);
"""


@dataclass
class OfflineRecord:
    """A cached row and its sync state"""
    table_name: str
    record_id: str
    payload: Dict[str, Any]
    sync_status: str
    last_modified: datetime

    @property
    def is_local(self) -> bool:
        return self.record_id.startswith(LOCAL_ID_PREFIX)


def new_local_id() -> str:
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"


def attendance_key(player_id: str, event_id: str) -> str:
    """Attendance rows are keyed by player and event"""
    return f"{player_id}:{event_id}"


class OfflineStore:
    """SQLite-backed offline cache"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._lock = Lock()
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        # A single connection keeps ":memory:" databases alive
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._lock:
            self._conn.executescript(SCHEMA)
            self._conn.commit()

    def close(self):
        with self._lock:
            self._conn.close()

    # ==================== rows ====================

    def _write(self, table: str, record_id: str, payload: Dict[str, Any], status: str):
        self._check_table(table)
        now = datetime.now().isoformat()
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO records "
                "(table_name, record_id, payload, sync_status, last_modified) "
                "VALUES (?, ?, ?, ?, ?)",
                (table, record_id, json.dumps(payload, default=str), status, now)
            )
            self._conn.commit()

    def put(self, table: str, record_id: str, payload: Dict[str, Any]) -> None:
        """Store a copy of a remote row as synced"""
        self._write(table, record_id, {**payload, "id": payload.get("id", record_id)}, SYNC_SYNCED)

    def save_local(
        self,
        table: str,
        payload: Dict[str, Any],
        record_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Store a local change as pending; new rows get a local_ id"""
        record_id = record_id or payload.get("id") or new_local_id()
        existing = self.get_record(table, record_id)
        merged = {**(existing.payload if existing else {}), **payload, "id": record_id}
        self._write(table, record_id, merged, SYNC_PENDING)
        return merged

    def mark_deleted(self, table: str, record_id: str) -> None:
        """Delete locally; remote rows keep a tombstone until replayed"""
        if record_id.startswith(LOCAL_ID_PREFIX):
            self.delete(table, record_id)
            return
        existing = self.get_record(table, record_id)
        payload = existing.payload if existing else {"id": record_id}
        self._write(table, record_id, payload, SYNC_DELETED)

    def get_record(self, table: str, record_id: str) -> Optional[OfflineRecord]:
        self._check_table(table)
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM records WHERE table_name = ? AND record_id = ?",
                (table, record_id)
            ).fetchone()
        return self._to_record(row) if row else None

    def get(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Cached payload, ignoring tombstones"""
        record = self.get_record(table, record_id)
        if not record or record.sync_status == SYNC_DELETED:
            return None
        return record.payload

    def list(self, table: str, **filters) -> List[Dict[str, Any]]:
        """Cached payloads matching every field filter"""
        self._check_table(table)
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM records WHERE table_name = ? AND sync_status != ? "
                "ORDER BY last_modified",
                (table, SYNC_DELETED)
            ).fetchall()
        payloads = [json.loads(row["payload"]) for row in rows]
        for field, value in filters.items():
            payloads = [p for p in payloads if p.get(field) == value]
        return payloads

    def delete(self, table: str, record_id: str) -> None:
        self._check_table(table)
        with self._lock:
            self._conn.execute(
                "DELETE FROM records WHERE table_name = ? AND record_id = ?",
                (table, record_id)
            )
            self._conn.commit()

    def mark_synced(self, table: str, record_id: str) -> None:
        with self._lock:
            self._conn.execute(
                "UPDATE records SET sync_status = ? WHERE table_name = ? AND record_id = ?",
                (SYNC_SYNCED, table, record_id)
            )
            self._conn.commit()

    def replace_id(self, table: str, old_id: str, remote_row: Dict[str, Any]) -> None:
        """Swap a local_ record for the row the backend created"""
        self.delete(table, old_id)
        self.put(table, str(remote_row["id"]), remote_row)

    def pending(self, table: str) -> List[OfflineRecord]:
        """Records waiting to be replayed (changes and tombstones)"""
        self._check_table(table)
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM records WHERE table_name = ? AND sync_status IN (?, ?) "
                "ORDER BY last_modified",
                (table, SYNC_PENDING, SYNC_DELETED)
            ).fetchall()
        return [self._to_record(row) for row in rows]

    def pending_count(self) -> int:
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(*) AS n FROM records WHERE sync_status IN (?, ?)",
                (SYNC_PENDING, SYNC_DELETED)
            ).fetchone()
        return row["n"]

    # ==================== sync metadata ====================

    def update_sync_metadata(self, table: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO sync_metadata (table_name, last_sync_time) VALUES (?, ?)",
                (table, datetime.now().isoformat())
            )
            self._conn.commit()

    def last_sync_time(self, table: Optional[str] = None) -> Optional[datetime]:
        """Last sync of one table, or the most recent across all tables"""
        with self._lock:
            if table:
                row = self._conn.execute(
                    "SELECT last_sync_time FROM sync_metadata WHERE table_name = ?",
                    (table,)
                ).fetchone()
            else:
                row = self._conn.execute(
                    "SELECT MAX(last_sync_time) AS last_sync_time FROM sync_metadata"
                ).fetchone()
        if not row or not row["last_sync_time"]:
            return None
        return datetime.fromisoformat(row["last_sync_time"])

    # ==================== helpers ====================

    @staticmethod
    def _check_table(table: str):
        if table not in OFFLINE_TABLES:
            raise ValueError(f"Unknown offline table: {table}")

    @staticmethod
    def _to_record(row: sqlite3.Row) -> OfflineRecord:
        return OfflineRecord(
            table_name=row["table_name"],
            record_id=row["record_id"],
            payload=json.loads(row["payload"]),
            sync_status=row["sync_status"],
            last_modified=datetime.fromisoformat(row["last_modified"])
        )


_store: Optional[OfflineStore] = None


def get_offline_store() -> OfflineStore:
    """Shared offline store (opened on first use)"""
    global _store
    if _store is None:
        from app.config import get_settings
        path = get_settings().OFFLINE_DB_PATH
        _store = OfflineStore(path)
        logger.info(f"Offline cache opened: {path}")
    return _store


def set_offline_store(store: Optional[OfflineStore]) -> None:
    global _store
    _store = store
