import json
import sqlite3
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from sealbid.core.storage.record_store import Record, RecordStore
from sealbid.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteRecordStore(RecordStore):
    """
    SQLite backend for persistent record storage.

    Provides:
    1. Bucketed key-value records (JSON text values).
    2. Named counters advanced inside the caller's transaction.

    Each store transaction maps onto one SQLite transaction, so a failed
    engine operation leaves the database untouched.
    """

    def __init__(self, db_path: Path):
        super().__init__()
        self.db_path = Path(db_path)
        self._conn_local = threading.local()

        if not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()
        logger.info(f"SQLiteRecordStore opened at {self.db_path}")

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            # isolation_level=None: transactions are opened explicitly in _begin
            conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False,
                isolation_level=None,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn_local.conn = conn
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS records (
                bucket TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (bucket, key)
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS counters (
                name TEXT PRIMARY KEY,
                value INTEGER NOT NULL
            )
        """)

    # =========================================================================
    # Record Operations
    # =========================================================================

    def _load(self, bucket: str, key: str) -> Optional[Record]:
        cursor = self._get_conn().execute(
            "SELECT value FROM records WHERE bucket = ? AND key = ?", (bucket, key)
        )
        row = cursor.fetchone()
        return json.loads(row["value"]) if row else None

    def _store(self, bucket: str, key: str, value: Record) -> None:
        self._get_conn().execute(
            "INSERT OR REPLACE INTO records (bucket, key, value) VALUES (?, ?, ?)",
            (bucket, key, json.dumps(value, sort_keys=True)),
        )

    def _scan(self, bucket: str) -> List[Tuple[str, Record]]:
        cursor = self._get_conn().execute(
            "SELECT key, value FROM records WHERE bucket = ? ORDER BY key ASC", (bucket,)
        )
        return [(row["key"], json.loads(row["value"])) for row in cursor]

    # =========================================================================
    # Counters
    # =========================================================================

    def _load_counter(self, name: str) -> int:
        cursor = self._get_conn().execute("SELECT value FROM counters WHERE name = ?", (name,))
        row = cursor.fetchone()
        return row["value"] if row else 0

    def _store_counter(self, name: str, value: int) -> None:
        self._get_conn().execute(
            "INSERT OR REPLACE INTO counters (name, value) VALUES (?, ?)", (name, value)
        )

    # =========================================================================
    # Transactions
    # =========================================================================

    def _begin(self) -> None:
        self._get_conn().execute("BEGIN IMMEDIATE")

    def _commit(self) -> None:
        self._get_conn().execute("COMMIT")

    def _rollback(self) -> None:
        self._get_conn().execute("ROLLBACK")

    def close(self) -> None:
        if hasattr(self._conn_local, "conn"):
            self._conn_local.conn.close()
            del self._conn_local.conn
