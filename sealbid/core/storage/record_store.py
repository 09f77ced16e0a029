"""
Record Store - transactional key/value storage for engine records.

Records live in named buckets keyed by strings and hold JSON-compatible
dicts. Named counters (RFP ids, badge ids, audit sequence) are owned by the
store and advance inside the same transaction as the records they number.

A transaction is all-or-nothing: any exception raised inside
``with store.transaction():`` discards every write made since the outermost
``transaction()`` was entered. Transactions nest; only the outermost one
commits.
"""

import copy
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sealbid.utils.logger import get_logger

logger = get_logger("storage")

Record = Dict[str, Any]

_MISSING = object()


class RecordStore:
    """
    Base class for record stores.

    Subclasses provide the primitive reads/writes and transaction hooks;
    this class provides the public API and transaction nesting.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._depth = 0

    # =========================================================================
    # Public API
    # =========================================================================

    def get(self, bucket: str, key: str) -> Optional[Record]:
        """Get a record, or None if absent."""
        return self._load(bucket, key)

    def has(self, bucket: str, key: str) -> bool:
        return self._load(bucket, key) is not None

    def put(self, bucket: str, key: str, value: Record) -> None:
        """Insert or replace a record."""
        with self.transaction():
            self._store(bucket, key, value)

    def items(self, bucket: str) -> List[Tuple[str, Record]]:
        """All (key, record) pairs in a bucket, ordered by key."""
        return sorted(self._scan(bucket), key=lambda kv: kv[0])

    def next_id(self, counter: str) -> int:
        """Advance a counter and return its new value (first value is 1)."""
        with self.transaction():
            value = self._load_counter(counter) + 1
            self._store_counter(counter, value)
            return value

    def peek_counter(self, counter: str) -> int:
        """Current counter value without advancing it."""
        return self._load_counter(counter)

    @contextmanager
    def transaction(self) -> Iterator["RecordStore"]:
        """
        Run a block of reads and writes atomically.

        Nested calls join the outermost transaction.
        """
        with self._lock:
            if self._depth == 0:
                self._begin()
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if self._depth == 0:
                    self._rollback()
                    logger.debug("Transaction rolled back")
                raise
            else:
                self._depth -= 1
                if self._depth == 0:
                    self._commit()

    def close(self) -> None:
        """Release resources held by the store."""

    # =========================================================================
    # Primitives (implemented by subclasses)
    # =========================================================================

    def _load(self, bucket: str, key: str) -> Optional[Record]:
        raise NotImplementedError

    def _store(self, bucket: str, key: str, value: Record) -> None:
        raise NotImplementedError

    def _scan(self, bucket: str) -> List[Tuple[str, Record]]:
        raise NotImplementedError

    def _load_counter(self, name: str) -> int:
        raise NotImplementedError

    def _store_counter(self, name: str, value: int) -> None:
        raise NotImplementedError

    def _begin(self) -> None:
        raise NotImplementedError

    def _commit(self) -> None:
        raise NotImplementedError

    def _rollback(self) -> None:
        raise NotImplementedError


class MemoryRecordStore(RecordStore):
    """
    In-process record store.

    Writes go straight to the tables; an undo journal remembers the prior
    value of every key touched in the current transaction so a rollback can
    restore it.
    """

    def __init__(self):
        super().__init__()
        self._tables: Dict[str, Dict[str, Record]] = {}
        self._counters: Dict[str, int] = {}
        self._undo: Dict[Tuple[str, str], Any] = {}
        self._counter_undo: Dict[str, int] = {}

    def _load(self, bucket: str, key: str) -> Optional[Record]:
        record = self._tables.get(bucket, {}).get(key)
        return copy.deepcopy(record) if record is not None else None

    def _store(self, bucket: str, key: str, value: Record) -> None:
        table = self._tables.setdefault(bucket, {})
        if (bucket, key) not in self._undo:
            self._undo[(bucket, key)] = table.get(key, _MISSING)
        table[key] = copy.deepcopy(value)

    def _scan(self, bucket: str) -> List[Tuple[str, Record]]:
        return [(k, copy.deepcopy(v)) for k, v in self._tables.get(bucket, {}).items()]

    def _load_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def _store_counter(self, name: str, value: int) -> None:
        if name not in self._counter_undo:
            self._counter_undo[name] = self._counters.get(name, 0)
        self._counters[name] = value

    def _begin(self) -> None:
        self._undo.clear()
        self._counter_undo.clear()

    def _commit(self) -> None:
        self._undo.clear()
        self._counter_undo.clear()

    def _rollback(self) -> None:
        for (bucket, key), previous in self._undo.items():
            table = self._tables.setdefault(bucket, {})
            if previous is _MISSING:
                table.pop(key, None)
            else:
                table[key] = previous
        for name, previous in self._counter_undo.items():
            self._counters[name] = previous
        self._undo.clear()
        self._counter_undo.clear()
