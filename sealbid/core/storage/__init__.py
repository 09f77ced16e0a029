"""
Record Storage Module.

Provides transactional record stores for engine state:
- MemoryRecordStore: in-process, for tests and embedding
- SQLiteRecordStore: persistent, survives restarts
- RecordBook: typed accessors over either store
"""

from sealbid.core.storage.record_store import MemoryRecordStore, Record, RecordStore
from sealbid.core.storage.sqlite_adapter import SQLiteRecordStore
from sealbid.core.storage.record_book import RecordBook, record_key

__all__ = [
    "RecordStore",
    "MemoryRecordStore",
    "SQLiteRecordStore",
    "RecordBook",
    "Record",
    "record_key",
]
