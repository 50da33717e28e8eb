"""Key-value store the repository writes whole collections into.

Values are opaque strings. ``get`` returns ``None`` for an absent key, which
is distinct from an empty string.
"""
from __future__ import annotations
import os
import sqlite3
import time
from contextlib import closing
from typing import Dict, Optional, Protocol

class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set_many(self, items: Dict[str, str]) -> None: ...

class SqliteKeyValueStore:
    def __init__(self, path: str) -> None:
        self.path = path
        self.migrate()

    def connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path, check_same_thread=False)

    def migrate(self) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        with closing(self.connect()) as conn, conn:
            conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv(
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated INTEGER NOT NULL
            );
            """)

    def get(self, key: str) -> Optional[str]:
        with closing(self.connect()) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
            return row[0] if row else None

    def set_many(self, items: Dict[str, str]) -> None:
        now = int(time.time())
        # one transaction: either every key is written or none is
        with closing(self.connect()) as conn, conn:
            conn.executemany(
                "INSERT OR REPLACE INTO kv(key, value, updated) VALUES(?,?,?)",
                [(k, v, now) for k, v in items.items()],
            )

class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_many(self, items: Dict[str, str]) -> None:
        self._data.update(items)
