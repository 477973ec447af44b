"""Key-value storage backing the wallet, preferences and accounts."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Protocol


class StorageError(Exception):
    """Raised when the underlying store cannot be read or written."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def write_many(self, items: Mapping[str, Optional[str]]) -> None: ...


class SqliteStore:
    def __init__(self, db_path: str, namespace: str = "") -> None:
        self.db_path = Path(db_path)
        self.namespace = namespace
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"cannot open {self.db_path}: {exc}") from exc
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(str(exc)) from exc
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self.connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (namespace, key)
                )
                """
            )

    def scoped(self, namespace: str) -> "SqliteStore":
        """Return a store over the same file whose keys live in ``namespace``."""
        return SqliteStore(str(self.db_path), namespace=namespace)

    def get(self, key: str) -> Optional[str]:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT value FROM kv WHERE namespace = ? AND key = ?",
                (self.namespace, key),
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self.write_many({key: value})

    def remove(self, key: str) -> None:
        self.write_many({key: None})

    def write_many(self, items: Mapping[str, Optional[str]]) -> None:
        """Write every item in a single transaction; ``None`` removes the key."""
        with self.connection() as conn:
            for key, value in items.items():
                if value is None:
                    conn.execute(
                        "DELETE FROM kv WHERE namespace = ? AND key = ?",
                        (self.namespace, key),
                    )
                else:
                    conn.execute(
                        """
                        INSERT INTO kv (namespace, key, value) VALUES (?, ?, ?)
                        ON CONFLICT(namespace, key) DO UPDATE SET value = excluded.value
                        """,
                        (self.namespace, key, value),
                    )


class MemoryStore:
    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)

    def write_many(self, items: Mapping[str, Optional[str]]) -> None:
        staged = dict(self.data)
        for key, value in items.items():
            if value is None:
                staged.pop(key, None)
            else:
                staged[key] = value
        self.data = staged
