"""SQLite storage driver acting as a client-local key-value store."""

import sqlite3
import threading
from pathlib import Path
from typing import Any

from ..exceptions import StorageError
from .base import JSON_CONTENT_TYPE, Driver


class SQLiteDriver(Driver):
    """Persists artifacts as rows of a single key-value table."""

    name = "sqlite"

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self.conn: sqlite3.Connection | None = sqlite3.connect(
            str(self.db_path), check_same_thread=False
        )
        self.connection.row_factory = sqlite3.Row
        self.initialize()

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the connection, ensuring it exists."""
        if self.conn is None:
            raise RuntimeError("Database connection not initialized")
        return self.conn

    def initialize(self) -> None:
        """Create database schema."""
        self.connection.execute("PRAGMA journal_mode=WAL")
        self.connection.executescript("""
            CREATE TABLE IF NOT EXISTS artifacts (
                path TEXT PRIMARY KEY,
                content_type TEXT NOT NULL,
                data BLOB NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
        """)
        self.connection.commit()

    def read(self, path: str) -> bytes | None:
        """Read artifact bytes from the database."""
        with self._lock:
            try:
                cursor = self.connection.execute(
                    "SELECT data FROM artifacts WHERE path = ?", (path,)
                )
                row = cursor.fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Cannot read {path}: {e}", path=path) from e
            return bytes(row["data"]) if row else None

    def write(
        self, path: str, data: bytes, content_type: str = JSON_CONTENT_TYPE
    ) -> None:
        """Insert or replace an artifact."""
        with self._lock:
            try:
                self.connection.execute(
                    """
                    INSERT INTO artifacts (path, content_type, data) VALUES (?, ?, ?)
                    ON CONFLICT(path) DO UPDATE SET
                        content_type = excluded.content_type,
                        data = excluded.data,
                        updated_at = CURRENT_TIMESTAMP
                """,
                    (path, content_type, sqlite3.Binary(data)),
                )
                self.connection.commit()
            except sqlite3.Error as e:
                self.connection.rollback()
                raise StorageError(f"Cannot write {path}: {e}", path=path) from e

    def delete(self, path: str) -> bool:
        """Delete an artifact row."""
        with self._lock:
            try:
                cursor = self.connection.execute(
                    "DELETE FROM artifacts WHERE path = ?", (path,)
                )
                self.connection.commit()
            except sqlite3.Error as e:
                raise StorageError(f"Cannot delete {path}: {e}", path=path) from e
            return cursor.rowcount > 0

    def keys(self, prefix: str = "") -> list[str]:
        """List artifact paths."""
        with self._lock:
            cursor = self.connection.execute(
                "SELECT path FROM artifacts WHERE substr(path, 1, ?) = ? ORDER BY path",
                (len(prefix), prefix),
            )
            return [row["path"] for row in cursor]

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.connection.close()
            self.conn = None

    def describe(self) -> dict[str, Any]:
        return {"driver": self.name, "db_path": str(self.db_path)}
