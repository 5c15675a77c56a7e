"""SQLite-backed key-value store."""

import json
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from poker_tracker.errors import StorageError
from poker_tracker.services.store import KeyValueStore

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT (datetime('now'))
);
"""


@dataclass
class SqliteKeyValueStore(KeyValueStore):
    """Key-value store kept in a single SQLite table."""

    connection: sqlite3.Connection

    @classmethod
    def create(cls, path: str | Path) -> "SqliteKeyValueStore":
        """Open (or create) the database file and ensure the schema exists."""
        try:
            if str(path) != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(str(path), check_same_thread=False)
            connection.executescript(SCHEMA_SQL)
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"Cannot open database at {path}: {exc}") from exc
        return cls(connection=connection)

    def load(self, key: str) -> object | None:
        """Return the decoded value for a key."""
        try:
            row = self.connection.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {key}: {exc}") from exc
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as exc:
            raise StorageError(f"Stored value for {key} is not valid JSON") from exc

    def save(self, key: str, value: object) -> None:
        """Insert or replace the value for a key."""
        try:
            payload = json.dumps(value)
            with self.connection:
                self.connection.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, datetime('now'))
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, payload),
                )
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise StorageError(f"Failed to write {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        """Delete a key if it exists."""
        try:
            with self.connection:
                self.connection.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc

    def close(self) -> None:
        """Close the underlying connection."""
        self.connection.close()
