"""SQLite-backed scoped key-value store"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import aiosqlite
from loguru import logger


class SQLiteKeyValueStore:
    """
    Flat key-value storage scoped by namespace.

    Plays the role of browser local storage: values are opaque strings
    (callers store JSON) and every write replaces the whole value. Several
    scopes can share one database file without seeing each other's keys.
    """

    def __init__(self, db_path: Union[Path, str], scope: str = "default") -> None:
        self.db_path = Path(db_path)
        self.scope = scope
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Establish database connection"""
        # Create parent directory if needed
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(str(self.db_path))
        self._conn.row_factory = aiosqlite.Row

        await self._setup_schema()
        logger.info(f"Connected to key-value store: {self.db_path} (scope={self.scope})")

    async def close(self) -> None:
        """Close database connection"""
        if self._conn:
            await self._conn.close()
            self._conn = None
            logger.info("Key-value store connection closed")

    @property
    def connected(self) -> bool:
        return self._conn is not None

    async def _setup_schema(self) -> None:
        if not self._conn:
            raise RuntimeError("Database not connected")

        await self._conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                scope TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                updated_at INTEGER DEFAULT 0,
                PRIMARY KEY (scope, key)
            )
        """)

        await self._conn.commit()
        logger.debug("Key-value schema initialized")

    async def get(self, key: str) -> Optional[str]:
        """Read a value, or None when the key is absent"""
        if not self._conn:
            raise RuntimeError("Database not connected")

        cursor = await self._conn.execute(
            "SELECT value FROM kv_store WHERE scope = ? AND key = ?",
            (self.scope, key),
        )
        row = await cursor.fetchone()

        return row["value"] if row else None

    async def set(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one"""
        if not self._conn:
            raise RuntimeError("Database not connected")

        await self._conn.execute(
            """
            INSERT OR REPLACE INTO kv_store (scope, key, value, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (self.scope, key, value, int(datetime.now().timestamp())),
        )

        await self._conn.commit()
        logger.debug(f"Stored {key} ({len(value)} chars) in scope {self.scope}")

    async def delete(self, key: str) -> bool:
        """Remove a key. Returns True when something was deleted."""
        if not self._conn:
            raise RuntimeError("Database not connected")

        cursor = await self._conn.execute(
            "DELETE FROM kv_store WHERE scope = ? AND key = ?",
            (self.scope, key),
        )

        await self._conn.commit()
        return cursor.rowcount > 0

    async def keys(self) -> list[str]:
        """List keys in this scope"""
        if not self._conn:
            raise RuntimeError("Database not connected")

        cursor = await self._conn.execute(
            "SELECT key FROM kv_store WHERE scope = ? ORDER BY key",
            (self.scope,),
        )
        rows = await cursor.fetchall()

        return [row["key"] for row in rows]
