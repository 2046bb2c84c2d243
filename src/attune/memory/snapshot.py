"""SQLite snapshots of per-user memory tiers.

The tiered store itself is process-local. This port adds durability around
it: load snapshots on start, write through after changes. Tier semantics
(caps, ordering, ranking) are untouched.
"""

import json
from datetime import datetime
from pathlib import Path

import aiosqlite

from attune.core.logging import get_logger
from attune.memory.store import TieredMemoryStore

logger = get_logger("memory.snapshot")

SCHEMA = """
CREATE TABLE IF NOT EXISTS memory_snapshots (
    user_id TEXT PRIMARY KEY,
    payload TEXT NOT NULL,  -- JSON export of all tiers
    updated_at TEXT NOT NULL
);
"""


class SQLiteSnapshotStore:
    """One JSON document per user in a SQLite table."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database and create the schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self.db_path)
        await self._conn.executescript(SCHEMA)
        await self._conn.commit()
        logger.info(f"Connected to snapshot store: {self.db_path}")

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Snapshot store not connected. Call connect() first.")
        return self._conn

    async def save(self, store: TieredMemoryStore, user_id: str) -> None:
        """Write one user's tiers."""
        payload = json.dumps(store.export_user(user_id))
        now = datetime.now().isoformat()
        await self.conn.execute(
            """INSERT INTO memory_snapshots (user_id, payload, updated_at)
               VALUES (?, ?, ?)
               ON CONFLICT(user_id) DO UPDATE SET payload=?, updated_at=?""",
            (user_id, payload, now, payload, now),
        )
        await self.conn.commit()
        logger.debug(f"Saved snapshot for {user_id}")

    async def save_all(self, store: TieredMemoryStore) -> int:
        users = store.users()
        for user_id in users:
            await self.save(store, user_id)
        logger.info(f"Saved {len(users)} memory snapshots")
        return len(users)

    async def load(self, store: TieredMemoryStore, user_id: str) -> bool:
        """Restore one user's tiers. Returns False if no snapshot exists."""
        async with self.conn.execute(
            "SELECT payload FROM memory_snapshots WHERE user_id = ?", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return False

        store.import_user(user_id, json.loads(row[0]))
        return True

    async def load_all(self, store: TieredMemoryStore) -> int:
        """Restore every stored user; corrupt rows are skipped."""
        loaded = 0
        async with self.conn.execute("SELECT user_id, payload FROM memory_snapshots") as cursor:
            async for user_id, payload in cursor:
                try:
                    store.import_user(user_id, json.loads(payload))
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning(f"Skipping corrupt snapshot for {user_id}: {e}")
                    continue
                loaded += 1

        logger.info(f"Loaded {loaded} memory snapshots")
        return loaded

    async def delete(self, user_id: str) -> bool:
        cursor = await self.conn.execute(
            "DELETE FROM memory_snapshots WHERE user_id = ?", (user_id,)
        )
        await self.conn.commit()
        return cursor.rowcount > 0
