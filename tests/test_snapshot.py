"""Tests for SQLite memory snapshots."""

from pathlib import Path

import pytest

from attune.memory.snapshot import SQLiteSnapshotStore
from attune.memory.store import TieredMemoryStore


@pytest.fixture
async def snapshots(tmp_path: Path):
    """Create a temporary snapshot store."""
    store = SQLiteSnapshotStore(tmp_path / "snapshots.db")
    await store.connect()
    yield store
    await store.close()


@pytest.mark.asyncio
async def test_requires_connect(tmp_path: Path):
    snapshots = SQLiteSnapshotStore(tmp_path / "unused.db")
    with pytest.raises(RuntimeError):
        await snapshots.load(TieredMemoryStore(), "u1")


@pytest.mark.asyncio
async def test_save_and_load_user(snapshots: SQLiteSnapshotStore, clock):
    memory = TieredMemoryStore(clock=clock)
    memory.store_conversation("u1", "s1", "hello", "conversation")
    memory.store_conversation("u1", "s1", "prefers async updates", "preference")
    memory.store_semantic("u1", "updates", ["email"], ["weekly"])

    await snapshots.save(memory, "u1")

    restored = TieredMemoryStore(clock=clock)
    assert await snapshots.load(restored, "u1") is True
    assert [e.id for e in restored.get_conversation("u1")] == [
        e.id for e in memory.get_conversation("u1")
    ]
    assert restored.get_long_term("u1")[0].content == "prefers async updates"
    assert restored.get_semantic("u1", "updates").insights == ["weekly"]


@pytest.mark.asyncio
async def test_load_missing_user(snapshots: SQLiteSnapshotStore):
    assert await snapshots.load(TieredMemoryStore(), "nobody") is False


@pytest.mark.asyncio
async def test_save_all_and_load_all(snapshots: SQLiteSnapshotStore, clock):
    memory = TieredMemoryStore(clock=clock)
    memory.store_conversation("u1", "s1", "one", "conversation")
    memory.store_conversation("u2", "s2", "two", "conversation")

    assert await snapshots.save_all(memory) == 2

    restored = TieredMemoryStore(clock=clock)
    assert await snapshots.load_all(restored) == 2
    assert sorted(restored.users()) == ["u1", "u2"]


@pytest.mark.asyncio
async def test_load_all_skips_corrupt_rows(snapshots: SQLiteSnapshotStore, clock):
    memory = TieredMemoryStore(clock=clock)
    memory.store_conversation("u1", "s1", "one", "conversation")
    await snapshots.save(memory, "u1")
    await snapshots.conn.execute(
        "INSERT INTO memory_snapshots (user_id, payload, updated_at) VALUES (?, ?, ?)",
        ("broken", "{not json", "2024-01-01T00:00:00"),
    )
    await snapshots.conn.commit()

    restored = TieredMemoryStore(clock=clock)
    assert await snapshots.load_all(restored) == 1
    assert restored.users() == ["u1"]


@pytest.mark.asyncio
async def test_delete(snapshots: SQLiteSnapshotStore, clock):
    memory = TieredMemoryStore(clock=clock)
    memory.store_conversation("u1", "s1", "one", "conversation")
    await snapshots.save(memory, "u1")

    assert await snapshots.delete("u1") is True
    assert await snapshots.delete("u1") is False
