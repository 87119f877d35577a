"""Unit tests for SQLite connection pool."""

import asyncio
from pathlib import Path

import aiosqlite
import pytest

from src.config import Settings, StorageSettings
from src.infrastructure.storage.sqlite.connection import ConnectionPool


class TestConnectionPoolInit:
    """Tests for ConnectionPool construction."""

    def test_defaults(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        assert pool.db_path == temp_db_path
        assert pool.pool_size == 5
        assert pool.busy_timeout == 30000
        assert pool.initialized is False

    def test_from_settings(self, tmp_path: Path):
        settings = Settings(
            storage=StorageSettings(data_dir=tmp_path, db_name="x.db", pool_size=3, busy_timeout=1000)
        )
        pool = ConnectionPool.from_settings(settings)
        assert pool.db_path == tmp_path / "x.db"
        assert pool.pool_size == 3
        assert pool.busy_timeout == 1000


class TestConnectionPoolInitialize:
    """Tests for ConnectionPool.initialize()."""

    async def test_initialize_creates_directory(self, tmp_path: Path):
        """Initialize creates database directory if not exists."""
        db_path = tmp_path / "subdir" / "nested" / "test.db"
        pool = ConnectionPool(db_path, pool_size=1)

        await pool.initialize()
        assert db_path.parent.exists()
        await pool.close()

    async def test_initialize_creates_connections(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=3)
        await pool.initialize()

        assert len(pool._connections) == 3
        assert pool._pool.qsize() == 3
        await pool.close()

    async def test_initialize_is_idempotent(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2)
        await pool.initialize()
        await pool.initialize()

        assert len(pool._connections) == 2
        await pool.close()

    async def test_connections_use_wal_and_rows(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        async with pool.acquire() as conn:
            cursor = await conn.execute("PRAGMA journal_mode")
            row = await cursor.fetchone()
            assert row[0].lower() == "wal"
            assert conn.row_factory is aiosqlite.Row
        await pool.close()


class TestConnectionPoolUsage:
    async def test_acquire_returns_connection_to_pool(self, temp_db_path: Path):
        async with ConnectionPool(temp_db_path, pool_size=1) as pool:
            async with pool.acquire():
                assert pool.in_use == 1
            assert pool.in_use == 0
        assert pool.initialized is False

    async def test_waiters_share_a_small_pool(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)

        async def query(n: int) -> int:
            async with pool.acquire() as conn:
                cursor = await conn.execute("SELECT ?", (n,))
                row = await cursor.fetchone()
                return row[0]

        results = await asyncio.gather(*(query(n) for n in range(5)))
        assert results == [0, 1, 2, 3, 4]
        await pool.close()

    async def test_transaction_commits(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (x INTEGER)")
            await conn.execute("INSERT INTO t VALUES (1)")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM t")
            assert (await cursor.fetchone())[0] == 1
        await pool.close()

    async def test_transaction_rolls_back_on_error(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (x INTEGER)")

        with pytest.raises(RuntimeError):
            async with pool.transaction() as conn:
                await conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("boom")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM t")
            assert (await cursor.fetchone())[0] == 0
        await pool.close()

    async def test_ping_reports_latency(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        latency = await pool.ping()
        assert latency >= 0
        await pool.close()

    async def test_close_resets_pool(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2)
        await pool.initialize()
        await pool.close()

        assert pool.initialized is False
        assert pool._connections == []
        assert pool._pool.qsize() == 0
