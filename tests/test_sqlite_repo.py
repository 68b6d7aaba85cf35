"""Tests for the SQLite observation store."""

import aiosqlite
import pytest

from weatherstn.storage.sqlite_repo import SQLiteObservationStore, StorageError

from conftest import make_observation


async def published_flags(path):
    async with aiosqlite.connect(path) as db:
        cur = await db.execute("SELECT timestamp, published FROM observations ORDER BY rowid")
        return {ts: bool(pub) for ts, pub in await cur.fetchall()}


class TestObservationStore:
    @pytest.mark.asyncio
    async def test_write_and_read_back(self, store):
        await store.init()
        obs = make_observation(1000, base=12.5, interval=30)
        await store.write(obs)

        rows = await store.read_unpublished()

        assert len(rows) == 1
        row = rows[0]
        assert row.id is not None
        assert row.timestamp == 1000
        assert row.atmospheric == obs.atmospheric
        assert row.wind == obs.wind
        assert row.rain == obs.rain
        assert row.interval_seconds == 30
        assert row.published is False

    @pytest.mark.asyncio
    async def test_empty_store_is_not_an_error(self, store):
        await store.init()
        assert await store.read_unpublished() == []
        assert await store.count_unpublished() == 0

    @pytest.mark.asyncio
    async def test_unpublished_ordered_by_timestamp(self, store):
        await store.init()
        for ts in (300, 100, 200):
            await store.write(make_observation(ts))

        rows = await store.read_unpublished()

        assert [r.timestamp for r in rows] == [100, 200, 300]

    @pytest.mark.asyncio
    async def test_limit(self, store):
        await store.init()
        for ts in (1, 2, 3):
            await store.write(make_observation(ts))

        rows = await store.read_unpublished(limit=2)
        assert [r.timestamp for r in rows] == [1, 2]

    @pytest.mark.asyncio
    async def test_mark_published_closed_range_only(self, store, tmp_path):
        await store.init()
        for ts in (10, 20, 30, 40, 50):
            await store.write(make_observation(ts))

        await store.mark_published(20, 40)

        flags = await published_flags(str(tmp_path / "observations.db"))
        assert flags == {10: False, 20: True, 30: True, 40: True, 50: False}
        remaining = await store.read_unpublished()
        assert [r.timestamp for r in remaining] == [10, 50]
        assert all(not r.published for r in remaining)
        assert await store.count_unpublished() == 2

    @pytest.mark.asyncio
    async def test_mark_published_is_one_way(self, store):
        await store.init()
        await store.write(make_observation(10))
        await store.mark_published(10, 10)
        await store.mark_published(10, 10)

        assert await store.read_unpublished() == []

    @pytest.mark.asyncio
    async def test_up_to_id_spares_rows_written_after_read(self, store):
        await store.init()
        await store.write(make_observation(100, base=1.0))
        await store.write(make_observation(101, base=2.0))
        batch = await store.read_unpublished()

        # Same second as the batch's last row, written after the batch was read
        await store.write(make_observation(101, base=3.0))
        await store.mark_published(
            batch[0].timestamp, batch[-1].timestamp, up_to_id=max(r.id for r in batch)
        )

        remaining = await store.read_unpublished()
        assert len(remaining) == 1
        assert remaining[0].timestamp == 101
        assert remaining[0].atmospheric.temperature == 3.0

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self, store):
        await store.init()
        await store.write(make_observation(1))
        await store.init()

        assert await store.count_unpublished() == 1

    @pytest.mark.asyncio
    async def test_write_without_table_raises_storage_error(self, store):
        with pytest.raises(StorageError):
            await store.write(make_observation(1))

    @pytest.mark.asyncio
    async def test_unopenable_path_raises_storage_error(self, tmp_path):
        bad = SQLiteObservationStore(str(tmp_path / "missing-dir" / "obs.db"))
        with pytest.raises(StorageError):
            await bad.read_unpublished()
