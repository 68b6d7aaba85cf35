from __future__ import annotations
import aiosqlite
from typing import List, Optional
from ..domain.models import AtmosphericReading, Observation, RainReading, WindReading


_COLUMNS = (
    "timestamp,wind_speed,wind_direction,wind_gust_speed,"
    "rainfall,temperature,humidity,pressure,interval_secs"
)


class StorageError(Exception):
    """A read or write against the observation store failed."""


class SQLiteObservationStore:
    def __init__(self, path: str) -> None:
        self._path = path

    async def init(self) -> None:
        try:
            async with aiosqlite.connect(self._path) as db:
                await db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS observations (
                        timestamp INTEGER NOT NULL,
                        wind_speed REAL,
                        wind_direction REAL,
                        wind_gust_speed REAL,
                        rainfall REAL,
                        temperature REAL,
                        humidity REAL,
                        pressure REAL,
                        interval_secs INTEGER,
                        published BOOLEAN DEFAULT false
                    )
                    """
                )
                await db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_observations_ts ON observations(timestamp)"
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"failed to initialise {self._path}: {e}") from e

    async def write(self, o: Observation) -> None:
        try:
            async with aiosqlite.connect(self._path) as db:
                await db.execute(
                    f"INSERT INTO observations({_COLUMNS}) VALUES (?,?,?,?,?,?,?,?,?)",
                    (
                        int(o.timestamp),
                        o.wind.speed,
                        o.wind.direction,
                        o.wind.gust,
                        o.rain.rainfall,
                        o.atmospheric.temperature,
                        o.atmospheric.humidity,
                        o.atmospheric.pressure,
                        int(o.interval_seconds),
                    ),
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"failed to write observation {o.timestamp}: {e}") from e

    async def read_unpublished(self, limit: Optional[int] = None) -> List[Observation]:
        sql = (
            f"SELECT rowid,{_COLUMNS},published FROM observations "
            "WHERE published = false ORDER BY timestamp ASC, rowid ASC"
        )
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (int(limit),)

        try:
            async with aiosqlite.connect(self._path) as db:
                cur = await db.execute(sql, params)
                rows = await cur.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"failed to read unpublished observations: {e}") from e

        out: list[Observation] = []
        for rowid, ts, speed, direction, gust, rain, temp, hum, pres, secs, pub in rows:
            out.append(
                Observation(
                    id=rowid,
                    timestamp=int(ts),
                    wind=WindReading(speed=speed, direction=direction, gust=gust),
                    rain=RainReading(rainfall=rain),
                    atmospheric=AtmosphericReading(
                        temperature=temp, humidity=hum, pressure=pres
                    ),
                    interval_seconds=int(secs),
                    published=bool(pub),
                )
            )
        return out

    async def mark_published(
        self, min_timestamp: int, max_timestamp: int, up_to_id: Optional[int] = None
    ) -> None:
        """Flag rows in the closed range [min_timestamp, max_timestamp] as published.

        With ``up_to_id`` only rows whose rowid is not above it are touched,
        which keeps rows written after the batch was read out of the update.
        """
        sql = "UPDATE observations SET published = true WHERE timestamp BETWEEN ? AND ?"
        params: tuple = (int(min_timestamp), int(max_timestamp))
        if up_to_id is not None:
            sql += " AND rowid <= ?"
            params += (int(up_to_id),)

        try:
            async with aiosqlite.connect(self._path) as db:
                await db.execute(sql, params)
                await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"failed to mark observations published: {e}") from e

    async def count_unpublished(self) -> int:
        try:
            async with aiosqlite.connect(self._path) as db:
                cur = await db.execute("SELECT COUNT(*) FROM observations WHERE published = false")
                (count,) = await cur.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(f"failed to count unpublished observations: {e}") from e
        return int(count)
