"""Durable store for saved trips."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import psycopg

from .schemas import SavedTrip, Trip

TRIP_COLUMNS = ("id", "origin", "destination", "cost", "duration", "type", "display_name", "created_at")


class RecordExistsError(Exception):
    """Raised by ``create`` when the primary key is already taken."""


class TripStore:
    """Abstract record store for saved trips."""

    async def setup(self) -> None:
        pass

    async def create(self, trip: Trip) -> SavedTrip:
        raise NotImplementedError

    async def find_unique(self, trip_id: str) -> Optional[SavedTrip]:
        raise NotImplementedError

    async def find_many(self, limit: int, offset: int) -> List[SavedTrip]:
        raise NotImplementedError

    async def delete(self, trip_id: str) -> None:
        raise NotImplementedError


def _row_to_trip(cols: Sequence[str], row: Sequence[object]) -> SavedTrip:
    data: Dict[str, object] = dict(zip(cols, row))
    return SavedTrip.model_validate(data)


class PostgresTripStore(TripStore):
    def __init__(self, dsn: str) -> None:
        self.dsn = dsn

    async def setup(self) -> None:  # pragma: no cover - DDL
        sql = """
        CREATE TABLE IF NOT EXISTS trips (
            id TEXT PRIMARY KEY,
            origin TEXT NOT NULL,
            destination TEXT NOT NULL,
            cost INTEGER NOT NULL,
            duration INTEGER NOT NULL,
            type TEXT NOT NULL,
            display_name TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        CREATE INDEX IF NOT EXISTS trips_created_at_idx ON trips (created_at DESC);
        """
        async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql)
            await conn.commit()

    async def create(self, trip: Trip) -> SavedTrip:
        sql = f"""
        INSERT INTO trips (id, origin, destination, cost, duration, type, display_name)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        RETURNING {", ".join(TRIP_COLUMNS)}
        """
        params = (
            trip.id,
            trip.origin,
            trip.destination,
            int(trip.cost),
            int(trip.duration),
            trip.type,
            trip.display_name,
        )
        try:
            async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
                async with conn.cursor() as cur:
                    await cur.execute(sql, params)
                    cols = [c.name for c in cur.description]
                    row = await cur.fetchone()
                await conn.commit()
        except psycopg.errors.UniqueViolation as exc:
            raise RecordExistsError(f"trip {trip.id} already exists") from exc
        return _row_to_trip(cols, row)

    async def find_unique(self, trip_id: str) -> Optional[SavedTrip]:
        sql = f"SELECT {', '.join(TRIP_COLUMNS)} FROM trips WHERE id = %s"
        async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (trip_id,))
                cols = [c.name for c in cur.description]
                row = await cur.fetchone()
        if not row:
            return None
        return _row_to_trip(cols, row)

    async def find_many(self, limit: int, offset: int) -> List[SavedTrip]:
        sql = f"""
        SELECT {", ".join(TRIP_COLUMNS)}
        FROM trips
        ORDER BY created_at DESC
        LIMIT %s OFFSET %s
        """
        async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (int(limit), int(offset)))
                cols = [c.name for c in cur.description]
                rows = await cur.fetchall()
        return [_row_to_trip(cols, row) for row in rows]

    async def delete(self, trip_id: str) -> None:
        async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
            async with conn.cursor() as cur:
                await cur.execute("DELETE FROM trips WHERE id = %s", (trip_id,))
            await conn.commit()
