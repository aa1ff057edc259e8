"""Key/value cache stores with expiry, and the cache key formats."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import psycopg
import redis.asyncio as redis

logger = logging.getLogger(__name__)

SEARCH_PREFIX = "trips"
SAVED_PREFIX = "trips:saved"
SAVED_PATTERN = f"{SAVED_PREFIX}*"

PURGE_EXPIRED_SQL = "DELETE FROM cache_entries WHERE expires_at <= now()"


def search_cache_key(origin: str, destination: str) -> str:
    # Callers normalise airport codes first; the key keeps them as given.
    return f"{SEARCH_PREFIX}:{origin}:{destination}"


def saved_list_cache_key(limit: int, offset: int) -> str:
    return f"{SAVED_PREFIX}:{limit}:{offset}"


def glob_to_like(pattern: str) -> str:
    """Translate a ``*``/``?`` glob into a SQL LIKE pattern (``\\`` escape)."""
    out: List[str] = []
    for ch in pattern:
        if ch in ("\\", "%", "_"):
            out.append("\\" + ch)
        elif ch == "*":
            out.append("%")
        elif ch == "?":
            out.append("_")
        else:
            out.append(ch)
    return "".join(out)


class CacheStore:
    """Abstract string cache with per-entry TTL."""

    async def setup(self) -> None:
        """Check the backend is reachable; raising here aborts startup."""

    async def close(self) -> None:
        pass

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        raise NotImplementedError

    async def keys(self, pattern: str) -> List[str]:
        raise NotImplementedError

    async def delete(self, *keys: str) -> int:
        raise NotImplementedError


class PostgresCacheStore(CacheStore):
    """Cache rows in a ``cache_entries`` table.

    Expired rows are invisible to ``get`` but still listed by ``keys``, so
    pattern invalidation removes them as well. Every ``set`` purges expired rows.
    """

    def __init__(self, dsn: str) -> None:
        self.dsn = dsn

    async def setup(self) -> None:  # pragma: no cover - DDL
        sql = """
        CREATE TABLE IF NOT EXISTS cache_entries (
            cache_key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            expires_at TIMESTAMPTZ NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        CREATE INDEX IF NOT EXISTS cache_entries_expires_at_idx ON cache_entries (expires_at);
        """
        async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql)
            await conn.commit()

    async def get(self, key: str) -> Optional[str]:
        sql = """
        SELECT value
        FROM cache_entries
        WHERE cache_key = %s
          AND expires_at > now()
        """
        async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (key,))
                row = await cur.fetchone()
        if not row:
            return None
        return row[0]

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        expiry = datetime.now(timezone.utc) + timedelta(seconds=int(ttl_seconds))
        sql = """
        INSERT INTO cache_entries (cache_key, value, expires_at)
        VALUES (%s, %s, %s)
        ON CONFLICT (cache_key)
        DO UPDATE SET value = EXCLUDED.value,
                      expires_at = EXCLUDED.expires_at
        """
        async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
            async with conn.cursor() as cur:
                await cur.execute(PURGE_EXPIRED_SQL)
                await cur.execute(sql, (key, value, expiry))
            await conn.commit()

    async def keys(self, pattern: str) -> List[str]:
        sql = """
        SELECT cache_key
        FROM cache_entries
        WHERE cache_key LIKE %s ESCAPE '\\'
        """
        async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (glob_to_like(pattern),))
                rows = await cur.fetchall()
        return [row[0] for row in rows]

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        sql = "DELETE FROM cache_entries WHERE cache_key = ANY(%s)"
        async with await psycopg.AsyncConnection.connect(self.dsn) as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (list(keys),))
                count = cur.rowcount
            await conn.commit()
        return max(count, 0)


class RedisCacheStore(CacheStore):
    def __init__(self, url: str, *, client: Optional[redis.Redis] = None) -> None:
        self.url = url
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        return self._client

    async def setup(self) -> None:
        await self.client.ping()
        logger.info("connected to redis cache")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self.client.set(key, value, ex=int(ttl_seconds))

    async def keys(self, pattern: str) -> List[str]:
        return [key async for key in self.client.scan_iter(match=pattern)]

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self.client.delete(*keys))
