"""Cache-aside lookup of provider search results."""
from __future__ import annotations

import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from ..cache import CacheStore, search_cache_key
from ..fetcher import TripFetcher
from ..retry import RetryPolicy
from ..schemas import Trip, TripList

logger = logging.getLogger(__name__)

DEFAULT_SORT = "fastest"


def serialise_trips(trips: List[Trip]) -> str:
    return json.dumps([t.model_dump(mode="json") for t in trips])


class TripLookupService:
    """Serves search results from the cache, fetching through the retry policy on a miss.

    Results are cached per (origin, destination) only; ordering is applied
    afterwards by the caller. Failed fetches are never cached, an empty result
    is.
    """

    def __init__(
        self,
        cache: CacheStore,
        fetcher: TripFetcher,
        retry: RetryPolicy,
        *,
        ttl_seconds: int = 300,
    ) -> None:
        self.cache = cache
        self.fetcher = fetcher
        self.retry = retry
        self.ttl_seconds = ttl_seconds

    async def find(self, origin: str, destination: str) -> List[Trip]:
        key = search_cache_key(origin, destination)
        cached = await self._read(key)
        if cached is not None:
            logger.debug("cache hit for %s", key)
            return cached

        # TODO: coalesce concurrent misses for the same key (single-flight).
        logger.debug("cache miss for %s", key)
        trips = await self.retry.execute(lambda: self.fetcher.fetch(origin, destination, DEFAULT_SORT))
        try:
            await self.cache.set(key, serialise_trips(trips), self.ttl_seconds)
        except Exception as exc:
            logger.warning("failed to cache search results for %s (%s)", key, exc)
        return trips

    async def _read(self, key: str) -> Optional[List[Trip]]:
        try:
            raw = await self.cache.get(key)
        except Exception as exc:
            logger.warning("cache read failed for %s (%s); treating as miss", key, exc)
            return None
        if raw is None:
            return None
        try:
            return TripList.validate_json(raw)
        except ValidationError as exc:
            logger.warning("discarding undecodable cache entry %s (%s)", key, exc)
            return None
