"""Saved trips: durable writes with eager invalidation of cached list pages."""
from __future__ import annotations

import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from ..cache import SAVED_PATTERN, CacheStore, saved_list_cache_key
from ..db import RecordExistsError, TripStore
from ..errors import DatabaseError, TripAlreadySavedError, TripNotFoundError
from ..schemas import SavedTrip, SavedTripList
from .lookup import TripLookupService
from .search import validate_route

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
DEFAULT_OFFSET = 0


class TripPersistenceService:
    """Save, list and delete trips.

    Only the trip id and route are taken from the caller; every other field
    comes from a fresh provider lookup. Each create or delete drops every
    cached list page, since inserting by recency shifts all offsets. A failure
    while dropping pages is logged and ignored: the durable write has already
    happened and stale pages expire with their TTL.
    """

    def __init__(
        self,
        store: TripStore,
        cache: CacheStore,
        lookup: TripLookupService,
        *,
        ttl_seconds: int = 300,
    ) -> None:
        self.store = store
        self.cache = cache
        self.lookup = lookup
        self.ttl_seconds = ttl_seconds

    async def save(self, trip_id: str, origin: str, destination: str) -> SavedTrip:
        origin, destination = validate_route(origin, destination)
        trips = await self.lookup.find(origin, destination)
        trip = next((t for t in trips if t.id == trip_id), None)
        if trip is None:
            raise TripNotFoundError()

        if await self._find(trip_id) is not None:
            raise TripAlreadySavedError()

        try:
            saved = await self.store.create(trip)
        except RecordExistsError as exc:
            raise TripAlreadySavedError() from exc
        except Exception as exc:
            raise DatabaseError(str(exc) or "Failed to save trip") from exc

        logger.info("saved trip %s (%s -> %s)", trip_id, origin, destination)
        await self._invalidate_lists()
        return saved

    async def list(self, limit: int = DEFAULT_LIMIT, offset: int = DEFAULT_OFFSET) -> List[SavedTrip]:
        key = saved_list_cache_key(limit, offset)
        cached = await self._read(key)
        if cached is not None:
            return cached

        try:
            trips = await self.store.find_many(limit, offset)
        except Exception as exc:
            raise DatabaseError(str(exc) or "Failed to list trips") from exc

        payload = json.dumps([t.model_dump(mode="json") for t in trips])
        try:
            await self.cache.set(key, payload, self.ttl_seconds)
        except Exception as exc:
            logger.warning("failed to cache saved trips page %s (%s)", key, exc)
        return trips

    async def delete(self, trip_id: str) -> None:
        if await self._find(trip_id) is None:
            raise TripNotFoundError()
        try:
            await self.store.delete(trip_id)
        except Exception as exc:
            raise DatabaseError(str(exc) or "Failed to delete trip") from exc

        logger.info("deleted trip %s", trip_id)
        await self._invalidate_lists()

    async def _find(self, trip_id: str) -> Optional[SavedTrip]:
        try:
            return await self.store.find_unique(trip_id)
        except Exception as exc:
            raise DatabaseError(str(exc) or "Failed to look up trip") from exc

    async def _read(self, key: str) -> Optional[List[SavedTrip]]:
        try:
            raw = await self.cache.get(key)
        except Exception as exc:
            logger.warning("cache read failed for %s (%s); reading from store", key, exc)
            return None
        if raw is None:
            return None
        try:
            return SavedTripList.validate_json(raw)
        except ValidationError as exc:
            logger.warning("discarding undecodable cache entry %s (%s)", key, exc)
            return None

    async def _invalidate_lists(self) -> None:
        try:
            keys = await self.cache.keys(SAVED_PATTERN)
            if keys:
                await self.cache.delete(*keys)
        except Exception as exc:
            logger.warning("failed to clear saved trips cache (%s)", exc)
