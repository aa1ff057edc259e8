from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from tripplanner.cache import CacheStore
from tripplanner.db import RecordExistsError, TripStore
from tripplanner.fetcher import TripFetcher
from tripplanner.retry import RetryPolicy
from tripplanner.schemas import SavedTrip, Trip
from tripplanner.services.lookup import TripLookupService


class DummyCache(CacheStore):
    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.get_calls: List[str] = []
        self.keys_calls: List[str] = []
        self.deleted: List[str] = []
        self.fail_get = False
        self.fail_set = False
        self.fail_keys = False
        self.fail_delete = False

    async def get(self, key):
        self.get_calls.append(key)
        if self.fail_get:
            raise ConnectionError("cache down")
        return self.data.get(key)

    async def set(self, key, value, ttl_seconds):
        if self.fail_set:
            raise ConnectionError("cache down")
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def keys(self, pattern):
        self.keys_calls.append(pattern)
        if self.fail_keys:
            raise ConnectionError("cache down")
        prefix = pattern.rstrip("*")
        return [k for k in self.data if k.startswith(prefix)]

    async def delete(self, *keys):
        if self.fail_delete:
            raise ConnectionError("Redis error")
        count = 0
        for key in keys:
            self.deleted.append(key)
            if self.data.pop(key, None) is not None:
                count += 1
        return count


class DummyFetcher(TripFetcher):
    def __init__(self, results: Optional[List[Trip]] = None, failures: int = 0) -> None:
        self.results = results or []
        self.failures = failures
        self.calls: List[tuple] = []

    async def fetch(self, origin, destination, sort_by="fastest"):
        self.calls.append((origin, destination, sort_by))
        if len(self.calls) <= self.failures:
            raise ConnectionError("Network error")
        return list(self.results)


class DummyStore(TripStore):
    def __init__(self) -> None:
        self.rows: Dict[str, SavedTrip] = {}
        self.created: List[str] = []
        self.deleted: List[str] = []
        self.find_many_calls: List[tuple] = []
        self.fail_create: Optional[Exception] = None
        self.fail_find: Optional[Exception] = None
        self._clock = datetime(2025, 11, 5, 12, 0, tzinfo=timezone.utc)

    async def create(self, trip):
        if self.fail_create is not None:
            raise self.fail_create
        if trip.id in self.rows:
            raise RecordExistsError(trip.id)
        self._clock += timedelta(seconds=1)
        saved = SavedTrip(**trip.model_dump(), created_at=self._clock)
        self.rows[trip.id] = saved
        self.created.append(trip.id)
        return saved

    async def find_unique(self, trip_id):
        if self.fail_find is not None:
            raise self.fail_find
        return self.rows.get(trip_id)

    async def find_many(self, limit, offset):
        self.find_many_calls.append((limit, offset))
        if self.fail_find is not None:
            raise self.fail_find
        ordered = sorted(self.rows.values(), key=lambda t: t.created_at, reverse=True)
        return ordered[offset:offset + limit]

    async def delete(self, trip_id):
        self.deleted.append(trip_id)
        self.rows.pop(trip_id, None)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_trip(trip_id: str = "1", cost: int = 100, duration: int = 120, **overrides) -> Trip:
    data = {
        "id": trip_id,
        "origin": "ATL",
        "destination": "PEK",
        "cost": cost,
        "duration": duration,
        "type": "flight",
        "display_name": "ATL to PEK",
    }
    data.update(overrides)
    return Trip(**data)


@pytest.fixture
def cache() -> DummyCache:
    return DummyCache()


@pytest.fixture
def store() -> DummyStore:
    return DummyStore()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fetcher() -> DummyFetcher:
    return DummyFetcher([make_trip()])


@pytest.fixture
def lookup(cache, fetcher, sleeper) -> TripLookupService:
    retry = RetryPolicy(3, 0.3, sleep=sleeper)
    return TripLookupService(cache, fetcher, retry, ttl_seconds=60)


@pytest.fixture
def trip_factory():
    return make_trip
