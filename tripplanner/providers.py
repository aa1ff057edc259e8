"""Factory helpers wiring stores, the provider client and the services."""
from __future__ import annotations

from dataclasses import dataclass

from .cache import CacheStore, PostgresCacheStore, RedisCacheStore
from .config import Settings
from .db import PostgresTripStore, TripStore
from .fetcher import RemoteTripFetcher
from .retry import RetryPolicy
from .services.lookup import TripLookupService
from .services.persistence import TripPersistenceService
from .services.search import TripSearchService


def build_cache_store(settings: Settings) -> CacheStore:
    if settings.cache_backend == "redis":
        return RedisCacheStore(settings.redis_url or "")
    return PostgresCacheStore(settings.database_url)


def build_trip_store(settings: Settings) -> TripStore:
    return PostgresTripStore(settings.database_url)


def build_fetcher(settings: Settings) -> RemoteTripFetcher:
    return RemoteTripFetcher(
        settings.trips_api_url,
        settings.trips_api_key,
        timeout=settings.fetch_timeout_sec,
    )


def build_retry_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        settings.trips_max_retry,
        settings.retry_base_delay,
        deadline=settings.retry_deadline_sec,
    )


@dataclass
class Container:
    """Long-lived collaborators owned by the application."""

    cache: CacheStore
    store: TripStore
    fetcher: RemoteTripFetcher
    search: TripSearchService
    persistence: TripPersistenceService

    async def start(self) -> None:
        await self.cache.setup()
        await self.store.setup()

    async def close(self) -> None:
        await self.fetcher.aclose()
        await self.cache.close()


def build_container(settings: Settings) -> Container:
    cache = build_cache_store(settings)
    store = build_trip_store(settings)
    fetcher = build_fetcher(settings)
    lookup = TripLookupService(
        cache,
        fetcher,
        build_retry_policy(settings),
        ttl_seconds=settings.cache_ttl_seconds,
    )
    return Container(
        cache=cache,
        store=store,
        fetcher=fetcher,
        search=TripSearchService(lookup),
        persistence=TripPersistenceService(store, cache, lookup, ttl_seconds=settings.cache_ttl_seconds),
    )
