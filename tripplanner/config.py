"""Environment-driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(RuntimeError):
    pass


def _required(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigError(f"{name} is required")
    return value


def _number(env: Mapping[str, str], name: str, default: Optional[float], cast=int):
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    trips_api_url: str
    trips_api_key: str
    database_url: str
    redis_url: Optional[str] = None
    cache_backend: str = "postgres"
    trips_max_retry: int = 3
    retry_delay_ms: int = 300
    retry_deadline_sec: Optional[float] = None
    fetch_timeout_sec: float = 5.0
    cache_ttl_seconds: int = 300
    port: int = 3000
    log_level: str = "INFO"

    @property
    def retry_base_delay(self) -> float:
        return self.retry_delay_ms / 1000.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        if env is None:
            load_dotenv()  # so .env works
            env = os.environ
        redis_url = env.get("REDIS_URL", "").strip() or None
        backend = env.get("CACHE_BACKEND", "").strip().lower() or ("redis" if redis_url else "postgres")
        if backend not in ("redis", "postgres"):
            raise ConfigError(f"CACHE_BACKEND must be 'redis' or 'postgres', got {backend!r}")
        if backend == "redis" and not redis_url:
            raise ConfigError("REDIS_URL is required for the redis cache backend")
        max_retry = _number(env, "TRIPS_MAX_RETRY", 3)
        if max_retry < 1:
            raise ConfigError("TRIPS_MAX_RETRY must be at least 1")
        cache_ttl = _number(env, "CACHE_TTL_SECONDS", 300)
        if cache_ttl < 1:
            raise ConfigError("CACHE_TTL_SECONDS must be at least 1")
        log_level = env.get("LOG_LEVEL", "").strip().upper() or "INFO"
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")
        return cls(
            trips_api_url=_required(env, "TRIPS_API_URL"),
            trips_api_key=_required(env, "TRIPS_API_KEY"),
            database_url=_required(env, "DATABASE_URL"),
            redis_url=redis_url,
            cache_backend=backend,
            trips_max_retry=max_retry,
            retry_delay_ms=_number(env, "TRIPS_RETRY_DELAY_MS", 300),
            retry_deadline_sec=_number(env, "TRIPS_RETRY_DEADLINE_SEC", None, float),
            fetch_timeout_sec=_number(env, "TRIPS_FETCH_TIMEOUT_SEC", 5.0, float),
            cache_ttl_seconds=cache_ttl,
            port=_number(env, "PORT", 3000),
            log_level=log_level,
        )
