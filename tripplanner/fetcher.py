"""Single round trip to the external trip-search provider."""
from __future__ import annotations

import json
import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from .errors import FetchError, InvalidRequestError
from .schemas import Trip, TripList

logger = logging.getLogger(__name__)


class TripFetcher:
    """Abstract trip provider."""

    async def fetch(self, origin: str, destination: str, sort_by: str = "fastest") -> List[Trip]:
        raise NotImplementedError


class RemoteTripFetcher(TripFetcher):
    """Calls the provider once per ``fetch``; retrying is left to the caller."""

    api_key_header = "x-api-key"

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not url:
            raise ValueError("trips API url required")
        if not api_key:
            raise ValueError("trips API key required")
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, origin: str, destination: str, sort_by: str = "fastest") -> List[Trip]:
        if not origin or not origin.strip() or not destination or not destination.strip():
            raise InvalidRequestError("origin and destination are required")
        params = {
            "origin": origin,
            "destination": destination,
            "sort_by": sort_by,
        }
        headers = {self.api_key_header: self.api_key}
        try:
            response = await self.client.get(self.url, params=params, headers=headers, timeout=self.timeout)
        except httpx.TransportError as exc:
            raise FetchError(f"Failed to reach trips API: {exc.__class__.__name__}: {exc}") from exc

        if not response.is_success:
            raise FetchError(
                f"Failed to fetch trips (status: {response.status_code})",
                upstream_status=response.status_code,
            )
        try:
            return TripList.validate_python(response.json())
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.debug("unexpected trips payload: %s", response.text[:120])
            raise FetchError(f"unexpected trips response: {exc}") from exc
