"""Search entry point: input normalisation, validation and ordering."""
from __future__ import annotations

from typing import List, Tuple

from ..errors import InvalidRequestError, UnsupportedAirportError
from ..schemas import Trip
from .lookup import TripLookupService
from .util import SORT_OPTIONS, is_supported_airport, normalize_airport, sort_trips


def validate_route(origin: str, destination: str) -> Tuple[str, str]:
    """Uppercase both codes and reject any outside the allow-list."""
    origin = normalize_airport(origin)
    destination = normalize_airport(destination)
    if not is_supported_airport(origin) or not is_supported_airport(destination):
        raise UnsupportedAirportError()
    return origin, destination


class TripSearchService:
    def __init__(self, lookup: TripLookupService) -> None:
        self.lookup = lookup

    async def get_trips(self, origin: str, destination: str, sort_by: str = "fastest") -> List[Trip]:
        if sort_by not in SORT_OPTIONS:
            raise InvalidRequestError(f"sort_by must be one of {', '.join(SORT_OPTIONS)}")
        origin, destination = validate_route(origin, destination)
        trips = await self.lookup.find(origin, destination)
        return sort_trips(trips, sort_by)
