"""Pure helpers: airport allow-list checks and result ordering."""
from __future__ import annotations

from typing import Iterable, List

from ..errors import InvalidRequestError
from ..schemas import Trip

SUPPORTED_AIRPORTS = frozenset(
    {
        "ATL", "PEK", "LAX", "DXB", "HND", "ORD", "LHR", "PVG", "CDG", "DFW",
        "AMS", "FRA", "IST", "CAN", "JFK", "SIN", "DEN", "ICN", "BKK", "SFO",
        "LAS", "CLT", "MIA", "KUL", "SEA", "MUC", "EWR", "MAD", "HKG", "MCO",
        "PHX", "IAH", "SYD", "MEL", "GRU", "YYZ", "LGW", "BCN", "MAN", "BOM",
        "DEL", "ZRH", "SVO", "DME", "JNB", "ARN", "OSL", "CPH", "HEL", "VIE",
    }
)

SORT_OPTIONS = ("fastest", "cheapest")


def normalize_airport(code: str) -> str:
    return code.strip().upper()


def is_supported_airport(code: object) -> bool:
    if not isinstance(code, str):
        return False
    return code.upper() in SUPPORTED_AIRPORTS


def sort_trips(trips: Iterable[Trip], sort_by: str = "fastest") -> List[Trip]:
    """Return a new list ordered by duration then cost, or cost then duration."""
    if sort_by == "fastest":
        return sorted(trips, key=lambda t: (t.duration, t.cost))
    if sort_by == "cheapest":
        return sorted(trips, key=lambda t: (t.cost, t.duration))
    raise InvalidRequestError(f"sort_by must be one of {', '.join(SORT_OPTIONS)}")
