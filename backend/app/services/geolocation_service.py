# backend/app/services/geolocation_service.py
"""
Geolocation for studio search and address entry.

Provides:
- Haversine great-circle distances on a spherical earth (R = 6371 km)
- Radius filtering of studios around a search point
- Address autocomplete through the configured geocoding provider
"""

from dataclasses import dataclass
import logging
import math
from typing import Generic, Iterable, List, Optional, Protocol, TypeVar

from ..core.constants import EARTH_RADIUS_KM
from .geocoding.base import AddressSuggestion, GeocodingError, GeocodingProvider
from .geocoding.factory import create_geocoding_provider

logger = logging.getLogger(__name__)

MIN_ADDRESS_QUERY_LENGTH = 3


class HasCoordinates(Protocol):
    latitude: Optional[float]
    longitude: Optional[float]


T = TypeVar("T", bound=HasCoordinates)


@dataclass
class StudioDistance(Generic[T]):
    studio: T
    distance: float


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two WGS84 points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_within_radius(lat1: float, lon1: float, lat2: float, lon2: float, radius_km: float) -> bool:
    return calculate_distance(lat1, lon1, lat2, lon2) <= radius_km


def filter_studios_by_radius(
    studios: Iterable[T],
    lat: float,
    lng: float,
    radius_km: float,
) -> List[StudioDistance[T]]:
    """
    Studios within ``radius_km`` of the point, nearest first.

    Entries without coordinates are dropped. Distances are rounded to one
    decimal after the radius comparison.
    """
    matches: List[StudioDistance[T]] = []
    for studio in studios:
        if studio.latitude is None or studio.longitude is None:
            continue
        distance = calculate_distance(lat, lng, studio.latitude, studio.longitude)
        if distance <= radius_km:
            matches.append(StudioDistance(studio=studio, distance=round(distance, 1)))
    matches.sort(key=lambda match: match.distance)
    return matches


class GeocodingService:
    """Address autocomplete that degrades to an empty list when the provider fails."""

    def __init__(self, provider: Optional[GeocodingProvider] = None) -> None:
        self.provider = provider or create_geocoding_provider()

    async def search_addresses(self, query: str, *, restrict_to_dach: bool = False) -> List[AddressSuggestion]:
        cleaned = (query or "").strip()
        if len(cleaned) < MIN_ADDRESS_QUERY_LENGTH:
            return []
        try:
            return await self.provider.search_addresses(cleaned, limit=8, restrict_to_dach=restrict_to_dach)
        except GeocodingError as e:
            logger.warning(f"Address search failed ({e.code}) for query {cleaned!r}: {e.message}")
            return []
