from dataclasses import dataclass
from typing import Optional

import pytest

from app.services.geocoding.base import GeocodingError
from app.services.geocoding.mock_provider import MockGeocodingProvider
from app.services.geolocation_service import (
    GeocodingService,
    calculate_distance,
    filter_studios_by_radius,
    is_within_radius,
)

BERLIN = (52.5200, 13.4050)
MUNICH = (48.1351, 11.5820)
POTSDAM = (52.3906, 13.0645)


@dataclass
class Place:
    name: str
    latitude: Optional[float]
    longitude: Optional[float]


def test_distance_berlin_munich():
    assert calculate_distance(*BERLIN, *MUNICH) == pytest.approx(504, abs=2)


def test_distance_is_symmetric_and_zero_for_same_point():
    assert calculate_distance(*BERLIN, *BERLIN) == 0
    assert calculate_distance(*BERLIN, *POTSDAM) == pytest.approx(calculate_distance(*POTSDAM, *BERLIN))


def test_is_within_radius():
    assert is_within_radius(*BERLIN, *POTSDAM, 30)
    assert not is_within_radius(*BERLIN, *MUNICH, 100)


def test_filter_sorts_nearest_first_and_drops_missing_coordinates():
    places = [
        Place("munich", *MUNICH),
        Place("potsdam", *POTSDAM),
        Place("center", 52.5163, 13.3777),
        Place("nowhere", None, None),
    ]
    matches = filter_studios_by_radius(places, *BERLIN, 50)

    assert [m.studio.name for m in matches] == ["center", "potsdam"]
    assert matches[0].distance == round(matches[0].distance, 1)
    assert matches[0].distance < matches[1].distance


def test_filter_empty_when_nothing_in_range():
    assert filter_studios_by_radius([Place("munich", *MUNICH)], *BERLIN, 10) == []


class FailingProvider:
    async def search_addresses(self, query, limit=8, restrict_to_dach=False):
        raise GeocodingError("Provider down", code="NETWORK_ERROR")


@pytest.mark.asyncio
async def test_address_search_degrades_to_empty_list():
    service = GeocodingService(provider=FailingProvider())
    assert await service.search_addresses("Friedrichstraße") == []


@pytest.mark.asyncio
async def test_short_queries_skip_the_provider():
    service = GeocodingService(provider=FailingProvider())
    assert await service.search_addresses("  ab ") == []


@pytest.mark.asyncio
async def test_mock_provider_returns_suggestions():
    service = GeocodingService(provider=MockGeocodingProvider())
    suggestions = await service.search_addresses("Friedrichstraße")
    assert isinstance(suggestions, list)
