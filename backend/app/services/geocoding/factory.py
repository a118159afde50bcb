"""Factory for geocoding providers."""

from typing import Optional

from ...core.config import settings
from .base import GeocodingProvider
from .mock_provider import MockGeocodingProvider
from .photon_provider import PhotonProvider


def create_geocoding_provider(provider_override: Optional[str] = None) -> GeocodingProvider:
    name = (provider_override or settings.geocoding_provider or "photon").lower()
    provider: GeocodingProvider
    if name == "mock":
        provider = MockGeocodingProvider()
    else:
        provider = PhotonProvider()
    return provider
