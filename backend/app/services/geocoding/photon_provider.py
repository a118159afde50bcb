"""Photon (OpenStreetMap) geocoding provider."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ...core.config import settings
from .base import AddressSuggestion, GeocodingError, GeocodingProvider

logger = logging.getLogger(__name__)

# minLon,minLat,maxLon,maxLat covering Germany, Austria and Switzerland
DACH_BBOX = "5.9,45.8,17.2,55.0"
MAX_RESULTS = 8
MAX_INTERNATIONAL_RESULTS = 2
DEFAULT_COUNTRY = "Deutschland"

_COUNTRY_ALIASES = {
    "DE": ("deutschland", "germany", "allemagne", "germania"),
    "AT": ("österreich", "osterreich", "austria", "autriche"),
    "CH": ("schweiz", "switzerland", "suisse", "svizzera"),
}
_DACH_ORDER = ("DE", "AT", "CH")


def country_type(country: str) -> str:
    """Classify a country name as DE, AT, CH or INTERNATIONAL."""
    lowered = country.strip().lower()
    for code, names in _COUNTRY_ALIASES.items():
        if lowered == code.lower() or any(name in lowered for name in names):
            return code
    return "INTERNATIONAL"


def transform_feature(feature: Dict[str, Any]) -> Optional[AddressSuggestion]:
    properties = feature.get("properties") or {}

    street_name = properties.get("street") or properties.get("name") or ""
    house_number = properties.get("housenumber") or ""
    street = f"{street_name} {house_number}" if house_number else street_name
    city = (
        properties.get("city")
        or properties.get("locality")
        or properties.get("district")
        or properties.get("state")
        or ""
    )
    postal_code = properties.get("postcode") or ""
    country = properties.get("country") or DEFAULT_COUNTRY

    street = str(street).strip()
    city = str(city).strip()
    if not street or not city:
        logger.debug("Skipping Photon feature without street or city: %s", properties)
        return None

    postal_code = str(postal_code).strip()
    display_text = f"{street}, {postal_code} {city}" if postal_code else f"{street}, {city}"
    return AddressSuggestion(
        street=street,
        city=city,
        postal_code=postal_code,
        country=str(country).strip(),
        display_text=display_text,
    )


def prioritize_dach(suggestions: List[AddressSuggestion]) -> List[AddressSuggestion]:
    """
    DACH addresses first (DE, then AT, then CH), capped at eight.

    International results only fill remaining slots, at most two of them.
    """
    buckets: Dict[str, List[AddressSuggestion]] = {code: [] for code in (*_DACH_ORDER, "INTERNATIONAL")}
    for suggestion in suggestions:
        buckets[country_type(suggestion.country)].append(suggestion)

    dach = [s for code in _DACH_ORDER for s in buckets[code]]
    if len(dach) >= MAX_RESULTS:
        return dach[:MAX_RESULTS]
    remaining = min(MAX_RESULTS - len(dach), MAX_INTERNATIONAL_RESULTS)
    return dach + buckets["INTERNATIONAL"][:remaining]


class PhotonProvider(GeocodingProvider):
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.base_url = base_url or settings.geocoding_base_url
        self.timeout = timeout if timeout is not None else settings.geocoding_timeout_seconds
        self.language = settings.geocoding_language

    async def search_addresses(
        self, query: str, *, limit: int = MAX_RESULTS, restrict_to_dach: bool = False
    ) -> List[AddressSuggestion]:
        params: Dict[str, str] = {"q": query, "lang": self.language, "limit": str(limit)}
        if restrict_to_dach:
            params["bbox"] = DACH_BBOX

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(self.base_url, params=params, headers={"Accept": "application/json"})
        except httpx.TimeoutException as exc:
            raise GeocodingError("Request timed out", "TIMEOUT") from exc
        except httpx.HTTPError as exc:
            raise GeocodingError(f"Network error: {exc}", "NETWORK_ERROR") from exc

        if resp.status_code != 200:
            raise GeocodingError(f"Photon API returned status {resp.status_code}", "NETWORK_ERROR")
        try:
            data = resp.json()
        except ValueError as exc:
            raise GeocodingError("Invalid JSON from Photon API", "INVALID_RESPONSE") from exc

        features = data.get("features") if isinstance(data, dict) else None
        if not isinstance(features, list):
            raise GeocodingError("Invalid response structure from Photon API", "INVALID_RESPONSE")

        suggestions = [s for s in (transform_feature(f) for f in features if isinstance(f, dict)) if s]
        return prioritize_dach(suggestions)
