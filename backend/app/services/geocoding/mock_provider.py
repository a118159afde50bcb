"""Mock geocoding provider for unit tests and offline development (no network calls)."""

from typing import List

from .base import AddressSuggestion, GeocodingProvider


class MockGeocodingProvider(GeocodingProvider):
    async def search_addresses(
        self, query: str, *, limit: int = 8, restrict_to_dach: bool = False
    ) -> List[AddressSuggestion]:
        base = [
            AddressSuggestion(
                street="Karlstraße 12",
                city="Karlsruhe",
                postal_code="76133",
                country="Deutschland",
                display_text="Karlstraße 12, 76133 Karlsruhe",
            ),
            AddressSuggestion(
                street="Mariahilfer Straße 1",
                city="Wien",
                postal_code="1060",
                country="Österreich",
                display_text="Mariahilfer Straße 1, 1060 Wien",
            ),
        ]
        needle = query.strip().lower()
        return [s for s in base if needle in s.display_text.lower()][:limit] or base[:limit]
