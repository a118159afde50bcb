# backend/app/routes/v1/geocoding.py
"""
Address autocomplete - API v1

Provider failures degrade to an empty suggestion list.
"""

import logging

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_geocoding_service
from ...schemas.geocoding import AddressSearchResponse
from ...services.geolocation_service import GeocodingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["geocoding-v1"])


@router.get("/addresses", response_model=AddressSearchResponse)
async def search_addresses(
    q: str = Query("", max_length=200),
    dach_only: bool = Query(False, alias="dachOnly"),
    geocoding_service: GeocodingService = Depends(get_geocoding_service),
) -> AddressSearchResponse:
    suggestions = await geocoding_service.search_addresses(q, restrict_to_dach=dach_only)
    return AddressSearchResponse(suggestions=suggestions, total=len(suggestions))
