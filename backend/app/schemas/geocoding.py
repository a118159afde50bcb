from typing import List

from ..services.geocoding.base import AddressSuggestion
from .base import CamelModel


class AddressSearchResponse(CamelModel):
    suggestions: List[AddressSuggestion]
    total: int
