"""Provider-agnostic geocoding interfaces."""

from abc import ABC, abstractmethod
from typing import List, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

GeocodingErrorCode = Literal["NETWORK_ERROR", "INVALID_RESPONSE", "TIMEOUT"]


class AddressSuggestion(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    street: str
    city: str
    postal_code: str = ""
    country: str
    display_text: str


class GeocodingError(Exception):
    """Recoverable provider failure; callers degrade to an empty result."""

    def __init__(self, message: str, code: GeocodingErrorCode) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class GeocodingProvider(ABC):
    @abstractmethod
    async def search_addresses(self, query: str, *, limit: int, restrict_to_dach: bool = False) -> List[AddressSuggestion]:
        pass
