# backend/app/schemas/studio.py
"""Studio, service and favorite schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, HttpUrl, field_validator

from ..core.constants import (
    DEFAULT_SEARCH_RADIUS_KM,
    DEFAULT_STUDIO_CAPACITY,
    MAX_SEARCH_RADIUS_KM,
    MAX_SERVICE_DURATION,
    MAX_SERVICE_PRICE,
    MAX_STUDIO_CAPACITY,
    MIN_SEARCH_RADIUS_KM,
    MIN_SERVICE_DURATION,
    MIN_SERVICE_PRICE,
    MIN_STUDIO_CAPACITY,
)
from .base import CamelModel, CamelRequestModel, Money

MAX_SERVICES_AT_REGISTRATION = 3


class StudioAddress(CamelRequestModel):
    street: str = Field(..., min_length=5, max_length=200)
    city: str = Field(..., min_length=2, max_length=100)
    postal_code: str = Field(..., min_length=3, max_length=20)
    country: str = Field(..., min_length=2, max_length=100)


class StudioContact(CamelRequestModel):
    phone: str = Field(..., min_length=10, max_length=30)
    email: EmailStr
    website: Optional[HttpUrl] = None

    @field_validator("website", mode="before")
    @classmethod
    def _blank_website(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Coordinates(CamelRequestModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ServiceCreate(CamelRequestModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    duration_minutes: int = Field(..., ge=MIN_SERVICE_DURATION, le=MAX_SERVICE_DURATION)
    price: Decimal = Field(..., ge=MIN_SERVICE_PRICE, le=MAX_SERVICE_PRICE)


class ServiceUpdate(CamelRequestModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    duration_minutes: Optional[int] = Field(None, ge=MIN_SERVICE_DURATION, le=MAX_SERVICE_DURATION)
    price: Optional[Decimal] = Field(None, ge=MIN_SERVICE_PRICE, le=MAX_SERVICE_PRICE)
    is_active: Optional[bool] = None


class StudioCreate(CamelRequestModel):
    """Studio registration wizard payload."""

    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    address: StudioAddress
    contact: StudioContact
    opening_hours: Dict[str, Any] = Field(default_factory=dict)
    capacity: int = Field(DEFAULT_STUDIO_CAPACITY, ge=MIN_STUDIO_CAPACITY, le=MAX_STUDIO_CAPACITY)
    coordinates: Optional[Coordinates] = None
    services: List[ServiceCreate] = Field(default_factory=list, max_length=MAX_SERVICES_AT_REGISTRATION)


class CapacityUpdate(CamelRequestModel):
    capacity: int = Field(..., ge=MIN_STUDIO_CAPACITY, le=MAX_STUDIO_CAPACITY)


class StudioSearchParams(CamelRequestModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    radius: float = Field(DEFAULT_SEARCH_RADIUS_KM, ge=MIN_SEARCH_RADIUS_KM, le=MAX_SEARCH_RADIUS_KM)


class ServiceResponse(CamelModel):
    id: str
    studio_id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: Money
    is_active: bool


class StudioResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    street: str
    city: str
    postal_code: str
    country: str
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    opening_hours: Optional[Dict[str, Any]] = None
    capacity: int
    is_suspended: bool = False
    created_at: datetime


class StudioDetailResponse(StudioResponse):
    services: List[ServiceResponse] = Field(default_factory=list)


class StudioSearchResult(StudioResponse):
    distance: float


class StudioSearchResponse(CamelModel):
    studios: List[StudioSearchResult]
    total: int
    radius: float


class StudioCreateResponse(CamelModel):
    success: bool = True
    studio: StudioDetailResponse
    message: str


class FavoriteResponse(CamelModel):
    studio_id: str
    is_favorite: bool


class SlotBookingResponse(CamelModel):
    id: str
    customer_name: str
    service_name: str


class CapacityStatusResponse(CamelModel):
    current: int
    max: int
    is_full: bool
    available: int
    percentage: int
    bookings: List[SlotBookingResponse]


class BlockedTimeCreate(CamelRequestModel):
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = Field(None, max_length=500)
    is_all_day: bool = False


class BlockedTimeResponse(CamelModel):
    id: str
    studio_id: str
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = None
    is_all_day: bool
    created_at: datetime
