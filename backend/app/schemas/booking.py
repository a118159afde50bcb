# backend/app/schemas/booking.py
"""
Booking schemas for the Massava platform.

Requested date and time are opaque strings: they are stored exactly as
submitted and compared for equality when counting slot capacity.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field

from .base import CamelModel, CamelRequestModel


class BookingCreate(CamelRequestModel):
    """Booking request from a signed-in customer or a guest."""

    studio_id: str = Field(..., min_length=1)
    service_id: Optional[str] = None
    customer_name: str = Field(..., min_length=2, max_length=100)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=7, max_length=30)
    preferred_date: str = Field(..., min_length=1, max_length=32)
    preferred_time: str = Field(..., min_length=1, max_length=32)
    message: Optional[str] = Field(None, max_length=2000)
    explicit_health_consent: Optional[bool] = None


class ManualBookingCreate(CamelRequestModel):
    """Walk-in or phone booking entered by a studio owner."""

    service_id: Optional[str] = None
    customer_name: str = Field(..., min_length=2, max_length=100)
    customer_phone: str = Field(..., min_length=7, max_length=30)
    customer_email: Optional[EmailStr] = None
    preferred_date: str = Field(..., min_length=1, max_length=32)
    preferred_time: str = Field(..., min_length=1, max_length=32)
    message: Optional[str] = Field(None, max_length=2000)
    explicit_health_consent: Optional[bool] = None


class BookingReasonRequest(CamelRequestModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingResponse(CamelModel):
    id: str
    studio_id: str
    studio_name: Optional[str] = None
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    customer_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    preferred_date: str
    preferred_time: str
    message: Optional[str] = None
    status: str
    explicit_health_consent: Optional[bool] = None
    health_consent_at: Optional[datetime] = None
    health_consent_text: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime


class BookingCreateResponse(CamelModel):
    success: bool = True
    booking: BookingResponse
    message: str
    magic_link: Optional[str] = None


class BookingListResponse(CamelModel):
    bookings: List[BookingResponse]
    total: int


def booking_to_response(booking: object) -> BookingResponse:
    """Build the API view of a booking, including studio and service names."""
    response = BookingResponse.model_validate(booking)
    studio = getattr(booking, "studio", None)
    service = getattr(booking, "service", None)
    return response.model_copy(
        update={
            "studio_name": getattr(studio, "name", None),
            "service_name": getattr(service, "name", None),
        }
    )
