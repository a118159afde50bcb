# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Create a booking request (signed-in or guest)
    GET / - List bookings visible to the caller
    GET /{booking_id} - Booking details
    POST /{booking_id}/confirm - Studio owner accepts a request
    POST /{booking_id}/decline - Studio owner rejects a request
    POST /{booking_id}/cancel - Customer withdraws their own booking
    POST /{booking_id}/complete - Studio owner marks the appointment done
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse

from ...api.dependencies import get_booking_service, get_current_user, get_current_user_optional
from ...core.config import settings
from ...core.enums import PermissionName
from ...core.exceptions import DomainException, ServiceException
from ...dependencies.permissions import require_any_permission, require_permission
from ...models.user import User
from ...ratelimit import BOOKING, rate_limit
from ...schemas.base import ActionResult
from ...schemas.booking import (
    BookingCreate,
    BookingCreateResponse,
    BookingListResponse,
    BookingReasonRequest,
    BookingResponse,
    booking_to_response,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

BOOKING_RECEIVED_MESSAGE = "Your booking request was sent to the studio. You will be notified once it is confirmed."
GENERIC_ERROR_MESSAGE = "An error occurred processing your request"


def action_error(exc: DomainException) -> JSONResponse:
    """Failure envelope shared by the booking state-change endpoints."""
    message = exc.message
    if isinstance(exc, ServiceException) or exc.status_code >= 500:
        # Infrastructure errors are logged by the service layer, never echoed
        message = GENERIC_ERROR_MESSAGE
    body = ActionResult(success=False, error=message, code=exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


def action_success(message: str) -> ActionResult:
    return ActionResult(success=True, message=message)


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(BOOKING))],
)
async def create_booking(
    request: Request,
    payload: BookingCreate,
    current_user: Optional[User] = Depends(get_current_user_optional),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """
    Create a booking request.

    Guests are resolved (or created) by email and receive a magic link to
    manage the booking. A message requires explicit health-data consent.
    """
    try:
        result = await asyncio.to_thread(
            booking_service.create_booking, payload, current_user, request
        )
    except DomainException as e:
        raise e.to_http_exception()

    return BookingCreateResponse(
        booking=booking_to_response(result.booking),
        message=BOOKING_RECEIVED_MESSAGE,
        magic_link=None if settings.is_production else result.magic_link_url,
    )


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    current_user: User = Depends(
        require_any_permission(
            PermissionName.VIEW_ALL_BOOKINGS,
            PermissionName.VIEW_STUDIO_BOOKINGS,
            PermissionName.VIEW_OWN_BOOKINGS,
        )
    ),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = await asyncio.to_thread(booking_service.list_bookings, current_user)
    return BookingListResponse(bookings=[booking_to_response(b) for b in bookings], total=len(bookings))


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking_for_user, current_user, booking_id)
    except DomainException as e:
        raise e.to_http_exception()
    return booking_to_response(booking)


@router.post("/{booking_id}/confirm", response_model=ActionResult)
async def confirm_booking(
    booking_id: str,
    request: Request,
    current_user: User = Depends(require_permission(PermissionName.CONFIRM_BOOKING)),
    booking_service: BookingService = Depends(get_booking_service),
):
    try:
        await asyncio.to_thread(booking_service.confirm_booking, current_user, booking_id, request)
    except DomainException as e:
        return action_error(e)
    return action_success("Booking confirmed")


@router.post("/{booking_id}/decline", response_model=ActionResult)
async def decline_booking(
    booking_id: str,
    request: Request,
    payload: Optional[BookingReasonRequest] = Body(None),
    current_user: User = Depends(require_permission(PermissionName.CONFIRM_BOOKING)),
    booking_service: BookingService = Depends(get_booking_service),
):
    reason = payload.reason if payload else None
    try:
        await asyncio.to_thread(booking_service.decline_booking, current_user, booking_id, reason, request)
    except DomainException as e:
        return action_error(e)
    return action_success("Booking declined")


@router.post("/{booking_id}/cancel", response_model=ActionResult)
async def cancel_booking(
    booking_id: str,
    request: Request,
    payload: Optional[BookingReasonRequest] = Body(None),
    current_user: User = Depends(require_permission(PermissionName.CANCEL_OWN_BOOKING)),
    booking_service: BookingService = Depends(get_booking_service),
):
    reason = payload.reason if payload else None
    try:
        await asyncio.to_thread(booking_service.cancel_own_booking, current_user, booking_id, reason, request)
    except DomainException as e:
        return action_error(e)
    return action_success("Booking cancelled")


@router.post("/{booking_id}/complete", response_model=ActionResult)
async def complete_booking(
    booking_id: str,
    request: Request,
    current_user: User = Depends(require_permission(PermissionName.CONFIRM_BOOKING)),
    booking_service: BookingService = Depends(get_booking_service),
):
    try:
        await asyncio.to_thread(booking_service.complete_booking, current_user, booking_id, request)
    except DomainException as e:
        return action_error(e)
    return action_success("Booking completed")
