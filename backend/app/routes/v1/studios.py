# backend/app/routes/v1/studios.py
"""
Studio routes - API v1

Endpoints:
    POST / - Register a studio (caller becomes its owner)
    GET /search - Studios within a radius, nearest first
    GET /mine - Studios owned by the caller
    GET /favorites - Caller's favorite studios
    GET /{studio_id} - Public studio view with active services
    PATCH /{studio_id}/capacity - Change seats per slot
    GET /{studio_id}/capacity - Slot occupancy for a date and time
    POST /{studio_id}/services - Add a service
    PATCH /{studio_id}/services/{service_id} - Edit a service
    DELETE /{studio_id}/services/{service_id} - Remove a service
    GET /{studio_id}/blocked-times - Closed calendar periods
    POST /{studio_id}/blocked-times - Close a period
    DELETE /{studio_id}/blocked-times/{blocked_id} - Reopen a period
    POST /{studio_id}/bookings/manual - Walk-in or phone booking
    POST /{studio_id}/favorite - Mark as favorite
    DELETE /{studio_id}/favorite - Unmark favorite
"""

import asyncio
from datetime import datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from ...api.dependencies import (
    get_booking_service,
    get_capacity_service,
    get_current_user,
    get_studio_service,
)
from ...core.constants import DEFAULT_SEARCH_RADIUS_KM, MAX_SEARCH_RADIUS_KM, MIN_SEARCH_RADIUS_KM
from ...core.enums import PermissionName
from ...core.exceptions import DomainException, ForbiddenException
from ...dependencies.permissions import get_permission_service, require_permission
from ...models.studio import Studio
from ...models.user import User
from ...schemas.booking import BookingResponse, ManualBookingCreate, booking_to_response
from ...schemas.studio import (
    BlockedTimeCreate,
    BlockedTimeResponse,
    CapacityStatusResponse,
    CapacityUpdate,
    FavoriteResponse,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
    StudioCreate,
    StudioCreateResponse,
    StudioDetailResponse,
    StudioResponse,
    StudioSearchResponse,
    StudioSearchResult,
)
from ...services.booking_service import BookingService
from ...services.capacity_service import CapacityService
from ...services.permission_service import PermissionService
from ...services.studio_service import StudioService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["studios-v1"])


def studio_detail(studio: Studio, services: List) -> StudioDetailResponse:
    base = StudioResponse.model_validate(studio).model_dump()
    return StudioDetailResponse(**base, services=[ServiceResponse.model_validate(s) for s in services])


# ============================================================================
# Static routes (before /{studio_id})
# ============================================================================


@router.post("", response_model=StudioCreateResponse, status_code=status.HTTP_201_CREATED)
async def register_studio(
    request: Request,
    payload: StudioCreate,
    current_user: User = Depends(get_current_user),
    studio_service: StudioService = Depends(get_studio_service),
) -> StudioCreateResponse:
    """Any signed-in user may register a studio; the STUDIO_OWNER role is granted on success."""
    try:
        studio = await asyncio.to_thread(studio_service.register_studio, current_user, payload, request)
    except DomainException as e:
        raise e.to_http_exception()
    return StudioCreateResponse(
        studio=studio_detail(studio, list(studio.services)),
        message="Studio registered",
    )


@router.get("/search", response_model=StudioSearchResponse)
async def search_studios(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(DEFAULT_SEARCH_RADIUS_KM, ge=MIN_SEARCH_RADIUS_KM, le=MAX_SEARCH_RADIUS_KM),
    studio_service: StudioService = Depends(get_studio_service),
) -> StudioSearchResponse:
    matches = await asyncio.to_thread(studio_service.search_studios, lat, lng, radius)
    results = [
        StudioSearchResult(**StudioResponse.model_validate(m.studio).model_dump(), distance=m.distance)
        for m in matches
    ]
    return StudioSearchResponse(studios=results, total=len(results), radius=radius)


@router.get("/mine", response_model=List[StudioResponse])
async def list_my_studios(
    current_user: User = Depends(require_permission(PermissionName.EDIT_OWN_STUDIO)),
    studio_service: StudioService = Depends(get_studio_service),
) -> List[StudioResponse]:
    studios = await asyncio.to_thread(studio_service.list_owned_studios, current_user)
    return [StudioResponse.model_validate(s) for s in studios]


@router.get("/favorites", response_model=List[StudioResponse])
async def list_favorites(
    current_user: User = Depends(get_current_user),
    studio_service: StudioService = Depends(get_studio_service),
) -> List[StudioResponse]:
    studios = await asyncio.to_thread(studio_service.list_favorites, current_user)
    return [StudioResponse.model_validate(s) for s in studios]


# ============================================================================
# Studio by id
# ============================================================================


@router.get("/{studio_id}", response_model=StudioDetailResponse)
async def get_studio(
    studio_id: str,
    studio_service: StudioService = Depends(get_studio_service),
) -> StudioDetailResponse:
    try:
        studio, services = await asyncio.to_thread(studio_service.get_public_studio, studio_id)
    except DomainException as e:
        raise e.to_http_exception()
    return studio_detail(studio, services)


@router.patch("/{studio_id}/capacity", response_model=StudioResponse)
async def update_capacity(
    studio_id: str,
    request: Request,
    payload: CapacityUpdate,
    current_user: User = Depends(get_current_user),
    capacity_service: CapacityService = Depends(get_capacity_service),
) -> StudioResponse:
    try:
        studio = await asyncio.to_thread(
            capacity_service.update_capacity, current_user, studio_id, payload.capacity, request
        )
    except DomainException as e:
        raise e.to_http_exception()
    return StudioResponse.model_validate(studio)


@router.get("/{studio_id}/capacity", response_model=CapacityStatusResponse)
async def get_capacity(
    studio_id: str,
    date: str = Query(..., min_length=1, max_length=32),
    time: str = Query(..., min_length=1, max_length=32),
    current_user: User = Depends(get_current_user),
    capacity_service: CapacityService = Depends(get_capacity_service),
    permission_service: PermissionService = Depends(get_permission_service),
) -> CapacityStatusResponse:
    """Occupancy of one slot; only the studio's owners and platform admins may look."""
    try:
        if not permission_service.can_access_studio(current_user, studio_id):
            raise ForbiddenException("You do not manage this studio", code="NOT_STUDIO_OWNER")
        capacity = await asyncio.to_thread(capacity_service.get_capacity_status, studio_id, date, time)
    except DomainException as e:
        raise e.to_http_exception()
    return CapacityStatusResponse.model_validate(capacity.to_dict())


# ============================================================================
# Services
# ============================================================================


@router.post(
    "/{studio_id}/services",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_service(
    studio_id: str,
    request: Request,
    payload: ServiceCreate,
    current_user: User = Depends(require_permission(PermissionName.CREATE_SERVICE)),
    studio_service: StudioService = Depends(get_studio_service),
) -> ServiceResponse:
    try:
        service = await asyncio.to_thread(
            studio_service.create_service, current_user, studio_id, payload, request
        )
    except DomainException as e:
        raise e.to_http_exception()
    return ServiceResponse.model_validate(service)


@router.patch("/{studio_id}/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    studio_id: str,
    service_id: str,
    request: Request,
    payload: ServiceUpdate,
    current_user: User = Depends(require_permission(PermissionName.CREATE_SERVICE)),
    studio_service: StudioService = Depends(get_studio_service),
) -> ServiceResponse:
    try:
        service = await asyncio.to_thread(
            studio_service.update_service, current_user, studio_id, service_id, payload, request
        )
    except DomainException as e:
        raise e.to_http_exception()
    return ServiceResponse.model_validate(service)


@router.delete("/{studio_id}/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    studio_id: str,
    service_id: str,
    request: Request,
    current_user: User = Depends(require_permission(PermissionName.CREATE_SERVICE)),
    studio_service: StudioService = Depends(get_studio_service),
) -> Response:
    try:
        await asyncio.to_thread(studio_service.delete_service, current_user, studio_id, service_id, request)
    except DomainException as e:
        raise e.to_http_exception()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Blocked times
# ============================================================================


@router.get("/{studio_id}/blocked-times", response_model=List[BlockedTimeResponse])
async def list_blocked_times(
    studio_id: str,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_user: User = Depends(require_permission(PermissionName.EDIT_OWN_STUDIO)),
    studio_service: StudioService = Depends(get_studio_service),
) -> List[BlockedTimeResponse]:
    try:
        blocked = await asyncio.to_thread(
            studio_service.list_blocked_times, current_user, studio_id, start=start, end=end
        )
    except DomainException as e:
        raise e.to_http_exception()
    return [BlockedTimeResponse.model_validate(item) for item in blocked]


@router.post(
    "/{studio_id}/blocked-times",
    response_model=BlockedTimeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def block_time(
    studio_id: str,
    request: Request,
    payload: BlockedTimeCreate,
    current_user: User = Depends(require_permission(PermissionName.EDIT_OWN_STUDIO)),
    studio_service: StudioService = Depends(get_studio_service),
) -> BlockedTimeResponse:
    """Close a calendar period; refused while CONFIRMED bookings fall inside it."""
    try:
        blocked = await asyncio.to_thread(studio_service.block_time, current_user, studio_id, payload, request)
    except DomainException as e:
        raise e.to_http_exception()
    return BlockedTimeResponse.model_validate(blocked)


@router.delete("/{studio_id}/blocked-times/{blocked_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_time(
    studio_id: str,
    blocked_id: str,
    request: Request,
    current_user: User = Depends(require_permission(PermissionName.EDIT_OWN_STUDIO)),
    studio_service: StudioService = Depends(get_studio_service),
) -> Response:
    try:
        await asyncio.to_thread(studio_service.unblock_time, current_user, studio_id, blocked_id, request)
    except DomainException as e:
        raise e.to_http_exception()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Manual bookings and favorites
# ============================================================================


@router.post(
    "/{studio_id}/bookings/manual",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_manual_booking(
    studio_id: str,
    request: Request,
    payload: ManualBookingCreate,
    current_user: User = Depends(require_permission(PermissionName.CONFIRM_BOOKING)),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.create_manual_booking, current_user, studio_id, payload, request
        )
    except DomainException as e:
        raise e.to_http_exception()
    return booking_to_response(booking)


@router.post("/{studio_id}/favorite", response_model=FavoriteResponse, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    studio_id: str,
    current_user: User = Depends(get_current_user),
    studio_service: StudioService = Depends(get_studio_service),
) -> FavoriteResponse:
    try:
        await asyncio.to_thread(studio_service.add_favorite, current_user, studio_id)
    except DomainException as e:
        raise e.to_http_exception()
    return FavoriteResponse(studio_id=studio_id, is_favorite=True)


@router.delete("/{studio_id}/favorite", response_model=FavoriteResponse)
async def remove_favorite(
    studio_id: str,
    current_user: User = Depends(get_current_user),
    studio_service: StudioService = Depends(get_studio_service),
) -> FavoriteResponse:
    try:
        await asyncio.to_thread(studio_service.remove_favorite, current_user, studio_id)
    except DomainException as e:
        raise e.to_http_exception()
    return FavoriteResponse(studio_id=studio_id, is_favorite=False)
