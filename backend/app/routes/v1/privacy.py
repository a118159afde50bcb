# backend/app/routes/v1/privacy.py
"""
V1 Privacy API endpoints for GDPR compliance.

Provides the Art. 15 data export and Art. 17 account erasure.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from ...api.dependencies import get_privacy_service
from ...core.enums import PermissionName
from ...core.exceptions import DomainException
from ...dependencies.permissions import require_permission
from ...models.user import User
from ...schemas.privacy import AccountDeletionResponse
from ...services.privacy_service import PrivacyService, export_filename
from ...utils.cookies import clear_session_cookie

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/privacy
router = APIRouter(tags=["privacy"])


@router.get("/export")
async def export_my_data(
    request: Request,
    current_user: User = Depends(require_permission(PermissionName.EXPORT_OWN_DATA)),
    privacy_service: PrivacyService = Depends(get_privacy_service),
) -> JSONResponse:
    """
    Export all data for the current user (GDPR Art. 15).

    Delivered as a JSON attachment so browsers save it as a file.
    """
    try:
        user_data = await asyncio.to_thread(privacy_service.export_user_data, current_user, request)
    except DomainException as e:
        raise e.to_http_exception()

    return JSONResponse(
        content=user_data,
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.delete("/account", response_model=AccountDeletionResponse)
async def delete_my_account(
    request: Request,
    response: Response,
    current_user: User = Depends(require_permission(PermissionName.DELETE_OWN_ACCOUNT)),
    privacy_service: PrivacyService = Depends(get_privacy_service),
) -> AccountDeletionResponse:
    """
    Erase the current account and everything tied to it (GDPR Art. 17).

    Studio owners must transfer or delete their studios first.
    """
    try:
        stats = await asyncio.to_thread(privacy_service.delete_account, current_user, request)
    except DomainException as e:
        raise e.to_http_exception()

    clear_session_cookie(response)
    return AccountDeletionResponse(
        message="Your account and all associated data have been deleted",
        deletion_stats=stats,
    )
