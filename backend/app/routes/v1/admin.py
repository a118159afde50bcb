# backend/app/routes/v1/admin.py
"""
Platform administration - API v1

Every endpoint requires a platform permission (SUPER_ADMIN in practice).
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from ...api.dependencies import get_admin_service
from ...core.constants import DEFAULT_AUDIT_QUERY_LIMIT
from ...core.enums import AuditResource, PermissionName
from ...core.exceptions import DomainException
from ...dependencies.permissions import require_permission
from ...models.user import User
from ...schemas.admin import (
    AdminUserListResponse,
    AuditLogListResponse,
    AuditLogResponse,
    StudioSuspensionResponse,
    SuspendRequest,
)
from ...schemas.auth import UserResponse
from ...services.admin_service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-v1"])


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(require_permission(PermissionName.VIEW_ALL_USERS)),
    admin_service: AdminService = Depends(get_admin_service),
) -> AdminUserListResponse:
    users, total = await asyncio.to_thread(admin_service.list_users, skip=skip, limit=limit)
    return AdminUserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("/users/{user_id}/suspend", response_model=UserResponse)
async def suspend_user(
    user_id: str,
    request: Request,
    payload: Optional[SuspendRequest] = Body(None),
    current_user: User = Depends(require_permission(PermissionName.PLATFORM_SETTINGS)),
    admin_service: AdminService = Depends(get_admin_service),
) -> UserResponse:
    payload = payload or SuspendRequest()
    try:
        user = await asyncio.to_thread(
            admin_service.suspend_user,
            current_user,
            user_id,
            suspended=payload.suspended,
            reason=payload.reason,
            request=request,
        )
    except DomainException as e:
        raise e.to_http_exception()
    return UserResponse.model_validate(user)


@router.post("/studios/{studio_id}/suspend", response_model=StudioSuspensionResponse)
async def suspend_studio(
    studio_id: str,
    request: Request,
    payload: Optional[SuspendRequest] = Body(None),
    current_user: User = Depends(require_permission(PermissionName.SUSPEND_STUDIO)),
    admin_service: AdminService = Depends(get_admin_service),
) -> StudioSuspensionResponse:
    payload = payload or SuspendRequest()
    try:
        studio = await asyncio.to_thread(
            admin_service.suspend_studio,
            current_user,
            studio_id,
            suspended=payload.suspended,
            reason=payload.reason,
            request=request,
        )
    except DomainException as e:
        raise e.to_http_exception()
    return StudioSuspensionResponse.model_validate(studio)


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    resource_type: AuditResource = Query(..., alias="resourceType"),
    resource_id: Optional[str] = Query(None, alias="resourceId"),
    limit: int = Query(DEFAULT_AUDIT_QUERY_LIMIT, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_permission(PermissionName.PLATFORM_ANALYTICS)),
    admin_service: AdminService = Depends(get_admin_service),
) -> AuditLogListResponse:
    logs, total = await asyncio.to_thread(
        admin_service.audit_logs, resource_type, resource_id, limit=limit, offset=offset
    )
    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(log.to_dict()) for log in logs],
        total=total,
        limit=limit,
        offset=offset,
    )
