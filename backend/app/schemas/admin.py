# backend/app/schemas/admin.py
"""Schemas for platform administration endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from .auth import UserResponse
from .base import CamelModel, CamelRequestModel


class SuspendRequest(CamelRequestModel):
    suspended: bool = True
    reason: Optional[str] = Field(None, max_length=500)


class AdminUserListResponse(CamelModel):
    users: List[UserResponse]
    total: int
    skip: int
    limit: int


class StudioSuspensionResponse(CamelModel):
    id: str
    name: str
    is_suspended: bool


class AuditLogResponse(CamelModel):
    id: str
    actor_id: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    ip_address: str
    user_agent: Optional[str] = None
    occurred_at: datetime


class AuditLogListResponse(CamelModel):
    items: List[AuditLogResponse]
    total: int
    limit: int
    offset: int
