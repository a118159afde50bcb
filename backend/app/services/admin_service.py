# backend/app/services/admin_service.py
"""
Platform administration: user and studio suspension plus the audit viewer.

Route dependencies enforce the platform permissions; this service assumes
the caller is already authorized.
"""

import logging
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_AUDIT_QUERY_LIMIT
from ..core.enums import AuditAction, AuditResource
from ..core.exceptions import NotFoundException, ValidationException
from ..models.audit_log import AuditLog
from ..models.studio import Studio
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .audit_service import AuditService
from .base import BaseService

if TYPE_CHECKING:
    from ..repositories.studio_repository import StudioRepository
    from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class AdminService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.user_repository: "UserRepository" = RepositoryFactory.create_user_repository(db)
        self.studio_repository: "StudioRepository" = RepositoryFactory.create_studio_repository(db)
        self.audit_service = AuditService(db)

    @BaseService.measure_operation("admin_list_users")
    def list_users(self, *, skip: int = 0, limit: int = 100) -> Tuple[List[User], int]:
        return self.user_repository.list_users(skip=skip, limit=limit), self.user_repository.count_users()

    @BaseService.measure_operation("admin_suspend_user")
    def suspend_user(
        self,
        actor: User,
        user_id: str,
        *,
        suspended: bool = True,
        reason: Optional[str] = None,
        request: Any = None,
    ) -> User:
        """Suspend (or reinstate) an account. Suspension ends every open session."""
        user = self.user_repository.get_by_id(user_id, load_relationships=False)
        if user is None:
            raise NotFoundException("User not found", code="USER_NOT_FOUND")
        if user.id == actor.id:
            raise ValidationException("You cannot suspend your own account", code="SELF_SUSPENSION")

        with self.transaction():
            user.is_suspended = suspended
            ended = self.user_repository.delete_sessions_for_user(user.id) if suspended else 0
            self.audit_service.record(
                AuditAction.USER_UPDATED,
                AuditResource.USER,
                actor_id=actor.id,
                resource_id=user.id,
                metadata={"suspended": suspended, "reason": reason, "sessionsEnded": ended},
                request=request,
            )

        self.db.refresh(user)
        self.logger.info(f"User {user.id} suspended={suspended} by {actor.id}")
        return user

    @BaseService.measure_operation("admin_suspend_studio")
    def suspend_studio(
        self,
        actor: User,
        studio_id: str,
        *,
        suspended: bool = True,
        reason: Optional[str] = None,
        request: Any = None,
    ) -> Studio:
        studio = self.studio_repository.get_by_id(studio_id, load_relationships=False)
        if studio is None:
            raise NotFoundException("Studio not found", code="STUDIO_NOT_FOUND")

        with self.transaction():
            studio.is_suspended = suspended
            self.audit_service.record(
                AuditAction.STUDIO_SUSPENDED if suspended else AuditAction.STUDIO_UPDATED,
                AuditResource.STUDIO,
                actor_id=actor.id,
                resource_id=studio.id,
                metadata={"suspended": suspended, "reason": reason},
                request=request,
            )

        self.db.refresh(studio)
        return studio

    def audit_logs(
        self,
        resource_type: AuditResource,
        resource_id: Optional[str] = None,
        *,
        limit: int = DEFAULT_AUDIT_QUERY_LIMIT,
        offset: int = 0,
    ) -> Tuple[List[AuditLog], int]:
        return self.audit_service.resource_logs(resource_type, resource_id, limit=limit, offset=offset)
