# backend/app/services/permission_service.py
"""
Permission service for Role-Based Access Control.

Role permissions come from the static table in ``app.core.rbac``; this
service adds what needs the database: a user's effective roles (primary role
plus assignments) and studio ownership checks.
"""

from typing import TYPE_CHECKING, FrozenSet, List, Union

from sqlalchemy.orm import Session

from ..core.enums import PermissionName, RoleName
from ..core.rbac import permissions_for_roles
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

if TYPE_CHECKING:
    from ..repositories.studio_repository import StudioRepository


class PermissionService(BaseService):
    """
    Service for checking user permissions and studio access.

    A user holds a permission when any of their effective roles holds it.
    Unknown roles contribute nothing.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.studio_repository: "StudioRepository" = RepositoryFactory.create_studio_repository(db)

    def effective_roles(self, user: User) -> List[str]:
        return user.roles

    def permissions_for_user(self, user: User) -> FrozenSet[PermissionName]:
        return permissions_for_roles(self.effective_roles(user))

    def user_has_permission(self, user: User, permission: Union[str, PermissionName]) -> bool:
        """
        Check if a user has a specific permission.

        Args:
            user: The acting user
            permission: Permission enum or its string value

        Returns:
            True if any of the user's roles grants the permission
        """
        permission_str = permission.value if isinstance(permission, PermissionName) else permission
        return any(p.value == permission_str for p in self.permissions_for_user(user))

    def is_super_admin(self, user: User) -> bool:
        return user.has_role(RoleName.SUPER_ADMIN)

    @BaseService.measure_operation("can_access_studio")
    def can_access_studio(self, user: User, studio_id: str) -> bool:
        """Platform admins can manage every studio; everyone else needs an ownership row."""
        if self.is_super_admin(user):
            return True
        return self.studio_repository.is_owner(user.id, studio_id)

    def owned_studio_ids(self, user: User) -> List[str]:
        return self.studio_repository.owned_studio_ids(user.id)
