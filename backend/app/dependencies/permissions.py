# backend/app/dependencies/permissions.py
"""
Permission dependencies for FastAPI endpoints.

These dependencies check the permission table before allowing access to
protected endpoints. Missing authentication surfaces as 401 from
``get_current_user``; a denied permission is 403.
"""

from typing import Union

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..api.dependencies.auth import get_current_user
from ..api.dependencies.database import get_db
from ..core.enums import PermissionName
from ..models.user import User
from ..services.permission_service import PermissionService


def get_permission_service(db: Session = Depends(get_db)) -> PermissionService:
    """
    Get an instance of the permission service.

    Args:
        db: Database session from dependency injection

    Returns:
        PermissionService instance
    """
    return PermissionService(db)


def _permission_value(permission: Union[str, PermissionName]) -> str:
    return permission.value if isinstance(permission, PermissionName) else permission


def require_permission(permission_name: Union[str, PermissionName]):
    """
    Create a dependency that requires a specific permission.

    Args:
        permission_name: The permission required

    Returns:
        Dependency function returning the current user when permitted

    Example:
        @router.get("/users", dependencies=[Depends(require_permission(PermissionName.VIEW_ALL_USERS))])
        async def list_users():
            ...
    """

    def permission_checker(
        current_user: User = Depends(get_current_user),
        permission_service: PermissionService = Depends(get_permission_service),
    ) -> User:
        if not permission_service.user_has_permission(current_user, permission_name):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "message": f"User does not have required permission: {_permission_value(permission_name)}",
                    "code": "PERMISSION_DENIED",
                },
            )
        return current_user

    return permission_checker


def require_any_permission(*permission_names: Union[str, PermissionName]):
    """
    Create a dependency that requires at least one of the specified permissions.

    Args:
        *permission_names: Variable number of permissions

    Returns:
        Dependency function that validates at least one permission
    """

    def permission_checker(
        current_user: User = Depends(get_current_user),
        permission_service: PermissionService = Depends(get_permission_service),
    ) -> User:
        for permission_name in permission_names:
            if permission_service.user_has_permission(current_user, permission_name):
                return current_user

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "User does not have any of the required permissions: "
                + ", ".join(_permission_value(p) for p in permission_names),
                "code": "PERMISSION_DENIED",
            },
        )

    return permission_checker
