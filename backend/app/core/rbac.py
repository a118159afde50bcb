# backend/app/core/rbac.py
"""
Static role -> permission table.

Every role's permission set is enumerated explicitly. The role hierarchy is
only used for coarse "at least" comparisons and never for inheritance.
Lookups are pure and default-deny: an unknown role or an unlisted permission
yields False, never an exception.
"""

from typing import Dict, FrozenSet, Iterable, Union

from .enums import PermissionName, RoleName

RoleLike = Union[RoleName, str]
PermissionLike = Union[PermissionName, str]

ROLE_HIERARCHY: Dict[RoleName, int] = {
    RoleName.GUEST: 1,
    RoleName.CUSTOMER: 2,
    RoleName.STUDIO_OWNER: 3,
    RoleName.SUPER_ADMIN: 4,
}

ROLE_PERMISSIONS: Dict[RoleName, FrozenSet[PermissionName]] = {
    RoleName.SUPER_ADMIN: frozenset(PermissionName),
    RoleName.STUDIO_OWNER: frozenset(
        {
            PermissionName.CREATE_STUDIO,
            PermissionName.EDIT_OWN_STUDIO,
            PermissionName.DELETE_OWN_STUDIO,
            PermissionName.VIEW_PUBLIC_STUDIOS,
            PermissionName.VIEW_STUDIO_BOOKINGS,
            PermissionName.CREATE_BOOKING,
            PermissionName.VIEW_OWN_BOOKINGS,
            PermissionName.CANCEL_OWN_BOOKING,
            PermissionName.CONFIRM_BOOKING,
            PermissionName.CREATE_SERVICE,
            PermissionName.VIEW_SERVICES,
            PermissionName.EXPORT_OWN_DATA,
            PermissionName.DELETE_OWN_ACCOUNT,
        }
    ),
    RoleName.CUSTOMER: frozenset(
        {
            PermissionName.VIEW_PUBLIC_STUDIOS,
            PermissionName.CREATE_BOOKING,
            PermissionName.VIEW_OWN_BOOKINGS,
            PermissionName.CANCEL_OWN_BOOKING,
            PermissionName.VIEW_SERVICES,
            PermissionName.EXPORT_OWN_DATA,
            PermissionName.DELETE_OWN_ACCOUNT,
        }
    ),
    RoleName.GUEST: frozenset(
        {
            PermissionName.VIEW_PUBLIC_STUDIOS,
            PermissionName.VIEW_SERVICES,
        }
    ),
}


def _coerce_role(role: RoleLike) -> RoleName | None:
    if isinstance(role, RoleName):
        return role
    try:
        return RoleName(role)
    except ValueError:
        return None


def _coerce_permission(permission: PermissionLike) -> PermissionName | None:
    if isinstance(permission, PermissionName):
        return permission
    try:
        return PermissionName(permission)
    except ValueError:
        return None


def get_permissions_for_role(role: RoleLike) -> FrozenSet[PermissionName]:
    normalized = _coerce_role(role)
    if normalized is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(normalized, frozenset())


def has_permission(role: RoleLike, permission: PermissionLike) -> bool:
    perm = _coerce_permission(permission)
    if perm is None:
        return False
    return perm in get_permissions_for_role(role)


def has_any_permission(role: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    return any(has_permission(role, permission) for permission in permissions)


def has_all_permissions(role: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    return all(has_permission(role, permission) for permission in permissions)


def role_level(role: RoleLike) -> int:
    normalized = _coerce_role(role)
    if normalized is None:
        return 0
    return ROLE_HIERARCHY[normalized]


def is_role_higher_than(role: RoleLike, other: RoleLike) -> bool:
    return role_level(role) > role_level(other)


def is_role_at_least(role: RoleLike, minimum: RoleLike) -> bool:
    return role_level(role) >= role_level(minimum)


def permissions_for_roles(roles: Iterable[RoleLike]) -> FrozenSet[PermissionName]:
    """Union of the permission sets of every given role."""
    combined: set[PermissionName] = set()
    for role in roles:
        combined.update(get_permissions_for_role(role))
    return frozenset(combined)
