import pytest

from app.core.enums import PermissionName, RoleName
from app.core.rbac import (
    get_permissions_for_role,
    has_all_permissions,
    has_any_permission,
    has_permission,
    is_role_at_least,
    is_role_higher_than,
    permissions_for_roles,
)


def test_super_admin_holds_every_permission():
    assert get_permissions_for_role(RoleName.SUPER_ADMIN) == frozenset(PermissionName)


@pytest.mark.parametrize(
    "permission",
    [PermissionName.CONFIRM_BOOKING, PermissionName.CREATE_SERVICE, PermissionName.VIEW_STUDIO_BOOKINGS],
)
def test_studio_owner_manages_studio(permission):
    assert has_permission(RoleName.STUDIO_OWNER, permission)


def test_studio_owner_has_no_platform_permissions():
    assert not has_permission(RoleName.STUDIO_OWNER, PermissionName.SUSPEND_STUDIO)
    assert not has_permission(RoleName.STUDIO_OWNER, PermissionName.VIEW_ALL_BOOKINGS)


def test_customer_permissions():
    assert has_permission(RoleName.CUSTOMER, PermissionName.CREATE_BOOKING)
    assert has_permission(RoleName.CUSTOMER, PermissionName.DELETE_OWN_ACCOUNT)
    assert not has_permission(RoleName.CUSTOMER, PermissionName.CONFIRM_BOOKING)
    assert not has_permission(RoleName.CUSTOMER, PermissionName.CREATE_STUDIO)


def test_guest_can_only_browse():
    assert get_permissions_for_role(RoleName.GUEST) == frozenset(
        {PermissionName.VIEW_PUBLIC_STUDIOS, PermissionName.VIEW_SERVICES}
    )


def test_string_values_are_accepted():
    assert has_permission("CUSTOMER", "booking:create")


def test_unknown_role_or_permission_is_denied_without_error():
    assert get_permissions_for_role("MASSEUR") == frozenset()
    assert not has_permission("MASSEUR", PermissionName.CREATE_BOOKING)
    assert not has_permission(RoleName.SUPER_ADMIN, "platform:self_destruct")


def test_any_and_all():
    wanted = [PermissionName.CONFIRM_BOOKING, PermissionName.CREATE_BOOKING]
    assert has_any_permission(RoleName.CUSTOMER, wanted)
    assert not has_all_permissions(RoleName.CUSTOMER, wanted)
    assert has_all_permissions(RoleName.STUDIO_OWNER, wanted)
    assert not has_any_permission(RoleName.GUEST, wanted)


def test_hierarchy_comparisons():
    assert is_role_higher_than(RoleName.SUPER_ADMIN, RoleName.STUDIO_OWNER)
    assert is_role_at_least(RoleName.CUSTOMER, RoleName.CUSTOMER)
    assert not is_role_at_least(RoleName.GUEST, RoleName.CUSTOMER)
    assert not is_role_higher_than("unknown", RoleName.GUEST)


def test_permissions_for_multiple_roles_is_a_union():
    combined = permissions_for_roles([RoleName.CUSTOMER, RoleName.STUDIO_OWNER])
    assert PermissionName.CONFIRM_BOOKING in combined
    assert PermissionName.EXPORT_OWN_DATA in combined
    assert PermissionName.SUSPEND_STUDIO not in combined
