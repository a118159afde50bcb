# backend/app/core/enums.py
"""
Core enums for the Massava platform.

This module contains enumeration types used throughout the application
for type safety and consistency. Role and permission values are the
strings persisted in the database and exposed over the API.
"""

from enum import Enum


class RoleName(str, Enum):
    """
    Platform roles.

    The hierarchy GUEST < CUSTOMER < STUDIO_OWNER < SUPER_ADMIN is used only
    for coarse comparisons; permissions are enumerated per role in
    ``app.core.rbac``.
    """

    SUPER_ADMIN = "SUPER_ADMIN"
    STUDIO_OWNER = "STUDIO_OWNER"
    CUSTOMER = "CUSTOMER"
    GUEST = "GUEST"


class PermissionName(str, Enum):
    """Fine-grained actions checked against the role table."""

    # Platform administration
    VIEW_ALL_STUDIOS = "platform:view_all_studios"
    SUSPEND_STUDIO = "platform:suspend_studio"
    DELETE_ANY_STUDIO = "platform:delete_any_studio"
    VIEW_ALL_USERS = "platform:view_all_users"
    PLATFORM_ANALYTICS = "platform:analytics"
    PLATFORM_SETTINGS = "platform:settings"

    # Studio management
    CREATE_STUDIO = "studio:create"
    EDIT_OWN_STUDIO = "studio:edit_own"
    DELETE_OWN_STUDIO = "studio:delete_own"
    VIEW_PUBLIC_STUDIOS = "studio:view_public"

    # Bookings
    VIEW_ALL_BOOKINGS = "booking:view_all"
    VIEW_STUDIO_BOOKINGS = "booking:view_studio"
    CREATE_BOOKING = "booking:create"
    VIEW_OWN_BOOKINGS = "booking:view_own"
    CANCEL_OWN_BOOKING = "booking:cancel_own"
    CONFIRM_BOOKING = "booking:confirm"

    # Services
    CREATE_SERVICE = "service:create"
    VIEW_SERVICES = "service:view"

    # Own account (GDPR)
    EXPORT_OWN_DATA = "user:export_own_data"
    DELETE_OWN_ACCOUNT = "user:delete_own_account"


class AuditAction(str, Enum):
    """Actions recorded in the audit log."""

    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_DATA_EXPORTED = "USER_DATA_EXPORTED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    EMAIL_VERIFIED = "EMAIL_VERIFIED"

    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    BOOKING_UPDATED = "BOOKING_UPDATED"
    BOOKING_COMPLETED = "BOOKING_COMPLETED"

    STUDIO_CREATED = "STUDIO_CREATED"
    STUDIO_UPDATED = "STUDIO_UPDATED"
    STUDIO_DELETED = "STUDIO_DELETED"
    STUDIO_SUSPENDED = "STUDIO_SUSPENDED"

    SERVICE_CREATED = "SERVICE_CREATED"
    SERVICE_UPDATED = "SERVICE_UPDATED"
    SERVICE_DELETED = "SERVICE_DELETED"

    HEALTH_CONSENT_GIVEN = "HEALTH_CONSENT_GIVEN"
    HEALTH_CONSENT_WITHDRAWN = "HEALTH_CONSENT_WITHDRAWN"

    DATA_EXPORT_REQUESTED = "DATA_EXPORT_REQUESTED"
    ACCOUNT_DELETION_REQUESTED = "ACCOUNT_DELETION_REQUESTED"


class AuditResource(str, Enum):
    """Resource types an audit entry can point at."""

    USER = "user"
    BOOKING = "booking"
    STUDIO = "studio"
    SERVICE = "service"
    SYSTEM = "system"
