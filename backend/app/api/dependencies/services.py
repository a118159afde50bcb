# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.admin_service import AdminService
from ...services.auth_service import AuthService
from ...services.booking_service import BookingService
from ...services.capacity_service import CapacityService
from ...services.geolocation_service import GeocodingService
from ...services.notification_service import NotificationService
from ...services.privacy_service import PrivacyService
from ...services.studio_service import StudioService
from .database import get_db


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_auth_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> AuthService:
    return AuthService(db, notification_service=notification_service)


def get_booking_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session
        notification_service: Mail delivery for booking events

    Returns:
        BookingService instance
    """
    return BookingService(db, notification_service=notification_service)


def get_studio_service(db: Session = Depends(get_db)) -> StudioService:
    return StudioService(db)


def get_capacity_service(db: Session = Depends(get_db)) -> CapacityService:
    return CapacityService(db)


def get_privacy_service(db: Session = Depends(get_db)) -> PrivacyService:
    return PrivacyService(db)


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    return AdminService(db)


def get_geocoding_service() -> GeocodingService:
    return GeocodingService()
