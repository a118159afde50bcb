# backend/app/services/privacy_service.py
"""
Privacy Service for the Massava platform.

Handles GDPR data subject requests:
- Art. 15 data export (everything stored about the requesting user)
- Art. 17 erasure (hard delete across every table holding the user's data)

Studio owners must hand over or delete their studios before they can be
erased; the studios' bookings belong to other customers.
"""

from datetime import datetime
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import (
    DELETED_SERVICE_NAME,
    EXPORT_FILENAME_PREFIX,
    GDPR_EXPORT_ARTICLE,
    GDPR_EXPORT_FORMAT,
)
from ..core.enums import AuditAction, AuditResource
from ..core.exceptions import ValidationException
from ..models.booking import Booking
from ..models.studio import Studio
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..utils.time_helpers import utc_now
from .audit_service import AuditService
from .base import BaseService
from .capacity_service import CapacityService

if TYPE_CHECKING:
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.legacy_repository import LegacyAccountRepository
    from ..repositories.studio_repository import StudioRepository
    from ..repositories.token_repository import TokenRepository
    from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def export_filename(now: Optional[datetime] = None) -> str:
    stamp = (now or utc_now()).isoformat().replace(":", "-").replace(".", "-").replace("+", "-")
    return f"{EXPORT_FILENAME_PREFIX}-{stamp}.json"


class PrivacyService(BaseService):
    """
    Service for GDPR data subject requests.

    Handles:
    - GDPR data export requests
    - Right to be forgotten (account erasure)
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.user_repository: "UserRepository" = RepositoryFactory.create_user_repository(db)
        self.booking_repository: "BookingRepository" = RepositoryFactory.create_booking_repository(db)
        self.studio_repository: "StudioRepository" = RepositoryFactory.create_studio_repository(db)
        self.magic_link_repository: "TokenRepository[Any]" = (
            RepositoryFactory.create_magic_link_token_repository(db)
        )
        self.verification_repository: "TokenRepository[Any]" = (
            RepositoryFactory.create_email_verification_token_repository(db)
        )
        self.legacy_repository: "LegacyAccountRepository" = RepositoryFactory.create_legacy_account_repository(db)
        self.audit_service = AuditService(db)
        self.capacity_service = CapacityService(db, audit_service=self.audit_service)

    # ==========================================
    # Art. 15 export
    # ==========================================

    @staticmethod
    def _booking_entry(booking: Booking) -> Dict[str, Any]:
        studio = booking.studio
        service = booking.service
        return {
            "id": booking.id,
            "studio": {
                "id": studio.id,
                "name": studio.name,
                "street": studio.street,
                "city": studio.city,
                "phone": studio.phone,
                "email": studio.email,
            }
            if studio
            else None,
            "service": {
                "id": service.id,
                "name": service.name,
                "description": service.description,
                "price": float(service.price),
                "durationMinutes": service.duration_minutes,
            }
            if service
            else {"name": DELETED_SERVICE_NAME},
            "customerName": booking.customer_name,
            "customerEmail": booking.customer_email,
            "customerPhone": booking.customer_phone,
            "preferredDate": booking.preferred_date,
            "preferredTime": booking.preferred_time,
            "message": booking.message,
            "status": booking.status,
            "healthDataConsent": booking.explicit_health_consent,
            "healthDataConsentGivenAt": _iso(booking.health_consent_at),
            "healthDataConsentText": booking.health_consent_text,
            "createdAt": _iso(booking.created_at),
        }

    def _studio_entry(self, studio: Studio) -> Dict[str, Any]:
        return {
            "id": studio.id,
            "name": studio.name,
            "description": studio.description,
            "street": studio.street,
            "city": studio.city,
            "postalCode": studio.postal_code,
            "country": studio.country,
            "phone": studio.phone,
            "email": studio.email,
            "capacity": studio.capacity,
            "services": [
                {
                    "id": service.id,
                    "name": service.name,
                    "durationMinutes": service.duration_minutes,
                    "price": float(service.price),
                    "isActive": service.is_active,
                }
                for service in studio.services
            ],
            "bookingsCount": len(self.booking_repository.list_for_studios([studio.id])),
            "createdAt": _iso(studio.created_at),
        }

    @BaseService.measure_operation("export_user_data")
    def export_user_data(self, user: User, request: Any = None) -> Dict[str, Any]:
        """
        Export all user data for GDPR compliance.

        Args:
            user: The user requesting their data

        Returns:
            JSON-ready dictionary with camelCase keys
        """
        bookings = self.booking_repository.list_for_customer(user.id)
        favorites = self.studio_repository.list_favorite_studios(user.id)
        studios = self.studio_repository.owned_studios(user.id)
        audit_entries = self.audit_service.export_user_logs(user.id)

        export_data: Dict[str, Any] = {
            "exportDate": utc_now().isoformat(),
            "gdprArticle": GDPR_EXPORT_ARTICLE,
            "format": GDPR_EXPORT_FORMAT,
            "dataController": {
                "name": settings.data_controller_name,
                "email": settings.data_controller_email,
            },
            "personalData": {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "phone": user.phone,
                "primaryRole": user.primary_role,
                "emailVerified": _iso(user.email_verified_at),
                "hasPassword": not user.is_passwordless,
                "accountCreated": _iso(user.created_at),
                "lastUpdated": _iso(user.updated_at),
                "oauthProviders": [
                    account.provider for account in self.user_repository.list_oauth_accounts(user.id)
                ],
            },
            "roles": [
                {
                    "role": assignment.role,
                    "grantedBy": assignment.granted_by,
                    "grantedAt": _iso(assignment.granted_at),
                }
                for assignment in self.user_repository.list_role_assignments(user.id)
            ],
            "bookings": [self._booking_entry(booking) for booking in bookings],
            "favorites": [
                {
                    "id": studio.id,
                    "name": studio.name,
                    "street": studio.street,
                    "city": studio.city,
                    "phone": studio.phone,
                    "email": studio.email,
                    "addedAt": _iso(favorite.created_at),
                }
                for favorite, studio in favorites
            ],
            "studios": [self._studio_entry(studio) for studio in studios],
            "auditLog": [
                {
                    "action": entry.action,
                    "resourceType": entry.resource_type,
                    "resourceId": entry.resource_id,
                    "metadata": entry.metadata_json,
                    "ipAddress": entry.ip_address,
                    "occurredAt": _iso(entry.occurred_at),
                }
                for entry in audit_entries
            ],
        }

        with self.transaction():
            self.audit_service.record(
                AuditAction.USER_DATA_EXPORTED,
                AuditResource.USER,
                actor_id=user.id,
                resource_id=user.id,
                metadata={"bookings": len(bookings), "studios": len(studios)},
                request=request,
            )

        logger.info(f"Exported data for user {user.id}")
        return export_data

    # ==========================================
    # Art. 17 erasure
    # ==========================================

    @BaseService.measure_operation("delete_account")
    def delete_account(self, user: User, request: Any = None) -> Dict[str, int]:
        """
        Erase the user and everything linked to them.

        Confirmed bookings give their capacity seats back before deletion.
        The erasure itself is audited afterwards without an actor, since the
        actor no longer exists.

        Raises:
            ValidationException: the user still owns studios (``studiosCount`` in details)
        """
        studios_count = self.studio_repository.count_owned_studios(user.id)
        if studios_count > 0:
            raise ValidationException(
                "Please transfer or delete your studios before deleting your account",
                code="OWNS_STUDIOS",
                details={"studiosCount": studios_count},
            )

        user_id = user.id
        email = user.email
        stats: Dict[str, int] = {}

        with self.transaction():
            for booking in self.booking_repository.confirmed_for_customer(user_id):
                self.capacity_service.release_seat(booking.studio_id, booking.preferred_date, booking.preferred_time)

            stats["sessions"] = self.user_repository.delete_sessions_for_user(user_id)
            stats["oauthAccounts"] = self.user_repository.delete_oauth_accounts_for_user(user_id)
            stats["ownerships"] = self.studio_repository.delete_ownerships_for_user(user_id)
            stats["roleAssignments"] = self.user_repository.delete_role_assignments_for_user(user_id)
            stats["favorites"] = self.studio_repository.delete_favorites_for_user(user_id)
            stats["bookings"] = self.booking_repository.delete_for_customer(user_id)
            stats["auditLogs"] = self.audit_service.delete_for_actor(user_id)
            stats["magicLinks"] = self.magic_link_repository.delete_for_email(email)
            stats["emailVerifications"] = self.verification_repository.delete_for_email(email)
            stats["legacyAccounts"] = self.legacy_repository.delete_for_email(email)
            self.db.expunge(user)
            self.user_repository.hard_delete(user_id)

        with self.transaction():
            self.audit_service.record(
                AuditAction.ACCOUNT_DELETION_REQUESTED,
                AuditResource.USER,
                actor_id=None,
                resource_id=user_id,
                metadata={"deleted": stats},
                request=request,
            )

        logger.info(f"Erased account {user_id}: {stats}")
        return stats

