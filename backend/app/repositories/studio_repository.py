# backend/app/repositories/studio_repository.py
"""
Studio Repository for the Massava platform

Studios, ownership links, services and customer favorites.
"""

import logging
from typing import List, Optional, Sequence, cast

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Query, Session, selectinload

from ..models.booking import Booking
from ..models.favorite import UserFavorite
from ..models.service import Service
from ..models.studio import Studio, StudioOwnership
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class StudioRepository(BaseRepository[Studio]):
    """Repository for Studio, StudioOwnership, Service and UserFavorite access."""

    def __init__(self, db: Session):
        super().__init__(db, Studio)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(Studio.ownerships), selectinload(Studio.services))

    # ==========================================
    # Studios
    # ==========================================

    def list_public(self, *, limit: int = 500) -> List[Studio]:
        return list(
            self.db.query(Studio)
            .filter(Studio.is_suspended.is_(False))
            .order_by(Studio.name)
            .limit(limit)
            .all()
        )

    def list_with_coordinates(self) -> List[Studio]:
        return list(
            self.db.query(Studio)
            .filter(
                Studio.is_suspended.is_(False),
                Studio.latitude.isnot(None),
                Studio.longitude.isnot(None),
            )
            .all()
        )

    def get_capacity(self, studio_id: str) -> Optional[int]:
        return cast(
            Optional[int],
            self.db.execute(select(Studio.capacity).where(Studio.id == studio_id)).scalar_one_or_none(),
        )

    # ==========================================
    # Ownership
    # ==========================================

    def is_owner(self, user_id: str, studio_id: str) -> bool:
        return (
            self.db.query(StudioOwnership.id)
            .filter(StudioOwnership.user_id == user_id, StudioOwnership.studio_id == studio_id)
            .first()
            is not None
        )

    def add_owner(self, studio: Studio, user_id: str, *, can_transfer: bool = True) -> StudioOwnership:
        ownership = StudioOwnership(studio_id=studio.id, user_id=user_id, can_transfer=can_transfer)
        studio.ownerships.append(ownership)
        self.db.flush()
        return ownership

    def owned_studio_ids(self, user_id: str) -> List[str]:
        rows = self.db.execute(
            select(StudioOwnership.studio_id).where(StudioOwnership.user_id == user_id)
        ).scalars()
        return list(rows)

    def owned_studios(self, user_id: str) -> List[Studio]:
        return list(
            self.db.query(Studio)
            .join(StudioOwnership, StudioOwnership.studio_id == Studio.id)
            .filter(StudioOwnership.user_id == user_id)
            .order_by(Studio.created_at)
            .all()
        )

    def count_owned_studios(self, user_id: str) -> int:
        return self.db.query(StudioOwnership).filter(StudioOwnership.user_id == user_id).count()

    def owner_ids(self, studio_id: str) -> List[str]:
        rows = self.db.execute(
            select(StudioOwnership.user_id).where(StudioOwnership.studio_id == studio_id)
        ).scalars()
        return list(rows)

    def owner_emails(self, studio_id: str) -> List[str]:
        rows = self.db.execute(
            select(User.email)
            .join(StudioOwnership, StudioOwnership.user_id == User.id)
            .where(StudioOwnership.studio_id == studio_id)
        ).scalars()
        return list(rows)

    def delete_ownerships_for_user(self, user_id: str) -> int:
        result = self.db.execute(delete(StudioOwnership).where(StudioOwnership.user_id == user_id))
        return int(result.rowcount or 0)

    # ==========================================
    # Services
    # ==========================================

    def get_service(self, service_id: str) -> Optional[Service]:
        return cast(Optional[Service], self.db.query(Service).filter(Service.id == service_id).first())

    def get_studio_service(self, studio_id: str, service_id: str) -> Optional[Service]:
        return cast(
            Optional[Service],
            self.db.query(Service)
            .filter(Service.id == service_id, Service.studio_id == studio_id)
            .first(),
        )

    def list_services(self, studio_id: str, *, active_only: bool = True) -> List[Service]:
        query = self.db.query(Service).filter(Service.studio_id == studio_id)
        if active_only:
            query = query.filter(Service.is_active.is_(True))
        return list(query.order_by(Service.name).all())

    def create_service(self, **fields: object) -> Service:
        service = Service(**fields)
        self.db.add(service)
        self.db.flush()
        return service

    def delete_service(self, service: Service) -> None:
        # Bookings outlive the service they were made for
        self.db.execute(
            update(Booking)
            .where(Booking.service_id == service.id)
            .values(service_id=None)
            .execution_options(synchronize_session=False)
        )
        self.db.delete(service)
        self.db.flush()

    # ==========================================
    # Favorites
    # ==========================================

    def get_favorite(self, user_id: str, studio_id: str) -> Optional[UserFavorite]:
        return cast(
            Optional[UserFavorite],
            self.db.query(UserFavorite)
            .filter(UserFavorite.user_id == user_id, UserFavorite.studio_id == studio_id)
            .first(),
        )

    def add_favorite(self, user_id: str, studio_id: str) -> UserFavorite:
        favorite = UserFavorite(user_id=user_id, studio_id=studio_id)
        self.db.add(favorite)
        self.db.flush()
        return favorite

    def remove_favorite(self, user_id: str, studio_id: str) -> bool:
        result = self.db.execute(
            delete(UserFavorite).where(
                UserFavorite.user_id == user_id, UserFavorite.studio_id == studio_id
            )
        )
        return bool(result.rowcount)

    def list_favorite_studios(self, user_id: str) -> Sequence[tuple[UserFavorite, Studio]]:
        return (
            self.db.query(UserFavorite, Studio)
            .join(Studio, Studio.id == UserFavorite.studio_id)
            .filter(UserFavorite.user_id == user_id)
            .order_by(UserFavorite.created_at.desc())
            .all()
        )

    def delete_favorites_for_user(self, user_id: str) -> int:
        result = self.db.execute(delete(UserFavorite).where(UserFavorite.user_id == user_id))
        return int(result.rowcount or 0)
