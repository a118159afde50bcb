# backend/alembic/versions/001_massava_foundation.py
"""Massava foundation - unified users, studios, bookings, audit and auth tokens

Revision ID: 001_massava_foundation
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the unified account schema (users, role assignments, sessions, OAuth
links), studios with ownerships and services, bookings with the per-slot
capacity counter, the audit trail, single-use auth tokens and the legacy
account tables read by the one-time migration.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from app.core.constants import (
    MAX_SERVICE_DURATION,
    MAX_SERVICE_PRICE,
    MAX_STUDIO_CAPACITY,
    MIN_SERVICE_DURATION,
    MIN_SERVICE_PRICE,
    MIN_STUDIO_CAPACITY,
)

# revision identifiers, used by Alembic.
revision: str = "001_massava_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _ulid() -> sa.String:
    return sa.String(26)


def _json() -> sa.types.TypeEngine:
    return JSONB(astext_type=sa.Text()).with_variant(sa.JSON(), "sqlite")


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def _legacy_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        _created_at(),
        sa.Column("migrated_user_id", _ulid(), nullable=True),
    )
    op.create_index(f"ix_{name}_email", name, ["email"], unique=True)


def _token_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index(f"ix_{name}_email", name, ["email"])
    op.create_index(f"ix_{name}_token", name, ["token"], unique=True)


def upgrade() -> None:
    print("Creating Massava foundation schema...")

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("primary_role", sa.String(20), nullable=False, server_default="CUSTOMER"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_suspended", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_verified_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_role_assignments",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("user_id", _ulid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("granted_by", sa.String(64), nullable=True),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "role", name="uq_user_role_assignment"),
    )
    op.create_index("ix_user_role_assignments_user_id", "user_role_assignments", ["user_id"])

    op.create_table(
        "user_sessions",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("user_id", _ulid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_agent", sa.String(255), nullable=True),
        _created_at(),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_index("ix_user_sessions_token_hash", "user_sessions", ["token_hash"], unique=True)

    op.create_table(
        "oauth_accounts",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("user_id", _ulid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("provider_account_id", sa.String(255), nullable=False),
        _created_at(),
        sa.UniqueConstraint("provider", "provider_account_id", name="uq_oauth_provider_account"),
    )
    op.create_index("ix_oauth_accounts_user_id", "oauth_accounts", ["user_id"])

    # ------------------------------------------------------------------
    # Studios
    # ------------------------------------------------------------------
    op.create_table(
        "studios",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("street", sa.String(200), nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("postal_code", sa.String(20), nullable=False),
        sa.Column("country", sa.String(100), nullable=False, server_default="Deutschland"),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("opening_hours", _json(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("is_suspended", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            f"capacity >= {MIN_STUDIO_CAPACITY} AND capacity <= {MAX_STUDIO_CAPACITY}",
            name="ck_studios_capacity_range",
        ),
    )

    op.create_table(
        "studio_ownerships",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("studio_id", _ulid(), sa.ForeignKey("studios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", _ulid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("can_transfer", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.UniqueConstraint("studio_id", "user_id", name="uq_studio_ownership"),
    )
    op.create_index("ix_studio_ownerships_studio_id", "studio_ownerships", ["studio_id"])
    op.create_index("ix_studio_ownerships_user_id", "studio_ownerships", ["user_id"])

    op.create_table(
        "services",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("studio_id", _ulid(), sa.ForeignKey("studios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            f"duration_minutes >= {MIN_SERVICE_DURATION} AND duration_minutes <= {MAX_SERVICE_DURATION}",
            name="ck_services_duration_range",
        ),
        sa.CheckConstraint(
            f"price >= {MIN_SERVICE_PRICE} AND price <= {MAX_SERVICE_PRICE}",
            name="ck_services_price_range",
        ),
    )
    op.create_index("ix_services_studio_id", "services", ["studio_id"])

    op.create_table(
        "user_favorites",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("user_id", _ulid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("studio_id", _ulid(), sa.ForeignKey("studios.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "studio_id", name="uq_user_favorite_studio"),
    )
    op.create_index("ix_user_favorites_user_id", "user_favorites", ["user_id"])
    op.create_index("ix_user_favorites_studio_id", "user_favorites", ["studio_id"])

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------
    op.create_table(
        "bookings",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("studio_id", _ulid(), sa.ForeignKey("studios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("service_id", _ulid(), sa.ForeignKey("services.id", ondelete="SET NULL"), nullable=True),
        sa.Column("customer_id", _ulid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("customer_name", sa.String(100), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(30), nullable=False),
        sa.Column("preferred_date", sa.String(32), nullable=False),
        sa.Column("preferred_time", sa.String(32), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("explicit_health_consent", sa.Boolean(), nullable=True),
        sa.Column("health_consent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("health_consent_text", sa.Text(), nullable=True),
        sa.Column("confirmed_by", _ulid(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", _ulid(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_studio_id", "bookings", ["studio_id"])
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    op.create_table(
        "booking_slots",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("studio_id", _ulid(), sa.ForeignKey("studios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("slot_date", sa.String(32), nullable=False),
        sa.Column("slot_time", sa.String(32), nullable=False),
        sa.Column("confirmed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("studio_id", "slot_date", "slot_time", name="uq_booking_slot"),
        sa.CheckConstraint("confirmed_count >= 0", name="ck_booking_slots_non_negative"),
    )
    op.create_index("ix_booking_slots_studio_id", "booking_slots", ["studio_id"])

    # ------------------------------------------------------------------
    # Compliance and auth tokens
    # ------------------------------------------------------------------
    op.create_table(
        "audit_logs",
        sa.Column("id", _ulid(), primary_key=True),
        sa.Column("actor_id", _ulid(), nullable=True),
        sa.Column("action", sa.String(40), nullable=False),
        sa.Column("resource_type", sa.String(20), nullable=False),
        sa.Column("resource_id", sa.String(64), nullable=True),
        sa.Column("metadata", _json(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=False, server_default="unknown"),
        sa.Column("user_agent", sa.String(255), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_occurred_at", "audit_logs", ["occurred_at"])
    op.create_index("ix_audit_logs_actor_occurred", "audit_logs", ["actor_id", "occurred_at"])
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])

    _token_table("magic_link_tokens")
    _token_table("email_verification_tokens")

    # ------------------------------------------------------------------
    # Legacy accounts (read by the one-time migration)
    # ------------------------------------------------------------------
    _legacy_table("legacy_customers")
    _legacy_table("legacy_studio_owners")

    print("Massava foundation schema created")


def downgrade() -> None:
    print("Dropping Massava foundation schema...")
    for table in (
        "legacy_studio_owners",
        "legacy_customers",
        "email_verification_tokens",
        "magic_link_tokens",
        "audit_logs",
        "booking_slots",
        "bookings",
        "user_favorites",
        "services",
        "studio_ownerships",
        "studios",
        "oauth_accounts",
        "user_sessions",
        "user_role_assignments",
        "users",
    ):
        op.drop_table(table)
