from sqlalchemy import func, select

from app.core.enums import RoleName
from app.models.legacy import LegacyCustomer, LegacyStudioOwner
from app.models.user import User
from app.services.legacy_migration_service import LegacyMigrationService


def _seed(db):
    db.add_all(
        [
            LegacyCustomer(email="kunde1@example.com", name="Kunde Eins"),
            LegacyCustomer(email="Doppelt@example.com", name="Doppel Rolle", password_hash="customer-hash"),
            LegacyStudioOwner(email="doppelt@example.com", name="Doppel Rolle", password_hash="owner-hash"),
            LegacyStudioOwner(email="inhaber@example.com", name="Inhaber"),
        ]
    )
    db.commit()


def test_migrate_all_promotes_and_merges(db):
    _seed(db)

    report = LegacyMigrationService(db).migrate_all()

    assert report.owners_created == 2
    assert report.customers_created == 1
    assert report.merged == 1
    assert report.errors == []
    assert report.total_processed == 4

    both = db.execute(select(User).where(User.email == "doppelt@example.com")).scalar_one()
    assert both.primary_role == RoleName.STUDIO_OWNER.value
    assert both.has_role(RoleName.CUSTOMER)
    assert both.password_hash == "owner-hash"


def test_second_run_skips_everything(db):
    _seed(db)
    service = LegacyMigrationService(db)
    service.migrate_all()

    report = service.migrate_all()

    assert report.total_processed == 0
    assert db.scalar(select(func.count()).select_from(User)) == 3


def test_dry_run_changes_nothing(db):
    _seed(db)

    report = LegacyMigrationService(db).migrate_all(dry_run=True)

    assert report.total_processed == 4
    assert db.scalar(select(func.count()).select_from(User)) == 0
    assert all(row.migrated_user_id is None for row in db.execute(select(LegacyCustomer)).scalars())
