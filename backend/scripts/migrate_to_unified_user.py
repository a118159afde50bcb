"""
Move legacy customer and studio owner accounts onto unified users.

Owner rows are processed first so a person who is both ends up with
one user holding both roles. Already-migrated rows are skipped, so the
script can be re-run safely.

Usage:
    python -m scripts.migrate_to_unified_user --dry-run
    python -m scripts.migrate_to_unified_user
"""

from pathlib import Path
import sys

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.database import SessionLocal
from app.services.legacy_migration_service import LegacyMigrationService


def main() -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Migrate legacy accounts to unified users")
    parser.add_argument(
        "--dry-run", action="store_true", help="Report what would change, then roll back"
    )
    args = parser.parse_args()

    db = SessionLocal()
    try:
        report = LegacyMigrationService(db).migrate_all(dry_run=args.dry_run)
    finally:
        db.close()

    label = "DRY RUN" if args.dry_run else "DONE"
    print(f"\n{label}: processed {report.total_processed} legacy records")
    print(f"  customers created: {report.customers_created}")
    print(f"  studio owners created: {report.owners_created}")
    print(f"  merged into existing users: {report.merged}")
    print(f"  skipped (already migrated): {report.skipped}")

    if report.errors:
        print(f"\nErrors ({len(report.errors)}):")
        for error in report.errors:
            print(f"  {error}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
