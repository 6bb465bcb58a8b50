#!/usr/bin/env python3
"""
Archive completed/cancelled orders from the command line.

Meant for cron: run it nightly, or with --preview to see what would move.
    python run_past_orders_migration.py --days 30
    python run_past_orders_migration.py --preview
"""
import argparse
import sys

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.errors import ValidationError
from app.services.order_archive_service import migrate_orders_older_than, preview_migration


def run_migration(days: int, preview: bool = False) -> bool:
    db = SessionLocal()
    try:
        if preview:
            stats = preview_migration(db, days)
            print(f"Orders older than {stats['cutoff_date'].isoformat()} to migrate: {stats['orders_to_migrate']}")
            print(f"Live orders: {stats['current_active_orders']}")
            print(f"Archived orders: {stats['current_past_orders']}")
            return True

        print(f"Migrating orders older than {days} day(s)...")
        result = migrate_orders_older_than(db, days)
        print(f"Migrated {result.migrated_count} of {result.total_found} order(s)")
        for error in result.errors:
            print(f"  - {error}")
        return not result.errors
    except ValidationError as e:
        print(f"Invalid arguments: {e}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--days", type=int, default=settings.default_archive_days)
    parser.add_argument("--preview", action="store_true", help="only report what would be migrated")
    args = parser.parse_args()
    sys.exit(0 if run_migration(args.days, preview=args.preview) else 1)
