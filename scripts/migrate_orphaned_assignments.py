#!/usr/bin/env python3
"""
Maintenance script to move assignments without a test run into the
synthetic unassigned run (TR-0000).

This script:
1. Creates any missing tables
2. Reports how many assignments have no run
3. Moves them into the unassigned run, creating it on first use

Safe to run repeatedly.

Usage:
    python scripts/migrate_orphaned_assignments.py [--dry-run]
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from kcheck.database import SessionLocal, init_db
from kcheck.services.maintenance_service import (
    get_orphaned_assignments_count,
    migrate_orphaned_assignments,
)


def migrate(dry_run: bool = False) -> bool:
    """Main migration function."""
    init_db()
    db = SessionLocal()
    try:
        orphaned = get_orphaned_assignments_count(db)
        print(f"Found {orphaned} assignments without a test run")

        if dry_run or not orphaned:
            print("Nothing migrated.")
            return True

        outcome = migrate_orphaned_assignments(db)
        print(outcome.message)
        return outcome.success

    except Exception as e:
        db.rollback()
        print(f"ERROR: Migration failed: {e}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    print("=== Orphaned Assignment Migration ===\n")
    success = migrate(dry_run="--dry-run" in sys.argv[1:])
    sys.exit(0 if success else 1)
