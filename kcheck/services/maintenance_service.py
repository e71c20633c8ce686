"""
Administrative repair of assignments created before test runs existed.
Triggered by hand, never scheduled.
"""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session as DbSession

from kcheck.config import SYSTEM_ACTOR, UNASSIGNED_RUN_ID, UNASSIGNED_RUN_NUMBER
from kcheck.database import atomic
from kcheck.models.common import MigrationResult
from kcheck.models.db.run import Assignment, RunStatus, TestRun, TestRunTest

logger = logging.getLogger(__name__)

UNASSIGNED_RUN_NAME = "Unassigned"
UNASSIGNED_RUN_DESCRIPTION = (
    "Created automatically for assignments that predate test runs"
)


def get_orphaned_assignments_count(db: DbSession) -> int:
    return db.execute(
        select(func.count(Assignment.id)).where(Assignment.run_id.is_(None))
    ).scalar() or 0


def migrate_orphaned_assignments(db: DbSession) -> MigrationResult:
    """
    Move every assignment without a run into the synthetic unassigned run.

    Idempotent: the run is created on first use and reused afterwards, and
    tests of newly orphaned assignments are linked to it on later calls.
    """
    orphans = db.execute(
        select(Assignment).where(Assignment.run_id.is_(None)).order_by(Assignment.created_at)
    ).scalars().all()
    if not orphans:
        return MigrationResult(message="No orphaned assignments found", count=0)

    logger.info(f"Found {len(orphans)} orphaned assignments, migrating to {UNASSIGNED_RUN_NUMBER}")

    with atomic(db):
        run = db.get(TestRun, UNASSIGNED_RUN_ID)
        if run is None:
            run = TestRun(
                id=UNASSIGNED_RUN_ID,
                run_number=UNASSIGNED_RUN_NUMBER,
                name=UNASSIGNED_RUN_NAME,
                description=UNASSIGNED_RUN_DESCRIPTION,
                status=RunStatus.COMPLETED.value,
                created_by=SYSTEM_ACTOR,
            )
            db.add(run)
            db.flush()

        linked = set(
            db.execute(
                select(TestRunTest.test_id).where(TestRunTest.run_id == UNASSIGNED_RUN_ID)
            ).scalars()
        )
        next_order = len(linked)
        for test_id in dict.fromkeys(a.test_id for a in orphans):
            if test_id in linked:
                continue
            db.add(TestRunTest(run_id=UNASSIGNED_RUN_ID, test_id=test_id, sort_order=next_order))
            next_order += 1

        db.execute(
            update(Assignment)
            .where(Assignment.run_id.is_(None))
            .values(run_id=UNASSIGNED_RUN_ID)
        )

    logger.info("Orphaned assignments migrated")
    return MigrationResult(
        message=f"{len(orphans)} orphaned assignments moved to the unassigned test run",
        count=len(orphans),
    )
