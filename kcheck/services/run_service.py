"""
Run and assignment orchestration.

A test run fans its tests out to a set of users, one assignment per
(user, test) pair. Run statistics are derived from the assignments on every
read and never stored.
"""
import logging
import threading

from sqlalchemy import exists, func, or_, select
from sqlalchemy.orm import Session as DbSession, joinedload, selectinload

from kcheck.database import atomic
from kcheck.exceptions import NotFoundError
from kcheck.models.common import OperationResult
from kcheck.models.db.result import Result
from kcheck.models.db.run import Assignment, AssignmentStatus, RunStatus, TestRun, TestRunTest
from kcheck.models.db.test import Test
from kcheck.models.runs import (
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentView,
    RunAssignmentView,
    RunStats,
    RunTestView,
    TestRunCreate,
    TestRunSummary,
    TestRunUpdate,
    TestRunView,
)
from kcheck.services import archive_service
from kcheck.services.catalog_service import UNCATEGORIZED_NAME
from kcheck.services.identifiers import next_run_number
from kcheck.services.scoring_service import round_half_up

logger = logging.getLogger(__name__)

# Serializes run-number generation with the run insert
_run_creation_lock = threading.Lock()


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(v for v in values if v))


def _run_stats(run: TestRun) -> RunStats:
    assignments = run.assignments
    completed = sum(1 for a in assignments if a.is_completed)
    scores = [a.result.percentage for a in assignments if a.result is not None]
    return RunStats(
        test_count=len({link.test_id for link in run.test_links}),
        user_count=len({a.user_id for a in assignments}),
        total_assignments=len(assignments),
        completed_count=completed,
        pending_count=len(assignments) - completed,
        avg_score=round_half_up(sum(scores) / len(scores)) if scores else None,
    )


def _summary_fields(run: TestRun) -> dict:
    return dict(
        id=run.id,
        run_number=run.run_number,
        name=run.name,
        description=run.description,
        due_date=run.due_date,
        status=run.status,
        is_archived=run.is_archived_state,
        archived_at=run.archived_at,
        created_by=run.created_by,
        notes=run.notes,
        stats=_run_stats(run),
        created_at=run.created_at,
        updated_at=run.updated_at,
    )


def _run_query():
    return select(TestRun).options(
        selectinload(TestRun.test_links).joinedload(TestRunTest.test),
        selectinload(TestRun.assignments).options(
            joinedload(Assignment.test), joinedload(Assignment.result)
        ),
    )


def get_test_run_by_id(db: DbSession, run_id: str) -> TestRunView | None:
    """Run detail; statistics come from a live scan of its assignments."""
    run = db.execute(_run_query().where(TestRun.id == run_id)).scalar_one_or_none()
    if not run:
        return None

    assignments = sorted(
        run.assignments, key=lambda a: (a.user_id, a.test.test_number if a.test else "")
    )
    return TestRunView(
        **_summary_fields(run),
        tests=[
            RunTestView(
                id=link.id,
                test_id=link.test_id,
                test_number=link.test.test_number,
                name=link.test.name,
                description=link.test.description,
                passing_score=link.test.passing_score,
                sort_order=link.sort_order,
            )
            for link in run.test_links
        ],
        assignments=[
            RunAssignmentView(
                id=a.id,
                test_id=a.test_id,
                test_number=a.test.test_number,
                test_name=a.test.name,
                user_id=a.user_id,
                status=a.status,
                result_id=a.result_id,
                percentage=a.result.percentage if a.result else None,
                passed=a.result.passed if a.result else None,
                completed_at=a.result.completed_at if a.result else None,
                due_date=a.due_date,
            )
            for a in assignments
        ],
    )


def get_all_test_runs(
    db: DbSession,
    status: str | None = None,
    created_by: str | None = None,
    include_archived: bool = False,
    archived_only: bool = False,
) -> list[TestRunSummary]:
    """Runs newest first; archived runs are hidden by default."""
    archived = or_(TestRun.is_archived.is_(True), TestRun.status == RunStatus.ARCHIVED.value)
    query = _run_query()
    if archived_only:
        query = query.where(archived)
    elif not include_archived:
        query = query.where(~archived)

    if status and status != RunStatus.ARCHIVED.value:
        query = query.where(TestRun.status == status)
    if created_by:
        query = query.where(TestRun.created_by == created_by)

    runs = db.execute(query.order_by(TestRun.created_at.desc())).scalars().all()
    return [TestRunSummary(**_summary_fields(r)) for r in runs]


def _assignable_tests(db: DbSession, test_ids: list[str]) -> list[Test]:
    tests = {
        t.id: t for t in db.execute(select(Test).where(Test.id.in_(test_ids))).scalars()
    }
    for test_id in test_ids:
        test = tests.get(test_id)
        if test is None:
            raise NotFoundError(f"Test {test_id} not found")
        if test.is_archived:
            raise ValueError(f"Test {test.test_number} is archived")
        if not test.is_active:
            raise ValueError(f"Test {test.test_number} is inactive")
    return [tests[test_id] for test_id in test_ids]


def create_test_run(db: DbSession, data: TestRunCreate, created_by: str) -> TestRunView:
    """
    Create a run, its test links and one assignment per (user, test) pair,
    all in one transaction.
    """
    test_ids = _unique(data.test_ids)
    user_ids = _unique(data.user_ids)
    _assignable_tests(db, test_ids)

    with _run_creation_lock:
        run = TestRun(
            run_number=next_run_number(db),
            name=data.name,
            description=data.description,
            due_date=data.due_date,
            status=RunStatus.PENDING.value,
            created_by=created_by,
            notes=data.notes,
        )
        with atomic(db):
            db.add(run)
            for index, test_id in enumerate(test_ids):
                run.test_links.append(TestRunTest(test_id=test_id, sort_order=index))
            for user_id in user_ids:
                for test_id in test_ids:
                    run.assignments.append(
                        Assignment(
                            test_id=test_id,
                            user_id=user_id,
                            assigned_by=created_by,
                            due_date=data.due_date,
                            status=AssignmentStatus.PENDING.value,
                        )
                    )

    logger.info(
        f"Created test run {run.run_number}: "
        f"{len(test_ids)} tests x {len(user_ids)} users"
    )
    return get_test_run_by_id(db, run.id)


def update_test_run(db: DbSession, run_id: str, data: TestRunUpdate) -> TestRunView | None:
    run = db.get(TestRun, run_id)
    if not run:
        return None
    if data.status == RunStatus.ARCHIVED:
        raise ValueError("Runs are archived through deletion")

    changes = data.model_dump(exclude_unset=True)
    for key, value in changes.items():
        if key == "due_date" or value is not None:
            setattr(run, key, value.value if key == "status" else value)
    db.commit()
    return get_test_run_by_id(db, run_id)


def delete_test_run(db: DbSession, run_id: str) -> OperationResult:
    """Archive a run with submitted results, delete one without."""
    return archive_service.archive_or_delete_test_run(db, run_id)


def restore_test_run(db: DbSession, run_id: str) -> TestRunView | None:
    if not archive_service.restore_test_run(db, run_id):
        return None
    return get_test_run_by_id(db, run_id)


def permanent_delete_test_run(db: DbSession, run_id: str) -> OperationResult:
    return archive_service.permanent_delete_test_run(db, run_id)


# ============================================
# Assignments
# ============================================


def complete_assignment(db: DbSession, assignment: Assignment, result_id: str) -> None:
    """
    Link a result to a pending assignment and close its run once nothing is
    pending any more. Runs inside the caller's transaction.
    """
    if assignment.result_id is not None or assignment.is_completed:
        raise ValueError(f"Assignment {assignment.id} is already completed")

    assignment.result_id = result_id
    assignment.status = AssignmentStatus.COMPLETED.value
    db.flush()
    _refresh_run_status(db, assignment.run)


def _refresh_run_status(db: DbSession, run: TestRun | None) -> None:
    """Close a pending run once it has completed work and nothing pending."""
    if run is None or run.status != RunStatus.PENDING.value:
        return
    counts = dict(
        db.execute(
            select(Assignment.status, func.count(Assignment.id))
            .where(Assignment.run_id == run.id)
            .group_by(Assignment.status)
        ).all()
    )
    if counts.get(AssignmentStatus.COMPLETED.value) and not counts.get(
        AssignmentStatus.PENDING.value
    ):
        run.status = RunStatus.COMPLETED.value
        logger.info(f"Test run {run.run_number} completed")


def _assignment_view(assignment: Assignment) -> AssignmentView:
    test = assignment.test
    run = assignment.run
    result = assignment.result
    return AssignmentView(
        id=assignment.id,
        run_id=assignment.run_id,
        run_number=run.run_number if run else None,
        run_name=run.name if run else None,
        test_id=assignment.test_id,
        test_number=test.test_number,
        test_name=test.name,
        category_name=test.category.name if test.category else UNCATEGORIZED_NAME,
        passing_score=test.passing_score,
        time_limit_minutes=test.time_limit_minutes,
        user_id=assignment.user_id,
        assigned_by=assignment.assigned_by,
        due_date=assignment.due_date,
        status=assignment.status,
        result_id=assignment.result_id,
        result_percentage=result.percentage if result else None,
        result_passed=result.passed if result else None,
        result_total_score=result.total_score if result else None,
        result_max_score=result.max_score if result else None,
        result_completed_at=result.completed_at if result else None,
        notes=assignment.notes,
        created_at=assignment.created_at,
        updated_at=assignment.updated_at,
    )


def _assignment_query():
    return select(Assignment).options(
        joinedload(Assignment.test).joinedload(Test.category),
        joinedload(Assignment.run),
        joinedload(Assignment.result),
    )


def get_all_assignments(
    db: DbSession,
    user_id: str | None = None,
    test_id: str | None = None,
    status: str | None = None,
    assigned_by: str | None = None,
    run_id: str | None = None,
) -> list[AssignmentView]:
    """Assignments newest first, with test, run and result summary."""
    query = _assignment_query()
    if user_id:
        query = query.where(Assignment.user_id == user_id)
    if test_id:
        query = query.where(Assignment.test_id == test_id)
    if status:
        query = query.where(Assignment.status == status)
    if assigned_by:
        query = query.where(Assignment.assigned_by == assigned_by)
    if run_id:
        query = query.where(Assignment.run_id == run_id)

    query = query.order_by(Assignment.created_at.desc())
    return [_assignment_view(a) for a in db.execute(query).scalars().all()]


def get_assignment_by_id(db: DbSession, assignment_id: str) -> AssignmentView | None:
    assignment = db.execute(
        _assignment_query().where(Assignment.id == assignment_id)
    ).scalar_one_or_none()
    return _assignment_view(assignment) if assignment else None


def get_my_assignments(db: DbSession, user_id: str) -> list[AssignmentView]:
    return get_all_assignments(db, user_id=user_id)


def get_pending_assignments_count(db: DbSession, user_id: str) -> int:
    return db.execute(
        select(func.count(Assignment.id)).where(
            Assignment.user_id == user_id,
            Assignment.status == AssignmentStatus.PENDING.value,
        )
    ).scalar() or 0


def create_assignment(
    db: DbSession, data: AssignmentCreate, assigned_by: str
) -> AssignmentView:
    """One-off grant of a test to a user, outside any run."""
    _assignable_tests(db, [data.test_id])

    assignment = Assignment(
        test_id=data.test_id,
        user_id=data.user_id,
        assigned_by=assigned_by,
        due_date=data.due_date,
        status=AssignmentStatus.PENDING.value,
        notes=data.notes,
    )
    db.add(assignment)
    db.commit()
    logger.info(f"Assigned test {data.test_id} to user {data.user_id}")
    return get_assignment_by_id(db, assignment.id)


def update_assignment(
    db: DbSession, assignment_id: str, data: AssignmentUpdate
) -> AssignmentView | None:
    """
    Update due date and notes. Supplying ``result_id`` completes the
    assignment; a completed assignment never takes another result.
    """
    assignment = db.get(Assignment, assignment_id)
    if not assignment:
        return None

    changes = data.model_dump(exclude_unset=True)
    with atomic(db):
        if "due_date" in changes:
            assignment.due_date = data.due_date
        if data.notes is not None:
            assignment.notes = data.notes
        if data.result_id:
            result = db.get(Result, data.result_id)
            if not result:
                raise NotFoundError(f"Result {data.result_id} not found")
            if result.test_id != assignment.test_id:
                raise ValueError("Result belongs to a different test")
            if result.user_id != assignment.user_id:
                raise ValueError("Result belongs to a different user")
            if db.execute(
                select(exists().where(Assignment.result_id == data.result_id))
            ).scalar():
                raise ValueError(f"Result {data.result_id} is already linked to an assignment")
            complete_assignment(db, assignment, data.result_id)

    return get_assignment_by_id(db, assignment_id)


def delete_assignment(db: DbSession, assignment_id: str) -> OperationResult:
    """Remove a pending assignment. Completed ones stay linked to their result."""
    assignment = db.get(Assignment, assignment_id)
    if not assignment:
        return OperationResult.failure("Assignment not found")
    if assignment.result_id is not None:
        return OperationResult.failure("Completed assignments cannot be deleted")

    run = assignment.run
    with atomic(db):
        db.delete(assignment)
        db.flush()
        _refresh_run_status(db, run)
    return OperationResult(deleted=True)
