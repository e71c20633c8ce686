"""
Archive-or-delete lifecycle for questions, tests and test runs.

Anything a graded result depends on is archived instead of deleted. Permanent
deletion is a separate, explicit purge that only works on archived entities.
"""
import logging

from sqlalchemy import delete, exists, func, or_, select
from sqlalchemy.orm import Session as DbSession

from kcheck.database import atomic
from kcheck.models.common import ArchiveStatistics, OperationResult
from kcheck.models.db.catalog import Question, QuestionOption
from kcheck.models.db.result import Answer, Result
from kcheck.models.db.run import Assignment, RunStatus, TestRun, TestRunTest
from kcheck.models.db.test import Test, TestQuestion
from kcheck.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


def _delete_results(db: DbSession, result_ids: list[str]) -> None:
    if not result_ids:
        return
    db.execute(delete(Answer).where(Answer.result_id.in_(result_ids)))
    db.execute(delete(Result).where(Result.id.in_(result_ids)))


def _attempted_test_ids():
    """Tests that have been assigned or graded at least once."""
    return select(Assignment.test_id).union(select(Result.test_id))


# ============================================
# Questions
# ============================================


def archive_or_delete_question(db: DbSession, question_id: str) -> OperationResult:
    """
    Delete a never-used question, archive a used one.

    A question counts as used once an answer references it or a test holding
    it has been assigned or graded. Archiving drops its memberships in tests
    nobody has attempted yet.
    """
    question = db.get(Question, question_id)
    if not question:
        return OperationResult.failure("Question not found")

    attempted = _attempted_test_ids()
    has_answers = db.execute(
        select(exists().where(Answer.question_id == question_id))
    ).scalar()
    in_attempted_test = db.execute(
        select(
            exists().where(
                TestQuestion.question_id == question_id,
                TestQuestion.test_id.in_(attempted),
            )
        )
    ).scalar()

    if has_answers or in_attempted_test:
        with atomic(db):
            question.is_archived = True
            question.archived_at = utc_now()
            db.execute(
                delete(TestQuestion).where(
                    TestQuestion.question_id == question_id,
                    TestQuestion.test_id.not_in(attempted),
                )
            )
        logger.info(f"Archived question {question_id}: referenced by results")
        return OperationResult(archived=True)

    with atomic(db):
        db.execute(delete(TestQuestion).where(TestQuestion.question_id == question_id))
        db.execute(delete(QuestionOption).where(QuestionOption.question_id == question_id))
        db.execute(delete(Question).where(Question.id == question_id))
    logger.info(f"Deleted unused question {question_id}")
    return OperationResult(deleted=True)


def restore_question(db: DbSession, question_id: str) -> Question | None:
    """Clear the archive flags. Scrubbed test memberships stay removed."""
    question = db.get(Question, question_id)
    if not question:
        return None
    question.is_archived = False
    question.archived_at = None
    db.commit()
    logger.info(f"Restored question {question_id}")
    return question


def permanent_delete_question(db: DbSession, question_id: str) -> OperationResult:
    """Purge an archived question together with every answer given to it."""
    question = db.get(Question, question_id)
    if not question or not question.is_archived:
        return OperationResult.failure(
            "Question must be archived before permanent deletion"
        )

    with atomic(db):
        db.execute(delete(Answer).where(Answer.question_id == question_id))
        db.execute(delete(TestQuestion).where(TestQuestion.question_id == question_id))
        db.execute(delete(QuestionOption).where(QuestionOption.question_id == question_id))
        db.execute(delete(Question).where(Question.id == question_id))
    logger.info(f"Permanently deleted question {question_id}")
    return OperationResult(deleted=True)


# ============================================
# Tests
# ============================================


def archive_or_delete_test(db: DbSession, test_id: str) -> OperationResult:
    """
    Delete a never-used test, archive one with results or assignments.
    Archiving also deactivates the test.
    """
    test = db.get(Test, test_id)
    if not test:
        return OperationResult.failure("Test not found")

    used = db.execute(
        select(
            or_(
                exists().where(Result.test_id == test_id),
                exists().where(Assignment.test_id == test_id),
            )
        )
    ).scalar()

    if used:
        with atomic(db):
            test.is_archived = True
            test.is_active = False
            test.archived_at = utc_now()
        logger.info(f"Archived test {test_id}: referenced by results or assignments")
        return OperationResult(archived=True)

    with atomic(db):
        db.execute(delete(TestRunTest).where(TestRunTest.test_id == test_id))
        db.execute(delete(TestQuestion).where(TestQuestion.test_id == test_id))
        db.execute(delete(Test).where(Test.id == test_id))
    logger.info(f"Deleted unused test {test_id}")
    return OperationResult(deleted=True)


def restore_test(db: DbSession, test_id: str) -> Test | None:
    """Clear the archive flags; the test stays inactive until reactivated."""
    test = db.get(Test, test_id)
    if not test:
        return None
    test.is_archived = False
    test.archived_at = None
    db.commit()
    logger.info(f"Restored test {test_id}")
    return test


def permanent_delete_test(db: DbSession, test_id: str) -> OperationResult:
    """Purge an archived test with its results, answers and assignments."""
    test = db.get(Test, test_id)
    if not test or not test.is_archived:
        return OperationResult.failure("Test must be archived before permanent deletion")

    result_ids = list(
        db.execute(select(Result.id).where(Result.test_id == test_id)).scalars()
    )
    with atomic(db):
        db.execute(delete(Assignment).where(Assignment.test_id == test_id))
        _delete_results(db, result_ids)
        db.execute(delete(TestRunTest).where(TestRunTest.test_id == test_id))
        db.execute(delete(TestQuestion).where(TestQuestion.test_id == test_id))
        db.execute(delete(Test).where(Test.id == test_id))
    logger.info(f"Permanently deleted test {test_id} and {len(result_ids)} results")
    return OperationResult(deleted=True)


# ============================================
# Test runs
# ============================================


def archive_or_delete_test_run(db: DbSession, run_id: str) -> OperationResult:
    """
    Delete a run nobody has submitted to yet, together with its assignments.
    Once any assignment carries a result the run is archived instead.
    """
    run = db.get(TestRun, run_id)
    if not run:
        return OperationResult.failure("Test run not found")

    has_results = db.execute(
        select(
            exists().where(Assignment.run_id == run_id, Assignment.result_id.is_not(None))
        )
    ).scalar()

    if has_results:
        with atomic(db):
            run.is_archived = True
            run.status = RunStatus.ARCHIVED.value
            run.archived_at = utc_now()
        logger.info(f"Archived test run {run.run_number}: assignments have results")
        return OperationResult(archived=True)

    run_number = run.run_number
    with atomic(db):
        db.execute(delete(Assignment).where(Assignment.run_id == run_id))
        db.execute(delete(TestRunTest).where(TestRunTest.run_id == run_id))
        db.execute(delete(TestRun).where(TestRun.id == run_id))
    logger.info(f"Deleted test run {run_number} without results")
    return OperationResult(deleted=True)


def restore_test_run(db: DbSession, run_id: str) -> TestRun | None:
    """Bring an archived run back; it returns as completed."""
    run = db.get(TestRun, run_id)
    if not run:
        return None
    run.is_archived = False
    run.archived_at = None
    run.status = RunStatus.COMPLETED.value
    db.commit()
    logger.info(f"Restored test run {run.run_number}")
    return run


def permanent_delete_test_run(db: DbSession, run_id: str) -> OperationResult:
    """Purge an archived run with its assignments and their results."""
    run = db.get(TestRun, run_id)
    if not run or not run.is_archived_state:
        return OperationResult.failure(
            "Test run must be archived before permanent deletion"
        )

    run_number = run.run_number
    result_ids = list(
        db.execute(
            select(Assignment.result_id).where(
                Assignment.run_id == run_id, Assignment.result_id.is_not(None)
            )
        ).scalars()
    )
    with atomic(db):
        db.execute(delete(Assignment).where(Assignment.run_id == run_id))
        _delete_results(db, result_ids)
        db.execute(delete(TestRunTest).where(TestRunTest.run_id == run_id))
        db.execute(delete(TestRun).where(TestRun.id == run_id))
    logger.info(f"Permanently deleted test run {run_number} and {len(result_ids)} results")
    return OperationResult(deleted=True)


# ============================================
# Statistics
# ============================================


def get_archive_statistics(db: DbSession) -> ArchiveStatistics:
    def count(model, *criteria) -> int:
        return db.execute(select(func.count()).select_from(model).where(*criteria)).scalar() or 0

    return ArchiveStatistics(
        archived_questions=count(Question, Question.is_archived.is_(True)),
        archived_tests=count(Test, Test.is_archived.is_(True)),
        archived_runs=count(
            TestRun,
            or_(TestRun.is_archived.is_(True), TestRun.status == RunStatus.ARCHIVED.value),
        ),
    )
