"""Dashboard statistics across the engine."""
from sqlalchemy import func, select
from sqlalchemy.orm import Session as DbSession

from kcheck.models.common import Statistics
from kcheck.models.db.catalog import Question
from kcheck.models.db.result import Result
from kcheck.models.db.run import TestRun
from kcheck.models.db.test import Test
from kcheck.services.run_service import get_pending_assignments_count
from kcheck.services.scoring_service import round_half_up


def get_statistics(db: DbSession, user_id: str | None = None) -> Statistics:
    """Engine-wide figures; the pending count is only filled in for a user."""

    def count(model, *criteria) -> int:
        return db.execute(select(func.count()).select_from(model).where(*criteria)).scalar() or 0

    total_results = count(Result)
    passed_results = count(Result, Result.passed.is_(True))
    average = db.execute(select(func.avg(Result.percentage))).scalar()

    return Statistics(
        total_tests=count(Test, Test.is_active.is_(True), Test.is_archived.is_(False)),
        total_questions=count(
            Question, Question.is_active.is_(True), Question.is_archived.is_(False)
        ),
        total_results=total_results,
        total_runs=count(TestRun),
        total_archived=count(Question, Question.is_archived.is_(True))
        + count(Test, Test.is_archived.is_(True)),
        my_assigned_count=get_pending_assignments_count(db, user_id) if user_id else 0,
        passed_results=passed_results,
        passing_rate=(
            round_half_up(passed_results / total_results * 100) if total_results else 0
        ),
        average_score=round_half_up(float(average)) if average is not None else 0,
    )
