"""Result service: server-side grading and stored results."""
import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession, joinedload, selectinload

from kcheck.database import atomic
from kcheck.exceptions import NotFoundError
from kcheck.models.db.catalog import Question
from kcheck.models.db.result import Answer, Result
from kcheck.models.db.run import Assignment
from kcheck.models.results import (
    AnswerView,
    OptionDetails,
    OptionSnapshot,
    ResultCreate,
    ResultSummary,
    ResultUpdate,
    ResultView,
)
from kcheck.services.identifiers import next_result_number
from kcheck.services.run_service import complete_assignment
from kcheck.services.scoring_service import grade_attempt, item_from_view
from kcheck.services.test_service import get_test_by_id
from kcheck.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


def _rebuilt_option_details(answer: Answer) -> OptionDetails:
    """Snapshot reconstructed from the question's current options."""
    question = answer.question
    chosen = set(answer.selected_options)
    snapshots = [
        OptionSnapshot(
            id=o.id, text=o.option_text, is_correct=o.is_correct, was_selected=o.id in chosen
        )
        for o in question.options
    ]
    return OptionDetails(
        all_options=snapshots,
        correct_selected=sum(1 for s in snapshots if s.was_selected and s.is_correct),
        incorrect_selected=sum(1 for s in snapshots if s.was_selected and not s.is_correct),
        total_correct_options=sum(1 for s in snapshots if s.is_correct),
        allow_partial_answer=question.allow_partial_answer,
    )


def _answer_view(answer: Answer) -> AnswerView:
    question = answer.question
    option_details = answer.option_details
    # Legacy rows were stored without a snapshot
    if question is not None and question.is_multiple_choice and not option_details.all_options:
        option_details = _rebuilt_option_details(answer)

    return AnswerView(
        id=answer.id,
        question_id=answer.question_id,
        question_title=question.title if question else "",
        question_text=question.question_text if question else "",
        question_type=question.question_type if question else None,
        answer_text=answer.answer_text,
        selected_options=answer.selected_options,
        option_details=option_details,
        matched_triggers=answer.matched_triggers,
        is_correct=answer.is_correct,
        score=answer.score,
        max_score=answer.max_score,
        evaluator_notes=answer.evaluator_notes,
    )


def _summary_fields(result: Result) -> dict:
    return dict(
        id=result.id,
        result_number=result.result_number,
        test_id=result.test_id,
        test_number=result.test.test_number,
        test_name=result.test.name,
        user_id=result.user_id,
        evaluator_id=result.evaluator_id,
        started_at=result.started_at,
        completed_at=result.completed_at,
        total_score=result.total_score,
        max_score=result.max_score,
        percentage=result.percentage,
        passed=result.passed,
        notes=result.notes,
        created_at=result.created_at,
        updated_at=result.updated_at,
    )


def get_result_by_id(db: DbSession, result_id: str) -> ResultView | None:
    result = db.execute(
        select(Result)
        .options(
            joinedload(Result.test),
            selectinload(Result.answers)
            .joinedload(Answer.question)
            .selectinload(Question.options),
        )
        .where(Result.id == result_id)
    ).scalar_one_or_none()
    if not result:
        return None

    return ResultView(
        **_summary_fields(result),
        answers=[_answer_view(a) for a in result.answers],
    )


def get_all_results(
    db: DbSession,
    test_id: str | None = None,
    user_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> list[ResultSummary]:
    """Results newest first, filtered by test, user and creation date."""
    query = select(Result).options(joinedload(Result.test))
    if test_id:
        query = query.where(Result.test_id == test_id)
    if user_id:
        query = query.where(Result.user_id == user_id)
    if start_date:
        query = query.where(Result.created_at >= start_date)
    if end_date:
        query = query.where(Result.created_at <= end_date)

    query = query.order_by(Result.created_at.desc())
    return [ResultSummary(**_summary_fields(r)) for r in db.execute(query).scalars().all()]


def _linked_assignment(db: DbSession, data: ResultCreate) -> Assignment | None:
    if not data.assignment_id:
        return None
    assignment = db.get(Assignment, data.assignment_id)
    if not assignment:
        raise NotFoundError(f"Assignment {data.assignment_id} not found")
    if assignment.test_id != data.test_id or assignment.user_id != data.user_id:
        raise ValueError("Assignment does not belong to this test and user")
    if assignment.result_id is not None or assignment.is_completed:
        raise ValueError(f"Assignment {assignment.id} is already completed")
    return assignment


def create_result(
    db: DbSession, data: ResultCreate, evaluator_id: str | None = None
) -> ResultView:
    """
    Grade a completed attempt against the test's current questions and store
    the result with one answer per question.

    The result, its answers and the assignment link are written in a single
    transaction. Raises NotFoundError when the test does not exist.
    """
    test = get_test_by_id(db, data.test_id)
    if not test:
        raise NotFoundError(f"Test {data.test_id} not found")
    assignment = _linked_assignment(db, data)

    graded = grade_attempt(
        [item_from_view(q) for q in test.questions], data.answers, test.passing_score
    )
    now = utc_now()

    with atomic(db):
        result = Result(
            result_number=next_result_number(db, test.test_number),
            test_id=test.id,
            user_id=data.user_id,
            evaluator_id=evaluator_id,
            started_at=data.started_at or now,
            completed_at=data.completed_at or now,
            total_score=graded.total_score,
            max_score=graded.max_score,
            percentage=graded.percentage,
            passed=graded.passed,
            notes=data.notes,
        )
        for position, graded_answer in enumerate(graded.answers):
            answer = Answer(
                question_id=graded_answer.question_id,
                position=position,
                answer_text=graded_answer.answer_text,
                is_correct=graded_answer.is_correct,
                score=graded_answer.score,
                max_score=graded_answer.max_score,
                evaluator_notes=graded_answer.evaluator_notes,
            )
            answer.selected_options = graded_answer.selected_options
            answer.option_details = graded_answer.option_details
            answer.matched_triggers = graded_answer.matched_triggers
            result.answers.append(answer)
        db.add(result)
        db.flush()

        if assignment is not None:
            complete_assignment(db, assignment, result.id)

    logger.info(
        f"Recorded result {result.result_number} for user {data.user_id}: "
        f"{graded.percentage}% ({'passed' if graded.passed else 'failed'})"
    )
    return get_result_by_id(db, result.id)


def update_result(
    db: DbSession,
    result_id: str,
    data: ResultUpdate,
    evaluator_id: str | None = None,
) -> ResultView | None:
    """
    Record evaluator annotations. Graded values never change after
    submission.
    """
    result = db.get(Result, result_id)
    if not result:
        return None

    with atomic(db):
        if data.notes is not None:
            result.notes = data.notes
        if evaluator_id:
            result.evaluator_id = evaluator_id
        if data.answer_notes:
            answers = {a.id: a for a in result.answers}
            for annotation in data.answer_notes:
                answer = answers.get(annotation.answer_id)
                if answer is None:
                    raise NotFoundError(
                        f"Answer {annotation.answer_id} not found in result {result_id}"
                    )
                answer.evaluator_notes = annotation.evaluator_notes

    return get_result_by_id(db, result_id)
