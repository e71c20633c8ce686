"""Result and grading endpoints."""
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DbSession

from kcheck.database import get_db
from kcheck.dependencies import get_optional_actor_id
from kcheck.models import (
    OpenAnswerCheck,
    OpenAnswerCheckRequest,
    ResultCreate,
    ResultSummary,
    ResultUpdate,
    ResultView,
)
from kcheck.routes.errors import ensure_found, service_errors
from kcheck.services import result_service
from kcheck.services.scoring_service import check_open_answer

router = APIRouter(prefix="/api/kc", tags=["results"])


@router.get("/results", response_model=list[ResultSummary])
def list_results(
    db: Annotated[DbSession, Depends(get_db)],
    test_id: str | None = Query(None),
    user_id: str | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
) -> list[ResultSummary]:
    return result_service.get_all_results(
        db, test_id=test_id, user_id=user_id, start_date=start_date, end_date=end_date
    )


@router.post("/results", response_model=ResultView)
def create_result(
    payload: ResultCreate,
    actor_id: Annotated[str | None, Depends(get_optional_actor_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> ResultView:
    """Grade a completed attempt and store it."""
    evaluator_id = actor_id if actor_id and actor_id != payload.user_id else None
    with service_errors():
        return result_service.create_result(db, payload, evaluator_id)


@router.get("/results/{result_id}", response_model=ResultView)
def get_result(result_id: str, db: Annotated[DbSession, Depends(get_db)]) -> ResultView:
    return ensure_found(result_service.get_result_by_id(db, result_id), "Result")


@router.patch("/results/{result_id}", response_model=ResultView)
def update_result(
    result_id: str,
    payload: ResultUpdate,
    actor_id: Annotated[str | None, Depends(get_optional_actor_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> ResultView:
    """Store evaluator notes on a result and its answers."""
    with service_errors():
        result = result_service.update_result(db, result_id, payload, actor_id)
    return ensure_found(result, "Result")


@router.post("/check-answer", response_model=OpenAnswerCheck)
def check_answer(payload: OpenAnswerCheckRequest) -> OpenAnswerCheck:
    """Preview how an open answer would be matched."""
    return check_open_answer(payload.answer, payload.exact_answer, payload.trigger_words)
