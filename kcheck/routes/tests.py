"""Test composition endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DbSession

from kcheck.database import get_db
from kcheck.models import (
    OperationResult,
    TestCreate,
    TestStatsSummary,
    TestSummary,
    TestUpdate,
    TestView,
)
from kcheck.routes.errors import ensure_found, ensure_success, service_errors
from kcheck.services import test_service

router = APIRouter(prefix="/api/kc/tests", tags=["tests"])


@router.get("", response_model=list[TestSummary])
def list_tests(
    db: Annotated[DbSession, Depends(get_db)],
    category_id: str | None = Query(None),
    is_active: bool | None = Query(None),
    include_archived: bool = Query(False),
    archived_only: bool = Query(False),
) -> list[TestSummary]:
    return test_service.get_all_tests(
        db,
        category_id=category_id,
        is_active=is_active,
        include_archived=include_archived,
        archived_only=archived_only,
    )


@router.get("/stats", response_model=list[TestStatsSummary])
def list_tests_with_stats(
    db: Annotated[DbSession, Depends(get_db)],
    category_id: str | None = Query(None),
    is_active: bool | None = Query(None),
) -> list[TestStatsSummary]:
    """Tests with assignment and result figures."""
    return test_service.get_tests_with_stats(db, category_id=category_id, is_active=is_active)


@router.post("", response_model=TestView)
def create_test(payload: TestCreate, db: Annotated[DbSession, Depends(get_db)]) -> TestView:
    with service_errors():
        return test_service.create_test(db, payload)


@router.get("/{test_id}", response_model=TestView)
def get_test(test_id: str, db: Annotated[DbSession, Depends(get_db)]) -> TestView:
    """Full grading view, correct answers included."""
    return ensure_found(test_service.get_test_by_id(db, test_id), "Test")


@router.patch("/{test_id}", response_model=TestView)
def update_test(
    test_id: str,
    payload: TestUpdate,
    db: Annotated[DbSession, Depends(get_db)],
) -> TestView:
    with service_errors():
        test = test_service.update_test(db, test_id, payload)
    return ensure_found(test, "Test")


@router.delete("/{test_id}", response_model=OperationResult)
def delete_test(test_id: str, db: Annotated[DbSession, Depends(get_db)]) -> OperationResult:
    """Delete an unused test or archive one with results."""
    return ensure_success(test_service.delete_test(db, test_id))


@router.post("/{test_id}/restore", response_model=TestView)
def restore_test(test_id: str, db: Annotated[DbSession, Depends(get_db)]) -> TestView:
    return ensure_found(test_service.restore_test(db, test_id), "Test")


@router.delete("/{test_id}/permanent", response_model=OperationResult)
def permanent_delete_test(
    test_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> OperationResult:
    return ensure_success(test_service.permanent_delete_test(db, test_id))
