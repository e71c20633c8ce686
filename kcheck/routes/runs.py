"""Test run and assignment endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DbSession

from kcheck.database import get_db
from kcheck.dependencies import get_actor_id
from kcheck.models import (
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentView,
    OperationResult,
    TestRunCreate,
    TestRunSummary,
    TestRunUpdate,
    TestRunView,
)
from kcheck.models.runs import AssignmentStatus, RunStatus
from kcheck.routes.errors import ensure_found, ensure_success, service_errors
from kcheck.services import run_service

router = APIRouter(prefix="/api/kc", tags=["runs"])


# Test runs


@router.get("/runs", response_model=list[TestRunSummary])
def list_test_runs(
    db: Annotated[DbSession, Depends(get_db)],
    status: RunStatus | None = Query(None),
    created_by: str | None = Query(None),
    include_archived: bool = Query(False),
    archived_only: bool = Query(False),
) -> list[TestRunSummary]:
    return run_service.get_all_test_runs(
        db,
        status=status.value if status else None,
        created_by=created_by,
        include_archived=include_archived,
        archived_only=archived_only,
    )


@router.post("/runs", response_model=TestRunView)
def create_test_run(
    payload: TestRunCreate,
    actor_id: Annotated[str, Depends(get_actor_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> TestRunView:
    """Create a run with one assignment per (user, test) pair."""
    with service_errors():
        return run_service.create_test_run(db, payload, actor_id)


@router.get("/runs/{run_id}", response_model=TestRunView)
def get_test_run(run_id: str, db: Annotated[DbSession, Depends(get_db)]) -> TestRunView:
    return ensure_found(run_service.get_test_run_by_id(db, run_id), "Test run")


@router.patch("/runs/{run_id}", response_model=TestRunView)
def update_test_run(
    run_id: str,
    payload: TestRunUpdate,
    db: Annotated[DbSession, Depends(get_db)],
) -> TestRunView:
    with service_errors():
        run = run_service.update_test_run(db, run_id, payload)
    return ensure_found(run, "Test run")


@router.delete("/runs/{run_id}", response_model=OperationResult)
def delete_test_run(run_id: str, db: Annotated[DbSession, Depends(get_db)]) -> OperationResult:
    return ensure_success(run_service.delete_test_run(db, run_id))


@router.post("/runs/{run_id}/restore", response_model=TestRunView)
def restore_test_run(run_id: str, db: Annotated[DbSession, Depends(get_db)]) -> TestRunView:
    return ensure_found(run_service.restore_test_run(db, run_id), "Test run")


@router.delete("/runs/{run_id}/permanent", response_model=OperationResult)
def permanent_delete_test_run(
    run_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> OperationResult:
    return ensure_success(run_service.permanent_delete_test_run(db, run_id))


# Assignments


@router.get("/assignments", response_model=list[AssignmentView])
def list_assignments(
    db: Annotated[DbSession, Depends(get_db)],
    user_id: str | None = Query(None),
    test_id: str | None = Query(None),
    status: AssignmentStatus | None = Query(None),
    assigned_by: str | None = Query(None),
    run_id: str | None = Query(None),
) -> list[AssignmentView]:
    return run_service.get_all_assignments(
        db,
        user_id=user_id,
        test_id=test_id,
        status=status.value if status else None,
        assigned_by=assigned_by,
        run_id=run_id,
    )


@router.get("/assignments/mine", response_model=list[AssignmentView])
def list_my_assignments(
    actor_id: Annotated[str, Depends(get_actor_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> list[AssignmentView]:
    return run_service.get_my_assignments(db, actor_id)


@router.get("/assignments/mine/pending-count")
def pending_assignments_count(
    actor_id: Annotated[str, Depends(get_actor_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, int]:
    return {"count": run_service.get_pending_assignments_count(db, actor_id)}


@router.post("/assignments", response_model=AssignmentView)
def create_assignment(
    payload: AssignmentCreate,
    actor_id: Annotated[str, Depends(get_actor_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> AssignmentView:
    with service_errors():
        return run_service.create_assignment(db, payload, actor_id)


@router.get("/assignments/{assignment_id}", response_model=AssignmentView)
def get_assignment(
    assignment_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> AssignmentView:
    return ensure_found(run_service.get_assignment_by_id(db, assignment_id), "Assignment")


@router.patch("/assignments/{assignment_id}", response_model=AssignmentView)
def update_assignment(
    assignment_id: str,
    payload: AssignmentUpdate,
    db: Annotated[DbSession, Depends(get_db)],
) -> AssignmentView:
    with service_errors():
        assignment = run_service.update_assignment(db, assignment_id, payload)
    return ensure_found(assignment, "Assignment")


@router.delete("/assignments/{assignment_id}", response_model=OperationResult)
def delete_assignment(
    assignment_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> OperationResult:
    return ensure_success(run_service.delete_assignment(db, assignment_id))
