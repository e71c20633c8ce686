"""Catalog endpoints: question categories, test categories and questions."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DbSession

from kcheck.database import get_db
from kcheck.models import (
    CategoryCreate,
    CategoryUpdate,
    CategoryView,
    MoveQuestionRequest,
    OperationResult,
    QuestionCreate,
    QuestionUpdate,
    QuestionView,
    ReorderRequest,
    TestCategoryCreate,
    TestCategoryUpdate,
    TestCategoryView,
)
from kcheck.routes.errors import ensure_found, ensure_success, service_errors
from kcheck.services import catalog_service

router = APIRouter(prefix="/api/kc", tags=["catalog"])


# Question categories


@router.get("/categories", response_model=list[CategoryView])
def list_categories(db: Annotated[DbSession, Depends(get_db)]) -> list[CategoryView]:
    return catalog_service.get_all_categories(db)


@router.post("/categories", response_model=CategoryView)
def create_category(
    payload: CategoryCreate, db: Annotated[DbSession, Depends(get_db)]
) -> CategoryView:
    return catalog_service.create_category(db, payload)


@router.put("/categories/order")
def reorder_categories(
    payload: ReorderRequest, db: Annotated[DbSession, Depends(get_db)]
) -> dict[str, bool]:
    return {"success": catalog_service.reorder_categories(db, payload.ids)}


@router.get("/categories/{category_id}", response_model=CategoryView)
def get_category(category_id: str, db: Annotated[DbSession, Depends(get_db)]) -> CategoryView:
    return ensure_found(catalog_service.get_category_by_id(db, category_id), "Category")


@router.patch("/categories/{category_id}", response_model=CategoryView)
def update_category(
    category_id: str,
    payload: CategoryUpdate,
    db: Annotated[DbSession, Depends(get_db)],
) -> CategoryView:
    return ensure_found(
        catalog_service.update_category(db, category_id, payload), "Category"
    )


@router.delete("/categories/{category_id}", response_model=OperationResult)
def delete_category(
    category_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> OperationResult:
    """Delete a category; its questions become uncategorized."""
    return ensure_success(catalog_service.delete_category(db, category_id))


# Test categories


@router.get("/test-categories", response_model=list[TestCategoryView])
def list_test_categories(
    db: Annotated[DbSession, Depends(get_db)],
) -> list[TestCategoryView]:
    return catalog_service.get_all_test_categories(db)


@router.post("/test-categories", response_model=TestCategoryView)
def create_test_category(
    payload: TestCategoryCreate, db: Annotated[DbSession, Depends(get_db)]
) -> TestCategoryView:
    return catalog_service.create_test_category(db, payload)


@router.put("/test-categories/order")
def reorder_test_categories(
    payload: ReorderRequest, db: Annotated[DbSession, Depends(get_db)]
) -> dict[str, bool]:
    return {"success": catalog_service.reorder_test_categories(db, payload.ids)}


@router.get("/test-categories/{category_id}", response_model=TestCategoryView)
def get_test_category(
    category_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> TestCategoryView:
    return ensure_found(
        catalog_service.get_test_category_by_id(db, category_id), "Test category"
    )


@router.patch("/test-categories/{category_id}", response_model=TestCategoryView)
def update_test_category(
    category_id: str,
    payload: TestCategoryUpdate,
    db: Annotated[DbSession, Depends(get_db)],
) -> TestCategoryView:
    return ensure_found(
        catalog_service.update_test_category(db, category_id, payload), "Test category"
    )


@router.delete("/test-categories/{category_id}", response_model=OperationResult)
def delete_test_category(
    category_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> OperationResult:
    return ensure_success(catalog_service.delete_test_category(db, category_id))


# Questions


@router.get("/questions", response_model=list[QuestionView])
def list_questions(
    db: Annotated[DbSession, Depends(get_db)],
    category_id: str | None = Query(None),
    is_active: bool | None = Query(None),
    include_archived: bool = Query(False),
    archived_only: bool = Query(False),
) -> list[QuestionView]:
    """List questions. Pass ``category_id=uncategorized`` for questions without one."""
    return catalog_service.get_all_questions(
        db,
        category_id=category_id,
        is_active=is_active,
        include_archived=include_archived,
        archived_only=archived_only,
    )


@router.post("/questions", response_model=QuestionView)
def create_question(
    payload: QuestionCreate, db: Annotated[DbSession, Depends(get_db)]
) -> QuestionView:
    with service_errors():
        return catalog_service.create_question(db, payload)


@router.get("/questions/{question_id}", response_model=QuestionView)
def get_question(question_id: str, db: Annotated[DbSession, Depends(get_db)]) -> QuestionView:
    return ensure_found(catalog_service.get_question_by_id(db, question_id), "Question")


@router.patch("/questions/{question_id}", response_model=QuestionView)
def update_question(
    question_id: str,
    payload: QuestionUpdate,
    db: Annotated[DbSession, Depends(get_db)],
) -> QuestionView:
    with service_errors():
        question = catalog_service.update_question(db, question_id, payload)
    return ensure_found(question, "Question")


@router.post("/questions/{question_id}/move", response_model=QuestionView)
def move_question(
    question_id: str,
    payload: MoveQuestionRequest,
    db: Annotated[DbSession, Depends(get_db)],
) -> QuestionView:
    return ensure_found(
        catalog_service.move_question(db, question_id, payload.category_id), "Question"
    )


@router.delete("/questions/{question_id}", response_model=OperationResult)
def delete_question(
    question_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> OperationResult:
    """Delete an unused question or archive a used one."""
    return ensure_success(catalog_service.delete_question(db, question_id))


@router.post("/questions/{question_id}/restore", response_model=QuestionView)
def restore_question(
    question_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> QuestionView:
    return ensure_found(catalog_service.restore_question(db, question_id), "Question")


@router.delete("/questions/{question_id}/permanent", response_model=OperationResult)
def permanent_delete_question(
    question_id: str, db: Annotated[DbSession, Depends(get_db)]
) -> OperationResult:
    return ensure_success(catalog_service.permanent_delete_question(db, question_id))
