"""Catalog service: question categories, test categories and questions."""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session as DbSession, joinedload, selectinload

from kcheck.database import atomic
from kcheck.models.catalog import (
    CategoryCreate,
    CategoryUpdate,
    CategoryView,
    OptionPayload,
    OptionView,
    QuestionCreate,
    QuestionType,
    QuestionUpdate,
    QuestionView,
    TestCategoryCreate,
    TestCategoryUpdate,
    TestCategoryView,
)
from kcheck.models.common import OperationResult
from kcheck.models.db.catalog import Category, Question, QuestionOption, TestCategory
from kcheck.models.db.test import Test
from kcheck.services import archive_service

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"
UNCATEGORIZED_NAME = "Uncategorized"


def resolve_effective_weighting(
    override: int | None,
    weighting: int | None,
    category_default: int | None,
) -> int:
    """Per-test override, else question weighting, else category default, else 1."""
    for candidate in (override, weighting, category_default):
        if candidate is not None:
            return candidate
    return 1


# ============================================
# Question categories
# ============================================


def _category_view(category: Category, question_count: int = 0) -> CategoryView:
    return CategoryView(
        id=category.id,
        name=category.name,
        description=category.description,
        default_weighting=category.default_weighting,
        sort_order=category.sort_order,
        is_active=category.is_active,
        question_count=question_count,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def get_all_categories(db: DbSession) -> list[CategoryView]:
    """All question categories in display order, with question counts."""
    counts = dict(
        db.execute(
            select(Question.category_id, func.count(Question.id))
            .where(Question.category_id.is_not(None))
            .group_by(Question.category_id)
        ).all()
    )
    categories = db.execute(
        select(Category).order_by(Category.sort_order, Category.name)
    ).scalars().all()
    return [_category_view(c, counts.get(c.id, 0)) for c in categories]


def get_category_by_id(db: DbSession, category_id: str) -> CategoryView | None:
    category = db.get(Category, category_id)
    if not category:
        return None
    count = db.execute(
        select(func.count(Question.id)).where(Question.category_id == category_id)
    ).scalar() or 0
    return _category_view(category, count)


def create_category(db: DbSession, data: CategoryCreate) -> CategoryView:
    """Create a category at the end of the display order."""
    max_order = db.execute(select(func.max(Category.sort_order))).scalar() or 0
    category = Category(
        name=data.name,
        description=data.description,
        default_weighting=data.default_weighting,
        sort_order=max_order + 1,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    return _category_view(category)


def update_category(
    db: DbSession, category_id: str, data: CategoryUpdate
) -> CategoryView | None:
    category = db.get(Category, category_id)
    if not category:
        return None

    for key, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(category, key, value)

    db.commit()
    return get_category_by_id(db, category_id)


def delete_category(db: DbSession, category_id: str) -> OperationResult:
    """
    Delete a category. Its questions move to uncategorized instead of being
    deleted with it.
    """
    category = db.get(Category, category_id)
    if not category:
        return OperationResult.failure("Category not found")

    with atomic(db):
        db.execute(
            update(Question)
            .where(Question.category_id == category_id)
            .values(category_id=None)
        )
        db.delete(category)
    logger.info(f"Deleted category {category_id}")
    return OperationResult(deleted=True)


def reorder_categories(db: DbSession, category_ids: list[str]) -> bool:
    with atomic(db):
        for index, category_id in enumerate(category_ids):
            db.execute(
                update(Category).where(Category.id == category_id).values(sort_order=index)
            )
    return True


# ============================================
# Test categories
# ============================================


def _test_category_view(category: TestCategory, test_count: int = 0) -> TestCategoryView:
    return TestCategoryView(
        id=category.id,
        name=category.name,
        description=category.description,
        sort_order=category.sort_order,
        is_active=category.is_active,
        test_count=test_count,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def get_all_test_categories(db: DbSession) -> list[TestCategoryView]:
    counts = dict(
        db.execute(
            select(Test.category_id, func.count(Test.id))
            .where(Test.category_id.is_not(None))
            .group_by(Test.category_id)
        ).all()
    )
    categories = db.execute(
        select(TestCategory).order_by(TestCategory.sort_order, TestCategory.name)
    ).scalars().all()
    return [_test_category_view(c, counts.get(c.id, 0)) for c in categories]


def get_test_category_by_id(db: DbSession, category_id: str) -> TestCategoryView | None:
    category = db.get(TestCategory, category_id)
    if not category:
        return None
    count = db.execute(
        select(func.count(Test.id)).where(Test.category_id == category_id)
    ).scalar() or 0
    return _test_category_view(category, count)


def create_test_category(db: DbSession, data: TestCategoryCreate) -> TestCategoryView:
    max_order = db.execute(select(func.max(TestCategory.sort_order))).scalar() or 0
    category = TestCategory(
        name=data.name,
        description=data.description,
        sort_order=max_order + 1,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    return _test_category_view(category)


def update_test_category(
    db: DbSession, category_id: str, data: TestCategoryUpdate
) -> TestCategoryView | None:
    category = db.get(TestCategory, category_id)
    if not category:
        return None

    for key, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(category, key, value)

    db.commit()
    return get_test_category_by_id(db, category_id)


def delete_test_category(db: DbSession, category_id: str) -> OperationResult:
    """Delete a test category; its tests become uncategorized."""
    category = db.get(TestCategory, category_id)
    if not category:
        return OperationResult.failure("Test category not found")

    with atomic(db):
        db.execute(
            update(Test).where(Test.category_id == category_id).values(category_id=None)
        )
        db.delete(category)
    logger.info(f"Deleted test category {category_id}")
    return OperationResult(deleted=True)


def reorder_test_categories(db: DbSession, category_ids: list[str]) -> bool:
    with atomic(db):
        for index, category_id in enumerate(category_ids):
            db.execute(
                update(TestCategory)
                .where(TestCategory.id == category_id)
                .values(sort_order=index)
            )
    return True


# ============================================
# Questions
# ============================================


def format_question(question: Question) -> QuestionView:
    """
    Single read-side assembly of a question.
    Resolves the effective weighting; corrupt trigger words read as empty.
    """
    category = question.category
    return QuestionView(
        id=question.id,
        category_id=question.category_id,
        category_name=category.name if category else UNCATEGORIZED_NAME,
        title=question.title,
        question_text=question.question_text,
        question_type=question.question_type,
        weighting=question.weighting,
        effective_weighting=resolve_effective_weighting(
            None, question.weighting, category.default_weighting if category else None
        ),
        allow_partial_answer=question.allow_partial_answer,
        exact_answer=question.exact_answer,
        trigger_words=question.trigger_words,
        is_active=question.is_active,
        is_archived=question.is_archived,
        archived_at=question.archived_at,
        sort_order=question.sort_order,
        options=[
            OptionView(id=o.id, text=o.option_text, is_correct=o.is_correct, sort_order=o.sort_order)
            for o in question.options
        ],
        created_at=question.created_at,
        updated_at=question.updated_at,
    )


def _question_query():
    return select(Question).options(
        joinedload(Question.category), selectinload(Question.options)
    )


def _load_question(db: DbSession, question_id: str) -> Question | None:
    return db.execute(
        _question_query().where(Question.id == question_id)
    ).scalar_one_or_none()


def get_all_questions(
    db: DbSession,
    category_id: str | None = None,
    is_active: bool | None = None,
    include_archived: bool = False,
    archived_only: bool = False,
) -> list[QuestionView]:
    """
    List catalog questions, archived ones hidden by default.
    ``category_id="uncategorized"`` selects questions without a category.
    """
    query = _question_query().outerjoin(Category, Question.category_id == Category.id)

    if archived_only:
        query = query.where(Question.is_archived.is_(True))
    elif not include_archived:
        query = query.where(Question.is_archived.is_(False))

    if category_id == UNCATEGORIZED:
        query = query.where(Question.category_id.is_(None))
    elif category_id:
        query = query.where(Question.category_id == category_id)
    if is_active is not None:
        query = query.where(Question.is_active.is_(is_active))

    query = query.order_by(
        Category.sort_order, Category.name, Question.sort_order, Question.created_at
    )
    return [format_question(q) for q in db.execute(query).unique().scalars().all()]


def get_question_by_id(db: DbSession, question_id: str) -> QuestionView | None:
    question = _load_question(db, question_id)
    return format_question(question) if question else None


def _check_type_consistency(
    question_type: str,
    options: list[OptionPayload] | None,
    exact_answer: str | None,
    trigger_words: list[str] | None,
) -> None:
    """Reject payloads that mix fields of the two question kinds."""
    if question_type == QuestionType.OPEN_QUESTION.value:
        if options:
            raise ValueError("Open questions cannot have answer options")
    elif exact_answer or trigger_words:
        raise ValueError(
            "Multiple-choice questions cannot have an exact answer or trigger words"
        )


def _replace_options(question: Question, options: list[OptionPayload]) -> None:
    """Delete-all-then-reinsert; the caller's order becomes sort_order."""
    question.options.clear()
    for index, option in enumerate(options):
        question.options.append(
            QuestionOption(option_text=option.text, is_correct=option.is_correct, sort_order=index)
        )


def create_question(db: DbSession, data: QuestionCreate) -> QuestionView:
    question_type = data.question_type.value
    _check_type_consistency(question_type, data.options, data.exact_answer, data.trigger_words)

    max_order = db.execute(
        select(func.max(Question.sort_order)).where(
            Question.category_id.is_(None)
            if data.category_id is None
            else Question.category_id == data.category_id
        )
    ).scalar() or 0

    question = Question(
        category_id=data.category_id,
        title=data.title,
        question_text=data.question_text,
        question_type=question_type,
        weighting=data.weighting,
        allow_partial_answer=data.allow_partial_answer,
        exact_answer=data.exact_answer,
        sort_order=max_order + 1,
    )
    question.trigger_words = data.trigger_words
    with atomic(db):
        db.add(question)
        _replace_options(question, data.options)

    return get_question_by_id(db, question.id)


def update_question(
    db: DbSession, question_id: str, data: QuestionUpdate
) -> QuestionView | None:
    """
    Update a question. A supplied option list replaces the stored one as a
    whole; switching kinds drops the fields of the old kind.
    """
    question = _load_question(db, question_id)
    if not question:
        return None

    changes = data.model_dump(exclude_unset=True)
    question_type = (
        data.question_type.value if data.question_type else question.question_type
    )
    _check_type_consistency(
        question_type, data.options, data.exact_answer, data.trigger_words
    )

    with atomic(db):
        for key in ("title", "question_text", "weighting", "exact_answer", "sort_order"):
            if key in changes and (changes[key] is not None or key == "weighting"):
                setattr(question, key, changes[key])
        if "category_id" in changes:
            question.category_id = data.category_id or None
        if data.allow_partial_answer is not None:
            question.allow_partial_answer = data.allow_partial_answer
        if data.is_active is not None:
            question.is_active = data.is_active
        if data.trigger_words is not None:
            question.trigger_words = data.trigger_words
        question.question_type = question_type

        if question_type == QuestionType.OPEN_QUESTION.value:
            question.options.clear()
        else:
            question.exact_answer = ""
            question.trigger_words = []
            if data.options is not None:
                _replace_options(question, data.options)

    db.expire(question)
    return get_question_by_id(db, question_id)


def move_question(
    db: DbSession, question_id: str, category_id: str | None
) -> QuestionView | None:
    question = db.get(Question, question_id)
    if not question:
        return None
    question.category_id = category_id or None
    db.commit()
    db.expire(question)
    return get_question_by_id(db, question_id)


def delete_question(db: DbSession, question_id: str) -> OperationResult:
    """Archive or delete, depending on whether any result used the question."""
    return archive_service.archive_or_delete_question(db, question_id)


def restore_question(db: DbSession, question_id: str) -> QuestionView | None:
    if not archive_service.restore_question(db, question_id):
        return None
    return get_question_by_id(db, question_id)


def permanent_delete_question(db: DbSession, question_id: str) -> OperationResult:
    return archive_service.permanent_delete_question(db, question_id)
