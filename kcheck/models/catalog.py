"""Catalog-related Pydantic models: categories and questions."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    """Supported question kinds."""

    MULTIPLE_CHOICE = "multiple_choice"
    OPEN_QUESTION = "open_question"


# Request models


class CategoryCreate(BaseModel):
    """Request to create a question category."""

    name: str = Field(..., min_length=1)
    description: str = ""
    default_weighting: int = Field(1, ge=0)


class CategoryUpdate(BaseModel):
    """Partial update of a question category."""

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    default_weighting: int | None = Field(None, ge=0)
    sort_order: int | None = None
    is_active: bool | None = None


class TestCategoryCreate(BaseModel):
    """Request to create a test category."""

    name: str = Field(..., min_length=1)
    description: str = ""


class TestCategoryUpdate(BaseModel):
    """Partial update of a test category."""

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    sort_order: int | None = None
    is_active: bool | None = None


class OptionPayload(BaseModel):
    """Multiple-choice option as supplied by an author."""

    text: str
    is_correct: bool = False


class QuestionCreate(BaseModel):
    """Request to create a catalog question."""

    category_id: str | None = None
    title: str = ""
    question_text: str = Field(..., min_length=1)
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    weighting: int | None = Field(None, ge=0)
    allow_partial_answer: bool = False
    exact_answer: str = ""
    trigger_words: list[str] = Field(default_factory=list)
    options: list[OptionPayload] = Field(default_factory=list)


class QuestionUpdate(BaseModel):
    """
    Partial update of a catalog question.
    A supplied ``options`` list replaces the whole option set.
    """

    category_id: str | None = None
    title: str | None = None
    question_text: str | None = Field(None, min_length=1)
    question_type: QuestionType | None = None
    weighting: int | None = Field(None, ge=0)
    allow_partial_answer: bool | None = None
    exact_answer: str | None = None
    trigger_words: list[str] | None = None
    is_active: bool | None = None
    sort_order: int | None = None
    options: list[OptionPayload] | None = None


class ReorderRequest(BaseModel):
    """Ids in their new display order."""

    ids: list[str]


class MoveQuestionRequest(BaseModel):
    """Target category of a move; ``None`` means uncategorized."""

    category_id: str | None = None


# Response models


class CategoryView(BaseModel):
    """Question category."""

    id: str
    name: str
    description: str
    default_weighting: int
    sort_order: int
    is_active: bool
    question_count: int = 0
    created_at: datetime
    updated_at: datetime


class TestCategoryView(BaseModel):
    """Test category."""

    id: str
    name: str
    description: str
    sort_order: int
    is_active: bool
    test_count: int = 0
    created_at: datetime
    updated_at: datetime


class OptionView(BaseModel):
    """Stored multiple-choice option, correctness included."""

    id: str
    text: str
    is_correct: bool
    sort_order: int


class QuestionView(BaseModel):
    """Catalog question with its weighting resolved."""

    id: str
    category_id: str | None
    category_name: str
    title: str
    question_text: str
    question_type: QuestionType
    weighting: int | None
    effective_weighting: int
    allow_partial_answer: bool
    exact_answer: str
    trigger_words: list[str]
    is_active: bool
    is_archived: bool
    archived_at: datetime | None
    sort_order: int
    options: list[OptionView]
    created_at: datetime
    updated_at: datetime
