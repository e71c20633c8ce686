"""Test-related Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, Field

from kcheck.config import DEFAULT_PASSING_SCORE
from kcheck.models.catalog import OptionView, QuestionType


class TestQuestionRef(BaseModel):
    """Question placed in a test, optionally with its own weighting."""

    question_id: str
    weighting_override: int | None = Field(None, ge=0)


class TestCreate(BaseModel):
    """Model for creating a new test."""

    name: str = Field(..., min_length=1)
    description: str = ""
    category_id: str | None = None
    time_limit_minutes: int | None = Field(None, ge=1)
    passing_score: int = Field(DEFAULT_PASSING_SCORE, ge=0, le=100)
    questions: list[TestQuestionRef] = Field(default_factory=list)


class TestUpdate(BaseModel):
    """
    Model for updating a test.
    A supplied ``questions`` list replaces the whole question list.
    """

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    category_id: str | None = None
    time_limit_minutes: int | None = Field(None, ge=1)
    passing_score: int | None = Field(None, ge=0, le=100)
    is_active: bool | None = None
    questions: list[TestQuestionRef] | None = None


class TestQuestionView(BaseModel):
    """Question as placed in a test, ready for grading."""

    id: str
    question_id: str
    title: str
    question_text: str
    question_type: QuestionType
    category_name: str
    weighting: int | None
    weighting_override: int | None
    effective_weighting: int
    allow_partial_answer: bool
    exact_answer: str
    trigger_words: list[str]
    sort_order: int
    options: list[OptionView]


class TestView(BaseModel):
    """
    Full grading view of a test.
    Exposes correct answers; strip them before showing a test to its taker.
    """

    id: str
    test_number: str
    name: str
    description: str
    category_id: str | None
    category_name: str
    time_limit_minutes: int | None
    passing_score: int
    is_active: bool
    is_archived: bool
    archived_at: datetime | None
    questions: list[TestQuestionView]
    created_at: datetime
    updated_at: datetime


class TestSummary(BaseModel):
    """Catalog entry of a test."""

    id: str
    test_number: str
    name: str
    description: str
    category_id: str | None
    category_name: str
    time_limit_minutes: int | None
    passing_score: int
    is_active: bool
    is_archived: bool
    archived_at: datetime | None
    question_count: int
    created_at: datetime
    updated_at: datetime


class TestStatsSummary(TestSummary):
    """Catalog entry of a test with assignment and result figures."""

    assigned_count: int = 0
    pending_count: int = 0
    completed_count: int = 0
    avg_score: int | None = None
    passed_count: int = 0
    total_results: int = 0
