"""Result and answer Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, Field

from kcheck.models.catalog import QuestionType


class OptionSnapshot(BaseModel):
    """A multiple-choice option as it was when the answer was submitted."""

    id: str
    text: str
    is_correct: bool
    was_selected: bool


class OptionDetails(BaseModel):
    """Snapshot of a multiple-choice answer, kept with the answer row."""

    all_options: list[OptionSnapshot] = Field(default_factory=list)
    correct_selected: int = 0
    incorrect_selected: int = 0
    total_correct_options: int = 0
    allow_partial_answer: bool = False


class OpenAnswerCheck(BaseModel):
    """Outcome of fuzzy-matching an open answer."""

    is_correct: bool
    matched_triggers: list[str] = Field(default_factory=list)


# Request models


class AnswerSubmission(BaseModel):
    """What the user submitted for one question."""

    question_id: str
    answer_text: str = ""
    selected_options: list[str] = Field(default_factory=list)


class ResultCreate(BaseModel):
    """A completed attempt handed in for grading."""

    test_id: str
    user_id: str
    assignment_id: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    notes: str = ""
    answers: list[AnswerSubmission] = Field(default_factory=list)


class AnswerAnnotation(BaseModel):
    """Evaluator note on a single answer."""

    answer_id: str
    evaluator_notes: str


class ResultUpdate(BaseModel):
    """Evaluator annotations; graded values are immutable."""

    notes: str | None = None
    answer_notes: list[AnswerAnnotation] | None = None


class OpenAnswerCheckRequest(BaseModel):
    """Preview of open-answer matching."""

    answer: str
    exact_answer: str = ""
    trigger_words: list[str] = Field(default_factory=list)


# Response models


class AnswerView(BaseModel):
    """Stored answer with its question's current wording."""

    id: str
    question_id: str
    question_title: str
    question_text: str
    question_type: QuestionType | None
    answer_text: str
    selected_options: list[str]
    option_details: OptionDetails
    matched_triggers: list[str]
    is_correct: bool
    score: float
    max_score: float
    evaluator_notes: str


class ResultSummary(BaseModel):
    """Result list entry."""

    id: str
    result_number: str
    test_id: str
    test_number: str
    test_name: str
    user_id: str
    evaluator_id: str | None
    started_at: datetime
    completed_at: datetime | None
    total_score: float
    max_score: float
    percentage: int
    passed: bool
    notes: str
    created_at: datetime
    updated_at: datetime


class ResultView(ResultSummary):
    """Result with its answers."""

    answers: list[AnswerView]
