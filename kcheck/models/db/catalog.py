"""
Question catalog models: categories, questions and multiple-choice options.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kcheck.database import Base
from kcheck.models.db._columns import created_at_column, id_column, updated_at_column
from kcheck.utils.json_utils import json_dump, load_json_text

if TYPE_CHECKING:
    from kcheck.models.db.test import Test, TestQuestion


class QuestionType(str, enum.Enum):
    """Supported question kinds."""

    MULTIPLE_CHOICE = "multiple_choice"
    OPEN_QUESTION = "open_question"


class Category(Base):
    """
    Grouping label for questions.
    Its default weighting applies to questions without an own weighting.
    """

    __tablename__ = "kc_categories"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    default_weighting: Mapped[int] = mapped_column(default=1, nullable=False)
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    # Relationships
    questions: Mapped[list["Question"]] = relationship(
        "Question", back_populates="category"
    )


class TestCategory(Base):
    """Grouping label for tests, independent from question categories."""

    __tablename__ = "kc_test_categories"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    # Relationships
    tests: Mapped[list["Test"]] = relationship("Test", back_populates="category")


class Question(Base):
    """
    Catalog question.
    Multiple-choice questions own an ordered option list; open questions carry
    an exact answer and trigger words instead.
    """

    __tablename__ = "kc_questions"

    id: Mapped[str] = id_column()
    category_id: Mapped[str | None] = mapped_column(
        ForeignKey("kc_categories.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(
        String(32), default=QuestionType.MULTIPLE_CHOICE.value, nullable=False
    )
    weighting: Mapped[int | None] = mapped_column(nullable=True)
    allow_partial_answer: Mapped[bool] = mapped_column(default=False, nullable=False)
    exact_answer: Mapped[str] = mapped_column(Text, default="", nullable=False)
    trigger_words_json: Mapped[str] = mapped_column(
        "trigger_words", Text, default="[]", nullable=False
    )

    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    is_archived: Mapped[bool] = mapped_column(default=False, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    # Relationships
    category: Mapped["Category | None"] = relationship(
        "Category", back_populates="questions"
    )
    options: Mapped[list["QuestionOption"]] = relationship(
        "QuestionOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="QuestionOption.sort_order",
    )
    test_links: Mapped[list["TestQuestion"]] = relationship(
        "TestQuestion", back_populates="question"
    )

    @property
    def trigger_words(self) -> list[str]:
        """Parse trigger words from JSON."""
        words = load_json_text(self.trigger_words_json, [], "trigger_words")
        return [w for w in words if isinstance(w, str)]

    @trigger_words.setter
    def trigger_words(self, value: list[str] | None) -> None:
        """Serialize trigger words to JSON."""
        self.trigger_words_json = json_dump(list(value or []))

    @property
    def is_multiple_choice(self) -> bool:
        return self.question_type == QuestionType.MULTIPLE_CHOICE.value


class QuestionOption(Base):
    """Answer option of a multiple-choice question."""

    __tablename__ = "kc_question_options"

    id: Mapped[str] = id_column()
    question_id: Mapped[str] = mapped_column(
        ForeignKey("kc_questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_text: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(default=False, nullable=False)
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)

    # Relationships
    question: Mapped["Question"] = relationship("Question", back_populates="options")
