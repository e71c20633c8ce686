"""
Test composition models: gradeable tests and their ordered question links.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kcheck.config import DEFAULT_PASSING_SCORE
from kcheck.database import Base
from kcheck.models.db._columns import created_at_column, id_column, updated_at_column

if TYPE_CHECKING:
    from kcheck.models.db.catalog import Question, TestCategory


class Test(Base):
    """Ordered subset of catalog questions with a passing threshold."""

    __tablename__ = "kc_tests"

    id: Mapped[str] = id_column()
    test_number: Mapped[str] = mapped_column(
        String(16), unique=True, index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    category_id: Mapped[str | None] = mapped_column(
        ForeignKey("kc_test_categories.id"), nullable=True, index=True
    )
    time_limit_minutes: Mapped[int | None] = mapped_column(nullable=True)
    passing_score: Mapped[int] = mapped_column(
        default=DEFAULT_PASSING_SCORE, nullable=False
    )

    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    is_archived: Mapped[bool] = mapped_column(default=False, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    # Relationships
    category: Mapped["TestCategory | None"] = relationship(
        "TestCategory", back_populates="tests"
    )
    question_links: Mapped[list["TestQuestion"]] = relationship(
        "TestQuestion",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="TestQuestion.sort_order",
    )


class TestQuestion(Base):
    """
    Membership of a question in a test.
    Carries the position and an optional per-test weighting override.
    """

    __tablename__ = "kc_test_questions"

    id: Mapped[str] = id_column()
    test_id: Mapped[str] = mapped_column(
        ForeignKey("kc_tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[str] = mapped_column(
        ForeignKey("kc_questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)
    weighting_override: Mapped[int | None] = mapped_column(nullable=True)

    # Relationships
    test: Mapped["Test"] = relationship("Test", back_populates="question_links")
    question: Mapped["Question"] = relationship(
        "Question", back_populates="test_links"
    )
