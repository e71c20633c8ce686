"""
Result and Answer models for graded attempts.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from pydantic import ValidationError
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kcheck.database import Base
from kcheck.models.db._columns import created_at_column, id_column, updated_at_column
from kcheck.models.results import OptionDetails
from kcheck.utils.json_utils import json_dump, load_json_text

if TYPE_CHECKING:
    from kcheck.models.db.catalog import Question
    from kcheck.models.db.test import Test

logger = logging.getLogger(__name__)


class Result(Base):
    """
    One graded attempt of a test by a user.
    Created once at submission; afterwards only evaluator annotations change.
    """

    __tablename__ = "kc_test_results"

    id: Mapped[str] = id_column()
    result_number: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False
    )
    test_id: Mapped[str] = mapped_column(
        ForeignKey("kc_tests.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    evaluator_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    started_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    total_score: Mapped[float] = mapped_column(default=0.0, nullable=False)
    max_score: Mapped[float] = mapped_column(default=0.0, nullable=False)
    percentage: Mapped[int] = mapped_column(default=0, nullable=False)
    passed: Mapped[bool] = mapped_column(default=False, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    # Relationships
    test: Mapped["Test"] = relationship("Test")
    answers: Mapped[list["Answer"]] = relationship(
        "Answer",
        back_populates="result",
        cascade="all, delete-orphan",
        order_by="Answer.position",
    )


class Answer(Base):
    """
    Answer to one question within a result.
    Multiple-choice answers keep a snapshot of every option as it was at
    submission time.
    """

    __tablename__ = "kc_test_answers"

    id: Mapped[str] = id_column()
    result_id: Mapped[str] = mapped_column(
        ForeignKey("kc_test_results.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[str] = mapped_column(
        ForeignKey("kc_questions.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(default=0, nullable=False)

    # Submission
    answer_text: Mapped[str] = mapped_column(Text, default="", nullable=False)
    selected_options_json: Mapped[str] = mapped_column(
        "selected_options", Text, default="[]", nullable=False
    )

    # Grading
    is_correct: Mapped[bool] = mapped_column(default=False, nullable=False)
    score: Mapped[float] = mapped_column(default=0.0, nullable=False)
    max_score: Mapped[float] = mapped_column(default=0.0, nullable=False)
    option_details_json: Mapped[str] = mapped_column(
        "option_details", Text, default="{}", nullable=False
    )
    matched_triggers_json: Mapped[str] = mapped_column(
        "matched_triggers", Text, default="[]", nullable=False
    )
    evaluator_notes: Mapped[str] = mapped_column(Text, default="", nullable=False)

    # Relationships
    result: Mapped["Result"] = relationship("Result", back_populates="answers")
    question: Mapped["Question"] = relationship("Question")

    @property
    def selected_options(self) -> list[str]:
        """Parse selected option ids from JSON."""
        ids = load_json_text(self.selected_options_json, [], "selected_options")
        return [i for i in ids if isinstance(i, str)]

    @selected_options.setter
    def selected_options(self, value: list[str] | None) -> None:
        self.selected_options_json = json_dump(list(value or []))

    @property
    def option_details(self) -> OptionDetails:
        """Parse the option snapshot from JSON."""
        raw = load_json_text(self.option_details_json, {}, "option_details")
        try:
            return OptionDetails.model_validate(raw)
        except ValidationError:
            logger.warning(f"Malformed option snapshot on answer {self.id}, using empty default")
            return OptionDetails()

    @option_details.setter
    def option_details(self, value: OptionDetails | None) -> None:
        self.option_details_json = value.model_dump_json() if value else "{}"

    @property
    def matched_triggers(self) -> list[str]:
        """Parse matched trigger words from JSON."""
        words = load_json_text(self.matched_triggers_json, [], "matched_triggers")
        return [w for w in words if isinstance(w, str)]

    @matched_triggers.setter
    def matched_triggers(self, value: list[str] | None) -> None:
        self.matched_triggers_json = json_dump(list(value or []))
