"""
Test run and assignment models.
A run fans one or more tests out to a set of users, one assignment per pair.
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

if TYPE_CHECKING:
    from kcheck.models.db.result import Result
    from kcheck.models.db.test import Test


class RunStatus(str, enum.Enum):
    """Lifecycle of a test run."""

    PENDING = "pending"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class AssignmentStatus(str, enum.Enum):
    """Lifecycle of an assignment. One-way: pending -> completed."""

    PENDING = "pending"
    COMPLETED = "completed"


class TestRun(Base):
    """Named batch of tests assigned to a set of users."""

    __tablename__ = "kc_test_runs"

    id: Mapped[str] = id_column()
    run_number: Mapped[str] = mapped_column(
        String(16), unique=True, index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    due_date: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=RunStatus.PENDING.value, nullable=False
    )
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    is_archived: Mapped[bool] = mapped_column(default=False, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    # Relationships
    test_links: Mapped[list["TestRunTest"]] = relationship(
        "TestRunTest",
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="TestRunTest.sort_order",
    )
    assignments: Mapped[list["Assignment"]] = relationship(
        "Assignment", back_populates="run"
    )

    @property
    def is_archived_state(self) -> bool:
        """Older rows only carry the archived status, newer ones both."""
        return self.is_archived or self.status == RunStatus.ARCHIVED.value


class TestRunTest(Base):
    """Test included in a run."""

    __tablename__ = "kc_test_run_tests"

    id: Mapped[str] = id_column()
    run_id: Mapped[str] = mapped_column(
        ForeignKey("kc_test_runs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_id: Mapped[str] = mapped_column(
        ForeignKey("kc_tests.id"), nullable=False, index=True
    )
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)

    # Relationships
    run: Mapped["TestRun"] = relationship("TestRun", back_populates="test_links")
    test: Mapped["Test"] = relationship("Test")


class Assignment(Base):
    """
    One user paired with one test, usually inside a run.
    ``result_id`` is set exactly once, when the user submits.
    """

    __tablename__ = "kc_test_assignments"

    id: Mapped[str] = id_column()
    run_id: Mapped[str | None] = mapped_column(
        ForeignKey("kc_test_runs.id"), nullable=True, index=True
    )
    test_id: Mapped[str] = mapped_column(
        ForeignKey("kc_tests.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    assigned_by: Mapped[str] = mapped_column(String(64), nullable=False)
    due_date: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=AssignmentStatus.PENDING.value, nullable=False
    )
    result_id: Mapped[str | None] = mapped_column(
        ForeignKey("kc_test_results.id"), nullable=True
    )
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    # Relationships
    run: Mapped["TestRun | None"] = relationship(
        "TestRun", back_populates="assignments"
    )
    test: Mapped["Test"] = relationship("Test")
    result: Mapped["Result | None"] = relationship("Result")

    @property
    def is_completed(self) -> bool:
        return self.status == AssignmentStatus.COMPLETED.value
