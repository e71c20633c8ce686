"""Test run and assignment Pydantic models."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class RunStatus(str, Enum):
    """Lifecycle of a test run."""

    PENDING = "pending"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class AssignmentStatus(str, Enum):
    """Lifecycle of an assignment."""

    PENDING = "pending"
    COMPLETED = "completed"


# Request models


class TestRunCreate(BaseModel):
    """Request to create a run; one assignment per (user, test) pair."""

    name: str = Field(..., min_length=1)
    description: str = ""
    due_date: datetime | None = None
    notes: str = ""
    test_ids: list[str] = Field(default_factory=list)
    user_ids: list[str] = Field(default_factory=list)


class TestRunUpdate(BaseModel):
    """Partial update of a run's descriptive fields."""

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    due_date: datetime | None = None
    status: RunStatus | None = None
    notes: str | None = None


class AssignmentCreate(BaseModel):
    """One-off grant of a test to a user outside any run."""

    test_id: str
    user_id: str
    due_date: datetime | None = None
    notes: str = ""


class AssignmentUpdate(BaseModel):
    """
    Partial update of an assignment.
    ``result_id`` may only be set while the assignment is still pending.
    """

    due_date: datetime | None = None
    notes: str | None = None
    result_id: str | None = None


# Response models


class RunStats(BaseModel):
    """Aggregates derived live from a run's assignments."""

    test_count: int = 0
    user_count: int = 0
    total_assignments: int = 0
    completed_count: int = 0
    pending_count: int = 0
    avg_score: int | None = None


class RunTestView(BaseModel):
    """Test included in a run."""

    id: str
    test_id: str
    test_number: str
    name: str
    description: str
    passing_score: int
    sort_order: int


class RunAssignmentView(BaseModel):
    """Assignment row inside a run detail view."""

    id: str
    test_id: str
    test_number: str
    test_name: str
    user_id: str
    status: AssignmentStatus
    result_id: str | None
    percentage: int | None = None
    passed: bool | None = None
    completed_at: datetime | None = None
    due_date: datetime | None = None


class TestRunSummary(BaseModel):
    """Run list entry."""

    id: str
    run_number: str
    name: str
    description: str
    due_date: datetime | None
    status: RunStatus
    is_archived: bool
    archived_at: datetime | None
    created_by: str
    notes: str
    stats: RunStats
    created_at: datetime
    updated_at: datetime


class TestRunView(TestRunSummary):
    """Run detail with its tests and assignments."""

    tests: list[RunTestView]
    assignments: list[RunAssignmentView]


class AssignmentView(BaseModel):
    """Assignment with test, run and result summary."""

    id: str
    run_id: str | None
    run_number: str | None = None
    run_name: str | None = None
    test_id: str
    test_number: str
    test_name: str
    category_name: str
    passing_score: int
    time_limit_minutes: int | None
    user_id: str
    assigned_by: str
    due_date: datetime | None
    status: AssignmentStatus
    result_id: str | None
    result_percentage: int | None = None
    result_passed: bool | None = None
    result_total_score: float | None = None
    result_max_score: float | None = None
    result_completed_at: datetime | None = None
    notes: str
    created_at: datetime
    updated_at: datetime
