"""Shared outcome and statistics models."""
from pydantic import BaseModel


class OperationResult(BaseModel):
    """
    Outcome of a delete-style operation.
    Validation failures come back as ``success=False`` with an error text.
    """

    success: bool = True
    archived: bool = False
    deleted: bool = False
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)


class MigrationResult(BaseModel):
    """Outcome of the orphaned-assignment repair."""

    success: bool = True
    message: str
    count: int = 0


class ArchiveStatistics(BaseModel):
    """Archived entity counts."""

    archived_questions: int = 0
    archived_tests: int = 0
    archived_runs: int = 0


class Statistics(BaseModel):
    """Engine-wide dashboard figures."""

    total_tests: int = 0
    total_questions: int = 0
    total_results: int = 0
    total_runs: int = 0
    total_archived: int = 0
    my_assigned_count: int = 0
    passed_results: int = 0
    passing_rate: int = 0
    average_score: int = 0
