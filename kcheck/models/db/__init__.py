"""Database models."""
from kcheck.models.db.catalog import Category, Question, QuestionOption, QuestionType, TestCategory
from kcheck.models.db.test import Test, TestQuestion
from kcheck.models.db.run import Assignment, AssignmentStatus, RunStatus, TestRun, TestRunTest
from kcheck.models.db.result import Answer, Result

__all__ = [
    "Category",
    "Question",
    "QuestionOption",
    "QuestionType",
    "TestCategory",
    "Test",
    "TestQuestion",
    "Assignment",
    "AssignmentStatus",
    "RunStatus",
    "TestRun",
    "TestRunTest",
    "Answer",
    "Result",
]
