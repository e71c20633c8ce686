"""Pydantic models."""
from kcheck.models.catalog import (
    CategoryCreate,
    CategoryUpdate,
    CategoryView,
    MoveQuestionRequest,
    OptionPayload,
    OptionView,
    QuestionCreate,
    QuestionType,
    QuestionUpdate,
    QuestionView,
    ReorderRequest,
    TestCategoryCreate,
    TestCategoryUpdate,
    TestCategoryView,
)
from kcheck.models.common import (
    ArchiveStatistics,
    MigrationResult,
    OperationResult,
    Statistics,
)
from kcheck.models.results import (
    AnswerAnnotation,
    AnswerSubmission,
    AnswerView,
    OpenAnswerCheck,
    OpenAnswerCheckRequest,
    OptionDetails,
    OptionSnapshot,
    ResultCreate,
    ResultSummary,
    ResultUpdate,
    ResultView,
)
from kcheck.models.runs import (
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentView,
    RunStats,
    TestRunCreate,
    TestRunSummary,
    TestRunUpdate,
    TestRunView,
)
from kcheck.models.tests import (
    TestCreate,
    TestQuestionRef,
    TestQuestionView,
    TestStatsSummary,
    TestSummary,
    TestUpdate,
    TestView,
)

__all__ = [
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryView",
    "MoveQuestionRequest",
    "OptionPayload",
    "OptionView",
    "QuestionCreate",
    "QuestionType",
    "QuestionUpdate",
    "QuestionView",
    "ReorderRequest",
    "TestCategoryCreate",
    "TestCategoryUpdate",
    "TestCategoryView",
    "ArchiveStatistics",
    "MigrationResult",
    "OperationResult",
    "Statistics",
    "AnswerAnnotation",
    "AnswerSubmission",
    "AnswerView",
    "OpenAnswerCheck",
    "OpenAnswerCheckRequest",
    "OptionDetails",
    "OptionSnapshot",
    "ResultCreate",
    "ResultSummary",
    "ResultUpdate",
    "ResultView",
    "AssignmentCreate",
    "AssignmentUpdate",
    "AssignmentView",
    "RunStats",
    "TestRunCreate",
    "TestRunSummary",
    "TestRunUpdate",
    "TestRunView",
    "TestCreate",
    "TestQuestionRef",
    "TestQuestionView",
    "TestStatsSummary",
    "TestSummary",
    "TestUpdate",
    "TestView",
]
