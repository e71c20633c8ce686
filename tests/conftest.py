import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import kcheck.models.catalog as catalog_models
import kcheck.models.tests as test_models
from kcheck.database import init_db
from kcheck.services import catalog_service, test_service


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_category(db):
    def _make(name: str = "General", default_weighting: int = 1):
        return catalog_service.create_category(
            db,
            catalog_models.CategoryCreate(name=name, default_weighting=default_weighting),
        )

    return _make


@pytest.fixture
def make_question(db):
    def _make(
        text: str = "Which options are correct?",
        options: list[tuple[str, bool]] | None = None,
        category_id: str | None = None,
        weighting: int | None = None,
        allow_partial_answer: bool = False,
    ):
        options = options if options is not None else [("Right", True), ("Wrong", False)]
        return catalog_service.create_question(
            db,
            catalog_models.QuestionCreate(
                question_text=text,
                category_id=category_id,
                weighting=weighting,
                allow_partial_answer=allow_partial_answer,
                options=[
                    catalog_models.OptionPayload(text=label, is_correct=correct)
                    for label, correct in options
                ],
            ),
        )

    return _make


@pytest.fixture
def make_open_question(db):
    def _make(
        text: str = "How do you restore connectivity?",
        exact_answer: str = "",
        trigger_words: list[str] | None = None,
        category_id: str | None = None,
        weighting: int | None = None,
    ):
        return catalog_service.create_question(
            db,
            catalog_models.QuestionCreate(
                question_text=text,
                question_type=catalog_models.QuestionType.OPEN_QUESTION,
                exact_answer=exact_answer,
                trigger_words=trigger_words or [],
                category_id=category_id,
                weighting=weighting,
            ),
        )

    return _make


@pytest.fixture
def make_test(db):
    def _make(
        questions: list,
        name: str = "Support basics",
        passing_score: int = 80,
        overrides: dict[str, int] | None = None,
    ):
        overrides = overrides or {}
        return test_service.create_test(
            db,
            test_models.TestCreate(
                name=name,
                passing_score=passing_score,
                questions=[
                    test_models.TestQuestionRef(
                        question_id=q.id, weighting_override=overrides.get(q.id)
                    )
                    for q in questions
                ],
            ),
        )

    return _make

