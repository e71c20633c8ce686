import pytest

import kcheck.models.results as result_models
import kcheck.models.tests as test_models
from kcheck.exceptions import NotFoundError
from kcheck.services import archive_service, result_service, test_service


def test_create_test_preserves_question_order(make_question, make_test) -> None:
    first = make_question("First")
    second = make_question("Second")
    third = make_question("Third")

    test = make_test([third, first, second])
    assert test.test_number.startswith("KC-")
    assert [q.question_id for q in test.questions] == [third.id, first.id, second.id]
    assert [q.sort_order for q in test.questions] == [0, 1, 2]
    assert test.passing_score == 80


def test_override_wins_over_question_and_category(make_category, make_question, make_test) -> None:
    category = make_category(default_weighting=5)
    weighted = make_question(category_id=category.id, weighting=3)
    inherited = make_question(category_id=category.id)

    test = make_test([weighted, inherited], overrides={weighted.id: 9})
    by_id = {q.question_id: q for q in test.questions}
    assert by_id[weighted.id].effective_weighting == 9
    assert by_id[weighted.id].weighting_override == 9
    assert by_id[inherited.id].effective_weighting == 5


def test_grading_view_exposes_correct_options(make_question, make_test) -> None:
    question = make_question(options=[("Yes", True), ("No", False)])
    test = make_test([question])
    assert [o.is_correct for o in test.questions[0].options] == [True, False]


def test_update_test_replaces_question_list(db, make_question, make_test) -> None:
    first = make_question("First")
    second = make_question("Second")
    test = make_test([first, second])

    updated = test_service.update_test(
        db,
        test.id,
        test_models.TestUpdate(
            name="Renamed",
            questions=[test_models.TestQuestionRef(question_id=second.id)],
        ),
    )
    assert updated.name == "Renamed"
    assert [q.question_id for q in updated.questions] == [second.id]


def test_update_test_keeps_questions_when_not_supplied(db, make_question, make_test) -> None:
    question = make_question()
    test = make_test([question])
    updated = test_service.update_test(db, test.id, test_models.TestUpdate(passing_score=60))
    assert updated.passing_score == 60
    assert len(updated.questions) == 1


def test_update_missing_test_returns_none(db) -> None:
    assert test_service.update_test(db, "missing", test_models.TestUpdate()) is None


def test_create_test_with_missing_question_fails(db) -> None:
    with pytest.raises(NotFoundError):
        test_service.create_test(
            db,
            test_models.TestCreate(
                name="Broken",
                questions=[test_models.TestQuestionRef(question_id="missing")],
            ),
        )
    assert test_service.get_all_tests(db) == []


def test_archived_question_cannot_be_added(db, make_question, make_test) -> None:
    question = make_question()
    other = make_question("Other")
    test = make_test([question])
    result_service.create_result(
        db,
        result_models.ResultCreate(test_id=test.id, user_id="u1", answers=[]),
    )
    assert archive_service.archive_or_delete_question(db, question.id).archived

    with pytest.raises(ValueError):
        test_service.create_test(
            db,
            test_models.TestCreate(
                name="New",
                questions=[
                    test_models.TestQuestionRef(question_id=other.id),
                    test_models.TestQuestionRef(question_id=question.id),
                ],
            ),
        )


def test_get_all_tests_counts_questions(make_question, make_test, db) -> None:
    make_test([make_question(), make_question()], name="Two")
    make_test([], name="Empty")

    tests = {t.name: t for t in test_service.get_all_tests(db)}
    assert tests["Two"].question_count == 2
    assert tests["Empty"].question_count == 0


def test_get_tests_with_stats(db, make_question, make_test) -> None:
    question = make_question()
    test = make_test([question], passing_score=50)
    right = [o.id for o in question.options if o.is_correct]

    result_service.create_result(
        db,
        result_models.ResultCreate(
            test_id=test.id,
            user_id="u1",
            answers=[result_models.AnswerSubmission(question_id=question.id, selected_options=right)],
        ),
    )
    result_service.create_result(
        db, result_models.ResultCreate(test_id=test.id, user_id="u2", answers=[])
    )

    [stats] = test_service.get_tests_with_stats(db)
    assert stats.total_results == 2
    assert stats.passed_count == 1
    assert stats.avg_score == 50
    assert stats.assigned_count == 0


def test_get_all_tests_hides_archived(db, make_question, make_test) -> None:
    test = make_test([make_question()])
    result_service.create_result(
        db, result_models.ResultCreate(test_id=test.id, user_id="u1", answers=[])
    )
    assert test_service.delete_test(db, test.id).archived

    assert test_service.get_all_tests(db) == []
    archived = test_service.get_all_tests(db, archived_only=True)
    assert [t.id for t in archived] == [test.id]
    assert len(test_service.get_all_tests(db, include_archived=True)) == 1
