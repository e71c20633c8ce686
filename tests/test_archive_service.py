from sqlalchemy import func, select

import kcheck.models.results as result_models
import kcheck.models.runs as run_models
from kcheck.models.db.result import Answer, Result
from kcheck.services import (
    archive_service,
    catalog_service,
    result_service,
    run_service,
    test_service,
)


def _grade(db, test, user_id="u1", assignment_id=None):
    return result_service.create_result(
        db,
        result_models.ResultCreate(test_id=test.id, user_id=user_id, assignment_id=assignment_id),
    )


def _count(db, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar()


def test_unused_question_is_deleted_once(db, make_question) -> None:
    question = make_question()

    first = catalog_service.delete_question(db, question.id)
    assert first.success and first.deleted and not first.archived
    assert catalog_service.get_question_by_id(db, question.id) is None

    second = catalog_service.delete_question(db, question.id)
    assert not second.success
    assert second.error == "Question not found"


def test_question_in_unattempted_test_is_deleted(db, make_question, make_test) -> None:
    question = make_question()
    test = make_test([question])

    assert catalog_service.delete_question(db, question.id).deleted
    assert test_service.get_test_by_id(db, test.id).questions == []


def test_used_question_is_archived_and_scrubbed(db, make_question, make_test) -> None:
    question = make_question()
    graded_test = make_test([question], name="Graded")
    fresh_test = make_test([question], name="Fresh")
    _grade(db, graded_test)

    outcome = catalog_service.delete_question(db, question.id)
    assert outcome.success and outcome.archived and not outcome.deleted

    archived = catalog_service.get_question_by_id(db, question.id)
    assert archived.is_archived
    assert archived.archived_at is not None
    assert catalog_service.get_all_questions(db) == []
    assert test_service.get_test_by_id(db, fresh_test.id).questions == []
    assert len(test_service.get_test_by_id(db, graded_test.id).questions) == 1
    assert _count(db, Answer) == 1


def test_restore_question_does_not_reattach(db, make_question, make_test) -> None:
    question = make_question()
    graded_test = make_test([question], name="Graded")
    fresh_test = make_test([question], name="Fresh")
    _grade(db, graded_test)
    catalog_service.delete_question(db, question.id)

    restored = catalog_service.restore_question(db, question.id)
    assert not restored.is_archived
    assert restored.archived_at is None
    assert test_service.get_test_by_id(db, fresh_test.id).questions == []
    assert catalog_service.restore_question(db, "missing") is None


def test_permanent_delete_requires_archive(db, make_question) -> None:
    question = make_question()
    outcome = catalog_service.permanent_delete_question(db, question.id)
    assert not outcome.success
    assert outcome.error == "Question must be archived before permanent deletion"
    assert catalog_service.get_question_by_id(db, question.id) is not None


def test_permanent_delete_question_removes_answers(db, make_question, make_test) -> None:
    question = make_question()
    test = make_test([question])
    _grade(db, test)
    catalog_service.delete_question(db, question.id)

    assert catalog_service.permanent_delete_question(db, question.id).success
    assert catalog_service.get_question_by_id(db, question.id) is None
    assert _count(db, Answer) == 0
    assert _count(db, Result) == 1


def test_test_with_results_is_archived_and_kept(db, make_question, make_test) -> None:
    test = make_test([make_question()])
    _grade(db, test)

    outcome = test_service.delete_test(db, test.id)
    assert outcome.archived

    kept = test_service.get_test_by_id(db, test.id)
    assert kept is not None
    assert kept.is_archived
    assert not kept.is_active
    assert len(kept.questions) == 1


def test_assigned_test_is_archived(db, make_question, make_test) -> None:
    test = make_test([make_question()])
    run_service.create_assignment(
        db, run_models.AssignmentCreate(test_id=test.id, user_id="u1"), "lead"
    )
    assert test_service.delete_test(db, test.id).archived


def test_unused_test_is_deleted(db, make_question, make_test) -> None:
    question = make_question()
    test = make_test([question])

    assert test_service.delete_test(db, test.id).deleted
    assert test_service.get_test_by_id(db, test.id) is None
    assert catalog_service.get_question_by_id(db, question.id) is not None
    assert not test_service.delete_test(db, test.id).success


def test_restore_and_purge_test(db, make_question, make_test) -> None:
    test = make_test([make_question()])
    assignment = run_service.create_assignment(
        db, run_models.AssignmentCreate(test_id=test.id, user_id="u1"), "lead"
    )
    _grade(db, test, assignment_id=assignment.id)
    test_service.delete_test(db, test.id)

    restored = test_service.restore_test(db, test.id)
    assert not restored.is_archived
    assert not restored.is_active
    assert not test_service.permanent_delete_test(db, test.id).success

    test_service.delete_test(db, test.id)
    assert test_service.permanent_delete_test(db, test.id).success
    assert test_service.get_test_by_id(db, test.id) is None
    assert _count(db, Result) == 0
    assert _count(db, Answer) == 0
    assert run_service.get_assignment_by_id(db, assignment.id) is None


def test_run_without_results_is_deleted_with_assignments(db, make_question, make_test) -> None:
    test = make_test([make_question()])
    run = run_service.create_test_run(
        db, run_models.TestRunCreate(name="Empty", test_ids=[test.id], user_ids=["u1"]), "lead"
    )

    assert run_service.delete_test_run(db, run.id).deleted
    assert run_service.get_test_run_by_id(db, run.id) is None
    assert run_service.get_all_assignments(db) == []


def test_run_with_results_is_archived(db, make_question, make_test) -> None:
    test = make_test([make_question()])
    run = run_service.create_test_run(
        db,
        run_models.TestRunCreate(name="Used", test_ids=[test.id], user_ids=["u1", "u2"]),
        "lead",
    )
    _grade(db, test, user_id="u1", assignment_id=run.assignments[0].id)

    assert run_service.delete_test_run(db, run.id).archived
    archived = run_service.get_test_run_by_id(db, run.id)
    assert archived.status == run_models.RunStatus.ARCHIVED
    assert archived.is_archived
    assert run_service.get_all_test_runs(db) == []
    assert [r.id for r in run_service.get_all_test_runs(db, archived_only=True)] == [run.id]

    restored = run_service.restore_test_run(db, run.id)
    assert restored.status == run_models.RunStatus.COMPLETED
    assert not restored.is_archived


def test_permanent_delete_run_removes_results(db, make_question, make_test) -> None:
    test = make_test([make_question()])
    run = run_service.create_test_run(
        db, run_models.TestRunCreate(name="Purge", test_ids=[test.id], user_ids=["u1"]), "lead"
    )
    assert not run_service.permanent_delete_test_run(db, run.id).success

    _grade(db, test, assignment_id=run.assignments[0].id)
    run_service.delete_test_run(db, run.id)

    assert run_service.permanent_delete_test_run(db, run.id).success
    assert run_service.get_test_run_by_id(db, run.id) is None
    assert _count(db, Result) == 0
    assert test_service.get_test_by_id(db, test.id) is not None


def test_archive_statistics(db, make_question, make_test) -> None:
    question = make_question()
    test = make_test([question])
    run = run_service.create_test_run(
        db, run_models.TestRunCreate(name="Stats", test_ids=[test.id], user_ids=["u1"]), "lead"
    )
    _grade(db, test, assignment_id=run.assignments[0].id)

    catalog_service.delete_question(db, question.id)
    test_service.delete_test(db, test.id)
    run_service.delete_test_run(db, run.id)

    stats = archive_service.get_archive_statistics(db)
    assert stats.archived_questions == 1
    assert stats.archived_tests == 1
    assert stats.archived_runs == 1
