import pytest

from kcheck.models.results import AnswerSubmission
from kcheck.services import scoring_service
from kcheck.services.scoring_service import (
    EXACT_MATCH_MARKER,
    ChoiceOption,
    MultipleChoiceItem,
    OpenQuestionItem,
)


def _choice_item(weighting: int = 1, partial: bool = False) -> MultipleChoiceItem:
    return MultipleChoiceItem(
        question_id="q-choice",
        weighting=weighting,
        options=(
            ChoiceOption(id="a", text="A", is_correct=True),
            ChoiceOption(id="b", text="B", is_correct=True),
            ChoiceOption(id="c", text="C", is_correct=True),
            ChoiceOption(id="d", text="D", is_correct=False),
        ),
        allow_partial_answer=partial,
    )


def test_levenshtein_distance() -> None:
    assert scoring_service.levenshtein_distance("", "") == 0
    assert scoring_service.levenshtein_distance("abc", "") == 3
    assert scoring_service.levenshtein_distance("kitten", "sitting") == 3
    assert scoring_service.levenshtein_distance("password", "passward") == 1
    assert scoring_service.levenshtein_distance("pass", "password") == 4


def test_exact_answer_tolerates_transposition() -> None:
    check = scoring_service.check_open_answer("reset the router", "reset teh router", [])
    assert check.is_correct
    assert check.matched_triggers == [EXACT_MATCH_MARKER]


def test_exact_answer_is_case_and_whitespace_insensitive() -> None:
    check = scoring_service.check_open_answer("  RESET THE ROUTER ", "reset the router", [])
    assert check.is_correct


def test_trigger_word_fuzzy_token_match() -> None:
    check = scoring_service.check_open_answer(
        "I changed the passward yesterday", "", ["password"]
    )
    assert check.is_correct
    assert check.matched_triggers == ["password"]


def test_trigger_word_rejects_distant_token() -> None:
    check = scoring_service.check_open_answer("my pass is old", "", ["password"])
    assert not check.is_correct
    assert check.matched_triggers == []


def test_trigger_word_literal_substring() -> None:
    check = scoring_service.check_open_answer(
        "open the firewall-settings page", "", ["firewall", "dns"]
    )
    assert check.is_correct
    assert check.matched_triggers == ["firewall"]


def test_empty_answer_never_matches() -> None:
    assert not scoring_service.check_open_answer("   ", "", ["a"]).is_correct
    assert not scoring_service.check_open_answer(None, "reset", ["reset"]).is_correct


def test_blank_trigger_words_are_ignored() -> None:
    check = scoring_service.check_open_answer("anything at all", "", ["", "   "])
    assert not check.is_correct


def test_multiple_choice_all_or_nothing() -> None:
    item = _choice_item(weighting=2)

    exact = scoring_service.grade_multiple_choice(item, ["a", "b", "c"])
    assert exact.is_correct
    assert exact.score == 2
    assert exact.max_score == 2

    missing_one = scoring_service.grade_multiple_choice(item, ["a", "b"])
    assert not missing_one.is_correct
    assert missing_one.score == 0


def test_multiple_choice_partial_credit() -> None:
    item = _choice_item(weighting=3, partial=True)

    graded = scoring_service.grade_multiple_choice(item, ["a", "b"])
    assert not graded.is_correct
    assert graded.score == pytest.approx(2.0)

    with_wrong = scoring_service.grade_multiple_choice(item, ["a", "b", "d"])
    assert with_wrong.score == pytest.approx(1.0)
    assert with_wrong.option_details.incorrect_selected == 1


def test_partial_credit_clamps_to_zero() -> None:
    item = MultipleChoiceItem(
        question_id="q",
        weighting=4,
        options=(
            ChoiceOption(id="a", text="A", is_correct=True),
            ChoiceOption(id="b", text="B", is_correct=False),
            ChoiceOption(id="c", text="C", is_correct=False),
        ),
        allow_partial_answer=True,
    )
    graded = scoring_service.grade_multiple_choice(item, ["a", "b", "c"])
    assert graded.score == 0


def test_partial_credit_never_exceeds_weighting() -> None:
    item = _choice_item(weighting=5, partial=True)
    graded = scoring_service.grade_multiple_choice(item, ["a", "b", "c"])
    assert graded.is_correct
    assert graded.score == pytest.approx(graded.max_score)


def test_partial_credit_without_correct_options_scores_zero() -> None:
    item = MultipleChoiceItem(
        question_id="q",
        weighting=1,
        options=(ChoiceOption(id="a", text="A", is_correct=False),),
        allow_partial_answer=True,
    )
    graded = scoring_service.grade_multiple_choice(item, [])
    assert graded.score == 0
    assert not graded.is_correct


def test_option_snapshot_records_every_option() -> None:
    graded = scoring_service.grade_multiple_choice(_choice_item(), ["a", "d", "unknown"])
    details = graded.option_details
    assert [o.id for o in details.all_options] == ["a", "b", "c", "d"]
    assert [o.was_selected for o in details.all_options] == [True, False, False, True]
    assert details.correct_selected == 1
    assert details.total_correct_options == 3
    assert graded.selected_options == ["a", "d"]


def test_open_question_notes_matched_triggers() -> None:
    item = OpenQuestionItem(question_id="q", weighting=2, trigger_words=("reboot", "cable"))
    graded = scoring_service.grade_open_question(item, "Reboot it and check the cable")
    assert graded.is_correct
    assert graded.score == 2
    assert graded.evaluator_notes == "Matched: reboot, cable"

    missed = scoring_service.grade_open_question(item, "no idea")
    assert missed.evaluator_notes == "Matched: none"


def test_grade_item_rejects_unknown_variant() -> None:
    with pytest.raises(TypeError):
        scoring_service.grade_item(object(), AnswerSubmission(question_id="q"))


def test_weighted_aggregation_half_and_half() -> None:
    items = [
        MultipleChoiceItem(
            question_id="q1",
            weighting=50,
            options=(ChoiceOption(id="a", text="A", is_correct=True),),
        ),
        OpenQuestionItem(question_id="q2", weighting=50, exact_answer="restart"),
    ]
    submissions = [
        AnswerSubmission(question_id="q1", selected_options=["a"]),
        AnswerSubmission(question_id="q2", answer_text="something else entirely"),
    ]
    attempt = scoring_service.grade_attempt(items, submissions, passing_score=80)
    assert attempt.total_score == 50
    assert attempt.max_score == 100
    assert attempt.percentage == 50
    assert not attempt.passed


def test_unanswered_questions_score_zero() -> None:
    items = [
        OpenQuestionItem(question_id="q1", weighting=1, exact_answer="yes"),
        OpenQuestionItem(question_id="q2", weighting=1, exact_answer="no"),
    ]
    attempt = scoring_service.grade_attempt(
        items, [AnswerSubmission(question_id="q1", answer_text="yes")], passing_score=50
    )
    assert [a.question_id for a in attempt.answers] == ["q1", "q2"]
    assert attempt.percentage == 50
    assert attempt.passed


def test_percentage_rounds_half_up() -> None:
    items = [
        OpenQuestionItem(question_id="q1", weighting=1, exact_answer="yes"),
        OpenQuestionItem(question_id="q2", weighting=7, exact_answer="no"),
    ]
    attempt = scoring_service.grade_attempt(
        items, [AnswerSubmission(question_id="q1", answer_text="yes")], passing_score=80
    )
    # 1/8 = 12.5%
    assert attempt.percentage == 13


def test_empty_test_scores_zero() -> None:
    attempt = scoring_service.grade_attempt([], [], passing_score=0)
    assert attempt.percentage == 0
    assert attempt.max_score == 0
    assert attempt.passed
