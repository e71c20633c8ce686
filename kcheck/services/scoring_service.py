"""
Grading of submitted attempts.

Questions are graded as one of two variants: multiple choice (option sets,
optionally with partial credit) or open questions (typo-tolerant exact answer
or fuzzy trigger words). Per-question ratios are weighted by the question's
effective weighting and aggregated into a rounded percentage.
"""
import math
from dataclasses import dataclass, field

from kcheck.config import EXACT_MATCH_MAX_DISTANCE, TRIGGER_MATCH_MAX_DISTANCE
from kcheck.models.catalog import QuestionType
from kcheck.models.results import (
    AnswerSubmission,
    OpenAnswerCheck,
    OptionDetails,
    OptionSnapshot,
)
from kcheck.models.tests import TestQuestionView

# Recorded instead of a trigger word when the exact answer matched
EXACT_MATCH_MARKER = "exact_match"


@dataclass(frozen=True)
class ChoiceOption:
    id: str
    text: str
    is_correct: bool


@dataclass(frozen=True)
class MultipleChoiceItem:
    question_id: str
    weighting: int
    options: tuple[ChoiceOption, ...]
    allow_partial_answer: bool = False


@dataclass(frozen=True)
class OpenQuestionItem:
    question_id: str
    weighting: int
    exact_answer: str = ""
    trigger_words: tuple[str, ...] = ()


GradableItem = MultipleChoiceItem | OpenQuestionItem


@dataclass
class GradedAnswer:
    """Graded answer to one question, ready to be stored."""

    question_id: str
    answer_text: str = ""
    selected_options: list[str] = field(default_factory=list)
    is_correct: bool = False
    score: float = 0.0
    max_score: float = 0.0
    option_details: OptionDetails | None = None
    matched_triggers: list[str] = field(default_factory=list)
    evaluator_notes: str = ""


@dataclass
class GradedAttempt:
    answers: list[GradedAnswer]
    total_score: float
    max_score: float
    percentage: int
    passed: bool


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance (insert, delete, substitute) between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def fuzzy_contains(
    text: str, search: str, max_distance: int = TRIGGER_MATCH_MAX_DISTANCE
) -> bool:
    """True if any whitespace-separated token of text is within max_distance of search."""
    return any(
        levenshtein_distance(word, search) <= max_distance for word in text.split()
    )


def normalize_text(value: str | None) -> str:
    return (value or "").lower().strip()


def check_open_answer(
    answer: str | None,
    exact_answer: str | None,
    trigger_words: list[str] | tuple[str, ...] | None,
) -> OpenAnswerCheck:
    """
    Match an open answer.

    An answer within EXACT_MATCH_MAX_DISTANCE edits of the exact answer passes
    outright. Otherwise each trigger word matches if it occurs literally in the
    answer or any single token is within TRIGGER_MATCH_MAX_DISTANCE edits of it.
    One matched trigger is enough.
    """
    normalized_answer = normalize_text(answer)
    if not normalized_answer:
        return OpenAnswerCheck(is_correct=False)

    normalized_exact = normalize_text(exact_answer)
    if (
        normalized_exact
        and levenshtein_distance(normalized_answer, normalized_exact)
        <= EXACT_MATCH_MAX_DISTANCE
    ):
        return OpenAnswerCheck(is_correct=True, matched_triggers=[EXACT_MATCH_MARKER])

    matched = []
    for trigger in trigger_words or ():
        normalized_trigger = normalize_text(trigger)
        if not normalized_trigger:
            continue
        if normalized_trigger in normalized_answer or fuzzy_contains(
            normalized_answer, normalized_trigger
        ):
            matched.append(trigger)

    return OpenAnswerCheck(is_correct=bool(matched), matched_triggers=matched)


def grade_multiple_choice(
    item: MultipleChoiceItem, selected_ids: list[str]
) -> GradedAnswer:
    """
    Grade an option selection.

    Without partial credit the selection must equal the correct set exactly.
    With partial credit the ratio is (correct picks - wrong picks) / correct
    options, clamped to [0, 1].
    """
    chosen = set(selected_ids)
    snapshots = [
        OptionSnapshot(
            id=o.id, text=o.text, is_correct=o.is_correct, was_selected=o.id in chosen
        )
        for o in item.options
    ]
    total_correct = sum(1 for o in item.options if o.is_correct)
    correct_selected = sum(1 for s in snapshots if s.was_selected and s.is_correct)
    incorrect_selected = sum(1 for s in snapshots if s.was_selected and not s.is_correct)
    exact_match = correct_selected == total_correct and incorrect_selected == 0

    if item.allow_partial_answer:
        ratio = 0.0
        if total_correct > 0:
            ratio = (correct_selected - incorrect_selected) / total_correct
            ratio = min(1.0, max(0.0, ratio))
        is_correct = exact_match and correct_selected > 0
    else:
        ratio = 1.0 if exact_match else 0.0
        is_correct = exact_match

    return GradedAnswer(
        question_id=item.question_id,
        selected_options=[s.id for s in snapshots if s.was_selected],
        is_correct=is_correct,
        score=ratio * item.weighting,
        max_score=float(item.weighting),
        option_details=OptionDetails(
            all_options=snapshots,
            correct_selected=correct_selected,
            incorrect_selected=incorrect_selected,
            total_correct_options=total_correct,
            allow_partial_answer=item.allow_partial_answer,
        ),
    )


def grade_open_question(item: OpenQuestionItem, answer_text: str) -> GradedAnswer:
    check = check_open_answer(answer_text, item.exact_answer, item.trigger_words)
    matched = ", ".join(check.matched_triggers) or "none"
    return GradedAnswer(
        question_id=item.question_id,
        answer_text=(answer_text or "").strip(),
        is_correct=check.is_correct,
        score=float(item.weighting) if check.is_correct else 0.0,
        max_score=float(item.weighting),
        matched_triggers=check.matched_triggers,
        evaluator_notes=f"Matched: {matched}",
    )


def grade_item(item: GradableItem, submission: AnswerSubmission) -> GradedAnswer:
    if isinstance(item, MultipleChoiceItem):
        return grade_multiple_choice(item, submission.selected_options)
    if isinstance(item, OpenQuestionItem):
        return grade_open_question(item, submission.answer_text)
    raise TypeError(f"Unsupported question item: {type(item).__name__}")


def item_from_view(question: TestQuestionView) -> GradableItem:
    """Build the gradeable variant of a test question."""
    if question.question_type == QuestionType.OPEN_QUESTION:
        return OpenQuestionItem(
            question_id=question.question_id,
            weighting=question.effective_weighting,
            exact_answer=question.exact_answer,
            trigger_words=tuple(question.trigger_words),
        )
    return MultipleChoiceItem(
        question_id=question.question_id,
        weighting=question.effective_weighting,
        options=tuple(
            ChoiceOption(id=o.id, text=o.text, is_correct=o.is_correct)
            for o in question.options
        ),
        allow_partial_answer=question.allow_partial_answer,
    )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def grade_attempt(
    items: list[GradableItem],
    submissions: list[AnswerSubmission],
    passing_score: int,
) -> GradedAttempt:
    """
    Grade every item of a test, in order.
    Items without a submission are graded as unanswered.
    """
    by_question = {s.question_id: s for s in submissions}
    answers = [
        grade_item(item, by_question.get(item.question_id) or AnswerSubmission(question_id=item.question_id))
        for item in items
    ]

    total_score = sum(a.score for a in answers)
    max_score = sum(a.max_score for a in answers)
    percentage = round_half_up(total_score / max_score * 100) if max_score > 0 else 0

    return GradedAttempt(
        answers=answers,
        total_score=total_score,
        max_score=max_score,
        percentage=percentage,
        passed=percentage >= passing_score,
    )
