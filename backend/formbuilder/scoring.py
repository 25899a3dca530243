"""Scoring engine shared by submissions and live previews.

The pipeline is ``raw answer -> normalize_answer -> score_question`` per
question, summed by ``score_form``. Everything here is pure: no I/O, no
module state, safe to call concurrently.
"""

from __future__ import annotations
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import Field

from .questions import (
    CamelModel,
    CategorizeQuestion,
    ClozeQuestion,
    ComprehensionQuestion,
    Question,
    parse_question,
    question_id,
    question_points,
)


logger = logging.getLogger(__name__)


class _NotAnswered:
    _instance: Optional["_NotAnswered"] = None

    def __new__(cls) -> "_NotAnswered":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_ANSWERED"

    def __bool__(self) -> bool:
        return False


NOT_ANSWERED = _NotAnswered()

NormalizedAnswer = Union[Dict[str, Any], List[Any]]


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like JavaScript ``Math.round(value * 10**digits) / 10**digits``.

    Browser previews use that expression, so the server must produce the same
    float for the same input. Python's ``round`` rounds half to even and would
    disagree on values such as 2.5.
    """
    factor = 10 ** digits
    scaled = value * factor
    floor = math.floor(scaled)
    rounded = floor + 1 if scaled - floor >= 0.5 else floor
    return rounded / factor if digits else float(rounded)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _comprehension_slot(mapping: Mapping[Any, Any], index: int) -> Any:
    # JSON object keys are strings; in-process callers may use ints
    if str(index) in mapping:
        return mapping[str(index)]
    return mapping.get(index)


def normalize_answer(question: Question, raw_answer: Any) -> Union[NormalizedAnswer, _NotAnswered]:
    """Convert a wire answer to the canonical shape for the question's kind.

    Never raises on a malformed shape; anything unusable degrades to an empty
    answer so it simply scores zero.
    """
    if raw_answer is None:
        return NOT_ANSWERED
    if isinstance(question, CategorizeQuestion):
        return dict(raw_answer) if isinstance(raw_answer, Mapping) else {}
    if isinstance(question, ClozeQuestion):
        return list(raw_answer) if isinstance(raw_answer, list) else []
    if isinstance(question, ComprehensionQuestion):
        if isinstance(raw_answer, list):
            return list(raw_answer)
        if isinstance(raw_answer, Mapping):
            size = len(question.answer_key.sub_questions)
            return [_comprehension_slot(raw_answer, i) for i in range(size)]
        return []
    raise TypeError(f"unsupported question type: {type(question).__name__}")


def _score_categorize(question: CategorizeQuestion, answer: Dict[str, Any]) -> float:
    correct_map = question.answer_key.correct_map
    if not correct_map:
        return 0.0
    correct = sum(
        1 for item, category in correct_map.items()
        if isinstance(answer.get(item), str) and answer[item] == category
    )
    return correct / len(correct_map)


def blank_matches(given: Any, expected: str) -> bool:
    if not isinstance(given, str) or not given:
        return False
    return given.strip().lower() == expected.strip().lower()


def _score_cloze(question: ClozeQuestion, answer: List[Any]) -> float:
    expected = question.answer_key.answers
    if not expected:
        return 0.0
    correct = sum(
        1 for i, want in enumerate(expected)
        if i < len(answer) and blank_matches(answer[i], want)
    )
    return correct / len(expected)


def choice_matches(given: Any, correct_index: int) -> bool:
    return is_number(given) and given == correct_index


def _score_comprehension(question: ComprehensionQuestion, answer: List[Any]) -> float:
    subs = question.answer_key.sub_questions
    if not subs:
        return 0.0
    correct = sum(
        1 for i, sub in enumerate(subs)
        if i < len(answer) and choice_matches(answer[i], sub.correct_choice_index)
    )
    return correct / len(subs)


def score_question(question: Question, raw_answer: Any) -> float:
    """Fraction in [0, 1] of the question answered correctly."""
    answer = normalize_answer(question, raw_answer)
    if answer is NOT_ANSWERED:
        return 0.0
    if isinstance(question, CategorizeQuestion):
        return _score_categorize(question, answer)
    if isinstance(question, ClozeQuestion):
        return _score_cloze(question, answer)
    if isinstance(question, ComprehensionQuestion):
        return _score_comprehension(question, answer)
    raise TypeError(f"unsupported question type: {type(question).__name__}")


class QuestionScore(CamelModel):
    id: Optional[str] = None
    kind: Optional[str] = None
    points: float
    answered: bool = False
    fraction: float = 0.0
    earned: float = 0.0
    error: bool = False


class FormScore(CamelModel):
    score: float
    max_score: float
    percentage: int
    questions: List[QuestionScore] = Field(default_factory=list)


def score_form(
    questions: Iterable[Any],
    answers: Optional[Mapping[str, Any]],
    *,
    log: Optional[logging.Logger] = None,
) -> FormScore:
    """Score a full submission.

    Args:
        questions: The form's questions, either parsed models or stored
            documents. Stored documents are validated one at a time so a single
            broken question cannot fail the whole submission.
        answers: Mapping of question id to raw wire answer.
        log: Where per-question failures are reported; defaults to this
            module's logger.

    Returns:
        A ``FormScore`` with ``score`` rounded to 2 places, ``max_score`` the
        sum of all question points, and ``percentage`` rounded to an integer.
    """
    log = log or logger
    answers = answers if isinstance(answers, Mapping) else {}
    total = 0.0
    max_score = 0.0
    breakdown: List[QuestionScore] = []

    for raw in questions:
        qid = question_id(raw)
        points = question_points(raw)
        max_score += points
        entry = QuestionScore(id=qid, kind=_kind_label(raw), points=points)
        breakdown.append(entry)

        raw_answer = answers.get(qid) if qid is not None else None
        if raw_answer is None:
            continue
        entry.answered = True
        try:
            question = parse_question(raw)
            fraction = score_question(question, raw_answer)
        except Exception:
            log.exception("Failed to score question %s; counting it as 0", qid)
            entry.error = True
            continue
        entry.fraction = fraction
        entry.earned = fraction * points
        total += entry.earned

    score = min(round_half_up(total, 2), max_score)
    percentage = int(round_half_up(total / max_score * 100)) if max_score > 0 else 0
    return FormScore(score=score, max_score=max_score, percentage=percentage, questions=breakdown)


def _kind_label(raw: Any) -> Optional[str]:
    if isinstance(raw, Mapping):
        kind = raw.get("kind", raw.get("type"))
    else:
        kind = getattr(raw, "kind", None)
    return kind if isinstance(kind, str) else None
