"""Aggregate statistics over stored responses.

All per-question matching goes through the scoring engine's normalizer and
match rules, so the dashboards and the scores never disagree about what
counts as correct.
"""

from __future__ import annotations
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from .questions import (
    CategorizeQuestion,
    ClozeQuestion,
    ComprehensionQuestion,
    parse_question,
    question_id,
)
from .scoring import blank_matches, choice_matches, is_number, normalize_answer, round_half_up


logger = logging.getLogger(__name__)

PASS_RATIO = 0.6
RECENT_WINDOW = timedelta(days=7)


def _ratio(response: Any) -> float:
    max_score = response.max_score or 0
    if max_score <= 0:
        return 0.0
    return (response.score or 0) / max_score


def _accuracy(count: int, total: int) -> int:
    return int(round_half_up(count / total * 100)) if total > 0 else 0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def form_summary(responses: Sequence[Any]) -> Optional[Dict[str, Any]]:
    if not responses:
        return None
    total = len(responses)
    ratios = [_ratio(r) for r in responses]
    avg_score = _mean([r.score or 0 for r in responses])
    avg_time = _mean([r.time_spent or 0 for r in responses])
    passed = sum(1 for x in ratios if x >= PASS_RATIO)
    return {
        "totalResponses": total,
        "avgScore": round_half_up(avg_score, 1),
        "avgTime": int(round_half_up(avg_time)),
        "passRate": int(round_half_up(passed / total * 100)),
        "scoreDistribution": {
            "excellent": sum(1 for x in ratios if x >= 0.9),
            "good": sum(1 for x in ratios if 0.7 <= x < 0.9),
            "fair": sum(1 for x in ratios if 0.5 <= x < 0.7),
            "poor": sum(1 for x in ratios if x < 0.5),
        },
    }


def _categorize_analytics(question: CategorizeQuestion, answers: List[Any]) -> Dict[str, Any]:
    placed = [normalize_answer(question, a) for a in answers]
    items: Dict[str, Any] = {}
    for item, category in question.answer_key.correct_map.items():
        correct = sum(1 for a in placed if a.get(item) == category)
        distribution = Counter(a[item] for a in placed if isinstance(a.get(item), str) and a[item])
        items[item] = {
            "correctPlacements": correct,
            "accuracy": _accuracy(correct, len(answers)),
            "categoryDistribution": dict(distribution),
        }
    return {"itemAnalytics": items}


def _cloze_analytics(question: ClozeQuestion, answers: List[Any]) -> Dict[str, Any]:
    filled = [normalize_answer(question, a) for a in answers]
    blanks = []
    for index, expected in enumerate(question.answer_key.answers):
        given = [a[index] for a in filled if index < len(a)]
        correct = sum(1 for g in given if blank_matches(g, expected))
        distribution = Counter(g for g in given if isinstance(g, str) and g)
        blanks.append({
            "correctAnswer": expected,
            "correctCount": correct,
            "accuracy": _accuracy(correct, len(answers)),
            "answerDistribution": dict(distribution),
        })
    return {"blankAnalytics": blanks}


def _choice_label(pick: Any) -> str:
    # ints of any size stay exact; floats like 1.0 collapse to "1"
    if isinstance(pick, int):
        return str(pick)
    return str(int(pick)) if pick.is_integer() else str(pick)


def _comprehension_analytics(question: ComprehensionQuestion, answers: List[Any]) -> Dict[str, Any]:
    chosen = [normalize_answer(question, a) for a in answers]
    subs = []
    for index, sub in enumerate(question.answer_key.sub_questions):
        picks = [a[index] for a in chosen if index < len(a) and is_number(a[index])]
        correct = sum(1 for p in picks if choice_matches(p, sub.correct_choice_index))
        distribution = Counter(_choice_label(p) for p in picks)
        subs.append({
            "prompt": sub.prompt,
            "correctChoice": sub.correct_choice_index,
            "correctCount": correct,
            "accuracy": _accuracy(correct, len(answers)),
            "choiceDistribution": dict(distribution),
        })
    return {"questionAnalytics": subs}


def question_analytics(question: Any, responses: Sequence[Any]) -> Dict[str, Any]:
    """Per-item / per-blank / per-sub-question breakdown for one question."""
    question = parse_question(question)
    answers = [r.answers.get(question.id) for r in responses if r.answers]
    answers = [a for a in answers if a is not None]
    if isinstance(question, CategorizeQuestion):
        return _categorize_analytics(question, answers)
    if isinstance(question, ClozeQuestion):
        return _cloze_analytics(question, answers)
    return _comprehension_analytics(question, answers)


def timing_analytics(qid: str, responses: Iterable[Any]) -> Dict[str, Any]:
    times = []
    for r in responses:
        value = (r.question_times or {}).get(qid)
        if is_number(value) and value > 0:
            times.append(value)
    if not times:
        return {"avgTime": 0, "minTime": 0, "maxTime": 0, "responseCount": 0}
    return {
        "avgTime": int(round_half_up(_mean(times))),
        "minTime": min(times),
        "maxTime": max(times),
        "responseCount": len(times),
    }


def form_analytics(questions: Sequence[Any], responses: Sequence[Any]) -> Dict[str, Any]:
    per_question = []
    for raw in questions:
        qid = question_id(raw)
        entry: Dict[str, Any] = {
            "questionId": qid,
            "responseCount": sum(1 for r in responses if (r.answers or {}).get(qid) is not None),
            "timing": timing_analytics(qid, responses) if qid else None,
        }
        try:
            entry.update(question_analytics(raw, responses))
        except ValidationError:
            logger.warning("Skipping analytics for malformed question %s", qid)
        per_question.append(entry)
    return {"summary": form_summary(responses), "questions": per_question}


def global_analytics(forms: Sequence[Any], responses: Sequence[Any], *, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """Cross-form overview. ``responses`` are expected newest first."""
    if not responses:
        return None
    now = now or datetime.utcnow()
    total = len(responses)
    by_form: Dict[str, List[Any]] = {}
    for r in responses:
        by_form.setdefault(r.form_id, []).append(r)

    rows = []
    for form in forms:
        form_responses = by_form.get(form.id, [])
        avg = _mean([r.score or 0 for r in form_responses])
        latest_max = (form_responses[0].max_score or 0) if form_responses else 0
        rows.append({
            "id": form.id,
            "title": form.title,
            "responseCount": len(form_responses),
            "avgScore": round_half_up(avg, 1),
            "maxScore": latest_max,
            "successRate": int(round_half_up(avg / latest_max * 100)) if latest_max > 0 else 0,
        })

    return {
        "totalResponses": total,
        "totalForms": len(forms),
        "avgScore": round_half_up(_mean([r.score or 0 for r in responses]), 1),
        "maxPossibleScore": round_half_up(_mean([r.max_score or 0 for r in responses]), 1),
        "avgTime": int(round_half_up(_mean([r.time_spent or 0 for r in responses]))),
        "formsWithResponses": sum(1 for f in forms if by_form.get(f.id)),
        "responsesByForm": rows,
        "recentResponses": sum(1 for r in responses if r.submitted_at > now - RECENT_WINDOW),
    }
