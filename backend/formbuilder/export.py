from __future__ import annotations
import csv
import io
import json
import re
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from .scoring import round_half_up


BASE_HEADERS = [
    "Name",
    "Email",
    "Score",
    "Max Score",
    "Percentage",
    "Time Spent (seconds)",
    "Submitted At",
]


def _answer_cell(answer: Any) -> str:
    if answer is None:
        return ""
    if isinstance(answer, (dict, list)):
        return json.dumps(answer, separators=(",", ":"), ensure_ascii=False)
    if isinstance(answer, bool):
        return "true" if answer else "false"
    return str(answer)


def _number_cell(value: Optional[float]) -> str:
    value = value or 0
    return str(int(value)) if float(value).is_integer() else str(value)


def _percentage(score: Optional[float], max_score: Optional[float]) -> int:
    if not max_score or max_score <= 0:
        return 0
    return int(round_half_up((score or 0) / max_score * 100))


def responses_to_csv(responses: Sequence[Any]) -> str:
    """Render responses as CSV with one column per answered question id.

    Question columns follow the order in which ids are first seen across the
    responses. Every field is quoted.
    """
    question_ids: List[str] = []
    for r in responses:
        for qid in (r.answers or {}):
            if qid not in question_ids:
                question_ids.append(qid)

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(BASE_HEADERS + [f"Question {qid}" for qid in question_ids])
    for r in responses:
        answers = r.answers or {}
        writer.writerow([
            r.submitter_name or "",
            r.submitter_email or "",
            _number_cell(r.score),
            _number_cell(r.max_score),
            _percentage(r.score, r.max_score),
            r.time_spent or 0,
            r.submitted_at.isoformat(sep=" ", timespec="seconds") if r.submitted_at else "",
        ] + [_answer_cell(answers.get(qid)) for qid in question_ids])
    return buffer.getvalue()


def _slug(title: Optional[str], fallback: str) -> str:
    cleaned = re.sub(r"[^\w\- ]+", "", title or "").strip()
    return cleaned or fallback


def export_filename(title: Optional[str], suffix: str, extension: str, *, today: Optional[date] = None) -> str:
    today = today or date.today()
    stem = _slug(title, "form")
    middle = f"-{suffix}" if suffix else ""
    return f"{stem}{middle}-{today.isoformat()}.{extension}"


def form_to_json(form: Dict[str, Any]) -> str:
    return json.dumps(form, indent=2, default=str, ensure_ascii=False)
