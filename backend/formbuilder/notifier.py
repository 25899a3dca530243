"""Results email sent to a respondent after a submission is stored.

Nothing is sent unless SMTP credentials are configured. A failed send is
logged and never affects the submission itself.
"""

from __future__ import annotations
import html
import logging
import smtplib
from dataclasses import dataclass, field
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Callable, List, Mapping, Optional

from .scoring import FormScore
from .settings import settings


logger = logging.getLogger(__name__)

Sender = Callable[[EmailMessage], None]


def format_duration(seconds: Any) -> str:
    seconds = int(seconds or 0)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {seconds % 3600 // 60}m"


def performance_band(percentage: int) -> str:
    if percentage >= 80:
        return "Excellent!"
    if percentage >= 60:
        return "Good job!"
    return "Keep practicing!"


@dataclass
class QuestionLine:
    title: str
    kind: Optional[str]
    earned: float
    points: float
    seconds: Optional[float] = None


@dataclass
class ResultsSummary:
    recipient: str
    submitter_name: str
    form_title: str
    score: float
    max_score: float
    percentage: int
    time_spent: int
    submitted_at: datetime
    questions: List[QuestionLine] = field(default_factory=list)


def _title_of(raw: Any, position: int) -> str:
    title = raw.get("title") if isinstance(raw, Mapping) else getattr(raw, "title", None)
    return title if isinstance(title, str) and title.strip() else f"Question {position}"


def results_summary(form: Any, response: Any, result: FormScore) -> ResultsSummary:
    """Snapshot everything the email needs so it can be sent after the request ends."""
    times = response.question_times or {}
    lines = [
        QuestionLine(
            title=_title_of(raw, i),
            kind=scored.kind,
            earned=scored.earned,
            points=scored.points,
            seconds=times.get(scored.id) if scored.id else None,
        )
        for i, (raw, scored) in enumerate(zip(form.questions or [], result.questions), start=1)
    ]
    return ResultsSummary(
        recipient=response.submitter_email,
        submitter_name=response.submitter_name or "",
        form_title=form.title,
        score=response.score,
        max_score=response.max_score,
        percentage=result.percentage,
        time_spent=response.time_spent or 0,
        submitted_at=response.submitted_at,
        questions=lines,
    )


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _text_body(summary: ResultsSummary) -> str:
    lines = [
        f'Your results for "{summary.form_title}": '
        f"{_number(summary.score)}/{_number(summary.max_score)} points ({summary.percentage}%)",
        performance_band(summary.percentage),
        "",
        f"Submitted by: {summary.submitter_name}",
        f"Time spent: {format_duration(summary.time_spent)}",
        f"Submitted at: {summary.submitted_at:%Y-%m-%d}",
        "",
    ]
    for i, q in enumerate(summary.questions, start=1):
        line = f"Q{i}: {q.title} - {_number(q.earned)}/{_number(q.points)}"
        if q.seconds:
            line += f" ({format_duration(q.seconds)})"
        lines.append(line)
    return "\n".join(lines) + "\n"


def _html_body(summary: ResultsSummary) -> str:
    esc = html.escape
    rows = "".join(
        f"<tr><td>Q{i}: {esc(q.title)}</td><td>{esc(q.kind or '')}</td>"
        f"<td>{_number(q.earned)}/{_number(q.points)}</td>"
        f"<td>{format_duration(q.seconds) if q.seconds else 'Not tracked'}</td></tr>"
        for i, q in enumerate(summary.questions, start=1)
    )
    return (
        "<!DOCTYPE html><html><body>"
        f"<h1>Your Form Results</h1><p>{esc(summary.form_title)}</p>"
        f"<h2>{summary.percentage}%</h2>"
        f"<p>{_number(summary.score)} out of {_number(summary.max_score)} points</p>"
        f"<p>{performance_band(summary.percentage)}</p>"
        f"<p>Submitted by {esc(summary.submitter_name)} &middot; "
        f"Time spent {format_duration(summary.time_spent)} &middot; "
        f"{summary.submitted_at:%Y-%m-%d}</p>"
        f"<table>{rows}</table>"
        "<p>Thank you for taking our form! Keep learning and improving.</p>"
        "</body></html>"
    )


def build_results_email(summary: ResultsSummary) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = f'Your Results for "{summary.form_title}" - {summary.percentage}% Score'
    message["From"] = formataddr((settings.email_from_name, settings.email_from or settings.email_user or ""))
    message["To"] = summary.recipient
    message.set_content(_text_body(summary))
    message.add_alternative(_html_body(summary), subtype="html")
    return message


class SmtpSender:
    """Sends over implicit-TLS SMTP, one connection per message."""

    def __init__(self, host: str, port: int, user: str, password: str, *, timeout: float = 30) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def __call__(self, message: EmailMessage) -> None:
        with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.login(self.user, self.password)
            smtp.send_message(message)


def deliver_results(sender: Sender, summary: ResultsSummary) -> None:
    message = build_results_email(summary)
    try:
        sender(message)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send results email to %s", summary.recipient)
        return
    logger.info("Results email sent to %s", summary.recipient)
