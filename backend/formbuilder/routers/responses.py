from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..db import get_db
from ..export import export_filename, responses_to_csv
from ..models import Form, Response as ResponseRow
from ..notifier import Sender, SmtpSender, deliver_results, results_summary
from ..schemas import ResponseOut, ResponseWithForm, SubmissionIn, SubmissionOut
from ..scoring import score_form
from ..settings import settings
from .forms import get_form_or_404


router = APIRouter(prefix="/api/forms", tags=["responses"])

logger = logging.getLogger(__name__)


def get_email_sender() -> Optional[Sender]:
    if not settings.email_configured():
        return None
    return SmtpSender(settings.email_host, settings.email_port, settings.email_user, settings.email_pass)


def _csv_download(body: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _all_responses(db: Session) -> List[ResponseWithForm]:
    rows = (
        db.query(ResponseRow, Form.title)
        .join(Form, Form.id == ResponseRow.form_id)
        .order_by(ResponseRow.submitted_at.desc())
        .all()
    )
    return [
        ResponseWithForm.model_validate(row).model_copy(update={"form_title": title})
        for row, title in rows
    ]


@router.get("/responses/all", response_model=List[ResponseWithForm])
def list_all_responses(db: Session = Depends(get_db)):
    return _all_responses(db)


@router.get("/responses/all/export")
def export_all_responses(db: Session = Depends(get_db)):
    return _csv_download(responses_to_csv(_all_responses(db)), export_filename("all", "responses", "csv"))


@router.post("/{form_id}/responses", status_code=201, response_model=SubmissionOut)
def submit_response(
    form_id: str,
    req: SubmissionIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_sender: Optional[Sender] = Depends(get_email_sender),
):
    form = get_form_or_404(db, form_id)
    name = (req.submitter_name or "").strip()
    email = (req.submitter_email or "").strip()
    if not name or not email:
        raise HTTPException(status_code=400, detail="Submitter name and email are required")
    if req.answers is None:
        raise HTTPException(status_code=400, detail="Answers are required")

    result = score_form(form.questions or [], req.answers, log=logger)
    row = ResponseRow(
        form_id=form.id,
        answers=req.answers,
        score=result.score,
        max_score=result.max_score,
        submitter_name=name,
        submitter_email=email,
        time_spent=req.time_spent or 0,
        question_times=req.question_times or {},
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    failed = [q.id for q in result.questions if q.error]
    if failed:
        logger.warning("Response %s for form %s scored with failed questions: %s", row.id, form.id, failed)
    logger.info("Stored response %s for form %s: %s/%s", row.id, form.id, row.score, row.max_score)
    if email_sender is None:
        logger.info("Email not configured; skipping results email for response %s", row.id)
    else:
        background_tasks.add_task(deliver_results, email_sender, results_summary(form, row, result))
    return SubmissionOut(
        id=row.id,
        score=row.score,
        max_score=row.max_score,
        percentage=result.percentage,
        submitted_at=row.submitted_at,
    )


@router.get("/{form_id}/responses", response_model=List[ResponseOut])
def list_responses(form_id: str, db: Session = Depends(get_db)):
    get_form_or_404(db, form_id)
    return (
        db.query(ResponseRow)
        .filter(ResponseRow.form_id == form_id)
        .order_by(ResponseRow.submitted_at.desc())
        .all()
    )


@router.get("/{form_id}/responses/export")
def export_responses(form_id: str, db: Session = Depends(get_db)):
    form = get_form_or_404(db, form_id)
    rows = (
        db.query(ResponseRow)
        .filter(ResponseRow.form_id == form_id)
        .order_by(ResponseRow.submitted_at.desc())
        .all()
    )
    return _csv_download(responses_to_csv(rows), export_filename(form.title, "responses", "csv"))
