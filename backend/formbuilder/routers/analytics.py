from __future__ import annotations
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..analytics import form_analytics, global_analytics
from ..db import get_db
from ..models import Form, Response as ResponseRow
from ..questions import question_points
from .forms import get_form_or_404


router = APIRouter(tags=["analytics"])


@router.get("/api/forms/{form_id}/analytics")
def get_form_analytics(form_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    form = get_form_or_404(db, form_id)
    responses = (
        db.query(ResponseRow)
        .filter(ResponseRow.form_id == form_id)
        .order_by(ResponseRow.submitted_at.desc())
        .all()
    )
    questions = form.questions or []
    data = form_analytics(questions, responses)
    data["formId"] = form.id
    data["title"] = form.title
    data["maxScore"] = sum(question_points(q) for q in questions)
    return data


@router.get("/api/analytics/global")
def get_global_analytics(db: Session = Depends(get_db)) -> Optional[Dict[str, Any]]:
    forms = db.query(Form).order_by(Form.created_at.desc()).all()
    responses = db.query(ResponseRow).order_by(ResponseRow.submitted_at.desc()).all()
    return global_analytics(forms, responses)
