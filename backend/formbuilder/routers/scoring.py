from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas import AdHocPreviewRequest, PreviewRequest
from ..scoring import FormScore, score_form
from .forms import get_form_or_404

# Previews run the same engine as submissions but never persist anything
router = APIRouter(tags=["scoring"])


@router.post("/api/forms/{form_id}/preview", response_model=FormScore)
def preview_saved_form(form_id: str, req: PreviewRequest, db: Session = Depends(get_db)):
	form = get_form_or_404(db, form_id)
	return score_form(form.questions or [], req.answers)


@router.post("/api/scoring/preview", response_model=FormScore)
def preview_draft(req: AdHocPreviewRequest):
	return score_form(req.questions, req.answers)
