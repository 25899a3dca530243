from __future__ import annotations
import logging
import random
import time
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy import delete
from sqlalchemy.orm import Session

from ..db import get_db
from ..export import export_filename, form_to_json
from ..models import Form, Response as ResponseRow
from ..schemas import FormIn, FormOut, UploadOut
from ..settings import settings

router = APIRouter(prefix="/api/forms", tags=["forms"])

logger = logging.getLogger(__name__)


def get_form_or_404(db: Session, form_id: str) -> Form:
	form = db.get(Form, form_id)
	if not form:
		raise HTTPException(status_code=404, detail="Form not found")
	return form


def _apply(row: Form, req: FormIn) -> None:
	row.title = req.title.strip()
	row.description = req.description
	row.header_image = req.header_image
	row.questions = req.question_documents()
	row.is_published = req.is_published
	row.created_by = req.created_by
	row.settings = req.settings.model_dump(mode="json", by_alias=True)


@router.post("", status_code=201, response_model=FormOut)
def create_form(req: FormIn, db: Session = Depends(get_db)):
	row = Form()
	_apply(row, req)
	db.add(row)
	db.commit()
	db.refresh(row)
	logger.info("Created form %s with %d questions", row.id, len(row.questions))
	return row


@router.get("", response_model=List[FormOut])
def list_forms(db: Session = Depends(get_db)):
	return db.query(Form).order_by(Form.created_at.desc()).all()


@router.post("/upload", response_model=UploadOut)
async def upload_image(image: UploadFile = File(...)):
	if not (image.content_type or "").startswith("image/"):
		raise HTTPException(status_code=400, detail="Only image files are allowed")
	content = await image.read()
	if not content:
		raise HTTPException(status_code=400, detail="No file uploaded")
	if len(content) > settings.max_upload_bytes:
		raise HTTPException(status_code=400, detail="File too large")
	suffix = Path(image.filename or "").suffix.lower()
	filename = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"
	target_dir = Path(settings.uploads_dir)
	target_dir.mkdir(parents=True, exist_ok=True)
	(target_dir / filename).write_bytes(content)
	return UploadOut(filename=filename, url=f"/uploads/{filename}")


@router.get("/{form_id}", response_model=FormOut)
def get_form(form_id: str, db: Session = Depends(get_db)):
	return get_form_or_404(db, form_id)


@router.put("/{form_id}", response_model=FormOut)
def update_form(form_id: str, req: FormIn, db: Session = Depends(get_db)):
	row = get_form_or_404(db, form_id)
	_apply(row, req)
	db.commit()
	db.refresh(row)
	return row


@router.delete("/{form_id}")
def delete_form(form_id: str, db: Session = Depends(get_db)):
	row = get_form_or_404(db, form_id)
	res = db.execute(delete(ResponseRow).where(ResponseRow.form_id == form_id))
	db.delete(row)
	db.commit()
	logger.info("Deleted form %s and %d responses", form_id, res.rowcount or 0)
	return {"message": "Form deleted successfully"}


@router.get("/{form_id}/export")
def export_form(form_id: str, db: Session = Depends(get_db)):
	row = get_form_or_404(db, form_id)
	body = form_to_json(FormOut.model_validate(row).model_dump(mode="json", by_alias=True))
	filename = export_filename(row.title, "", "json")
	return Response(
		content=body,
		media_type="application/json",
		headers={"Content-Disposition": f'attachment; filename="{filename}"'},
	)
