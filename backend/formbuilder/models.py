from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, Boolean, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from .db import Base


def _new_id() -> str:
	return uuid.uuid4().hex


class Form(Base):
	__tablename__ = "forms"
	id = Column(String(32), primary_key=True, default=_new_id)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	header_image = Column(String(512), nullable=True)
	# Canonical camelCase question documents, validated on write
	questions = Column(JSON, default=list, nullable=False)
	is_published = Column(Boolean, default=False, nullable=False)
	created_by = Column(String(128), nullable=True)
	settings = Column(JSON, default=dict, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	responses = relationship("Response", back_populates="form", cascade="all, delete-orphan", passive_deletes=True)


class Response(Base):
	__tablename__ = "responses"
	# Rows are written once at submission and never updated
	id = Column(String(32), primary_key=True, default=_new_id)
	form_id = Column(String(32), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
	answers = Column(JSON, default=dict, nullable=False)
	score = Column(Float, default=0.0, nullable=False)
	max_score = Column(Float, default=0.0, nullable=False)
	submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
	submitter_email = Column(String(256), nullable=True)
	submitter_name = Column(String(256), nullable=True)
	time_spent = Column(Integer, default=0, nullable=False)  # seconds
	question_times = Column(JSON, default=dict, nullable=False)  # question id -> seconds

	form = relationship("Form", back_populates="responses")
