from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from .questions import CamelModel, Question, dump_question


class FormSettings(CamelModel):
    allow_multiple_submissions: bool = False
    show_correct_answers: bool = True
    time_limit: Optional[int] = Field(default=None, ge=0)


class FormIn(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    header_image: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    is_published: bool = False
    created_by: Optional[str] = None
    settings: FormSettings = Field(default_factory=FormSettings)

    @field_validator("questions")
    @classmethod
    def _unique_ids(cls, questions: List[Question]) -> List[Question]:
        seen: set[str] = set()
        for q in questions:
            if q.id in seen:
                raise ValueError(f"duplicate question id: {q.id}")
            seen.add(q.id)
        return questions

    def question_documents(self) -> List[Dict[str, Any]]:
        return [dump_question(q) for q in self.questions]


class FormOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    header_image: Optional[str] = None
    # Returned exactly as stored so one bad legacy question cannot break reads
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    is_published: bool = False
    created_by: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class SubmissionIn(CamelModel):
    # Respondent fields are checked in the handler so the error is a 400 with a readable message
    submitter_name: Optional[str] = None
    submitter_email: Optional[str] = None
    answers: Optional[Dict[str, Any]] = None
    time_spent: Optional[int] = Field(default=None, ge=0)
    question_times: Optional[Dict[str, float]] = None


class SubmissionOut(CamelModel):
    id: str
    score: float
    max_score: float
    percentage: int
    submitted_at: datetime


class ResponseOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    form_id: str
    answers: Dict[str, Any] = Field(default_factory=dict)
    score: float = 0.0
    max_score: float = 0.0
    submitted_at: datetime
    submitter_email: Optional[str] = None
    submitter_name: Optional[str] = None
    time_spent: int = 0
    question_times: Dict[str, float] = Field(default_factory=dict)


class ResponseWithForm(ResponseOut):
    form_title: Optional[str] = None


class PreviewRequest(CamelModel):
    answers: Dict[str, Any] = Field(default_factory=dict)


class AdHocPreviewRequest(CamelModel):
    # Unsaved editor state; questions stay raw so the engine isolates broken ones
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    answers: Dict[str, Any] = Field(default_factory=dict)


class DistractorRequest(CamelModel):
    text: str = ""
    correct_answers: List[str] = Field(default_factory=list)


class DistractorResponse(CamelModel):
    distractors: List[List[str]]


class SuggestionRequest(CamelModel):
    question_text: str = Field(min_length=1)


class SuggestionResponse(CamelModel):
    suggestions: List[str]


class UploadOut(CamelModel):
    filename: str
    url: str
