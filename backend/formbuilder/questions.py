"""Question model: a closed union of the three question kinds.

Every question carries a kind-specific answer key. Wire documents use
camelCase; the older ``{type, data}`` layout (with comprehension
sub-questions as ``{question, choices, correct}``) is still accepted on input
and is always written back in the canonical ``{kind, answerKey}`` form.
"""

from __future__ import annotations
import math
import uuid
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_POINTS = 1.0


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _new_question_id() -> str:
    return f"q-{uuid.uuid4().hex[:8]}"


class CategorizeKey(CamelModel):
    # item label -> category label; keys are the scoreable items
    correct_map: Dict[str, str] = Field(default_factory=dict)
    categories: List[str] = Field(default_factory=list)
    items: List[str] = Field(default_factory=list)


class ClozeKey(CamelModel):
    answers: List[str] = Field(default_factory=list)
    text: str = ""
    distractors: List[List[str]] = Field(default_factory=list)


class SubQuestion(CamelModel):
    prompt: str = Field(
        default="",
        validation_alias=AliasChoices("prompt", "question"),
        serialization_alias="prompt",
    )
    choices: List[str] = Field(default_factory=list)
    # strict: a stored "1" must not be coerced into a matchable index
    correct_choice_index: int = Field(
        strict=True,
        validation_alias=AliasChoices("correctChoiceIndex", "correct_choice_index", "correct"),
        serialization_alias="correctChoiceIndex",
    )


class ComprehensionKey(CamelModel):
    passage: str = ""
    sub_questions: List[SubQuestion] = Field(
        default_factory=list,
        validation_alias=AliasChoices("subQuestions", "sub_questions", "questions"),
        serialization_alias="subQuestions",
    )


class _QuestionBase(CamelModel):
    id: str = Field(default_factory=_new_question_id)
    title: str = ""
    image: Optional[str] = None
    points: float = Field(default=DEFAULT_POINTS, gt=0, allow_inf_nan=False)
    feedback: Optional[str] = None

    @field_validator("points", mode="before")
    @classmethod
    def _default_points(cls, value: Any) -> Any:
        if value is None:
            return DEFAULT_POINTS
        if isinstance(value, (bool, str)):
            raise ValueError("points must be a number")
        return value


_KIND_ALIAS = AliasChoices("kind", "type")
_KEY_ALIAS = AliasChoices("answerKey", "answer_key", "data")


class CategorizeQuestion(_QuestionBase):
    kind: Literal["categorize"] = Field(default="categorize", validation_alias=_KIND_ALIAS, serialization_alias="kind")
    answer_key: CategorizeKey = Field(default_factory=CategorizeKey, validation_alias=_KEY_ALIAS, serialization_alias="answerKey")


class ClozeQuestion(_QuestionBase):
    kind: Literal["cloze"] = Field(default="cloze", validation_alias=_KIND_ALIAS, serialization_alias="kind")
    answer_key: ClozeKey = Field(default_factory=ClozeKey, validation_alias=_KEY_ALIAS, serialization_alias="answerKey")


class ComprehensionQuestion(_QuestionBase):
    kind: Literal["comprehension"] = Field(default="comprehension", validation_alias=_KIND_ALIAS, serialization_alias="kind")
    answer_key: ComprehensionKey = Field(default_factory=ComprehensionKey, validation_alias=_KEY_ALIAS, serialization_alias="answerKey")


def _kind_of(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        return value.get("kind", value.get("type"))
    return getattr(value, "kind", None)


Question = Annotated[
    Union[
        Annotated[CategorizeQuestion, Tag("categorize")],
        Annotated[ClozeQuestion, Tag("cloze")],
        Annotated[ComprehensionQuestion, Tag("comprehension")],
    ],
    Discriminator(_kind_of),
]

_question_adapter: TypeAdapter = TypeAdapter(Question)


def parse_question(raw: Any) -> Question:
    """Validate a stored or submitted question document.

    Raises ``pydantic.ValidationError`` for an unknown kind or a malformed
    answer key.
    """
    if isinstance(raw, (CategorizeQuestion, ClozeQuestion, ComprehensionQuestion)):
        return raw
    return _question_adapter.validate_python(raw)


def dump_question(question: Question) -> Dict[str, Any]:
    return question.model_dump(mode="json", by_alias=True)


def question_id(question: Any) -> Optional[str]:
    if isinstance(question, Mapping):
        value = question.get("id")
    else:
        value = getattr(question, "id", None)
    return None if value is None else str(value)


def question_points(question: Any) -> float:
    """Point weight of a question, raw or parsed; anything unusable counts as 1."""
    if isinstance(question, Mapping):
        points = question.get("points")
    else:
        points = getattr(question, "points", None)
    if isinstance(points, bool) or not isinstance(points, (int, float)):
        return DEFAULT_POINTS
    if not math.isfinite(points) or points <= 0:
        return DEFAULT_POINTS
    return float(points)
