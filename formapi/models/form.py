from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class QuestionKind(str, Enum):
    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"
    DROPDOWN_CHOICE = "dropdown-choice"
    EMAIL = "email"
    NUMERIC = "numeric"

    @property
    def is_choice(self) -> bool:
        return self in CHOICE_KINDS

    @property
    def is_multi(self) -> bool:
        return self is QuestionKind.MULTI_CHOICE


CHOICE_KINDS = frozenset(
    {QuestionKind.SINGLE_CHOICE, QuestionKind.MULTI_CHOICE, QuestionKind.DROPDOWN_CHOICE}
)

# type names used by forms stored before sections existed
LEGACY_KINDS = {
    "text": QuestionKind.SHORT_TEXT,
    "textarea": QuestionKind.LONG_TEXT,
    "multiple-choice": QuestionKind.SINGLE_CHOICE,
    "checkbox": QuestionKind.MULTI_CHOICE,
    "dropdown": QuestionKind.DROPDOWN_CHOICE,
    "number": QuestionKind.NUMERIC,
}


def new_id() -> str:
    return uuid4().hex[:12]


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Theme(FrozenModel):
    primary: str = "#7c3aed"
    background: str = "#ffffff"
    text: str = "#111827"
    accent: str = "#2563eb"


class Question(FrozenModel):
    id: str = Field(default_factory=new_id)
    kind: QuestionKind = QuestionKind.SHORT_TEXT
    title: str
    description: Optional[str] = None
    required: bool = False
    options: Tuple[str, ...] = ()
    correct_answer: Optional[Union[str, Tuple[str, ...]]] = None

    @field_validator("kind", mode="before")
    @classmethod
    def accept_legacy_kind(cls, value):
        if isinstance(value, str) and value in LEGACY_KINDS:
            return LEGACY_KINDS[value]
        return value

    @field_validator("correct_answer")
    @classmethod
    def drop_repeated_answers(cls, value):
        # a multi-choice key is a set; keep first-seen order
        if isinstance(value, tuple):
            return tuple(dict.fromkeys(value))
        return value

    @model_validator(mode="after")
    def check_choices(self):
        if self.kind.is_choice and not self.options:
            raise ValueError(f"question {self.id!r} of kind {self.kind.value} needs options")
        if self.kind is QuestionKind.SINGLE_CHOICE and isinstance(self.correct_answer, tuple):
            raise ValueError(f"question {self.id!r} takes a single correct answer")
        if self.kind is QuestionKind.MULTI_CHOICE and isinstance(self.correct_answer, str):
            raise ValueError(f"question {self.id!r} takes a list of correct answers")
        if self.kind.is_choice and self.correct_answer:
            expected = self.correct_answer if isinstance(self.correct_answer, tuple) else (self.correct_answer,)
            unknown = [value for value in expected if value not in self.options]
            if unknown:
                raise ValueError(f"question {self.id!r} has correct answers outside its options: {unknown}")
        return self


class Section(FrozenModel):
    id: str = Field(default_factory=new_id)
    title: str = ""
    description: Optional[str] = None
    questions: Tuple[Question, ...] = ()


class FormIn(FrozenModel):
    """Form content as written by the builder."""

    title: str
    description: str = ""
    sections: Tuple[Section, ...] = Field(min_length=1)
    is_test_mode: bool = False
    is_published: bool = False
    theme: Theme = Field(default_factory=Theme)

    @field_validator("theme", mode="before")
    @classmethod
    def default_theme(cls, value):
        return Theme() if value is None else value

    @model_validator(mode="after")
    def check_unique_question_ids(self):
        seen = set()
        for question in self.questions():
            if question.id in seen:
                raise ValueError(f"duplicate question id {question.id!r}")
            seen.add(question.id)
        return self

    def questions(self):
        for section in self.sections:
            yield from section.questions

    def question(self, question_id: str) -> Optional[Question]:
        for question in self.questions():
            if question.id == question_id:
                return question
        return None


class FormDefinition(FormIn):
    id: str
    owner_id: str
    owner_email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FormSummary(FrozenModel):
    id: str
    title: str
    description: str = ""
    is_published: bool
    is_test_mode: bool
    updated_at: Optional[datetime] = None
    response_count: int = 0
