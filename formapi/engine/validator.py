import re
from typing import Dict, Optional

from pydantic import BaseModel

from formapi.engine.answers import Answer, AnswerSet, MultiValue, is_empty
from formapi.engine.markup import plain_text
from formapi.models.form import Question, QuestionKind, Section

REQUIRED = "required"
INVALID_EMAIL = "invalid_email"
INVALID_NUMBER = "invalid_number"

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class FieldError(BaseModel):
    """Field-scoped problem with one answer. Returned, never raised."""

    question_id: str
    code: str
    message: str


def _label(question: Question) -> str:
    return plain_text(question.title).strip() or "This question"


def validate(question: Question, value: Optional[Answer]) -> Optional[FieldError]:
    if is_empty(value):
        if question.required:
            return FieldError(
                question_id=question.id,
                code=REQUIRED,
                message=f"{_label(question)} is required",
            )
        return None

    if isinstance(value, MultiValue):
        return None

    if question.kind is QuestionKind.EMAIL and not EMAIL_RE.fullmatch(value.value):
        return FieldError(
            question_id=question.id,
            code=INVALID_EMAIL,
            message=f"{_label(question)} must be a valid email address",
        )
    if question.kind is QuestionKind.NUMERIC and not NUMBER_RE.fullmatch(value.value.strip()):
        return FieldError(
            question_id=question.id,
            code=INVALID_NUMBER,
            message=f"{_label(question)} must be a number",
        )
    return None


def validate_section(section: Section, answers: AnswerSet) -> Dict[str, Optional[FieldError]]:
    return {q.id: validate(q, answers.get(q.id)) for q in section.questions}


def section_errors(section: Section, answers: AnswerSet) -> Dict[str, FieldError]:
    """Only the failing questions of ``validate_section``."""
    return {
        question_id: error
        for question_id, error in validate_section(section, answers).items()
        if error is not None
    }
