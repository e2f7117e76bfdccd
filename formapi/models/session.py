from typing import Dict, List, Optional, Union

from pydantic import BaseModel

from formapi.engine.markup import RenderedText
from formapi.engine.scorer import QuestionReview
from formapi.engine.state import SessionStatus
from formapi.engine.validator import FieldError
from formapi.models.form import QuestionKind, Theme
from formapi.models.response import Response


class AnswerIn(BaseModel):
    value: Optional[Union[str, int, float, List[str]]] = None


class OptionToggleIn(BaseModel):
    option: str
    checked: bool = True


class NavigateIn(BaseModel):
    target: int


class RenderedOption(BaseModel):
    value: str
    label: RenderedText


class RenderedQuestion(BaseModel):
    id: str
    kind: QuestionKind
    title: RenderedText
    description: Optional[RenderedText] = None
    required: bool
    options: List[RenderedOption] = []


class RenderedSection(BaseModel):
    id: str
    title: RenderedText
    description: Optional[RenderedText] = None
    questions: List[RenderedQuestion]


class PublicForm(BaseModel):
    """A published form as respondents see it. Correct answers are never included."""

    id: str
    title: RenderedText
    description: RenderedText
    is_test_mode: bool
    theme: Theme
    sections: List[RenderedSection]


class SessionView(BaseModel):
    session_id: str
    form_id: str
    title: RenderedText
    is_test_mode: bool
    theme: Theme
    status: SessionStatus
    section_index: int
    section_count: int
    is_last_section: bool
    section: RenderedSection
    answers: Dict[str, Union[str, List[str]]]
    errors: Dict[str, FieldError] = {}
    response: Optional[Response] = None
    review: List[QuestionReview] = []
