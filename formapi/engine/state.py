from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from formapi.engine.answers import AnswerSet
from formapi.engine.validator import FieldError
from formapi.models.response import Response


class SessionStatus(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


def new_key() -> str:
    return uuid4().hex


class SessionState(BaseModel):
    """Everything one respondent session owns. Never shared between sessions."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(default_factory=new_key)
    form_id: str
    section_index: int = 0
    answers: AnswerSet = Field(default_factory=AnswerSet)
    errors: Dict[str, FieldError] = Field(default_factory=dict)
    status: SessionStatus = SessionStatus.EDITING
    response: Optional[Response] = None
    # sent with the response so the store can drop a retried duplicate
    idempotency_key: str = Field(default_factory=new_key)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
