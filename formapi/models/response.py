from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

AnswerValue = Union[str, List[str]]


class ResponseInput(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    form_id: str
    answers: Dict[str, AnswerValue]
    score: Optional[int] = None
    idempotency_key: Optional[str] = None


class Response(ResponseInput):
    id: str
    submitted_at: datetime
