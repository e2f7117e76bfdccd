from typing import Dict, FrozenSet, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from formapi.exceptions import AnswerError
from formapi.models.form import FormIn, Question


class Scalar(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["scalar"] = "scalar"
    value: str


class MultiValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["multi"] = "multi"
    values: FrozenSet[str]


Answer = Union[Scalar, MultiValue]


def is_empty(answer: Optional[Answer]) -> bool:
    if answer is None:
        return True
    if isinstance(answer, MultiValue):
        return not answer.values
    return answer.value == ""


def coerce(question: Question, raw) -> Answer:
    """Build the answer variant that ``question.kind`` expects from a raw input value."""
    if question.kind.is_multi:
        if isinstance(raw, (list, tuple, set, frozenset)) and all(isinstance(v, str) for v in raw):
            check_options(question, raw)
            return MultiValue(values=frozenset(raw))
        raise AnswerError(f"Question {question.id!r} expects a list of options")

    if isinstance(raw, bool) or isinstance(raw, (list, tuple, set, frozenset, dict)):
        raise AnswerError(f"Question {question.id!r} expects a single value")
    if isinstance(raw, (int, float)):
        raw = str(raw)
    if not isinstance(raw, str):
        raise AnswerError(f"Question {question.id!r} got an unsupported value")
    if question.kind.is_choice and raw != "":
        check_options(question, [raw])
    return Scalar(value=raw)


def check_options(question: Question, values) -> None:
    unknown = sorted(v for v in values if v not in question.options)
    if unknown:
        raise AnswerError(f"Question {question.id!r} has no option {unknown[0]!r}")


class AnswerSet:
    """Answers of one respondent session, keyed by question id."""

    def __init__(self, answers: Optional[Dict[str, Answer]] = None):
        self._answers: Dict[str, Answer] = dict(answers or {})

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._answers

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def __len__(self) -> int:
        return len(self._answers)

    def __eq__(self, other) -> bool:
        return isinstance(other, AnswerSet) and self._answers == other._answers

    def get(self, question_id: str) -> Optional[Answer]:
        return self._answers.get(question_id)

    def set(self, question: Question, raw) -> Optional[Answer]:
        if raw is None:
            self._answers.pop(question.id, None)
            return None
        answer = coerce(question, raw)
        self._answers[question.id] = answer
        return answer

    def toggle(self, question: Question, option: str, checked: bool) -> Answer:
        """Tick or untick one option of a multi-choice question."""
        if not question.kind.is_multi:
            raise AnswerError(f"Question {question.id!r} is not multi-choice")
        current = self._answers.get(question.id)
        values = set(current.values) if isinstance(current, MultiValue) else set()
        if checked:
            check_options(question, [option])
            values.add(option)
        else:
            values.discard(option)
        answer = MultiValue(values=frozenset(values))
        self._answers[question.id] = answer
        return answer

    def clear(self) -> None:
        self._answers.clear()

    def copy(self) -> "AnswerSet":
        return AnswerSet(self._answers)

    def snapshot(self, form: FormIn) -> Dict[str, Union[str, list]]:
        """Plain mapping stored on a response; multi-choice values follow option order."""
        result = {}
        for question_id, answer in self._answers.items():
            if isinstance(answer, Scalar):
                result[question_id] = answer.value
                continue
            question = form.question(question_id)
            order = list(question.options) if question else []
            result[question_id] = sorted(
                answer.values,
                key=lambda v: (order.index(v) if v in order else len(order), v),
            )
        return result
