from typing import List, Optional, Union

from pydantic import BaseModel

from formapi.engine.answers import Answer, AnswerSet, MultiValue, Scalar
from formapi.models.form import FormIn, Question, QuestionKind


class QuestionReview(BaseModel):
    question_id: str
    your_answer: Optional[Union[str, List[str]]] = None
    correct_answer: Union[str, List[str]]
    correct: bool


def carries_correct_answer(question: Question) -> bool:
    return question.correct_answer is not None and question.correct_answer != ""


def is_correct(question: Question, answer: Optional[Answer]) -> bool:
    expected = question.correct_answer
    if question.kind is QuestionKind.SINGLE_CHOICE:
        return isinstance(answer, Scalar) and answer.value == expected

    if question.kind is QuestionKind.MULTI_CHOICE and isinstance(expected, tuple):
        chosen = answer.values if isinstance(answer, MultiValue) else frozenset()
        return chosen == frozenset(expected)

    # only choice questions are scored
    return False


def percentage(correct: int, total: int) -> int:
    if total == 0:
        return 0
    # round half up
    return (200 * correct + total) // (2 * total)


def score(form: FormIn, answers: AnswerSet) -> Optional[int]:
    if not form.is_test_mode:
        return None

    correct = total = 0
    for question in form.questions():
        if not carries_correct_answer(question):
            continue
        total += 1
        if is_correct(question, answers.get(question.id)):
            correct += 1
    return percentage(correct, total)


def review(form: FormIn, answers: AnswerSet) -> List[QuestionReview]:
    """Per-question outcome shown after a test is submitted."""
    if not form.is_test_mode:
        return []

    snapshot = answers.snapshot(form)
    results = []
    for question in form.questions():
        if not carries_correct_answer(question):
            continue
        expected = question.correct_answer
        results.append(
            QuestionReview(
                question_id=question.id,
                your_answer=snapshot.get(question.id),
                correct_answer=list(expected) if isinstance(expected, tuple) else expected,
                correct=is_correct(question, answers.get(question.id)),
            )
        )
    return results
