import logging
from typing import Dict, Optional

from pydantic import BaseModel

from formapi.engine.answers import Answer
from formapi.engine.state import SessionState, SessionStatus, new_key
from formapi.engine.submission import SubmissionCoordinator
from formapi.engine.validator import FieldError, section_errors
from formapi.exceptions import AnswerError, NavigationError, SubmissionInProgressError
from formapi.models.form import FormDefinition, Question
from formapi.models.response import Response

logger = logging.getLogger(__name__)


class NavigationResult(BaseModel):
    moved: bool
    section_index: int
    errors: Dict[str, FieldError] = {}
    response: Optional[Response] = None


class SectionNavigator:
    """Walks a session through the sections of one form.

    Moving forward, or submitting, first validates the current section; any
    error refuses the transition and leaves the index where it was. Moving
    back is always allowed. The form itself is only read.
    """

    def __init__(self, form: FormDefinition, coordinator: Optional[SubmissionCoordinator] = None):
        self.form = form
        self.coordinator = coordinator

    @property
    def last_index(self) -> int:
        return len(self.form.sections) - 1

    def start(self) -> SessionState:
        return SessionState(form_id=self.form.id)

    def _ensure_editing(self, state: SessionState) -> None:
        if state.status is SessionStatus.SUBMITTING:
            raise SubmissionInProgressError("Session is being submitted")
        if state.status is SessionStatus.SUBMITTED:
            raise NavigationError("Session has already been submitted")

    def _question(self, question_id: str) -> Question:
        question = self.form.question(question_id)
        if question is None:
            raise AnswerError(f"Form {self.form.id} has no question {question_id!r}")
        return question

    def set_answer(self, state: SessionState, question_id: str, raw) -> Optional[Answer]:
        self._ensure_editing(state)
        answer = state.answers.set(self._question(question_id), raw)
        state.errors.pop(question_id, None)
        return answer

    def toggle_option(self, state: SessionState, question_id: str, option: str, checked: bool) -> Answer:
        self._ensure_editing(state)
        answer = state.answers.toggle(self._question(question_id), option, checked)
        state.errors.pop(question_id, None)
        return answer

    def advance(self, state: SessionState, target: int) -> NavigationResult:
        self._ensure_editing(state)
        if not 0 <= target <= self.last_index:
            raise NavigationError(f"Section {target} does not exist")

        if target > state.section_index:
            errors = section_errors(self.form.sections[state.section_index], state.answers)
            if errors:
                logger.debug(
                    f"Session {state.id} refused to leave section {state.section_index}: {sorted(errors)}"
                )
                state.errors = errors
                return NavigationResult(moved=False, section_index=state.section_index, errors=errors)

        state.section_index = target
        state.errors = {}
        return NavigationResult(moved=True, section_index=target)

    async def submit(self, state: SessionState) -> NavigationResult:
        self._ensure_editing(state)
        if state.section_index != self.last_index:
            raise NavigationError("Submit is only available from the last section")
        if self.coordinator is None:
            raise NavigationError("This session cannot submit responses")

        errors = section_errors(self.form.sections[self.last_index], state.answers)
        if errors:
            logger.debug(f"Session {state.id} refused to submit: {sorted(errors)}")
            state.errors = errors
            return NavigationResult(moved=False, section_index=state.section_index, errors=errors)

        response = await self.coordinator.submit(self.form, state)
        return NavigationResult(moved=True, section_index=state.section_index, response=response)

    def clear(self, state: SessionState) -> None:
        """Drop every answer but stay on the current section."""
        self._ensure_editing(state)
        state.answers.clear()
        state.errors = {}

    def reset(self, state: SessionState) -> None:
        if state.status is SessionStatus.SUBMITTING:
            raise SubmissionInProgressError("Session is being submitted")
        state.answers.clear()
        state.errors = {}
        state.section_index = 0
        state.status = SessionStatus.EDITING
        state.response = None
        state.idempotency_key = new_key()
