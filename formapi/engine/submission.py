import logging
from typing import Protocol

from formapi.engine.scorer import score
from formapi.engine.state import SessionState, SessionStatus
from formapi.engine.validator import section_errors
from formapi.exceptions import NavigationError, NotFoundError, SubmissionFailure, SubmissionInProgressError
from formapi.models.form import FormDefinition
from formapi.models.response import Response, ResponseInput

logger = logging.getLogger(__name__)


class ResponseStore(Protocol):
    async def create_response(self, response: ResponseInput) -> Response:
        ...


class SubmissionCoordinator:
    """Scores a finished session and persists it as a response.

    A failed write leaves the session exactly as it was before the attempt so
    the respondent can retry with the same answers. The coordinator never
    dedupes by itself; the store does, keyed on the session's idempotency key.
    """

    def __init__(self, store: ResponseStore):
        self.store = store

    async def submit(self, form: FormDefinition, state: SessionState) -> Response:
        if state.status is SessionStatus.SUBMITTING:
            raise SubmissionInProgressError("A submission for this session is already in flight")
        if state.status is SessionStatus.SUBMITTED:
            raise NavigationError("This session has already been submitted")

        last_section = form.sections[-1]
        if state.section_index != len(form.sections) - 1 or section_errors(last_section, state.answers):
            raise NavigationError("The last section must be reached and valid before submitting")

        payload = ResponseInput(
            form_id=form.id,
            answers=state.answers.snapshot(form),
            score=score(form, state.answers),
            idempotency_key=state.idempotency_key,
        )

        state.status = SessionStatus.SUBMITTING
        logger.info(f"Submitting session {state.id} for form {form.id}")
        try:
            response = await self.store.create_response(payload)
        except NotFoundError:
            logger.warning(f"Form {form.id} is gone, session {state.id} cannot be stored")
            raise
        except Exception as e:
            logger.error(f"Submission of session {state.id} failed: {e}")
            raise SubmissionFailure("Failed to submit form") from e
        else:
            state.status = SessionStatus.SUBMITTED
            state.response = response
            state.errors = {}
            logger.info(f"Session {state.id} stored as response {response.id}")
            return response
        finally:
            if state.status is SessionStatus.SUBMITTING:
                state.status = SessionStatus.EDITING
