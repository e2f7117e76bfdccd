import logging
from contextlib import contextmanager

from fastapi import APIRouter, HTTPException

from formapi.config import config
from formapi.engine.navigator import SectionNavigator
from formapi.engine.sessions import SessionRegistry
from formapi.engine.submission import SubmissionCoordinator
from formapi.engine.view import session_view
from formapi.exceptions import (
    AnswerError,
    NavigationError,
    NotFoundError,
    SessionNotFoundError,
    SubmissionFailure,
    SubmissionInProgressError,
)
from formapi.models.session import AnswerIn, NavigateIn, OptionToggleIn, SessionView
from formapi.store import store

logger = logging.getLogger(__name__)
router = APIRouter()

registry = SessionRegistry(config.MAX_SESSIONS)
coordinator = SubmissionCoordinator(store)


@contextmanager
def http_errors():
    try:
        yield
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Form not found") from e
    except AnswerError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except SubmissionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except NavigationError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except SubmissionFailure as e:
        raise HTTPException(
            status_code=503,
            detail="Failed to submit form. Your answers were kept, please try again.",
        ) from e


@router.post("/forms/{fid}/sessions", response_model=SessionView, status_code=201)
async def start_session(fid: str):
    try:
        form = await store.load_form(fid)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Form not found") from e

    navigator = SectionNavigator(form, coordinator)
    state = registry.open(navigator)
    return session_view(navigator, state)


@router.get("/sessions/{sid}", response_model=SessionView, status_code=200)
async def get_session(sid: str):
    with http_errors():
        navigator, state = registry.get(sid)
    return session_view(navigator, state)


@router.put("/sessions/{sid}/answers/{qid}", response_model=SessionView, status_code=200)
async def set_answer(sid: str, qid: str, answer: AnswerIn):
    with http_errors():
        navigator, state = registry.get(sid)
        navigator.set_answer(state, qid, answer.value)
    return session_view(navigator, state)


@router.post("/sessions/{sid}/answers/{qid}/toggle", response_model=SessionView, status_code=200)
async def toggle_option(sid: str, qid: str, toggle: OptionToggleIn):
    with http_errors():
        navigator, state = registry.get(sid)
        navigator.toggle_option(state, qid, toggle.option, toggle.checked)
    return session_view(navigator, state)


@router.delete("/sessions/{sid}/answers", response_model=SessionView, status_code=200)
async def clear_answers(sid: str):
    with http_errors():
        navigator, state = registry.get(sid)
        navigator.clear(state)
    return session_view(navigator, state)


@router.post("/sessions/{sid}/navigate", response_model=SessionView, status_code=200)
async def navigate(sid: str, move: NavigateIn):
    with http_errors():
        navigator, state = registry.get(sid)
        navigator.advance(state, move.target)
    return session_view(navigator, state)


@router.post("/sessions/{sid}/submit", response_model=SessionView, status_code=200)
async def submit(sid: str):
    with http_errors():
        navigator, state = registry.get(sid)
        await navigator.submit(state)
    return session_view(navigator, state)


@router.post("/sessions/{sid}/reset", response_model=SessionView, status_code=200)
async def reset(sid: str):
    with http_errors():
        navigator, state = registry.get(sid)
        navigator.reset(state)
    return session_view(navigator, state)


@router.delete("/sessions/{sid}", status_code=200)
async def discard_session(sid: str):
    with http_errors():
        registry.discard(sid)
    return {"message": "Session discarded", "session_id": sid}
