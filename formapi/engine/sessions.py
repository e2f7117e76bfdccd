import logging
from collections import OrderedDict
from typing import Tuple

from formapi.engine.navigator import SectionNavigator
from formapi.engine.state import SessionState, SessionStatus
from formapi.exceptions import SessionNotFoundError, SubmissionInProgressError

logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-memory respondent sessions, oldest evicted first once full."""

    def __init__(self, max_sessions: int):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, Tuple[SectionNavigator, SessionState]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, navigator: SectionNavigator) -> SessionState:
        self._evict()
        state = navigator.start()
        self._sessions[state.id] = (navigator, state)
        logger.debug(f"Opened session {state.id} for form {navigator.form.id}")
        return state

    def get(self, session_id: str) -> Tuple[SectionNavigator, SessionState]:
        try:
            entry = self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(f"Session {session_id} not found") from None
        self._sessions.move_to_end(session_id)
        return entry

    def discard(self, session_id: str) -> None:
        _, state = self.get(session_id)
        if state.status is SessionStatus.SUBMITTING:
            raise SubmissionInProgressError("Session is being submitted")
        del self._sessions[session_id]

    def clear(self) -> None:
        self._sessions.clear()

    def _evict(self) -> None:
        while len(self._sessions) >= self.max_sessions:
            for session_id, (_, state) in self._sessions.items():
                # an in-flight submission must finish before its session can go
                if state.status is not SessionStatus.SUBMITTING:
                    break
            else:
                return
            del self._sessions[session_id]
            logger.info(f"Evicted session {session_id}")
