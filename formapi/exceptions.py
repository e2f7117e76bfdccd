class FormAPIError(Exception):
    """Base class for domain errors raised by the form engine and store."""


class NotFoundError(FormAPIError):
    """Raised when a form does not exist or is not published."""


class SessionNotFoundError(FormAPIError):
    """Raised when a respondent session id is unknown or was evicted."""


class NavigationError(FormAPIError):
    """Raised for a transition the session state machine cannot take."""


class AnswerError(FormAPIError):
    """Raised when an answer does not fit the question it is stored for."""


class SubmissionInProgressError(FormAPIError):
    """Raised when submit() is called while another submit is outstanding."""


class SubmissionFailure(FormAPIError):
    """Raised when persisting a response fails. The session is left as it was."""


class MarkupRenderError(FormAPIError):
    """Raised by the math typesetter for a malformed expression.

    Never leaves the markup renderer; the span is replaced by a placeholder.
    """
