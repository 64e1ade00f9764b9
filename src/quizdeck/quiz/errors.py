"""Exception hierarchy shared by the quiz store, session and writer."""

from __future__ import annotations


class QuizDeckError(Exception):
    pass


class QuizDataError(QuizDeckError):
    """Raised when a stored quiz record cannot be turned into models."""


class QuizLoadError(QuizDeckError):
    """Raised when selecting a quiz yields no playable questions."""

    def __init__(self, quiz_id: str, reason: str) -> None:
        super().__init__(f"Could not load quiz '{quiz_id}': {reason}")
        self.quiz_id = quiz_id
        self.reason = reason


class QuizSaveError(QuizDeckError):
    """Raised when persisting a question list to the remote service fails."""


class SessionStateError(QuizDeckError):
    """Raised when a session operation is called from the wrong state."""


class InvalidAnswerError(SessionStateError):
    pass
