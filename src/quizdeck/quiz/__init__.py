from .errors import (
    InvalidAnswerError,
    QuizDataError,
    QuizDeckError,
    QuizLoadError,
    QuizSaveError,
    SessionStateError,
)
from .models import (
    Question,
    QuizFile,
    QuizFileHeader,
    question_from_dict,
    quiz_file_from_dict,
)
from .store import (
    DirectoryQuestionStore,
    MemoryQuestionStore,
    QuestionStore,
)
from .session import HistoryEntry, QuizSession, ViewMode
from .results import (
    ReviewItem,
    ScoreReport,
    build_report,
    build_review,
    percentage,
)
from .remote import RemoteQuizWriter, write_quiz_file
from .console import run_app

__all__ = [
    "InvalidAnswerError",
    "QuizDataError",
    "QuizDeckError",
    "QuizLoadError",
    "QuizSaveError",
    "SessionStateError",
    "Question",
    "QuizFile",
    "QuizFileHeader",
    "question_from_dict",
    "quiz_file_from_dict",
    "DirectoryQuestionStore",
    "MemoryQuestionStore",
    "QuestionStore",
    "HistoryEntry",
    "QuizSession",
    "ViewMode",
    "ReviewItem",
    "ScoreReport",
    "build_report",
    "build_review",
    "percentage",
    "RemoteQuizWriter",
    "write_quiz_file",
    "run_app",
]
