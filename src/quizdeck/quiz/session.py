"""Quiz-taking state machine.

A :class:`QuizSession` moves between four views::

    menu -> browsing -> playing -> results
              ^  ^---------'         |
              '----------------------'

Every transition goes through a method on the session; renderers only read
its fields. Selecting a quiz is the single operation that touches the store,
and a failed load leaves the session exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .errors import InvalidAnswerError, QuizLoadError, SessionStateError
from .models import Question
from .store import QuestionStore

__all__ = [
    "HistoryEntry",
    "QuizSession",
    "ViewMode",
]


class ViewMode(Enum):
    MENU = "menu"
    BROWSING = "browsing"
    PLAYING = "playing"
    RESULTS = "results"


@dataclass(frozen=True)
class HistoryEntry:
    """Correctness of one submitted answer."""

    question_id: int
    correct: bool


@dataclass
class QuizSession:
    """Mutable state of one quiz-taking attempt plus the current view."""

    mode: ViewMode = ViewMode.MENU
    quiz_id: Optional[str] = None
    active_questions: tuple[Question, ...] = ()
    current_index: int = 0
    score: int = 0
    selected_answer: Optional[int] = None
    show_explanation: bool = False
    history: list[HistoryEntry] = field(default_factory=list)

    @property
    def total_questions(self) -> int:
        return len(self.active_questions)

    @property
    def current_question(self) -> Question:
        if self.mode is not ViewMode.PLAYING:
            raise SessionStateError("No question is active outside play.")
        return self.active_questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return (
            self.total_questions > 0
            and self.current_index == self.total_questions - 1
        )

    @property
    def has_answered(self) -> bool:
        return self.selected_answer is not None

    @property
    def progress(self) -> float:
        if not self.total_questions:
            return 0.0
        return (self.current_index + 1) / self.total_questions

    def answered_count(self) -> int:
        return len(self.history)

    def last_answer_correct(self) -> Optional[bool]:
        if self.selected_answer is None:
            return None
        return self.current_question.is_correct(self.selected_answer)

    def question_by_id(self, question_id: int) -> Optional[Question]:
        for question in self.active_questions:
            if question.id == question_id:
                return question
        return None

    # Transitions -----------------------------------------------------------

    def browse(self) -> None:
        self.exit_to_browsing()

    def select_quiz(self, store: QuestionStore, quiz_id: str) -> None:
        """Load ``quiz_id`` from ``store`` and start playing it.

        Raises :class:`QuizLoadError` when the store has no questions for the
        id; in that case nothing on the session changes.
        """

        try:
            questions = store.load_by_id(quiz_id)
        except Exception as exc:
            raise QuizLoadError(quiz_id, str(exc) or type(exc).__name__) from exc
        if questions is None:
            raise QuizLoadError(quiz_id, "no quiz file with that id")
        if not questions:
            raise QuizLoadError(quiz_id, "the quiz has no questions")

        self.quiz_id = quiz_id
        self.active_questions = tuple(questions)
        self.current_index = 0
        self.score = 0
        self.history = []
        self._reset_question_state()
        self.mode = ViewMode.PLAYING

    def answer(self, index: int) -> bool:
        """Submit ``index`` for the current question.

        Returns ``False`` when an answer was already submitted; answers cannot
        be changed once given.
        """

        self._require_mode(ViewMode.PLAYING, "answer")
        question = self.current_question
        if not 0 <= index < len(question.options):
            raise InvalidAnswerError(
                f"Option {index} is not valid for question {question.id}; "
                f"expected 0..{len(question.options) - 1}."
            )
        if self.selected_answer is not None:
            return False
        correct = question.is_correct(index)
        self.selected_answer = index
        if correct:
            self.score += 1
        self.history.append(HistoryEntry(question.id, correct))
        return True

    def toggle_explanation(self) -> bool:
        self._require_mode(ViewMode.PLAYING, "show the explanation")
        if self.selected_answer is None:
            raise SessionStateError("Answer the question before asking why.")
        self.show_explanation = not self.show_explanation
        return self.show_explanation

    def advance(self) -> ViewMode:
        """Move past the answered question, finishing on the last one."""

        self._require_mode(ViewMode.PLAYING, "advance")
        if self.selected_answer is None:
            raise SessionStateError("Answer the question before moving on.")
        if self.is_last_question:
            self.mode = ViewMode.RESULTS
        else:
            self.current_index += 1
            self._reset_question_state()
        return self.mode

    def exit_to_browsing(self) -> None:
        self._discard_progress()
        self.mode = ViewMode.BROWSING

    def exit_to_menu(self) -> None:
        self._discard_progress()
        self.mode = ViewMode.MENU

    def _require_mode(self, mode: ViewMode, action: str) -> None:
        if self.mode is not mode:
            raise SessionStateError(
                f"Cannot {action} while in the {self.mode.value} view."
            )

    def _reset_question_state(self) -> None:
        self.selected_answer = None
        self.show_explanation = False

    def _discard_progress(self) -> None:
        self.quiz_id = None
        self.active_questions = ()
        self.current_index = 0
        self.score = 0
        self.history = []
        self._reset_question_state()
