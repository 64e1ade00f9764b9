from __future__ import annotations

import pytest

from fixtures import make_question, make_quiz_file
from quizdeck.quiz.errors import (
    InvalidAnswerError,
    QuizLoadError,
    SessionStateError,
)
from quizdeck.quiz.models import QuizFile
from quizdeck.quiz.results import build_report, build_review
from quizdeck.quiz.session import HistoryEntry, QuizSession, ViewMode
from quizdeck.quiz.store import MemoryQuestionStore


class ExplodingStore:
    def list_headers(self):
        return []

    def load_by_id(self, quiz_id):
        raise RuntimeError("disk on fire")


@pytest.fixture
def store() -> MemoryQuestionStore:
    return MemoryQuestionStore(
        [
            make_quiz_file("four", 200, 4),
            make_quiz_file("single", 100, 1),
            QuizFile(id="empty", timestamp=50, questions=()),
        ]
    )


def _playing(store: MemoryQuestionStore, quiz_id: str = "four") -> QuizSession:
    session = QuizSession()
    session.browse()
    session.select_quiz(store, quiz_id)
    return session


def test_new_session_starts_on_menu() -> None:
    session = QuizSession()

    assert session.mode is ViewMode.MENU
    assert session.total_questions == 0
    assert session.progress == 0.0
    with pytest.raises(SessionStateError):
        _ = session.current_question


def test_select_quiz_resets_attempt_state(store) -> None:
    session = _playing(store)

    assert session.mode is ViewMode.PLAYING
    assert session.quiz_id == "four"
    assert session.total_questions == 4
    assert session.current_index == 0
    assert session.score == 0
    assert session.selected_answer is None
    assert session.show_explanation is False
    assert session.history == []
    assert session.current_question.id == 1
    assert session.progress == 0.25


def test_full_run_with_one_wrong_answer(store) -> None:
    session = _playing(store)

    for _ in range(3):
        assert session.answer(0) is True
        assert session.advance() is ViewMode.PLAYING
    assert session.is_last_question
    session.answer(2)
    assert session.advance() is ViewMode.RESULTS

    assert session.score == 3
    report = build_report(session)
    assert report.percentage == 75
    assert report.passed is True
    review = build_review(session)
    assert [item.question_id for item in review] == [4]
    assert review[0].correct_option == "alpha"


def test_answer_is_idempotent(store) -> None:
    session = _playing(store)

    assert session.answer(0) is True
    assert session.answer(1) is False

    assert session.selected_answer == 0
    assert session.score == 1
    assert session.history == [HistoryEntry(1, True)]


def test_wrong_answer_does_not_score(store) -> None:
    session = _playing(store)

    session.answer(3)

    assert session.score == 0
    assert session.last_answer_correct() is False
    assert session.history == [HistoryEntry(1, False)]


@pytest.mark.parametrize("index", [-1, 4, 99])
def test_out_of_range_answer_is_rejected(store, index) -> None:
    session = _playing(store)

    with pytest.raises(InvalidAnswerError):
        session.answer(index)

    assert session.selected_answer is None
    assert session.history == []


def test_advance_requires_an_answer(store) -> None:
    session = _playing(store)

    with pytest.raises(SessionStateError):
        session.advance()
    assert session.current_index == 0


def test_advance_clears_per_question_state(store) -> None:
    session = _playing(store)
    session.answer(1)
    session.toggle_explanation()

    session.advance()

    assert session.current_index == 1
    assert session.selected_answer is None
    assert session.show_explanation is False


def test_toggle_explanation_only_after_answering(store) -> None:
    session = _playing(store)

    with pytest.raises(SessionStateError):
        session.toggle_explanation()

    session.answer(0)
    assert session.toggle_explanation() is True
    assert session.toggle_explanation() is False


def test_operations_outside_play_raise() -> None:
    session = QuizSession()

    with pytest.raises(SessionStateError, match="menu"):
        session.answer(0)
    with pytest.raises(SessionStateError):
        session.advance()
    with pytest.raises(SessionStateError):
        session.toggle_explanation()


def test_missing_quiz_leaves_session_untouched(store) -> None:
    session = QuizSession()
    session.exit_to_browsing()

    with pytest.raises(QuizLoadError) as excinfo:
        session.select_quiz(store, "missing")

    assert excinfo.value.quiz_id == "missing"
    assert session.mode is ViewMode.BROWSING
    assert session.active_questions == ()


def test_empty_quiz_cannot_be_played(store) -> None:
    session = QuizSession()
    session.browse()

    with pytest.raises(QuizLoadError, match="no questions"):
        session.select_quiz(store, "empty")

    assert session.mode is ViewMode.BROWSING


def test_store_failure_is_wrapped() -> None:
    session = QuizSession()
    session.browse()

    with pytest.raises(QuizLoadError, match="disk on fire") as excinfo:
        session.select_quiz(ExplodingStore(), "any")

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert session.mode is ViewMode.BROWSING


def test_failed_load_mid_play_keeps_current_attempt(store) -> None:
    session = _playing(store)
    session.answer(0)

    with pytest.raises(QuizLoadError):
        session.select_quiz(store, "missing")

    assert session.mode is ViewMode.PLAYING
    assert session.quiz_id == "four"
    assert session.score == 1


def test_exit_to_browsing_discards_progress(store) -> None:
    session = _playing(store)
    session.answer(0)

    session.exit_to_browsing()

    assert session.mode is ViewMode.BROWSING
    assert session.quiz_id is None
    assert session.score == 0
    assert session.history == []
    assert session.active_questions == ()


def test_exit_to_menu_from_results(store) -> None:
    session = _playing(store, "single")
    session.answer(0)
    session.advance()
    assert session.mode is ViewMode.RESULTS

    session.exit_to_menu()

    assert session.mode is ViewMode.MENU
    assert session.total_questions == 0


def test_replaying_resets_score(store) -> None:
    session = _playing(store, "single")
    session.answer(0)
    session.advance()

    session.browse()
    session.select_quiz(store, "single")

    assert session.score == 0
    assert session.history == []
    assert session.mode is ViewMode.PLAYING


def test_single_question_quiz_finishes_immediately(store) -> None:
    session = _playing(store, "single")

    assert session.is_last_question
    session.answer(1)
    assert session.advance() is ViewMode.RESULTS
    assert build_report(session).percentage == 0


def test_question_by_id() -> None:
    store = MemoryQuestionStore(
        [QuizFile(id="q", timestamp=1, questions=(make_question(9),))]
    )
    session = _playing(store, "q")

    assert session.question_by_id(9) is session.current_question
    assert session.question_by_id(1) is None


def test_history_tracks_index_while_playing(store) -> None:
    session = _playing(store)

    for choice in (0, 1, 0):
        expected = session.current_index + (1 if session.has_answered else 0)
        assert len(session.history) == expected
        session.answer(choice)
        assert len(session.history) == session.current_index + 1
        assert 0 <= session.score <= session.total_questions
        session.advance()

    assert len(session.history) == session.current_index


def test_single_correct_answer_scores_full_marks(store) -> None:
    session = _playing(store, "single")

    session.answer(0)
    session.advance()

    report = build_report(session)
    assert session.mode is ViewMode.RESULTS
    assert (report.score, report.total, report.percentage) == (1, 1, 100)
    assert build_review(session) == []
