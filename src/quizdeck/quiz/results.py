"""Score summary and review list for a finished quiz."""

from __future__ import annotations

from dataclasses import dataclass

from .session import QuizSession

DEFAULT_PASS_THRESHOLD = 65


@dataclass(frozen=True)
class ScoreReport:
    score: int
    total: int
    percentage: int
    threshold: int
    passed: bool


@dataclass(frozen=True)
class ReviewItem:
    """An incorrectly answered question with the answer it expected."""

    question_id: int
    prompt: str
    correct_option: str


def percentage(score: int, total: int) -> int:
    """Return ``100 * score / total`` rounded to the nearest integer.

    Halves round up (12.5 -> 13) rather than to even.
    """

    if total <= 0:
        return 0
    return (200 * score + total) // (2 * total)


def build_report(
    session: QuizSession, *, threshold: int = DEFAULT_PASS_THRESHOLD
) -> ScoreReport:
    pct = percentage(session.score, session.total_questions)
    return ScoreReport(
        score=session.score,
        total=session.total_questions,
        percentage=pct,
        threshold=threshold,
        passed=pct >= threshold,
    )


def build_review(session: QuizSession) -> list[ReviewItem]:
    items: list[ReviewItem] = []
    for entry in session.history:
        if entry.correct:
            continue
        question = session.question_by_id(entry.question_id)
        if question is None:
            continue
        items.append(
            ReviewItem(
                question_id=question.id,
                prompt=question.prompt,
                correct_option=question.correct_option,
            )
        )
    return items
