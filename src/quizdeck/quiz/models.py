"""Immutable quiz models and conversion from stored JSON records.

Quiz files on disk (and on the remote service) use the camelCase layout::

    {"id": "java-core", "timestamp": 1717000000000,
     "questions": [{"id": 1, "question": "...", "code": "...",
                    "options": ["...", "..."], "correctAnswer": 0,
                    "explanation": "..."}]}

The helpers here normalize those records into frozen dataclasses so the
session never deals with raw dictionaries.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .errors import QuizDataError

__all__ = [
    "Question",
    "QuizFile",
    "QuizFileHeader",
    "option_label",
    "question_from_dict",
    "question_to_dict",
    "questions_to_records",
    "quiz_file_from_dict",
    "quiz_file_to_dict",
]


def option_label(index: int) -> str:
    """Return the letter shown next to an option (``0 -> "A"``)."""

    return chr(ord("A") + index)


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question."""

    id: int
    prompt: str
    options: tuple[str, ...]
    correct_answer: int
    explanation: str = ""
    code: str | None = None

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_answer]

    def is_correct(self, index: int) -> bool:
        return index == self.correct_answer

    def option_label(self, index: int) -> str:
        return option_label(index)


@dataclass(frozen=True)
class QuizFileHeader:
    """Lightweight listing entry for a stored quiz file."""

    id: str
    timestamp: int
    question_count: int

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class QuizFile:
    id: str
    timestamp: int
    questions: tuple[Question, ...]

    def header(self) -> QuizFileHeader:
        return QuizFileHeader(
            id=self.id,
            timestamp=self.timestamp,
            question_count=len(self.questions),
        )


def question_from_dict(data: Mapping[str, Any]) -> Question:
    """Build a :class:`Question` from a stored record."""

    if not isinstance(data, Mapping):
        raise QuizDataError(
            f"Question must be an object, found {type(data).__name__}."
        )
    identifier = _coerce_int(data.get("id"), "question id")
    prompt = data.get("question", data.get("prompt"))
    if not isinstance(prompt, str) or not prompt.strip():
        raise QuizDataError(f"Question {identifier} is missing its prompt.")

    raw_options = data.get("options")
    if not isinstance(raw_options, Sequence) or isinstance(
        raw_options, (str, bytes)
    ):
        raise QuizDataError(f"Question {identifier} must list its options.")
    options = tuple(str(option) for option in raw_options)
    if len(options) < 2:
        raise QuizDataError(
            f"Question {identifier} needs at least two options."
        )

    correct = _coerce_int(
        data.get("correctAnswer", data.get("correct_answer")),
        f"correctAnswer of question {identifier}",
    )
    if not 0 <= correct < len(options):
        raise QuizDataError(
            f"Question {identifier} has correctAnswer {correct} outside "
            f"0..{len(options) - 1}."
        )

    code = data.get("code")
    explanation = data.get("explanation")
    return Question(
        id=identifier,
        prompt=prompt.strip(),
        options=options,
        correct_answer=correct,
        explanation=str(explanation) if explanation is not None else "",
        code=str(code) if code else None,
    )


def question_to_dict(question: Question) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": question.id,
        "question": question.prompt,
        "options": list(question.options),
        "correctAnswer": question.correct_answer,
        "explanation": question.explanation,
    }
    if question.code:
        record["code"] = question.code
    return record


def quiz_file_from_dict(data: Mapping[str, Any]) -> QuizFile:
    """Build a :class:`QuizFile` from a stored ``{id, timestamp, questions}``."""

    if not isinstance(data, Mapping):
        raise QuizDataError(
            f"Quiz file must be an object, found {type(data).__name__}."
        )
    quiz_id = data.get("id")
    if not isinstance(quiz_id, str) or not quiz_id.strip():
        raise QuizDataError("Quiz file is missing a string 'id'.")
    timestamp = _coerce_int(data.get("timestamp", 0), "timestamp")
    raw_questions = data.get("questions")
    if raw_questions is None:
        raw_questions = []
    if not isinstance(raw_questions, list):
        raise QuizDataError(f"Quiz '{quiz_id}' questions must be a list.")
    questions = tuple(question_from_dict(item) for item in raw_questions)
    return QuizFile(id=quiz_id.strip(), timestamp=timestamp, questions=questions)


def quiz_file_to_dict(quiz: QuizFile) -> dict[str, Any]:
    return {
        "id": quiz.id,
        "timestamp": quiz.timestamp,
        "questions": questions_to_records(quiz.questions),
    }


def questions_to_records(questions: Iterable[Question]) -> list[dict[str, Any]]:
    return [question_to_dict(question) for question in questions]


def _coerce_int(value: object, label: str) -> int:
    # bool is an int subclass; a stored ``true`` is never a valid index.
    if isinstance(value, bool):
        raise QuizDataError(f"Expected an integer for {label}, found bool.")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise QuizDataError(f"Expected an integer for {label}, found {value!r}.")
