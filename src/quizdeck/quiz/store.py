"""Read-only question stores backing quiz selection.

A store answers two questions: which quiz files exist (``list_headers``) and
what questions a given file holds (``load_by_id``). The directory store
rescans its root on every call so files dropped into the workspace show up
without a restart.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol, Sequence

from .errors import QuizDataError
from .models import Question, QuizFile, QuizFileHeader, quiz_file_from_dict

__all__ = [
    "QuestionStore",
    "DirectoryQuestionStore",
    "MemoryQuestionStore",
    "sort_headers",
]

_DEFAULT_LOGGER = logging.getLogger("quizdeck.store")


class QuestionStore(Protocol):
    def list_headers(self) -> list[QuizFileHeader]: ...

    def load_by_id(self, quiz_id: str) -> Optional[list[Question]]: ...


def sort_headers(headers: Iterable[QuizFileHeader]) -> list[QuizFileHeader]:
    """Order headers newest first; equal timestamps fall back to id order."""

    by_id = sorted(headers, key=lambda header: header.id)
    return sorted(by_id, key=lambda header: header.timestamp, reverse=True)


class MemoryQuestionStore:
    """Store over already-parsed quiz files.

    Duplicate ids follow the directory store: every file is listed and
    lookups return the first one added.
    """

    def __init__(self, files: Sequence[QuizFile] = ()) -> None:
        self._files: list[QuizFile] = list(files)

    def add(self, quiz: QuizFile) -> None:
        self._files.append(quiz)

    def list_headers(self) -> list[QuizFileHeader]:
        return sort_headers(quiz.header() for quiz in self._files)

    def load_by_id(self, quiz_id: str) -> Optional[list[Question]]:
        for quiz in self._files:
            if quiz.id == quiz_id:
                return list(quiz.questions)
        return None


@dataclass(frozen=True)
class _LoadedFile:
    path: Path
    quiz: QuizFile


class DirectoryQuestionStore:
    """Store backed by a directory of ``{id, timestamp, questions}`` files."""

    def __init__(
        self,
        root: Path,
        *,
        extensions: Sequence[str] = ("json",),
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.root = Path(root)
        self.extensions = {ext.lower().lstrip(".") for ext in extensions}
        self.logger = logger or _DEFAULT_LOGGER

    def list_headers(self) -> list[QuizFileHeader]:
        try:
            loaded = list(self._iter_loaded())
        except OSError as exc:
            self.logger.warning(
                "Quiz discovery failed",
                extra={"root": str(self.root), "error": str(exc)},
            )
            return []
        headers = sort_headers(entry.quiz.header() for entry in loaded)
        self.logger.debug(
            "Listed quiz files",
            extra={"root": str(self.root), "count": len(headers)},
        )
        return headers

    def load_by_id(self, quiz_id: str) -> Optional[list[Question]]:
        try:
            for entry in self._iter_loaded():
                if entry.quiz.id == quiz_id:
                    self.logger.info(
                        "Loaded quiz file",
                        extra={
                            "quiz_id": quiz_id,
                            "path": entry.path,
                            "question_count": len(entry.quiz.questions),
                        },
                    )
                    return list(entry.quiz.questions)
        except OSError as exc:
            self.logger.warning(
                "Quiz lookup failed",
                extra={"quiz_id": quiz_id, "error": str(exc)},
            )
            return None
        self.logger.info("Quiz file not found", extra={"quiz_id": quiz_id})
        return None

    def _iter_loaded(self) -> Iterator[_LoadedFile]:
        for path in self._iter_paths():
            quiz = self._read(path)
            if quiz is not None:
                yield _LoadedFile(path=path, quiz=quiz)

    def _iter_paths(self) -> Iterator[Path]:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Quiz directory not found: {self.root}")
        for candidate in sorted(self.root.iterdir(), key=lambda p: p.name):
            if not candidate.is_file():
                continue
            if candidate.suffix.lower().lstrip(".") in self.extensions:
                yield candidate

    def _read(self, path: Path) -> Optional[QuizFile]:
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
            return quiz_file_from_dict(payload)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            reason = str(exc)
        except QuizDataError as exc:
            reason = str(exc)
        self.logger.warning(
            "Skipped unreadable quiz file",
            extra={"path": path, "reason": reason},
        )
        return None
