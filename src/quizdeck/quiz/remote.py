"""Best-effort write path for generated question lists.

Saving is independent of the read store: the remote service may live on a
different backend entirely, and nothing here touches a running session.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Optional, Sequence

import httpx
from dotenv import load_dotenv

from .errors import QuizSaveError
from .models import Question, QuizFile, quiz_file_to_dict, questions_to_records

__all__ = [
    "TOKEN_ENV",
    "RemoteQuizWriter",
    "load_token",
    "write_quiz_file",
]

TOKEN_ENV = "QUIZDECK_API_TOKEN"

_DEFAULT_LOGGER = logging.getLogger("quizdeck.remote")


def load_token() -> Optional[str]:
    """Return the API token from the environment or a ``.env`` file."""

    load_dotenv()
    token = os.getenv(TOKEN_ENV)
    if token is None:
        return None
    return token.strip() or None


class RemoteQuizWriter:
    """POST question lists to ``<base_url>/quizzes`` and return the new id."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        token: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.token = token
        self._client = client
        self.logger = logger or _DEFAULT_LOGGER

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/quizzes"

    def save(self, questions: Sequence[Question]) -> str:
        body = {"questions": questions_to_records(questions)}
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self._post(body, headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            self._log_failure(f"HTTP {exc.response.status_code}")
            raise QuizSaveError(
                "Server error: {0} {1}".format(
                    exc.response.status_code, exc.response.reason_phrase
                )
            ) from exc
        except httpx.HTTPError as exc:
            self._log_failure(str(exc))
            raise QuizSaveError(
                f"Failed to reach quiz service at {self.endpoint}: {exc}"
            ) from exc
        except ValueError as exc:
            self._log_failure("invalid JSON response")
            raise QuizSaveError("Quiz service returned invalid JSON.") from exc

        quiz_id = _extract_id(payload)
        if quiz_id is None:
            self._log_failure("response missing id")
            raise QuizSaveError("Quiz service response did not include an id.")
        self.logger.info(
            "Saved quiz to remote service",
            extra={
                "endpoint": self.endpoint,
                "quiz_id": quiz_id,
                "question_count": len(questions),
            },
        )
        return quiz_id

    def _post(self, body: dict[str, Any], headers: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return self._client.post(self.endpoint, json=body, headers=headers)
        with httpx.Client(timeout=self.timeout_seconds) as client:
            return client.post(self.endpoint, json=body, headers=headers)

    def _log_failure(self, reason: str) -> None:
        self.logger.error(
            "Failed to save quiz to remote service",
            extra={"endpoint": self.endpoint, "reason": reason},
        )


def _extract_id(payload: object) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    value = payload.get("id")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def write_quiz_file(
    directory: Path,
    questions: Sequence[Question],
    *,
    quiz_id: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> Path:
    """Export ``questions`` as a quiz file the directory store can list."""

    stamp = timestamp if timestamp is not None else int(time.time() * 1000)
    identifier = quiz_id or f"quiz-{stamp}"
    if "/" in identifier or "\\" in identifier:
        raise QuizSaveError(
            f"Quiz id cannot contain a path separator: {identifier!r}"
        )
    quiz = QuizFile(id=identifier, timestamp=stamp, questions=tuple(questions))
    target = directory / f"{identifier}.json"
    if target.exists():
        raise QuizSaveError(f"Quiz file already exists: {target}")
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with target.open("x", encoding="utf-8") as handle:
            json.dump(
                quiz_file_to_dict(quiz), handle, ensure_ascii=False, indent=2
            )
            handle.write("\n")
    except OSError as exc:
        raise QuizSaveError(f"Could not write {target}: {exc}") from exc
    return target
