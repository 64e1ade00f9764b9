from __future__ import annotations

import json
import logging

import httpx
import pytest

from fixtures import make_question
from quizdeck.quiz.errors import QuizSaveError
from quizdeck.quiz.remote import (
    TOKEN_ENV,
    RemoteQuizWriter,
    load_token,
    write_quiz_file,
)
from quizdeck.quiz.store import DirectoryQuestionStore


QUESTIONS = [make_question(1, code="int x = 1;"), make_question(2, correct=3)]


def _writer(handler, **kwargs) -> RemoteQuizWriter:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RemoteQuizWriter("http://quiz.test/api/", client=client, **kwargs)


def test_save_posts_questions_and_returns_id() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(201, json={"id": "abc123"})

    quiz_id = _writer(handler).save(QUESTIONS)

    assert quiz_id == "abc123"
    assert seen["url"] == "http://quiz.test/api/quizzes"
    assert seen["method"] == "POST"
    assert seen["auth"] is None
    body = seen["body"]
    assert isinstance(body, dict)
    assert [q["id"] for q in body["questions"]] == [1, 2]
    assert body["questions"][0]["code"] == "int x = 1;"
    assert body["questions"][1]["correctAnswer"] == 3


def test_save_sends_bearer_token() -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"id": 7})

    assert _writer(handler, token="s3cret").save(QUESTIONS) == "7"
    assert captured["auth"] == "Bearer s3cret"


def test_server_error_is_reported_with_status(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    with caplog.at_level(logging.ERROR, logger="quizdeck.remote"):
        with pytest.raises(QuizSaveError, match="Server error: 500 Internal Server Error"):
            _writer(handler).save(QUESTIONS)

    assert "Failed to save quiz" in caplog.text


def test_connection_failure_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(QuizSaveError, match="Failed to reach quiz service"):
        _writer(handler).save(QUESTIONS)


def test_invalid_json_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    with pytest.raises(QuizSaveError, match="invalid JSON"):
        _writer(handler).save(QUESTIONS)


@pytest.mark.parametrize("payload", [{}, {"id": ""}, ["abc"], {"id": None}])
def test_response_without_id(payload) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    with pytest.raises(QuizSaveError, match="did not include an id"):
        _writer(handler).save(QUESTIONS)


def test_load_token_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv(TOKEN_ENV, "  token-value ")
    assert load_token() == "token-value"

    monkeypatch.setenv(TOKEN_ENV, "   ")
    assert load_token() is None


def test_write_quiz_file_is_listed_by_directory_store(tmp_path) -> None:
    target = write_quiz_file(
        tmp_path / "quizzes", QUESTIONS, quiz_id="exported", timestamp=1234
    )

    assert target.name == "exported.json"
    store = DirectoryQuestionStore(tmp_path / "quizzes")
    headers = store.list_headers()
    assert [(h.id, h.timestamp, h.question_count) for h in headers] == [
        ("exported", 1234, 2)
    ]
    loaded = store.load_by_id("exported")
    assert loaded is not None
    assert loaded[0].code == "int x = 1;"


def test_write_quiz_file_defaults_id_from_timestamp(tmp_path) -> None:
    target = write_quiz_file(tmp_path, QUESTIONS, timestamp=99)

    assert target.name == "quiz-99.json"
    assert json.loads(target.read_text(encoding="utf-8"))["id"] == "quiz-99"


def test_write_quiz_file_refuses_to_overwrite(tmp_path) -> None:
    write_quiz_file(tmp_path, QUESTIONS, quiz_id="dup", timestamp=1)

    with pytest.raises(QuizSaveError, match="already exists"):
        write_quiz_file(tmp_path, QUESTIONS, quiz_id="dup", timestamp=2)
