"""Shared testing fixtures for the quizdeck test suite."""

from .quizzes import (  # noqa: F401
    make_question,
    make_quiz_file,
    question_record,
    quiz_record,
    write_quiz_json,
)
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "WorkspaceBuilder",
    "build_tree",
    "make_question",
    "make_quiz_file",
    "question_record",
    "quiz_record",
    "write_quiz_json",
]
