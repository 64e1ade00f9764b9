from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import WorkspaceBuilder  # noqa: E402
from quizdeck.core.workspace import WORKSPACE_ENV  # noqa: E402


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a workspace helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path / "workspace")


@pytest.fixture(autouse=True)
def _isolate_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    monkeypatch.setenv(WORKSPACE_ENV, str(tmp_path / "default-workspace"))
    for name in (
        "QUIZDECK_CONFIG",
        "QUIZDECK_QUIZ_DIR",
        "QUIZDECK_PASS_THRESHOLD",
        "QUIZDECK_REMOTE_URL",
        "QUIZDECK_LOG_LEVEL",
        "QUIZDECK_API_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    logger = logging.getLogger("quizdeck")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
