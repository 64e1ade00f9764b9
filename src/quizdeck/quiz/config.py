"""Configuration loader for quizdeck commands."""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from quizdeck.core import config as core_config
from quizdeck.core import workspace as workspace_mod

from .results import DEFAULT_PASS_THRESHOLD

CONFIG_FILENAME = "quizdeck.toml"
CONFIG_ENV = "QUIZDECK_CONFIG"
ENV_PREFIX = "QUIZDECK_"

_DEFAULT_REMOTE_URL = "http://localhost:3001/api"
_DEFAULT_TIMEOUT = 10
_DEFAULT_LOG_LEVEL = "INFO"


class QuizDeckConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizDeckConfig:
    quiz_dir: Path
    pass_threshold: int
    show_explanations: bool
    remote_url: str
    remote_timeout: float
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    quiz_dir: Optional[Path] = None
    pass_threshold: Optional[int] = None
    show_explanations: Optional[bool] = None
    remote_url: Optional[str] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: QuizDeckConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults.

    A missing default config file is fine; a config file named explicitly
    (argument or ``QUIZDECK_CONFIG``) must exist.
    """

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise QuizDeckConfigError(str(exc)) from exc

    explicit = config_path is not None or bool(
        (env_map.get(CONFIG_ENV) or "").strip()
    )
    requested = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        try:
            core_config.merge_defaults(
                table, core_config.load_toml(requested)
            )
        except core_config.TomlConfigError as exc:
            raise QuizDeckConfigError(str(exc)) from exc
        loaded_path = requested
    elif explicit:
        raise QuizDeckConfigError(f"Config file not found: {requested}")

    quiz_dir = _resolve_quiz_dir(
        _pick_first(
            overrides.quiz_dir,
            _parse_env_path(env_map, "QUIZ_DIR"),
            _coerce_optional_path(table["store"]["quiz_dir"]),
        ),
        layout=layout,
    )
    threshold = _resolve_threshold(
        _pick_first(
            overrides.pass_threshold,
            _parse_env_string(env_map, "PASS_THRESHOLD"),
            table["results"]["pass_threshold"],
        )
    )
    show_explanations = _pick_first(
        overrides.show_explanations, table["session"]["show_explanations"]
    )
    if not isinstance(show_explanations, bool):
        raise QuizDeckConfigError(
            "session.show_explanations must be true or false."
        )
    remote_url = _resolve_string(
        _pick_first(
            overrides.remote_url,
            _parse_env_string(env_map, "REMOTE_URL"),
            table["remote"]["base_url"],
        ),
        "remote.base_url",
    )
    timeout = table["remote"]["timeout_seconds"]
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise QuizDeckConfigError("remote.timeout_seconds must be a number.")
    if timeout <= 0:
        raise QuizDeckConfigError("remote.timeout_seconds must be positive.")
    log_level = _resolve_string(
        _pick_first(
            overrides.log_level,
            _parse_env_string(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        ),
        "logging.level",
    ).upper()

    config = QuizDeckConfig(
        quiz_dir=quiz_dir,
        pass_threshold=threshold,
        show_explanations=show_explanations,
        remote_url=remote_url,
        remote_timeout=float(timeout),
        log_level=log_level,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def template_text() -> str:
    """Return the packaged ``quizdeck.toml`` template."""

    return (
        resources.files(__package__)
        .joinpath(CONFIG_FILENAME)
        .read_text(encoding="utf-8")
    )


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_toml_template(
            path, template=template_text(), overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise QuizDeckConfigError(str(exc)) from exc


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "store": {"quiz_dir": ""},
        "results": {"pass_threshold": DEFAULT_PASS_THRESHOLD},
        "session": {"show_explanations": False},
        "remote": {
            "base_url": _DEFAULT_REMOTE_URL,
            "timeout_seconds": _DEFAULT_TIMEOUT,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _coerce_optional_path(value: object) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, str):
        raw = value.strip()
        return Path(raw) if raw else None
    raise QuizDeckConfigError("store.quiz_dir must be a string.")


def _resolve_quiz_dir(
    candidate: object, *, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if candidate is None:
        return layout.path_for("quizzes")
    path = Path(candidate).expanduser()  # type: ignore[arg-type]
    if not path.is_absolute():
        path = layout.home / path
    return path.resolve()


def _resolve_threshold(value: object) -> int:
    if isinstance(value, bool):
        raise QuizDeckConfigError("results.pass_threshold must be a number.")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as exc:
            raise QuizDeckConfigError(
                f"Invalid pass threshold '{value}'."
            ) from exc
    if not isinstance(value, int):
        raise QuizDeckConfigError("results.pass_threshold must be an integer.")
    if not 0 <= value <= 100:
        raise QuizDeckConfigError(
            "results.pass_threshold must be between 0 and 100."
        )
    return value


def _resolve_string(value: object, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizDeckConfigError(f"{key} must be a non-empty string.")
    return value.strip()


def _parse_env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    return Path(raw).expanduser()


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
