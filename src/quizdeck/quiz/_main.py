import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console

from ..core import workspace as workspace_mod
from ..core.logging import configure_logger
from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    LoadResult,
    QuizDeckConfigError,
    load_config,
    write_template,
)
from .console import run_app
from .errors import QuizDataError, QuizLoadError, QuizSaveError
from .models import Question, question_from_dict
from .remote import RemoteQuizWriter, load_token, write_quiz_file
from .session import QuizSession, ViewMode
from .store import DirectoryQuestionStore
from .view.quiz import QuizDeckApp


@dataclass(frozen=True)
class _Runtime:
    loaded: LoadResult
    store: DirectoryQuestionStore
    logger: logging.Logger
    log_path: Path


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to quizdeck.toml (defaults to the workspace config dir).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root (QUIZDECK_DATA_HOME).",
    )
    parser.add_argument(
        "--quiz-dir",
        type=Path,
        help="Directory of quiz JSON files to read.",
    )
    parser.add_argument("--log-level", help="Logging level for this run.")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log output to stderr.",
    )


def _prepare(args: argparse.Namespace) -> _Runtime:
    overrides = ConfigOverrides(
        quiz_dir=args.quiz_dir,
        pass_threshold=getattr(args, "threshold", None),
        show_explanations=getattr(args, "explain", None),
        remote_url=getattr(args, "url", None),
        log_level=args.log_level,
    )
    loaded = load_config(
        config_path=args.config,
        overrides=overrides,
        workspace_path=args.workspace,
    )
    logger, log_path = configure_logger(
        "quizdeck",
        log_dir=loaded.layout.path_for("logs"),
        level=loaded.config.log_level,
        verbose=bool(args.verbose),
    )
    logger.debug(
        "quizdeck command invoked",
        extra={"command": args.command, "config_path": loaded.config_path},
    )
    store = DirectoryQuestionStore(loaded.config.quiz_dir)
    return _Runtime(
        loaded=loaded, store=store, logger=logger, log_path=log_path
    )


def _cmd_list(args: argparse.Namespace, runtime: _Runtime) -> int:
    headers = runtime.store.list_headers()
    if not headers:
        print(f"No quiz files found in {runtime.loaded.config.quiz_dir}.")
        return 1
    if args.json:
        payload = [
            {
                "id": header.id,
                "timestamp": header.timestamp,
                "questionCount": header.question_count,
            }
            for header in headers
        ]
        print(json.dumps(payload, indent=2))
        return 0
    for header in headers:
        created = header.created_at.strftime("%Y-%m-%d %H:%M UTC")
        print(f"- {header.id}  {created}  {header.question_count} question(s)")
    return 0


def _cmd_play(args: argparse.Namespace, runtime: _Runtime) -> int:
    """Run the Rich prompt loop, optionally opening a quiz straight away."""

    config = runtime.loaded.config
    console = Console()
    session = QuizSession()
    if args.quiz:
        session.browse()
        try:
            session.select_quiz(runtime.store, args.quiz)
        except QuizLoadError as exc:
            runtime.logger.warning(
                "Quiz load failed",
                extra={"quiz_id": args.quiz, "reason": exc.reason},
            )
            sys.stderr.write(f"Error: {exc}\n")
            return 1
    result = run_app(
        runtime.store,
        console,
        lambda: console.input("[bold]> [/]"),
        session=session,
        threshold=config.pass_threshold,
        show_explanations=config.show_explanations,
        empty_hint=f"Add quiz JSON files to {config.quiz_dir}.",
    )
    runtime.logger.info(
        "Play session ended",
        extra={
            "final_mode": result.final_mode.value,
            "completed": result.completed,
        },
    )
    return 0


def _cmd_tui(args: argparse.Namespace, runtime: _Runtime) -> int:
    config = runtime.loaded.config
    start = ViewMode.BROWSING if args.browse else ViewMode.MENU
    session = QuizSession(mode=start)
    app = QuizDeckApp(
        runtime.store,
        threshold=config.pass_threshold,
        show_explanations=config.show_explanations,
        session=session,
    )
    app.run()
    return 0


def _read_questions(path: Path) -> List[Question]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except FileNotFoundError as exc:
        raise QuizDataError(f"Input not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise QuizDataError(f"Could not read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise QuizDataError(f"{path.name} is not valid JSON: {exc}") from exc
    if isinstance(payload, dict):
        payload = payload.get("questions")
    if not isinstance(payload, list) or not payload:
        raise QuizDataError(
            f"{path.name} must hold a non-empty list of questions."
        )
    return [question_from_dict(item) for item in payload]


def _cmd_save(args: argparse.Namespace, runtime: _Runtime) -> int:
    config = runtime.loaded.config
    try:
        questions = _read_questions(args.file)
    except QuizDataError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2
    try:
        if args.local:
            target = write_quiz_file(
                config.quiz_dir, questions, quiz_id=args.id
            )
            runtime.logger.info(
                "Wrote local quiz file",
                extra={"path": target, "question_count": len(questions)},
            )
            print(f"Wrote {len(questions)} question(s) -> {target}")
            return 0
        writer = RemoteQuizWriter(
            config.remote_url,
            timeout_seconds=config.remote_timeout,
            token=load_token(),
        )
        quiz_id = writer.save(questions)
    except QuizSaveError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    print(f"Saved {len(questions)} question(s) as '{quiz_id}'")
    return 0


def _cmd_config_init(args: argparse.Namespace) -> int:
    if args.path is not None:
        target = args.path.expanduser()
        if not target.is_absolute():
            target = (Path.cwd() / target).resolve()
    else:
        try:
            layout = workspace_mod.ensure_workspace(path=args.workspace)
        except workspace_mod.WorkspaceError as exc:
            sys.stderr.write(f"{exc}\n")
            return 1
        target = layout.path_for("config") / CONFIG_FILENAME

    try:
        written = write_template(target, overwrite=args.force)
    except QuizDeckConfigError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    print(f"Wrote quizdeck config to {written}")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quizdeck",
        description="Multiple-choice quizzes from saved quiz files",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_list = sub.add_parser("list", help="List saved quizzes, newest first")
    _add_common_options(sp_list)
    sp_list.add_argument(
        "--json", action="store_true", help="Print headers as JSON"
    )

    sp_play = sub.add_parser("play", help="Take a quiz in the terminal")
    _add_common_options(sp_play)
    sp_play.add_argument("--quiz", help="Open this quiz id immediately")
    sp_play.add_argument("--threshold", type=int, help="Pass mark in percent")
    sp_play.add_argument("--explain", dest="explain", action="store_true")
    sp_play.add_argument("--no-explain", dest="explain", action="store_false")
    sp_play.set_defaults(explain=None)

    sp_tui = sub.add_parser("tui", help="Take a quiz in the Textual UI")
    _add_common_options(sp_tui)
    sp_tui.add_argument("--threshold", type=int, help="Pass mark in percent")
    sp_tui.add_argument(
        "--browse",
        action="store_true",
        help="Start on the saved quiz list instead of the menu",
    )

    sp_save = sub.add_parser(
        "save", help="Save a question list to the quiz service"
    )
    _add_common_options(sp_save)
    sp_save.add_argument("file", type=Path, help="JSON file with questions")
    sp_save.add_argument("--url", help="Quiz service base URL")
    sp_save.add_argument(
        "--local",
        action="store_true",
        help="Write a quiz file into the quiz directory instead",
    )
    sp_save.add_argument("--id", help="Quiz id to use with --local")

    sp_cfg = sub.add_parser("config", help="Manage quizdeck.toml")
    cfg_sub = sp_cfg.add_subparsers(dest="action", required=True)
    sp_cfg_init = cfg_sub.add_parser(
        "init", help="Write the default quizdeck.toml template"
    )
    sp_cfg_init.add_argument("--path", type=Path)
    sp_cfg_init.add_argument("--workspace", type=Path)
    sp_cfg_init.add_argument("--force", action="store_true")
    return p


_HANDLERS = {
    "list": _cmd_list,
    "play": _cmd_play,
    "tui": _cmd_tui,
    "save": _cmd_save,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command == "config":
        return _cmd_config_init(args)
    try:
        runtime = _prepare(args)
    except QuizDeckConfigError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2
    return _HANDLERS[args.command](args, runtime)
