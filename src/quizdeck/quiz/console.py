"""Rich-powered quiz views and the prompt loop that drives them.

Each ``render_*`` function draws one view from a :class:`QuizSession` (or the
data derived from it) and never mutates state. :func:`run_app` reads text
commands, applies them through the session's transitions, and re-renders.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Sequence

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from .errors import QuizLoadError, SessionStateError
from .models import QuizFileHeader, option_label
from .results import (
    DEFAULT_PASS_THRESHOLD,
    ReviewItem,
    ScoreReport,
    build_report,
    build_review,
)
from .session import QuizSession, ViewMode
from .store import QuestionStore

__all__ = [
    "AppResult",
    "Command",
    "parse_command",
    "render_browsing",
    "render_menu",
    "render_question",
    "render_results",
    "run_app",
]

InputProvider = Callable[[], str]
CommandType = Literal[
    "browse",
    "menu",
    "quit",
    "refresh",
    "select",
    "answer",
    "info",
    "next",
    "exit",
]

_DEFAULT_LOGGER = logging.getLogger("quizdeck.console")


@dataclass(frozen=True)
class Command:
    """Normalized user command parsed from console input."""

    type: CommandType
    value: Optional[str] = None


@dataclass(frozen=True)
class AppResult:
    """Return value from :func:`run_app`."""

    final_mode: ViewMode
    last_report: Optional[ScoreReport]
    completed: int


_QUIT_WORDS = {"q", "quit"}
_MENU_WORDS = {"m", "menu"}


def parse_command(
    raw: Optional[str], mode: ViewMode, option_count: int = 0
) -> Optional[Command]:
    """Parse raw input into a command valid for ``mode``.

    ``option_count`` is the number of choices still open to answer; single
    letters inside that range answer before they are read as commands, so
    option F of a six-choice question is not taken for ``f`` (finish).
    """

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in _QUIT_WORDS:
        return Command("quit")

    if mode is ViewMode.MENU:
        if lowered in {"b", "browse", "s", "start"}:
            return Command("browse")
        return None

    if mode is ViewMode.BROWSING:
        if lowered in _MENU_WORDS:
            return Command("menu")
        if lowered in {"r", "refresh"}:
            return Command("refresh")
        return Command("select", text)

    if mode is ViewMode.PLAYING:
        if len(lowered) == 1 and lowered.isalpha():
            index = ord(lowered) - ord("a")
            if index < option_count:
                return Command("answer", str(index))
        if lowered in {"n", "next", "f", "finish"}:
            return Command("next")
        if lowered in {"i", "info"}:
            return Command("info")
        if lowered in {"x", "exit"}:
            return Command("exit")
        if lowered.isdigit():
            return Command("answer", str(int(lowered) - 1))
        if len(lowered) == 1 and lowered.isalpha():
            return Command("answer", str(ord(lowered) - ord("a")))
        return None

    if lowered in {"b", "back", "files"}:
        return Command("browse")
    if lowered in _MENU_WORDS:
        return Command("menu")
    return None


# Views ---------------------------------------------------------------------


def render_menu(console: Console) -> None:
    console.print()
    console.print(
        Panel(
            Group(
                Text("quizdeck", style="bold magenta", justify="center"),
                Text(
                    "Multiple-choice practice from saved quiz files.",
                    style="dim",
                    justify="center",
                ),
            ),
            box=box.DOUBLE,
            border_style="magenta",
        )
    )
    console.print(
        Text("Commands: b (view saved quizzes), q (quit)", style="dim")
    )


def render_browsing(
    console: Console,
    headers: Sequence[QuizFileHeader],
    *,
    empty_hint: Optional[str] = None,
) -> None:
    console.print()
    console.rule(Text("Saved Quizzes", style="bold cyan"))
    if not headers:
        lines = [Text("No quizzes yet.", style="bold")]
        if empty_hint:
            lines.append(Text(empty_hint, style="dim"))
        console.print(Panel(Group(*lines), border_style="yellow"))
        console.print(
            Text("Commands: r (refresh), m (menu), q (quit)", style="dim")
        )
        return

    table = Table(box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Quiz", overflow="fold")
    table.add_column("Created")
    table.add_column("Questions", justify="right")
    for row, header in enumerate(headers, start=1):
        table.add_row(
            str(row),
            Text(header.id),
            header.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            str(header.question_count),
        )
    console.print(table)
    console.print(
        Text(
            "Commands: row number or quiz id (open), r (refresh), m (menu), "
            "q (quit)",
            style="dim",
        )
    )


def render_question(console: Console, session: QuizSession) -> None:
    question = session.current_question
    header = Text.assemble(
        (f"Question {session.current_index + 1}", "bold cyan"),
        (f" / {session.total_questions}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(
        ProgressBar(
            total=session.total_questions,
            completed=session.current_index + 1,
        )
    )
    console.print(Text(question.prompt, style="bold"))
    if question.code:
        console.print(
            Panel(Text(question.code), box=box.ROUNDED, border_style="blue")
        )

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    selected = session.selected_answer
    for index, option in enumerate(question.options):
        text = Text(option)
        if selected is not None:
            if question.is_correct(index):
                text.stylize("bold green")
            elif index == selected:
                text.stylize("bold red")
            else:
                text.stylize("dim")
        table.add_row(Text(f"[{option_label(index)}]"), text)
    console.print(table)

    if selected is None:
        keys = ", ".join(
            option_label(index) for index in range(len(question.options))
        )
        hint = f"Commands: choices [{keys}], x (exit), q (quit)"
    else:
        if question.is_correct(selected):
            console.print(Text("Correct!", style="bold green"))
        else:
            console.print(Text("Incorrect.", style="bold red"))
        if session.show_explanation:
            console.print(
                Panel(
                    Text(question.explanation or "No explanation provided."),
                    title="Explanation",
                    border_style="blue",
                )
            )
        toggle = "hide info" if session.show_explanation else "show info"
        step = "finish" if session.is_last_question else "next"
        hint = f"Commands: i ({toggle}), n ({step}), x (exit), q (quit)"
    console.print(
        Text(
            f"Answered {session.answered_count()}/{session.total_questions}"
            f" | {hint}",
            style="dim",
        )
    )


def render_results(
    console: Console, report: ScoreReport, review: Sequence[ReviewItem]
) -> None:
    console.print()
    console.rule(Text("Results", style="bold magenta"))
    colour = "green" if report.passed else "red"
    verdict = "Passed" if report.passed else "Not passed"
    console.print(
        Text(f"{report.percentage}%", style=f"bold {colour}", justify="center")
    )
    console.print(
        Text(
            f"Score: {report.score} / {report.total} "
            f"({verdict}, pass mark {report.threshold}%)",
            justify="center",
        )
    )

    if not review:
        console.print(
            Panel(
                Text("Perfect!", style="italic", justify="center"),
                title="Incorrect Answers",
            )
        )
    else:
        table = Table(title="Incorrect Answers", box=box.SIMPLE, expand=True)
        table.add_column("Question", overflow="fold")
        table.add_column("Answer", style="green", overflow="fold")
        for item in review:
            table.add_row(Text(item.prompt), Text(item.correct_option))
        console.print(table)
    console.print(
        Text("Commands: b (back to files), m (main menu), q (quit)", style="dim")
    )


# Loop ----------------------------------------------------------------------


def _open_choices(session: QuizSession) -> int:
    if session.mode is not ViewMode.PLAYING or session.has_answered:
        return 0
    return len(session.current_question.options)


def run_app(
    store: QuestionStore,
    console: Console,
    input_provider: InputProvider,
    *,
    session: Optional[QuizSession] = None,
    threshold: int = DEFAULT_PASS_THRESHOLD,
    show_explanations: bool = False,
    empty_hint: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> AppResult:
    """Drive ``session`` with commands from ``input_provider`` until quit."""

    log = logger or _DEFAULT_LOGGER
    state = session or QuizSession()
    headers: list[QuizFileHeader] = []
    if state.mode is ViewMode.BROWSING:
        headers = store.list_headers()
    last_report: Optional[ScoreReport] = None
    completed = 0

    while True:
        if state.mode is ViewMode.MENU:
            render_menu(console)
        elif state.mode is ViewMode.BROWSING:
            render_browsing(console, headers, empty_hint=empty_hint)
        elif state.mode is ViewMode.PLAYING:
            render_question(console, state)
        else:
            if last_report is None:
                last_report = build_report(state, threshold=threshold)
            render_results(console, last_report, build_review(state))

        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            break
        command = parse_command(raw, state.mode, _open_choices(state))
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            break

        previous_mode = state.mode
        _apply_command(
            command,
            state,
            store,
            headers,
            console,
            log,
            show_explanations=show_explanations,
        )
        if state.mode is ViewMode.BROWSING and (
            previous_mode is not ViewMode.BROWSING or command.type == "refresh"
        ):
            headers = store.list_headers()
        if (
            state.mode is ViewMode.RESULTS
            and previous_mode is not ViewMode.RESULTS
        ):
            last_report = build_report(state, threshold=threshold)
            completed += 1
            log.info(
                "Quiz finished",
                extra={
                    "quiz_id": state.quiz_id,
                    "score": last_report.score,
                    "total": last_report.total,
                    "percentage": last_report.percentage,
                    "passed": last_report.passed,
                },
            )

    return AppResult(
        final_mode=state.mode, last_report=last_report, completed=completed
    )


def _apply_command(
    command: Command,
    session: QuizSession,
    store: QuestionStore,
    headers: Sequence[QuizFileHeader],
    console: Console,
    log: logging.Logger,
    *,
    show_explanations: bool,
) -> None:
    kind = command.type
    if kind in ("browse", "exit"):
        session.exit_to_browsing()
    elif kind == "menu":
        session.exit_to_menu()
    elif kind == "refresh":
        pass
    elif kind == "select":
        quiz_id = _resolve_selection(command.value or "", headers)
        try:
            session.select_quiz(store, quiz_id)
        except QuizLoadError as exc:
            log.warning(
                "Quiz load failed",
                extra={"quiz_id": quiz_id, "reason": exc.reason},
            )
            console.print(Text(str(exc), style="red"))
            return
        log.info(
            "Quiz started",
            extra={"quiz_id": quiz_id, "total": session.total_questions},
        )
    elif kind == "answer":
        try:
            accepted = session.answer(int(command.value or "-1"))
        except SessionStateError as exc:
            console.print(Text(str(exc), style="red"))
            return
        if not accepted:
            console.print("[yellow]Answer already submitted.[/]")
        elif show_explanations and not session.show_explanation:
            session.toggle_explanation()
    elif kind == "info":
        try:
            session.toggle_explanation()
        except SessionStateError as exc:
            console.print(Text(str(exc), style="red"))
    elif kind == "next":
        try:
            session.advance()
        except SessionStateError as exc:
            console.print(Text(str(exc), style="red"))


def _resolve_selection(
    value: str, headers: Sequence[QuizFileHeader]
) -> str:
    text = value.strip()
    if text.isdigit():
        row = int(text)
        if 1 <= row <= len(headers):
            return headers[row - 1].id
    return text
