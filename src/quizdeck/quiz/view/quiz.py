from __future__ import annotations

from typing import List, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Vertical
from textual.css.query import NoMatches
from textual.widget import Widget
from textual.widgets import Button, Static

from ..errors import QuizLoadError, SessionStateError
from ..models import QuizFileHeader, option_label
from ..results import (
    DEFAULT_PASS_THRESHOLD,
    ScoreReport,
    build_report,
    build_review,
)
from ..session import QuizSession, ViewMode
from ..store import QuestionStore


class QuizDeckApp(App):
    CSS_PATH = None
    CSS = """
#choices Button.correct { background: $success; color: black; }
#choices Button.wrong { background: $error; }
#notice { color: $warning; }
#percentage.passed { color: $success; }
#percentage.failed { color: $error; }
"""
    BINDINGS = [
        ("l", "browse", "Saved quizzes"),
        ("m", "menu", "Menu"),
        ("a", "choose(0)", "A"),
        ("b", "choose(1)", "B"),
        ("c", "choose(2)", "C"),
        ("d", "choose(3)", "D"),
        ("i", "info", "Info"),
        ("n", "next", "Next"),
        ("x", "exit", "Exit quiz"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        store: QuestionStore,
        *,
        threshold: int = DEFAULT_PASS_THRESHOLD,
        show_explanations: bool = False,
        session: Optional[QuizSession] = None,
    ) -> None:
        super().__init__()
        self.store = store
        self.threshold = threshold
        self.show_explanations = show_explanations
        self.session = session or QuizSession()
        self.headers: List[QuizFileHeader] = []
        self.notice = ""
        if self.session.mode is ViewMode.BROWSING:
            self.headers = self.store.list_headers()

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield from self._stage_widgets()
        yield Static(self.notice, id="notice", markup=False)

    def _stage_widgets(self) -> List[Widget]:
        mode = self.session.mode
        if mode is ViewMode.MENU:
            return [
                Static("quizdeck", id="title"),
                Button("View Saved Quizzes", id="browse"),
            ]
        if mode is ViewMode.BROWSING:
            return self._browsing_widgets()
        if mode is ViewMode.PLAYING:
            return [QuestionView(self.session)]
        return [ResultsView(self.report(), self.review_lines())]

    def _browsing_widgets(self) -> List[Widget]:
        widgets: List[Widget] = [Static("Saved Quizzes", id="heading")]
        if not self.headers:
            widgets.append(Static("No quizzes yet.", id="empty"))
        for row, header in enumerate(self.headers):
            created = header.created_at.strftime("%Y-%m-%d %H:%M")
            label = Text(
                f"{header.id}  ({created}, "
                f"{header.question_count} questions)"
            )
            widgets.append(Button(label, id=f"file-{row}"))
        widgets.append(Button("Back to Menu", id="menu"))
        return widgets

    # Pure helpers for transitions (testable without running App)
    def open_browser(self) -> None:
        self.session.exit_to_browsing()
        self.headers = self.store.list_headers()
        self._set_notice("")

    def back_to_menu(self) -> None:
        self.session.exit_to_menu()
        self._set_notice("")

    def select_file(self, quiz_id: str) -> bool:
        try:
            self.session.select_quiz(self.store, quiz_id)
        except QuizLoadError as exc:
            self._set_notice(str(exc))
            return False
        self._set_notice("")
        return True

    def choose(self, index: int) -> bool:
        try:
            accepted = self.session.answer(index)
        except SessionStateError as exc:
            self._set_notice(str(exc))
            return False
        if accepted and self.show_explanations:
            self.session.toggle_explanation()
        self._set_notice("")
        return accepted

    def toggle_info(self) -> bool:
        try:
            self.session.toggle_explanation()
        except SessionStateError as exc:
            self._set_notice(str(exc))
            return False
        self._update_stage()
        return True

    def next_question(self) -> ViewMode:
        try:
            self.session.advance()
        except SessionStateError as exc:
            self._set_notice(str(exc))
            return self.session.mode
        self._set_notice("")
        return self.session.mode

    def report(self) -> ScoreReport:
        return build_report(self.session, threshold=self.threshold)

    def review_lines(self) -> List[str]:
        return [
            f"Q: {item.prompt}\nAns: {item.correct_option}"
            for item in build_review(self.session)
        ]

    def _set_notice(self, text: str) -> None:
        self.notice = text
        self._update_stage()

    def _update_stage(self) -> None:
        if not self.is_running:
            return
        try:
            stage = self.query_one("#stage", Container)
            notice = self.query_one("#notice", Static)
        except NoMatches:
            return
        stage.remove_children()
        # Fresh wrapper so ids from the outgoing view never clash as siblings.
        stage.mount(Vertical(*self._stage_widgets()))
        notice.update(self.notice)

    # Actions and events
    def action_browse(self) -> None:
        self.open_browser()

    def action_menu(self) -> None:
        self.back_to_menu()

    def action_choose(self, index: int) -> None:
        if self.session.mode is ViewMode.PLAYING:
            self.choose(index)

    def action_info(self) -> None:
        if self.session.mode is ViewMode.PLAYING:
            self.toggle_info()

    def action_next(self) -> None:
        if self.session.mode is ViewMode.PLAYING:
            self.next_question()

    def action_exit(self) -> None:
        if self.session.mode in (ViewMode.PLAYING, ViewMode.RESULTS):
            self.open_browser()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("file-"):
            row = int(bid[len("file-"):])
            if 0 <= row < len(self.headers):
                self.select_file(self.headers[row].id)
        elif bid.startswith("choice-"):
            self.choose(int(bid[len("choice-"):]))
        elif bid == "browse":
            self.open_browser()
        elif bid == "menu":
            self.back_to_menu()
        elif bid == "info":
            self.toggle_info()
        elif bid == "next":
            self.next_question()


class QuestionView(Widget):
    """Renders the active question, its options and answer feedback."""

    def __init__(self, session: QuizSession) -> None:
        super().__init__()
        self.session = session
        self.question = session.current_question

    def compose(self) -> ComposeResult:
        index = self.session.current_index + 1
        total = self.session.total_questions
        yield Static(f"Question {index} / {total}", id="progress")
        # Prompts and code often contain brackets; render them literally.
        yield Static(self.question.prompt, id="prompt", markup=False)
        if self.question.code:
            yield Static(self.question.code, id="code", markup=False)
        selected = self.session.selected_answer
        with Vertical(id="choices"):
            for idx, text in enumerate(self.question.options):
                btn = Button(
                    Text(f"{option_label(idx)}) {text}"),
                    id=f"choice-{idx}",
                    disabled=selected is not None,
                )
                css_class = self.option_class(idx)
                if css_class:
                    btn.add_class(css_class)
                yield btn
        yield Static(self.feedback_text(), id="feedback", markup=False)
        if selected is not None:
            label = "Hide Info" if self.session.show_explanation else "Show Info"
            yield Button(label, id="info")
            yield Button(
                "Finish" if self.session.is_last_question else "Next",
                id="next",
            )

    def option_class(self, index: int) -> Optional[str]:
        selected = self.session.selected_answer
        if selected is None:
            return None
        if self.question.is_correct(index):
            return "correct"
        if index == selected:
            return "wrong"
        return None

    def feedback_text(self) -> str:
        selected = self.session.selected_answer
        if selected is None:
            return ""
        verdict = (
            "Correct!" if self.question.is_correct(selected) else "Incorrect."
        )
        if self.session.show_explanation and self.question.explanation:
            return f"{verdict}\n{self.question.explanation}"
        return verdict


class ResultsView(Widget):
    def __init__(self, report: ScoreReport, review: List[str]) -> None:
        super().__init__()
        self.report = report
        self.review = review

    def compose(self) -> ComposeResult:
        pct = Static(f"{self.report.percentage}%", id="percentage")
        pct.add_class("passed" if self.report.passed else "failed")
        yield pct
        yield Static(
            f"Score: {self.report.score} / {self.report.total}", id="score"
        )
        yield Static("Incorrect Answers", id="review-title")
        if not self.review:
            yield Static("Perfect!", id="perfect")
        for idx, line in enumerate(self.review):
            yield Static(line, id=f"review-{idx}", markup=False)
        yield Button("Back to Files", id="browse")
        yield Button("Main Menu", id="menu")
