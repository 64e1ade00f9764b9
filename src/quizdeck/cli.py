"""Top-level ``quizdeck`` command.

Each entry in :data:`COMMANDS` names the module whose ``main(argv)`` handles
it, plus any leading arguments to inject (``quizzes`` is ``list`` in the quiz
parser). Modules are imported lazily so ``quizdeck --help`` does not pull in
Textual.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Mapping, Optional, Sequence, TextIO

_QUIZ_MODULE = "quizdeck.quiz._main"


@dataclass(frozen=True)
class CommandSpec:
    name: str
    summary: str
    module: str = _QUIZ_MODULE
    prefix: tuple[str, ...] = ()
    is_tui: bool = False

    @property
    def prog(self) -> str:
        return f"quizdeck {self.name}"


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        "init",
        "Bootstrap the quizdeck workspace.",
        module="quizdeck.workspace.cli",
    ),
    CommandSpec(
        "quizzes", "List saved quiz files, newest first.", prefix=("list",)
    ),
    CommandSpec(
        "play", "Take a quiz in the Rich prompt loop.", prefix=("play",)
    ),
    CommandSpec(
        "tui",
        "Take a quiz in the Textual interface.",
        prefix=("tui",),
        is_tui=True,
    ),
    CommandSpec(
        "save", "Send a question list to the quiz service.", prefix=("save",)
    ),
    CommandSpec(
        "config",
        "Write the default quizdeck.toml template.",
        prefix=("config",),
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    width = max(len(name) for name in COMMANDS)
    rows = ["Available commands:"]
    for spec in _COMMAND_SPECS:
        marker = " (TUI)" if spec.is_tui else ""
        rows.append(f"  {spec.name.ljust(width)}  {spec.summary}{marker}")
    return "\n".join(rows)


def format_usage() -> str:
    return "\n".join(
        [
            "Usage: quizdeck <command> [args...]",
            "Run `quizdeck list` for commands or `quizdeck help <name>` "
            "for details.",
            "",
            format_command_table(),
        ]
    )


def _emit(text: str, stream: Optional[TextIO] = None) -> None:
    (stream or sys.stdout).write(text + "\n")


def _unknown(name: str) -> int:
    _emit(f"Unknown command '{name}'.", sys.stderr)
    _emit(format_command_table(), sys.stderr)
    return 2


def _version() -> str:
    try:
        return metadata.version("quizdeck")
    except metadata.PackageNotFoundError:
        return "unknown"


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _emit(format_usage())
        return 2

    head, rest = args[0], args[1:]
    if head in ("-h", "--help"):
        _emit(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        _emit(_version())
        return 0
    if head == "list":
        _emit(format_command_table())
        return 0
    if head == "help":
        if not rest:
            _emit(format_usage())
            return 0
        spec = COMMANDS.get(rest[0])
        if spec is None:
            return _unknown(rest[0])
        _emit(f"{spec.name}: {spec.summary}")
        _emit(f"Run `{spec.prog} --help` for CLI-specific options.")
        return 0

    spec = COMMANDS.get(head)
    if spec is None:
        return _unknown(head)
    return dispatch(spec, rest)


def dispatch(spec: CommandSpec, argv: Sequence[str]) -> int:
    """Run ``spec``'s module ``main`` with ``sys.argv[0]`` set to its prog.

    argparse reads ``sys.argv[0]`` for usage lines, so it is swapped for the
    duration of the call and restored afterwards.
    """

    entry = getattr(import_module(spec.module), "main")
    forwarded = [*spec.prefix, *argv]
    saved = sys.argv
    sys.argv = [spec.prog, *forwarded]
    try:
        result = entry(forwarded)
    except SystemExit as exc:
        return _exit_code(exc.code)
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


def _exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _emit(str(code), sys.stderr)
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
