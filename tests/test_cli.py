import json
import sys
import types

import pytest

from fixtures import quiz_record
from quizdeck import cli
from quizdeck.quiz.config import template_text


@pytest.fixture(autouse=True)
def reset_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "quizdeck"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)
    yield


def test_version_command_handles_missing_package(monkeypatch, capsys):
    monkeypatch.setattr(
        cli.metadata,
        "version",
        lambda name: (_ for _ in ()).throw(cli.metadata.PackageNotFoundError()),
    )
    code = cli.main(["version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "unknown"


def test_no_args_prints_usage_and_returns_error(capsys):
    code = cli.main([])
    captured = capsys.readouterr()
    assert code == 2
    assert "Usage: quizdeck" in captured.out
    assert "Available commands:" in captured.out


def test_help_flag_shows_usage(capsys):
    code = cli.main(["--help"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Usage: quizdeck" in captured.out


def test_help_command_without_target(capsys):
    code = cli.main(["help"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Usage: quizdeck" in captured.out


def test_list_outputs_command_table(capsys):
    code = cli.main(["list"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Available commands:" in captured.out
    for name in ("init", "quizzes", "play", "tui", "save", "config"):
        assert name in captured.out
    assert "(TUI)" in captured.out


def test_help_known_command(capsys):
    code = cli.main(["help", "play"])
    captured = capsys.readouterr()
    assert code == 0
    assert "play: Take a quiz" in captured.out
    assert "Run `quizdeck play --help`" in captured.out


def test_help_unknown_command(capsys):
    code = cli.main(["help", "does-not-exist"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err
    assert "Available commands:" in captured.err


def test_version_flag(capsys):
    code = cli.main(["--version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "0.0-test"


def test_unknown_command_errors(capsys):
    code = cli.main(["bogus"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err


def test_dispatch_invokes_module_main_with_passthrough(monkeypatch):
    before = list(sys.argv)
    captured: dict[str, list[str]] = {}

    def fake_import(module_name: str):
        assert module_name == "quizdeck.quiz._main"

        def stub_main(argv):
            captured["argv"] = list(argv)
            captured["sys_argv"] = list(sys.argv)
            return 7

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    code = cli.main(["play", "--quiz", "java"])
    assert code == 7
    assert captured["argv"] == ["play", "--quiz", "java"]
    assert captured["sys_argv"][0] == "quizdeck play"
    assert list(sys.argv) == before


def test_quizzes_maps_to_list_subcommand(monkeypatch):
    captured = {}

    def fake_import(module_name: str):
        def stub_main(argv):
            captured["argv"] = list(argv)
            return 0

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    assert cli.main(["quizzes", "--json"]) == 0
    assert captured["argv"] == ["list", "--json"]


def test_init_forwards_arguments_unchanged(monkeypatch):
    called = {}

    def fake_import(module_name: str):
        assert module_name == "quizdeck.workspace.cli"

        def stub_main(argv):
            called["argv"] = list(argv)
            called["prog"] = sys.argv[0]
            return 0

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    assert cli.main(["init", "--quiet"]) == 0
    assert called == {"argv": ["--quiet"], "prog": "quizdeck init"}


@pytest.mark.parametrize(
    "exit_value, expected, err",
    [(5, 5, ""), ("boom", 1, "boom"), (None, 0, "")],
)
def test_dispatch_normalizes_system_exit(
    monkeypatch, capsys, exit_value, expected, err
):
    def fake_import(module_name: str):
        def stub_main(argv):
            raise SystemExit(exit_value)

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    code = cli.main(["save", "questions.json"])
    assert code == expected
    assert capsys.readouterr().err.strip() == err


def test_dispatch_normalizes_non_int_return(monkeypatch):
    def fake_import(module_name: str):
        def stub_main(argv):
            return "done"

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    assert cli.main(["tui"]) == 0


def test_cli_runs_init_end_to_end(tmp_path, capsys):
    target = tmp_path / "workspace"

    code = cli.main(["init", "--path", str(target)])

    captured = capsys.readouterr()
    assert code == 0
    assert "Workspace ready" in captured.out
    for entry in ("config", "logs", "quizzes"):
        assert (target / entry).is_dir()


def test_cli_quizzes_end_to_end(workspace, capsys):
    workspace.add_quiz("java.json", quiz_record("java", 5, 2))

    code = cli.main(["quizzes", "--json", "--workspace", str(workspace.root)])

    captured = capsys.readouterr()
    assert code == 0
    assert json.loads(captured.out)[0]["id"] == "java"


def test_cli_quizzes_bad_flag_exits_two(capsys):
    code = cli.main(["quizzes", "--nope"])

    assert code == 2
    assert "unrecognized arguments" in capsys.readouterr().err


def test_cli_config_init_writes_template(tmp_path, capsys):
    destination = tmp_path / "quizdeck.toml"

    code = cli.main(["config", "init", "--path", str(destination)])

    captured = capsys.readouterr()
    assert code == 0
    template = template_text()
    assert destination.read_text(encoding="utf-8") == template
    assert str(destination.resolve()) in captured.out


def test_cli_config_init_requires_force(tmp_path, capsys):
    custom = tmp_path / "custom.toml"
    custom.write_text("existing", encoding="utf-8")

    code = cli.main(["config", "init", "--path", str(custom)])

    assert code == 1
    assert "Config already exists" in capsys.readouterr().err
    assert custom.read_text(encoding="utf-8") == "existing"

    assert cli.main(["config", "init", "--path", str(custom), "--force"]) == 0


def test_quiz_package_does_not_export_tui() -> None:
    import quizdeck.quiz as quiz_pkg

    assert "QuizDeckApp" not in quiz_pkg.__all__
    assert not hasattr(quiz_pkg, "build_arg_parser")
    for name in quiz_pkg.__all__:
        assert hasattr(quiz_pkg, name)
