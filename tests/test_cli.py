"""Tests for the command-line entry point."""

from __future__ import annotations

import importlib
import signal
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from rails_react_graphql.cli import build_parser, main
from rails_react_graphql.recovery import BackupStore

pytestmark = pytest.mark.unit


@pytest.fixture
def in_workdir(workdir: Path, monkeypatch) -> Path:
    for var in ("RRG_BACKUP_DIR", "RRG_DEBUG", "DEBUG", "RRG_HELP_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(workdir)
    return workdir


def _exit_code(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    def test_generate_defaults(self):
        args = build_parser().parse_args(["generate", "my-app"])
        assert args.project_name == "my-app"
        assert args.yes is False
        assert args.typescript is True
        assert args.api_docs is True
        assert args.database is None

    def test_generate_alias_and_negations(self):
        args = build_parser().parse_args(
            ["g", "-y", "--no-typescript", "--no-api-docs", "--no-git", "--database", "sqlite"]
        )
        assert args.command == "g"
        assert args.yes is True
        assert args.typescript is False
        assert args.api_docs is False
        assert args.git is False
        assert args.database == "sqlite"

    def test_no_command_prints_help(self, capsys):
        assert _exit_code([]) == 0
        assert "generate" in capsys.readouterr().out

    def test_importing_main_module_does_not_run_cli(self, monkeypatch):
        monkeypatch.delitem(sys.modules, "rails_react_graphql.__main__", raising=False)
        with patch("rails_react_graphql.cli.main") as cli_main:
            importlib.import_module("rails_react_graphql.__main__")
        cli_main.assert_not_called()


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerateCommand:
    def test_generates_with_defaults(self, in_workdir, capsys):
        assert _exit_code(["generate", "cli-app", "--yes", "--no-git"]) == 0

        project = in_workdir / "cli-app"
        assert (project / "backend" / "Gemfile").is_file()
        assert (project / "frontend" / "package.json").is_file()
        assert not (in_workdir / ".rails-react-graphql-backup").exists()
        assert "Next Steps" in capsys.readouterr().out

    def test_hooks_are_uninstalled(self, in_workdir):
        previous = signal.getsignal(signal.SIGINT)
        previous_hook = sys.excepthook
        _exit_code(["generate", "cli-app", "--yes", "--no-git"])
        assert signal.getsignal(signal.SIGINT) == previous
        assert sys.excepthook is previous_hook

    def test_invalid_flags_exit_1_without_writing(self, in_workdir, capsys):
        code = _exit_code(["generate", "cli-app", "--rails-version", "7", "--database", "mongo"])

        assert code == 1
        assert list(in_workdir.iterdir()) == []
        out = capsys.readouterr().out
        assert "Invalid Rails version" in out
        assert "Invalid database type" in out

    def test_cancelled_prompt_exits_0(self, in_workdir):
        answers = ["cli-app", "postgresql", "7.1.0", "18.2.0"]
        confirms = [True] * 7 + [False]
        with patch("rails_react_graphql.prompts.Prompt.ask", side_effect=answers), \
                patch("rails_react_graphql.prompts.Confirm.ask", side_effect=confirms):
            assert _exit_code(["generate"]) == 0
        assert list(in_workdir.iterdir()) == []

    def test_failing_step_exits_1_and_rolls_back(self, in_workdir, capsys):
        with patch(
            "rails_react_graphql.scaffolder.generator.FinalizeGenerator.run",
            new=AsyncMock(side_effect=PermissionError("Permission denied: README.md")),
        ):
            code = _exit_code(["generate", "cli-app", "--yes", "--no-git"])

        assert code == 1
        assert not (in_workdir / "cli-app").exists()
        out = capsys.readouterr().out
        assert "Rollback completed successfully" in out
        assert "Check file permissions" in out


# ---------------------------------------------------------------------------
# rollback
# ---------------------------------------------------------------------------


class TestRollbackCommand:
    def test_requires_a_path(self, in_workdir, capsys):
        assert _exit_code(["rollback"]) == 1
        assert "No rollback information available" in capsys.readouterr().out

    def test_removes_project(self, in_workdir):
        project = in_workdir / "old-app"
        (project / "backend").mkdir(parents=True)

        assert _exit_code(["rollback", "--project-path", str(project), "--yes"]) == 0
        assert not project.exists()

    def test_restores_named_backup(self, in_workdir, existing_project):
        snapshot = BackupStore(in_workdir / ".rails-react-graphql-backup").snapshot(existing_project)
        (existing_project / "generated.txt").write_text("x", encoding="utf-8")

        code = _exit_code(
            ["rollback", "--project-path", str(existing_project), "--backup", snapshot.name, "-y"]
        )

        assert code == 0
        assert (existing_project / "a.txt").read_text(encoding="utf-8") == "user data\n"
        assert not (existing_project / "generated.txt").exists()
        assert not snapshot.snapshot_path.exists()

    def test_unknown_backup_exits_1(self, in_workdir):
        project = in_workdir / "old-app"
        project.mkdir()
        code = _exit_code(["rollback", "--project-path", str(project), "--backup", "backup-nope", "-y"])
        assert code == 1
        assert project.exists()

    def test_declined_confirmation_keeps_project(self, in_workdir):
        project = in_workdir / "old-app"
        project.mkdir()
        with patch("rails_react_graphql.cli.Confirm.ask", return_value=False):
            assert _exit_code(["rollback", "--project-path", str(project)]) == 0
        assert project.exists()

    def test_list_backups(self, in_workdir, existing_project, capsys):
        snapshot = BackupStore(in_workdir / ".rails-react-graphql-backup").snapshot(existing_project)
        assert _exit_code(["rollback", "--list-backups"]) == 0
        assert snapshot.name in capsys.readouterr().out

    def test_list_backups_when_empty(self, in_workdir, capsys):
        assert _exit_code(["rollback", "--list-backups"]) == 0
        assert "No backups found" in capsys.readouterr().out
