"""Tests for the Git step."""

from __future__ import annotations

import subprocess
from unittest.mock import AsyncMock, patch

import pytest

from rails_react_graphql.errors import GenerationFailed
from rails_react_graphql.scaffolder.git_gen import GitGenerator
from rails_react_graphql.scaffolder.templates import TemplateRenderer, build_variables

pytestmark = pytest.mark.unit


@pytest.fixture
def git_config(make_config):
    return make_config("git-app", git=True)


@pytest.fixture
def step(git_config) -> GitGenerator:
    return GitGenerator(TemplateRenderer(), build_variables(git_config))


class TestGitGenerator:
    def test_enabled_follows_toggle(self, step, make_config):
        assert step.enabled(make_config(git=True))
        assert not step.enabled(make_config(git=False))

    async def test_init_and_commit(self, step, git_config, coordinator, requires_git):
        git_config.project_path.mkdir()
        (git_config.project_path / "README.md").write_text("# hi\n", encoding="utf-8")
        context = coordinator.begin_run(git_config.project_path)

        await step.run(git_config, context)

        root = git_config.project_path
        assert (root / ".gitignore").is_file()
        assert (root / ".git").is_dir()
        assert context.record.git_initialized is True
        assert root / ".git" in context.ledger.list_directories()
        log = subprocess.run(
            ["git", "log", "--oneline"], cwd=root, check=True, capture_output=True, text=True
        )
        assert "Initial commit from rails-react-graphql" in log.stdout
        assert context.processes

    async def test_missing_git_executable(self, step, git_config, coordinator):
        context = coordinator.begin_run(git_config.project_path)
        with patch(
            "rails_react_graphql.scaffolder.git_gen.run_command",
            new=AsyncMock(side_effect=FileNotFoundError("git")),
        ):
            with pytest.raises(GenerationFailed, match="git executable not found"):
                await step.run(git_config, context)
        assert context.record.git_initialized is False

    async def test_nonzero_exit_is_generation_failure(self, step, git_config, coordinator):
        context = coordinator.begin_run(git_config.project_path)
        with patch(
            "rails_react_graphql.scaffolder.git_gen.run_command",
            new=AsyncMock(return_value=(128, "", "fatal: not a git repository")),
        ):
            with pytest.raises(GenerationFailed) as exc_info:
                await step.run(git_config, context)
        assert exc_info.value.step == "Initializing Git repository"
        assert "exited with 128" in str(exc_info.value)

    async def test_fallback_identity_when_unconfigured(self, step, git_config, coordinator):
        context = coordinator.begin_run(git_config.project_path)
        calls: list[list[str]] = []

        async def fake_run(cmd, cwd=None, on_spawn=None, **kwargs):
            calls.append(cmd)
            if cmd[1:3] == ["config", "user.email"]:
                return (1, "", "")
            return (0, "", "")

        with patch("rails_react_graphql.scaffolder.git_gen.run_command", new=fake_run):
            await step.run(git_config, context)

        commit = next(cmd for cmd in calls if "commit" in cmd)
        assert "user.email=generator@localhost" in commit
        assert commit.index("-c") < commit.index("commit")
