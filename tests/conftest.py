"""Shared pytest fixtures for the Rails React GraphQL generator test suite.

Provides reusable fixtures for:
- A throw-away working directory that stands in for the user's cwd
- Settings and a RecoveryCoordinator bound to that directory
- ProjectConfig factories
- Pre-populated target directories for backup / restore scenarios
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any, Callable

import pytest

from rails_react_graphql.config import ProjectConfig, Settings
from rails_react_graphql.recovery import RecoveryCoordinator
from rails_react_graphql.utils import set_debug


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Directory the CLI is 'invoked from'.  Backups land beneath it."""
    path = tmp_path / "cwd"
    path.mkdir()
    yield path


@pytest.fixture
def existing_project(workdir: Path) -> Path:
    """A target directory that already holds user content."""
    project = workdir / "proj"
    project.mkdir()
    (project / "a.txt").write_text("user data\n", encoding="utf-8")
    (project / "notes").mkdir()
    (project / "notes" / "todo.md").write_text("- keep me\n", encoding="utf-8")
    yield project


# ---------------------------------------------------------------------------
# Settings & coordinator
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(workdir: Path) -> Settings:
    return Settings(base_dir=workdir, help_url="https://example.invalid/help")


@pytest.fixture
def coordinator(settings: Settings) -> RecoveryCoordinator:
    """Coordinator with no process hooks installed."""
    yield RecoveryCoordinator(settings)


@pytest.fixture(autouse=True)
def _reset_debug() -> None:
    yield
    set_debug(False)


# ---------------------------------------------------------------------------
# Project configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config(workdir: Path) -> Callable[..., ProjectConfig]:
    """Factory for ProjectConfig rooted in ``workdir``.

    Git is off by default so unit tests never shell out.
    """

    def _make(name: str = "new-proj", **overrides: Any) -> ProjectConfig:
        fields: dict[str, Any] = {
            "project_name": name,
            "project_path": workdir / name,
            "git": False,
        }
        fields.update(overrides)
        return ProjectConfig(**fields)

    return _make


@pytest.fixture
def project_config(make_config) -> ProjectConfig:
    return make_config()


# ---------------------------------------------------------------------------
# Tooling
# ---------------------------------------------------------------------------


@pytest.fixture
def requires_git() -> None:
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
