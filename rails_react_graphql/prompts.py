"""Configuration resolution: flags, defaults or interactive prompts.

Three ways to get a ``ProjectConfig``:

* ``--yes`` -- defaults, overridden by whatever flags were given.
* name plus ``--rails-version``, ``--react-version`` and ``--database`` --
  straight from the flags, no questions asked.
* anything else -- ask, show a summary, and ask for confirmation.
"""

from __future__ import annotations

import re
from pathlib import Path

from rich.prompt import Confirm, Prompt

from .config import (
    DATABASES,
    DEFAULT_PROJECT_NAME,
    DEFAULT_RAILS_VERSION,
    DEFAULT_REACT_VERSION,
    PROJECT_NAME_PATTERN,
    VERSION_PATTERN,
    GenerateOptions,
    ProjectConfig,
)
from .utils import console, print_info, print_summary_table


class GenerationCancelled(Exception):
    """The user declined the configuration summary.  Nothing was written."""


def resolve_project_config(
    project_name: str | None,
    options: GenerateOptions,
    cwd: Path | None = None,
) -> ProjectConfig:
    """Produce the ``ProjectConfig`` for this invocation.

    Raises:
        ValidationFailed: If the resulting configuration is invalid.
        GenerationCancelled: If the user declined the summary prompt.
    """
    base = cwd or Path.cwd()

    if options.yes:
        return _config_from_flags(project_name or DEFAULT_PROJECT_NAME, options, base)

    if project_name and options.rails_version and options.react_version and options.database:
        return _config_from_flags(project_name, options, base)

    config = _config_from_prompts(project_name, options, base)

    console.print()
    print_info("Configuration Summary:")
    print_summary_table(config.summary(), title="Project Configuration")

    if not Confirm.ask("Proceed with this configuration?", default=True, console=console):
        raise GenerationCancelled("Project generation cancelled.")
    return config


def _config_from_flags(project_name: str, options: GenerateOptions, base: Path) -> ProjectConfig:
    return ProjectConfig.create(
        project_name=project_name,
        project_path=(base / project_name).resolve(),
        rails_version=options.rails_version or DEFAULT_RAILS_VERSION,
        react_version=options.react_version or DEFAULT_REACT_VERSION,
        database=options.database or "postgresql",
        typescript=options.typescript,
        testing=options.testing,
        linting=options.linting,
        authentication=options.authentication,
        api_documentation=options.api_docs,
        git=options.git,
        docker=options.docker,
        build_tool=options.build_tool or "vite",
        package_manager=options.package_manager or "pnpm",
    )


def _config_from_prompts(
    project_name: str | None,
    options: GenerateOptions,
    base: Path,
) -> ProjectConfig:
    name = _ask_validated(
        "What is the name of your project?",
        default=project_name or DEFAULT_PROJECT_NAME,
        check=lambda value: _check_project_name(value, base),
    )
    database = Prompt.ask(
        "Which database would you like to use?",
        choices=list(DATABASES),
        default=options.database or "postgresql",
        console=console,
    )
    rails_version = _ask_validated(
        "What Rails version would you like to use?",
        default=options.rails_version or DEFAULT_RAILS_VERSION,
        check=lambda value: _check_version(value, "7.1.0"),
    )
    react_version = _ask_validated(
        "What React version would you like to use?",
        default=options.react_version or DEFAULT_REACT_VERSION,
        check=lambda value: _check_version(value, "18.2.0"),
    )

    def confirm(question: str, default: bool = True) -> bool:
        return Confirm.ask(question, default=default, console=console)

    return ProjectConfig.create(
        project_name=name,
        project_path=(base / name).resolve(),
        rails_version=rails_version,
        react_version=react_version,
        database=database,
        typescript=confirm("Would you like to use TypeScript?"),
        testing=confirm("Would you like to include testing setup?"),
        linting=confirm("Would you like to include linting and formatting?"),
        authentication=confirm("Would you like to include authentication boilerplate?"),
        api_documentation=confirm("Would you like to include API documentation setup?"),
        git=confirm("Would you like to initialize a Git repository?", options.git),
        docker=confirm("Would you like to include Docker configuration?", options.docker),
        build_tool=options.build_tool or "vite",
        package_manager=options.package_manager or "pnpm",
    )


def _ask_validated(question: str, default: str, check) -> str:
    """Ask until *check* returns no error message."""
    while True:
        answer = Prompt.ask(question, default=default, console=console).strip()
        problem = check(answer)
        if problem is None:
            return answer
        console.print(f"[red]{problem}[/red]")


def _check_project_name(value: str, base: Path) -> str | None:
    if not value:
        return "Project name cannot be empty"
    if not re.match(PROJECT_NAME_PATTERN, value):
        return "Project name can only contain lowercase letters, numbers, and hyphens"
    if (base / value).exists():
        return f'Directory "{value}" already exists'
    return None


def _check_version(value: str, example: str) -> str | None:
    if not re.match(VERSION_PATTERN, value):
        return f"Please enter a valid version number (e.g., {example})"
    return None
