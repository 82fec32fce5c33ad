"""Configuration models.

``Settings`` holds the runtime knobs (backup location, debug output) and is
read from the environment.  ``ProjectConfig`` describes the project to
generate; it is produced by ``prompts.resolve_project_config`` from CLI flags,
defaults or interactive answers.  Both are Pydantic v2 models so bad values
are rejected at construction time, before anything touches the disk.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from .errors import ValidationFailed

VERSION_PATTERN = r"^\d+\.\d+\.\d+$"
PROJECT_NAME_PATTERN = r"^[a-z0-9-]+$"

DATABASES = ("postgresql", "sqlite")
BUILD_TOOLS = ("vite", "webpack")
PACKAGE_MANAGERS = ("pnpm", "npm", "yarn")

DEFAULT_PROJECT_NAME = "my-rails-react-app"
DEFAULT_RAILS_VERSION = "7.1.0"
DEFAULT_REACT_VERSION = "18.2.0"
RUBY_VERSION = "3.2.2"


class Settings(BaseModel):
    """Runtime settings for the CLI."""

    base_dir: Path = Field(default_factory=Path.cwd)
    backup_dir_name: str = Field(default=".rails-react-graphql-backup")
    debug: bool = Field(default=False)
    help_url: str = Field(default="https://github.com/your-repo/rails-react-graphql-cli")

    @property
    def backup_root(self) -> Path:
        """Hidden folder holding ``backup-<timestamp>`` snapshots."""
        return self.base_dir / self.backup_dir_name

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            RRG_BACKUP_DIR, RRG_DEBUG (or DEBUG), RRG_HELP_URL.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("RRG_BACKUP_DIR"):
            kwargs["backup_dir_name"] = os.environ["RRG_BACKUP_DIR"]
        if os.environ.get("RRG_HELP_URL"):
            kwargs["help_url"] = os.environ["RRG_HELP_URL"]
        debug_flag = os.environ.get("RRG_DEBUG") or os.environ.get("DEBUG") or ""
        kwargs["debug"] = debug_flag.lower() not in ("", "0", "false", "no")
        return cls(**kwargs)


class GenerateOptions(BaseModel):
    """Raw ``generate`` command-line options.  ``None`` means "not given"."""

    yes: bool = False
    rails_version: str | None = None
    react_version: str | None = None
    database: str | None = None
    typescript: bool = True
    testing: bool = True
    linting: bool = True
    authentication: bool = True
    api_docs: bool = True
    git: bool = True
    docker: bool = True
    build_tool: str | None = None
    package_manager: str | None = None


class ProjectConfig(BaseModel):
    """The project to generate."""

    project_name: str = Field(..., pattern=PROJECT_NAME_PATTERN)
    project_path: Path
    rails_version: str = Field(default=DEFAULT_RAILS_VERSION, pattern=VERSION_PATTERN)
    react_version: str = Field(default=DEFAULT_REACT_VERSION, pattern=VERSION_PATTERN)
    database: Literal["postgresql", "sqlite"] = "postgresql"
    typescript: bool = True
    testing: bool = True
    linting: bool = True
    authentication: bool = True
    api_documentation: bool = True
    git: bool = True
    docker: bool = True
    build_tool: Literal["vite", "webpack"] = "vite"
    package_manager: Literal["pnpm", "npm", "yarn"] = "pnpm"

    @classmethod
    def create(cls, **fields: Any) -> "ProjectConfig":
        """Construct a config, reporting problems as ``ValidationFailed``."""
        try:
            return cls(**fields)
        except ValidationError as exc:
            messages = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ]
            raise ValidationFailed(messages) from exc

    def summary(self) -> dict[str, str]:
        """Label -> value mapping for the configuration summary table."""

        def yes_no(flag: bool) -> str:
            return "Yes" if flag else "No"

        return {
            "Project Name": self.project_name,
            "Location": str(self.project_path),
            "Rails Version": self.rails_version,
            "React Version": self.react_version,
            "Database": self.database,
            "TypeScript": yes_no(self.typescript),
            "Testing": yes_no(self.testing),
            "Linting": yes_no(self.linting),
            "Authentication": yes_no(self.authentication),
            "API Documentation": yes_no(self.api_documentation),
            "Git Repository": yes_no(self.git),
            "Docker": yes_no(self.docker),
            "Build Tool": self.build_tool,
            "Package Manager": self.package_manager,
        }


def validate_flags(options: GenerateOptions) -> None:
    """Check command-line options before any prompt or file operation.

    Raises:
        ValidationFailed: With every problem found, not just the first.
    """
    errors: list[str] = []

    if options.rails_version and not re.match(VERSION_PATTERN, options.rails_version):
        errors.append(
            f"Invalid Rails version: {options.rails_version}. Expected format: x.y.z"
        )
    if options.react_version and not re.match(VERSION_PATTERN, options.react_version):
        errors.append(
            f"Invalid React version: {options.react_version}. Expected format: x.y.z"
        )
    if options.database and options.database not in DATABASES:
        errors.append(
            f"Invalid database type: {options.database}. Must be 'postgresql' or 'sqlite'"
        )
    if options.build_tool and options.build_tool not in BUILD_TOOLS:
        errors.append(
            f"Invalid build tool: {options.build_tool}. Must be 'vite' or 'webpack'"
        )
    if options.package_manager and options.package_manager not in PACKAGE_MANAGERS:
        errors.append(
            f"Invalid package manager: {options.package_manager}. "
            "Must be 'pnpm', 'npm', or 'yarn'"
        )

    if errors:
        raise ValidationFailed(errors)
