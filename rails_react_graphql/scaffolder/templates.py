"""Template substitution for project scaffolding.

Templates are plain files under ``scaffolder/templates/``.  The only markup
is ``<%= name %>``, replaced by the matching variable; unknown names are left
as they are.  File *paths* may contain:

* ``__app_name__`` -- the snake-case project name
* ``__ext__`` -- ``ts`` or ``js`` depending on the TypeScript toggle
* a leading ``dot_`` -- turned into ``.`` (``dot_gitignore`` -> ``.gitignore``)

Every file and directory written through the renderer is recorded in the
``CreationLedger`` passed in, so a failed run can be rolled back.
"""

from __future__ import annotations

import asyncio
import re
import stat
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import RUBY_VERSION, ProjectConfig
from ..utils import missing_parents, to_pascal_case, to_snake_case

if TYPE_CHECKING:
    from ..recovery.ledger import CreationLedger


_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

_TOKEN = re.compile(r"<%=\s*(\w+)\s*%>")


def substitute(content: str, variables: dict[str, str]) -> str:
    """Replace every ``<%= name %>`` token whose name is in *variables*."""
    return _TOKEN.sub(lambda m: variables.get(m.group(1), m.group(0)), content)


def output_name(relative: str, variables: dict[str, str]) -> str:
    """Turn a template-relative path into the output-relative path."""
    parts = []
    for part in Path(relative).parts:
        part = part.replace("__app_name__", variables.get("appNameSnake", "app"))
        part = part.replace("__ext__", variables.get("ext", "ts"))
        if part.startswith("dot_"):
            part = "." + part[len("dot_"):]
        parts.append(part)
    return str(Path(*parts))


def build_variables(config: ProjectConfig) -> dict[str, str]:
    """Variables shared by every template."""
    auth = config.authentication
    api_docs = config.api_documentation
    return {
        "projectName": config.project_name,
        "appName": to_pascal_case(config.project_name),
        "appNameSnake": to_snake_case(config.project_name),
        "railsVersion": config.rails_version,
        "railsMinorVersion": ".".join(config.rails_version.split(".")[:2]),
        "reactVersion": config.react_version,
        "rubyVersion": RUBY_VERSION,
        "database": config.database,
        "databaseAdapter": "postgresql" if config.database == "postgresql" else "sqlite3",
        "authentication": str(auth).lower(),
        "apiDocumentation": str(api_docs).lower(),
        "linting": str(config.linting).lower(),
        "typeChecking": "true",
        "packageManager": config.package_manager,
        "buildTool": config.build_tool,
        "ext": "ts" if config.typescript else "js",
        "DATABASE_GEM": (
            'gem "pg", "~> 1.5"' if config.database == "postgresql" else 'gem "sqlite3", "~> 1.6"'
        ),
        "AUTHENTICATION_GEMS": 'gem "jwt", "~> 2.2"' if auth else "",
        "API_DOCS_GEMS": 'gem "rswag-api"\ngem "rswag-ui"' if api_docs else "",
        "LINTING_GEMS": (
            'gem "rubocop", require: false\n'
            'gem "rubocop-rails", require: false\n'
            'gem "rubocop-rspec", require: false'
            if config.linting
            else ""
        ),
        "TESTING_GEMS": (
            'gem "rspec-rails", "~> 6.1"\ngem "factory_bot_rails"\ngem "rswag-specs"'
            if config.testing
            else ""
        ),
        "TYPE_CHECKING_GEMS": (
            'gem "sorbet", group: :development\n'
            'gem "tapioca", require: false, group: :development'
        ),
        "API_DOCS_ROUTES": (
            "# API Documentation\n"
            "  mount Rswag::Ui::Engine => '/api-docs'\n"
            "  mount Rswag::Api::Engine => '/api-docs'"
            if api_docs
            else ""
        ),
        "AUTH_ROUTES": (
            "post '/auth/login', to: 'auth#login'\n  post '/auth/register', to: 'auth#register'"
            if auth
            else ""
        ),
    }


class TemplateRenderer:
    """Reads templates and writes substituted output, recording what it creates."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)

    # -- Rendering -----------------------------------------------------------

    def render(self, template_path: str, variables: dict[str, str]) -> str:
        """Render a single template.

        Raises:
            FileNotFoundError: If the template does not exist.
        """
        source = self.template_dir / template_path
        if not source.is_file():
            raise FileNotFoundError(f"Template not found: {template_path}")
        return substitute(source.read_text(encoding="utf-8"), variables)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        variables: dict[str, str],
        ledger: CreationLedger | None = None,
        *,
        executable: bool = False,
    ) -> Path:
        """Render a template and write the result to *output_path*."""
        content = self.render(template_path, variables)
        return await write_file(Path(output_path), content, ledger, executable=executable)

    async def render_tree(
        self,
        template_prefix: str,
        output_dir: str | Path,
        variables: dict[str, str],
        ledger: CreationLedger | None = None,
        *,
        executable_dirs: tuple[str, ...] = ("bin",),
    ) -> list[Path]:
        """Render every file under *template_prefix* into *output_dir*.

        The directory structure is preserved and path placeholders are
        expanded.  Files whose first path segment is in *executable_dirs*
        get the executable bit.

        Returns:
            Written file paths, in sorted template order.
        """
        written: list[Path] = []
        out_base = Path(output_dir)
        for template_key in self.list_templates(template_prefix):
            rel = Path(template_key).relative_to(template_prefix)
            target = out_base / output_name(str(rel), variables)
            path = await self.render_to_file(
                template_key,
                target,
                variables,
                ledger,
                executable=rel.parts[0] in executable_dirs,
            )
            written.append(path)
        return written

    def list_templates(self, prefix: str = "") -> list[str]:
        """Sorted template paths under *prefix*, relative to the template root."""
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*")
            if p.is_file()
        )


# ---------------------------------------------------------------------------
# Tracked filesystem writes
# ---------------------------------------------------------------------------


async def make_dirs(path: Path, ledger: CreationLedger | None = None) -> Path:
    """``mkdir -p`` that records every directory it actually creates."""
    created = missing_parents(path)
    await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
    if ledger is not None:
        for directory in created:
            ledger.record_directory(directory)
    return path


async def write_file(
    path: Path,
    content: str,
    ledger: CreationLedger | None = None,
    *,
    executable: bool = False,
) -> Path:
    """Write *content* to *path*, creating parents, and record it."""
    await make_dirs(path.parent, ledger)
    await asyncio.to_thread(_write_file, path, content, executable)
    if ledger is not None:
        ledger.record_file(path)
    return path


def _write_file(path: Path, content: str, executable: bool) -> None:
    path.write_text(content, encoding="utf-8")
    if executable:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
