"""Rails API backend generation.

Lays out the Rails directory skeleton under ``<project>/backend`` and renders
the backend templates.  Optional template groups (auth, API docs, RSpec,
RuboCop) are rendered only when the matching toggle is on.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..config import ProjectConfig
from ..utils import print_info, print_success
from .base import GeneratorStep
from .templates import make_dirs, write_file

if TYPE_CHECKING:
    from ..recovery.coordinator import RunContext


RAILS_DIRECTORIES: list[str] = [
    "app/controllers/concerns",
    "app/models",
    "app/views",
    "app/graphql/types",
    "app/graphql/queries",
    "app/graphql/mutations",
    "config/initializers",
    "config/environments",
    "db/migrate",
    "lib/tasks",
    "bin",
    "log",
    "tmp/pids",
    "tmp/cache",
    "tmp/sockets",
    "storage",
    "public",
]

# Empty directories that need a placeholder to survive version control.
KEEP_DIRECTORIES: list[str] = ["log", "tmp/pids", "tmp/cache", "tmp/sockets", "storage", "public"]


class RailsGenerator(GeneratorStep):
    name = "Generating Rails backend"
    description = "Creating Rails API application"

    async def run(self, config: ProjectConfig, context: RunContext) -> None:
        backend = config.project_path / "backend"
        ledger = context.ledger

        print_info("Creating Rails API application structure...")
        await self._create_directory_structure(backend, context)

        await self.renderer.render_tree("rails/base", backend, self.variables, ledger)
        for toggle, group in self._optional_groups(config):
            if toggle:
                await self.renderer.render_tree(group, backend, self.variables, ledger)

        print_success("Rails backend generated successfully!")

    async def _create_directory_structure(self, backend: Path, context: RunContext) -> None:
        for directory in RAILS_DIRECTORIES:
            await make_dirs(backend / directory, context.ledger)
        for directory in KEEP_DIRECTORIES:
            await write_file(backend / directory / ".keep", "", context.ledger)

    @staticmethod
    def _optional_groups(config: ProjectConfig) -> list[tuple[bool, str]]:
        return [
            (config.authentication, "rails/auth"),
            (config.api_documentation, "rails/api_docs"),
            (config.testing, "rails/testing"),
            (config.linting, "rails/linting"),
        ]
