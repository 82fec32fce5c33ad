"""Docker Compose and Dockerfile generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..config import ProjectConfig
from ..utils import print_success
from .base import GeneratorStep

if TYPE_CHECKING:
    from ..recovery.coordinator import RunContext


class DockerGenerator(GeneratorStep):
    name = "Setting up Docker configuration"
    description = "Creating Docker and Docker Compose files"

    def enabled(self, config: ProjectConfig) -> bool:
        return config.docker

    async def run(self, config: ProjectConfig, context: RunContext) -> None:
        variables = {**self.variables, **docker_variables(config)}
        await self.renderer.render_tree("docker", config.project_path, variables, context.ledger)
        print_success("Docker configuration created!")


def docker_variables(config: ProjectConfig) -> dict[str, str]:
    """The database service block, empty for SQLite."""
    if config.database != "postgresql":
        return {
            "DATABASE_SERVICE": "",
            "DATABASE_DEPENDS_ON": "",
            "DATABASE_URL": "sqlite3:db/development.sqlite3",
        }
    service = (
        "db:\n"
        "    image: postgres:16\n"
        "    environment:\n"
        "      POSTGRES_USER: postgres\n"
        "      POSTGRES_PASSWORD: postgres\n"
        "    ports:\n"
        '      - "5432:5432"\n'
        "    volumes:\n"
        "      - db-data:/var/lib/postgresql/data\n"
        "  "
    )
    return {
        "DATABASE_SERVICE": service,
        "DATABASE_DEPENDS_ON": "depends_on:\n      - db",
        "DATABASE_URL": "postgres://postgres:postgres@db:5432/postgres",
    }
