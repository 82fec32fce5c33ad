"""GraphQL wiring: schema and resolvers on Rails, Apollo client on React."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..config import ProjectConfig
from ..utils import print_success
from .base import GeneratorStep

if TYPE_CHECKING:
    from ..recovery.coordinator import RunContext


class GraphQLGenerator(GeneratorStep):
    name = "Setting up GraphQL integration"
    description = "Configuring GraphQL server and client"

    async def run(self, config: ProjectConfig, context: RunContext) -> None:
        root = config.project_path
        await self.renderer.render_tree(
            "graphql/backend", root / "backend", self.variables, context.ledger
        )
        await self.renderer.render_tree(
            "graphql/frontend", root / "frontend", self.variables, context.ledger
        )
        print_success("GraphQL server and client configured!")
