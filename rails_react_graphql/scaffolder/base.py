"""Common shape of a generator step."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..config import ProjectConfig
from .templates import TemplateRenderer

if TYPE_CHECKING:
    from ..recovery.coordinator import RunContext


class GeneratorStep:
    """One unit of work, e.g. "generate the Rails backend".

    Subclasses implement ``run``.  Everything a step writes must go through
    the renderer helpers (or be recorded on ``context.ledger`` by hand) so
    rollback knows about it.
    """

    name: str = "step"
    description: str = ""

    def __init__(self, renderer: TemplateRenderer, variables: dict[str, str]) -> None:
        self.renderer = renderer
        self.variables = variables

    def enabled(self, config: ProjectConfig) -> bool:
        return True

    async def run(self, config: ProjectConfig, context: RunContext) -> None:
        raise NotImplementedError
