"""Main scaffolding orchestrator.

Takes a ``ProjectConfig`` and runs the generator steps in order inside a
recoverable run:

1. Rails backend
2. React frontend
3. GraphQL integration
4. Docker configuration (optional)
5. Git repository (optional)
6. Project README and root scripts

Before the first step the coordinator snapshots an existing target directory.
After each step the paths it created are flushed into the rollback record.
Any failure is handed to the coordinator, which rolls back and exits.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import ProjectConfig
from ..errors import GenerationFailed, ScaffoldError
from ..utils import (
    StepProgress,
    console,
    format_duration,
    print_info,
    print_subheader,
    print_summary_table,
)
from .base import GeneratorStep
from .docker_gen import DockerGenerator
from .git_gen import GitGenerator
from .graphql_gen import GraphQLGenerator
from .rails_gen import RailsGenerator
from .react_gen import ReactGenerator
from .templates import TemplateRenderer, build_variables

if TYPE_CHECKING:
    from ..recovery.coordinator import RecoveryCoordinator, RunContext


class FinalizeGenerator(GeneratorStep):
    name = "Finalizing project setup"
    description = "Writing README and workspace scripts"

    async def run(self, config: ProjectConfig, context: RunContext) -> None:
        await self.renderer.render_tree(
            "project", config.project_path, self.variables, context.ledger
        )


class ProjectGenerator:
    """Sequences the generator steps for one project."""

    def __init__(
        self,
        config: ProjectConfig,
        coordinator: RecoveryCoordinator,
        renderer: TemplateRenderer | None = None,
        steps: list[GeneratorStep] | None = None,
    ) -> None:
        self.config = config
        self.coordinator = coordinator
        self.renderer = renderer or TemplateRenderer()
        self.variables = build_variables(config)
        self.steps = steps if steps is not None else self._default_steps()

    def _default_steps(self) -> list[GeneratorStep]:
        return [
            step_cls(self.renderer, self.variables)
            for step_cls in (
                RailsGenerator,
                ReactGenerator,
                GraphQLGenerator,
                DockerGenerator,
                GitGenerator,
                FinalizeGenerator,
            )
        ]

    def active_steps(self) -> list[GeneratorStep]:
        return [step for step in self.steps if step.enabled(self.config)]

    # -- Public API --------------------------------------------------------

    async def generate(self) -> Path:
        """Generate the project.

        Returns:
            The project root.  On failure this does not return: the
            coordinator rolls back and raises ``SystemExit(1)``.
        """
        self.coordinator.install_loop_handler(asyncio.get_running_loop())

        try:
            context = self.coordinator.begin_run(self.config.project_path)
        except ScaffoldError as exc:
            self.coordinator.fail(exc, "backup")

        print_subheader("Project Configuration")
        print_summary_table(self.config.summary(), title=self.config.project_name)

        started = time.monotonic()
        steps = self.active_steps()
        progress = StepProgress([step.name for step in steps])
        try:
            for step in steps:
                progress.advance(step.description)
                await self._run_step(step, context)
            progress.finish()
        except Exception as exc:
            progress.fail(f"Error: {exc}")
            console.print(progress.as_table())
            self.coordinator.fail(exc, "project generation")

        self.coordinator.run_succeeded()
        elapsed = format_duration(time.monotonic() - started)
        print_info(f"Completed {len(steps)} steps in {elapsed}")
        return self.config.project_path

    async def _run_step(self, step: GeneratorStep, context: RunContext) -> None:
        try:
            await step.run(self.config, context)
        except ScaffoldError:
            raise
        except Exception as exc:
            raise GenerationFailed(step.name, str(exc)) from exc
        finally:
            # Paths written before a failure must reach the record as well.
            context.step_completed()
