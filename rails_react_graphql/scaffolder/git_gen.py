"""Git repository initialisation with an initial commit."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..config import ProjectConfig
from ..errors import GenerationFailed
from ..utils import print_success, run_command
from .base import GeneratorStep

if TYPE_CHECKING:
    from ..recovery.coordinator import RunContext


FALLBACK_IDENTITY = ["-c", "user.name=Rails React GraphQL", "-c", "user.email=generator@localhost"]


class GitGenerator(GeneratorStep):
    name = "Initializing Git repository"
    description = "Initializing Git repository with initial commit"

    def enabled(self, config: ProjectConfig) -> bool:
        return config.git

    async def run(self, config: ProjectConfig, context: RunContext) -> None:
        root = config.project_path
        await self.renderer.render_tree("git", root, self.variables, context.ledger)

        git_dir_existed = (root / ".git").exists()
        await self._git(context, root, "init", "--quiet")
        context.mark_git_initialized()
        if not git_dir_existed:
            context.ledger.record_directory(root / ".git")

        await self._git(context, root, "add", "-A")
        identity = [] if await self._has_identity(context, root) else FALLBACK_IDENTITY
        await self._git(
            context, root, *identity, "commit", "--quiet", "-m", "Initial commit from rails-react-graphql"
        )
        print_success("Git repository initialized!")

    async def _git(self, context: RunContext, cwd: Path, *args: str) -> str:
        """Run git, tracking the process so rollback can stop it.

        Raises:
            GenerationFailed: If git is missing or exits non-zero.
        """
        cmd = ["git", *args]
        try:
            returncode, stdout, stderr = await run_command(
                cmd, cwd=cwd, on_spawn=context.track_process
            )
        except FileNotFoundError as exc:
            raise GenerationFailed(self.name, "git executable not found") from exc
        if returncode != 0:
            raise GenerationFailed(
                self.name, f"`{' '.join(cmd)}` exited with {returncode}: {stderr}"
            )
        return stdout

    async def _has_identity(self, context: RunContext, cwd: Path) -> bool:
        returncode, stdout, _ = await run_command(
            ["git", "config", "user.email"], cwd=cwd, on_spawn=context.track_process
        )
        return returncode == 0 and bool(stdout)
