"""Shared utility functions for the Rails React GraphQL generator.

Provides async command execution, file-system helpers, Rich-based output and
step-progress reporting.  Everything user-visible goes through the single
module-level ``console`` so tests can capture it in one place.
"""

from __future__ import annotations

import asyncio
import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

_debug_enabled = False


def set_debug(enabled: bool) -> None:
    """Turn ``print_debug`` output on or off for the whole process."""
    global _debug_enabled
    _debug_enabled = enabled


def debug_enabled() -> bool:
    return _debug_enabled


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: dict[str, str] | None = None,
    on_spawn: Callable[[asyncio.subprocess.Process], None] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: List of arguments; the first one is the executable.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.
        on_spawn: Called with the process object right after it starts, so
            the caller can terminate it later (rollback does this).

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.

    Raises:
        FileNotFoundError: If the executable does not exist.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )
    if on_spawn is not None:
        on_spawn(process)

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def to_pascal_case(name: str) -> str:
    """``my-cool-app`` -> ``MyCoolApp``."""
    parts = re.split(r"[-_\s]+", name)
    return "".join(word[:1].upper() + word[1:] for word in parts if word)


def to_snake_case(name: str) -> str:
    """``my-cool-app`` -> ``my_cool_app``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def missing_parents(path: Path) -> list[Path]:
    """Return *path* and its ancestors that do not exist yet, outermost first.

    Used to learn which directories a ``mkdir(parents=True)`` call is about
    to create, so they can be recorded for rollback.
    """
    missing: list[Path] = []
    current = path
    while not current.exists():
        missing.append(current)
        if current.parent == current:
            break
        current = current.parent
    missing.reverse()
    return missing


def is_within(path: Path, root: Path) -> bool:
    """``True`` if *path* is *root* or lives somewhere below it."""
    try:
        return path.resolve().is_relative_to(root.resolve())
    except OSError:
        return False


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str) -> None:
    """Print a prominent header rule."""
    console.print()
    console.print(Rule(f"[bold cyan]{title}[/bold cyan]", style="cyan"))
    console.print()


def print_subheader(title: str) -> None:
    console.print()
    console.print(f"[bold blue]{title}[/bold blue]")


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_list(items: list[str]) -> None:
    for item in items:
        console.print(f"  [dim]•[/dim] {item}")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def print_info(message: str) -> None:
    console.print(f"[blue]{message}[/blue]")


def print_debug(message: str) -> None:
    """Print a dim debug line, only when debug output is enabled."""
    if _debug_enabled:
        console.print(f"[dim]debug: {message}[/dim]", highlight=False)


# ---------------------------------------------------------------------------
# Step progress
# ---------------------------------------------------------------------------

_STEP_STYLES: dict[str, tuple[str, str]] = {
    "pending": ("dim", "…"),
    "running": ("bold blue", "▶"),
    "completed": ("green", "✔"),
    "failed": ("bold red", "✘"),
}


@dataclass
class StepState:
    name: str
    status: str = "pending"
    message: str = ""


class StepProgress:
    """Tracks a fixed list of named steps and prints each status change.

    ``advance()`` completes the running step (if any) and starts the next
    one; ``fail()`` marks the running step failed.
    """

    def __init__(self, steps: list[str]) -> None:
        self.steps = [StepState(name) for name in steps]
        self.index = -1

    @property
    def current(self) -> StepState | None:
        if 0 <= self.index < len(self.steps):
            return self.steps[self.index]
        return None

    def advance(self, message: str = "") -> None:
        step = self.current
        if step is not None:
            step.status = "completed"
            self._render(step)

        self.index += 1
        step = self.current
        if step is not None:
            step.status = "running"
            step.message = message
            self._render(step)

    def fail(self, message: str = "") -> None:
        step = self.current
        if step is None:
            return
        step.status = "failed"
        step.message = message
        self._render(step)

    def finish(self) -> None:
        """Complete the running step without starting another one."""
        step = self.current
        if step is not None and step.status == "running":
            step.status = "completed"
            self._render(step)

    def as_table(self) -> Table:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Step")
        table.add_column("Status")
        for step in self.steps:
            style, icon = _STEP_STYLES[step.status]
            table.add_row(step.name, f"[{style}]{icon} {step.status}[/{style}]")
        return table

    def _render(self, step: StepState) -> None:
        style, icon = _STEP_STYLES[step.status]
        line = f"[{style}]{icon} {step.name}[/{style}] [dim]({step.status})[/dim]"
        console.print(line)
        if step.message:
            console.print(f"   [dim]{escape(step.message)}[/dim]", highlight=False)
