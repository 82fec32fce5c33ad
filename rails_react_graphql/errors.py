"""Exception hierarchy and troubleshooting hints.

Every failure the generator reports is a ``ScaffoldError`` subclass:

* ``ValidationFailed`` -- bad input, raised before anything touches disk.
* ``BackupFailed`` -- the pre-run snapshot could not be taken; the run must
  not start.
* ``GenerationFailed`` -- a generator step could not finish; the run is
  rolled back.
* ``RollbackFailed`` -- cleanup itself failed; carries the full report so the
  user can finish the job by hand.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .recovery.rollback import RollbackReport


class ScaffoldError(Exception):
    """Base class for all errors raised by the generator."""


class ValidationFailed(ScaffoldError):
    """Raised when the requested configuration violates a constraint."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))


class BackupFailed(ScaffoldError):
    """Raised when an existing target directory cannot be snapshotted."""

    def __init__(self, source: str | Path, message: str) -> None:
        self.source = Path(source)
        super().__init__(f"Backup of {self.source} failed: {message}")


class GenerationFailed(ScaffoldError):
    """Raised when a generator step cannot complete."""

    def __init__(self, step: str, message: str) -> None:
        self.step = step
        super().__init__(f"{step}: {message}")


class RollbackFailed(ScaffoldError):
    """Raised when one or more rollback steps failed."""

    def __init__(self, report: RollbackReport) -> None:
        self.report = report
        failed = ", ".join(o.name for o in report.failed_steps) or "unknown"
        super().__init__(f"Rollback failed in step(s): {failed}")

    @property
    def indeterminate_paths(self) -> list[Path]:
        """Paths the failed steps could not clean up."""
        return self.report.indeterminate_paths


# ---------------------------------------------------------------------------
# Troubleshooting hints
# ---------------------------------------------------------------------------

_HINTS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r"permission denied|errno 13|operation not permitted", re.I),
        "Check file permissions and ensure you have write access to the target directory",
    ),
    (
        re.compile(r"already exists|file exists|errno 17", re.I),
        "Remove the existing directory or choose a different project name",
    ),
    (
        re.compile(r"network|connection|timed out", re.I),
        "Check your internet connection and try again",
    ),
    (
        re.compile(r"git\b.*not found|not found.*\bgit\b", re.I),
        "Ensure Git is installed and on your PATH, or pass --no-git",
    ),
    (
        re.compile(r"rails|ruby|bundle", re.I),
        "Ensure Ruby and Rails are installed: gem install rails",
    ),
    (
        re.compile(r"\bnode\b|npm|pnpm|yarn", re.I),
        "Ensure Node.js is installed and up to date",
    ),
]

GENERIC_HINT = "Re-run with DEBUG=1 for more detail"


def suggest_fix(error: BaseException | str) -> str | None:
    """Return a one-line suggestion for a known error pattern, else ``None``.

    The table is a heuristic; the first matching pattern wins.
    """
    text = str(error)
    for pattern, hint in _HINTS:
        if pattern.search(text):
            return hint
    return None
