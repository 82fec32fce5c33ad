"""Rollback engine: undo a generation run.

The engine reads a ``RollbackRecord`` (what the run created) and an optional
``BackupStore`` (what the target looked like before the run) and walks a
fixed list of cleanup steps:

1. stop subprocesses the run started
2. delete the project root
3. delete leftover VCS metadata
4. delete recorded files outside the project root
5. delete recorded directories outside the project root
6. restore the pre-run snapshot

Every step runs even when an earlier one failed.  The outcomes are collected
into a ``RollbackReport``; if any step failed, ``RollbackFailed`` carries the
report back to the caller.  The snapshot is deleted only after a clean
rollback; otherwise it stays on disk and the report points at it.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from ..errors import RollbackFailed
from ..utils import is_within, print_debug, print_error, print_info, print_success, print_warning
from .backup import BackupStore


class RollbackRecord(BaseModel):
    """Everything a run created, in creation order."""

    target_path: Path
    created_files: list[Path] = Field(default_factory=list)
    created_directories: list[Path] = Field(default_factory=list)
    git_initialized: bool = False
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RollbackState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class StepOutcome:
    """Result of one cleanup step."""

    name: str
    ok: bool = True
    detail: str = ""
    error: str = ""
    remaining: list[Path] = field(default_factory=list)


@dataclass
class RollbackReport:
    state: RollbackState
    outcomes: list[StepOutcome] = field(default_factory=list)
    kept_backup: Path | None = None

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failed_steps(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def indeterminate_paths(self) -> list[Path]:
        paths: list[Path] = []
        for outcome in self.failed_steps:
            paths.extend(outcome.remaining)
        return paths


def remove_path(path: Path) -> bool:
    """Delete a file, symlink or directory tree.  ``False`` if it was absent."""
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


class RollbackEngine:
    """Restores the filesystem to its pre-run state.

    An engine runs once: ``NOT_STARTED -> IN_PROGRESS -> COMPLETED | FAILED``.
    Calling ``run()`` again on a finished engine does not touch the filesystem:
    a completed engine returns the first report, a failed one raises
    ``RollbackFailed`` with it again.
    """

    def __init__(
        self,
        record: RollbackRecord,
        backup: BackupStore | None = None,
        processes: list[asyncio.subprocess.Process] | None = None,
    ) -> None:
        self.record = record
        self.backup = backup
        self.processes = processes if processes is not None else []
        self.state = RollbackState.NOT_STARTED
        self.report: RollbackReport | None = None

    def run(self) -> RollbackReport:
        """Run every cleanup step and return the report.

        Raises:
            RollbackFailed: If at least one step failed.  The report lists
                the failed steps and the paths they left behind.
        """
        if self.report is not None and self.state is RollbackState.COMPLETED:
            print_debug("Rollback already completed, nothing to do")
            return self.report
        if self.report is not None and self.state is RollbackState.FAILED:
            print_debug("Rollback already failed, not retrying")
            raise RollbackFailed(self.report)

        self.state = RollbackState.IN_PROGRESS
        print_warning("Rolling back project generation...")

        outcomes: list[StepOutcome] = []
        outcomes.append(self._attempt("stop_processes", self._stop_processes))
        target_step = self._attempt("remove_target", self._remove_target)
        outcomes.append(target_step)

        # Once the root is gone, anything recorded beneath it is gone too.
        skip_root = self.record.target_path if target_step.ok else None

        outcomes.append(self._attempt("remove_vcs_metadata", self._remove_vcs_metadata))
        outcomes.append(
            self._attempt(
                "remove_files",
                lambda: self._remove_recorded("remove_files", self.record.created_files, skip_root),
            )
        )
        outcomes.append(
            self._attempt(
                "remove_directories",
                lambda: self._remove_recorded(
                    "remove_directories", self.record.created_directories, skip_root
                ),
            )
        )
        outcomes.append(self._attempt("restore_backup", self._restore_backup))

        report = RollbackReport(state=RollbackState.COMPLETED, outcomes=outcomes)
        if not report.ok:
            report.state = RollbackState.FAILED
        self.state = report.state
        self.report = report

        if report.ok:
            self._discard_backup()
            print_success("Rollback completed successfully")
            return report

        if self.backup is not None and self.backup.has_snapshot:
            assert self.backup.current is not None
            report.kept_backup = self.backup.current.snapshot_path
        for outcome in report.failed_steps:
            print_error(f"Rollback step {outcome.name} failed: {outcome.error}")
        for path in report.indeterminate_paths:
            print_warning(f"  left in place: {path}")
        if report.kept_backup is not None:
            print_warning(f"Pre-run backup kept at: {report.kept_backup}")
        raise RollbackFailed(report)

    def _discard_backup(self) -> None:
        if self.backup is None:
            return
        try:
            self.backup.discard()
        except OSError as exc:
            print_warning(f"Could not delete the backup: {exc}")

    # -- Steps ---------------------------------------------------------------

    def _attempt(self, name: str, action: Callable[[], StepOutcome]) -> StepOutcome:
        try:
            outcome = action()
        except Exception as exc:
            outcome = StepOutcome(name=name, ok=False, error=f"{type(exc).__name__}: {exc}")
        print_debug(f"rollback step {name}: {'ok' if outcome.ok else 'failed'} {outcome.detail}")
        return outcome

    def _stop_processes(self) -> StepOutcome:
        print_debug("Stopping any running processes...")
        stopped = 0
        for process in self.processes:
            if process.returncode is not None:
                continue
            try:
                process.terminate()
            except ProcessLookupError:
                continue
            stopped += 1
        return StepOutcome("stop_processes", detail=f"stopped {stopped} process(es)")

    def _remove_target(self) -> StepOutcome:
        target = self.record.target_path
        try:
            removed = remove_path(target)
        except OSError as exc:
            return StepOutcome("remove_target", ok=False, error=str(exc), remaining=[target])
        if removed:
            print_info(f"Removed project directory: {target}")
            return StepOutcome("remove_target", detail=f"removed {target}")
        return StepOutcome("remove_target", detail=f"{target} did not exist")

    def _remove_vcs_metadata(self) -> StepOutcome:
        git_dir = self.record.target_path / ".git"
        if not self.record.git_initialized or not git_dir.exists():
            return StepOutcome("remove_vcs_metadata", detail="nothing to remove")
        try:
            remove_path(git_dir)
        except OSError as exc:
            return StepOutcome("remove_vcs_metadata", ok=False, error=str(exc), remaining=[git_dir])
        return StepOutcome("remove_vcs_metadata", detail=f"removed {git_dir}")

    def _remove_recorded(
        self,
        name: str,
        paths: list[Path],
        skip_root: Path | None,
    ) -> StepOutcome:
        removed = 0
        errors: list[str] = []
        remaining: list[Path] = []
        for path in paths:
            if skip_root is not None and is_within(path, skip_root):
                continue
            try:
                if remove_path(path):
                    removed += 1
                    print_debug(f"Removed: {path}")
            except OSError as exc:
                errors.append(f"{path}: {exc}")
                remaining.append(path)
        if errors:
            return StepOutcome(name, ok=False, error="; ".join(errors), remaining=remaining)
        return StepOutcome(name, detail=f"removed {removed} path(s)")

    def _restore_backup(self) -> StepOutcome:
        if self.backup is None or not self.backup.has_snapshot:
            return StepOutcome("restore_backup", detail="no backup to restore")
        target = self.record.target_path
        try:
            self.backup.restore(target)
        except OSError as exc:
            return StepOutcome("restore_backup", ok=False, error=str(exc), remaining=[target])
        print_info("Restored backup")
        return StepOutcome("restore_backup", detail=f"restored {target}")
