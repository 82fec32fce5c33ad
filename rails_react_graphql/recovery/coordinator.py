"""Error/signal coordinator.

One ``RecoveryCoordinator`` per process owns the in-flight ``RunContext``
and turns every way a run can end badly into the same sequence: diagnostic,
rollback, exit.

* ``fail()`` -- a generator step raised.  Never returns.
* uncaught exceptions (``sys.excepthook``) and unhandled asyncio task
  exceptions (loop exception handler) -- same as ``fail()``.
* SIGINT / SIGTERM -- rollback, then exit with status 0 (user cancelled).

The decision logic (``handle_error`` / ``handle_signal``) returns a
``Decision`` instead of exiting, so it can be tested without touching
process-level state.  ``install()`` wires the process hooks; they close over
the coordinator and always act on whatever context is current at the time.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import FrameType, TracebackType
from typing import Any, NoReturn

from rich.markup import escape
from rich.panel import Panel
from rich.traceback import Traceback

from ..config import Settings
from ..errors import (
    GENERIC_HINT,
    BackupFailed,
    RollbackFailed,
    ScaffoldError,
    ValidationFailed,
    suggest_fix,
)
from ..utils import (
    console,
    debug_enabled,
    print_debug,
    print_error,
    print_info,
    print_warning,
)
from .backup import BackupStore
from .ledger import CreationLedger
from .rollback import RollbackEngine, RollbackRecord, RollbackReport, RollbackState

EXIT_OK = 0
EXIT_FAILURE = 1

_SIGNAL_MESSAGES: dict[int, str] = {
    signal.SIGINT: "Process interrupted by user",
    signal.SIGTERM: "Process terminated",
}


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


class Action(str, Enum):
    CONTINUE = "continue"
    TERMINATE = "terminate"


@dataclass(frozen=True)
class Decision:
    """What the process should do after a failure was handled."""

    action: Action
    exit_code: int = EXIT_OK

    @classmethod
    def proceed(cls) -> "Decision":
        return cls(Action.CONTINUE)

    @classmethod
    def terminate(cls, exit_code: int) -> "Decision":
        return cls(Action.TERMINATE, exit_code)

    @property
    def terminates(self) -> bool:
        return self.action is Action.TERMINATE

    def apply(self) -> None:
        """Raise ``SystemExit`` for a terminate decision; no-op otherwise."""
        if self.terminates:
            raise SystemExit(self.exit_code)


# ---------------------------------------------------------------------------
# Run context
# ---------------------------------------------------------------------------


class RunStatus(str, Enum):
    ACTIVE = "active"
    SUCCEEDED = "succeeded"
    ROLLED_BACK = "rolled_back"
    ROLLBACK_FAILED = "rollback_failed"


@dataclass
class RunContext:
    """State of one generation run.

    Generator steps record created paths in ``ledger``; ``step_completed``
    moves them into ``record``, which is what rollback reads.
    """

    record: RollbackRecord
    backup: BackupStore
    ledger: CreationLedger = field(default_factory=CreationLedger)
    processes: list[asyncio.subprocess.Process] = field(default_factory=list)
    status: RunStatus = RunStatus.ACTIVE
    engine: RollbackEngine | None = None

    @property
    def target_path(self) -> Path:
        return self.record.target_path

    @property
    def active(self) -> bool:
        return self.status is RunStatus.ACTIVE

    def track_process(self, process: asyncio.subprocess.Process) -> None:
        self.processes.append(process)

    def mark_git_initialized(self) -> None:
        self.record.git_initialized = True

    def step_completed(
        self,
        files: Iterable[str | Path] = (),
        directories: Iterable[str | Path] = (),
    ) -> None:
        """Record any extra paths, then flush the ledger into the record."""
        for path in files:
            self.ledger.record_file(path)
        for path in directories:
            self.ledger.record_directory(path)
        self.ledger.flush_into(self.record)

    def succeed(self) -> None:
        """Discard the backup; the run's output is now the user's."""
        self.ledger.flush_into(self.record)
        self.backup.discard()
        self.status = RunStatus.SUCCEEDED

    def rollback(self) -> RollbackReport:
        """Undo the run.  Paths still sitting in the ledger are included.

        Raises:
            RollbackFailed: If any cleanup step failed.
        """
        self.ledger.flush_into(self.record)
        if self.engine is None:
            self.engine = RollbackEngine(self.record, self.backup, self.processes)
        try:
            report = self.engine.run()
        except RollbackFailed:
            self.status = RunStatus.ROLLBACK_FAILED
            raise
        self.status = RunStatus.ROLLED_BACK
        return report


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------


class RecoveryCoordinator:
    """Owns the single in-flight run and the process-level failure hooks."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings.from_env()
        self.current: RunContext | None = None
        self.last: RunContext | None = None
        self._previous_handlers: dict[int, Any] = {}
        self._previous_excepthook: Any = None

    # -- Run lifecycle -------------------------------------------------------

    def begin_run(self, target_path: str | Path) -> RunContext:
        """Snapshot *target_path* (if it exists) and open a new run.

        Raises:
            ScaffoldError: If another run is still in flight.
            BackupFailed: If the snapshot could not be taken.  No run is
                opened in that case.
        """
        if self.current is not None and self.current.active:
            raise ScaffoldError(
                f"A generation run for {self.current.target_path} is already in progress"
            )

        target = Path(target_path).resolve()
        backup = BackupStore(self.settings.backup_root)
        backup.snapshot(target)

        context = RunContext(record=RollbackRecord(target_path=target), backup=backup)
        self.current = context
        print_debug(f"Run started for {target}")
        return context

    def run_succeeded(self) -> None:
        if self.current is None:
            return
        self.current.succeed()
        self._close_run()

    def rollback_current(self) -> RollbackReport | None:
        """Roll back the current run, if any, and clear the slot.

        Raises:
            RollbackFailed: If cleanup failed partway.
        """
        context = self.current
        if context is None:
            print_warning("No rollback information available")
            return None
        try:
            return context.rollback()
        finally:
            self._close_run()

    @property
    def rolling_back(self) -> bool:
        """True while the current run's rollback engine is mid-run."""
        context = self.current
        return (
            context is not None
            and context.engine is not None
            and context.engine.state is RollbackState.IN_PROGRESS
        )

    def _close_run(self) -> None:
        self.last = self.current
        self.current = None

    # -- Decision logic -----------------------------------------------------

    def handle_error(self, error: BaseException, label: str) -> Decision:
        """Report *error*, roll back the current run and decide to exit 1."""
        self.report_error(error, label)
        self._rollback_reporting_failures()
        return Decision.terminate(EXIT_FAILURE)

    def handle_signal(self, signum: int) -> Decision:
        """Roll back after SIGINT/SIGTERM.

        Exits 0 because the user asked for it; a rollback that itself fails
        exits 1 since the filesystem needs attention.  A signal that arrives
        while the rollback is running is ignored so the rollback can finish.
        """
        if self.rolling_back:
            print_warning("Rollback in progress, please wait...")
            return Decision.proceed()
        console.print()
        print_warning(_SIGNAL_MESSAGES.get(signum, f"Received signal {signum}"))
        if not self._rollback_reporting_failures():
            return Decision.terminate(EXIT_FAILURE)
        return Decision.terminate(EXIT_OK)

    def handle_loop_exception(self, context: dict[str, Any]) -> Decision:
        """Decide what to do with an asyncio loop exception context."""
        error = context.get("exception")
        if error is None:
            print_warning(str(context.get("message", "Unknown asyncio error")))
            return Decision.proceed()
        return self.handle_error(error, "unhandled task exception")

    def fail(self, error: BaseException, label: str) -> NoReturn:
        """Handle *error* and terminate the process.  Never returns."""
        decision = self.handle_error(error, label)
        raise SystemExit(decision.exit_code)

    def report_error(self, error: BaseException, label: str) -> None:
        """Print the diagnostic for *error*, with a hint when one matches."""
        print_error(f"Error in {label}: {escape(str(error))}")
        if isinstance(error, ValidationFailed):
            for message in error.errors:
                print_error(f"  - {escape(message)}")
        if isinstance(error, BackupFailed):
            print_warning("Nothing was changed; the run was stopped before generation.")
        if debug_enabled() and error.__traceback__ is not None:
            console.print(Traceback.from_exception(type(error), error, error.__traceback__))

        hint = suggest_fix(error)
        lines = [hint or GENERIC_HINT, f"For more help, visit: {self.settings.help_url}"]
        console.print(
            Panel("\n".join(lines), title="Troubleshooting Tips", border_style="blue")
        )

    def _rollback_reporting_failures(self) -> bool:
        """Roll back the current run; ``False`` if the rollback failed."""
        if self.current is None:
            return True
        try:
            self.rollback_current()
        except RollbackFailed as exc:
            print_error(str(exc))
            paths = exc.indeterminate_paths
            if paths:
                print_info("These paths need manual cleanup:")
                for path in paths:
                    console.print(f"  {path}", highlight=False)
            if exc.report.kept_backup is not None:
                print_info(f"The pre-run backup is kept at: {exc.report.kept_backup}")
            return False
        return True

    # -- Process hooks ------------------------------------------------------

    def install(self) -> None:
        """Route SIGINT, SIGTERM and uncaught exceptions through this coordinator.

        Must be called from the main thread.
        """
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, self._on_signal)
        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._excepthook

    def uninstall(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()
        if self._previous_excepthook is not None:
            sys.excepthook = self._previous_excepthook
            self._previous_excepthook = None

    def install_loop_handler(self, loop: asyncio.AbstractEventLoop) -> None:
        loop.set_exception_handler(self._loop_exception_handler)

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        self.handle_signal(signum).apply()

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        # The interpreter exits with status 1 after the hook returns.
        self.handle_error(exc, "uncaught exception")

    def _loop_exception_handler(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        self.handle_loop_exception(context).apply()
