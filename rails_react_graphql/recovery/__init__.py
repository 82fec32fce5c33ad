"""Backup, creation tracking and rollback for generation runs.

Quick usage::

    from rails_react_graphql.recovery import RecoveryCoordinator

    coordinator = RecoveryCoordinator()
    context = coordinator.begin_run("/tmp/my-app")   # snapshots if it exists
    try:
        ...                                            # steps record into context.ledger
        context.step_completed()
    except Exception as exc:
        coordinator.fail(exc, "project generation")  # rolls back, exits 1
    coordinator.run_succeeded()                      # discards the snapshot
"""

from .backup import BackupSnapshot, BackupStore
from .coordinator import Decision, RecoveryCoordinator, RunContext, RunStatus
from .ledger import CreationLedger
from .rollback import (
    RollbackEngine,
    RollbackRecord,
    RollbackReport,
    RollbackState,
    StepOutcome,
)

__all__ = [
    "BackupSnapshot",
    "BackupStore",
    "CreationLedger",
    "Decision",
    "RecoveryCoordinator",
    "RollbackEngine",
    "RollbackRecord",
    "RollbackReport",
    "RollbackState",
    "RunContext",
    "RunStatus",
    "StepOutcome",
]
