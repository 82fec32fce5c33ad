"""Backup store: snapshot an existing target directory before generation.

Snapshots live under a hidden backup root next to the invocation directory::

    .rails-react-graphql-backup/
        backup-2026-10-19T11-48-03-512904Z/   <- full copy of the target

The directory name is the only metadata; there is no manifest.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from ..errors import BackupFailed
from ..utils import is_within, print_debug

SNAPSHOT_PREFIX = "backup-"
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S-%fZ"


@dataclass(frozen=True)
class BackupSnapshot:
    """A full recursive copy of ``source_path`` taken before a run."""

    source_path: Path
    snapshot_path: Path
    created_at: datetime

    @property
    def name(self) -> str:
        return self.snapshot_path.name


def _snapshot_name(moment: datetime) -> str:
    return SNAPSHOT_PREFIX + moment.strftime(_TIMESTAMP_FORMAT)


def parse_snapshot_time(name: str) -> datetime | None:
    """Return the timestamp encoded in a snapshot directory name, if any."""
    if not name.startswith(SNAPSHOT_PREFIX):
        return None
    stamp = name[len(SNAPSHOT_PREFIX):]
    # Collision suffixes look like "-1", "-2" after the trailing "Z".
    stamp = stamp.split("Z", 1)[0] + "Z"
    try:
        return datetime.strptime(stamp, _TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


class BackupStore:
    """Holds at most one snapshot for the current run."""

    def __init__(self, backup_root: str | Path) -> None:
        self.backup_root = Path(backup_root)
        self.current: BackupSnapshot | None = None

    @property
    def has_snapshot(self) -> bool:
        return self.current is not None and self.current.snapshot_path.exists()

    def snapshot(self, target_path: str | Path) -> BackupSnapshot | None:
        """Copy *target_path* under the backup root if it exists.

        Returns the snapshot, or ``None`` when there was nothing to protect.

        Raises:
            BackupFailed: If the copy could not be completed.  A partial copy
                is removed before raising.
        """
        target = Path(target_path)
        if not target.exists():
            print_debug(f"No backup needed, {target} does not exist")
            return None

        if is_within(self.backup_root, target):
            raise BackupFailed(
                target,
                f"backup root {self.backup_root} is inside the target directory",
            )

        moment = datetime.now(timezone.utc)
        destination = self._unique_path(_snapshot_name(moment))
        try:
            self.backup_root.mkdir(parents=True, exist_ok=True)
            shutil.copytree(target, destination, symlinks=True)
        except (OSError, shutil.Error) as exc:
            if destination.exists():
                shutil.rmtree(destination, ignore_errors=True)
            raise BackupFailed(target, str(exc)) from exc

        self.current = BackupSnapshot(
            source_path=target,
            snapshot_path=destination,
            created_at=moment,
        )
        print_debug(f"Backup created at: {destination}")
        return self.current

    def restore(self, target_path: str | Path) -> bool:
        """Copy the snapshot back onto *target_path*.

        Existing files at the target are overwritten.  Returns ``False``
        without touching anything when no snapshot was taken.
        """
        if not self.has_snapshot:
            return False
        assert self.current is not None
        shutil.copytree(
            self.current.snapshot_path,
            Path(target_path),
            symlinks=True,
            dirs_exist_ok=True,
        )
        print_debug(f"Restored {self.current.snapshot_path} onto {target_path}")
        return True

    def discard(self) -> None:
        """Delete the snapshot.  Safe to call when there is none."""
        if self.current is None:
            return
        path = self.current.snapshot_path
        if path.exists():
            shutil.rmtree(path)
            print_debug(f"Cleaned up backup: {path}")
        self.current = None
        if self.backup_root.is_dir() and not any(self.backup_root.iterdir()):
            self.backup_root.rmdir()

    # -- Stand-alone rollback support ---------------------------------------

    def list_snapshots(self) -> list[BackupSnapshot]:
        """All snapshot directories under the backup root, newest first.

        ``source_path`` is unknown for these and set to the snapshot itself.
        """
        if not self.backup_root.is_dir():
            return []
        found: list[BackupSnapshot] = []
        for entry in self.backup_root.iterdir():
            created = parse_snapshot_time(entry.name)
            if entry.is_dir() and created is not None:
                found.append(BackupSnapshot(entry, entry, created))
        found.sort(key=lambda s: (s.created_at, s.name), reverse=True)
        return found

    def attach(self, name: str, source_path: str | Path) -> BackupSnapshot:
        """Select an existing snapshot directory by name for *source_path*.

        Raises:
            FileNotFoundError: If no such snapshot exists.
        """
        path = self.backup_root / name
        created = parse_snapshot_time(name)
        if not path.is_dir() or created is None:
            raise FileNotFoundError(f"No backup named {name!r} in {self.backup_root}")
        self.current = BackupSnapshot(Path(source_path), path, created)
        return self.current

    def _unique_path(self, name: str) -> Path:
        candidate = self.backup_root / name
        counter = 1
        while candidate.exists():
            candidate = self.backup_root / f"{name}-{counter}"
            counter += 1
        return candidate
