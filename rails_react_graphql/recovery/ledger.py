"""Creation ledger: every path a generator step creates during a run."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..utils import print_debug

if TYPE_CHECKING:
    from .rollback import RollbackRecord


class CreationLedger:
    """Append-only record of created files and directories.

    Steps record paths right after a successful write.  Nothing is checked
    against the filesystem here; order of insertion is creation order and
    duplicates are kept (deleting a path twice is harmless).
    """

    def __init__(self) -> None:
        self._files: list[Path] = []
        self._directories: list[Path] = []

    def record_file(self, path: str | Path) -> None:
        self._files.append(Path(path))
        print_debug(f"Tracked file: {path}")

    def record_directory(self, path: str | Path) -> None:
        self._directories.append(Path(path))
        print_debug(f"Tracked directory: {path}")

    def list_files(self) -> list[Path]:
        return list(self._files)

    def list_directories(self) -> list[Path]:
        return list(self._directories)

    def flush_into(self, record: RollbackRecord) -> None:
        """Append the accumulated paths to *record*, then clear the ledger."""
        record.created_files.extend(self._files)
        record.created_directories.extend(self._directories)
        self.reset()

    def reset(self) -> None:
        self._files.clear()
        self._directories.clear()

    def __len__(self) -> int:
        return len(self._files) + len(self._directories)
