"""Backup snapshots of a directory by renaming it aside.

There is no transactional filesystem to lean on, so the target directory is
renamed to a sibling before anything touches it. A snapshot is then resolved
exactly once: ``commit`` discards it, ``rollback`` puts it back.

The first time a target is backed up and no pristine copy exists yet, the
target is moved into the ``original`` slot instead of a per-attempt slot.
That slot doubles as the snapshot: rollback moves it back, commit keeps it.
"""

import itertools
import logging
import time
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path

from .exceptions import InstallerError
from .exceptions import SnapshotStateError
from .utils import move_dir
from .utils import remove_tree

logger = logging.getLogger(__name__)

_counter = itertools.count()


def new_snapshot_id() -> str:
    """Generate a snapshot id unique within the process and across restarts.

    Epoch microseconds plus a process-local counter, so two attempts in the
    same clock tick still get different names.
    """
    return f"{time.time_ns() // 1000}_{next(_counter)}"


class SnapshotStatus(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class BackupSnapshot:
    """Renamed-aside copy of a target directory.

    ``taken`` is False when the target did not exist, in which case commit and
    rollback are no-ops. ``preserves_original`` marks a snapshot stored in the
    one-time pristine slot.
    """

    snapshot_id: str
    target_dir: Path
    backup_dir: Path | None = None
    taken: bool = False
    preserves_original: bool = False
    status: SnapshotStatus = field(default=SnapshotStatus.PENDING)

    def _resolve(self, status: SnapshotStatus) -> None:
        if self.status is not SnapshotStatus.PENDING:
            raise SnapshotStateError(
                f"Snapshot {self.snapshot_id} already {self.status.value}, cannot mark {status.value}",
                context={"target_dir": str(self.target_dir)},
            )
        self.status = status


class BackupManager:
    """Snapshot, restore or discard one target directory.

    Args:
        target_dir: Directory about to be mutated
        original_dir: Optional one-time pristine preservation slot

    Example:
        >>> manager = BackupManager(layout.target_dir, layout.original_dir)
        >>> snapshot = manager.backup()
        >>> try:
        ...     mutate(layout.target_dir)
        ... except InstallerError:
        ...     manager.rollback(snapshot)
        ... else:
        ...     manager.commit(snapshot)
    """

    def __init__(self, target_dir: Path, original_dir: Path | None = None):
        self.target_dir = target_dir
        self.original_dir = original_dir

    def snapshot_path(self, snapshot_id: str) -> Path:
        """Per-attempt backup location, a sibling of the target."""
        return self.target_dir.with_name(f"{self.target_dir.name}_{snapshot_id}")

    def backup(self) -> BackupSnapshot:
        """Move the target aside.

        Returns:
            Snapshot describing where the target went (``taken=False`` if it did not exist)

        Raises:
            DirectoryLockedError: If the target is held open by another process
            InstallIOError: If the move fails otherwise
        """
        snapshot = BackupSnapshot(snapshot_id=new_snapshot_id(), target_dir=self.target_dir)

        if not self.target_dir.exists():
            logger.debug(f"No {self.target_dir} to back up")
            return snapshot

        if self.original_dir is not None and not self.original_dir.exists():
            logger.info(f"Preserving pristine {self.target_dir} as {self.original_dir}")
            move_dir(self.target_dir, self.original_dir)
            snapshot.backup_dir = self.original_dir
            snapshot.preserves_original = True
        else:
            backup_dir = self.snapshot_path(snapshot.snapshot_id)
            logger.info(f"Backing up {self.target_dir} to {backup_dir}")
            move_dir(self.target_dir, backup_dir)
            snapshot.backup_dir = backup_dir

        snapshot.taken = True
        return snapshot

    def commit(self, snapshot: BackupSnapshot) -> None:
        """Discard a per-attempt snapshot. Best effort: deletion errors are only logged."""
        snapshot._resolve(SnapshotStatus.COMMITTED)
        if not snapshot.taken or snapshot.preserves_original or snapshot.backup_dir is None:
            return

        try:
            remove_tree(snapshot.backup_dir)
            logger.debug(f"Deleted backup {snapshot.backup_dir}")
        except InstallerError as e:
            logger.warning(f"Could not delete backup {snapshot.backup_dir}, remove it manually: {e.message}")

    def rollback(self, snapshot: BackupSnapshot) -> None:
        """Restore the target from a snapshot, replacing whatever is there now.

        Raises:
            DirectoryLockedError: If the partial target or the backup is held open
            InstallIOError: If the restore fails otherwise
        """
        snapshot._resolve(SnapshotStatus.ROLLED_BACK)
        if not snapshot.taken or snapshot.backup_dir is None:
            return
        if not snapshot.backup_dir.exists():
            logger.warning(f"Backup {snapshot.backup_dir} is gone, cannot restore {self.target_dir}")
            return

        logger.info(f"Restoring {self.target_dir} from {snapshot.backup_dir}")
        remove_tree(self.target_dir)
        move_dir(snapshot.backup_dir, self.target_dir)
