"""Install pipeline - backup, extract, install, persist, clean up; roll back on failure.

States:
    IDLE -> BACKING_UP -> EXTRACTING -> INSTALLING -> PERSISTING -> CLEANING_UP -> DONE
    any middle state -> FAILED -> ROLLING_BACK -> DONE (failure)

Blocking filesystem work runs in worker threads (``asyncio.to_thread``) and
extraction yields between archive entries, so the caller's event loop stays
responsive. Stage failures never escape as exceptions: ``run`` returns an
``InstallResult`` with exactly one of success/failure.

Extraction writes only to cache-scoped scratch directories, which are safe to
leave behind, so rollback only has to undo the directory replacements.
"""

import asyncio
import logging
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path

from .backup import BackupManager
from .backup import BackupSnapshot
from .exceptions import InstallerError
from .exceptions import InstallIOError
from .extractor import extract_to
from .installer import ArtifactInstaller
from .layout import InstallLayout
from .protocols import ArtifactCacheProtocol
from .protocols import ProgressSinkProtocol
from .schema import ArtifactKind
from .schema import VersionDescriptor
from .store import InstalledVersionRecord
from .store import VersionStore
from .utils import remove_tree

logger = logging.getLogger(__name__)


class InstallState(str, Enum):
    IDLE = "idle"
    BACKING_UP = "backing_up"
    EXTRACTING = "extracting"
    INSTALLING = "installing"
    PERSISTING = "persisting"
    CLEANING_UP = "cleaning_up"
    FAILED = "failed"
    ROLLING_BACK = "rolling_back"
    DONE = "done"


@dataclass
class InstallContext:
    """Everything one install flow needs, passed explicitly instead of a global.

    ``installing`` holds the version of the attempt in progress and is reset to
    None when the attempt ends, so ``store.record`` is always the persisted truth.
    """

    layout: InstallLayout
    cache: ArtifactCacheProtocol
    store: VersionStore
    progress: ProgressSinkProtocol | None = None
    installing: VersionDescriptor | None = None


@dataclass
class InstallResult:
    """Terminal outcome of one install attempt."""

    success: bool
    record: InstalledVersionRecord
    failed_state: InstallState | None = None
    error: InstallerError | None = None
    rollback_error: InstallerError | None = None
    states: list[InstallState] = field(default_factory=list)


class InstallPipeline:
    """Single-use orchestrator for one install attempt against a context.

    Callers must not run two pipelines against the same layout at once; no
    lock is taken.
    """

    def __init__(self, context: InstallContext):
        self.context = context
        self.state = InstallState.IDLE
        self.states: list[InstallState] = [InstallState.IDLE]
        self._target_backup = BackupManager(context.layout.target_dir, context.layout.original_dir)
        self._install_backup = BackupManager(context.layout.install_dir)
        self._snapshots: list[BackupSnapshot] = []

    def _enter(self, state: InstallState) -> None:
        logger.debug(f"Install pipeline: {self.state.value} -> {state.value}")
        self.state = state
        self.states.append(state)

    async def run(self, version: VersionDescriptor) -> InstallResult:
        """
        Install ``version``, restoring the previous tree if any step fails.

        Args:
            version: Base and overlay artifacts to install

        Returns:
            InstallResult; ``success`` is False when the attempt was rolled back
        """
        if self.state is not InstallState.IDLE:
            raise RuntimeError("InstallPipeline instances are single-use")

        self.context.installing = version
        logger.info(f"Installing base {version.base.tag!r} with overlay {version.overlay.tag!r}")

        try:
            self._enter(InstallState.BACKING_UP)
            for manager in (self._target_backup, self._install_backup):
                self._snapshots.append(await asyncio.to_thread(manager.backup))

            self._enter(InstallState.EXTRACTING)
            base_dir = await self._extract(ArtifactKind.BASE, version)
            overlay_dir = await self._extract(ArtifactKind.OVERLAY, version)

            self._enter(InstallState.INSTALLING)
            installer = ArtifactInstaller(self.context.layout)
            await asyncio.to_thread(installer.install, base_dir, overlay_dir)

            self._enter(InstallState.PERSISTING)
            record = await asyncio.to_thread(
                self.context.store.record_install, version, self.context.cache.cache_dir
            )
        except InstallerError as e:
            return await self._fail(e)
        except Exception as e:
            logger.exception(f"Unexpected failure while {self.state.value}")
            error = InstallIOError(f"Unexpected failure while {self.state.value}: {e}")
            error.__cause__ = e
            return await self._fail(error)

        self._enter(InstallState.CLEANING_UP)
        for manager, snapshot in zip((self._target_backup, self._install_backup), self._snapshots):
            await asyncio.to_thread(manager.commit, snapshot)

        self.context.installing = None
        self._enter(InstallState.DONE)
        logger.info(f"Installed base {record.base_tag!r} with overlay {record.overlay_tag!r}")
        return InstallResult(success=True, record=record, states=list(self.states))

    async def _extract(self, kind: ArtifactKind, version: VersionDescriptor) -> Path:
        """Extract one artifact next to its archive and return its content folder."""
        archive = self.context.cache.get_archive_path(kind, version)
        inner_folder = self.context.cache.get_inner_folder(kind, version)
        extract_dir = archive.parent / archive.stem

        logger.info(f"Extracting {kind.value} archive {archive}")
        await extract_to(archive, extract_dir, progress=self.context.progress, label=kind.value)
        return extract_dir / inner_folder

    async def _fail(self, error: InstallerError) -> InstallResult:
        failed_state = self.state
        logger.error(f"Install failed while {failed_state.value}: {error.message}")
        self._enter(InstallState.FAILED)
        self._enter(InstallState.ROLLING_BACK)

        rollback_error: InstallerError | None = None
        try:
            await asyncio.to_thread(self._rollback)
        except InstallerError as e:
            rollback_error = e
            logger.error(f"Rollback failed, manual recovery needed: {e.message}")

        self.context.installing = None
        self._enter(InstallState.DONE)
        return InstallResult(
            success=False,
            record=self.context.store.record,
            failed_state=failed_state,
            error=error,
            rollback_error=rollback_error,
            states=list(self.states),
        )

    def _rollback(self) -> None:
        """Roll back every snapshot, newest first, then raise the first error seen."""
        errors: list[InstallerError] = []
        pairs = list(zip((self._target_backup, self._install_backup), self._snapshots))
        for manager, snapshot in reversed(pairs):
            try:
                manager.rollback(snapshot)
                if manager is self._install_backup and not snapshot.taken:
                    # Active tree did not exist before this attempt
                    remove_tree(self.context.layout.install_dir)
            except InstallerError as e:
                logger.error(f"Could not restore {manager.target_dir}: {e.message}")
                errors.append(e)
        if errors:
            raise errors[0]


async def install_version(context: InstallContext, version: VersionDescriptor) -> InstallResult:
    """Run one install attempt for ``version`` (convenience wrapper).

    Example:
        >>> result = await install_version(context, VersionDescriptor.of("base", "v1.2", "overlay", "2024.08"))
        >>> result.success, result.record.base_tag
        (True, 'v1.2')
    """
    return await InstallPipeline(context).run(version)
