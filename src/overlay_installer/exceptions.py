"""Installer exceptions.

Every error carries a human-readable message plus a context dict with the
paths involved, so callers can log one line and still act on the details.
"""


class InstallerError(Exception):
    """Base exception for install, rollback and toggle operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (directory paths, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class MissingPrerequisiteDirectoryError(InstallerError):
    """A host directory the helper environment is seeded from does not exist."""


class ArchiveExtractionError(InstallerError):
    """Archive could not be opened or an entry failed to decompress."""


class MissingExtractedArtifactError(InstallerError):
    """Expected content folder is absent after extraction."""


class DirectoryLockedError(InstallerError):
    """Copy or move blocked because another process holds the directory open."""


class InstallIOError(InstallerError):
    """Filesystem operation failed for a reason other than a lock."""


class RenameFailedError(InstallerError):
    """Enable/disable directory rename failed."""


class SnapshotStateError(InstallerError):
    """Backup snapshot was committed or rolled back more than once."""
