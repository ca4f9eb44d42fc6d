"""overlay-installer - Transactional install and rollback of a runtime source overlay.

Public API exports.

The library is mechanism only: apps inject the directory layout, the artifact
cache that supplies archives, and an optional progress sink.
"""

from .backup import BackupManager
from .backup import BackupSnapshot
from .exceptions import ArchiveExtractionError
from .exceptions import DirectoryLockedError
from .exceptions import InstallerError
from .exceptions import InstallIOError
from .exceptions import MissingExtractedArtifactError
from .exceptions import MissingPrerequisiteDirectoryError
from .exceptions import RenameFailedError
from .exceptions import SnapshotStateError
from .extractor import ArchiveExtraction
from .extractor import ExtractProgress
from .extractor import extract_archive
from .extractor import extract_to
from .helper import check_installation
from .helper import initialize
from .helper import prepare_helper
from .installer import ArtifactInstaller
from .layout import InstallLayout
from .layout import load_layout
from .pipeline import InstallContext
from .pipeline import InstallPipeline
from .pipeline import InstallResult
from .pipeline import InstallState
from .pipeline import install_version
from .protocols import ArtifactCacheProtocol
from .protocols import ProgressSinkProtocol
from .schema import ArtifactKind
from .schema import ArtifactRef
from .schema import VersionDescriptor
from .store import InstalledVersionRecord
from .store import VersionStore
from .toggle import disable
from .toggle import enable
from .toggle import uninstall

__all__ = [
    # Request / configuration
    "ArtifactKind",
    "ArtifactRef",
    "VersionDescriptor",
    "InstallLayout",
    "load_layout",
    # Collaborators
    "ArtifactCacheProtocol",
    "ProgressSinkProtocol",
    # Extraction
    "ArchiveExtraction",
    "ExtractProgress",
    "extract_archive",
    "extract_to",
    # Backup
    "BackupManager",
    "BackupSnapshot",
    # Installation
    "ArtifactInstaller",
    "InstallContext",
    "InstallPipeline",
    "InstallResult",
    "InstallState",
    "install_version",
    # Version record
    "InstalledVersionRecord",
    "VersionStore",
    # Helper environment
    "prepare_helper",
    "check_installation",
    "initialize",
    # Toggle
    "enable",
    "disable",
    "uninstall",
    # Exceptions
    "InstallerError",
    "ArchiveExtractionError",
    "DirectoryLockedError",
    "InstallIOError",
    "MissingExtractedArtifactError",
    "MissingPrerequisiteDirectoryError",
    "RenameFailedError",
    "SnapshotStateError",
]

__version__ = "0.1.0"
