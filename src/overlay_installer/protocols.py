"""Protocols for the collaborators the installer consumes.

The library does not download archives or resolve version tags. Apps provide
an artifact cache that already holds the archives, plus an optional progress
sink for display.
"""

from pathlib import Path
from typing import Protocol
from typing import runtime_checkable

from .schema import ArtifactKind
from .schema import VersionDescriptor


@runtime_checkable
class ArtifactCacheProtocol(Protocol):
    """Protocol for the local archive cache.

    Example implementations:
    - A download cache keyed by release tag
    - A fixed directory of pre-fetched archives for offline installs
    """

    @property
    def cache_dir(self) -> Path:
        """Root directory of the cache (persisted in the version record)."""
        ...

    def set_cache_dir(self, cache_dir: Path) -> None:
        """Point the cache at a previously persisted root."""
        ...

    def get_archive_path(self, kind: ArtifactKind, version: VersionDescriptor) -> Path:
        """Return the local zip archive for one artifact of ``version``."""
        ...

    def get_inner_folder(self, kind: ArtifactKind, version: VersionDescriptor) -> str:
        """Return the folder inside the archive that holds the real content.

        Archive layouts are not uniform (e.g. GitHub source zips wrap everything
        in ``<repo>-<tag>/``), so the cache knows this, not the extractor.
        """
        ...


class ProgressSinkProtocol(Protocol):
    """Receives extraction progress ticks. Purely observational."""

    def __call__(self, completed: int, total: int, label: str) -> None: ...
