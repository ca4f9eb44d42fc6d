"""Helper environment setup and installer start-up."""

import logging
from pathlib import Path

from .exceptions import MissingPrerequisiteDirectoryError
from .layout import InstallLayout
from .pipeline import InstallContext
from .protocols import ArtifactCacheProtocol
from .protocols import ProgressSinkProtocol
from .store import VersionStore
from .utils import copy_tree

logger = logging.getLogger(__name__)


def prepare_helper(layout: InstallLayout) -> None:
    """Create the helper root and copy each seed directory from the host once.

    Existing copies are left alone, so this is safe to call on every start.

    Raises:
        MissingPrerequisiteDirectoryError: If a host seed directory doesn't exist
        DirectoryLockedError: If a copy is blocked by another process
        InstallIOError: If a copy fails otherwise
    """
    layout.helper_root.mkdir(parents=True, exist_ok=True)

    for name, source in layout.seed_dirs.items():
        dest = layout.helper_root / name
        if dest.exists():
            continue
        if not source.is_dir():
            raise MissingPrerequisiteDirectoryError(
                f"Host directory for '{name}' not found: {source}",
                context={"name": name, "source": str(source)},
            )
        logger.info(f"Seeding helper '{name}' from {source}")
        copy_tree(source, dest)


def check_installation(layout: InstallLayout) -> str | None:
    """Check the installed trees are present.

    Returns:
        None if installed, otherwise a message naming the first missing directory
    """
    for path in (layout.install_dir, layout.overlay_dir):
        if not path.is_dir():
            return f"{path} does not exist"
    return None


def initialize(
    layout: InstallLayout,
    cache: ArtifactCacheProtocol,
    progress: ProgressSinkProtocol | None = None,
) -> InstallContext:
    """Load the installed version record and build the install context.

    A cache location persisted by an earlier session is pushed back into the cache.
    """
    store = VersionStore(layout.version_file)
    if store.record.cache_dir:
        cache.set_cache_dir(Path(store.record.cache_dir))
    return InstallContext(layout=layout, cache=cache, store=store, progress=progress)
