"""Enable/disable the installed overlay by swapping directory pairs.

Enable:  target_dir -> original_dir, then disabled_dir -> install_dir
Disable: install_dir -> disabled_dir, then original_dir -> target_dir

Each operation stops at the first failed rename and reports it as-is. There
is no rollback here: the tree stays as the completed renames left it.
"""

import logging
import os
from pathlib import Path

from .exceptions import RenameFailedError
from .layout import InstallLayout
from .pipeline import InstallContext
from .utils import remove_tree

logger = logging.getLogger(__name__)


def _rename(src: Path, dest: Path) -> None:
    try:
        os.rename(src, dest)
    except OSError as e:
        error = RenameFailedError(
            f"Failed to rename {src} to {dest}: {e}",
            context={"src": str(src), "dest": str(dest)},
        )
        logger.error(error.message)
        raise error from e
    logger.debug(f"Renamed {src} -> {dest}")


def enable(layout: InstallLayout) -> None:
    """Swap the overlay in: park the host tree, activate the installed tree.

    Raises:
        RenameFailedError: If either rename fails (the second is skipped if the first fails)
    """
    _rename(layout.target_dir, layout.original_dir)
    _rename(layout.disabled_dir, layout.install_dir)
    logger.info("Overlay enabled")


def disable(layout: InstallLayout) -> None:
    """Swap the overlay out: park the installed tree, restore the host tree.

    Raises:
        RenameFailedError: If either rename fails (the second is skipped if the first fails)
    """
    _rename(layout.install_dir, layout.disabled_dir)
    _rename(layout.original_dir, layout.target_dir)
    logger.info("Overlay disabled")


def uninstall(context: InstallContext) -> None:
    """
    Remove the overlay and return the host tree to its pristine state.

    Process:
    1. Disable (restores target_dir from original_dir)
    2. Delete the parked installed tree
    3. Clear both version tags in the record

    Raises:
        RenameFailedError: If disabling fails (nothing else is attempted)
        DirectoryLockedError: If the parked tree is held open by another process
        InstallIOError: If deleting the parked tree or saving the record fails
    """
    layout = context.layout
    disable(layout)
    remove_tree(layout.disabled_dir)
    context.store.clear_tags()
    logger.info(f"Uninstalled overlay, restored {layout.target_dir}")
