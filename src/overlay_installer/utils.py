"""Filesystem helpers shared by backup, install and toggle steps.

All helpers translate ``OSError`` into installer errors so callers only deal
with one hierarchy. A directory held open by another process (a shell sitting
in it, an IDE indexer, an antivirus scan) is reported as ``DirectoryLockedError``
because the user can fix that by closing the process and retrying.
"""

import errno
import logging
import os
import shutil
from pathlib import Path

from .exceptions import DirectoryLockedError
from .exceptions import InstallerError
from .exceptions import InstallIOError

logger = logging.getLogger(__name__)

_LOCKED_ERRNOS = {errno.EBUSY, errno.EACCES, errno.EPERM, errno.ETXTBSY}

# ERROR_ACCESS_DENIED, ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
_LOCKED_WINERRORS = {5, 32, 33}


def is_locked_error(exc: OSError) -> bool:
    """Check whether an OSError means "held open by another process".

    Args:
        exc: Error raised by a filesystem call

    Returns:
        True for permission/busy/sharing-violation errors, False otherwise
    """
    if isinstance(exc, PermissionError):
        return True
    if getattr(exc, "winerror", None) in _LOCKED_WINERRORS:
        return True
    return exc.errno in _LOCKED_ERRNOS


def wrap_os_error(exc: OSError, action: str, path: Path) -> InstallerError:
    """Build the installer error matching an OSError.

    Args:
        exc: Original error
        action: Short description of what was attempted ("copy", "move", ...)
        path: Directory the action was applied to

    Returns:
        DirectoryLockedError or InstallIOError (caller raises it ``from exc``)
    """
    context = {"path": str(path), "action": action}
    if is_locked_error(exc):
        return DirectoryLockedError(
            f"Cannot {action} {path}: directory is held open by another process. "
            f"Close the program using it and try again. ({exc})",
            context=context,
        )
    return InstallIOError(f"Failed to {action} {path}: {exc}", context=context)


def copy_tree(src: Path, dest: Path) -> None:
    """Recursively copy ``src`` into ``dest``, merging into existing directories."""
    logger.debug(f"Copying {src} -> {dest}")
    try:
        shutil.copytree(src, dest, dirs_exist_ok=True)
    except OSError as e:
        raise wrap_os_error(e, "copy", dest) from e


def remove_tree(path: Path) -> None:
    """Delete a directory tree if it exists."""
    if not path.exists():
        return
    logger.debug(f"Removing {path}")
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise wrap_os_error(e, "remove", path) from e


def move_dir(src: Path, dest: Path) -> None:
    """Rename a directory. Both paths must be on the same filesystem.

    Raises:
        DirectoryLockedError: If the directory is held open
        InstallIOError: If ``dest`` exists or the rename fails otherwise
    """
    if dest.exists():
        raise InstallIOError(
            f"Cannot move {src} to {dest}: destination already exists",
            context={"src": str(src), "dest": str(dest)},
        )
    logger.debug(f"Moving {src} -> {dest}")
    try:
        os.rename(src, dest)
    except OSError as e:
        raise wrap_os_error(e, "move", src) from e
