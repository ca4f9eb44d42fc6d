"""Zip archive extraction with incremental, cooperative progress.

Each entry is decompressed in a worker thread and the event loop gets control
back between entries, so a large archive never blocks the caller's loop.
Errors do not escape the progress stream: iteration simply ends early and
``ArchiveExtraction.error`` holds the reason.
"""

import asyncio
import logging
import zipfile
import zlib
from collections.abc import AsyncIterator
from pathlib import Path
from typing import NamedTuple

from .exceptions import ArchiveExtractionError
from .protocols import ProgressSinkProtocol
from .utils import remove_tree

logger = logging.getLogger(__name__)

# Everything zipfile can raise while opening or decompressing a damaged archive
_EXTRACT_ERRORS = (OSError, EOFError, zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError)


class ExtractProgress(NamedTuple):
    """One progress tick: entries done out of total entries."""

    completed: int
    total: int


class ArchiveExtraction:
    """Single-use progress stream for extracting one archive.

    The entry count is unknown until the archive is opened, so the first tick
    is ``(0, total)`` and each extracted entry produces another tick.

    Example:
        >>> extraction = extract_archive(Path("cache/base-v1.2.zip"), Path("cache/base-v1.2"))
        >>> async for completed, total in extraction:
        ...     print(f"{completed}/{total}")
        >>> if extraction.error:
        ...     raise extraction.error
    """

    def __init__(self, archive_path: Path, dest_dir: Path):
        self.archive_path = archive_path
        self.dest_dir = dest_dir
        self.completed = 0
        self.total: int | None = None
        self.error: ArchiveExtractionError | None = None
        self._started = False

    @property
    def finished(self) -> bool:
        """True once every entry was extracted without error."""
        return self.error is None and self.total is not None and self.completed == self.total

    def __aiter__(self) -> AsyncIterator[ExtractProgress]:
        if self._started:
            raise RuntimeError(f"Extraction of {self.archive_path} already started; call extract_archive() again")
        self._started = True
        return self._run()

    def _fail(self, message: str, exc: BaseException) -> None:
        self.error = ArchiveExtractionError(
            f"{message}: {exc}",
            context={"archive": str(self.archive_path), "dest": str(self.dest_dir)},
        )
        logger.error(self.error.message)

    async def _run(self) -> AsyncIterator[ExtractProgress]:
        try:
            archive = await asyncio.to_thread(zipfile.ZipFile, self.archive_path)
        except _EXTRACT_ERRORS as e:
            self._fail(f"Cannot open archive {self.archive_path}", e)
            return

        with archive:
            entries = archive.infolist()
            self.total = len(entries)
            logger.debug(f"Extracting {self.total} entries from {self.archive_path} to {self.dest_dir}")
            yield ExtractProgress(0, self.total)

            for info in entries:
                try:
                    await asyncio.to_thread(archive.extract, info, self.dest_dir)
                except _EXTRACT_ERRORS as e:
                    self._fail(f"Failed to extract {info.filename} from {self.archive_path}", e)
                    return
                self.completed += 1
                yield ExtractProgress(self.completed, self.total)


def extract_archive(archive_path: Path, dest_dir: Path) -> ArchiveExtraction:
    """Start a new extraction stream for ``archive_path`` into ``dest_dir``."""
    return ArchiveExtraction(archive_path, dest_dir)


async def extract_to(
    archive_path: Path,
    dest_dir: Path,
    progress: ProgressSinkProtocol | None = None,
    label: str = "",
) -> int:
    """Extract an archive into a clean ``dest_dir``, forwarding progress ticks.

    Any previous content of ``dest_dir`` is removed first so repeated installs
    of the same archive produce the same tree.

    Args:
        archive_path: Zip archive to extract
        dest_dir: Extraction directory (scratch/cache location)
        progress: Optional sink receiving ``(completed, total, label)``
        label: Label passed to the sink (usually the artifact kind)

    Returns:
        Number of entries extracted

    Raises:
        ArchiveExtractionError: If the archive cannot be opened or decompressed
    """
    await asyncio.to_thread(remove_tree, dest_dir)

    extraction = extract_archive(archive_path, dest_dir)
    async for completed, total in extraction:
        if progress is not None:
            progress(completed, total, label)

    if extraction.error is not None:
        raise extraction.error

    logger.debug(f"Extracted {extraction.completed} entries from {archive_path}")
    return extraction.completed
