"""Artifact installation - copy extracted trees into their final locations.

The installer knows nothing about archives or versions: it receives two
already-extracted directories and the layout saying where they go.
"""

import logging
from pathlib import Path

from .exceptions import MissingExtractedArtifactError
from .layout import InstallLayout
from .utils import copy_tree
from .utils import remove_tree

logger = logging.getLogger(__name__)


class ArtifactInstaller:
    """Copies the base and overlay trees into ``install_dir`` / ``overlay_dir``."""

    def __init__(self, layout: InstallLayout):
        self.layout = layout

    def install(self, extracted_base: Path, extracted_overlay: Path) -> None:
        """
        Replace the installed trees with freshly extracted ones.

        Process:
        1. Verify both extracted directories exist (nothing is touched otherwise)
        2. Remove any leftover target tree and the previous active tree
        3. Copy the base tree into install_dir
        4. Copy the overlay tree into overlay_dir

        Args:
            extracted_base: Content folder of the extracted base archive
            extracted_overlay: Content folder of the extracted overlay archive

        Raises:
            MissingExtractedArtifactError: If either extracted directory is missing
            DirectoryLockedError: If a destination is held open by another process
            InstallIOError: If a copy or delete fails otherwise
        """
        for kind, path in (("base", extracted_base), ("overlay", extracted_overlay)):
            if not path.is_dir():
                raise MissingExtractedArtifactError(
                    f"Extracted {kind} artifact not found: {path}",
                    context={"kind": kind, "path": str(path)},
                )

        remove_tree(self.layout.target_dir)
        remove_tree(self.layout.install_dir)

        logger.info(f"Installing base tree to {self.layout.install_dir}")
        copy_tree(extracted_base, self.layout.install_dir)

        logger.info(f"Installing overlay tree to {self.layout.overlay_dir}")
        copy_tree(extracted_overlay, self.layout.overlay_dir)
