"""Install request schema - which artifacts to install.

A version descriptor names two artifacts: the base runtime tree and the overlay
(patch) tree. Each has an archive type (how the cache locates it) and a tag
(which version). Descriptors are frozen so an install attempt cannot change
underneath the pipeline.
"""

from enum import Enum

from pydantic import BaseModel
from pydantic import ConfigDict


class ArtifactKind(str, Enum):
    """The two artifact trees an install combines."""

    BASE = "base"
    OVERLAY = "overlay"


class ArtifactRef(BaseModel):
    """One artifact of an install request."""

    model_config = ConfigDict(frozen=True)

    type: str
    tag: str


class VersionDescriptor(BaseModel):
    """Requested version pair (immutable once an install starts)."""

    model_config = ConfigDict(frozen=True)

    base: ArtifactRef
    overlay: ArtifactRef

    @classmethod
    def of(cls, base_type: str, base_tag: str, overlay_type: str, overlay_tag: str) -> "VersionDescriptor":
        """Build a descriptor from four plain strings.

        Example:
            >>> VersionDescriptor.of("base", "v1.2", "overlay", "2024.08").overlay.tag
            '2024.08'
        """
        return cls(
            base=ArtifactRef(type=base_type, tag=base_tag),
            overlay=ArtifactRef(type=overlay_type, tag=overlay_tag),
        )

    def artifact(self, kind: ArtifactKind) -> ArtifactRef:
        """Return the artifact reference for ``kind``."""
        return self.base if ArtifactKind(kind) is ArtifactKind.BASE else self.overlay
