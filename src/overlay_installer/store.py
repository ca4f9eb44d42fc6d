"""Installed version record persistence.

One small JSON file per target project records what is installed:

{
  "baseTag": "v1.2",
  "overlayTag": "2024.08",
  "installTimeText": "2026-10-19T12:00:00+00:00",
  "installTimestampMillis": 1792411200000,
  "cacheDir": "/home/me/.cache/overlay"
}

A missing file means "never installed". The file is overwritten wholesale;
there is a single writer because installs are single-flight.
"""

import json
import logging
import os
import time
from dataclasses import dataclass
from dataclasses import replace
from datetime import UTC
from datetime import datetime
from pathlib import Path

from .schema import VersionDescriptor
from .utils import wrap_os_error

logger = logging.getLogger(__name__)

_FIELD_KEYS = {
    "base_tag": "baseTag",
    "overlay_tag": "overlayTag",
    "install_time": "installTimeText",
    "timestamp_ms": "installTimestampMillis",
    "cache_dir": "cacheDir",
}


@dataclass(frozen=True)
class InstalledVersionRecord:
    """Persisted state of the installation (all empty when never installed)."""

    base_tag: str = ""
    overlay_tag: str = ""
    install_time: str = ""
    timestamp_ms: int = 0
    cache_dir: str = ""

    @property
    def is_installed(self) -> bool:
        return bool(self.base_tag or self.overlay_tag)

    def to_dict(self) -> dict:
        """Convert to the on-disk JSON shape."""
        return {key: getattr(self, name) for name, key in _FIELD_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict) -> "InstalledVersionRecord":
        """Create from the on-disk JSON shape, ignoring unknown keys."""
        return cls(**{name: data[key] for name, key in _FIELD_KEYS.items() if key in data})


class VersionStore:
    """Version record file manager (with injected file path).

    Args:
        version_path: Path to the JSON record (app determines location)

    Example:
        >>> store = VersionStore(Path(".helper/version.json"))
        >>> store.record.base_tag
        ''
    """

    def __init__(self, version_path: Path):
        self.version_path = version_path
        self.record = self.load()

    def load(self) -> InstalledVersionRecord:
        """Read the record from disk; empty record if the file is absent or unreadable."""
        if not self.version_path.exists():
            return InstalledVersionRecord()

        try:
            data = json.loads(self.version_path.read_text(encoding="utf-8"))
            record = InstalledVersionRecord.from_dict(data)
        except Exception as e:
            logger.error(f"Failed to load version file {self.version_path}: {e}")
            return InstalledVersionRecord()

        logger.debug(f"Loaded installed version base={record.base_tag!r} overlay={record.overlay_tag!r}")
        return record

    def save(self, record: InstalledVersionRecord) -> None:
        """Overwrite the version file atomically and adopt ``record`` in memory.

        Raises:
            DirectoryLockedError: If the file is held open by another process
            InstallIOError: If the write fails otherwise
        """
        tmp_path = self.version_path.with_name(f"{self.version_path.name}.tmp")
        try:
            self.version_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp_path, self.version_path)
        except OSError as e:
            raise wrap_os_error(e, "write version file", self.version_path) from e

        self.record = record
        logger.info(f"Saved installed version to {self.version_path}")

    def record_install(self, version: VersionDescriptor, cache_dir: Path | str) -> InstalledVersionRecord:
        """Persist a successful install of ``version`` stamped with the current time."""
        record = InstalledVersionRecord(
            base_tag=version.base.tag,
            overlay_tag=version.overlay.tag,
            install_time=datetime.now(UTC).isoformat(timespec="seconds"),
            timestamp_ms=time.time_ns() // 1_000_000,
            cache_dir=str(cache_dir),
        )
        self.save(record)
        return record

    def update_cache_dir(self, cache_dir: Path | str) -> None:
        """Persist a new cache location, leaving version tags untouched."""
        self.save(replace(self.record, cache_dir=str(cache_dir)))

    def clear_tags(self) -> None:
        """Persist "nothing installed" while keeping the cache location."""
        self.save(replace(self.record, base_tag="", overlay_tag=""))
