"""Shared fixtures: zip archives on disk and a fake artifact cache."""

import zipfile
from pathlib import Path

import pytest
from overlay_installer import ArtifactKind
from overlay_installer import InstallLayout
from overlay_installer import VersionDescriptor


def make_zip(path: Path, files: dict[str, str]) -> Path:
    """Write a zip archive containing ``files`` (archive name -> text content)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


def tree_contents(root: Path) -> dict[str, bytes]:
    """Map every file under ``root`` (relative posix path) to its bytes."""
    if not root.exists():
        return {}
    return {p.relative_to(root).as_posix(): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()}


def write_tree(root: Path, files: dict[str, str]) -> None:
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


class FakeCache:
    """Artifact cache serving archives named ``<type>-<tag>.zip`` from a directory."""

    def __init__(self, cache_dir: Path):
        self._cache_dir = cache_dir

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def set_cache_dir(self, cache_dir: Path) -> None:
        self._cache_dir = cache_dir

    def get_archive_path(self, kind: ArtifactKind, version: VersionDescriptor) -> Path:
        ref = version.artifact(kind)
        return self._cache_dir / f"{ref.type}-{ref.tag}.zip"

    def get_inner_folder(self, kind: ArtifactKind, version: VersionDescriptor) -> str:
        ref = version.artifact(kind)
        return f"{ref.type}-{ref.tag}"

    def add(self, artifact_type: str, tag: str, files: dict[str, str]) -> Path:
        """Create an archive whose content sits under the inner folder."""
        prefix = f"{artifact_type}-{tag}"
        return make_zip(
            self._cache_dir / f"{prefix}.zip",
            {f"{prefix}/{name}": content for name, content in files.items()},
        )


@pytest.fixture
def layout(tmp_path: Path) -> InstallLayout:
    """Conventional layout with a populated host target tree."""
    runtime_dir = tmp_path / "engine" / "il"
    write_tree(runtime_dir / "libruntime", {"vm/core.cpp": "pristine core", "README": "host runtime"})
    return InstallLayout.for_runtime(runtime_dir, tmp_path / "helper")


@pytest.fixture
def cache(tmp_path: Path) -> FakeCache:
    fake = FakeCache(tmp_path / "cache")
    fake.add("base", "v1.2", {"vm/core.cpp": "base core v1.2", "vm/gc.cpp": "gc v1.2"})
    fake.add("overlay", "2024.08", {"patch.cpp": "overlay 2024.08", "include/patch.h": "// header"})
    return fake


@pytest.fixture
def version() -> VersionDescriptor:
    return VersionDescriptor.of("base", "v1.2", "overlay", "2024.08")
