"""Tests for layout conventions and TOML loading."""

from pathlib import Path

import pytest
from overlay_installer import InstallLayout
from overlay_installer import load_layout
from pydantic import ValidationError


def test_for_runtime_conventions():
    layout = InstallLayout.for_runtime(Path("/opt/il"), Path("/helper"), target_name="libil")

    assert layout.target_dir == Path("/opt/il/libil")
    assert layout.original_dir == Path("/opt/il/libil_original")
    assert layout.install_dir == Path("/helper/runtime/libil")
    assert layout.overlay_dir == Path("/helper/runtime/libil/overlay")
    assert layout.disabled_dir == Path("/helper/runtime/libil_disabled")
    assert layout.version_file == Path("/helper/version.json")
    assert layout.seed_dirs == {"runtime": Path("/opt/il")}


def test_for_runtime_overrides():
    layout = InstallLayout.for_runtime(Path("/opt/il"), Path("/helper"), version_file=Path("/etc/v.json"))

    assert layout.version_file == Path("/etc/v.json")


def test_layout_is_frozen():
    layout = InstallLayout.for_runtime(Path("/opt/il"), Path("/helper"))

    with pytest.raises(ValidationError):
        layout.target_dir = Path("/elsewhere")  # type: ignore[misc]


def test_load_layout_resolves_relative_paths(tmp_path):
    config = tmp_path / "installer.toml"
    config.write_text(
        """
[layout]
runtime_dir = "engine/il"
helper_root = ".helper"
target_name = "libil"
version_file = "state/version.json"

[layout.seed_dirs]
runtime = "engine/il"
mono = "/opt/mono"
"""
    )

    layout = load_layout(config)

    assert layout.target_dir == (tmp_path / "engine" / "il").resolve() / "libil"
    assert layout.helper_root == (tmp_path / ".helper").resolve()
    assert layout.version_file == (tmp_path / "state" / "version.json").resolve()
    assert layout.seed_dirs["mono"] == Path("/opt/mono")


def test_load_layout_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_layout(tmp_path / "nope.toml")


def test_load_layout_missing_table(tmp_path):
    config = tmp_path / "installer.toml"
    config.write_text("[other]\nkey = 1\n")

    with pytest.raises(KeyError, match="layout"):
        load_layout(config)


def test_overlay_dir_outside_install_dir_rejected(tmp_path):
    """An overlay outside the active tree would escape its snapshot and cleanup."""
    with pytest.raises(ValidationError, match="must be inside install_dir"):
        InstallLayout.for_runtime(tmp_path / "il", tmp_path / "helper", overlay_dir=tmp_path / "ext_overlay")


def test_overlay_dir_equal_to_install_dir_rejected(tmp_path):
    helper = tmp_path / "helper"

    with pytest.raises(ValidationError, match="must be inside install_dir"):
        InstallLayout.for_runtime(tmp_path / "il", helper, overlay_dir=helper / "runtime" / "libruntime")


def test_install_dir_override_moves_default_overlay():
    layout = InstallLayout.for_runtime(Path("/opt/il"), Path("/helper"), install_dir=Path("/active"))

    assert layout.overlay_dir == Path("/active/overlay")


def test_load_layout_rejects_overlay_outside_install_dir(tmp_path):
    config = tmp_path / "installer.toml"
    config.write_text(
        """
[layout]
runtime_dir = "engine/il"
helper_root = ".helper"
overlay_dir = "ext_overlay"
"""
    )

    with pytest.raises(ValidationError):
        load_layout(config)
