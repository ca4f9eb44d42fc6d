"""Directory layout - where the installer reads and writes.

All paths are app policy. The library never computes them from the environment;
``for_runtime`` only applies the naming conventions to two roots the app picks.

Roles:
- target_dir: host runtime source tree, moved aside on install and restored on rollback
- original_dir: pristine copy of target_dir, created at most once and never overwritten
- install_dir: active tree the base artifact is copied into
- overlay_dir: where the overlay artifact is copied (must be inside install_dir)
- disabled_dir: parking slot for install_dir while the overlay is disabled
- helper_root + seed_dirs: helper environment seeded once from the host
"""

import tomllib
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator


class InstallLayout(BaseModel):
    """Paths used by backup, install, toggle and the version store."""

    model_config = ConfigDict(frozen=True)

    target_dir: Path
    original_dir: Path
    helper_root: Path
    seed_dirs: dict[str, Path] = Field(default_factory=dict)
    install_dir: Path
    overlay_dir: Path
    disabled_dir: Path
    version_file: Path

    @model_validator(mode="after")
    def _overlay_inside_install_dir(self) -> "InstallLayout":
        # Snapshot and rollback of install_dir must also cover the overlay
        if self.overlay_dir == self.install_dir or not self.overlay_dir.is_relative_to(self.install_dir):
            raise ValueError(f"overlay_dir {self.overlay_dir} must be inside install_dir {self.install_dir}")
        return self

    @classmethod
    def for_runtime(
        cls,
        runtime_dir: Path,
        helper_root: Path,
        target_name: str = "libruntime",
        **overrides: object,
    ) -> "InstallLayout":
        """Derive the conventional layout from the host runtime dir and helper root.

        Args:
            runtime_dir: Host directory that contains the target tree
            helper_root: Directory owned by the installer
            target_name: Name of the target tree inside runtime_dir
            **overrides: Any field to set explicitly instead of deriving it

        Example:
            >>> layout = InstallLayout.for_runtime(Path("/opt/engine/il"), Path("/tmp/helper"))
            >>> layout.original_dir
            PosixPath('/opt/engine/il/libruntime_original')
        """
        install_dir = helper_root / "runtime" / target_name
        values: dict[str, object] = {
            "target_dir": runtime_dir / target_name,
            "original_dir": runtime_dir / f"{target_name}_original",
            "helper_root": helper_root,
            "seed_dirs": {"runtime": runtime_dir},
            "install_dir": install_dir,
            "overlay_dir": install_dir / "overlay",
            "disabled_dir": helper_root / "runtime" / f"{target_name}_disabled",
            "version_file": helper_root / "version.json",
        }
        values.update(overrides)
        if "install_dir" in overrides and "overlay_dir" not in overrides:
            values["overlay_dir"] = Path(values["install_dir"]) / "overlay"
        return cls.model_validate(values)


_PATH_KEYS = ("target_dir", "original_dir", "install_dir", "overlay_dir", "disabled_dir", "version_file")


def load_layout(config_path: Path) -> InstallLayout:
    """Load a layout from a TOML file with a ``[layout]`` table.

    Required keys are ``runtime_dir`` and ``helper_root``; any other layout
    field overrides the derived default. Relative paths are resolved against
    the directory holding the config file.

    Example file:
        [layout]
        runtime_dir = "/opt/engine/il"
        helper_root = ".helper"
        target_name = "libil"

        [layout.seed_dirs]
        runtime = "/opt/engine/il"
        mono = "/opt/engine/mono"

    Raises:
        FileNotFoundError: If config file doesn't exist
        KeyError: If [layout] table or a required key is missing
        tomllib.TOMLDecodeError: If invalid TOML
        pydantic.ValidationError: If a value has the wrong type or overlay_dir is outside install_dir
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Layout config not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    table = data.get("layout")
    if not table:
        raise KeyError(f"[layout] table missing in {config_path}")

    base = config_path.parent

    def resolve(value: str) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else (base / path).resolve()

    overrides: dict[str, object] = {key: resolve(table[key]) for key in _PATH_KEYS if key in table}
    if "seed_dirs" in table:
        overrides["seed_dirs"] = {name: resolve(value) for name, value in table["seed_dirs"].items()}

    return InstallLayout.for_runtime(
        runtime_dir=resolve(table["runtime_dir"]),
        helper_root=resolve(table["helper_root"]),
        target_name=table.get("target_name", "libruntime"),
        **overrides,
    )
