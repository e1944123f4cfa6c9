# SPDX-License-Identifier: MIT
"""Configuration for vendoring runs.

Configuration comes from two places:

- the environment: ``VENDORIZE_PATH`` (falling back to ``PYTHONPATH``) lists
  the workspace roots that packages are resolved against;
- the optional ``[tool.vendorize]`` table of the project's pyproject.toml.

Example pyproject.toml section:

    [tool.vendorize]
    dependencies-file = "dependencies"
    source-suffixes = [".py", ".pyi"]
    vcs-dirs = [".git", ".hg", ".bzr"]
    skip-dirs = ["__pycache__", ".venv", "venv", ".tox", ".nox"]
    formatter = ["black", "--quiet", "."]
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .errors import VendorizeError

WORKSPACE_ENV_VAR = "VENDORIZE_PATH"
FALLBACK_WORKSPACE_ENV_VAR = "PYTHONPATH"

DEFAULT_DEPENDENCIES_FILE = "dependencies"
DEFAULT_SOURCE_SUFFIXES = (".py",)
DEFAULT_VCS_DIRS = (".git", ".hg", ".bzr")
DEFAULT_SKIP_DIRS = ("__pycache__", ".venv", "venv", ".tox", ".nox")


class ConfigError(VendorizeError):
    """Raised when configuration is missing or invalid."""

    pass


def parse_workspace_roots(value: str) -> list[Path]:
    """Split a path-list environment value into workspace roots.

    Empty entries (``a::b``, trailing separators) are skipped.
    """
    return [Path(entry) for entry in value.split(os.pathsep) if entry.strip()]


def _string_list(table: Mapping[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = table.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"[tool.vendorize] {key} must be a list of strings")
    return tuple(value)


@dataclass
class VendorizeConfig:
    """Settings for one vendoring run.

    Attributes:
        workspace_roots: Directories that import paths are resolved against
        project_dir: Root of the host project (rewrite walk starts here)
        dependencies_file: File listing previously vendored prefixes
        source_suffixes: File suffixes treated as source files
        vcs_dirs: Version-control metadata directories stripped after copying
        skip_dirs: Directory names the rewrite walk does not descend into,
            in addition to vcs_dirs
        formatter: Command run over the project after a rewrite (empty: skip)
        copy: Run the copy, strip and revision stages
        rewrite: Run the import rewrite and formatter stages
        commit: Run the stage/commit step
    """

    workspace_roots: list[Path]
    project_dir: Path
    dependencies_file: Path = Path(DEFAULT_DEPENDENCIES_FILE)
    source_suffixes: tuple[str, ...] = DEFAULT_SOURCE_SUFFIXES
    vcs_dirs: tuple[str, ...] = DEFAULT_VCS_DIRS
    skip_dirs: tuple[str, ...] = DEFAULT_SKIP_DIRS
    formatter: list[str] = field(default_factory=list)
    copy: bool = True
    rewrite: bool = True
    commit: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.workspace_roots:
            raise ConfigError(
                f"No workspace root configured. Set {WORKSPACE_ENV_VAR} "
                f"(or {FALLBACK_WORKSPACE_ENV_VAR}) to a list of directories."
            )
        if not self.source_suffixes:
            raise ConfigError("At least one source suffix is required")
        for suffix in self.source_suffixes:
            if not suffix.startswith("."):
                raise ConfigError(f"Invalid source suffix: {suffix!r} (must start with '.')")

        self.project_dir = Path(self.project_dir)
        self.dependencies_file = Path(self.dependencies_file)
        if not self.dependencies_file.is_absolute():
            self.dependencies_file = self.project_dir / self.dependencies_file

    @classmethod
    def from_pyproject_dict(
        cls,
        pyproject: dict[str, Any],
        project_dir: Path,
        workspace_roots: list[Path],
    ) -> "VendorizeConfig":
        """Create VendorizeConfig from a parsed pyproject.toml dictionary.

        Args:
            pyproject: Parsed pyproject.toml as a dictionary
            project_dir: Directory containing pyproject.toml
            workspace_roots: Workspace roots from the environment

        Returns:
            VendorizeConfig instance

        Raises:
            ConfigError: If a [tool.vendorize] value has the wrong type
        """
        tool_vendorize = pyproject.get("tool", {}).get("vendorize", {})
        if not isinstance(tool_vendorize, dict):
            raise ConfigError("[tool.vendorize] must be a table")

        dependencies_file = tool_vendorize.get("dependencies-file", DEFAULT_DEPENDENCIES_FILE)
        if not isinstance(dependencies_file, str) or not dependencies_file:
            raise ConfigError("[tool.vendorize] dependencies-file must be a non-empty string")

        return cls(
            workspace_roots=workspace_roots,
            project_dir=project_dir,
            dependencies_file=Path(dependencies_file),
            source_suffixes=_string_list(tool_vendorize, "source-suffixes", DEFAULT_SOURCE_SUFFIXES),
            vcs_dirs=_string_list(tool_vendorize, "vcs-dirs", DEFAULT_VCS_DIRS),
            skip_dirs=_string_list(tool_vendorize, "skip-dirs", DEFAULT_SKIP_DIRS),
            formatter=list(_string_list(tool_vendorize, "formatter", ())),
        )


def workspace_roots_from_env(environ: Optional[Mapping[str, str]] = None) -> list[Path]:
    """Read workspace roots from the environment."""
    env = os.environ if environ is None else environ
    value = env.get(WORKSPACE_ENV_VAR) or env.get(FALLBACK_WORKSPACE_ENV_VAR) or ""
    return parse_workspace_roots(value)


def load_config(
    project_dir: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> VendorizeConfig:
    """Load configuration for a project directory.

    Args:
        project_dir: Host project directory (defaults to cwd)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        VendorizeConfig instance

    Raises:
        ConfigError: If no workspace root is configured or pyproject.toml is invalid
    """
    project_path = Path(project_dir) if project_dir is not None else Path.cwd()
    project_path = project_path.resolve()
    roots = workspace_roots_from_env(environ)

    pyproject: dict[str, Any] = {}
    pyproject_path = project_path / "pyproject.toml"
    if pyproject_path.exists():
        try:
            with open(pyproject_path, "rb") as f:
                pyproject = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML syntax in {pyproject_path}: {e}") from e

    return VendorizeConfig.from_pyproject_dict(pyproject, project_path, roots)
