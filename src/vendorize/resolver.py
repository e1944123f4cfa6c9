# SPDX-License-Identifier: MIT
"""Workspace resolution.

A workspace root is a directory that holds top-level Python packages, the
way entries on ``sys.path`` do. The import path ``acme.lib`` resolves to
``<root>/acme/lib`` in the first root where that directory exists.

The same roots determine the host project's own import namespace: a project
at ``<root>/myproj/vendor`` lives in the ``myproj.vendor`` namespace, which is
where vendored packages get rewritten to.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .config import ConfigError
from .errors import VendorizeError

logger = logging.getLogger(__name__)


class PackageNotFoundError(VendorizeError):
    """Raised when an import path cannot be resolved in any workspace root."""

    pass


def split_import_path(import_path: str) -> list[str]:
    """Split a dotted import path into its components.

    Raises:
        PackageNotFoundError: If the path is empty or a component is not an identifier
    """
    parts = import_path.split(".")
    if not import_path or not all(part.isidentifier() for part in parts):
        raise PackageNotFoundError(f"Invalid import path: {import_path!r}")
    return parts


def resolve_package(import_path: str, workspace_roots: Iterable[Path]) -> Path:
    """Find the source directory of a package.

    Args:
        import_path: Dotted import path of the package (e.g. "acme.lib")
        workspace_roots: Roots searched in order

    Returns:
        The package directory in the first root that has it

    Raises:
        PackageNotFoundError: If no root contains the package
    """
    parts = split_import_path(import_path)
    searched: list[str] = []

    for root in workspace_roots:
        candidate = Path(root).joinpath(*parts)
        searched.append(str(candidate))
        try:
            if candidate.is_dir():
                return candidate
        except OSError as e:
            # Unreadable roots are reported, the search goes on
            logger.warning("Cannot inspect %s: %s", candidate, e)

    raise PackageNotFoundError(
        f"Could not find package {import_path!r}. Searched:\n  " + "\n  ".join(searched)
    )


def project_namespace(project_dir: Path, workspace_roots: Iterable[Path]) -> str:
    """Compute the dotted import namespace of a project directory.

    Args:
        project_dir: Host project directory
        workspace_roots: Workspace roots, tried in order

    Returns:
        Dotted namespace, e.g. "myproj.vendor"

    Raises:
        ConfigError: If project_dir is not strictly inside a workspace root
    """
    project = Path(project_dir).resolve()

    for root in workspace_roots:
        root_path = Path(root).resolve()
        try:
            relative = project.relative_to(root_path)
        except ValueError:
            continue
        if not relative.parts:
            continue
        return ".".join(relative.parts)

    raise ConfigError(f"Project directory {project} is not inside a workspace root")
