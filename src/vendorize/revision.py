# SPDX-License-Identifier: MIT
"""Source revision detection across version-control systems.

Each backend answers two questions about a directory: is it under this
version-control system (a metadata directory is present), and what is its
current revision. Backends are tried in a fixed priority order and the first
one present wins.
"""

from __future__ import annotations

import abc
import logging
import subprocess
from pathlib import Path
from typing import Sequence

from .errors import VendorizeError

logger = logging.getLogger(__name__)


class RevisionError(VendorizeError):
    """Raised when a version-control command fails."""

    pass


def _run_vcs(command: list[str], directory: Path) -> str:
    """Run a version-control command in directory and return its stripped stdout."""
    try:
        result = subprocess.run(
            command,
            cwd=str(directory),
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        raise RevisionError(f"Command not found: {command[0]}") from None
    except OSError as e:
        raise RevisionError(f"Failed to run {command[0]}: {e}") from e

    if result.returncode != 0:
        raise RevisionError(
            f"{' '.join(command)} exited with status {result.returncode}: {result.stderr.strip()}"
        )
    output = result.stdout.strip()
    if not output:
        raise RevisionError(f"{' '.join(command)} printed no revision")
    return output


class VCSBackend(abc.ABC):
    """Abstract base class for a version-control backend.

    Subclasses set ``name``, ``marker`` (the metadata directory) and
    ``command`` as class attributes, and may set ``short_length`` to
    truncate long identifiers.
    """

    short_length: int | None = None

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Human-readable backend name."""

    @property
    @abc.abstractmethod
    def marker(self) -> str:
        """Metadata directory whose presence marks a checkout."""

    @property
    @abc.abstractmethod
    def command(self) -> tuple[str, ...]:
        """Command that prints the current revision."""

    def detect(self, directory: Path) -> bool:
        """Check whether directory carries this backend's metadata."""
        return (Path(directory) / self.marker).exists()

    def revision(self, directory: Path) -> str:
        """Read the current revision of directory.

        Raises:
            RevisionError: If the command fails
        """
        output = _run_vcs(list(self.command), Path(directory))
        if self.short_length is not None:
            return output[: self.short_length]
        return output

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class GitBackend(VCSBackend):
    name = "git"
    marker = ".git"
    command = ("git", "rev-parse", "--verify", "HEAD")
    short_length = 8


class MercurialBackend(VCSBackend):
    name = "mercurial"
    marker = ".hg"
    command = ("hg", "id", "-i")
    short_length = 8


class BazaarBackend(VCSBackend):
    name = "bazaar"
    marker = ".bzr"
    command = ("bzr", "revno")


DEFAULT_BACKENDS: tuple[VCSBackend, ...] = (GitBackend(), MercurialBackend(), BazaarBackend())


def detect_revision(directory: str | Path, backends: Sequence[VCSBackend] = DEFAULT_BACKENDS) -> str:
    """Detect the revision of a directory.

    Args:
        directory: Directory to probe
        backends: Backends in priority order

    Returns:
        Revision of the first backend present, or "" if no backend is
        present or its command fails
    """
    path = Path(directory)
    for backend in backends:
        if not backend.detect(path):
            continue
        try:
            revision = backend.revision(path)
        except RevisionError as e:
            logger.warning("Could not read %s revision of %s: %s", backend.name, path, e)
            return ""
        logger.info("Detected %s revision %s", backend.name, revision)
        return revision

    logger.info("No version control metadata found in %s", path)
    return ""
