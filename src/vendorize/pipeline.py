# SPDX-License-Identifier: MIT
"""The vendoring pipeline.

Stages run strictly in order, each one reading the on-disk state the
previous one produced:

1. copy: replace the destination with a copy of the package source
2. strip: remove version-control metadata from the destination
3. detect: read the source revision (empty if unknown)
4. rewrite: rewrite imports across the project, then format
5. commit: stage and commit the destination

Copy, strip and formatter failures abort the run. Revision detection and
commit failures are logged and the run carries on.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .config import VendorizeConfig
from .errors import VendorizeError
from .registry import DependencyRegistry, prefix_basename
from .resolver import project_namespace, resolve_package
from .revision import DEFAULT_BACKENDS, VCSBackend, detect_revision
from .walker import TreeRewriteReport, rewrite_tree

logger = logging.getLogger(__name__)


class VendorCopyError(VendorizeError):
    """Raised when copying the package or stripping its metadata fails."""

    pass


class CommitError(VendorizeError):
    """Raised when staging or committing the vendored tree fails."""

    pass


@dataclass
class PackageDescriptor:
    """The package being vendored.

    Attributes:
        import_path: Dotted import path of the package
        source_dir: Package directory in the workspace
        destination: Directory the package is copied to
        revision: Source revision, filled in by the detect stage
    """

    import_path: str
    source_dir: Path
    destination: Path
    revision: str = ""

    @classmethod
    def resolve(cls, import_path: str, config: VendorizeConfig) -> "PackageDescriptor":
        """Locate a package in the workspace and pick its destination.

        The destination is named after the last component of the import
        path, inside the project directory.

        Raises:
            PackageNotFoundError: If the package is not in any workspace root
        """
        source_dir = resolve_package(import_path, config.workspace_roots)
        destination = config.project_dir / prefix_basename(import_path)
        return cls(import_path=import_path, source_dir=source_dir, destination=destination)

    @property
    def commit_message(self) -> str:
        return f"Vendor {self.import_path} revision {self.revision}"


@dataclass
class PipelineResult:
    """Outcome of a pipeline run.

    Attributes:
        descriptor: The vendored package, with its revision
        report: Rewrite report, None if the rewrite stage was skipped
        committed: Whether the commit stage succeeded
    """

    descriptor: PackageDescriptor
    report: Optional[TreeRewriteReport] = None
    committed: bool = False


def _run_git(args: list[str], cwd: Path) -> None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        raise CommitError("git executable not found") from None
    except OSError as e:
        raise CommitError(f"Failed to run git: {e}") from e

    if result.returncode != 0:
        raise CommitError(
            f"git {args[0]} failed (status {result.returncode}):\n{result.stderr}{result.stdout}"
        )


class VendoringPipeline:
    """Runs the vendoring stages for one package.

    All inputs are passed in explicitly; the pipeline never reads the
    environment or the current directory.
    """

    def __init__(
        self,
        config: VendorizeConfig,
        descriptor: PackageDescriptor,
        registry: DependencyRegistry,
        local_root: str,
        backends: Sequence[VCSBackend] = DEFAULT_BACKENDS,
    ) -> None:
        self.config = config
        self.descriptor = descriptor
        self.registry = registry
        self.local_root = local_root
        self.backends = backends

    @classmethod
    def from_config(cls, import_path: str, config: VendorizeConfig) -> "VendoringPipeline":
        """Build a pipeline by resolving the package and loading the registry.

        Raises:
            PackageNotFoundError: If the package cannot be found
            ConfigError: If the project is not inside a workspace root
        """
        descriptor = PackageDescriptor.resolve(import_path, config)
        local_root = project_namespace(config.project_dir, config.workspace_roots)
        registry = DependencyRegistry.load(config.dependencies_file, import_path)
        return cls(config, descriptor, registry, local_root)

    def copy(self) -> None:
        """Replace the destination with a fresh copy of the package source."""
        source = self.descriptor.source_dir
        destination = self.descriptor.destination
        logger.info("Copying %s to %s", source, destination)
        resolved_source = source.resolve()
        resolved_destination = destination.resolve()
        if (
            resolved_destination == resolved_source
            or resolved_source in resolved_destination.parents
            or resolved_destination in resolved_source.parents
        ):
            raise VendorCopyError(f"Destination {destination} overlaps package source {source}")
        try:
            if destination.exists():
                shutil.rmtree(destination)
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(source, destination, symlinks=True)
        except (OSError, shutil.Error) as e:
            raise VendorCopyError(f"Failed to copy {source} to {destination}: {e}") from e

    def strip_metadata(self) -> None:
        """Remove version-control metadata from the destination."""
        for name in self.config.vcs_dirs:
            target = self.descriptor.destination / name
            try:
                if target.is_dir() and not target.is_symlink():
                    shutil.rmtree(target)
                elif target.exists() or target.is_symlink():
                    # git worktrees and submodules use a .git file
                    target.unlink()
            except OSError as e:
                raise VendorCopyError(f"Failed to remove {target}: {e}") from e
            logger.debug("Stripped %s", target)

    def detect_revision(self) -> str:
        """Record the revision of the package source.

        The source directory is probed because the destination's metadata
        has already been stripped.
        """
        self.descriptor.revision = detect_revision(self.descriptor.source_dir, self.backends)
        return self.descriptor.revision

    def rewrite(self) -> TreeRewriteReport:
        """Rewrite imports across the whole project and run the formatter."""
        if self.registry.match(self.local_root) is not None:
            logger.warning(
                "Local root %r starts with a registry prefix; running again will rewrite "
                "already vendored imports a second time",
                self.local_root,
            )
        return rewrite_tree(
            self.config.project_dir,
            self.registry,
            self.local_root,
            suffixes=self.config.source_suffixes,
            formatter=self.config.formatter,
            skip_dirs={*self.config.vcs_dirs, *self.config.skip_dirs},
        )

    def commit(self) -> bool:
        """Stage and commit the destination.

        Returns:
            True if the commit succeeded. Failures are logged, not raised.
        """
        destination = self.descriptor.destination
        try:
            relative = destination.relative_to(self.config.project_dir)
        except ValueError:
            relative = destination
        try:
            _run_git(["add", str(relative)], self.config.project_dir)
            _run_git(
                ["commit", "-m", self.descriptor.commit_message, "--", str(relative)],
                self.config.project_dir,
            )
        except CommitError as e:
            logger.warning("Commit failed, vendored tree left for manual commit: %s", e)
            return False
        logger.info("Committed %s", self.descriptor.commit_message)
        return True

    def run(self) -> PipelineResult:
        """Run every enabled stage in order.

        Raises:
            VendorCopyError: If the copy or strip stage fails
            FormatterError: If the formatter fails after a rewrite
        """
        result = PipelineResult(descriptor=self.descriptor)

        if self.config.copy:
            self.copy()
            self.strip_metadata()
            self.detect_revision()

        if self.config.rewrite:
            result.report = self.rewrite()

        if self.config.commit:
            result.committed = self.commit()

        return result
