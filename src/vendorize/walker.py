# SPDX-License-Identifier: MIT
"""Tree-wide import rewriting and the follow-up formatter pass."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from .errors import VendorizeError
from .registry import DependencyRegistry
from .rewriter import RewriteResult, RewriteStatus, rewrite_file

logger = logging.getLogger(__name__)

# Never descended into during a walk
SKIPPED_DIRS = frozenset({".git", ".hg", ".bzr", "__pycache__", ".venv", "venv", ".tox", ".nox"})


class FormatterError(VendorizeError):
    """Raised when the external formatter fails."""

    pass


@dataclass
class TreeRewriteReport:
    """Aggregated outcomes of a tree walk.

    Attributes:
        root: Directory that was walked
        results: One RewriteResult per visited source file
        walk_errors: Directories that could not be listed
    """

    root: Path
    results: list[RewriteResult] = field(default_factory=list)
    walk_errors: list[str] = field(default_factory=list)

    def _with_status(self, status: RewriteStatus) -> list[RewriteResult]:
        return [r for r in self.results if r.status is status]

    @property
    def rewritten(self) -> list[RewriteResult]:
        return self._with_status(RewriteStatus.REWRITTEN)

    @property
    def unchanged(self) -> list[RewriteResult]:
        return self._with_status(RewriteStatus.UNCHANGED)

    @property
    def failed(self) -> list[RewriteResult]:
        return self._with_status(RewriteStatus.FAILED)

    @property
    def any_rewritten(self) -> bool:
        return any(r.modified for r in self.results)

    @property
    def success(self) -> bool:
        """True if every file and directory was processed without error."""
        return not self.failed and not self.walk_errors


def iter_source_files(
    root: Path,
    suffixes: Sequence[str],
    walk_errors: list[str],
    skip_dirs: Iterable[str] = SKIPPED_DIRS,
) -> Iterator[Path]:
    """Yield source files under root in sorted order.

    Symlinked files are skipped. Directories that cannot be listed are
    appended to walk_errors and skipped; the walk continues.
    """
    skipped = frozenset(skip_dirs)
    suffix_tuple = tuple(suffixes)

    def on_error(error: OSError) -> None:
        logger.warning("Cannot list %s: %s", error.filename, error.strerror or error)
        walk_errors.append(f"{error.filename}: {error.strerror or error}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames[:] = sorted(d for d in dirnames if d not in skipped)
        for filename in sorted(filenames):
            if not filename.endswith(suffix_tuple):
                continue
            path = Path(dirpath) / filename
            if path.is_symlink():
                # Replacing the link would turn it into a regular file
                logger.debug("Skipping symlink %s", path)
                continue
            yield path


def rewrite_tree(
    root: str | Path,
    registry: DependencyRegistry,
    local_root: str,
    suffixes: Sequence[str] = (".py",),
    formatter: Sequence[str] = (),
    skip_dirs: Iterable[str] = SKIPPED_DIRS,
) -> TreeRewriteReport:
    """Rewrite imports in every source file under a directory.

    A failure on one file is logged and recorded in the report, and the
    walk moves on to the next file. Once every file has been visited, the
    formatter runs over root if at least one file was rewritten.

    Args:
        root: Directory to walk
        registry: Dependency prefixes, tried in order
        local_root: Dotted namespace vendored packages live under
        suffixes: File suffixes treated as source files
        formatter: Formatter command; empty skips the formatting pass
        skip_dirs: Directory names not descended into

    Returns:
        TreeRewriteReport with one result per source file

    Raises:
        FormatterError: If the formatting pass fails
    """
    root_path = Path(root)
    report = TreeRewriteReport(root=root_path)

    for path in iter_source_files(root_path, suffixes, report.walk_errors, skip_dirs):
        report.results.append(rewrite_file(path, registry, local_root))

    logger.info(
        "Rewrote %d file(s), %d unchanged, %d failed under %s",
        len(report.rewritten),
        len(report.unchanged),
        len(report.failed),
        root_path,
    )

    if report.any_rewritten:
        run_formatter(root_path, formatter)

    return report


def run_formatter(root: str | Path, command: Sequence[str]) -> None:
    """Run an external formatter over a directory.

    Args:
        root: Working directory for the formatter
        command: Command and arguments; empty disables the pass

    Raises:
        FormatterError: If the formatter is missing or exits non-zero
    """
    if not command:
        return

    logger.info("Formatting %s with %s", root, " ".join(command))
    try:
        result = subprocess.run(
            list(command),
            cwd=str(root),
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        raise FormatterError(f"Formatter not found: {command[0]}") from None
    except OSError as e:
        raise FormatterError(f"Failed to run formatter: {e}") from e

    if result.returncode != 0:
        raise FormatterError(
            f"Formatter exited with status {result.returncode}:\n{result.stderr}{result.stdout}"
        )
