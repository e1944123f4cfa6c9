# SPDX-License-Identifier: MIT
"""Registry of vendored import-path prefixes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional


def prefix_basename(prefix: str) -> str:
    """Return the last dotted component of a prefix ("acme.lib" -> "lib")."""
    return prefix.rpartition(".")[2]


def read_dependencies_file(path: Path) -> list[str]:
    """Read prefixes from a dependencies file.

    One prefix per line. Blank lines and lines starting with '#' are skipped.
    A missing file yields an empty list.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return []

    prefixes: list[str] = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            prefixes.append(line)
    return prefixes


@dataclass(frozen=True)
class DependencyRegistry:
    """Ordered, immutable sequence of dependency prefixes.

    Matching is a literal string-prefix test and the first prefix in
    registry order wins, so ordering is part of the contract.
    """

    prefixes: tuple[str, ...] = ()

    @classmethod
    def load(cls, persisted_list: Path, current_package: str) -> "DependencyRegistry":
        """Load known prefixes and append the package being vendored.

        Args:
            persisted_list: Path to the dependencies file (may not exist)
            current_package: Import path of the package being vendored

        Returns:
            DependencyRegistry with current_package as its last entry
        """
        prefixes = read_dependencies_file(persisted_list)
        prefixes.append(current_package)
        return cls(tuple(prefixes))

    def match(self, path: str) -> Optional[str]:
        """Return the first prefix that path starts with, or None."""
        for prefix in self.prefixes:
            if path.startswith(prefix):
                return prefix
        return None

    def matches(self, path: str) -> list[str]:
        """Return every prefix that path starts with, in registry order."""
        return [prefix for prefix in self.prefixes if path.startswith(prefix)]

    def __iter__(self) -> Iterator[str]:
        return iter(self.prefixes)

    def __len__(self) -> int:
        return len(self.prefixes)
