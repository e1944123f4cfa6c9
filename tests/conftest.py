# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for vendorize tests."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Generator

import pytest
from click.testing import CliRunner

from vendorize.config import VendorizeConfig
from vendorize.registry import DependencyRegistry

SAMPLE_WORKSPACE = Path(__file__).parent / "sample_workspace"

PACKAGE = "github_com.acme.lib"
LOCAL_ROOT = "myproj.vendor"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def workspace(tmp_path: Path) -> Generator[Path, None, None]:
    """Copy the sample workspace into a temporary directory.

    Layout:
        github_com/acme/lib   package to vendor
        github_com/acme/dep   previously vendored dependency
        myproj/vendor         host project (namespace "myproj.vendor")
    """
    root = tmp_path / "workspace"
    shutil.copytree(SAMPLE_WORKSPACE, root)
    yield root


@pytest.fixture
def project_dir(workspace: Path) -> Path:
    """The host project inside the sample workspace."""
    return workspace / "myproj" / "vendor"


@pytest.fixture
def package_dir(workspace: Path) -> Path:
    """Source directory of the package being vendored."""
    return workspace / "github_com" / "acme" / "lib"


@pytest.fixture
def config(workspace: Path, project_dir: Path) -> VendorizeConfig:
    """Configuration for the sample project with commits disabled."""
    return VendorizeConfig(
        workspace_roots=[workspace],
        project_dir=project_dir,
        commit=False,
    )


@pytest.fixture
def registry() -> DependencyRegistry:
    """Registry matching the sample workspace's dependencies file."""
    return DependencyRegistry(("github_com.acme.dep", PACKAGE))


def write_source(path: Path, content: str) -> Path:
    """Write a source file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
