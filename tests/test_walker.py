# SPDX-License-Identifier: MIT
"""Tests for tree-wide rewriting and the formatter pass."""

import sys
from pathlib import Path

import pytest

from conftest import LOCAL_ROOT, write_source
from vendorize.registry import DependencyRegistry
from vendorize.rewriter import FailureReason, RewriteStatus
from vendorize.walker import FormatterError, iter_source_files, rewrite_tree, run_formatter

ACME = DependencyRegistry(("github_com.acme.lib",))

# Formatter stand-in that leaves a marker file in its working directory
MARKER_FORMATTER = [sys.executable, "-c", "open('formatted.marker', 'w').close()"]


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    write_source(root / "app.py", "import github_com.acme.lib.util\n")
    write_source(root / "pkg" / "__init__.py", "")
    write_source(root / "pkg" / "plain.py", "import github_com.other.thing\n")
    write_source(root / "pkg" / "broken.py", "from github_com.acme.lib import (\n")
    write_source(root / "pkg" / "deep" / "nested.py", "from github_com.acme.lib import x\n")
    write_source(root / "notes.txt", "import github_com.acme.lib\n")
    write_source(root / ".git" / "hooks" / "hook.py", "import github_com.acme.lib\n")
    return root


class TestIterSourceFiles:
    def test_sorted_and_filtered(self, tree: Path):
        errors: list[str] = []
        files = [p.relative_to(tree).as_posix() for p in iter_source_files(tree, (".py",), errors)]

        assert files == [
            "app.py",
            "pkg/__init__.py",
            "pkg/broken.py",
            "pkg/plain.py",
            "pkg/deep/nested.py",
        ]
        assert errors == []

    def test_extra_suffixes(self, tree: Path):
        write_source(tree / "stubs.pyi", "")
        errors: list[str] = []
        files = {p.name for p in iter_source_files(tree, (".py", ".pyi"), errors)}
        assert "stubs.pyi" in files

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_symlinks_skipped(self, tree: Path):
        (tree / "link.py").symlink_to(tree / "app.py")
        errors: list[str] = []
        files = {p.name for p in iter_source_files(tree, (".py",), errors)}
        assert "link.py" not in files
        assert "app.py" in files


class TestRewriteTree:
    """Tests for rewrite_tree function."""

    def test_outcomes_aggregated(self, tree: Path):
        report = rewrite_tree(tree, ACME, LOCAL_ROOT)

        by_name = {r.path.name: r for r in report.results}
        assert set(by_name) == {"app.py", "__init__.py", "plain.py", "broken.py", "nested.py"}
        assert by_name["app.py"].status is RewriteStatus.REWRITTEN
        assert by_name["nested.py"].status is RewriteStatus.REWRITTEN
        assert by_name["plain.py"].status is RewriteStatus.UNCHANGED
        assert by_name["__init__.py"].status is RewriteStatus.UNCHANGED
        assert by_name["broken.py"].status is RewriteStatus.FAILED
        assert by_name["broken.py"].reason is FailureReason.PARSE_ERROR
        assert len(report.rewritten) == 2
        assert len(report.failed) == 1
        assert not report.success

    def test_files_rewritten_on_disk(self, tree: Path):
        rewrite_tree(tree, ACME, LOCAL_ROOT)

        assert (tree / "app.py").read_text() == "import myproj.vendor.lib.util\n"
        assert (tree / "pkg" / "deep" / "nested.py").read_text() == (
            "from myproj.vendor.lib import x\n"
        )

    def test_failure_does_not_stop_walk(self, tree: Path):
        """Files sorted after the broken one are still processed."""
        rewrite_tree(tree, ACME, LOCAL_ROOT)

        assert (tree / "pkg" / "broken.py").read_text() == "from github_com.acme.lib import (\n"
        assert (tree / "pkg" / "deep" / "nested.py").read_text().startswith("from myproj")

    def test_non_source_and_vcs_files_untouched(self, tree: Path):
        rewrite_tree(tree, ACME, LOCAL_ROOT)

        assert (tree / "notes.txt").read_text() == "import github_com.acme.lib\n"
        assert (tree / ".git" / "hooks" / "hook.py").read_text() == "import github_com.acme.lib\n"

    def test_deeply_nested_file_does_not_stop_walk(self, tmp_path: Path):
        deep = "X = " + " + ".join(["1"] * 2000) + "\n"
        write_source(tmp_path / "a_generated.py", deep)
        write_source(tmp_path / "b_app.py", "import github_com.acme.lib.util\n")

        report = rewrite_tree(tmp_path, ACME, LOCAL_ROOT)

        by_name = {r.path.name: r for r in report.results}
        assert set(by_name) == {"a_generated.py", "b_app.py"}
        assert by_name["a_generated.py"].status is not RewriteStatus.REWRITTEN
        assert (tmp_path / "a_generated.py").read_text() == deep
        assert by_name["b_app.py"].status is RewriteStatus.REWRITTEN
        assert (tmp_path / "b_app.py").read_text() == "import myproj.vendor.lib.util\n"

    def test_virtualenvs_skipped_by_default(self, tree: Path):
        for name in (".venv", "venv", ".tox"):
            write_source(tree / name / "site-packages" / "consumer.py", "import github_com.acme.lib\n")

        rewrite_tree(tree, ACME, LOCAL_ROOT)

        for name in (".venv", "venv", ".tox"):
            consumer = tree / name / "site-packages" / "consumer.py"
            assert consumer.read_text() == "import github_com.acme.lib\n"

    def test_missing_root_recorded(self, tmp_path: Path):
        report = rewrite_tree(tmp_path / "missing", ACME, LOCAL_ROOT)

        assert report.results == []
        assert len(report.walk_errors) == 1
        assert not report.success

    def test_formatter_runs_after_rewrite(self, tree: Path):
        rewrite_tree(tree, ACME, LOCAL_ROOT, formatter=MARKER_FORMATTER)
        assert (tree / "formatted.marker").exists()

    def test_formatter_skipped_without_rewrite(self, tmp_path: Path):
        write_source(tmp_path / "plain.py", "import json\n")

        report = rewrite_tree(tmp_path, ACME, LOCAL_ROOT, formatter=MARKER_FORMATTER)

        assert not report.any_rewritten
        assert not (tmp_path / "formatted.marker").exists()

    def test_formatter_failure_raises(self, tree: Path):
        with pytest.raises(FormatterError, match="status 3"):
            rewrite_tree(
                tree, ACME, LOCAL_ROOT, formatter=[sys.executable, "-c", "raise SystemExit(3)"]
            )


class TestRunFormatter:
    def test_empty_command_is_noop(self, tmp_path: Path):
        run_formatter(tmp_path, [])

    def test_missing_executable(self, tmp_path: Path):
        with pytest.raises(FormatterError, match="not found"):
            run_formatter(tmp_path, ["definitely-not-a-formatter-xyz"])
