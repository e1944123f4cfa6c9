# SPDX-License-Identifier: MIT
"""Tests for the dependency registry."""

from pathlib import Path

from vendorize.registry import DependencyRegistry, prefix_basename, read_dependencies_file


class TestReadDependenciesFile:
    """Tests for read_dependencies_file function."""

    def test_missing_file_is_empty(self, tmp_path: Path):
        assert read_dependencies_file(tmp_path / "dependencies") == []

    def test_one_prefix_per_line(self, tmp_path: Path):
        path = tmp_path / "dependencies"
        path.write_text("github_com.a.one\ngithub_com.b.two\n")
        assert read_dependencies_file(path) == ["github_com.a.one", "github_com.b.two"]

    def test_blank_lines_and_comments_skipped(self, tmp_path: Path):
        path = tmp_path / "dependencies"
        path.write_text("# vendored\n\n  yaml  \n\n# old: requests\nidna\n")
        assert read_dependencies_file(path) == ["yaml", "idna"]

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "dependencies"
        path.write_text("\n")
        assert read_dependencies_file(path) == []


class TestDependencyRegistry:
    """Tests for DependencyRegistry."""

    def test_load_appends_current_package(self, tmp_path: Path):
        path = tmp_path / "dependencies"
        path.write_text("yaml\nidna\n")

        registry = DependencyRegistry.load(path, "acme.lib")

        assert registry.prefixes == ("yaml", "idna", "acme.lib")

    def test_load_without_file(self, tmp_path: Path):
        registry = DependencyRegistry.load(tmp_path / "missing", "acme.lib")
        assert list(registry) == ["acme.lib"]
        assert len(registry) == 1

    def test_duplicates_kept(self, tmp_path: Path):
        path = tmp_path / "dependencies"
        path.write_text("acme.lib\n")

        registry = DependencyRegistry.load(path, "acme.lib")

        assert registry.prefixes == ("acme.lib", "acme.lib")
        assert registry.match("acme.lib.util") == "acme.lib"

    def test_match_first_in_order(self):
        registry = DependencyRegistry(("acme", "acme.lib"))
        assert registry.match("acme.lib.util") == "acme"
        assert registry.matches("acme.lib.util") == ["acme", "acme.lib"]

    def test_match_is_literal_prefix(self):
        registry = DependencyRegistry(("acme",))
        assert registry.match("acmeextra.pkg") == "acme"
        assert registry.match("org.acme") is None

    def test_no_match(self):
        assert DependencyRegistry(("yaml",)).match("json") is None
        assert DependencyRegistry().match("json") is None


class TestPrefixBasename:
    def test_dotted(self):
        assert prefix_basename("github_com.acme.lib") == "lib"

    def test_single(self):
        assert prefix_basename("yaml") == "yaml"
