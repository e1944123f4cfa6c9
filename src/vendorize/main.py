# SPDX-License-Identifier: MIT
"""CLI entry point for the vendorize command."""

from __future__ import annotations

import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import load_config
from .errors import VendorizeError
from .pipeline import PipelineResult, VendoringPipeline
from .walker import TreeRewriteReport


def echo_error(message: str) -> None:
    """Print an error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


def echo_success(message: str) -> None:
    """Print a success message."""
    click.secho(message, fg="green")


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.secho(f"Warning: {message}", fg="yellow", err=True)


class ClickHandler(logging.Handler):
    """Logging handler that writes records through click.echo to stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool) -> None:
    """Route vendorize logging to stderr; -v shows per-import detail."""
    package_logger = logging.getLogger("vendorize")
    for handler in list(package_logger.handlers):
        if isinstance(handler, ClickHandler):
            package_logger.removeHandler(handler)

    handler = ClickHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False


def _report_rewrite(report: TreeRewriteReport, verbose: bool) -> None:
    # Individual failures were already logged as they happened
    if verbose:
        for result in report.rewritten:
            echo_info(f"  Rewrote {result.path} ({result.imports_rewritten} import(s))")

    echo_info(
        f"Rewrite: {len(report.rewritten)} rewritten, "
        f"{len(report.unchanged)} unchanged, {len(report.failed)} failed"
    )


def _report(result: PipelineResult, commit: bool, verbose: bool) -> None:
    descriptor = result.descriptor
    if result.report is not None:
        _report_rewrite(result.report, verbose)
    if commit and not result.committed:
        echo_warning(f"Commit failed; commit {descriptor.destination} manually.")
    revision = descriptor.revision or "unknown revision"
    echo_success(f"Vendored {descriptor.import_path} ({revision}) into {descriptor.destination}")


@click.command()
@click.version_option(version=__version__, prog_name="vendorize")
@click.argument("import_path", required=False)
@click.option(
    "--copy/--no-copy",
    default=True,
    help="Copy the package, strip its VCS metadata and record its revision.",
)
@click.option(
    "--rewrite/--no-rewrite",
    default=True,
    help="Rewrite import paths across the project.",
)
@click.option(
    "--commit/--no-commit",
    default=True,
    help="Stage and commit the vendored package.",
)
@click.option(
    "-C",
    "--directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project directory (defaults to the current directory).",
)
@click.option(
    "-d",
    "--dependencies-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="File listing previously vendored import paths, one per line.",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose output.",
)
@click.pass_context
def cli(
    click_ctx: click.Context,
    import_path: Optional[str],
    copy: bool,
    rewrite: bool,
    commit: bool,
    directory: Optional[Path],
    dependencies_file: Optional[Path],
    verbose: bool,
) -> None:
    """Vendor a Python package into the current project.

    IMPORT_PATH is resolved against the workspace roots listed in
    VENDORIZE_PATH (or PYTHONPATH). The package is copied next to the
    project's sources and every import of it, and of the packages listed in
    the dependencies file, is rewritten to the vendored location.

    \b
    Examples:
        vendorize acme.lib                  # Copy, rewrite and commit
        vendorize --no-commit acme.lib      # Leave the commit to you
        vendorize --no-copy acme.lib        # Only rewrite imports
    """
    if not import_path:
        click.echo(click_ctx.get_usage(), err=True)
        click_ctx.exit(1)

    configure_logging(verbose)

    try:
        config = load_config(directory)
        overrides: dict = {"copy": copy, "rewrite": rewrite, "commit": commit}
        if dependencies_file is not None:
            overrides["dependencies_file"] = dependencies_file.resolve()
        config = dataclasses.replace(config, **overrides)

        pipeline = VendoringPipeline.from_config(import_path, config)
        if verbose:
            echo_info(f"Package: {import_path} from {pipeline.descriptor.source_dir}")
            echo_info(f"Local root: {pipeline.local_root}")
            echo_info(f"Dependencies: {', '.join(pipeline.registry)}")

        result = pipeline.run()
    except VendorizeError as e:
        echo_error(str(e))
        raise SystemExit(1)

    _report(result, commit, verbose)


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except Exception as e:
        echo_error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
