# SPDX-License-Identifier: MIT
"""Vendor Python packages into a project and rewrite their imports.

Example:
    >>> from vendorize import DependencyRegistry, rewrite_tree
    >>>
    >>> registry = DependencyRegistry(("acme.lib",))
    >>> report = rewrite_tree("myproj/vendor", registry, local_root="myproj.vendor")
    >>> [str(r.path) for r in report.rewritten]
    ['myproj/vendor/lib/client.py']
"""

__version__ = "0.1.0"

from .config import (
    ConfigError,
    VendorizeConfig,
    load_config,
)
from .errors import VendorizeError
from .pipeline import (
    CommitError,
    PackageDescriptor,
    PipelineResult,
    VendorCopyError,
    VendoringPipeline,
)
from .registry import DependencyRegistry
from .resolver import (
    PackageNotFoundError,
    project_namespace,
    resolve_package,
)
from .revision import (
    BazaarBackend,
    GitBackend,
    MercurialBackend,
    RevisionError,
    VCSBackend,
    detect_revision,
)
from .rewriter import (
    FailureReason,
    ImportChange,
    ImportPathRewriter,
    ImportRewriteError,
    RewriteResult,
    RewriteStatus,
    rewrite_file,
    rewrite_source,
)
from .walker import (
    FormatterError,
    TreeRewriteReport,
    rewrite_tree,
    run_formatter,
)

__all__ = [
    "VendorizeError",
    # Config
    "VendorizeConfig",
    "ConfigError",
    "load_config",
    # Resolver
    "PackageNotFoundError",
    "resolve_package",
    "project_namespace",
    # Registry
    "DependencyRegistry",
    # Rewriter
    "rewrite_file",
    "rewrite_source",
    "ImportPathRewriter",
    "ImportChange",
    "ImportRewriteError",
    "RewriteResult",
    "RewriteStatus",
    "FailureReason",
    # Walker
    "rewrite_tree",
    "run_formatter",
    "TreeRewriteReport",
    "FormatterError",
    # Revision
    "VCSBackend",
    "GitBackend",
    "MercurialBackend",
    "BazaarBackend",
    "RevisionError",
    "detect_revision",
    # Pipeline
    "VendoringPipeline",
    "PackageDescriptor",
    "PipelineResult",
    "VendorCopyError",
    "CommitError",
]
