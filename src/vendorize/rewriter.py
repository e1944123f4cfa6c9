# SPDX-License-Identifier: MIT
"""AST-located import path rewriting.

Each source file is parsed with :mod:`ast` to find its import declarations.
Positions from the tree locate the module path of every declaration in the
original text, and only those spans are replaced. Everything else in the
file (comments, blank lines, line endings, encoding) is written back exactly
as it was read.

Example (registry ["acme.lib"], local root "myproj.vendor"):
    Original:
        import acme.lib.util  # helpers
        from acme.lib import client

    Rewritten:
        import myproj.vendor.lib.util  # helpers
        from myproj.vendor.lib import client

Relative imports are never rewritten. Module paths are compared with a
literal string-prefix test, so prefix "acme" also matches "acmeextra.pkg".
"""

from __future__ import annotations

import ast
import io
import logging
import os
import re
import shutil
import tempfile
import tokenize
import unicodedata
import warnings
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import VendorizeError
from .registry import DependencyRegistry, prefix_basename

logger = logging.getLogger(__name__)

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")

# Whitespace allowed between tokens of a logical line, including backslash continuations
_GAP = r"(?:[ \t\f]|\\(?:\r\n|\r|\n))"
_DOTTED_NAME_RE = re.compile(rf"[^\W\d]\w*(?:{_GAP}*\.{_GAP}*[^\W\d]\w*)*")
_FROM_KEYWORD_RE = re.compile(rf"from{_GAP}+")
_GAP_RE = re.compile(_GAP)


class RewriteStatus(str, Enum):
    """Outcome of rewriting one file."""

    UNCHANGED = "unchanged"
    REWRITTEN = "rewritten"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Why a file could not be rewritten."""

    PARSE_ERROR = "parse-error"
    IO_ERROR = "io-error"


class ImportRewriteError(VendorizeError):
    """Raised when a source file cannot be rewritten."""

    def __init__(self, message: str, reason: FailureReason = FailureReason.PARSE_ERROR) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class ImportChange:
    """A single rewritten import path.

    Attributes:
        lineno: Line of the import declaration (1-based)
        old: Module path before the rewrite
        new: Module path after the rewrite
        prefix: Registry prefix that matched
    """

    lineno: int
    old: str
    new: str
    prefix: str


@dataclass
class RewriteResult:
    """Result of rewriting imports in a file.

    Attributes:
        path: Source file path
        status: unchanged, rewritten or failed
        changes: Import paths that were rewritten
        reason: Failure category when status is failed
        message: Failure detail when status is failed
    """

    path: Path
    status: RewriteStatus = RewriteStatus.UNCHANGED
    changes: list[ImportChange] = field(default_factory=list)
    reason: Optional[FailureReason] = None
    message: str = ""

    @property
    def imports_rewritten(self) -> int:
        return len(self.changes)

    @property
    def failed(self) -> bool:
        return self.status is RewriteStatus.FAILED

    @property
    def modified(self) -> bool:
        return self.status is RewriteStatus.REWRITTEN


def rewrite_path(path: str, prefix: str, local_root: str) -> str:
    """Map an import path matched by prefix into the local root.

    The result is local_root + "." + basename(prefix) + the remainder of
    path after prefix.
    """
    return f"{local_root}.{prefix_basename(prefix)}{path[len(prefix):]}"


@dataclass(frozen=True)
class _Edit:
    start: int
    end: int
    change: ImportChange


class ImportPathRewriter(ast.NodeVisitor):
    """AST visitor that plans rewrites of matching import paths.

    The visitor does not modify the tree. It records one text edit per
    matching declaration; :func:`rewrite_source` applies them.

    Handles:
    - `import foo.bar` and `import foo.bar as baz` (each alias separately)
    - `from foo.bar import baz`

    Relative `from . import x` and `from .foo import x` are left alone.

    Use :meth:`scan` rather than :meth:`visit` on a whole module:
    ``NodeVisitor`` recurses and overflows the stack on deeply nested
    expressions.
    """

    def __init__(self, source: str, registry: DependencyRegistry, local_root: str) -> None:
        """Initialize the import path rewriter.

        Args:
            source: Text the tree was parsed from
            registry: Dependency prefixes, tried in order
            local_root: Dotted namespace vendored packages live under
        """
        super().__init__()
        self.source = source
        self.registry = registry
        self.local_root = local_root
        self.edits: list[_Edit] = []
        self._lines = _NEWLINE_RE.split(source)
        self._line_starts = [0]
        self._line_starts.extend(m.end() for m in _NEWLINE_RE.finditer(source))

    def _offset(self, lineno: int, col_offset: int) -> int:
        """Convert an AST (line, UTF-8 byte column) position to a text offset."""
        line = self._lines[lineno - 1]
        column = len(line.encode("utf-8")[:col_offset].decode("utf-8"))
        return self._line_starts[lineno - 1] + column

    def _locate_name(self, start: int, name: str, lineno: int) -> tuple[int, int]:
        match = _DOTTED_NAME_RE.match(self.source, start)
        if match is None:
            raise ImportRewriteError(f"line {lineno}: cannot locate module path {name!r}")
        # The parser applies NFKC normalization to identifiers
        found = unicodedata.normalize("NFKC", _GAP_RE.sub("", match.group()))
        if found != name:
            raise ImportRewriteError(
                f"line {lineno}: expected module path {name!r}, found {match.group()!r}"
            )
        return match.start(), match.end()

    def _consider(self, name: str, lineno: int, start: int) -> None:
        candidates = self.registry.matches(name)
        if not candidates:
            return
        prefix = candidates[0]
        if len(candidates) > 1:
            logger.debug(
                "line %d: %r matches prefixes %s; using %r", lineno, name, candidates, prefix
            )

        name_start, name_end = self._locate_name(start, name, lineno)
        change = ImportChange(
            lineno=lineno,
            old=name,
            new=rewrite_path(name, prefix, self.local_root),
            prefix=prefix,
        )
        self.edits.append(_Edit(name_start, name_end, change))

    def scan(self, tree: ast.AST) -> None:
        """Plan rewrites for every import declaration in tree."""
        for node in ast.walk(tree):
            if isinstance(node, (ast.Import, ast.ImportFrom)):
                self.visit(node)

    def visit_Import(self, node: ast.Import) -> None:
        """Plan rewrites for `import foo` statements."""
        for alias in node.names:
            self._consider(alias.name, alias.lineno, self._offset(alias.lineno, alias.col_offset))

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        """Plan rewrites for absolute `from foo import bar` statements."""
        if node.level > 0 or not node.module:
            return

        statement = self._offset(node.lineno, node.col_offset)
        keyword = _FROM_KEYWORD_RE.match(self.source, statement)
        if keyword is None:
            raise ImportRewriteError(f"line {node.lineno}: cannot locate 'from' keyword")
        self._consider(node.module, node.lineno, keyword.end())


def rewrite_source(
    source: str,
    registry: DependencyRegistry,
    local_root: str,
    filename: str = "<string>",
) -> tuple[str, list[ImportChange]]:
    """Rewrite matching import paths in Python source code.

    Args:
        source: Python source code
        registry: Dependency prefixes, tried in order
        local_root: Dotted namespace vendored packages live under
        filename: Filename for error messages

    Returns:
        Tuple of (rewritten_source, changes). The source is returned
        unchanged (the same object) when nothing matched.

    Raises:
        ImportRewriteError: If the source cannot be parsed
    """
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", SyntaxWarning)
            tree = ast.parse(source, filename=filename)
    except (SyntaxError, ValueError) as e:
        raise ImportRewriteError(f"Syntax error in {filename}: {e}") from e
    except (RecursionError, MemoryError) as e:
        raise ImportRewriteError(f"Source too deeply nested to parse in {filename}: {e}") from e

    rewriter = ImportPathRewriter(source, registry, local_root)
    rewriter.scan(tree)

    if not rewriter.edits:
        return source, []

    edits = sorted(rewriter.edits, key=lambda edit: edit.start)
    pieces: list[str] = []
    position = 0
    for edit in edits:
        pieces.append(source[position : edit.start])
        pieces.append(edit.change.new)
        position = edit.end
    pieces.append(source[position:])

    return "".join(pieces), [edit.change for edit in edits]


def _decode(data: bytes, path: Path) -> tuple[str, str]:
    """Decode source bytes using the PEP 263 cookie or BOM.

    Line endings are kept as they are.
    """
    try:
        encoding, _ = tokenize.detect_encoding(io.BytesIO(data).readline)
        return data.decode(encoding), encoding
    except (SyntaxError, UnicodeDecodeError) as e:
        raise ImportRewriteError(f"Cannot decode {path}: {e}") from e


def _atomic_write(path: Path, data: bytes) -> None:
    """Replace path with data via a temporary file in the same directory.

    The original is only replaced after the temporary file is fully
    written and synced. On any failure the temporary file is removed and
    the original is left as it was.
    """
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except BaseException:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        raise


def rewrite_file(path: Path, registry: DependencyRegistry, local_root: str) -> RewriteResult:
    """Rewrite matching imports in a single Python file, in place.

    Args:
        path: Source file to rewrite
        registry: Dependency prefixes, tried in order
        local_root: Dotted namespace vendored packages live under

    Returns:
        RewriteResult. Failures are reported in the result, not raised,
        and always leave the file untouched.
    """
    path = Path(path)
    result = RewriteResult(path=path)

    try:
        data = path.read_bytes()
    except OSError as e:
        return _failed(result, FailureReason.IO_ERROR, f"Failed to read {path}: {e}")

    try:
        source, encoding = _decode(data, path)
        rewritten, changes = rewrite_source(source, registry, local_root, filename=str(path))
    except ImportRewriteError as e:
        return _failed(result, e.reason, str(e))

    if not changes:
        return result

    try:
        _atomic_write(path, rewritten.encode(encoding))
    except (OSError, UnicodeEncodeError) as e:
        return _failed(result, FailureReason.IO_ERROR, f"Failed to write {path}: {e}")

    for change in changes:
        logger.debug("%s:%d: %s -> %s", path, change.lineno, change.old, change.new)

    result.status = RewriteStatus.REWRITTEN
    result.changes = changes
    return result


def _failed(result: RewriteResult, reason: FailureReason, message: str) -> RewriteResult:
    logger.warning("%s [%s]", message, reason.value)
    result.status = RewriteStatus.FAILED
    result.reason = reason
    result.message = message
    return result
