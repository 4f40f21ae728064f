"""Rewrite import paths across a tree of Go source files.

Edits touch only the import path literals and ``// import "..."`` comments;
grouped import blocks are re-sorted afterwards. Files are replaced through a
sibling temporary file so a failure never leaves one half-written.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from constants import Constants
from common.errors import ParseError, SkipImport
from common.logging_utils import extra_context, is_debug_enabled
from importpaths.gosource import NoPackageClause, Position, parse_source, quote, sort_imports, unquote
from versioning import paths

logger = logging.getLogger(__name__)

ReplaceFunc = Callable[[Position, str], str]
RewriteCallback = Callable[[Position, str], None]


def _skip_dir(name: str) -> bool:
    return name == Constants.VENDOR_DIR or name.startswith(".") or name.startswith("_")


def _walk_error(err: OSError) -> None:
    logger.warning("import rewrite: %s", err)


def walk_sources(root: str):
    """Yield every Go source file under ``root`` in sorted order.

    Vendored code, hidden and underscore directories, and nested modules
    (directories with their own go.mod) are not entered.
    """
    root = os.path.abspath(root)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        dirnames[:] = sorted(
            d for d in dirnames
            if not _skip_dir(d) and not os.path.isfile(os.path.join(dirpath, d, Constants.MOD_FILE))
        )
        for filename in sorted(filenames):
            if filename.endswith(Constants.SOURCE_SUFFIX):
                yield os.path.join(dirpath, filename)


def _read_source(name: str) -> str:
    try:
        with open(name, "r", encoding="utf-8", newline="") as fh:
            return fh.read()
    except UnicodeDecodeError as exc:
        raise ParseError("invalid UTF-8", name) from exc


def write_atomic(name: str, text: str) -> None:
    """Replace ``name`` with ``text`` via a sibling temp file, keeping its mode."""
    directory = os.path.dirname(os.path.abspath(name))
    fd, temp = tempfile.mkstemp(prefix=os.path.basename(name) + ".", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        shutil.copymode(name, temp)
        os.replace(temp, name)
    except BaseException:
        if os.path.exists(temp):
            os.remove(temp)
        raise


def _compat_path(text: str, source, offset: int) -> str:
    literal = text[len("// import"):].strip()
    try:
        return unquote(literal)
    except ValueError as exc:
        raise ParseError(str(exc), source.filename, source.position(offset).line) from exc


def rewrite_source(text: str, filename: str, replace: ReplaceFunc) -> Optional[str]:
    """Apply ``replace`` to the imports in ``text``.

    Returns:
        The rewritten text, or None when nothing changed or the file has no
        package clause.
    """
    try:
        source = parse_source(text, filename)
    except NoPackageClause:
        logger.debug("Skipping %s: no package clause", filename)
        return None

    edits: List[Tuple[int, int, str]] = []
    for spec in source.specs():
        try:
            newpath = replace(source.position(spec.literal.start), spec.path)
        except SkipImport:
            continue
        edits.append((spec.literal.start, spec.literal.end, quote(newpath)))
    for comment in source.compat_comments():
        path = _compat_path(comment.text, source, comment.start)
        try:
            newpath = replace(source.position(comment.start), path)
        except SkipImport:
            continue
        edits.append((comment.start, comment.end, "// import " + quote(newpath)))

    if not edits:
        return None
    out = text
    for start, end, replacement in sorted(edits, reverse=True):
        out = out[:start] + replacement + out[end:]
    if out == text:
        return None
    return sort_imports(parse_source(out, filename))


def rewrite_file(name: str, replace: ReplaceFunc) -> bool:
    """Rewrite the imports of one file in place.

    Returns:
        True when the file was rewritten.

    Raises:
        ParseError: The file is malformed.
        Exception: Anything raised by ``replace`` other than SkipImport.
    """
    text = _read_source(name)
    out = rewrite_source(text, name, replace)
    if out is None or out == text:
        return False
    write_atomic(name, out)
    if is_debug_enabled(logger):
        logger.debug(
            "Rewrote imports",
            extra=extra_context(event="file_rewritten", component="importpaths", target=name),
        )
    return True


def rewrite(root: str, replace: ReplaceFunc) -> int:
    """Rewrite every Go file under ``root``; returns the number changed.

    Files are processed one at a time; the first error aborts the run and
    leaves files already rewritten in place.
    """
    changed = 0
    for name in walk_sources(root):
        if rewrite_file(name, replace):
            changed += 1
    return changed


@dataclass
class RewriteModuleOptions:
    """Options for :func:`rewrite_module`.

    Attributes:
        prefix: Module prefix (no major) of the imports to rewrite.
        new_version: Version whose major the imports should point at.
        new_prefix: Replacement prefix; defaults to ``prefix``.
        pkg_dir: Only rewrite imports of this package subdirectory.
        on_rewrite: Called with the position and new path of every change.
    """
    prefix: str
    new_version: str
    new_prefix: Optional[str] = None
    pkg_dir: str = ""
    on_rewrite: Optional[RewriteCallback] = None


def rewrite_module(root: str, options: RewriteModuleOptions) -> int:
    """Point every import of the module at ``options.new_version``."""
    new_prefix = options.new_prefix or options.prefix

    def _replace(pos: Position, path: str) -> str:
        _, pkgdir, ok = paths.split_path(options.prefix, path)
        if not ok:
            raise SkipImport
        if options.pkg_dir and options.pkg_dir != pkgdir:
            raise SkipImport
        newpath = paths.join_path(new_prefix, options.new_version, pkgdir)
        if newpath == path:
            raise SkipImport
        if options.on_rewrite is not None:
            options.on_rewrite(pos, newpath)
        return newpath

    return rewrite(root, _replace)


def list_imports(root: str) -> List[str]:
    """Return the sorted distinct import paths used under ``root``."""
    seen = set()

    def _collect(_: Position, path: str) -> str:
        seen.add(path)
        raise SkipImport

    rewrite(root, _collect)
    return sorted(seen)
